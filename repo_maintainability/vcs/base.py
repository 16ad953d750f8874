"""
Base VCS provider interface.

A provider turns one hosted repository into a RepositoryFacts snapshot.
"""

from abc import ABC, abstractmethod

from repo_maintainability.facts import RepositoryFacts


class BaseVCSProvider(ABC):
    """Abstract base class for VCS providers."""

    @abstractmethod
    def get_platform_name(self) -> str:
        """Return the platform identifier (e.g. 'github')."""

    @abstractmethod
    def get_repository_url(self, owner: str, repo: str) -> str:
        """Return the web URL of a repository."""

    @abstractmethod
    def get_repository_facts(self, owner: str, repo: str) -> RepositoryFacts:
        """
        Fetch a complete fact snapshot for one repository.

        Args:
            owner: Repository owner (user or organization)
            repo: Repository name

        Returns:
            Immutable RepositoryFacts taken at a single point in time

        Raises:
            FactAcquisitionError: If the snapshot cannot be completed.
                Partial snapshots are never returned.
        """
