"""
Hosting-platform providers.

Providers fetch repository facts from a hosting platform; the scoring core
only ever sees the resulting RepositoryFacts snapshot.
"""

from repo_maintainability.vcs.base import BaseVCSProvider
from repo_maintainability.vcs.github import GitHubProvider

__all__ = ["BaseVCSProvider", "GitHubProvider"]
