"""
Repository fact snapshot consumed by the metric scorers.

A snapshot is built once per run by a VCS provider and never mutated
afterwards; every scorer reads the same object.
"""

from datetime import datetime, timedelta
from typing import NamedTuple

from repo_maintainability.errors import DataIntegrityError


class CommitRecord(NamedTuple):
    """A single commit on the default branch."""

    sha: str
    message: str
    author: str
    committed_at: datetime


class IssueRecord(NamedTuple):
    """A sampled issue (pull requests excluded)."""

    created_at: datetime
    closed_at: datetime | None = None


class PullRequestRecord(NamedTuple):
    """A sampled pull request."""

    created_at: datetime
    merged_at: datetime | None = None
    closed_at: datetime | None = None
    author: str = ""


class BranchProtection(NamedTuple):
    """Protection rules of the default branch."""

    enabled: bool = False
    required_reviews: bool = False
    required_status_checks: bool = False
    enforce_admins: bool = False


class RepositoryFacts(NamedTuple):
    """Immutable, point-in-time set of repository attributes."""

    owner: str
    name: str
    fetched_at: datetime
    observation_window_days: int = 365
    # Documentation
    readme_size: int | None = None
    has_license: bool = False
    guide_files: tuple[str, ...] = ()
    description: str | None = None
    topics_count: int = 0
    # Commits inside the observation window, newest first
    commits: tuple[CommitRecord, ...] = ()
    total_commits: int = 0
    # Issues
    has_issues_enabled: bool = True
    open_issues: int = 0
    closed_issues: int = 0
    issues: tuple[IssueRecord, ...] = ()
    # Pull requests
    open_pull_requests: int = 0
    merged_pull_requests: int = 0
    closed_unmerged_pull_requests: int = 0
    pull_requests: tuple[PullRequestRecord, ...] = ()
    # Community
    contributor_count: int = 0
    stars: int = 0
    forks: int = 0
    # Branches
    default_branch: str = "main"
    branch_names: tuple[str, ...] = ()
    branch_count: int = 0
    branch_protection: BranchProtection = BranchProtection()

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def window_start(self) -> datetime:
        return self.fetched_at - timedelta(days=max(self.observation_window_days, 0))

    def in_window(self, moment: datetime | None) -> bool:
        """Whether a timestamp falls inside the observation window."""
        return moment is not None and self.window_start <= moment <= self.fetched_at


_COUNT_FIELDS = (
    "topics_count",
    "total_commits",
    "open_issues",
    "closed_issues",
    "open_pull_requests",
    "merged_pull_requests",
    "closed_unmerged_pull_requests",
    "contributor_count",
    "stars",
    "forks",
    "branch_count",
)


def non_negative(value: int | None) -> int:
    """Treat a missing or negative count as its worst case: zero."""
    if value is None or value < 0:
        return 0
    return value


def _ends_before_start(created_at: datetime, *ends: datetime | None) -> bool:
    return any(end is not None and end < created_at for end in ends)


def find_integrity_issues(facts: RepositoryFacts) -> list[DataIntegrityError]:
    """
    Check a snapshot for fields that violate their invariants.

    Nothing here is fatal: scorers clamp the offending fields, and the
    caller reports each issue as a degraded-input warning.

    Args:
        facts: The snapshot to inspect.

    Returns:
        One DataIntegrityError per violated field, empty when the snapshot is clean.
    """
    issues: list[DataIntegrityError] = []

    for field in _COUNT_FIELDS:
        value = getattr(facts, field)
        if value < 0:
            issues.append(DataIntegrityError(field, f"negative count {value}"))

    if facts.readme_size is not None and facts.readme_size < 0:
        issues.append(
            DataIntegrityError("readme_size", f"negative size {facts.readme_size}")
        )

    if facts.observation_window_days <= 0:
        issues.append(
            DataIntegrityError(
                "observation_window_days",
                f"window must be positive, got {facts.observation_window_days}",
            )
        )

    future_commits = sum(1 for c in facts.commits if c.committed_at > facts.fetched_at)
    if future_commits:
        issues.append(
            DataIntegrityError(
                "commits", f"{future_commits} commit(s) dated after the snapshot"
            )
        )

    reversed_issues = sum(
        1 for issue in facts.issues if _ends_before_start(issue.created_at, issue.closed_at)
    )
    if reversed_issues:
        issues.append(
            DataIntegrityError(
                "issues", f"{reversed_issues} issue(s) closed before they were created"
            )
        )

    reversed_prs = sum(
        1
        for pr in facts.pull_requests
        if _ends_before_start(pr.created_at, pr.merged_at, pr.closed_at)
    )
    if reversed_prs:
        issues.append(
            DataIntegrityError(
                "pull_requests",
                f"{reversed_prs} pull request(s) closed before they were created",
            )
        )

    if facts.total_commits >= 0 and facts.total_commits < len(facts.commits):
        issues.append(
            DataIntegrityError(
                "total_commits",
                f"{facts.total_commits} is smaller than the {len(facts.commits)} sampled commits",
            )
        )

    return issues
