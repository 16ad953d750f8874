"""
Shared metric types and helpers.
"""

from enum import Enum
from typing import Callable, NamedTuple

from repo_maintainability.facts import RepositoryFacts


class MetricName(str, Enum):
    """The six maintainability dimensions, in display order."""

    DOCUMENTATION = "Documentation"
    COMMIT_QUALITY = "Commit Quality"
    ACTIVITY = "Activity"
    ISSUE_MANAGEMENT = "Issue Management"
    COMMUNITY = "Community"
    BRANCH_MANAGEMENT = "Branch Management"


class Metric(NamedTuple):
    """A single maintainability metric."""

    name: MetricName
    score: float  # 0-100
    weight: float  # filled in by the aggregator
    message: str
    risk: str  # "High", "Medium", "Low", "None"

    @property
    def weighted_score(self) -> float:
        return self.score * self.weight


class MetricSpec(NamedTuple):
    """Specification for a metric check."""

    name: MetricName
    checker: Callable[[RepositoryFacts], Metric]
    on_error: Callable[[Exception], Metric]


MAX_SCORE = 100.0


def clamp_score(value: float) -> float:
    """Clamp a raw score into [0, 100]."""
    return max(0.0, min(MAX_SCORE, float(value)))


def risk_for(score: float) -> str:
    """Map a 0-100 score onto the risk labels used in metric output."""
    if score >= 80:
        return "None"
    if score >= 60:
        return "Low"
    if score >= 40:
        return "Medium"
    return "High"


def make_metric(name: MetricName, score: float, message: str) -> Metric:
    """Build a clamped, not-yet-weighted Metric."""
    score = clamp_score(score)
    return Metric(name, score, 0.0, message, risk_for(score))


def incomplete_metric(name: MetricName, error: Exception) -> Metric:
    """Worst-case metric used when a checker cannot read its facts."""
    return Metric(name, 0.0, 0.0, f"Note: Analysis incomplete - {error}", "High")
