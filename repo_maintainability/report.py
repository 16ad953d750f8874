"""
Maintainability report structure and assembly.
"""

from enum import Enum
from typing import Any, NamedTuple

from repo_maintainability.metrics import METRIC_ORDER
from repo_maintainability.metrics.base import Metric
from repo_maintainability.scoring import Rating


class InsightStatus(str, Enum):
    """Where an insight's text came from."""

    REAL = "REAL"  # successful LLM call
    FALLBACK = "FALLBACK"  # deterministic template


class InsightResult(NamedTuple):
    """Qualitative commentary attached to a report."""

    status: InsightStatus
    text: str
    attempts: int = 0  # provider calls made
    reason: str | None = None  # why the fallback was used


class MaintainabilityReport(NamedTuple):
    """The result of a maintainability analysis."""

    repository: str
    overall_score: float
    rating: Rating
    metrics: tuple[Metric, ...]
    insight: InsightResult | None = None

    def weakest_metric(self) -> Metric | None:
        """Lowest-scoring dimension; ties go to the earlier one in display order."""
        if not self.metrics:
            return None
        return min(self.metrics, key=lambda m: m.score)


def assemble_report(
    repository: str,
    metrics: list[Metric],
    overall_score: float,
    rating: Rating,
    insight: InsightResult | None = None,
) -> MaintainabilityReport:
    """
    Merge scores, rating and optional insight into one report.

    Metrics are placed in the fixed display order regardless of the order
    in which they were computed.
    """
    position = {name: index for index, name in enumerate(METRIC_ORDER)}
    ordered = tuple(sorted(metrics, key=lambda m: position[m.name]))
    return MaintainabilityReport(
        repository=repository,
        overall_score=overall_score,
        rating=rating,
        metrics=ordered,
        insight=insight,
    )


def report_to_dict(report: MaintainabilityReport) -> dict[str, Any]:
    """JSON-ready representation for the presentation layer."""
    data: dict[str, Any] = {
        "repository": report.repository,
        "overall_score": report.overall_score,
        "rating": report.rating.value,
        "metrics": [
            {
                "name": metric.name.value,
                "score": round(metric.score, 2),
                "weight": metric.weight,
                "weighted_score": round(metric.weighted_score, 2),
                "message": metric.message,
                "risk": metric.risk,
            }
            for metric in report.metrics
        ],
    }
    if report.insight is not None:
        data["insight"] = {
            "status": report.insight.status.value,
            "text": report.insight.text,
            "attempts": report.insight.attempts,
            "reason": report.insight.reason,
        }
    return data
