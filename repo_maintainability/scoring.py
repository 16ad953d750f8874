"""
Weight composition, aggregation and rating classification.
"""

import math
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from repo_maintainability.errors import WeightConfigurationError
from repo_maintainability.metrics.base import Metric, MetricName, clamp_score


class Rating(str, Enum):
    """Ordinal rating bands."""

    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"


# Lower bound (inclusive) of each band, highest first
RATING_THRESHOLDS: tuple[tuple[float, Rating], ...] = (
    (90.0, Rating.EXCELLENT),
    (75.0, Rating.GOOD),
    (60.0, Rating.FAIR),
)

DEFAULT_WEIGHTS: Mapping[MetricName, float] = MappingProxyType(
    {
        MetricName.DOCUMENTATION: 0.20,
        MetricName.COMMIT_QUALITY: 0.15,
        MetricName.ACTIVITY: 0.15,
        MetricName.ISSUE_MANAGEMENT: 0.15,
        MetricName.COMMUNITY: 0.15,
        MetricName.BRANCH_MANAGEMENT: 0.20,
    }
)

_WEIGHT_SUM_TOLERANCE = 1e-9


def validate_weights(weights: Mapping[MetricName, float]) -> None:
    """
    Check that a weight set covers every metric and sums to 1.0.

    Raises:
        WeightConfigurationError: If a metric is missing, a weight is outside
            (0, 1], or the weights do not sum to exactly 1.0.
    """
    missing = [name.value for name in MetricName if name not in weights]
    if missing:
        raise WeightConfigurationError(f"Weights are missing metrics: {', '.join(missing)}.")

    invalid = {
        name.value: value
        for name, value in weights.items()
        if isinstance(value, bool)
        or not isinstance(value, (int, float))
        or not 0 < value <= 1
    }
    if invalid:
        invalid_list = ", ".join(f"{name}={value}" for name, value in invalid.items())
        raise WeightConfigurationError(
            f"Weights must be numbers in (0, 1]. Invalid values: {invalid_list}."
        )

    total = math.fsum(weights.values())
    if not math.isclose(total, 1.0, rel_tol=0.0, abs_tol=_WEIGHT_SUM_TOLERANCE):
        raise WeightConfigurationError(f"Weights must sum to 1.0, got {total:.6f}.")


# Startup invariant
validate_weights(DEFAULT_WEIGHTS)


def resolve_weights(overrides: Mapping[str, float] | None = None) -> dict[MetricName, float]:
    """
    Apply configured overrides on top of the default weights.

    Args:
        overrides: Metric display name (e.g. "Commit Quality") to weight.

    Returns:
        A new, validated weight mapping.

    Raises:
        WeightConfigurationError: If an override names an unknown metric or
            the resulting weights are invalid.
    """
    weights = dict(DEFAULT_WEIGHTS)
    if not overrides:
        return weights

    known = {name.value: name for name in MetricName}
    unknown = sorted(set(overrides) - set(known))
    if unknown:
        raise WeightConfigurationError(
            f"Weights include unknown metrics: {', '.join(unknown)}. "
            f"Available: {', '.join(known)}."
        )

    for display_name, value in overrides.items():
        weights[known[display_name]] = value

    validate_weights(weights)
    return weights


def apply_weights(
    metrics: list[Metric], weights: Mapping[MetricName, float] = DEFAULT_WEIGHTS
) -> list[Metric]:
    """Attach each metric's weight."""
    return [metric._replace(weight=weights[metric.name]) for metric in metrics]


def compute_overall_score(metrics: list[Metric]) -> float:
    """
    Weighted sum of the (already weighted) metrics.

    No normalization beyond the sum: the weights already add up to 1.0.
    Rounded to two decimals so that band boundaries are not missed by
    floating point noise.

    Returns:
        Overall score on a 0-100 scale.
    """
    total = math.fsum(metric.score * metric.weight for metric in metrics)
    return round(clamp_score(total), 2)


def classify_rating(overall_score: float) -> Rating:
    """Map an overall score to its rating band (lower bounds inclusive)."""
    for lower_bound, rating in RATING_THRESHOLDS:
        if overall_score >= lower_bound:
            return rating
    return Rating.POOR
