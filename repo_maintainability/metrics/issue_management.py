"""Issue management metric."""

from statistics import median

from repo_maintainability.facts import RepositoryFacts, non_negative
from repo_maintainability.metrics.base import (
    Metric,
    MetricName,
    MetricSpec,
    incomplete_metric,
    make_metric,
)

DISABLED_TRACKER_SCORE = 50.0
# An empty tracker is not evidence of poor management
EMPTY_TRACKER_SCORE = 80.0

STALE_ISSUE_DAYS = 180


def closure_rate_score(closure_rate: float) -> float:
    """Bucket a closed/total percentage into a base score."""
    if closure_rate >= 80:
        return 100.0
    elif closure_rate >= 60:
        return 85.0
    elif closure_rate >= 40:
        return 70.0
    elif closure_rate >= 20:
        return 50.0
    else:
        return 30.0


def backlog_multiplier(open_issues: int) -> float:
    if open_issues > 100:
        return 0.8
    if open_issues > 50:
        return 0.9
    return 1.0


def resolution_multiplier(median_days: float | None) -> float:
    if median_days is None:
        return 1.0
    if median_days > 90:
        return 0.85
    if median_days > 30:
        return 0.95
    return 1.0


def check_issue_management(facts: RepositoryFacts) -> Metric:
    """
    Evaluates how well the issue tracker is kept under control.

    Scoring:
    - Tracker disabled: 50/100
    - No issues at all: 80/100 (neutral default)
    - Otherwise closure-rate buckets (>= 80%: 100, >= 60: 85, >= 40: 70,
      >= 20: 50, else 30), multiplied by:
      - backlog: > 100 open x0.8, > 50 open x0.9
      - median time-to-close: > 90 days x0.85, > 30 days x0.95
      - stale backlog: over half the sampled open issues older than 180 days x0.9
    """
    name = MetricName.ISSUE_MANAGEMENT

    if not facts.has_issues_enabled:
        return make_metric(
            name,
            DISABLED_TRACKER_SCORE,
            "Note: Issues are disabled for this repository.",
        )

    open_issues = non_negative(facts.open_issues)
    closed_issues = non_negative(facts.closed_issues)
    total_issues = open_issues + closed_issues

    if total_issues == 0:
        return make_metric(
            name,
            EMPTY_TRACKER_SCORE,
            "Note: No issues found (new project or unused issue tracker).",
        )

    closure_rate = closed_issues * 100.0 / total_issues
    score = closure_rate_score(closure_rate) * backlog_multiplier(open_issues)

    resolution_days = [
        (issue.closed_at - issue.created_at).total_seconds() / 86400
        for issue in facts.issues
        # Records closed before they were created are reported as degraded input
        if issue.closed_at is not None and issue.closed_at >= issue.created_at
    ]
    median_days = median(resolution_days) if resolution_days else None
    score *= resolution_multiplier(median_days)

    sampled_open = [issue for issue in facts.issues if issue.closed_at is None]
    stale_open = [
        issue
        for issue in sampled_open
        if (facts.fetched_at - issue.created_at).days > STALE_ISSUE_DAYS
    ]
    if sampled_open and len(stale_open) * 2 > len(sampled_open):
        score *= 0.9

    message = (
        f"Open: {open_issues}, Closed: {closed_issues} "
        f"({closure_rate:.1f}% closure rate)"
    )
    if median_days is not None:
        message += f", median time-to-close {median_days:.1f} days"
    if stale_open:
        message += f", {len(stale_open)} stale open issue(s)"
    message += "."

    return make_metric(name, score, message)


def _on_error(error: Exception) -> Metric:
    return incomplete_metric(MetricName.ISSUE_MANAGEMENT, error)


METRIC = MetricSpec(
    name=MetricName.ISSUE_MANAGEMENT,
    checker=check_issue_management,
    on_error=_on_error,
)
