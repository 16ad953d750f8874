"""Activity metric."""

from repo_maintainability.facts import RepositoryFacts
from repo_maintainability.metrics.base import (
    Metric,
    MetricName,
    MetricSpec,
    incomplete_metric,
    make_metric,
)

RECENCY_WEIGHT = 0.7
FREQUENCY_WEIGHT = 0.3
# One maintenance event per week over a year is full frequency
EVENTS_FOR_FULL_FREQUENCY = 52


def recency_score(days_since_last_commit: int) -> float:
    """Bucket the age of the newest commit into a 0-100 recency score."""
    if days_since_last_commit <= 7:
        return 100.0
    elif days_since_last_commit <= 30:
        return 90.0
    elif days_since_last_commit <= 90:
        return 70.0
    elif days_since_last_commit <= 180:
        return 50.0
    else:
        return 30.0


def check_activity(facts: RepositoryFacts) -> Metric:
    """
    Evaluates how recently and how often the repository is maintained.

    Commits anchor activity: with no commit inside the observation window
    the score is 0, whatever happened before the window or in the tracker.

    Scoring:
    - 70%: recency of the newest commit
      (<= 7 days: 100, <= 30: 90, <= 90: 70, <= 180: 50, older: 30)
    - 30%: frequency of window events (commits, merged PRs, closed issues),
      52 events for the full amount
    """
    name = MetricName.ACTIVITY
    commits = [c for c in facts.commits if facts.in_window(c.committed_at)]

    if not commits:
        return make_metric(
            name,
            0,
            f"Observe: No commits in the last {facts.observation_window_days} days.",
        )

    newest = max(c.committed_at for c in commits)
    days_since = (facts.fetched_at - newest).days
    recency = recency_score(days_since)

    merged_prs = sum(1 for pr in facts.pull_requests if facts.in_window(pr.merged_at))
    closed_issues = sum(1 for issue in facts.issues if facts.in_window(issue.closed_at))
    events = len(commits) + merged_prs + closed_issues
    frequency = min(100.0, events / EVENTS_FOR_FULL_FREQUENCY * 100)

    score = recency * RECENCY_WEIGHT + frequency * FREQUENCY_WEIGHT

    message = (
        f"Last commit {days_since} day(s) ago; {events} maintenance event(s) "
        f"in the last {facts.observation_window_days} days."
    )
    if days_since <= 30:
        message = f"Active: {message}"
    else:
        message = f"Observe: {message}"

    return make_metric(name, score, message)


def _on_error(error: Exception) -> Metric:
    return incomplete_metric(MetricName.ACTIVITY, error)


METRIC = MetricSpec(
    name=MetricName.ACTIVITY,
    checker=check_activity,
    on_error=_on_error,
)
