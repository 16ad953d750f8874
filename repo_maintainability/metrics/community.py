"""Community metric."""

from repo_maintainability.facts import RepositoryFacts, non_negative
from repo_maintainability.metrics.base import (
    Metric,
    MetricName,
    MetricSpec,
    incomplete_metric,
    make_metric,
)

CONTRIBUTOR_WEIGHT = 0.5
ACCEPTANCE_WEIGHT = 0.3
POPULARITY_WEIGHT = 0.2
NO_RESOLVED_PRS_ACCEPTANCE = 50.0


def check_community(facts: RepositoryFacts) -> Metric:
    """
    Evaluates contributor breadth and openness to contributions.

    Scoring:
    - 50%: contributors (10 points each, 10+ contributors for full marks)
    - 30%: PR acceptance, merged / (merged + closed without merge);
      50 when no pull request has been resolved yet
    - 20%: popularity, mean of stars/10 and forks/5 (each capped at 100)
    """
    name = MetricName.COMMUNITY

    contributors = non_negative(facts.contributor_count)
    contributor_score = min(100.0, contributors * 10.0)

    merged = non_negative(facts.merged_pull_requests)
    rejected = non_negative(facts.closed_unmerged_pull_requests)
    resolved = merged + rejected
    if resolved:
        acceptance = merged * 100.0 / resolved
    else:
        acceptance = NO_RESOLVED_PRS_ACCEPTANCE

    star_score = min(100.0, non_negative(facts.stars) / 10.0)
    fork_score = min(100.0, non_negative(facts.forks) / 5.0)
    popularity = (star_score + fork_score) / 2

    score = (
        contributor_score * CONTRIBUTOR_WEIGHT
        + acceptance * ACCEPTANCE_WEIGHT
        + popularity * POPULARITY_WEIGHT
    )

    acceptance_text = (
        f"{acceptance:.0f}% PR acceptance ({merged} merged)"
        if resolved
        else "no resolved pull requests"
    )
    message = (
        f"Contributors: {contributors}, {acceptance_text}, "
        f"Stars: {non_negative(facts.stars)}, Forks: {non_negative(facts.forks)}."
    )
    if contributors <= 1:
        message = f"Observe: Single-contributor project. {message}"

    return make_metric(name, score, message)


def _on_error(error: Exception) -> Metric:
    return incomplete_metric(MetricName.COMMUNITY, error)


METRIC = MetricSpec(
    name=MetricName.COMMUNITY,
    checker=check_community,
    on_error=_on_error,
)
