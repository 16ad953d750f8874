"""Commit quality metric."""

import re

from repo_maintainability.facts import RepositoryFacts
from repo_maintainability.metrics.base import (
    Metric,
    MetricName,
    MetricSpec,
    incomplete_metric,
    make_metric,
)

CONVENTIONAL_COMMIT = re.compile(
    r"^(feat|fix|docs|style|refactor|test|chore|perf|ci|build)(\(.+\))?!?:.+",
    re.IGNORECASE,
)
PLACEHOLDER_PREFIXES = ("merge", "update")
PLACEHOLDER_WORD = re.compile(r"\bwip\b")

MIN_MESSAGE_LENGTH = 10
MIN_DESCRIPTIVE_LENGTH = 20

QUALITY_WEIGHT = 80
REGULARITY_WEIGHT = 20


def is_descriptive_message(message: str) -> bool:
    """
    Whether a commit subject line is a well-described change.

    A subject counts when it follows the conventional commit format, or is
    at least 20 characters long, capitalized, and not a merge/update/WIP
    placeholder. Anything under 10 characters never counts.
    """
    if not message or not message.strip():
        return False

    subject = message.strip().splitlines()[0].strip()
    if len(subject) < MIN_MESSAGE_LENGTH:
        return False

    if CONVENTIONAL_COMMIT.match(subject):
        return True

    lowered = subject.lower()
    return (
        len(subject) >= MIN_DESCRIPTIVE_LENGTH
        and subject[0].isupper()
        and not lowered.startswith(PLACEHOLDER_PREFIXES)
        and not PLACEHOLDER_WORD.search(lowered)
    )


def check_commit_quality(facts: RepositoryFacts) -> Metric:
    """
    Evaluates commit message quality and commit regularity.

    Only commits inside the observation window are considered.

    Scoring:
    - No commits in the window: 0/100
    - Message quality (share of descriptive subjects): up to 80
    - Regularity (distinct active weeks vs. half the weeks in the window): up to 20
    """
    name = MetricName.COMMIT_QUALITY
    commits = [c for c in facts.commits if facts.in_window(c.committed_at)]

    if not commits:
        return make_metric(
            name, 0, "Observe: No commits in the observation window."
        )

    descriptive = sum(1 for c in commits if is_descriptive_message(c.message))
    quality_ratio = descriptive / len(commits)

    active_weeks = {c.committed_at.isocalendar()[:2] for c in commits}
    expected_weeks = max(1.0, facts.observation_window_days / 7 / 2)
    regularity = min(1.0, len(active_weeks) / expected_weeks)

    score = quality_ratio * QUALITY_WEIGHT + regularity * REGULARITY_WEIGHT

    message = (
        f"{descriptive}/{len(commits)} ({quality_ratio:.0%}) commit messages are descriptive; "
        f"commits landed in {len(active_weeks)} distinct week(s)."
    )
    if quality_ratio >= 0.8:
        message = f"Good: {message}"
    else:
        message = f"Observe: {message} Consider conventional commit messages."

    return make_metric(name, score, message)


def _on_error(error: Exception) -> Metric:
    return incomplete_metric(MetricName.COMMIT_QUALITY, error)


METRIC = MetricSpec(
    name=MetricName.COMMIT_QUALITY,
    checker=check_commit_quality,
    on_error=_on_error,
)
