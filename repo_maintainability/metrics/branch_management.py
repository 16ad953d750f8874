"""Branch management metric."""

import re

from repo_maintainability.facts import RepositoryFacts, non_negative
from repo_maintainability.metrics.base import (
    Metric,
    MetricName,
    MetricSpec,
    incomplete_metric,
    make_metric,
)

PROTECTION_ENABLED_POINTS = 20
REQUIRED_REVIEWS_POINTS = 10
REQUIRED_CHECKS_POINTS = 10
BRANCH_COUNT_WEIGHT = 0.3
NAMING_POINTS = 30

CONVENTIONAL_BRANCH = re.compile(
    r"^(main|master|develop|development|dev|trunk|gh-pages|stable"
    r"|(feature|feat|fix|bugfix|hotfix|release|chore|docs|refactor|test|ci"
    r"|dependabot|renovate)/.+"
    r"|v?\d+(\.\d+)*(\.x)?)$"
)


def branch_count_score(branch_count: int) -> float:
    """Fewer long-lived branches means a tidier repository."""
    if branch_count <= 3:
        return 100.0
    elif branch_count <= 5:
        return 95.0
    elif branch_count <= 10:
        return 85.0
    elif branch_count <= 20:
        return 70.0
    elif branch_count <= 50:
        return 50.0
    else:
        return 30.0


def is_conventional_branch(branch_name: str) -> bool:
    return bool(CONVENTIONAL_BRANCH.match(branch_name))


def check_branch_management(facts: RepositoryFacts) -> Metric:
    """
    Evaluates default-branch protection and branch hygiene.

    Scoring:
    - Protection (up to 40): enabled 20, required reviews 10, required status checks 10
    - Hygiene (up to 60): branch-count bucket x0.3 plus naming conformity x30

    Without protection rules the score cannot exceed 60, however tidy the
    branches are.
    """
    name = MetricName.BRANCH_MANAGEMENT
    protection = facts.branch_protection

    protection_points = 0
    if protection.enabled:
        protection_points += PROTECTION_ENABLED_POINTS
        if protection.required_reviews:
            protection_points += REQUIRED_REVIEWS_POINTS
        if protection.required_status_checks:
            protection_points += REQUIRED_CHECKS_POINTS

    branch_count = max(non_negative(facts.branch_count), len(facts.branch_names))
    count_points = branch_count_score(branch_count) * BRANCH_COUNT_WEIGHT

    if facts.branch_names:
        conforming = sum(1 for b in facts.branch_names if is_conventional_branch(b))
        naming_ratio = conforming / len(facts.branch_names)
    else:
        conforming = 0
        naming_ratio = 1.0
    naming_points = naming_ratio * NAMING_POINTS

    score = protection_points + count_points + naming_points

    if protection.enabled:
        rules = [
            rule
            for rule, active in (
                ("required reviews", protection.required_reviews),
                ("status checks", protection.required_status_checks),
            )
            if active
        ]
        protection_text = (
            f"'{facts.default_branch}' is protected"
            + (f" ({', '.join(rules)})" if rules else "")
        )
    else:
        protection_text = f"Observe: '{facts.default_branch}' has no protection rules"

    message = f"{protection_text}. Total branches: {branch_count}"
    if facts.branch_names:
        message += f", {conforming}/{len(facts.branch_names)} follow naming conventions"
    message += "."

    return make_metric(name, score, message)


def _on_error(error: Exception) -> Metric:
    return incomplete_metric(MetricName.BRANCH_MANAGEMENT, error)


METRIC = MetricSpec(
    name=MetricName.BRANCH_MANAGEMENT,
    checker=check_branch_management,
    on_error=_on_error,
)
