"""Documentation metric."""

from repo_maintainability.facts import RepositoryFacts, non_negative
from repo_maintainability.metrics.base import (
    Metric,
    MetricName,
    MetricSpec,
    incomplete_metric,
    make_metric,
)

SUBSTANTIAL_README_BYTES = 1000
BASIC_README_BYTES = 300

README_POINTS_SUBSTANTIAL = 40
README_POINTS_BASIC = 25
README_POINTS_MINIMAL = 15
LICENSE_POINTS = 25
SUPPLEMENTARY_POINTS = 35
SUPPLEMENTARY_SIGNALS_FOR_FULL = 3


def check_documentation(facts: RepositoryFacts) -> Metric:
    """
    Evaluates the presence and substance of repository documentation.

    Evaluates:
    - README existence and size
    - License file
    - Supplementary signals: guide files (CONTRIBUTING, CODE_OF_CONDUCT,
      CHANGELOG, ...), topics, a description

    Scoring:
    - No README: 0/100 (floor, whatever else exists)
    - README: 40 (>= 1000 bytes), 25 (>= 300 bytes), 15 (smaller)
    - License: 25
    - Supplementary: 35 x min(signals, 3) / 3
    """
    name = MetricName.DOCUMENTATION

    if facts.readme_size is None:
        return make_metric(
            name,
            0,
            "Observe: No README found. Add one so users know what the project does.",
        )

    readme_size = non_negative(facts.readme_size)
    if readme_size >= SUBSTANTIAL_README_BYTES:
        readme_points = README_POINTS_SUBSTANTIAL
        readme_label = "substantial README"
    elif readme_size >= BASIC_README_BYTES:
        readme_points = README_POINTS_BASIC
        readme_label = "basic README"
    else:
        readme_points = README_POINTS_MINIMAL
        readme_label = "minimal README"

    license_points = LICENSE_POINTS if facts.has_license else 0

    signals = len(set(facts.guide_files))
    if non_negative(facts.topics_count) > 0:
        signals += 1
    if facts.description and facts.description.strip():
        signals += 1
    supplementary_points = (
        SUPPLEMENTARY_POINTS
        * min(signals, SUPPLEMENTARY_SIGNALS_FOR_FULL)
        / SUPPLEMENTARY_SIGNALS_FOR_FULL
    )

    score = readme_points + license_points + supplementary_points

    found = [readme_label]
    if facts.has_license:
        found.append("license")
    found.extend(sorted(set(facts.guide_files)))
    missing = [] if facts.has_license else ["license"]

    if score >= 100:
        message = f"Excellent: {', '.join(found)}."
    elif missing:
        message = f"Moderate: {', '.join(found)}. Missing: {', '.join(missing)}."
    else:
        message = f"Good: {', '.join(found)}. Consider adding contributor guides."

    return make_metric(name, score, message)


def _on_error(error: Exception) -> Metric:
    return incomplete_metric(MetricName.DOCUMENTATION, error)


METRIC = MetricSpec(
    name=MetricName.DOCUMENTATION,
    checker=check_documentation,
    on_error=_on_error,
)
