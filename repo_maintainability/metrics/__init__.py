"""
Metric registry.

Each built-in metric lives in its own module and exposes a ``METRIC``
MetricSpec. The registry is a closed set: one spec per MetricName, returned
in display order.
"""

from importlib import import_module

from repo_maintainability.metrics.base import Metric, MetricName, MetricSpec

__all__ = [
    "Metric",
    "MetricName",
    "MetricSpec",
    "METRIC_ORDER",
    "load_metric_specs",
]

METRIC_ORDER: tuple[MetricName, ...] = tuple(MetricName)

_BUILTIN_MODULES = [
    "repo_maintainability.metrics.documentation",
    "repo_maintainability.metrics.commit_quality",
    "repo_maintainability.metrics.activity",
    "repo_maintainability.metrics.issue_management",
    "repo_maintainability.metrics.community",
    "repo_maintainability.metrics.branch_management",
]


def _load_builtin_metric_specs() -> list[MetricSpec]:
    """Import every built-in metric module and collect its METRIC spec."""
    specs: list[MetricSpec] = []
    for module_path in _BUILTIN_MODULES:
        module = import_module(module_path)
        spec = getattr(module, "METRIC", None)
        if isinstance(spec, MetricSpec):
            specs.append(spec)
    return specs


def load_metric_specs() -> list[MetricSpec]:
    """
    Return the metric specs in display order.

    Raises:
        RuntimeError: If a dimension has no spec or has more than one.
    """
    by_name: dict[MetricName, MetricSpec] = {}
    for spec in _load_builtin_metric_specs():
        if spec.name in by_name:
            raise RuntimeError(f"Metric '{spec.name.value}' is registered twice.")
        by_name[spec.name] = spec

    missing = [name.value for name in METRIC_ORDER if name not in by_name]
    if missing:
        raise RuntimeError(f"No scorer registered for: {', '.join(missing)}.")

    return [by_name[name] for name in METRIC_ORDER]
