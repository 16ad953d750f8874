"""
Core analysis pipeline.

facts -> six scorers -> weights -> overall score -> rating -> report,
with the optional LLM insight attached after the report is complete.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Mapping

from rich.console import Console
from rich.markup import escape

from repo_maintainability.errors import DataIntegrityError
from repo_maintainability.facts import RepositoryFacts, find_integrity_issues
from repo_maintainability.insight import InsightEngine
from repo_maintainability.metrics import Metric, MetricName, MetricSpec, load_metric_specs
from repo_maintainability.report import MaintainabilityReport, assemble_report
from repo_maintainability.scoring import (
    DEFAULT_WEIGHTS,
    apply_weights,
    classify_rating,
    compute_overall_score,
)
from repo_maintainability.vcs import BaseVCSProvider, GitHubProvider

# Errors a checker may raise on degraded facts; anything else is a bug.
_CHECK_ERRORS = (DataIntegrityError, ArithmeticError, AttributeError, TypeError, ValueError)


def _run_check(spec: MetricSpec, facts: RepositoryFacts, console: Console) -> Metric:
    try:
        return spec.checker(facts)
    except _CHECK_ERRORS as e:
        console.print(
            f"  [yellow]⚠️  {spec.name.value} check incomplete: {escape(str(e))}[/yellow]"
        )
        return spec.on_error(e)


def score_facts(
    facts: RepositoryFacts,
    weights: Mapping[MetricName, float] = DEFAULT_WEIGHTS,
    console: Console | None = None,
    verbose: bool = False,
) -> list[Metric]:
    """
    Run every registered scorer against one snapshot and attach weights.

    Scorers only read the immutable snapshot, so they run on a thread pool.
    Results come back in display order.
    """
    console = console or Console(quiet=True)
    specs = load_metric_specs()
    with ThreadPoolExecutor(max_workers=len(specs)) as executor:
        metrics = list(executor.map(lambda spec: _run_check(spec, facts, console), specs))
    if verbose:
        for metric in metrics:
            console.print(f"  [dim]{metric.name.value}: {metric.score:.1f}/100[/dim]")
    return apply_weights(metrics, weights)


def analyze_facts(
    facts: RepositoryFacts,
    weights: Mapping[MetricName, float] | None = None,
    insight_engine: InsightEngine | None = None,
    console: Console | None = None,
    verbose: bool = False,
) -> MaintainabilityReport:
    """
    Turn a fact snapshot into a maintainability report.

    Args:
        facts: Snapshot produced by a VCS provider (or built by hand).
        weights: Validated weight set. Defaults to DEFAULT_WEIGHTS.
        insight_engine: When given, LLM commentary is requested after the
            deterministic report is complete.
        console: Where warnings and progress are printed.
        verbose: Print each dimension score once all scorers finish.

    Returns:
        The assembled report. Never raises for insight failures.
    """
    console = console or Console(quiet=True)
    weights = weights or DEFAULT_WEIGHTS

    for issue in find_integrity_issues(facts):
        console.print(f"  [yellow]⚠️  Degraded input: {escape(str(issue))}[/yellow]")

    metrics = score_facts(facts, weights, console, verbose=verbose)
    overall_score = compute_overall_score(metrics)
    rating = classify_rating(overall_score)
    report = assemble_report(facts.full_name, metrics, overall_score, rating)

    if insight_engine is None:
        return report

    insight = insight_engine.generate(report)
    return report._replace(insight=insight)


def analyze_repository(
    owner: str,
    name: str,
    provider: BaseVCSProvider | None = None,
    insight_engine: InsightEngine | None = None,
    weights: Mapping[MetricName, float] | None = None,
    console: Console | None = None,
    verbose: bool = False,
) -> MaintainabilityReport:
    """
    Fetch facts for a hosted repository and analyze them.

    Args:
        owner: Repository owner (user or organization).
        name: Repository name.
        provider: VCS provider. Defaults to the GitHub provider.
        insight_engine: Optional LLM insight engine.
        weights: Validated weight set.
        console: Where warnings and progress are printed.

    Returns:
        MaintainabilityReport for owner/name.

    Raises:
        FactAcquisitionError: If the hosting API cannot produce a snapshot.
    """
    console = console or Console(quiet=True)
    provider = provider or GitHubProvider(console=console)

    console.print(f"Analyzing [bold cyan]{escape(owner)}/{escape(name)}[/bold cyan]...")
    facts = provider.get_repository_facts(owner, name)
    return analyze_facts(facts, weights, insight_engine, console, verbose=verbose)
