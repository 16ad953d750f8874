"""
Command-line interface for Repository Maintainability Index.
"""

from enum import Enum

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from repo_maintainability.config import get_weight_overrides, set_verify_ssl
from repo_maintainability.core import analyze_repository
from repo_maintainability.errors import FactAcquisitionError
from repo_maintainability.http_client import close_http_client
from repo_maintainability.insight import InsightEngine, LLMClient
from repo_maintainability.report import InsightStatus, MaintainabilityReport, report_to_dict
from repo_maintainability.scoring import Rating, resolve_weights
from repo_maintainability.vcs import GitHubProvider

# --- Typer App ---
app = typer.Typer(help="Score the maintainability of a GitHub repository.")
console = Console()
err_console = Console(stderr=True)

RATING_STYLES = {
    Rating.EXCELLENT: "green",
    Rating.GOOD: "green",
    Rating.FAIR: "yellow",
    Rating.POOR: "red",
}


class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"


# --- Helper Functions ---


def parse_repository(value: str) -> tuple[str, str]:
    """
    Parse 'owner/repo' or a github.com URL into (owner, repo).

    Raises:
        ValueError: If the value does not name exactly one repository.
    """
    cleaned = value.strip().rstrip("/")
    for prefix in ("https://github.com/", "http://github.com/", "github.com/"):
        if cleaned.startswith(prefix):
            cleaned = cleaned[len(prefix) :]
            break
    cleaned = cleaned.removesuffix(".git")

    parts = cleaned.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError(
            f"Invalid repository '{value}'. Expected format: owner/repo"
        )
    return parts[0], parts[1]


def _score_style(score: float) -> str:
    if score >= 80:
        return "green"
    if score >= 60:
        return "yellow"
    return "red"


def display_report(report: MaintainabilityReport, out: Console, verbose: bool = False) -> None:
    """Display a report as a rich table followed by the insight, if any."""
    rating_style = RATING_STYLES[report.rating]
    out.print(f"\n📦 [bold cyan]{escape(report.repository)}[/bold cyan]")
    out.print(
        f"   Maintainability Index: [{rating_style}]{report.overall_score:.2f}/100 "
        f"({report.rating.value})[/{rating_style}]"
    )

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Score", justify="center")
    table.add_column("Weight", justify="center", style="magenta")
    if verbose:
        table.add_column("Weighted", justify="center", style="magenta")
    table.add_column("Observation", justify="left")

    for metric in report.metrics:
        style = _score_style(metric.score)
        row = [
            metric.name.value,
            f"[{style}]{metric.score:.1f}[/{style}]",
            f"{metric.weight:.0%}",
        ]
        if verbose:
            row.append(f"{metric.weighted_score:.2f}")
        row.append(Text(metric.message))
        table.add_row(*row)

    out.print(table)

    if report.insight is not None:
        insight = report.insight
        if insight.status is InsightStatus.REAL:
            title = "🤖 AI Insight"
        else:
            title = "📝 Insight (score-based)"
        out.print(Panel(Text(insight.text), title=title, expand=False))
        if verbose and insight.reason:
            out.print(f"[dim]Fallback reason: {escape(insight.reason)}[/dim]")


# --- Commands ---


@app.command()
def analyze(
    repository: str = typer.Argument(
        ...,
        help="Repository to analyze, as owner/repo or a github.com URL.",
    ),
    token: str | None = typer.Option(
        None,
        "--token",
        "-t",
        help="GitHub API token (default: GITHUB_TOKEN env var). Optional, raises rate limits.",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.TEXT,
        "--format",
        "-f",
        help="Output format: text or json.",
    ),
    llm: bool = typer.Option(
        False,
        "--llm",
        "-l",
        help="Add LLM commentary (requires OPENROUTER_API_KEY).",
    ),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="LLM model (default: OPENROUTER_MODEL env var or openai/gpt-oss-20b:free).",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        help="LLM request timeout in seconds (default: 10).",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress all output except errors. The exit code still reports the outcome.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show weighted contributions and insight attempts.",
    ),
    insecure: bool = typer.Option(
        False,
        "--insecure",
        help="Disable SSL certificate verification for HTTPS requests.",
    ),
):
    """Analyze the maintainability of a GitHub repository."""
    set_verify_ssl(not insecure)
    out = Console(quiet=quiet)
    progress = Console(stderr=True, quiet=quiet)

    try:
        owner, name = parse_repository(repository)
        weights = resolve_weights(get_weight_overrides())
        provider = GitHubProvider(token=token, console=progress)
        engine = None
        if llm:
            engine = InsightEngine(
                LLMClient(model=model, timeout=timeout), console=progress, verbose=verbose
            )
    except ValueError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    try:
        report = analyze_repository(
            owner, name, provider, engine, weights, progress, verbose=verbose
        )
    except FactAcquisitionError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None
    finally:
        close_http_client()

    if output_format is OutputFormat.JSON:
        out.print_json(data=report_to_dict(report))
    else:
        display_report(report, out, verbose=verbose)


@app.command()
def weights():
    """Display the metric weights in effect (defaults plus configured overrides)."""
    try:
        resolved = resolve_weights(get_weight_overrides())
    except ValueError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    table = Table(title="Metric Weights", show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Weight", justify="right")
    for metric_name, weight in resolved.items():
        table.add_row(metric_name.value, f"{weight:.2f}")
    console.print(table)


if __name__ == "__main__":
    app()
