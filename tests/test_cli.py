"""
Tests for the command-line interface.
"""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from repo_maintainability.cli import app, parse_repository
from repo_maintainability.errors import FactAcquisitionError
from repo_maintainability.insight import InsightEngine
from repo_maintainability.metrics.base import Metric, MetricName
from repo_maintainability.report import InsightResult, InsightStatus, assemble_report
from repo_maintainability.scoring import DEFAULT_WEIGHTS, Rating

runner = CliRunner()


def _report(insight=None):
    metrics = [
        Metric(name, 80.0, DEFAULT_WEIGHTS[name], f"{name.value} looks fine.", "None")
        for name in MetricName
    ]
    return assemble_report("octo/repo", metrics, 80.0, Rating.GOOD, insight)


@pytest.fixture(autouse=True)
def no_config(monkeypatch):
    """Keep local config files and credentials out of the CLI tests."""
    monkeypatch.setattr("repo_maintainability.cli.get_weight_overrides", lambda: {})
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    monkeypatch.setenv("RMI_OBSERVATION_WINDOW_DAYS", "365")


class TestParseRepository:
    """Test repository argument parsing."""

    @pytest.mark.parametrize(
        "value",
        [
            "octo/repo",
            "https://github.com/octo/repo",
            "https://github.com/octo/repo/",
            "https://github.com/octo/repo.git",
            "github.com/octo/repo",
        ],
    )
    def test_valid(self, value):
        assert parse_repository(value) == ("octo", "repo")

    @pytest.mark.parametrize("value", ["octo", "octo/", "/repo", "a/b/c", ""])
    def test_invalid(self, value):
        with pytest.raises(ValueError, match="Expected format: owner/repo"):
            parse_repository(value)


class TestAnalyzeCommand:
    """Test the analyze command."""

    def test_text_output(self):
        with patch("repo_maintainability.cli.analyze_repository", return_value=_report()) as run:
            result = runner.invoke(app, ["analyze", "octo/repo"])

        assert result.exit_code == 0
        assert "octo/repo" in result.output
        assert "80.00/100 (GOOD)" in result.output
        assert "Branch Management" in result.output
        args = run.call_args.args
        assert args[:2] == ("octo", "repo")
        assert args[3] is None  # no insight engine without --llm

    def test_json_output(self):
        insight = InsightResult(InsightStatus.FALLBACK, "Good repository maintainability.", 0, "authentication: no API key configured")
        with patch(
            "repo_maintainability.cli.analyze_repository", return_value=_report(insight)
        ):
            result = runner.invoke(app, ["analyze", "octo/repo", "--format", "json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["repository"] == "octo/repo"
        assert data["rating"] == "GOOD"
        assert [m["name"] for m in data["metrics"]][0] == "Documentation"
        assert data["insight"]["status"] == "FALLBACK"

    def test_llm_flag_builds_engine(self):
        with patch("repo_maintainability.cli.analyze_repository", return_value=_report()) as run:
            result = runner.invoke(
                app, ["analyze", "octo/repo", "--llm", "--model", "test/model", "--timeout", "3"]
            )

        assert result.exit_code == 0
        engine = run.call_args.args[3]
        assert isinstance(engine, InsightEngine)
        assert engine.client.model == "test/model"
        assert engine.client.timeout == 3.0

    def test_insight_panel(self):
        insight = InsightResult(InsightStatus.REAL, "Strong documentation; grow the community.", 1)
        with patch(
            "repo_maintainability.cli.analyze_repository", return_value=_report(insight)
        ):
            result = runner.invoke(app, ["analyze", "octo/repo", "--llm"])

        assert result.exit_code == 0
        assert "AI Insight" in result.output
        assert "grow the community" in result.output

    def test_bracketed_text_is_shown_literally(self):
        insight = InsightResult(InsightStatus.REAL, "Move docs to [/docs] folder.", 1)
        report = _report(insight)
        branch = report.metrics[5]._replace(message="Default branch [/main] is unprotected.")
        report = report._replace(metrics=report.metrics[:5] + (branch,))
        with patch("repo_maintainability.cli.analyze_repository", return_value=report):
            result = runner.invoke(app, ["analyze", "octo/repo", "--llm"])

        assert result.exit_code == 0
        assert "Move docs to [/docs] folder." in result.output
        assert "[/main]" in result.output

    def test_quiet_suppresses_output(self):
        with patch("repo_maintainability.cli.analyze_repository", return_value=_report()):
            result = runner.invoke(app, ["analyze", "octo/repo", "--quiet"])

        assert result.exit_code == 0
        assert result.output.strip() == ""

    def test_invalid_repository_exits_1(self):
        with patch("repo_maintainability.cli.analyze_repository") as run:
            result = runner.invoke(app, ["analyze", "not-a-repo"])

        assert result.exit_code == 1
        assert "Expected format: owner/repo" in result.output
        run.assert_not_called()

    def test_fact_acquisition_failure_exits_1(self):
        with patch(
            "repo_maintainability.cli.analyze_repository",
            side_effect=FactAcquisitionError("Repository octo/missing not found or is inaccessible."),
        ):
            result = runner.invoke(app, ["analyze", "octo/missing"])

        assert result.exit_code == 1
        assert "not found or is inaccessible" in result.output

    def test_fact_acquisition_failure_reported_in_quiet_mode(self):
        with patch(
            "repo_maintainability.cli.analyze_repository",
            side_effect=FactAcquisitionError("GitHub API rate limit exceeded."),
        ):
            result = runner.invoke(app, ["analyze", "octo/repo", "--quiet"])

        assert result.exit_code == 1
        assert "rate limit exceeded" in result.output

    def test_invalid_weights_exit_1(self, monkeypatch):
        monkeypatch.setattr(
            "repo_maintainability.cli.get_weight_overrides", lambda: {"Popularity": 0.2}
        )
        with patch("repo_maintainability.cli.analyze_repository") as run:
            result = runner.invoke(app, ["analyze", "octo/repo"])

        assert result.exit_code == 1
        assert "unknown metrics" in result.output
        run.assert_not_called()


class TestWeightsCommand:
    """Test the weights command."""

    def test_default_weights(self):
        result = runner.invoke(app, ["weights"])

        assert result.exit_code == 0
        assert "Documentation" in result.output
        assert "0.20" in result.output
        assert "0.15" in result.output

    def test_overridden_weights(self, monkeypatch):
        monkeypatch.setattr(
            "repo_maintainability.cli.get_weight_overrides",
            lambda: {"Documentation": 0.3, "Branch Management": 0.1},
        )
        result = runner.invoke(app, ["weights"])

        assert result.exit_code == 0
        assert "0.30" in result.output
        assert "0.10" in result.output

    def test_invalid_weights(self, monkeypatch):
        monkeypatch.setattr(
            "repo_maintainability.cli.get_weight_overrides", lambda: {"Documentation": 0.9}
        )
        result = runner.invoke(app, ["weights"])

        assert result.exit_code == 1
        assert "sum to 1.0" in result.output
