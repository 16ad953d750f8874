"""
Tests for the GitHub VCS provider.
"""

import io
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from rich.console import Console

from repo_maintainability.errors import FactAcquisitionError
from repo_maintainability.facts import BranchProtection
from repo_maintainability.vcs import GitHubProvider

API = "https://api.github.com"
REPO = "/repos/octo/repo"


def _iso(days_ago: float) -> str:
    moment = datetime.now(timezone.utc) - timedelta(days=days_ago)
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


def _paginated(body, last_page: int | None) -> httpx.Response:
    headers = {}
    if last_page is not None:
        headers["Link"] = (
            f'<{API}/repositories/1/x?per_page=1&page=2>; rel="next", '
            f'<{API}/repositories/1/x?per_page=1&page={last_page}>; rel="last"'
        )
    return httpx.Response(200, json=body, headers=headers)


SEARCH_COUNTS = {
    "is:issue is:open": 12,
    "is:issue is:closed": 88,
    "is:pr is:open": 3,
    "is:pr is:merged": 140,
    "is:pr is:closed is:unmerged": 10,
}


class FakeGitHub:
    """Serves a small, consistent repository through MockTransport."""

    def __init__(self, **overrides):
        self.overrides = overrides
        self.requests: list[httpx.Request] = []
        self.repo = {
            "default_branch": "main",
            "has_issues": True,
            "description": "Example repository",
            "topics": ["python", "cli"],
            "stargazers_count": 420,
            "forks_count": 37,
            "license": {"spdx_id": "MIT"},
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        params = request.url.params

        if path in self.overrides:
            override = self.overrides[path]
            if isinstance(override, Exception):
                raise override
            return override

        if path == "/search/issues":
            qualifiers = params["q"].removeprefix("repo:octo/repo ")
            return httpx.Response(200, json={"total_count": SEARCH_COUNTS[qualifiers]})
        if path == REPO:
            return httpx.Response(200, json=self.repo)
        if path == f"{REPO}/readme":
            return httpx.Response(200, json={"name": "README.md", "size": 2048})
        if path == f"{REPO}/contents":
            return httpx.Response(
                200,
                json=[
                    {"name": "README.md", "type": "file"},
                    {"name": "CONTRIBUTING.md", "type": "file"},
                    {"name": "CHANGELOG.rst", "type": "file"},
                    {"name": "docs", "type": "dir"},
                ],
            )
        if path == f"{REPO}/contents/.github":
            return httpx.Response(
                200,
                json=[
                    {"name": "CODE_OF_CONDUCT.md", "type": "file"},
                    {"name": "workflows", "type": "dir"},
                ],
            )
        if path == f"{REPO}/commits":
            if params["per_page"] == "1":
                return _paginated([{}], last_page=57)
            return httpx.Response(
                200,
                json=[
                    {
                        "sha": "abc123",
                        "commit": {
                            "message": "feat: add parser\n\nDetails.",
                            "author": {"name": "Ada", "date": _iso(2)},
                        },
                    },
                    {
                        "sha": "def456",
                        "commit": {
                            "message": "Fix crash on empty input",
                            "author": {"name": "Linus", "date": _iso(9)},
                        },
                    },
                ],
            )
        if path == f"{REPO}/issues":
            return httpx.Response(
                200,
                json=[
                    {"created_at": _iso(10), "closed_at": _iso(8)},
                    {"created_at": _iso(300), "closed_at": None},
                    {"created_at": _iso(4), "closed_at": None, "pull_request": {}},
                ],
            )
        if path == f"{REPO}/pulls":
            return httpx.Response(
                200,
                json=[
                    {
                        "created_at": _iso(6),
                        "merged_at": _iso(5),
                        "closed_at": _iso(5),
                        "user": {"login": "ada"},
                    },
                    {"created_at": _iso(3), "merged_at": None, "closed_at": None, "user": None},
                ],
            )
        if path == f"{REPO}/contributors":
            return _paginated([{}], last_page=23)
        if path == f"{REPO}/branches":
            if params["per_page"] == "1":
                return _paginated([{}], last_page=4)
            return httpx.Response(
                200,
                json=[
                    {"name": "main"},
                    {"name": "develop"},
                    {"name": "feature/login"},
                    {"name": "old-experiment"},
                ],
            )
        if path == f"{REPO}/branches/main/protection":
            return httpx.Response(
                200,
                json={
                    "required_pull_request_reviews": {"required_approving_review_count": 1},
                    "required_status_checks": {"strict": True, "contexts": ["ci"]},
                    "enforce_admins": {"enabled": False},
                },
            )
        return httpx.Response(404, json={"message": "Not Found"})


def _provider(server: FakeGitHub, token: str | None = None, console=None) -> GitHubProvider:
    return GitHubProvider(
        token=token,
        window_days=365,
        http_client=httpx.Client(transport=httpx.MockTransport(server)),
        console=console,
    )


@pytest.fixture(autouse=True)
def no_github_token(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)


class TestGitHubProvider:
    """Test fact collection from the REST API."""

    def test_platform_and_url(self):
        provider = _provider(FakeGitHub())
        assert provider.get_platform_name() == "github"
        assert provider.get_repository_url("octo", "repo") == "https://github.com/octo/repo"

    def test_full_snapshot(self):
        facts = _provider(FakeGitHub()).get_repository_facts("octo", "repo")

        assert facts.full_name == "octo/repo"
        assert facts.observation_window_days == 365
        assert facts.readme_size == 2048
        assert facts.has_license is True
        assert facts.guide_files == ("CONTRIBUTING", "CODE_OF_CONDUCT", "CHANGELOG")
        assert facts.description == "Example repository"
        assert facts.topics_count == 2

        assert [c.sha for c in facts.commits] == ["abc123", "def456"]
        assert facts.commits[0].message.startswith("feat: add parser")
        assert facts.commits[0].author == "Ada"
        assert facts.commits[0].committed_at.tzinfo is not None
        assert facts.total_commits == 57

        assert facts.open_issues == 12
        assert facts.closed_issues == 88
        assert len(facts.issues) == 2  # pull request filtered out
        assert facts.issues[1].closed_at is None

        assert facts.open_pull_requests == 3
        assert facts.merged_pull_requests == 140
        assert facts.closed_unmerged_pull_requests == 10
        assert facts.pull_requests[0].author == "ada"
        assert facts.pull_requests[1].author == ""

        assert facts.contributor_count == 23
        assert facts.stars == 420
        assert facts.forks == 37

        assert facts.default_branch == "main"
        assert facts.branch_names == ("main", "develop", "feature/login", "old-experiment")
        assert facts.branch_count == 4
        assert facts.branch_protection == BranchProtection(
            enabled=True, required_reviews=True, required_status_checks=True, enforce_admins=False
        )

    def test_commit_window_is_requested(self):
        server = FakeGitHub()
        GitHubProvider(
            window_days=30,
            http_client=httpx.Client(transport=httpx.MockTransport(server)),
        ).get_repository_facts("octo", "repo")

        commit_request = next(
            r for r in server.requests if r.url.path == f"{REPO}/commits"
        )
        since = datetime.fromisoformat(commit_request.url.params["since"])
        expected = datetime.now(timezone.utc) - timedelta(days=30)
        assert abs((since - expected).total_seconds()) < 60
        assert commit_request.url.params["sha"] == "main"

    def test_token_is_sent(self):
        server = FakeGitHub()
        _provider(server, token="ghp_secret").get_repository_facts("octo", "repo")
        assert all(r.headers["Authorization"] == "Bearer ghp_secret" for r in server.requests)

    def test_anonymous_access(self):
        server = FakeGitHub()
        _provider(server).get_repository_facts("octo", "repo")
        assert all("Authorization" not in r.headers for r in server.requests)

    def test_missing_readme(self):
        server = FakeGitHub(**{f"{REPO}/readme": httpx.Response(404, json={"message": "Not Found"})})
        facts = _provider(server).get_repository_facts("octo", "repo")
        assert facts.readme_size is None

    def test_license_detected_from_files(self):
        server = FakeGitHub(
            **{
                f"{REPO}/contents": httpx.Response(
                    200, json=[{"name": "COPYING", "type": "file"}]
                )
            }
        )
        server.repo["license"] = None
        facts = _provider(server).get_repository_facts("octo", "repo")
        assert facts.has_license is True
        assert facts.guide_files == ("CODE_OF_CONDUCT",)

    def test_empty_repository(self):
        """409 on commits and 204 on contributors mean "nothing yet"."""
        server = FakeGitHub(
            **{
                f"{REPO}/commits": httpx.Response(409, json={"message": "Git Repository is empty."}),
                f"{REPO}/contributors": httpx.Response(204),
            }
        )
        facts = _provider(server).get_repository_facts("octo", "repo")
        assert facts.commits == ()
        assert facts.total_commits == 0
        assert facts.contributor_count == 0

    def test_issues_disabled(self):
        server = FakeGitHub()
        server.repo["has_issues"] = False
        facts = _provider(server).get_repository_facts("octo", "repo")

        assert facts.has_issues_enabled is False
        assert facts.issues == ()
        assert not any(r.url.path == f"{REPO}/issues" for r in server.requests)

    def test_unprotected_branch(self):
        server = FakeGitHub(
            **{
                f"{REPO}/branches/main/protection": httpx.Response(
                    404, json={"message": "Branch not protected"}
                )
            }
        )
        facts = _provider(server).get_repository_facts("octo", "repo")
        assert facts.branch_protection == BranchProtection()

    def test_unreadable_protection_is_noted(self):
        output = io.StringIO()
        server = FakeGitHub(
            **{
                f"{REPO}/branches/main/protection": httpx.Response(
                    403, json={"message": "Resource not accessible"}
                )
            }
        )
        facts = _provider(server, console=Console(file=output, width=200)).get_repository_facts(
            "octo", "repo"
        )
        assert facts.branch_protection == BranchProtection()
        assert "not readable" in output.getvalue()

    def test_protection_note_shows_branch_name_literally(self):
        output = io.StringIO()
        server = FakeGitHub(
            **{
                f"{REPO}/branches/[bold]release/protection": httpx.Response(
                    403, json={"message": "Resource not accessible"}
                )
            }
        )
        provider = _provider(server, console=Console(file=output, width=200))

        assert provider._fetch_protection(REPO, "[bold]release") == BranchProtection()
        assert "'[bold]release'" in output.getvalue()


class TestGitHubProviderFailures:
    """Any failure ends the run with FactAcquisitionError."""

    def test_repository_not_found(self):
        server = FakeGitHub(**{REPO: httpx.Response(404, json={"message": "Not Found"})})
        with pytest.raises(FactAcquisitionError, match="octo/repo not found"):
            _provider(server).get_repository_facts("octo", "repo")

    def test_server_error(self):
        server = FakeGitHub(
            **{"/search/issues": httpx.Response(502, json={"message": "Bad Gateway"})}
        )
        with pytest.raises(FactAcquisitionError, match="502 - Bad Gateway"):
            _provider(server).get_repository_facts("octo", "repo")

    def test_rate_limited(self):
        server = FakeGitHub(
            **{
                REPO: httpx.Response(
                    403,
                    json={"message": "API rate limit exceeded"},
                    headers={"x-ratelimit-remaining": "0"},
                )
            }
        )
        with pytest.raises(FactAcquisitionError, match="rate limit exceeded"):
            _provider(server).get_repository_facts("octo", "repo")

    def test_transport_error(self):
        server = FakeGitHub(**{f"{REPO}/readme": httpx.ConnectError("connection refused")})
        with pytest.raises(FactAcquisitionError, match="connection refused"):
            _provider(server).get_repository_facts("octo", "repo")

    def test_invalid_json(self):
        server = FakeGitHub(**{f"{REPO}/pulls": httpx.Response(200, text="<html>")})
        with pytest.raises(FactAcquisitionError, match="invalid JSON"):
            _provider(server).get_repository_facts("octo", "repo")

    def test_missing_mandatory_field(self):
        server = FakeGitHub()
        del server.repo["stargazers_count"]
        with pytest.raises(FactAcquisitionError, match="stargazers_count"):
            _provider(server).get_repository_facts("octo", "repo")


class TestProviderConstruction:
    """Test provider defaults."""

    def test_explicit_arguments(self):
        provider = GitHubProvider(token="ghp_x", window_days=90)
        assert provider.token == "ghp_x"
        assert provider.window_days == 90

    def test_token_and_window_from_environment(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_env")
        monkeypatch.setenv("RMI_OBSERVATION_WINDOW_DAYS", "30")

        provider = GitHubProvider()
        assert provider.token == "ghp_env"
        assert provider.window_days == 30

    def test_enterprise_api_url(self):
        provider = GitHubProvider(window_days=365, api_url="https://github.example.com/api/v3/")
        assert provider.api_url == "https://github.example.com/api/v3"
