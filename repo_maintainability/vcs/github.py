"""
GitHub VCS provider.

Builds a RepositoryFacts snapshot from the GitHub REST v3 API. Totals come
from the search API or from the ``rel="last"`` page of a one-item listing;
samples are the newest 100 records of each kind.
"""

from datetime import datetime, timedelta, timezone
from pathlib import PurePosixPath
from typing import Any

import httpx
from rich.console import Console
from rich.markup import escape

from repo_maintainability.config import get_github_token, get_observation_window_days
from repo_maintainability.errors import FactAcquisitionError
from repo_maintainability.facts import (
    BranchProtection,
    CommitRecord,
    IssueRecord,
    PullRequestRecord,
    RepositoryFacts,
)
from repo_maintainability.http_client import _get_http_client
from repo_maintainability.vcs.base import BaseVCSProvider

GITHUB_API = "https://api.github.com"
REQUEST_TIMEOUT = 30.0
SAMPLE_SIZE = 100

# Community files counted as supplementary documentation (matched on the
# upper-cased file stem, in the root or in .github/)
GUIDE_FILES = ("CONTRIBUTING", "CODE_OF_CONDUCT", "CHANGELOG", "SECURITY")
LICENSE_FILES = ("LICENSE", "LICENCE", "COPYING")


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _format_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _last_page(response: httpx.Response) -> int | None:
    """Page number of the ``rel="last"`` link, if the listing is paginated."""
    last = response.links.get("last", {}).get("url")
    if not last:
        return None
    page = httpx.URL(last).params.get("page")
    return int(page) if page and page.isdigit() else None


class GitHubProvider(BaseVCSProvider):
    """GitHub VCS provider using the REST API."""

    def __init__(
        self,
        token: str | None = None,
        window_days: int | None = None,
        http_client: httpx.Client | None = None,
        api_url: str = GITHUB_API,
        console: Console | None = None,
    ):
        """
        Initialize GitHub provider.

        Args:
            token: GitHub token. Falls back to GITHUB_TOKEN; anonymous access
                works with a lower rate limit.
            window_days: Observation window. Defaults to the configured window.
            http_client: Client to use instead of the shared pooled one.
            api_url: API root, for GitHub Enterprise.
            console: Where notes about partial data are printed.
        """
        self.token = token or get_github_token()
        self.window_days = (
            window_days if window_days is not None else get_observation_window_days()
        )
        self.api_url = api_url.rstrip("/")
        self._http_client = http_client
        self.console = console or Console(quiet=True)

    def get_platform_name(self) -> str:
        """Return 'github' as the platform identifier."""
        return "github"

    def get_repository_url(self, owner: str, repo: str) -> str:
        """Construct GitHub repository URL."""
        return f"https://github.com/{owner}/{repo}"

    def get_repository_facts(self, owner: str, repo: str) -> RepositoryFacts:
        """
        Fetch a fact snapshot for owner/repo.

        Raises:
            FactAcquisitionError: On any HTTP or transport failure, or when a
                mandatory field is missing from a response.
        """
        fetched_at = datetime.now(timezone.utc)
        since = fetched_at - timedelta(days=self.window_days)
        base = f"/repos/{owner}/{repo}"

        repo_json = self._get_json(base)
        if repo_json is None:
            raise FactAcquisitionError(
                f"Repository {owner}/{repo} not found or is inaccessible."
            )

        try:
            default_branch = repo_json["default_branch"]
            has_issues = bool(repo_json["has_issues"])
            root_names = self._list_directory(base, "")
            github_names = self._list_directory(base, ".github")

            readme = self._get_json(f"{base}/readme")
            commits = self._fetch_commits(base, default_branch, since)
            branch_names = tuple(
                branch["name"]
                for branch in self._get_json(f"{base}/branches", {"per_page": SAMPLE_SIZE}) or []
            )

            return RepositoryFacts(
                owner=owner,
                name=repo,
                fetched_at=fetched_at,
                observation_window_days=self.window_days,
                readme_size=int(readme["size"]) if readme is not None else None,
                has_license=repo_json.get("license") is not None
                or any(PurePosixPath(n).stem.upper() in LICENSE_FILES for n in root_names),
                guide_files=self._find_guides(root_names + github_names),
                description=repo_json.get("description") or None,
                topics_count=len(repo_json.get("topics") or []),
                commits=commits,
                total_commits=max(
                    self._count(
                        f"{base}/commits",
                        {"sha": default_branch, "since": _format_timestamp(since)},
                        empty_statuses=(409,),
                    ),
                    len(commits),
                ),
                has_issues_enabled=has_issues,
                open_issues=self._search_count(owner, repo, "is:issue is:open"),
                closed_issues=self._search_count(owner, repo, "is:issue is:closed"),
                issues=self._fetch_issues(base) if has_issues else (),
                open_pull_requests=self._search_count(owner, repo, "is:pr is:open"),
                merged_pull_requests=self._search_count(owner, repo, "is:pr is:merged"),
                closed_unmerged_pull_requests=self._search_count(
                    owner, repo, "is:pr is:closed is:unmerged"
                ),
                pull_requests=self._fetch_pull_requests(base),
                contributor_count=self._count(
                    f"{base}/contributors", {"anon": "true"}, empty_statuses=(204,)
                ),
                stars=int(repo_json["stargazers_count"]),
                forks=int(repo_json["forks_count"]),
                default_branch=default_branch,
                branch_names=branch_names,
                branch_count=self._count(f"{base}/branches", {}),
                branch_protection=self._fetch_protection(base, default_branch),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise FactAcquisitionError(
                f"Unexpected GitHub API payload for {owner}/{repo}: {e!r}"
            ) from e

    # HTTP helpers

    def _request(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        client = self._http_client or _get_http_client()
        try:
            return client.get(
                f"{self.api_url}{path}",
                params=params,
                headers=headers,
                timeout=REQUEST_TIMEOUT,
            )
        except httpx.HTTPError as e:
            raise FactAcquisitionError(f"GitHub API request to {path} failed: {e}") from e

    def _check(self, response: httpx.Response, path: str) -> None:
        if response.is_success:
            return
        if response.status_code == 403 and response.headers.get("x-ratelimit-remaining") == "0":
            raise FactAcquisitionError(
                "GitHub API rate limit exceeded. Set GITHUB_TOKEN or pass --token."
            )
        try:
            detail = response.json().get("message", "")
        except ValueError:
            detail = response.text[:200]
        raise FactAcquisitionError(
            f"GitHub API request to {path} failed: {response.status_code} - {detail}"
        )

    def _get_json(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        missing_statuses: tuple[int, ...] = (404,),
    ) -> Any:
        """GET a JSON document; None when the status means "absent"."""
        response = self._request(path, params)
        if response.status_code in missing_statuses:
            return None
        self._check(response, path)
        try:
            return response.json()
        except ValueError as e:
            raise FactAcquisitionError(f"GitHub API returned invalid JSON for {path}.") from e

    def _count(
        self,
        path: str,
        params: dict[str, Any],
        empty_statuses: tuple[int, ...] = (),
    ) -> int:
        """Total items of a listing, read from one-item pagination."""
        response = self._request(path, {**params, "per_page": 1})
        if response.status_code in empty_statuses:
            return 0
        self._check(response, path)
        last = _last_page(response)
        if last is not None:
            return last
        try:
            return len(response.json())
        except ValueError as e:
            raise FactAcquisitionError(f"GitHub API returned invalid JSON for {path}.") from e

    def _search_count(self, owner: str, repo: str, qualifiers: str) -> int:
        data = self._get_json(
            "/search/issues",
            {"q": f"repo:{owner}/{repo} {qualifiers}", "per_page": 1},
            missing_statuses=(),
        )
        return int(data["total_count"])

    # Fact collection

    def _list_directory(self, base: str, directory: str) -> list[str]:
        entries = self._get_json(f"{base}/contents/{directory}".rstrip("/"))
        if not isinstance(entries, list):
            return []
        return [entry["name"] for entry in entries if entry.get("type") == "file"]

    @staticmethod
    def _find_guides(file_names: list[str]) -> tuple[str, ...]:
        found = {
            PurePosixPath(name).stem.upper()
            for name in file_names
            if PurePosixPath(name).stem.upper() in GUIDE_FILES
        }
        return tuple(guide for guide in GUIDE_FILES if guide in found)

    def _fetch_commits(
        self, base: str, branch: str, since: datetime
    ) -> tuple[CommitRecord, ...]:
        # 409: the repository has no commits at all
        data = self._get_json(
            f"{base}/commits",
            {"sha": branch, "since": _format_timestamp(since), "per_page": SAMPLE_SIZE},
            missing_statuses=(409,),
        )
        records = []
        for item in data or []:
            commit = item["commit"]
            author = commit.get("author") or {}
            committed_at = _parse_timestamp(author.get("date")) or _parse_timestamp(
                (commit.get("committer") or {}).get("date")
            )
            if committed_at is None:
                raise ValueError(f"commit {item['sha']} has no date")
            records.append(
                CommitRecord(
                    sha=item["sha"],
                    message=commit["message"],
                    author=author.get("name") or "",
                    committed_at=committed_at,
                )
            )
        return tuple(records)

    def _fetch_issues(self, base: str) -> tuple[IssueRecord, ...]:
        data = self._get_json(
            f"{base}/issues",
            {"state": "all", "sort": "created", "direction": "desc", "per_page": SAMPLE_SIZE},
        )
        return tuple(
            IssueRecord(
                created_at=_parse_timestamp(item["created_at"]),
                closed_at=_parse_timestamp(item.get("closed_at")),
            )
            for item in data or []
            # The issues endpoint also lists pull requests
            if "pull_request" not in item
        )

    def _fetch_pull_requests(self, base: str) -> tuple[PullRequestRecord, ...]:
        data = self._get_json(
            f"{base}/pulls",
            {"state": "all", "sort": "created", "direction": "desc", "per_page": SAMPLE_SIZE},
        )
        return tuple(
            PullRequestRecord(
                created_at=_parse_timestamp(item["created_at"]),
                merged_at=_parse_timestamp(item.get("merged_at")),
                closed_at=_parse_timestamp(item.get("closed_at")),
                author=(item.get("user") or {}).get("login", ""),
            )
            for item in data or []
        )

    def _fetch_protection(self, base: str, branch: str) -> BranchProtection:
        path = f"{base}/branches/{branch}/protection"
        response = self._request(path)
        if response.status_code == 404:
            return BranchProtection()
        if (
            response.status_code == 403
            and response.headers.get("x-ratelimit-remaining") != "0"
        ):
            # Reading protection rules needs admin rights on the repository
            self.console.print(
                f"  [dim]Note: branch protection of '{escape(branch)}' is not readable "
                "with this token; treating it as unprotected.[/dim]"
            )
            return BranchProtection()
        self._check(response, path)

        rules = response.json()
        return BranchProtection(
            enabled=True,
            required_reviews=rules.get("required_pull_request_reviews") is not None,
            required_status_checks=rules.get("required_status_checks") is not None,
            enforce_admins=bool((rules.get("enforce_admins") or {}).get("enabled")),
        )
