"""
Optional LLM commentary for a finished maintainability report.

The deterministic report is always complete before anything here runs.
Every failure talking to the provider ends in a FALLBACK insight built
from the scores; nothing in this module raises to the caller.
"""

import time
from enum import Enum

import httpx
from rich.console import Console
from rich.markup import escape

from repo_maintainability.config import (
    get_insight_api_url,
    get_insight_model,
    get_insight_timeout,
    get_llm_api_key,
)
from repo_maintainability.errors import (
    InsightAuthenticationError,
    InsightError,
    InsightMalformedResponseError,
    InsightNonTransientError,
    InsightQuotaError,
    InsightTransientError,
)
from repo_maintainability.http_client import _get_http_client
from repo_maintainability.report import InsightResult, InsightStatus, MaintainabilityReport
from repo_maintainability.scoring import Rating

PROJECT_REFERER = "https://github.com/repo-maintainability-index/rmi"
PROJECT_TITLE = "Repository Maintainability Index"

TEMPERATURE = 0.3
MAX_TOKENS = 600
MAX_ERROR_DETAIL = 200

IMPROVEMENT_THRESHOLD = 60.0

_AUTH_STATUSES = {401, 403}
_QUOTA_STATUSES = {402, 429}
_TRANSIENT_STATUSES = {408, 500, 502, 503, 504}


class InsightState(str, Enum):
    """States of a single insight attempt."""

    NOT_REQUESTED = "NOT_REQUESTED"
    REQUESTED = "REQUESTED"
    CALLING = "CALLING"
    RETRYING = "RETRYING"
    REAL = "REAL"
    FALLBACK = "FALLBACK"


# One call plus exactly one retry. The loop below walks this tuple, so a
# third call cannot happen.
ATTEMPT_STATES: tuple[InsightState, ...] = (InsightState.CALLING, InsightState.RETRYING)


class LLMClient:
    """Client for an OpenRouter-compatible chat completions endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
        http_client: httpx.Client | None = None,
    ):
        """
        Initialize the LLM client.

        Args:
            api_key: Provider credential. Defaults to OPENROUTER_API_KEY.
            model: Model identifier. Defaults to OPENROUTER_MODEL or the config.
            api_url: Chat completions URL.
            timeout: Per-request timeout in seconds (default: 10).
            http_client: Client to use instead of the shared pooled one.
        """
        self.api_key = api_key if api_key is not None else get_llm_api_key()
        self.model = model or get_insight_model()
        self.api_url = api_url or get_insight_api_url()
        self.timeout = timeout if timeout is not None else get_insight_timeout()
        self._http_client = http_client

    def __repr__(self) -> str:
        return f"LLMClient(model={self.model!r}, api_url={self.api_url!r})"

    def complete(self, prompt: str) -> str:
        """
        Send one prompt and return the commentary text.

        Raises:
            InsightAuthenticationError: Missing or rejected credential.
            InsightQuotaError: Payment or quota rejection.
            InsightTransientError: Timeout, connection failure or 5xx.
            InsightMalformedResponseError: Response without usable text.
            InsightNonTransientError: Any other rejected request.
        """
        if not self.api_key:
            raise InsightAuthenticationError("OPENROUTER_API_KEY is not set.")

        client = self._http_client or _get_http_client()
        # httpx timeouts bound each connect/read/write step; the deadline bounds
        # the whole call, including a body that trickles in.
        deadline = time.monotonic() + self.timeout
        try:
            with client.stream(
                "POST",
                self.api_url,
                json={
                    "model": self.model,
                    "messages": [{"role": "user", "content": prompt}],
                    "temperature": TEMPERATURE,
                    "max_tokens": MAX_TOKENS,
                },
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "HTTP-Referer": PROJECT_REFERER,
                    "X-Title": PROJECT_TITLE,
                },
                timeout=self.timeout,
            ) as streamed:
                chunks = []
                for chunk in streamed.iter_bytes():
                    if time.monotonic() > deadline:
                        raise InsightTransientError(
                            f"LLM request exceeded its {self.timeout:g}s deadline"
                        )
                    chunks.append(chunk)
            # iter_bytes already undid any content encoding
            response = httpx.Response(
                streamed.status_code, content=b"".join(chunks), request=streamed.request
            )
        except httpx.TimeoutException as e:
            raise InsightTransientError(
                f"LLM request timed out after {self.timeout:g}s"
            ) from e
        except httpx.TransportError as e:
            raise InsightTransientError(f"LLM request failed: {e}") from e
        except httpx.HTTPError as e:
            raise InsightNonTransientError(f"LLM request failed: {e}") from e

        self._raise_for_status(response)
        return self._parse_content(response)

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if status < 400:
            return

        detail = _extract_error_message(response)
        message = f"LLM API request failed: {status} (model: {self.model}) - {detail}"
        if status in _AUTH_STATUSES:
            raise InsightAuthenticationError(message)
        if status in _QUOTA_STATUSES:
            raise InsightQuotaError(message)
        if status in _TRANSIENT_STATUSES:
            raise InsightTransientError(message)
        raise InsightNonTransientError(message)

    def _parse_content(self, response: httpx.Response) -> str:
        try:
            payload = response.json()
            content = payload["choices"][0]["message"]["content"]
        except ValueError as e:
            raise InsightMalformedResponseError("LLM response is not valid JSON.") from e
        except (KeyError, IndexError, TypeError) as e:
            raise InsightMalformedResponseError(
                "LLM response has no choices[0].message.content."
            ) from e

        if not isinstance(content, str) or not content.strip():
            raise InsightMalformedResponseError("LLM response content is empty.")
        return content.strip()


def _extract_error_message(response: httpx.Response) -> str:
    """Pull a readable message out of a provider error body."""
    try:
        error = response.json().get("error", {})
        if isinstance(error, dict) and error.get("message"):
            code = error.get("code")
            return f"[{code}] {error['message']}" if code else str(error["message"])
    except (ValueError, AttributeError):
        pass

    body = response.text.strip()
    if not body:
        return "No error details available"
    if len(body) > MAX_ERROR_DETAIL:
        return body[:MAX_ERROR_DETAIL] + "..."
    return body


def build_insight_prompt(report: MaintainabilityReport) -> str:
    """Prompt carrying only the repository identifier and the score summary."""
    lines = [
        f"Repository: {report.repository}",
        f"Maintainability index: {report.overall_score:.2f}/100 ({report.rating.value})",
        "Breakdown:",
    ]
    for metric in report.metrics:
        lines.append(
            f"- {metric.name.value}: {metric.score:.1f}/100 "
            f"(weight {metric.weight:.0%}) - {metric.message}"
        )
    lines.extend(
        [
            "",
            "You are reviewing the maintainability of this repository. Using only the",
            "scores above, write 3 to 5 sentences of practical commentary: what the",
            "maintainers do well and the most valuable next steps. Plain text, no",
            "markdown, no headings.",
        ]
    )
    return "\n".join(lines)


_RATING_OPENINGS = {
    Rating.EXCELLENT: "Excellent repository maintainability!",
    Rating.GOOD: "Good repository maintainability.",
    Rating.FAIR: "Fair repository maintainability.",
    Rating.POOR: "Repository maintainability needs improvement.",
}


def build_fallback_insight(report: MaintainabilityReport) -> str:
    """Deterministic commentary built from the scores and the rating."""
    parts = [
        f"{_RATING_OPENINGS[report.rating]} "
        f"{report.repository} scores {report.overall_score:.2f}/100."
    ]

    weakest = report.weakest_metric()
    if weakest is not None:
        parts.append(
            f"The weakest dimension is {weakest.name.value} "
            f"({weakest.score:.1f}/100): {weakest.message}"
        )

    improvements = [
        metric.name.value
        for metric in report.metrics
        if metric.score < IMPROVEMENT_THRESHOLD
    ]
    if improvements:
        parts.append(f"Focus on improving: {', '.join(improvements)}.")
    else:
        parts.append("Keep up the good work!")

    return " ".join(parts)


def _fallback(report: MaintainabilityReport, attempts: int, reason: str) -> InsightResult:
    return InsightResult(
        status=InsightStatus.FALLBACK,
        text=build_fallback_insight(report),
        attempts=attempts,
        reason=reason,
    )


class InsightEngine:
    """Runs the single-call, single-retry, always-fallback insight protocol."""

    def __init__(
        self,
        client: LLMClient | None = None,
        console: Console | None = None,
        verbose: bool = False,
    ):
        self.client = client or LLMClient()
        self.console = console or Console(quiet=True)
        self.verbose = verbose

    def generate(self, report: MaintainabilityReport) -> InsightResult:
        """
        Produce commentary for a finished report.

        Returns:
            REAL insight when the provider answered, FALLBACK otherwise.
        """
        if not self.client.api_key:
            self._warn("OPENROUTER_API_KEY not set, using score-based insight")
            return _fallback(report, 0, "authentication: no API key configured")

        prompt = build_insight_prompt(report)
        attempts = 0
        last_error: InsightError | None = None

        for state in ATTEMPT_STATES:
            attempts += 1
            if self.verbose:
                self.console.print(
                    f"[dim]{state.value.title()} {escape(self.client.model)} "
                    f"(attempt {attempts}/{len(ATTEMPT_STATES)})[/dim]"
                )
            try:
                text = self.client.complete(prompt)
            except InsightTransientError as e:
                last_error = e
                continue
            except InsightNonTransientError as e:
                self._warn(f"LLM insight unavailable: {e}")
                return _fallback(report, attempts, _describe(e))
            return InsightResult(InsightStatus.REAL, text, attempts)

        self._warn(f"LLM insight unavailable after {attempts} attempts: {last_error}")
        return _fallback(report, attempts, f"retries exhausted: {last_error}")

    def _warn(self, message: str) -> None:
        self.console.print(f"  [yellow]⚠️  {escape(message)}[/yellow]")


def _describe(error: InsightNonTransientError) -> str:
    if isinstance(error, InsightAuthenticationError):
        kind = "authentication"
    elif isinstance(error, InsightQuotaError):
        kind = "quota"
    elif isinstance(error, InsightMalformedResponseError):
        kind = "malformed response"
    else:
        kind = "rejected"
    return f"{kind}: {error}"


def insight_state(result: InsightResult | None) -> InsightState:
    """Terminal state of an insight step, for display and tests."""
    if result is None:
        return InsightState.NOT_REQUESTED
    if result.status is InsightStatus.REAL:
        return InsightState.REAL
    return InsightState.FALLBACK


__all__ = [
    "ATTEMPT_STATES",
    "InsightEngine",
    "InsightState",
    "LLMClient",
    "build_fallback_insight",
    "build_insight_prompt",
    "insight_state",
]
