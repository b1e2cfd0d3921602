"""GitHub REST API client for issue reconciliation.

Thin httpx wrapper implementing ``IssueApiPort``: issue lookup, paginated
issue labels and the core rate-limit status. Responses are classified into
rate-limit, abuse-detection and other errors; only the first two are
recoverable.
"""

import logging
from datetime import UTC, datetime
from typing import Any

import httpx

from packages.schemas.github import GitHubLabel, RateLimitStatus

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"

_ABUSE_MARKERS = ("abuse", "secondary rate limit")


class GithubApiError(Exception):
    """Base exception for GitHub API failures (fatal unless a subclass says otherwise)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RecoverableApiError(GithubApiError):
    """Quota-related error that is retried after waiting."""

    def __init__(
        self, message: str, status_code: int | None = None, retry_after: float | None = None
    ) -> None:
        super().__init__(message, status_code)
        self.retry_after = retry_after


class RateLimitError(RecoverableApiError):
    """Primary rate limit exhausted (403 with zero remaining, or 429)."""

    pass


class AbuseDetectedError(RecoverableApiError):
    """Secondary rate limit / abuse detection triggered."""

    pass


def _retry_after(response: httpx.Response) -> float | None:
    header = response.headers.get("Retry-After")
    if header is None:
        return None
    try:
        return float(header)
    except ValueError:
        return None


def _reset_wait(response: httpx.Response) -> float | None:
    header = response.headers.get("X-RateLimit-Reset")
    if header is None:
        return None
    try:
        reset_at = datetime.fromtimestamp(int(header), UTC)
    except ValueError:
        return None
    return max((reset_at - datetime.now(UTC)).total_seconds(), 0.0)


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict):
        return str(payload.get("message", ""))
    return ""


class GithubApiClient:
    """Synchronous GitHub API client.

    Safe to share between worker threads: httpx.Client is thread-safe.
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        page_size: int = 100,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: Personal access token; anonymous access when None.
            base_url: API root URL.
            timeout: Per-request timeout in seconds.
            page_size: Labels requested per page (GitHub caps at 100).
            client: Optional preconfigured httpx.Client with its own base_url;
                ``base_url`` and ``timeout`` are ignored when given.
        """
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "devmirror",
        }
        if token:
            headers["Authorization"] = f"token {token}"

        self.page_size = page_size
        self._owns_client = client is None
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)
        self._client.headers.update(headers)

        logger.info(f"Initialized GithubApiClient (authenticated={bool(token)})")

    def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            self._client.close()

    def _get(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        try:
            response = self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise GithubApiError(f"GET {path} failed: {e}") from e
        self._raise_for_status(path, response)
        return response

    @staticmethod
    def _raise_for_status(path: str, response: httpx.Response) -> None:
        status = response.status_code
        if status < 400:
            return

        message = _error_message(response)
        if status in (403, 429):
            if any(marker in message.lower() for marker in _ABUSE_MARKERS):
                raise AbuseDetectedError(
                    f"Abuse detection triggered on {path}: {message}",
                    status_code=status,
                    retry_after=_retry_after(response),
                )
            if status == 429 or response.headers.get("X-RateLimit-Remaining") == "0":
                raise RateLimitError(
                    f"Rate limit hit on {path}: {message}",
                    status_code=status,
                    retry_after=_retry_after(response) or _reset_wait(response),
                )

        raise GithubApiError(f"GET {path} returned {status}: {message}", status_code=status)

    def get_rate_limit(self) -> RateLimitStatus:
        """Return the core API quota (this endpoint does not consume quota)."""
        data = self._get("/rate_limit").json()
        core = data["resources"]["core"]
        return RateLimitStatus(
            limit=core["limit"],
            remaining=core["remaining"],
            reset_at=datetime.fromtimestamp(core["reset"], UTC),
        )

    def get_issue(self, org: str, repo: str, number: int) -> dict[str, Any]:
        """Return the raw issue payload."""
        data: dict[str, Any] = self._get(f"/repos/{org}/{repo}/issues/{number}").json()
        return data

    def list_labels(
        self, org: str, repo: str, number: int, page: int = 1
    ) -> tuple[list[GitHubLabel], int | None]:
        """Return one page of labels and the next page number (None on the last page)."""
        response = self._get(
            f"/repos/{org}/{repo}/issues/{number}/labels",
            params={"per_page": self.page_size, "page": page},
        )
        labels = [GitHubLabel(id=item["id"], name=item["name"]) for item in response.json()]

        next_link = response.links.get("next")
        next_page: int | None = None
        if next_link and next_link.get("url"):
            raw_page = httpx.URL(next_link["url"]).params.get("page")
            next_page = int(raw_page) if raw_page else None
        return labels, next_page


__all__ = [
    "AbuseDetectedError",
    "GithubApiClient",
    "GithubApiError",
    "RateLimitError",
    "RecoverableApiError",
]
