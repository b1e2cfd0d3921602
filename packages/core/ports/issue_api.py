"""IssueApiPort - Port interface for the remote issue tracker.

Core and ingest code depend on this protocol; ``packages.clients.github_api``
implements it over HTTP.
"""

from __future__ import annotations

from typing import Protocol

from packages.schemas.github import GitHubLabel, RateLimitStatus


class IssueApiPort(Protocol):
    """Remote issue API surface used by reconciliation.

    Implementations raise ``RateLimitError`` / ``AbuseDetectedError`` for
    quota and abuse responses and ``GithubApiError`` for anything else.
    """

    def get_rate_limit(self) -> RateLimitStatus:
        """Return the current core API quota."""
        ...

    def get_issue(self, org: str, repo: str, number: int) -> dict[str, object]:
        """Return the raw issue payload (milestone, state, closed_at, comments, locked)."""
        ...

    def list_labels(
        self, org: str, repo: str, number: int, page: int = 1
    ) -> tuple[list[GitHubLabel], int | None]:
        """Return one page of issue labels and the next page number, if any."""
        ...


__all__ = ["IssueApiPort"]
