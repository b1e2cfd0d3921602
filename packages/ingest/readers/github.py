"""GitHub issue reader: live issue state with its complete label set.

For each issue the reader fetches the issue itself, then walks the labels
endpoint page by page until no next page is returned. Every request passes
the rate gate first; rate-limit and abuse responses are retried through
tenacity, anything else propagates and aborts the run.
"""

import logging
import time
from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar

from packages.clients.github_api import RecoverableApiError
from packages.common.resilience import quota_retrying
from packages.core.ports.issue_api import IssueApiPort
from packages.ingest.rate_gate import RateGate
from packages.schemas.github import IssueRef, LiveIssue

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _parse_github_timestamp(timestamp_str: str | None) -> datetime | None:
    """Parse GitHub API timestamp string to datetime.

    GitHub timestamps are in ISO 8601 format with 'Z' suffix.

    Args:
        timestamp_str: Timestamp string from GitHub API (e.g., "2024-01-01T00:00:00Z")

    Returns:
        datetime object or None if timestamp_str is None
    """
    if not timestamp_str:
        return None
    return datetime.fromisoformat(timestamp_str.replace("Z", "+00:00"))


class GithubReaderError(Exception):
    """Base exception for GithubIssueReader errors."""

    pass


class GithubIssueReader:
    """Fetches live issue state through the rate gate.

    Attributes:
        api: Remote issue API.
        gate: Rate gate consulted before every request.
        min_backoff: First back-off for quota errors without ``Retry-After``;
            doubled on each further attempt.

    Quota errors are retried until the gate's maximum wait is used up in
    back-off, then ``RateLimitWaitExceededError`` aborts the run.
    """

    def __init__(
        self,
        api: IssueApiPort,
        gate: RateGate,
        min_backoff: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.api = api
        self.gate = gate
        self.min_backoff = min_backoff
        self._sleep = sleep

    def _call(self, fn: Callable[[], T], reason: str) -> T:
        retrying = quota_retrying(
            (RecoverableApiError,),
            self.gate.backoff_seconds,
            min_wait=self.min_backoff,
            max_wait=self.gate.max_wait_seconds,
            sleep=self._sleep,
        )
        for attempt in retrying:
            with attempt:
                self.gate.acquire(reason=reason)
                return fn()
        raise GithubReaderError(f"No result while {reason}")

    def fetch(self, ref: IssueRef) -> LiveIssue:
        """Fetch the live state and full label set of one issue.

        Args:
            ref: Issue reference from the event log.

        Returns:
            LiveIssue: Live milestone, state fields and label id → name map.

        Raises:
            ValueError: If the repository name is not 'org/repo'.
            GithubApiError: On any non-recoverable API error.
            RateLimitWaitExceededError: If quota recovery would take too long.
        """
        org, repo = ref.owner_and_name()

        issue: dict[str, Any] = self._call(
            lambda: self.api.get_issue(org, repo, ref.number), "getting issue data"
        )
        milestone = issue.get("milestone") or {}

        labels: dict[int, str] = {}
        page: int | None = 1
        while page is not None:
            current = page
            page_labels, page = self._call(
                lambda: self.api.list_labels(org, repo, ref.number, current),
                "getting issue labels",
            )
            for label in page_labels:
                labels[label.id] = label.name

        live = LiveIssue(
            ref=ref,
            milestone_id=milestone.get("id"),
            state=issue.get("state"),
            closed_at=_parse_github_timestamp(issue.get("closed_at")),
            comments=issue.get("comments"),
            locked=issue.get("locked"),
            labels=labels,
        )
        logger.debug(
            f"GitHub issue {ref.issue_id} ({ref.repo}#{ref.number}): "
            f"milestone={live.milestone_id}, labels={sorted(labels)}"
        )
        return live


__all__ = ["GithubIssueReader", "GithubReaderError"]
