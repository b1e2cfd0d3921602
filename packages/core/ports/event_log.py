"""EventLogPort - Port interface for the relational event log."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from packages.schemas.event_log import LoggedSnapshot, ReconciliationDecision
from packages.schemas.github import IssueRef, LiveIssue


class EventLogPort(Protocol):
    """Reads logged issue state and writes synthetic reconciliation events."""

    def recent_open_issues(self, period: str) -> list[IssueRef]:
        """Open issues/PRs with logged activity within ``period`` (Postgres interval)."""
        ...

    def issues_by_id(self, issue_ids: Sequence[int]) -> list[IssueRef]:
        """Issue references for explicitly selected ids."""
        ...

    def latest_snapshot(self, issue_id: int) -> LoggedSnapshot | None:
        """Most recent logged snapshot by (updated_at, event_id), with its label ids."""
        ...

    def max_real_event_id(self) -> int | None:
        """Largest event id not written by reconciliation."""
        ...

    def write_reconciliation(
        self,
        live: LiveIssue,
        snapshot: LoggedSnapshot,
        decision: ReconciliationDecision,
    ) -> int:
        """Atomically write one synthetic event; returns its event id."""
        ...


__all__ = ["EventLogPort"]
