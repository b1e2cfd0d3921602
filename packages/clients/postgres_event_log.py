"""PostgreSQL implementation of EventLogPort.

Reads issue candidates and logged snapshots from the GHA event tables and
writes synthetic reconciliation events. A reconciliation write clones the
source snapshot row, event row and payload row under a new event id and adds
one label row per live label, all inside one transaction.
"""

from collections.abc import Sequence
from datetime import UTC, datetime

from psycopg2.extras import RealDictCursor

from packages.common.logging import get_logger
from packages.common.postgres_pool import PostgresPool
from packages.common.tracing import build_trace_chain
from packages.core.domain.reconciliation import (
    SYNTHETIC_ACTOR_LOGIN,
    SYNTHETIC_EVENT_TYPE,
    EventLogError,
    synthetic_event_id,
)
from packages.schemas.event_log import LoggedSnapshot, ReconciliationDecision
from packages.schemas.github import IssueRef, LiveIssue

logger = get_logger(__name__)

RECENT_OPEN_ISSUES_SQL = """
    SELECT DISTINCT i.dup_repo_name, i.number, i.id, i.is_pull_request
    FROM gha_issues i
    WHERE i.updated_at >= now() - %(period)s::interval
      AND (
        SELECT s.state FROM gha_issues s
        WHERE s.id = i.id
        ORDER BY s.updated_at DESC, s.event_id DESC
        LIMIT 1
      ) = 'open'
"""

ISSUES_BY_ID_SQL = """
    SELECT DISTINCT dup_repo_name, number, id, is_pull_request
    FROM gha_issues
    WHERE id = ANY(%(ids)s)
"""

LATEST_SNAPSHOT_SQL = """
    SELECT milestone_id, event_id FROM gha_issues
    WHERE id = %(issue_id)s
    ORDER BY updated_at DESC, event_id DESC
    LIMIT 1
"""

SNAPSHOT_LABELS_SQL = "SELECT label_id FROM gha_issues_labels WHERE event_id = %(event_id)s"

MAX_REAL_EVENT_ID_SQL = "SELECT max(id) FROM gha_events WHERE type <> %(synthetic_type)s"

# Milestone is copied from the source row unless keep_milestone is false,
# in which case the parameter (possibly null) is written.
INSERT_ISSUE_SQL = """
    INSERT INTO gha_issues (
        id, event_id, assignee_id, body, closed_at, comments, created_at,
        locked, milestone_id, number, state, title, updated_at, user_id,
        dup_actor_id, dup_actor_login, dup_repo_id, dup_repo_name, dup_type, dup_created_at,
        dup_user_login, dupn_assignee_login, is_pull_request
    )
    SELECT id, %(event_id)s, assignee_id, body, %(closed_at)s, %(comments)s, created_at,
        %(locked)s,
        CASE WHEN %(keep_milestone)s THEN milestone_id ELSE %(milestone_id)s::bigint END,
        number, %(state)s, title, %(now)s, 0,
        0, %(actor)s, dup_repo_id, dup_repo_name, %(type)s, %(now)s,
        %(actor)s, dupn_assignee_login, is_pull_request
    FROM gha_issues
    WHERE id = %(issue_id)s AND event_id = %(source_event_id)s
"""

INSERT_EVENT_SQL = """
    INSERT INTO gha_events (
        id, type, actor_id, repo_id, public, created_at,
        dup_actor_login, dup_repo_name, org_id, forkee_id
    )
    SELECT %(event_id)s, %(type)s, 0, repo_id, public, %(now)s,
        %(actor)s, dup_repo_name, org_id, forkee_id
    FROM gha_events
    WHERE id = %(source_event_id)s
"""

INSERT_PAYLOAD_SQL = """
    INSERT INTO gha_payloads (
        event_id, push_id, size, ref, head, befor, action,
        issue_id, pull_request_id, comment_id, ref_type, master_branch, commit,
        description, number, forkee_id, release_id, member_id,
        dup_actor_id, dup_actor_login, dup_repo_id, dup_repo_name, dup_type, dup_created_at
    )
    SELECT %(event_id)s, null, null, null, null, null, 'artificial',
        issue_id, pull_request_id, null, null, null, null,
        null, number, null, null, null,
        0, %(actor)s, dup_repo_id, dup_repo_name, %(type)s, %(now)s
    FROM gha_payloads
    WHERE issue_id = %(issue_id)s AND event_id = %(source_event_id)s
"""

INSERT_LABEL_SQL = """
    INSERT INTO gha_issues_labels (
        issue_id, event_id, label_id,
        dup_actor_id, dup_actor_login, dup_repo_id, dup_repo_name,
        dup_type, dup_created_at, dup_issue_number, dup_label_name
    )
    SELECT %(issue_id)s, %(event_id)s, %(label_id)s,
        0, %(actor)s, repo_id, dup_repo_name,
        %(type)s, %(now)s, %(number)s, %(label_name)s
    FROM gha_events
    WHERE id = %(source_event_id)s
"""


def _issue_refs(rows: list[dict[str, object]]) -> list[IssueRef]:
    return [
        IssueRef(
            issue_id=row["id"],
            repo=row["dup_repo_name"],
            number=row["number"],
            is_pull_request=bool(row["is_pull_request"]),
        )
        for row in rows
    ]


class PostgresEventLog:
    """Event log over a shared PostgresPool.

    Every call checks out its own connection, so one instance can be used by
    all phase-2 workers at once.

    Attributes:
        pool: Connection pool.
        dry_run: When True, writes are logged but not executed.
    """

    def __init__(self, pool: PostgresPool, dry_run: bool = False) -> None:
        self.pool = pool
        self.dry_run = dry_run
        logger.info(f"Initialized PostgresEventLog (dry_run={dry_run})")

    def _fetch_all(self, query: str, params: dict[str, object]) -> list[dict[str, object]]:
        with self.pool.get_connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(query, params)
                return list(cur.fetchall())

    def recent_open_issues(self, period: str) -> list[IssueRef]:
        """Open issues/PRs updated within ``period``.

        Args:
            period: PostgreSQL interval text, e.g. ``"2 hours"``.
        """
        refs = _issue_refs(self._fetch_all(RECENT_OPEN_ISSUES_SQL, {"period": period}))
        logger.info(f"Got {len(refs)} open issue rows for period {period}")
        return refs

    def issues_by_id(self, issue_ids: Sequence[int]) -> list[IssueRef]:
        """Issue references for the given ids (unknown ids are absent)."""
        if not issue_ids:
            return []
        return _issue_refs(self._fetch_all(ISSUES_BY_ID_SQL, {"ids": list(issue_ids)}))

    def latest_snapshot(self, issue_id: int) -> LoggedSnapshot | None:
        """Latest snapshot row of an issue plus its label ids; None if never logged."""
        with self.pool.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(LATEST_SNAPSHOT_SQL, {"issue_id": issue_id})
                row = cur.fetchone()
                if row is None:
                    return None
                milestone_id, event_id = row
                cur.execute(SNAPSHOT_LABELS_SQL, {"event_id": event_id})
                label_ids = frozenset(label_id for (label_id,) in cur.fetchall())

        return LoggedSnapshot(
            issue_id=issue_id,
            event_id=event_id,
            milestone_id=milestone_id,
            label_ids=label_ids,
        )

    def max_real_event_id(self) -> int | None:
        """Largest event id whose type is not the synthetic one."""
        rows = self._fetch_all(MAX_REAL_EVENT_ID_SQL, {"synthetic_type": SYNTHETIC_EVENT_TYPE})
        value = rows[0]["max"] if rows else None
        return int(value) if value is not None else None

    def write_reconciliation(
        self,
        live: LiveIssue,
        snapshot: LoggedSnapshot,
        decision: ReconciliationDecision,
    ) -> int:
        """Write one synthetic event for a non-empty decision.

        All four inserts run in one transaction: either the snapshot row, the
        event row, the payload row and every label row are committed, or none.

        Args:
            live: Live issue state (state fields and full label set).
            snapshot: Logged snapshot the new rows are cloned from.
            decision: What changed; decides the milestone column.

        Returns:
            int: The synthetic event id.

        Raises:
            EventLogError: If the source snapshot or event row does not exist.
            PostgresPoolError: On any database error (transaction rolled back).
        """
        event_id = synthetic_event_id(snapshot.event_id)
        trace = build_trace_chain(
            issue_id=snapshot.issue_id,
            source_event_id=snapshot.event_id,
            synthetic_event_id=event_id,
        )

        if self.dry_run:
            logger.info(
                f"Skipping write for issue_id: {snapshot.issue_id}, event_id: {snapshot.event_id}, "
                f"milestone: {decision.new_milestone}, labels({decision.labels_changed}): "
                f"{sorted(live.labels)}",
                extra=trace,
            )
            return event_id

        now = datetime.now(UTC)
        common = {
            "event_id": event_id,
            "source_event_id": snapshot.event_id,
            "issue_id": snapshot.issue_id,
            "actor": SYNTHETIC_ACTOR_LOGIN,
            "type": SYNTHETIC_EVENT_TYPE,
            "now": now,
        }
        keep_milestone = decision.new_milestone is None
        milestone_id = decision.new_milestone if isinstance(decision.new_milestone, int) else None

        with self.pool.transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    INSERT_ISSUE_SQL,
                    {
                        **common,
                        "closed_at": live.closed_at,
                        "comments": live.comments,
                        "locked": live.locked,
                        "state": live.state,
                        "keep_milestone": keep_milestone,
                        "milestone_id": milestone_id,
                    },
                )
                if cur.rowcount == 0:
                    raise EventLogError(
                        f"No gha_issues row for issue {snapshot.issue_id} "
                        f"at event {snapshot.event_id}"
                    )

                cur.execute(INSERT_EVENT_SQL, common)
                if cur.rowcount == 0:
                    raise EventLogError(f"No gha_events row for event {snapshot.event_id}")

                cur.execute(INSERT_PAYLOAD_SQL, common)

                for label_id, label_name in sorted(live.labels.items()):
                    cur.execute(
                        INSERT_LABEL_SQL,
                        {
                            **common,
                            "label_id": label_id,
                            "label_name": label_name,
                            "number": live.ref.number,
                        },
                    )

        logger.info(
            f"Wrote synthetic event {event_id} for issue {snapshot.issue_id}",
            extra={**trace, "labels": len(live.labels)},
        )
        return event_id


__all__ = ["EventLogError", "PostgresEventLog"]
