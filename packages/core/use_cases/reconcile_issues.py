"""ReconcileIssuesUseCase - bring the event log in line with live GitHub state.

Pipeline:
1. Select candidate issues (recently updated open issues, or an explicit id list)
2. Phase 1: fetch live state of every candidate with a small concurrency cap
3. Phase 2: diff each live issue against its logged snapshot and write a
   synthetic event where they drifted, with the full concurrency capacity

Both phases run on BoundedTaskPool; fetched state is passed from phase 1 to
phase 2 as pool results, never through shared mutable state.
"""

import logging
from collections.abc import Callable, Sequence
from typing import Protocol, TypeVar

from packages.common.task_pool import (
    BoundedTaskPool,
    ErrorPolicy,
    TaskFailure,
    TaskPoolError,
    TaskPoolResult,
)
from packages.core.domain.reconciliation import (
    canonical_label_key,
    diff_issue_state,
    validate_real_event_id_range,
)
from packages.core.ports.event_log import EventLogPort
from packages.schemas.github import IssueRef, LiveIssue, RateLimitStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class IssueReader(Protocol):
    """Fetches live issue state (implemented by GithubIssueReader)."""

    def fetch(self, ref: IssueRef) -> LiveIssue: ...


class QuotaSource(Protocol):
    """Reports the current API quota (implemented by RateGate)."""

    def status(self) -> RateLimitStatus: ...


class ReconcileIssuesUseCase:
    """Use case for reconciling logged issue state with the live API.

    Attributes:
        reader: Live issue reader; every call goes through the rate gate.
        event_log: Event log adapter for reads and synthetic writes.
        quota: Quota source used for start/end reports and progress lines.
        fetch_concurrency: Phase-1 cap (GitHub abuse-detection ceiling).
        write_concurrency: Phase-2 cap (measured capacity).
        progress_interval: Seconds between progress lines.
        error_policy: Task pool error policy for both phases.
    """

    def __init__(
        self,
        reader: IssueReader,
        event_log: EventLogPort,
        quota: QuotaSource,
        fetch_concurrency: int = 16,
        write_concurrency: int = 1,
        progress_interval: float = 10.0,
        error_policy: ErrorPolicy = ErrorPolicy.ABORT,
    ) -> None:
        self.reader = reader
        self.event_log = event_log
        self.quota = quota
        self.fetch_concurrency = fetch_concurrency
        self.write_concurrency = write_concurrency
        self.progress_interval = progress_interval
        self.error_policy = ErrorPolicy(error_policy)

        logger.info(
            "Initialized ReconcileIssuesUseCase",
            extra={
                "fetch_concurrency": fetch_concurrency,
                "write_concurrency": write_concurrency,
                "error_policy": self.error_policy.value,
            },
        )

    def execute(
        self,
        recent_range: str = "2 hours",
        only_issues: Sequence[int] = (),
    ) -> dict[str, int | float]:
        """Run one reconciliation pass.

        Args:
            recent_range: PostgreSQL interval selecting recently updated open issues.
            only_issues: When non-empty, process exactly these issue ids instead.

        Returns:
            dict: Summary with keys ``issues``, ``checked``, ``updated``,
                ``failed``, ``api_points`` and ``resets_in`` (seconds).

        Raises:
            EventLogError: If real event ids reach the synthetic offset.
            TaskPoolError: Under the collect policy, if any issue failed.
            Exception: Under the abort policy, the first failure unchanged.
        """
        start = self.quota.status()
        logger.info(
            f"Running (on {self.write_concurrency} threads): {start.remaining} API points "
            f"available, resets in {start.wait().total_seconds():.0f}s"
        )

        validate_real_event_id_range(self.event_log.max_real_event_id())

        candidates = self._select_issues(recent_range, only_issues)
        failures: list[TaskFailure] = []

        logger.info(f"Processing {len(candidates)} issues - GitHub API part")
        fetched = self._run_phase(
            BoundedTaskPool(
                self.fetch_concurrency,
                name="github-api",
                progress_interval=self.progress_interval,
                status=self._quota_line,
                error_policy=self.error_policy,
            ),
            list(candidates.values()),
            self.reader.fetch,
            failures,
        )

        logger.info(f"Processing {len(fetched.results)} issues - event log part")
        written = self._run_phase(
            BoundedTaskPool(
                self.write_concurrency,
                name="event-log",
                progress_interval=self.progress_interval,
                error_policy=self.error_policy,
            ),
            [live for _, live in fetched.results],
            self._reconcile,
            failures,
        )

        end = self.quota.status()
        summary: dict[str, int | float] = {
            "issues": len(candidates),
            "checked": written.completed,
            "updated": sum(1 for _, updated in written.results if updated),
            "failed": len(failures),
            "api_points": end.remaining,
            "resets_in": end.wait().total_seconds(),
        }
        logger.info(
            f"Processed {summary['checked']} issues/PRs ({summary['updated']} updated, "
            f"{summary['failed']} failed): {end.remaining} API points remain, "
            f"resets in {summary['resets_in']:.0f}s",
            extra=summary,
        )

        if failures:
            raise TaskPoolError(
                "reconcile",
                TaskPoolResult(failures=failures, total=len(candidates)),
            )
        return summary

    def _select_issues(
        self, recent_range: str, only_issues: Sequence[int]
    ) -> dict[int, IssueRef]:
        recent = self._unique(self.event_log.recent_open_issues(recent_range))
        logger.info(f"Got {len(recent)} open issues for period {recent_range}")
        if not only_issues:
            return recent

        logger.info(
            f"Processing only selected {len(only_issues)} {list(only_issues)} issues for debugging"
        )
        selected = self._unique(self.event_log.issues_by_id(only_issues))
        for issue_id, ref in selected.items():
            would = "would also" if issue_id in recent else "would not"
            logger.info(
                f"Issue {issue_id} ({ref.repo}#{ref.number}) {would} be processed "
                "by the default workflow"
            )
        logger.info(f"Processing {len(selected)}/{len(only_issues)} user provided issues")
        return selected

    @staticmethod
    def _unique(refs: list[IssueRef]) -> dict[int, IssueRef]:
        unique: dict[int, IssueRef] = {}
        for ref in refs:
            if ref.issue_id in unique:
                logger.debug(
                    f"Already have issue config for id={ref.issue_id}: "
                    f"{unique[ref.issue_id]}, skipped new config: {ref}"
                )
                continue
            unique[ref.issue_id] = ref
        return unique

    @staticmethod
    def _run_phase(
        pool: BoundedTaskPool,
        items: list[T],
        fn: Callable[[T], R],
        failures: list[TaskFailure],
    ) -> TaskPoolResult[T, R]:
        try:
            return pool.run(items, fn)
        except TaskPoolError as e:
            failures.extend(e.failures)
            return e.result

    def _quota_line(self) -> str:
        status = self.quota.status()
        return f"API points: {status.remaining}, resets in: {status.wait().total_seconds():.0f}s"

    def _reconcile(self, live: LiveIssue) -> bool:
        ref = live.ref
        snapshot = self.event_log.latest_snapshot(ref.issue_id)
        if snapshot is None:
            logger.warning(f"Issue {ref.issue_id} ({ref.repo}#{ref.number}) has no logged snapshot")
            return False

        decision = diff_issue_state(live, snapshot)
        if decision.new_milestone is not None:
            logger.debug(
                f"Updating issue {ref.issue_id} milestone to {decision.new_milestone}, "
                f"it was {snapshot.milestone_id} (event_id {snapshot.event_id})"
            )
        if decision.labels_changed:
            logger.debug(
                f"Updating issue {ref.issue_id} labels to '{canonical_label_key(live.labels)}', "
                f"they were: '{canonical_label_key(snapshot.label_ids)}' "
                f"(event_id {snapshot.event_id})"
            )
        if decision.is_empty:
            return False

        self.event_log.write_reconciliation(live, snapshot, decision)
        return True


__all__ = ["IssueReader", "QuotaSource", "ReconcileIssuesUseCase"]
