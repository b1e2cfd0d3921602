"""Bounded task pool for per-item concurrent work.

Runs one unit of work per item on a thread pool while never holding more than
``max_in_flight`` units at once: when the cap is reached the launcher waits for
the first completion before admitting the next item, and once every item is
admitted it drains the rest. Results travel back to the launching thread,
which is the only thread that touches the collected values.

Progress (count/total, elapsed and an optional custom status) is logged at a
fixed interval rather than on every completion.
"""

from __future__ import annotations

import contextvars
import logging
import time
from collections.abc import Callable, Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class ErrorPolicy(str, Enum):
    """What the pool does when a unit raises."""

    ABORT = "abort"
    COLLECT = "collect"


@dataclass(slots=True, frozen=True)
class TaskFailure:
    """A unit that raised, with the item it was running for."""

    item: Any
    error: BaseException


@dataclass(slots=True)
class TaskPoolResult(Generic[T, R]):
    """Outcome of one pool run."""

    results: list[tuple[T, R]] = field(default_factory=list)
    failures: list[TaskFailure] = field(default_factory=list)
    total: int = 0
    elapsed_seconds: float = 0.0

    @property
    def completed(self) -> int:
        """Units that finished, successfully or not."""
        return len(self.results) + len(self.failures)


class TaskPoolError(Exception):
    """One or more units failed under the collect policy.

    Attributes:
        failures: Every failed item with its exception.
        result: The full run result, including successful values.
    """

    def __init__(self, name: str, result: TaskPoolResult[Any, Any]) -> None:
        self.failures = list(result.failures)
        self.result = result
        first = self.failures[0] if self.failures else None
        detail = f"; first: {first.item!r}: {first.error}" if first else ""
        super().__init__(f"{name}: {len(self.failures)}/{result.total} units failed{detail}")


class BoundedTaskPool:
    """Structured bounded-concurrency worker group.

    Attributes:
        max_in_flight: Upper bound on concurrently running units.
        name: Label used in progress lines and thread names.
        progress_interval: Seconds between progress lines.
        status: Optional callable producing extra text for progress lines; it is
            only called when a line is actually due.
        error_policy: ``ABORT`` stops admitting items at the first failure and
            re-raises it once in-flight units have drained; ``COLLECT`` runs
            every item and raises ``TaskPoolError`` at the end.

    Example:
        >>> pool = BoundedTaskPool(16, name="fetch")
        >>> outcome = pool.run(issue_refs, reader.fetch)
        >>> [live for _, live in outcome.results]
    """

    def __init__(
        self,
        max_in_flight: int,
        name: str = "tasks",
        progress_interval: float = 10.0,
        status: Callable[[], str] | None = None,
        error_policy: ErrorPolicy = ErrorPolicy.ABORT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_in_flight < 1:
            raise ValueError(f"max_in_flight must be >= 1, got {max_in_flight}")
        self.max_in_flight = max_in_flight
        self.name = name
        self.progress_interval = progress_interval
        self.status = status
        self.error_policy = ErrorPolicy(error_policy)
        self._clock = clock

    def run(self, items: Iterable[T], fn: Callable[[T], R]) -> TaskPoolResult[T, R]:
        """Run ``fn`` once per item with bounded concurrency.

        Each unit runs inside a copy of the caller's context, so context
        variables such as the correlation id are visible in worker threads.

        Args:
            items: Work items; consumed eagerly to know the total.
            fn: Unit of work applied to each item.

        Returns:
            TaskPoolResult: ``(item, value)`` pairs in completion order.

        Raises:
            BaseException: Under ``ABORT``, the first unit's exception.
            TaskPoolError: Under ``COLLECT``, if any unit failed.
        """
        work = list(items)
        outcome: TaskPoolResult[T, R] = TaskPoolResult(total=len(work))
        started = self._clock()
        last_report = started
        first_error: BaseException | None = None
        in_flight: dict[Future[R], T] = {}

        def drain(done: set[Future[R]]) -> None:
            nonlocal first_error
            for future in done:
                item = in_flight.pop(future)
                error = future.exception()
                if error is None:
                    outcome.results.append((item, future.result()))
                    continue
                outcome.failures.append(TaskFailure(item=item, error=error))
                if self.error_policy is ErrorPolicy.ABORT:
                    if first_error is None:
                        first_error = error
                        logger.error(
                            f"{self.name}: unit for {item!r} failed, stopping admission",
                            exc_info=error,
                        )
                else:
                    logger.error(f"{self.name}: unit for {item!r} failed", exc_info=error)

        def wait_for_completion() -> None:
            nonlocal last_report
            timeout = max(self.progress_interval - (self._clock() - last_report), 0.0)
            done, _ = wait(in_flight, timeout=timeout, return_when=FIRST_COMPLETED)
            drain(done)
            now = self._clock()
            if now - last_report >= self.progress_interval:
                self._report(outcome, now - started)
                last_report = now

        with ThreadPoolExecutor(
            max_workers=self.max_in_flight, thread_name_prefix=self.name
        ) as executor:
            for item in work:
                while len(in_flight) >= self.max_in_flight:
                    wait_for_completion()
                if first_error is not None:
                    break
                context = contextvars.copy_context()
                in_flight[executor.submit(context.run, fn, item)] = item

            while in_flight:
                wait_for_completion()

        outcome.elapsed_seconds = self._clock() - started
        logger.info(
            f"{self.name}: {outcome.completed}/{outcome.total} done in "
            f"{outcome.elapsed_seconds:.1f}s, {len(outcome.failures)} failed"
        )

        if first_error is not None:
            raise first_error
        if outcome.failures:
            raise TaskPoolError(self.name, outcome)
        return outcome

    def _report(self, outcome: TaskPoolResult[Any, Any], elapsed: float) -> None:
        line = f"{self.name}: {outcome.completed}/{outcome.total}, elapsed {elapsed:.0f}s"
        if self.status is not None:
            try:
                line = f"{line}, {self.status()}"
            except Exception as e:
                logger.warning(f"{self.name}: progress status unavailable: {e}")
        logger.info(line)


__all__ = [
    "BoundedTaskPool",
    "ErrorPolicy",
    "TaskFailure",
    "TaskPoolError",
    "TaskPoolResult",
]
