"""Rate gate guarding every GitHub API call.

Each ``acquire`` polls the remaining quota afresh; there is no shared counter,
so concurrent callers never act on a stale value. When the quota is at or
below the threshold the caller sleeps until the reset (plus a grace delay) if
that is within the allowed wait, and otherwise the whole run aborts.
"""

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Protocol

from packages.schemas.github import RateLimitStatus

logger = logging.getLogger(__name__)


class RateLimitWaitExceededError(Exception):
    """Waiting for quota would exceed the configured maximum; the run must abort."""

    def __init__(self, message: str, wait_seconds: float) -> None:
        super().__init__(message)
        self.wait_seconds = wait_seconds


class RateLimitSource(Protocol):
    """Anything that can report the current quota."""

    def get_rate_limit(self) -> RateLimitStatus: ...


class RateGate:
    """Blocks callers until enough API quota is available.

    Attributes:
        min_points: Threshold; callers proceed only while more points remain.
        max_wait_seconds: Longest reset wait tolerated before aborting.
        grace_seconds: Extra delay added to every wait.
    """

    def __init__(
        self,
        source: RateLimitSource,
        min_points: int = 1,
        max_wait_seconds: float = 10,
        grace_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.source = source
        self.min_points = min_points
        self.max_wait_seconds = max_wait_seconds
        self.grace_seconds = grace_seconds
        self._sleep = sleep
        self._clock = clock

    def status(self) -> RateLimitStatus:
        """Current quota, fetched fresh."""
        return self.source.get_rate_limit()

    def acquire(self, required_points: int = 1, reason: str = "API call") -> RateLimitStatus:
        """Return once at least ``required_points`` can be spent above the threshold.

        Args:
            required_points: Points the guarded call will consume.
            reason: Short label used in log lines.

        Returns:
            RateLimitStatus: The status that allowed the call.

        Raises:
            RateLimitWaitExceededError: If the reset wait exceeds ``max_wait_seconds``.
        """
        while True:
            status = self.source.get_rate_limit()
            if status.remaining - required_points >= self.min_points:
                return status

            wait = status.wait(self._clock()).total_seconds()
            if wait > self.max_wait_seconds:
                logger.error(
                    f"API limit reached while {reason}, aborting, don't want to wait {wait:.0f}s",
                    extra={"remaining": status.remaining, "wait_seconds": wait},
                )
                raise RateLimitWaitExceededError(
                    f"API limit reached while {reason}: reset in {wait:.0f}s exceeds "
                    f"maximum wait of {self.max_wait_seconds}s",
                    wait_seconds=wait,
                )

            logger.warning(
                f"API limit reached while {reason}, waiting {wait:.0f}s",
                extra={"remaining": status.remaining, "wait_seconds": wait},
            )
            self._sleep(self.grace_seconds + wait)

    def backoff_seconds(
        self, error: BaseException, fallback: float = 0.0, waited: float = 0.0
    ) -> float:
        """Pause before retrying a call that failed with a quota error.

        Uses the error's ``retry_after`` hint, or ``fallback`` when the
        response carried none, plus the grace delay. The next attempt
        re-checks the quota through ``acquire``.

        Args:
            error: The rate-limit or abuse error just caught.
            fallback: Pause to use without a ``retry_after`` hint.
            waited: Seconds already spent backing off for this call.

        Raises:
            RateLimitWaitExceededError: If ``waited`` plus the next pause
                exceeds ``max_wait_seconds``.
        """
        retry_after = getattr(error, "retry_after", None)
        pause = self.grace_seconds + (fallback if retry_after is None else float(retry_after))
        total = waited + pause
        if total > self.max_wait_seconds:
            logger.error(
                f"{error}: giving up after {waited:.0f}s of back-off",
                extra={"waited_seconds": waited, "next_pause_seconds": pause},
            )
            raise RateLimitWaitExceededError(
                f"{error}: backing off {total:.0f}s in total exceeds maximum wait of "
                f"{self.max_wait_seconds}s",
                wait_seconds=total,
            ) from error
        return pause


__all__ = ["RateGate", "RateLimitSource", "RateLimitWaitExceededError"]
