"""Retry helpers for quota-limited external calls.

Wraps tenacity so that only quota-type errors (rate limit, abuse detection)
are retried. The pause before each attempt comes from the error's own hint
when it carries one, and from an exponential curve otherwise. There is no
attempt limit: the back-off callable ends the loop by raising once the total
time spent waiting would pass its budget. Any other exception propagates at
once.
"""

import logging
import time
from collections.abc import Callable

from tenacity import (
    RetryCallState,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_never,
    wait_exponential,
)

logger = logging.getLogger(__name__)

# (error, exponential fallback, seconds already waited) -> next pause
Backoff = Callable[[BaseException, float, float], float]


def _wait_from_error(
    backoff: Backoff, fallback: wait_exponential
) -> Callable[[RetryCallState], float]:
    def wait(retry_state: RetryCallState) -> float:
        outcome = retry_state.outcome
        error = outcome.exception() if outcome is not None else None
        if error is None:
            return 0.0
        return backoff(error, fallback(retry_state), retry_state.idle_for)

    return wait


def quota_retrying(
    retry_on: tuple[type[BaseException], ...],
    backoff: Backoff,
    min_wait: float = 1,
    max_wait: float = 60,
    sleep: Callable[[float], None] = time.sleep,
) -> Retrying:
    """Build a tenacity ``Retrying`` for quota-limited calls.

    Args:
        retry_on: Exception types that are retried; everything else propagates.
        backoff: Called with the caught error, the exponential fallback pause
            and the seconds already spent waiting; returns the next pause.
            Raises to end the retry loop.
        min_wait: First fallback pause in seconds, doubled per attempt.
        max_wait: Ceiling of a single fallback pause.
        sleep: Sleep function (injected in tests).

    Returns:
        Retrying: Iterate it and run the call inside ``with attempt:``.

    Example:
        >>> for attempt in quota_retrying((RateLimitError,), gate.backoff_seconds):
        ...     with attempt:
        ...         client.get_issue("org", "repo", 1)
    """
    return Retrying(
        stop=stop_never,
        wait=_wait_from_error(backoff, wait_exponential(multiplier=min_wait, max=max_wait)),
        retry=retry_if_exception_type(retry_on),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True,
    )


__all__ = ["Backoff", "quota_retrying"]
