"""Tests for RateGate.

Validates that acquire proceeds above the threshold, sleeps at least the reset
wait below it, and aborts without sleeping when the wait is too long.
"""

from datetime import UTC, datetime

import pytest

from packages.clients.github_api import AbuseDetectedError
from packages.ingest.rate_gate import RateGate, RateLimitWaitExceededError
from tests.utils.mocks import quota

NOW = datetime(2024, 5, 17, 12, 0, tzinfo=UTC)


def _gate(mocker, statuses, max_wait: float = 10, grace: float = 1.0):
    source = mocker.MagicMock()
    source.get_rate_limit.side_effect = statuses
    sleep = mocker.MagicMock()
    gate = RateGate(
        source,
        min_points=1,
        max_wait_seconds=max_wait,
        grace_seconds=grace,
        sleep=sleep,
        clock=lambda: NOW,
    )
    return gate, source, sleep


@pytest.mark.unit
def test_acquire_returns_immediately_with_quota(mocker) -> None:
    gate, source, sleep = _gate(mocker, [quota(100, now=NOW)])

    status = gate.acquire()

    assert status.remaining == 100
    sleep.assert_not_called()
    source.get_rate_limit.assert_called_once()


@pytest.mark.unit
def test_acquire_sleeps_at_least_reset_wait_then_rechecks(mocker) -> None:
    gate, source, sleep = _gate(mocker, [quota(1, reset_in=5, now=NOW), quota(5000, now=NOW)])

    gate.acquire()

    sleep.assert_called_once()
    assert sleep.call_args.args[0] >= 5
    assert sleep.call_args.args[0] == pytest.approx(6.0)
    assert source.get_rate_limit.call_count == 2


@pytest.mark.unit
def test_acquire_aborts_when_wait_exceeds_maximum(mocker) -> None:
    gate, _, sleep = _gate(mocker, [quota(0, reset_in=3600, now=NOW)])

    with pytest.raises(RateLimitWaitExceededError) as exc_info:
        gate.acquire(reason="getting issue data")

    assert exc_info.value.wait_seconds == pytest.approx(3600)
    sleep.assert_not_called()


@pytest.mark.unit
def test_required_points_counted_against_threshold(mocker) -> None:
    gate, _, sleep = _gate(mocker, [quota(3, reset_in=2, now=NOW), quota(50, now=NOW)])

    gate.acquire(required_points=3)

    sleep.assert_called_once()


@pytest.mark.unit
def test_backoff_uses_retry_after_plus_grace(mocker) -> None:
    gate, _, _ = _gate(mocker, [])

    error = AbuseDetectedError("abuse", status_code=403, retry_after=4)

    assert gate.backoff_seconds(error) == pytest.approx(5.0)
    assert gate.backoff_seconds(RuntimeError("no hint")) == pytest.approx(1.0)


@pytest.mark.unit
def test_backoff_aborts_when_retry_after_too_long(mocker) -> None:
    gate, _, _ = _gate(mocker, [], max_wait=10)

    with pytest.raises(RateLimitWaitExceededError):
        gate.backoff_seconds(AbuseDetectedError("abuse", status_code=403, retry_after=60))


@pytest.mark.unit
def test_backoff_uses_fallback_without_retry_after(mocker) -> None:
    gate, _, _ = _gate(mocker, [], max_wait=60)

    error = AbuseDetectedError("abuse", status_code=403)

    assert gate.backoff_seconds(error, fallback=4.0, waited=10.0) == pytest.approx(5.0)


@pytest.mark.unit
def test_backoff_aborts_when_total_wait_exceeds_max(mocker) -> None:
    gate, _, _ = _gate(mocker, [], max_wait=10)
    error = AbuseDetectedError("abuse", status_code=403)

    assert gate.backoff_seconds(error, fallback=4.0, waited=5.0) == pytest.approx(5.0)
    with pytest.raises(RateLimitWaitExceededError) as exc_info:
        gate.backoff_seconds(error, fallback=8.0, waited=10.0)

    assert exc_info.value.wait_seconds == pytest.approx(19.0)
