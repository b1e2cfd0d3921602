"""Shared pytest fixtures for devmirror test suite.

Provides common fixtures for test configuration and test data factories used
across all test modules.
"""

import os
from datetime import UTC, datetime

import pytest

from packages.common.config import DevMirrorConfig, get_config
from packages.schemas.event_log import LoggedSnapshot
from packages.schemas.github import IssueRef, LiveIssue, RateLimitStatus

# ========== Test Environment Setup ==========


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables before any tests run.

    Keeps get_config() independent of any developer .env values that would
    change behaviour (skip switches, thread counts).
    """
    os.environ["POSTGRES_PASSWORD"] = "test"
    os.environ["INFLUX_PASSWORD"] = "test"
    os.environ["SKIP_GHAPI"] = "false"
    os.environ["SKIP_PDB"] = "false"
    os.environ["SKIP_TIMESERIES"] = "false"
    os.environ["ONLY_ISSUES"] = ""
    os.environ["ERROR_POLICY"] = "abort"
    os.environ["LOG_LEVEL"] = "INFO"
    get_config.cache_clear()

    yield


@pytest.fixture(autouse=True)
def clear_config_cache():
    """Drop the cached config so tests that set env vars see them."""
    get_config.cache_clear()
    yield
    get_config.cache_clear()


# ========== Configuration Fixtures ==========


@pytest.fixture
def test_config() -> DevMirrorConfig:
    """Provide test configuration with test service endpoints.

    Returns:
        DevMirrorConfig: Configuration instance for testing.
    """
    return DevMirrorConfig(
        postgres_host="test-postgres",
        postgres_password="test",
        github_api_url="http://test-github",
        github_token="test-token",
        influx_host="test-influx",
        ncpus=4,
    )


# ========== Data Fixtures ==========


@pytest.fixture
def issue_ref() -> IssueRef:
    """Issue reference as read from the event log."""
    return IssueRef(issue_id=1001, repo="kubernetes/kubernetes", number=42)


@pytest.fixture
def live_issue(issue_ref: IssueRef) -> LiveIssue:
    """Live state matching ``logged_snapshot`` exactly."""
    return LiveIssue(
        ref=issue_ref,
        milestone_id=7,
        state="open",
        comments=3,
        locked=False,
        labels={2: "kind/bug", 1: "sig/node"},
    )


@pytest.fixture
def logged_snapshot() -> LoggedSnapshot:
    """Logged snapshot of issue 1001 at event 5000."""
    return LoggedSnapshot(issue_id=1001, event_id=5000, milestone_id=7, label_ids={1, 2})


@pytest.fixture
def plenty_of_quota() -> RateLimitStatus:
    """Quota far above any threshold."""
    return RateLimitStatus(
        limit=5000,
        remaining=4999,
        reset_at=datetime(2030, 1, 1, tzinfo=UTC),
    )
