"""Tests for the pydantic schemas' helpers and validation."""

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from packages.schemas.event_log import ReconciliationDecision
from packages.schemas.github import IssueRef, RateLimitStatus
from packages.schemas.timeseries import QuickRange


@pytest.mark.unit
class TestIssueRef:
    def test_owner_and_name(self) -> None:
        ref = IssueRef(issue_id=1, repo="cncf/devstats", number=3)

        assert ref.owner_and_name() == ("cncf", "devstats")

    @pytest.mark.parametrize("repo", ["devstats", "a/b/c", "/devstats", "cncf/"])
    def test_malformed_repo_raises(self, repo: str) -> None:
        ref = IssueRef(issue_id=1, repo=repo, number=3)

        with pytest.raises(ValueError, match="Invalid repository format"):
            ref.owner_and_name()

    def test_number_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            IssueRef(issue_id=1, repo="cncf/devstats", number=0)


@pytest.mark.unit
def test_rate_limit_wait_is_never_negative() -> None:
    now = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
    status = RateLimitStatus(limit=5000, remaining=0, reset_at=now + timedelta(seconds=30))

    assert status.wait(now) == timedelta(seconds=30)
    assert status.wait(now + timedelta(minutes=5)) == timedelta(0)


@pytest.mark.unit
def test_decision_with_milestone_id_is_not_empty() -> None:
    assert ReconciliationDecision().is_empty
    assert not ReconciliationDecision(new_milestone=12).is_empty
    assert not ReconciliationDecision(labels_changed=True).is_empty


@pytest.mark.unit
def test_quick_range_period_and_bounds() -> None:
    relative = QuickRange(suffix="w", name="Last week", data="w;1 week;;")
    absolute = QuickRange(
        suffix="anno_0_1",
        name="v1.0 - v1.1",
        data="anno_0_1;;2015-01-01 00:00:00;2016-06-01 00:00:00",
    )

    assert relative.period == "1 week"
    assert relative.bounds == ("", "")
    assert absolute.period == ""
    assert absolute.bounds == ("2015-01-01 00:00:00", "2016-06-01 00:00:00")
