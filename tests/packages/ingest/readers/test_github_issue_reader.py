"""Tests for GithubIssueReader.

Validates label pagination, rate gate usage before every request and retry
of quota errors until the maximum wait is spent in back-off.
"""

import pytest

from packages.clients.github_api import AbuseDetectedError, GithubApiError, RateLimitError
from packages.ingest.rate_gate import RateGate, RateLimitWaitExceededError
from packages.ingest.readers.github import GithubIssueReader, _parse_github_timestamp
from packages.schemas.github import IssueRef
from tests.utils.mocks import FakeIssueApi, quota


@pytest.fixture
def gate(mocker):
    gate = mocker.MagicMock()
    gate.backoff_seconds.return_value = 0.0
    gate.max_wait_seconds = 10
    return gate


@pytest.fixture
def api() -> FakeIssueApi:
    api = FakeIssueApi(page_size=2)
    api.add_issue(
        "kubernetes/kubernetes",
        42,
        milestone_id=7,
        labels={5: "lgtm", 3: "kind/bug", 1: "sig/node", 4: "approved", 2: "size/S"},
    )
    return api


@pytest.fixture
def ref() -> IssueRef:
    return IssueRef(issue_id=1001, repo="kubernetes/kubernetes", number=42)


@pytest.mark.unit
def test_fetch_accumulates_every_label_page(api: FakeIssueApi, gate, ref: IssueRef) -> None:
    live = GithubIssueReader(api, gate).fetch(ref)

    assert live.milestone_id == 7
    assert live.state == "open"
    assert live.labels == {5: "lgtm", 3: "kind/bug", 1: "sig/node", 4: "approved", 2: "size/S"}
    pages = [args[3] for name, args in api.calls if name == "list_labels"]
    assert pages == [1, 2, 3]


@pytest.mark.unit
def test_gate_acquired_before_every_request(api: FakeIssueApi, gate, ref: IssueRef) -> None:
    GithubIssueReader(api, gate).fetch(ref)

    # 1 issue request + 3 label pages
    assert gate.acquire.call_count == 4


@pytest.mark.unit
def test_issue_without_milestone_or_labels(gate) -> None:
    api = FakeIssueApi()
    api.add_issue("org/repo", 1)

    live = GithubIssueReader(api, gate).fetch(IssueRef(issue_id=9, repo="org/repo", number=1))

    assert live.milestone_id is None
    assert live.labels == {}


@pytest.mark.unit
def test_rate_limit_error_is_retried(mocker, gate, ref: IssueRef) -> None:
    api = mocker.MagicMock()
    api.get_issue.side_effect = [
        RateLimitError("limit", status_code=403, retry_after=0),
        {"state": "open", "milestone": None},
    ]
    api.list_labels.return_value = ([], None)
    sleep = mocker.MagicMock()

    live = GithubIssueReader(api, gate, sleep=sleep).fetch(ref)

    assert live.state == "open"
    assert api.get_issue.call_count == 2
    sleep.assert_called_once()
    gate.backoff_seconds.assert_called_once()


@pytest.mark.unit
def test_other_api_errors_are_fatal(mocker, gate, ref: IssueRef) -> None:
    api = mocker.MagicMock()
    api.get_issue.side_effect = GithubApiError("server error", status_code=500)

    with pytest.raises(GithubApiError):
        GithubIssueReader(api, gate, sleep=mocker.MagicMock()).fetch(ref)

    assert api.get_issue.call_count == 1


@pytest.mark.unit
class TestQuotaBackoff:
    """Abuse responses without Retry-After back off exponentially within the wait budget."""

    @pytest.fixture
    def real_gate(self, mocker):
        def build(max_wait: float) -> RateGate:
            source = mocker.MagicMock()
            source.get_rate_limit.return_value = quota(4000)
            return RateGate(
                source, max_wait_seconds=max_wait, grace_seconds=1.0, sleep=mocker.MagicMock()
            )

        return build

    def test_recovers_after_repeated_abuse_responses(
        self, mocker, real_gate, ref: IssueRef
    ) -> None:
        api = mocker.MagicMock()
        api.get_issue.side_effect = [AbuseDetectedError("abuse", status_code=403)] * 4 + [
            {"state": "open", "milestone": {"id": 3}}
        ]
        api.list_labels.return_value = ([], None)
        sleeps: list[float] = []

        live = GithubIssueReader(api, real_gate(60), sleep=sleeps.append).fetch(ref)

        assert live.milestone_id == 3
        assert api.get_issue.call_count == 5
        # grace + 1, 2, 4, 8
        assert sleeps == [2.0, 3.0, 5.0, 9.0]

    def test_aborts_once_total_backoff_exceeds_max_wait(
        self, mocker, real_gate, ref: IssueRef
    ) -> None:
        api = mocker.MagicMock()
        api.get_issue.side_effect = AbuseDetectedError("abuse", status_code=403)
        sleeps: list[float] = []

        with pytest.raises(RateLimitWaitExceededError) as exc_info:
            GithubIssueReader(api, real_gate(10), sleep=sleeps.append).fetch(ref)

        assert sleeps == [2.0, 3.0, 5.0]
        assert api.get_issue.call_count == 4
        assert exc_info.value.wait_seconds == pytest.approx(19.0)
        assert isinstance(exc_info.value.__cause__, AbuseDetectedError)


@pytest.mark.unit
def test_malformed_repo_is_fatal(api: FakeIssueApi, gate) -> None:
    with pytest.raises(ValueError, match="org/repo"):
        GithubIssueReader(api, gate).fetch(IssueRef(issue_id=1, repo="norepo", number=1))


@pytest.mark.unit
def test_parse_github_timestamp() -> None:
    parsed = _parse_github_timestamp("2024-01-01T00:00:00Z")

    assert parsed is not None
    assert parsed.isoformat() == "2024-01-01T00:00:00+00:00"
    assert _parse_github_timestamp(None) is None
