"""Tests for SyncAnnotationsUseCase."""

from datetime import UTC, datetime

import pytest

from packages.core.use_cases.sync_annotations import SyncAnnotationsUseCase
from packages.schemas.timeseries import Annotation

NOW = datetime(2024, 5, 17, 12, 0, tzinfo=UTC)


@pytest.fixture
def tag_lister(mocker):
    lister = mocker.MagicMock()
    lister.list_tags.return_value = [
        Annotation(name="v1.1.0", date=datetime(2016, 1, 1, tzinfo=UTC)),
        Annotation(name="v1.0.0", date=datetime(2015, 7, 1, tzinfo=UTC)),
    ]
    return lister


@pytest.fixture
def point_writer(mocker):
    writer = mocker.MagicMock()
    writer.write.side_effect = lambda points, drop_quick_ranges=False: len(points)
    return writer


@pytest.mark.unit
def test_writes_tag_annotations_and_ranges_in_one_batch(tag_lister, point_writer) -> None:
    use_case = SyncAnnotationsUseCase(tag_lister, point_writer, clock=lambda: NOW)

    result = use_case.execute(org_repo="kubernetes/kubernetes")

    tag_lister.list_tags.assert_called_once_with("kubernetes/kubernetes")
    point_writer.write.assert_called_once()
    points = point_writer.write.call_args.args[0]
    # 2 annotation points + 7 fixed ranges + 2 annotation ranges
    assert len(points) == 11
    assert points[0].fields["title"] == "v1.0.0"
    assert point_writer.write.call_args.kwargs == {"drop_quick_ranges": False}
    assert result == {"annotations": 2, "points": 11, "written": 11}


@pytest.mark.unit
def test_drop_flag_is_forwarded(tag_lister, point_writer) -> None:
    SyncAnnotationsUseCase(tag_lister, point_writer, clock=lambda: NOW).execute(
        org_repo="org/repo", drop=True
    )

    assert point_writer.write.call_args.kwargs == {"drop_quick_ranges": True}


@pytest.mark.unit
def test_fake_annotations_without_repo(tag_lister, point_writer) -> None:
    start = datetime(2014, 6, 1, tzinfo=UTC)
    join = datetime(2016, 3, 10, tzinfo=UTC)

    result = SyncAnnotationsUseCase(tag_lister, point_writer, clock=lambda: NOW).execute(
        start_date=start, join_date=join
    )

    tag_lister.list_tags.assert_not_called()
    titles = [
        p.fields["title"]
        for p in point_writer.write.call_args.args[0]
        if p.measurement == "annotations"
    ]
    assert titles == ["Project start", "First CNCF project join date", "CNCF join date"]
    # 2 annotations + join point + 7 fixed + 2 derived ranges
    assert result["points"] == 12


@pytest.mark.unit
def test_nothing_configured_writes_fixed_ranges_only(tag_lister, point_writer) -> None:
    result = SyncAnnotationsUseCase(tag_lister, point_writer, clock=lambda: NOW).execute()

    assert result == {"annotations": 0, "points": 7, "written": 7}


@pytest.mark.unit
def test_tag_errors_propagate(tag_lister, point_writer) -> None:
    tag_lister.list_tags.side_effect = RuntimeError("git failed")

    with pytest.raises(RuntimeError):
        SyncAnnotationsUseCase(tag_lister, point_writer).execute(org_repo="org/repo")

    point_writer.write.assert_not_called()
