"""Tests for git tag listing and parsing."""

import subprocess
from datetime import UTC, datetime
from pathlib import Path

import pytest

from packages.ingest.readers.git_tags import (
    TAG_FIELD_SEPARATOR,
    GitTagLister,
    TagListingError,
    normalize_message,
    parse_tag_records,
)

SEP = TAG_FIELD_SEPARATOR


def _record(name: str, timestamp: str, message: str) -> str:
    return SEP.join((name, timestamp, message))


@pytest.mark.unit
class TestParseTagRecords:
    def test_parses_records_in_output_order(self) -> None:
        output = "\n".join(
            [
                _record("v1.1.0", "1451606400", "Release 1.1"),
                "",
                _record("v1.0.0", "1435708800", "Release 1.0"),
            ]
        )

        annotations = parse_tag_records(output, "org/repo")

        assert [a.name for a in annotations] == ["v1.1.0", "v1.0.0"]
        assert annotations[0].date == datetime(2016, 1, 1, tzinfo=UTC)
        assert annotations[1].description == "Release 1.0"

    def test_pattern_filters_by_name(self) -> None:
        output = "\n".join(
            [
                _record("v1.0.0", "1435708800", "GA"),
                _record("v1.0.0-rc.1", "1435000000", "RC"),
            ]
        )

        annotations = parse_tag_records(output, "org/repo", r"^v\d+\.\d+\.\d+$")

        assert [a.name for a in annotations] == ["v1.0.0"]

    def test_wrong_field_count_is_fatal(self) -> None:
        with pytest.raises(TagListingError, match="invalid tag data"):
            parse_tag_records(SEP.join(("v1", "1435708800")), "org/repo")

    def test_bad_timestamp_is_fatal(self) -> None:
        with pytest.raises(TagListingError, match="invalid time"):
            parse_tag_records(_record("v1", "yesterday", "msg"), "org/repo")

    def test_filtered_tags_are_not_validated(self) -> None:
        output = _record("nightly", "not-a-time", "skip me")

        assert parse_tag_records(output, "org/repo", "^v") == []


@pytest.mark.unit
def test_normalize_message_truncates_then_replaces_whitespace() -> None:
    message = "Release\tnotes\r\nfor the first stable version of everything"

    normalized = normalize_message(message)

    assert len(normalized) == 40
    assert "\t" not in normalized and "\n" not in normalized and "\r" not in normalized
    assert normalized.startswith("Release notes  for")


@pytest.mark.unit
class TestGitTagLister:
    def test_runs_git_in_repo_dir_without_prompt(self, mocker, tmp_path: Path) -> None:
        completed = subprocess.CompletedProcess(
            args=[], returncode=0, stdout=_record("v1.0.0", "1435708800", "GA") + "\n"
        )
        run = mocker.patch(
            "packages.ingest.readers.git_tags.subprocess.run", return_value=completed
        )

        annotations = GitTagLister(tmp_path).list_tags("kubernetes/kubernetes")

        assert [a.name for a in annotations] == ["v1.0.0"]
        command = run.call_args.args[0]
        assert command[:3] == ["git", "-C", str(tmp_path / "kubernetes/kubernetes")]
        assert command[3:5] == ["tag", "-l"]
        assert command[5].startswith("--format=%(refname:short)" + SEP)
        assert run.call_args.kwargs["env"]["GIT_TERMINAL_PROMPT"] == "0"

    def test_applies_configured_pattern(self, mocker, tmp_path: Path) -> None:
        stdout = "\n".join(
            [_record("v1.0.0", "1435708800", "GA"), _record("test-tag", "1435708800", "x")]
        )
        mocker.patch(
            "packages.ingest.readers.git_tags.subprocess.run",
            return_value=subprocess.CompletedProcess(args=[], returncode=0, stdout=stdout),
        )

        annotations = GitTagLister(tmp_path, pattern="^v").list_tags("org/repo")

        assert [a.name for a in annotations] == ["v1.0.0"]

    def test_malformed_org_repo_is_fatal(self, mocker, tmp_path: Path) -> None:
        run = mocker.patch("packages.ingest.readers.git_tags.subprocess.run")

        with pytest.raises(TagListingError, match="org/repo"):
            GitTagLister(tmp_path).list_tags("kubernetes")

        run.assert_not_called()

    def test_git_failure_is_fatal(self, mocker, tmp_path: Path) -> None:
        mocker.patch(
            "packages.ingest.readers.git_tags.subprocess.run",
            side_effect=subprocess.CalledProcessError(128, ["git"], stderr="not a git repository"),
        )

        with pytest.raises(TagListingError, match="not a git repository"):
            GitTagLister(tmp_path).list_tags("org/repo")
