"""Git tag reader: repository tags as dashboard annotations.

``GitTagLister`` runs ``git tag -l`` against a local clone and
``parse_tag_records`` turns its output into annotations. Each output line is
``name SEP unix-timestamp SEP subject`` where SEP is a two-character sequence
that never appears in tag names or messages. Malformed output is fatal.
"""

import logging
import os
import re
import subprocess
from datetime import UTC, datetime
from pathlib import Path

from packages.schemas.timeseries import Annotation

logger = logging.getLogger(__name__)

TAG_FIELD_SEPARATOR = "♂♀"
GIT_TAG_FORMAT = TAG_FIELD_SEPARATOR.join(
    ("%(refname:short)", "%(creatordate:unix)", "%(subject)")
)
MESSAGE_LIMIT = 40

_WHITESPACE_TRANSLATION = str.maketrans({"\n": " ", "\r": " ", "\t": " "})


class TagListingError(Exception):
    """Raised when tags cannot be listed or the listing is malformed."""

    pass


def split_org_repo(org_repo: str) -> tuple[str, str]:
    """Split 'org/repo' into its parts.

    Raises:
        TagListingError: If the value is not exactly 'org/repo'.
    """
    parts = org_repo.split("/")
    if len(parts) != 2 or not all(parts):
        raise TagListingError(f"main repository format must be 'org/repo', found '{org_repo}'")
    return parts[0], parts[1]


def normalize_message(message: str) -> str:
    """Truncate to 40 characters and turn newlines and tabs into spaces."""
    return message[:MESSAGE_LIMIT].translate(_WHITESPACE_TRANSLATION)


def parse_tag_records(
    output: str,
    org_repo: str,
    pattern: re.Pattern[str] | str | None = None,
) -> list[Annotation]:
    """Parse tag listing output into annotations, in output order.

    Args:
        output: Newline-delimited records.
        org_repo: Repository the output belongs to (for error messages).
        pattern: Optional regexp; tags whose name does not match are skipped.

    Returns:
        list[Annotation]: One annotation per kept tag.

    Raises:
        TagListingError: On a record without three fields or with a bad timestamp.
    """
    regexp = re.compile(pattern) if isinstance(pattern, str) and pattern else pattern or None

    annotations: list[Annotation] = []
    for line in output.split("\n"):
        record = line.strip()
        if not record:
            continue

        fields = record.split(TAG_FIELD_SEPARATOR)
        if len(fields) != 3:
            raise TagListingError(f"invalid tag data returned for repo {org_repo}: '{record}'")

        name, raw_timestamp, message = fields
        if regexp is not None and not regexp.search(name):
            continue

        try:
            created = datetime.fromtimestamp(int(raw_timestamp), UTC)
        except ValueError as e:
            raise TagListingError(
                f"invalid time returned for repo {org_repo}, tag {name}: '{record}'"
            ) from e

        annotations.append(
            Annotation(name=name, description=normalize_message(message), date=created)
        )

    return annotations


class GitTagLister:
    """Lists tags of local clones under ``repos_dir/<org>/<repo>``.

    Uses ``git -C`` instead of changing directory, since the working directory
    is shared by all threads.
    """

    def __init__(
        self,
        repos_dir: Path,
        pattern: str = "",
        git_binary: str = "git",
    ) -> None:
        self.repos_dir = Path(repos_dir)
        self.pattern = re.compile(pattern) if pattern else None
        self.git_binary = git_binary

    def list_tags(self, org_repo: str) -> list[Annotation]:
        """Return annotations for the tags of ``org_repo``.

        Raises:
            TagListingError: If the repo name is malformed, git fails, or the
                output cannot be parsed.
        """
        split_org_repo(org_repo)
        repo_path = self.repos_dir / org_repo
        command = [
            self.git_binary,
            "-C",
            str(repo_path),
            "tag",
            "-l",
            f"--format={GIT_TAG_FORMAT}",
        ]
        logger.debug(f"Getting tags for repo {org_repo}")

        started = datetime.now(UTC)
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                encoding="utf-8",
                env={**os.environ, "GIT_TERMINAL_PROMPT": "0"},
                check=True,
            )
        except FileNotFoundError as e:
            raise TagListingError(f"git binary not found: {self.git_binary}") from e
        except subprocess.CalledProcessError as e:
            raise TagListingError(
                f"git tag listing failed for {repo_path}: {e.stderr.strip()}"
            ) from e

        annotations = parse_tag_records(completed.stdout, org_repo, self.pattern)
        logger.info(
            f"Got {len(annotations)} tags for {org_repo}",
            extra={"elapsed_seconds": (datetime.now(UTC) - started).total_seconds()},
        )
        return annotations


__all__ = [
    "GIT_TAG_FORMAT",
    "MESSAGE_LIMIT",
    "TAG_FIELD_SEPARATOR",
    "GitTagLister",
    "TagListingError",
    "normalize_message",
    "parse_tag_records",
    "split_org_repo",
]
