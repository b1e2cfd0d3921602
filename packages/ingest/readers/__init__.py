"""Ingestion readers for GitHub issues and repository tags."""

from packages.ingest.readers.git_tags import GitTagLister, TagListingError
from packages.ingest.readers.github import GithubIssueReader, GithubReaderError

__all__ = [
    "GitTagLister",
    "GithubIssueReader",
    "GithubReaderError",
    "TagListingError",
]
