"""GitHub entity schemas.

This module contains Pydantic schemas for GitHub-specific entities.
"""

from packages.schemas.github.github_label import GitHubLabel
from packages.schemas.github.issue import IssueRef, LiveIssue
from packages.schemas.github.rate_limit import RateLimitStatus

__all__ = [
    "GitHubLabel",
    "IssueRef",
    "LiveIssue",
    "RateLimitStatus",
]
