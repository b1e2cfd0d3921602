"""Issue entity schemas.

``IssueRef`` identifies an issue or pull request taken from the event log;
``LiveIssue`` is the state the GitHub API reports for it right now.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class IssueRef(BaseModel):
    """Issue/PR identity as recorded in the event log.

    Examples:
        >>> ref = IssueRef(issue_id=123, repo="kubernetes/kubernetes", number=42)
        >>> ref.owner_and_name()
        ('kubernetes', 'kubernetes')
    """

    model_config = ConfigDict(frozen=True)

    issue_id: int = Field(..., description="Stable GitHub issue id (not the number)")
    repo: str = Field(
        ...,
        min_length=1,
        description="Repository full name in 'org/repo' form",
        examples=["kubernetes/kubernetes"],
    )
    number: int = Field(..., ge=1, description="Issue number within the repository")
    is_pull_request: bool = Field(False, description="True for pull requests")

    def owner_and_name(self) -> tuple[str, str]:
        """Split ``repo`` into (org, name).

        Raises:
            ValueError: If the repository name is not exactly 'org/repo'.
        """
        parts = self.repo.split("/")
        if len(parts) != 2 or not all(parts):
            raise ValueError(f"Invalid repository format: {self.repo}. Expected 'org/repo'")
        return parts[0], parts[1]


class LiveIssue(BaseModel):
    """Current issue state fetched from the GitHub API.

    ``labels`` maps label id to label name and holds the complete label set,
    accumulated over every page of the labels endpoint.
    """

    model_config = ConfigDict(frozen=True)

    ref: IssueRef
    milestone_id: int | None = Field(None, description="Live milestone id, if any")
    state: str | None = Field(None, description="open / closed", examples=["open", "closed"])
    closed_at: datetime | None = None
    comments: int | None = Field(None, ge=0)
    locked: bool | None = None
    labels: dict[int, str] = Field(default_factory=dict)

