"""GitHubLabel entity schema.

A label attached to an issue or pull request, as returned by the
issue-labels endpoint.
"""

from pydantic import BaseModel, ConfigDict, Field


class GitHubLabel(BaseModel):
    """GitHub label entity.

    Examples:
        >>> label = GitHubLabel(id=208045946, name="bug")
        >>> label.name
        'bug'
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Stable label id", examples=[208045946])
    name: str = Field(
        ...,
        min_length=1,
        description="Label name",
        examples=["bug", "kind/feature", "lgtm"],
    )
