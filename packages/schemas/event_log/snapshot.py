"""LoggedSnapshot schema.

The most recent logged state row of an issue, selected by
``updated_at desc, event_id desc``, together with the label ids attached to
that row's event.
"""

from pydantic import BaseModel, ConfigDict, Field


class LoggedSnapshot(BaseModel):
    """Latest logged state of one issue. Immutable once written."""

    model_config = ConfigDict(frozen=True)

    issue_id: int = Field(..., description="Issue/PR id")
    event_id: int = Field(..., ge=0, description="Event id the snapshot row belongs to")
    milestone_id: int | None = Field(None, description="Logged milestone id, if any")
    label_ids: frozenset[int] = Field(
        default_factory=frozenset,
        description="Label ids attached to event_id",
    )
