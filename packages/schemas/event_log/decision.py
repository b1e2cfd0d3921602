"""ReconciliationDecision schema.

Computed per issue per pass by comparing live state with the logged snapshot.
At most one synthetic event is written per non-empty decision.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MilestoneUnset = Literal["unset"]


class ReconciliationDecision(BaseModel):
    """Drift between live and logged state for one issue.

    ``new_milestone`` is None when the milestone did not change, ``"unset"``
    when the live issue lost its milestone, or the new live milestone id.

    Examples:
        >>> ReconciliationDecision().is_empty
        True
        >>> ReconciliationDecision(new_milestone="unset").is_empty
        False
    """

    model_config = ConfigDict(frozen=True)

    new_milestone: int | MilestoneUnset | None = Field(
        None,
        description="None = no change, 'unset' = clear milestone, int = new milestone id",
    )
    labels_changed: bool = Field(False, description="Live label set differs from logged")

    @property
    def is_empty(self) -> bool:
        """True when nothing needs to be written."""
        return self.new_milestone is None and not self.labels_changed
