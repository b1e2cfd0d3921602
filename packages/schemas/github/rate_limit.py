"""Rate limit status schema.

Snapshot of the GitHub core API quota as reported by ``GET /rate_limit``.
"""

from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field


class RateLimitStatus(BaseModel):
    """Remaining call quota and the moment it resets."""

    model_config = ConfigDict(frozen=True)

    limit: int = Field(..., ge=0, description="Points per window")
    remaining: int = Field(..., ge=0, description="Points left in the current window")
    reset_at: datetime = Field(..., description="When the window resets (UTC)")

    def wait(self, now: datetime | None = None) -> timedelta:
        """Time until the quota resets; never negative."""
        current = now or datetime.now(UTC)
        return max(self.reset_at - current, timedelta(0))
