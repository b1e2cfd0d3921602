"""Annotation schema.

A dated project milestone (usually a git tag) shown on dashboards and used
to derive quick ranges.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Annotation(BaseModel):
    """Named, dated marker. Immutable once obtained.

    Examples:
        >>> from datetime import UTC, datetime
        >>> Annotation(name="v1.0.0", description="Release 1.0", date=datetime(2015, 7, 21, tzinfo=UTC)).name
        'v1.0.0'
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Annotation title", examples=["v1.0.0"])
    description: str = Field("", description="Short description (tag message)")
    date: datetime = Field(..., description="When the marker happened (timezone-aware)")
