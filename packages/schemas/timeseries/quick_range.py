"""QuickRange schema.

A dashboard-selectable time interval, materialized as one tagged point of the
``quick_ranges`` series. ``data`` is ``suffix;period;from;to`` where either the
relative period or the absolute bounds are empty.
"""

from pydantic import BaseModel, ConfigDict, Field


class QuickRange(BaseModel):
    """Named interval with its encoded range data.

    Examples:
        >>> QuickRange(suffix="w", name="Last week", data="w;1 week;;").data
        'w;1 week;;'
    """

    model_config = ConfigDict(frozen=True)

    suffix: str = Field(..., min_length=1, description="Series suffix / drop-down value", examples=["w", "anno_0_1"])
    name: str = Field(..., min_length=1, description="Drop-down display name", examples=["Last week"])
    data: str = Field(
        ...,
        description="suffix;relativePeriod;; or suffix;;from;to",
        examples=["w;1 week;;", "anno_0_1;;2015-01-01 00:00:00;2016-06-01 00:00:00"],
    )

    @property
    def period(self) -> str:
        """Relative period phrase, empty for annotation-derived ranges."""
        return self.data.split(";")[1]

    @property
    def bounds(self) -> tuple[str, str]:
        """Absolute (from, to) bounds, empty strings for relative ranges."""
        parts = self.data.split(";")
        return parts[2], parts[3]
