"""TimeseriesPoint schema: one point of a batched time-series write."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TimeseriesPoint(BaseModel):
    """Measurement point with tags, fields and timestamp."""

    model_config = ConfigDict(frozen=True)

    measurement: str = Field(..., min_length=1, examples=["annotations", "quick_ranges"])
    tags: dict[str, str] = Field(default_factory=dict)
    fields: dict[str, str | float | int | bool] = Field(..., min_length=1)
    time: datetime

    def to_influx(self) -> dict[str, object]:
        """Render as an InfluxDB line-protocol JSON point."""
        point: dict[str, object] = {
            "measurement": self.measurement,
            "fields": dict(self.fields),
            "time": self.time,
        }
        if self.tags:
            point["tags"] = dict(self.tags)
        return point
