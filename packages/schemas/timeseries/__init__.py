"""Time-series schemas: annotations, quick ranges and points."""

from packages.schemas.timeseries.annotation import Annotation
from packages.schemas.timeseries.point import TimeseriesPoint
from packages.schemas.timeseries.quick_range import QuickRange

__all__ = ["Annotation", "QuickRange", "TimeseriesPoint"]
