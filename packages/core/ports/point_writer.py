"""PointWriterPort - Port interface for the time-series store."""

from __future__ import annotations

from typing import Protocol

from packages.schemas.timeseries import TimeseriesPoint


class PointWriterPort(Protocol):
    """Batched time-series point writer."""

    def write(self, points: list[TimeseriesPoint], drop_quick_ranges: bool = False) -> int:
        """Write all points in one batch; optionally drop quick ranges first.

        Returns:
            int: Number of points written.
        """
        ...


__all__ = ["PointWriterPort"]
