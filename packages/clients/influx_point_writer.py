"""InfluxDB implementation of PointWriterPort.

Writes every point of a run in one batch. When asked, the previous
``quick_ranges`` series is deleted first; without that, points from earlier
runs stay next to the new ones.
"""

from influxdb import InfluxDBClient
from influxdb.exceptions import InfluxDBClientError, InfluxDBServerError
from requests.exceptions import RequestException

from packages.common.config import DevMirrorConfig
from packages.common.logging import get_logger
from packages.core.domain.quick_ranges import QUICK_RANGES_SERIES
from packages.schemas.timeseries import TimeseriesPoint

logger = get_logger(__name__)

_WRITE_ERRORS = (InfluxDBClientError, InfluxDBServerError, RequestException)


class PointWriteError(Exception):
    """Raised when the time-series store rejects a delete or a batch write."""

    pass


def make_influx_client(config: DevMirrorConfig) -> InfluxDBClient:
    """Build an InfluxDBClient from configuration."""
    return InfluxDBClient(
        host=config.influx_host,
        port=config.influx_port,
        username=config.influx_user,
        password=config.influx_password.get_secret_value(),
        database=config.influx_db,
    )


class InfluxPointWriter:
    """Batched point writer over an InfluxDBClient.

    Attributes:
        client: InfluxDB client bound to the target database.
        skip: When True, points are counted and logged but never written.
    """

    def __init__(self, client: InfluxDBClient, skip: bool = False) -> None:
        self.client = client
        self.skip = skip

    def write(self, points: list[TimeseriesPoint], drop_quick_ranges: bool = False) -> int:
        """Write ``points`` as a single batch.

        Args:
            points: Points to write.
            drop_quick_ranges: Delete the existing quick-range series first.

        Returns:
            int: Number of points written (0 when skipped).

        Raises:
            PointWriteError: If the delete or the write fails.
        """
        if self.skip:
            logger.info(f"Skipping time-series write of {len(points)} points")
            return 0

        # InfluxDB 1.x only accepts DELETE over POST
        if drop_quick_ranges:
            try:
                self.client.query(f'delete from "{QUICK_RANGES_SERIES}"', method="POST")
            except _WRITE_ERRORS as e:
                raise PointWriteError(f"Failed to drop {QUICK_RANGES_SERIES}: {e}") from e
            logger.info(f"Dropped series {QUICK_RANGES_SERIES}")

        if not points:
            return 0

        try:
            self.client.write_points([point.to_influx() for point in points])
        except _WRITE_ERRORS as e:
            raise PointWriteError(f"Failed to write {len(points)} points: {e}") from e

        logger.info(f"Wrote {len(points)} time-series points")
        return len(points)

    def close(self) -> None:
        self.client.close()


__all__ = ["InfluxPointWriter", "PointWriteError", "make_influx_client"]
