"""Client adapters for external systems.

Heavy dependencies (httpx, psycopg2, influxdb) belong here, not in packages/common.
"""

from packages.clients.github_api import GithubApiClient
from packages.clients.influx_point_writer import InfluxPointWriter
from packages.clients.postgres_event_log import PostgresEventLog

__all__ = ["GithubApiClient", "InfluxPointWriter", "PostgresEventLog"]
