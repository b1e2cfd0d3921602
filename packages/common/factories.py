"""Factory functions for creating fully-wired use cases and dependencies.

Centralizes dependency injection to keep CLI commands thin.
"""

from collections.abc import Callable

from packages.clients.github_api import GithubApiClient
from packages.clients.influx_point_writer import InfluxPointWriter, make_influx_client
from packages.clients.postgres_event_log import PostgresEventLog
from packages.common.config import DevMirrorConfig, get_config
from packages.common.postgres_pool import PostgresPool
from packages.common.task_pool import ErrorPolicy
from packages.core.use_cases.reconcile_issues import ReconcileIssuesUseCase
from packages.core.use_cases.sync_annotations import SyncAnnotationsUseCase
from packages.ingest.rate_gate import RateGate
from packages.ingest.readers.git_tags import GitTagLister
from packages.ingest.readers.github import GithubIssueReader


def make_github_client(config: DevMirrorConfig | None = None) -> GithubApiClient:
    """Create a GithubApiClient from configuration."""
    config = config or get_config()
    token = config.github_token.get_secret_value() if config.github_token else None
    return GithubApiClient(
        token=token,
        base_url=config.github_api_url,
        timeout=config.github_timeout,
        page_size=config.github_page_size,
    )


def make_rate_gate(api: GithubApiClient, config: DevMirrorConfig | None = None) -> RateGate:
    """Create a RateGate over ``api`` with the configured thresholds."""
    config = config or get_config()
    return RateGate(
        api,
        min_points=config.github_min_points,
        max_wait_seconds=config.github_max_wait_seconds,
        grace_seconds=config.github_grace_seconds,
    )


def make_reconcile_use_case() -> tuple[ReconcileIssuesUseCase, Callable[[], None]]:
    """Create a fully-wired ReconcileIssuesUseCase with its dependencies.

    Returns:
        Tuple of (use_case, cleanup_fn) where cleanup_fn must be called
        after use to close the HTTP client and database connections.

    Example:
        use_case, cleanup = make_reconcile_use_case()
        try:
            summary = use_case.execute(recent_range="2 hours")
        finally:
            cleanup()
    """
    config = get_config()

    api = make_github_client(config)
    gate = make_rate_gate(api, config)
    reader = GithubIssueReader(api, gate, min_backoff=config.github_min_backoff_seconds)

    # Every phase-2 worker holds one connection
    pool = PostgresPool(config, max_size=config.thread_capacity)
    event_log = PostgresEventLog(pool, dry_run=config.skip_pdb)

    use_case = ReconcileIssuesUseCase(
        reader=reader,
        event_log=event_log,
        quota=gate,
        fetch_concurrency=config.github_thread_capacity,
        write_concurrency=config.thread_capacity,
        progress_interval=config.progress_interval_seconds,
        error_policy=ErrorPolicy(config.error_policy),
    )

    def cleanup() -> None:
        """Close connections and release resources."""
        api.close()
        pool.close_all()

    return use_case, cleanup


def make_sync_annotations_use_case() -> tuple[SyncAnnotationsUseCase, Callable[[], None]]:
    """Create a fully-wired SyncAnnotationsUseCase with its dependencies.

    Returns:
        Tuple of (use_case, cleanup_fn) where cleanup_fn closes the InfluxDB client.
    """
    config = get_config()

    tag_lister = GitTagLister(config.repos_dir, pattern=config.annotation_regexp)
    point_writer = InfluxPointWriter(make_influx_client(config), skip=config.skip_timeseries)
    use_case = SyncAnnotationsUseCase(tag_lister=tag_lister, point_writer=point_writer)

    def cleanup() -> None:
        """Close the time-series client."""
        point_writer.close()

    return use_case, cleanup


__all__ = [
    "make_github_client",
    "make_rate_gate",
    "make_reconcile_use_case",
    "make_sync_annotations_use_case",
]
