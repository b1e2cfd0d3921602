"""Annotations command for devmirror CLI.

Turns repository tags (or a start/join date pair) into annotation and
quick-range points and writes them to InfluxDB.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Annotated, NoReturn

import typer
from rich.console import Console

from packages.common.config import get_config
from packages.common.factories import make_sync_annotations_use_case
from packages.common.tracing import TracingContext

console = Console()
logger = logging.getLogger(__name__)


def _die(message: str) -> NoReturn:
    """Print error and exit with code 1."""
    console.print(message)
    raise typer.Exit(code=1)


def _as_utc(value: datetime | None) -> datetime | None:
    return value.replace(tzinfo=UTC) if value is not None else None


def annotations_command(
    repo: Annotated[
        str | None, typer.Option("--repo", help="Main repository in format 'org/repo'")
    ] = None,
    start_date: Annotated[
        datetime | None,
        typer.Option("--start-date", formats=["%Y-%m-%d"], help="Project start (no repo)"),
    ] = None,
    join_date: Annotated[
        datetime | None,
        typer.Option("--join-date", formats=["%Y-%m-%d"], help="CNCF join date"),
    ] = None,
    drop: Annotated[
        bool, typer.Option("--drop", help="Delete previous quick ranges first")
    ] = False,
) -> None:
    """Write annotations and quick ranges for one project.

    Example:
        devmirror annotations --repo kubernetes/kubernetes --join-date 2016-03-10

    Raises:
        typer.Exit: Exit with code 1 if the sync fails.
    """
    if repo is not None and (repo.count("/") != 1 or not all(repo.split("/"))):
        _die(
            f"[red]✗ Invalid repository format: {repo}[/red]\n"
            f"[yellow]Expected format: 'org/repo' (e.g., 'kubernetes/kubernetes')[/yellow]"
        )

    config = get_config()
    drop_ranges = drop or config.timeseries_drop

    with TracingContext():
        source = repo or "start/join dates"
        console.print(f"[yellow]Syncing annotations from {source}[/yellow]")
        try:
            use_case, cleanup = make_sync_annotations_use_case()
            try:
                result = use_case.execute(
                    org_repo=repo,
                    start_date=_as_utc(start_date),
                    join_date=_as_utc(join_date),
                    drop=drop_ranges,
                )
            finally:
                cleanup()
        except Exception:
            logger.exception("Annotation sync failed")
            _die("[red]✗ Annotation sync failed[/red]")

    console.print(f"[green]✓ {result['annotations']} annotations[/green]")
    console.print(f"[green]✓ {result['written']}/{result['points']} points written[/green]")
