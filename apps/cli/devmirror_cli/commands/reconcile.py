"""Reconcile command for devmirror CLI.

Compares recently updated open issues in the event log with their live
GitHub state and writes synthetic events where they drifted. This command is
thin - business logic is in ReconcileIssuesUseCase.
"""

from __future__ import annotations

import logging
from typing import Annotated, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from packages.common.config import get_config
from packages.common.factories import make_reconcile_use_case
from packages.common.task_pool import TaskPoolError
from packages.common.tracing import TracingContext

console = Console()
logger = logging.getLogger(__name__)


def _die(message: str) -> NoReturn:
    """Print error and exit with code 1."""
    console.print(message)
    raise typer.Exit(code=1)


def _parse_issue_ids(raw: str) -> list[int]:
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        _die(f"[red]✗ Invalid issue id list: {raw}[/red]\n[yellow]Expected e.g. '123,456'[/yellow]")


def reconcile_command(
    recent_range: Annotated[
        str | None,
        typer.Option("--recent-range", "-r", help="PostgreSQL interval, e.g. '2 hours'"),
    ] = None,
    only_issues: Annotated[
        str | None,
        typer.Option("--only-issues", help="Comma-separated issue ids to process instead"),
    ] = None,
) -> None:
    """Reconcile logged issue milestones and labels with GitHub.

    Args:
        recent_range: Overrides RECENT_RANGE.
        only_issues: Overrides ONLY_ISSUES (debugging mode).

    Example:
        devmirror reconcile --recent-range "1 day"

    Raises:
        typer.Exit: Exit with code 1 if reconciliation fails.
    """
    config = get_config()
    if config.skip_ghapi:
        console.print("[yellow]GitHub API reconciliation skipped (SKIP_GHAPI)[/yellow]")
        return

    period = recent_range or config.recent_range
    issue_ids = _parse_issue_ids(only_issues) if only_issues else config.only_issues

    with TracingContext() as correlation_id:
        console.print(f"[yellow]Reconciling issues updated within {period}[/yellow]")
        console.print(f"[yellow]Run ID: {correlation_id}[/yellow]")

        try:
            use_case, cleanup = make_reconcile_use_case()
            try:
                summary = use_case.execute(recent_range=period, only_issues=issue_ids)
            finally:
                cleanup()
        except TaskPoolError as e:
            logger.exception("Reconciliation finished with failures")
            _die(f"[red]✗ Reconciliation failed for {len(e.failures)} issues[/red]")
        except Exception:
            logger.exception("Reconciliation failed")
            _die("[red]✗ Reconciliation failed[/red]")

    table = Table(title="Reconciliation")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="bold")
    table.add_row("Issues", str(summary["issues"]))
    table.add_row("Checked", str(summary["checked"]))
    table.add_row("Updated", str(summary["updated"]))
    table.add_row("API points left", str(summary["api_points"]))
    table.add_row("Resets in", f"{summary['resets_in']:.0f}s")
    console.print(table)
    console.print("[green]✓ Reconciliation complete[/green]")
