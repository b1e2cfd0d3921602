"""devmirror CLI - Typer command-line interface for event log maintenance."""

from __future__ import annotations

import logging

import typer
from rich.console import Console

from apps.cli.devmirror_cli.commands.annotations import annotations_command
from apps.cli.devmirror_cli.commands.rate_limit import rate_limit_command
from apps.cli.devmirror_cli.commands.reconcile import reconcile_command
from packages.common.logging import setup_logging

app = typer.Typer(
    name="devmirror",
    help="devmirror CLI - GitHub event log reconciliation and dashboard annotations",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)


@app.callback()
def main(
    log_level: str | None = typer.Option(
        None, "--log-level", help="Override LOG_LEVEL (DEBUG, INFO, WARNING, ERROR)"
    ),
) -> None:
    """Configure logging before any command runs."""
    setup_logging(log_level)


app.command(name="reconcile")(reconcile_command)
app.command(name="annotations")(annotations_command)
app.command(name="rate-limit")(rate_limit_command)


if __name__ == "__main__":
    app()
