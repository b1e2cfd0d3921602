"""Rate-limit command for devmirror CLI."""

import logging
from typing import NoReturn

import typer
from rich.console import Console

from packages.common.factories import make_github_client

console = Console()
logger = logging.getLogger(__name__)


def _die(message: str) -> NoReturn:
    """Print error and exit with code 1."""
    console.print(message)
    raise typer.Exit(code=1)


def rate_limit_command() -> None:
    """Print remaining GitHub API points and the time until reset."""
    api = make_github_client()
    try:
        status = api.get_rate_limit()
    except Exception:
        logger.exception("Rate limit query failed")
        _die("[red]✗ Could not read GitHub rate limit[/red]")
    finally:
        api.close()

    console.print(
        f"{status.remaining}/{status.limit} API points available, "
        f"resets in {status.wait().total_seconds():.0f}s"
    )
