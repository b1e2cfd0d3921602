"""Module exposing the CLI Typer app under ``apps.cli``.

Entry points and tests import ``apps.cli.main``; the commands live in
``devmirror_cli``.
"""

from __future__ import annotations

from apps.cli.devmirror_cli.main import app

__all__ = ["app"]
