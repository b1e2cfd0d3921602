"""devmirror application shells.

This package contains thin I/O layers over the core use cases:
- cli: Typer CLI
"""
