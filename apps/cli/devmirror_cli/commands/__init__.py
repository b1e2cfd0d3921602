"""devmirror CLI commands package.

- reconcile: reconcile logged issue state with the live GitHub API
- annotations: write annotations and quick ranges to the time-series store
- rate_limit: show the remaining GitHub API quota
"""

from __future__ import annotations

__all__ = ["annotations", "rate_limit", "reconcile"]
