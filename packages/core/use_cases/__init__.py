"""Core use cases - Application service orchestration.

Use cases orchestrate workflows across adapters without containing framework-specific code.
"""

from __future__ import annotations

from packages.core.use_cases.reconcile_issues import (
    IssueReader,
    QuotaSource,
    ReconcileIssuesUseCase,
)
from packages.core.use_cases.sync_annotations import SyncAnnotationsUseCase

__all__ = [
    "IssueReader",
    "QuotaSource",
    "ReconcileIssuesUseCase",
    "SyncAnnotationsUseCase",
]
