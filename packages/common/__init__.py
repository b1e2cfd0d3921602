"""Common utilities for devmirror.

This package provides reusable utilities like logging, config, tracing,
the PostgreSQL pool and the bounded task pool.

Note: Factory functions are available via direct import to avoid circular dependencies:
    from packages.common.factories import make_reconcile_use_case, make_sync_annotations_use_case
"""

from packages.common.postgres_pool import PostgresPool, PostgresPoolError
from packages.common.task_pool import BoundedTaskPool, ErrorPolicy, TaskPoolError

__all__ = [
    "BoundedTaskPool",
    "ErrorPolicy",
    "PostgresPool",
    "PostgresPoolError",
    "TaskPoolError",
]
