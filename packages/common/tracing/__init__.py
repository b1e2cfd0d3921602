"""Correlation ID tracking for reconciliation and annotation runs.

A correlation ID is set once per CLI run and carried into worker threads by
the task pool, so every log line of one run can be grouped. Reconciliation
writes additionally log a trace chain: issue_id → source event_id →
synthetic event_id.
"""

import uuid
from contextvars import ContextVar
from types import TracebackType

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def generate_correlation_id() -> str:
    """Generate a new correlation ID (UUID4 string)."""
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation ID for the current context.

    If no correlation ID is provided, generates a new one.

    Args:
        correlation_id: Optional correlation ID to set. If None, generates a new one.

    Returns:
        str: The correlation ID that was set.
    """
    if correlation_id is None:
        correlation_id = generate_correlation_id()

    _correlation_id_var.set(correlation_id)
    return correlation_id


def get_correlation_id() -> str | None:
    """Get the correlation ID for the current context, or None if not set."""
    return _correlation_id_var.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID for the current context."""
    _correlation_id_var.set(None)


class TracingContext:
    """Context manager that sets a correlation ID for a code block.

    Example:
        >>> with TracingContext() as run_id:
        ...     logger.info("Reconciling", extra={"run_id": run_id})
    """

    def __init__(self, correlation_id: str | None = None) -> None:
        self.correlation_id = correlation_id
        self.previous_id: str | None = None

    def __enter__(self) -> str:
        self.previous_id = get_correlation_id()
        self.correlation_id = set_correlation_id(self.correlation_id)
        return self.correlation_id

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self.previous_id is None:
            clear_correlation_id()
        else:
            set_correlation_id(self.previous_id)


def build_trace_chain(
    issue_id: int | None = None,
    source_event_id: int | None = None,
    synthetic_event_id: int | None = None,
) -> dict[str, int | str | None]:
    """Build a trace chain dictionary for logging a reconciliation write.

    Args:
        issue_id: Issue/PR id being reconciled.
        source_event_id: Event id of the logged snapshot the write clones.
        synthetic_event_id: Event id allocated for the synthetic event.

    Returns:
        dict: Trace chain including the current correlation ID.

    Example:
        >>> build_trace_chain(issue_id=7, source_event_id=42)
        {'correlation_id': None, 'issue_id': 7, 'source_event_id': 42, 'synthetic_event_id': None}
    """
    return {
        "correlation_id": get_correlation_id(),
        "issue_id": issue_id,
        "source_event_id": source_event_id,
        "synthetic_event_id": synthetic_event_id,
    }


# Export public API
__all__ = [
    "TracingContext",
    "build_trace_chain",
    "clear_correlation_id",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
]
