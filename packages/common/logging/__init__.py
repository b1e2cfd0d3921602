"""JSON structured logging for devmirror.

Every line carries the run's correlation ID so that a reconciliation or
annotation run can be followed across worker threads. Uses python-json-logger
for JSON formatting.
"""

import logging
import sys
from typing import Any

from pythonjsonlogger import jsonlogger

from packages.common.config import get_config

# Third-party loggers that log every request at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "urllib3")


class CorrelationIdFilter(logging.Filter):
    """Logging filter that injects the current run's correlation ID."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Inject correlation ID into the log record.

        Args:
            record: The log record to modify.

        Returns:
            bool: Always True (doesn't filter out records).
        """
        # Import here to avoid circular dependency
        from packages.common.tracing import get_correlation_id

        record.correlation_id = get_correlation_id()
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding timestamp, level, location and correlation_id."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = record.created
        log_record["level"] = record.levelname
        log_record["module"] = record.module
        log_record["function"] = record.funcName
        log_record["line"] = record.lineno
        log_record["thread"] = record.threadName

        if hasattr(record, "correlation_id"):
            log_record["correlation_id"] = record.correlation_id


def setup_logging(level: str | None = None) -> None:
    """Configure JSON structured logging for the application.

    Sets up a stdout handler with the JSON formatter and the correlation ID
    filter, and quiets per-request HTTP client logging.

    Args:
        level: Optional log level override (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               If not provided, uses LOG_LEVEL from config.

    Example:
        >>> setup_logging("DEBUG")
        >>> logger = get_logger(__name__)
        >>> logger.info("Fetched issue", extra={"issue_id": 123})
    """
    log_level = (level or get_config().log_level).upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        CustomJsonFormatter("%(timestamp)s %(level)s %(module)s %(function)s %(message)s")
    )
    console_handler.addFilter(CorrelationIdFilter())
    root_logger.addHandler(console_handler)

    if log_level != "DEBUG":
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the given module.

    Args:
        name: The logger name (typically __name__ from the calling module).

    Returns:
        logging.Logger: Configured logger instance.
    """
    return logging.getLogger(name)


# Export public API
__all__ = ["CorrelationIdFilter", "CustomJsonFormatter", "get_logger", "setup_logging"]
