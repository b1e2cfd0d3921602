"""PostgreSQL connection pool for the devmirror event log.

Provides a thread-safe connection pool for PostgreSQL using psycopg2. Each
phase-2 reconciliation worker checks out its own connection, so the pool is
sized to at least the worker cap.
"""

from collections.abc import Generator
from contextlib import contextmanager

import psycopg2
from psycopg2.extensions import connection as PgConnection  # noqa: N812
from psycopg2.pool import ThreadedConnectionPool

from packages.common.config import DevMirrorConfig
from packages.common.logging import get_logger

logger = get_logger(__name__)


class PostgresPoolError(Exception):
    """Exception raised when PostgreSQL pool operations fail."""

    pass


class PostgresPool:
    """Thread-safe PostgreSQL connection pool.

    Attributes:
        pool: The underlying ThreadedConnectionPool instance.

    Example:
        >>> with PostgresPool(config) as pool:
        ...     with pool.transaction() as conn:
        ...         with conn.cursor() as cur:
        ...             cur.execute("SELECT 1")
    """

    def __init__(self, config: DevMirrorConfig, max_size: int | None = None) -> None:
        """Initialize PostgreSQL connection pool.

        Args:
            config: DevMirrorConfig instance with PostgreSQL connection parameters.
            max_size: Optional pool ceiling; raised to at least the configured
                maximum. ThreadedConnectionPool does not block when exhausted,
                so callers pass their worker cap here.

        Raises:
            PostgresPoolError: If pool initialization fails.
        """
        self._config = config
        maxconn = max(config.postgres_max_pool_size, max_size or 0)

        try:
            self.pool = ThreadedConnectionPool(
                minconn=config.postgres_min_pool_size,
                maxconn=maxconn,
                host=config.postgres_host,
                port=config.postgres_port,
                database=config.postgres_db,
                user=config.postgres_user,
                password=config.postgres_password.get_secret_value(),
            )
            logger.info(
                "PostgreSQL connection pool initialized",
                extra={
                    "host": config.postgres_host,
                    "database": config.postgres_db,
                    "min_pool_size": config.postgres_min_pool_size,
                    "max_pool_size": maxconn,
                },
            )
        except psycopg2.Error as e:
            logger.exception(
                "Failed to initialize PostgreSQL connection pool",
                extra={"host": config.postgres_host, "error": str(e)},
            )
            raise PostgresPoolError(f"Failed to initialize PostgreSQL pool: {e}") from e

    @contextmanager
    def get_connection(self) -> Generator[PgConnection, None, None]:
        """Get a connection from the pool for read-only work.

        Yields:
            Connection: PostgreSQL connection from the pool.

        Raises:
            PostgresPoolError: If checkout fails or a database error escapes.
        """
        conn = None
        try:
            conn = self.pool.getconn()
            if conn is None:
                raise PostgresPoolError("Failed to get connection from pool")
            yield conn
            # Close the implicit read transaction before handing the connection back
            conn.rollback()
        except psycopg2.Error as e:
            logger.exception("PostgreSQL connection error", extra={"error": str(e)})
            raise PostgresPoolError(f"PostgreSQL connection error: {e}") from e
        finally:
            if conn is not None:
                self.pool.putconn(conn)

    @contextmanager
    def transaction(self) -> Generator[PgConnection, None, None]:
        """Run a block inside one explicit transaction.

        Commits when the block completes; rolls back on any exception and
        re-raises it (database errors wrapped in PostgresPoolError), so either
        every statement of the block is visible or none is.

        Yields:
            Connection: PostgreSQL connection with an open transaction.
        """
        conn = None
        try:
            conn = self.pool.getconn()
            if conn is None:
                raise PostgresPoolError("Failed to get connection from pool")
            try:
                yield conn
                conn.commit()
            except BaseException:
                conn.rollback()
                raise
        except psycopg2.Error as e:
            logger.exception("PostgreSQL transaction failed", extra={"error": str(e)})
            raise PostgresPoolError(f"PostgreSQL transaction failed: {e}") from e
        finally:
            if conn is not None:
                self.pool.putconn(conn)

    def close_all(self) -> None:
        """Close all connections in the pool. Safe to call more than once."""
        if self.pool.closed:
            return
        self.pool.closeall()
        logger.info(
            "PostgreSQL connection pool closed",
            extra={
                "host": self._config.postgres_host,
                "database": self._config.postgres_db,
            },
        )

    def __enter__(self) -> "PostgresPool":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.close_all()


# Export public API
__all__ = ["PostgresPool", "PostgresPoolError"]
