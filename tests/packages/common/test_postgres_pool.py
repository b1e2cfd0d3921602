"""Tests for PostgresPool transaction handling."""

import psycopg2
import pytest

from packages.common.config import DevMirrorConfig
from packages.common.postgres_pool import PostgresPool, PostgresPoolError


@pytest.fixture
def threaded_pool(mocker):
    """Patch ThreadedConnectionPool and return (pool_class, pool, connection)."""
    mock_conn = mocker.MagicMock()
    mock_pool = mocker.MagicMock()
    mock_pool.getconn.return_value = mock_conn
    mock_pool.closed = False
    pool_class = mocker.patch(
        "packages.common.postgres_pool.ThreadedConnectionPool", return_value=mock_pool
    )
    return pool_class, mock_pool, mock_conn


@pytest.mark.unit
def test_pool_sized_to_worker_cap(threaded_pool, test_config: DevMirrorConfig) -> None:
    pool_class, _, _ = threaded_pool

    PostgresPool(test_config, max_size=128)

    assert pool_class.call_args.kwargs["maxconn"] == 128
    assert pool_class.call_args.kwargs["password"] == "test"


@pytest.mark.unit
def test_transaction_commits_on_success(threaded_pool, test_config: DevMirrorConfig) -> None:
    _, mock_pool, mock_conn = threaded_pool

    with PostgresPool(test_config).transaction() as conn:
        assert conn is mock_conn

    mock_conn.commit.assert_called_once()
    mock_conn.rollback.assert_not_called()
    mock_pool.putconn.assert_called_once_with(mock_conn)


@pytest.mark.unit
def test_transaction_rolls_back_and_reraises(threaded_pool, test_config: DevMirrorConfig) -> None:
    _, mock_pool, mock_conn = threaded_pool

    with pytest.raises(KeyError):
        with PostgresPool(test_config).transaction():
            raise KeyError("missing")

    mock_conn.rollback.assert_called_once()
    mock_conn.commit.assert_not_called()
    mock_pool.putconn.assert_called_once_with(mock_conn)


@pytest.mark.unit
def test_transaction_wraps_database_errors(threaded_pool, test_config: DevMirrorConfig) -> None:
    _, _, mock_conn = threaded_pool

    with pytest.raises(PostgresPoolError):
        with PostgresPool(test_config).transaction():
            raise psycopg2.OperationalError("connection lost")

    mock_conn.rollback.assert_called_once()


@pytest.mark.unit
def test_close_all_is_idempotent(threaded_pool, test_config: DevMirrorConfig) -> None:
    _, mock_pool, _ = threaded_pool
    pool = PostgresPool(test_config)

    pool.close_all()
    mock_pool.closed = True
    pool.close_all()

    mock_pool.closeall.assert_called_once()
