"""Pytest fixtures for SQLite storage tests."""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from paddy_ledger.infrastructure.storage.sqlite.connection import ConnectionPool
from paddy_ledger.infrastructure.storage.sqlite.ledger_store import SQLiteLedgerStore
from paddy_ledger.infrastructure.storage.sqlite.schema import initialize_database


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "ledger.db"


@pytest.fixture
async def pool(temp_db_path: Path) -> AsyncGenerator[ConnectionPool, None]:
    """Initialized pool with the ledger schema applied."""
    pool = ConnectionPool(temp_db_path, pool_size=2, busy_timeout=100)
    await initialize_database(pool)
    yield pool
    await pool.close()


@pytest.fixture
def sqlite_store(pool: ConnectionPool) -> SQLiteLedgerStore:
    return SQLiteLedgerStore(pool)


@pytest.fixture
def mock_settings(temp_db_path: Path):
    """Mock settings with temp database path."""
    mock = MagicMock()
    mock.storage.db_path = temp_db_path
    mock.storage.pool_size = 2
    mock.storage.busy_timeout = 100
    mock.storage.acquire_timeout = 1.0
    return mock
