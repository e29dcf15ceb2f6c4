"""Unit tests for SQLite connection pool."""

import asyncio
from pathlib import Path
from unittest.mock import patch

import aiosqlite
import pytest

import paddy_ledger.infrastructure.storage.sqlite.connection as conn_module
from paddy_ledger.core.exceptions import DatabaseError
from paddy_ledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_pool,
)


class TestConnectionPoolInit:
    """Tests for ConnectionPool construction."""

    def test_defaults(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path)
        assert pool.db_path == temp_db_path
        assert pool.pool_size == 5
        assert pool.busy_timeout == 5000
        assert pool.acquire_timeout is None
        assert pool._initialized is False
        assert pool._connections == []

    async def test_initialize_creates_directory(self, tmp_path: Path):
        db_path = tmp_path / "data" / "nested" / "ledger.db"
        pool = ConnectionPool(db_path, pool_size=1)

        await pool.initialize()

        assert db_path.parent.exists()
        await pool.close()

    async def test_initialize_idempotent(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=2)

        await pool.initialize()
        await pool.initialize()

        assert len(pool._connections) == 2
        assert pool._pool.qsize() == 2
        await pool.close()


class TestConnectionPragmas:
    """Every pooled connection gets the same pragmas."""

    async def test_wal_and_foreign_keys(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path)
        conn = await pool._create_connection()

        cursor = await conn.execute("PRAGMA journal_mode")
        assert (await cursor.fetchone())[0].lower() == "wal"
        cursor = await conn.execute("PRAGMA foreign_keys")
        assert (await cursor.fetchone())[0] == 1
        assert conn.row_factory == aiosqlite.Row
        await conn.close()

    async def test_busy_timeout(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, busy_timeout=250)
        conn = await pool._create_connection()

        cursor = await conn.execute("PRAGMA busy_timeout")
        assert (await cursor.fetchone())[0] == 250
        await conn.close()


class TestConnectionPoolAcquire:
    """Tests for ConnectionPool.acquire()."""

    async def test_auto_initializes_and_returns(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)

        async with pool.acquire() as conn:
            assert pool._initialized is True
            assert pool._pool.qsize() == 0
            assert isinstance(conn, aiosqlite.Connection)

        assert pool._pool.qsize() == 1
        await pool.close()

    async def test_blocks_when_exhausted(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)
        await pool.initialize()

        async with pool.acquire():
            with pytest.raises(asyncio.TimeoutError):
                async with asyncio.timeout(0.1):
                    async with pool.acquire():
                        pass

        await pool.close()

    async def test_acquire_timeout_raises_database_error(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1, acquire_timeout=0.05)
        await pool.initialize()

        async with pool.acquire():
            with pytest.raises(DatabaseError, match="no free connection"):
                async with pool.acquire():
                    pass

        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT 1")
            assert (await cursor.fetchone())[0] == 1

        await pool.close()


class TestConnectionPoolTransaction:
    """Tests for ConnectionPool.transaction()."""

    @pytest.fixture
    async def table_pool(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1, busy_timeout=100)
        async with pool.acquire() as conn:
            await conn.execute("CREATE TABLE IF NOT EXISTS bags (id INTEGER PRIMARY KEY, n INTEGER)")
            await conn.commit()
        yield pool
        await pool.close()

    async def test_commits_on_success(self, table_pool):
        async with table_pool.transaction() as conn:
            await conn.execute("INSERT INTO bags (n) VALUES (?)", (10,))

        async with table_pool.acquire() as conn:
            cursor = await conn.execute("SELECT n FROM bags")
            assert (await cursor.fetchone())["n"] == 10

    async def test_rolls_back_on_exception(self, table_pool):
        with pytest.raises(ValueError):
            async with table_pool.transaction(immediate=True) as conn:
                await conn.execute("INSERT INTO bags (n) VALUES (?)", (10,))
                raise ValueError("abort")

        async with table_pool.acquire() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM bags")
            assert (await cursor.fetchone())[0] == 0

    async def test_immediate_takes_write_lock(self, table_pool, temp_db_path: Path):
        other = ConnectionPool(temp_db_path, pool_size=1, busy_timeout=100)

        async with table_pool.transaction(immediate=True):
            with pytest.raises(aiosqlite.OperationalError, match="locked"):
                async with other.transaction(immediate=True):
                    pass

        await other.close()


class TestConnectionPoolClose:
    """Tests for ConnectionPool.close()."""

    async def test_close_resets_pool(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=2)
        await pool.initialize()

        await pool.close()

        assert pool._connections == []
        assert pool._initialized is False
        assert pool._pool.qsize() == 0

    async def test_reinitialize_after_close(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=2)
        await pool.initialize()
        await pool.close()

        await pool.initialize()

        assert pool._pool.qsize() == 2
        await pool.close()

    async def test_close_safe_when_not_initialized(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)
        await pool.close()


class TestGlobalPool:
    """Tests for get_pool() and close_pool()."""

    async def test_get_pool_uses_settings(self, mock_settings):
        conn_module._pool = None

        with patch.object(conn_module, "get_settings", return_value=mock_settings):
            pool = await get_pool()

            assert pool.db_path == mock_settings.storage.db_path
            assert pool.busy_timeout == 100
            assert pool.acquire_timeout == 1.0
            assert await get_pool() is pool

            await close_pool()
            assert conn_module._pool is None

    async def test_close_pool_safe_when_none(self):
        conn_module._pool = None
        await close_pool()
