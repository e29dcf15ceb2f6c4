"""SQLite storage implementations."""

from paddy_ledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_pool,
)
from paddy_ledger.infrastructure.storage.sqlite.ledger_store import SQLiteLedgerStore
from paddy_ledger.infrastructure.storage.sqlite.schema import (
    SCHEMA_VERSION,
    apply_schema,
    initialize_database,
)

# Singleton instance
_ledger_store: SQLiteLedgerStore | None = None


async def get_ledger_store() -> SQLiteLedgerStore:
    """Get singleton ledger store instance with the schema applied."""
    global _ledger_store
    if _ledger_store is None:
        pool = await get_pool()
        await initialize_database(pool)
        _ledger_store = SQLiteLedgerStore(pool)
    return _ledger_store


async def close_ledger_store() -> None:
    """Drop the singleton store and close the global pool."""
    global _ledger_store
    _ledger_store = None
    await close_pool()


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    # Schema
    "SCHEMA_VERSION",
    "apply_schema",
    "initialize_database",
    # Store
    "SQLiteLedgerStore",
    "get_ledger_store",
    "close_ledger_store",
]
