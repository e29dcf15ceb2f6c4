"""
Ledger database schema.

Applied idempotently; the applied version is tracked in schema_migrations.
"""

import aiosqlite

from paddy_ledger.config import get_logger
from paddy_ledger.infrastructure.storage.sqlite.connection import ConnectionPool

logger = get_logger(__name__)

SCHEMA_VERSION = "v001"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version TEXT PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS warehouses (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    code TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS locations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    code TEXT NOT NULL,
    name TEXT NOT NULL DEFAULT '',
    warehouse_id INTEGER NOT NULL REFERENCES warehouses(id) ON DELETE RESTRICT,
    variety TEXT NOT NULL,
    bags INTEGER NOT NULL DEFAULT 0,
    net_weight REAL NOT NULL DEFAULT 0,
    weighted_average_rate REAL NOT NULL DEFAULT 0,
    version INTEGER NOT NULL DEFAULT 0,
    updated_at TEXT NOT NULL,
    UNIQUE (warehouse_id, code)
);

CREATE TABLE IF NOT EXISTS production_lots (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    code TEXT NOT NULL UNIQUE,
    variety TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS movements (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    serial_no TEXT UNIQUE,
    movement_date TEXT NOT NULL,
    sequence INTEGER,
    movement_type TEXT NOT NULL
        CHECK (movement_type IN ('purchase', 'shifting', 'production-shifting', 'loading')),
    variety TEXT NOT NULL,
    bags INTEGER NOT NULL,
    gross_weight REAL NOT NULL,
    tare_weight REAL NOT NULL DEFAULT 0,
    from_location_id INTEGER REFERENCES locations(id) ON DELETE RESTRICT,
    from_warehouse_id INTEGER REFERENCES warehouses(id) ON DELETE RESTRICT,
    to_location_id INTEGER REFERENCES locations(id) ON DELETE RESTRICT,
    to_warehouse_id INTEGER REFERENCES warehouses(id) ON DELETE RESTRICT,
    production_lot_id INTEGER REFERENCES production_lots(id) ON DELETE RESTRICT,
    acquisition_rate REAL,
    snapshot_rate REAL,
    status TEXT NOT NULL DEFAULT 'pending'
        CHECK (status IN ('pending', 'approved', 'rejected')),
    created_by INTEGER,
    approved_by INTEGER,
    approver_role TEXT,
    approved_at TEXT,
    admin_approved_by INTEGER,
    admin_approved_at TEXT,
    rejected_by INTEGER,
    rejected_at TEXT,
    remarks TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_movements_date ON movements(movement_date, sequence);
CREATE INDEX IF NOT EXISTS idx_movements_from ON movements(from_location_id, status);
CREATE INDEX IF NOT EXISTS idx_movements_to ON movements(to_location_id, status);
CREATE INDEX IF NOT EXISTS idx_movements_status ON movements(status);
"""


async def apply_schema(conn: aiosqlite.Connection) -> bool:
    """
    Create ledger tables on an open connection.

    Returns True if the schema version was newly recorded.
    """
    await conn.executescript(SCHEMA_SQL)
    cursor = await conn.execute(
        "SELECT 1 FROM schema_migrations WHERE version = ?", (SCHEMA_VERSION,)
    )
    if await cursor.fetchone():
        return False
    await conn.execute(
        "INSERT INTO schema_migrations (version) VALUES (?)", (SCHEMA_VERSION,)
    )
    await conn.commit()
    return True


async def initialize_database(pool: ConnectionPool) -> bool:
    """Apply the ledger schema through a pooled connection."""
    async with pool.acquire() as conn:
        created = await apply_schema(conn)
    logger.info(
        "database_initialized",
        db_path=str(pool.db_path),
        version=SCHEMA_VERSION,
        created=created,
    )
    return created
