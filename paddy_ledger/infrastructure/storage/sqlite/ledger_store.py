"""SQLite implementation of ledger storage."""

from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import date, datetime

import aiosqlite

from paddy_ledger.config import get_logger
from paddy_ledger.core.entities.location import Location, ProductionLot, Warehouse
from paddy_ledger.core.entities.movement import (
    Movement,
    MovementStatus,
    MovementType,
    format_serial_no,
)
from paddy_ledger.core.exceptions import (
    ConcurrentUpdateConflictError,
    DatabaseError,
    MovementNotFoundError,
)
from paddy_ledger.core.interfaces.ledger_store import ILedgerStore, ILedgerTransaction
from paddy_ledger.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool

logger = get_logger(__name__)

_MOVEMENT_COLUMNS = (
    "serial_no",
    "movement_date",
    "sequence",
    "movement_type",
    "variety",
    "bags",
    "gross_weight",
    "tare_weight",
    "from_location_id",
    "from_warehouse_id",
    "to_location_id",
    "to_warehouse_id",
    "production_lot_id",
    "acquisition_rate",
    "snapshot_rate",
    "status",
    "created_by",
    "approved_by",
    "approver_role",
    "approved_at",
    "admin_approved_by",
    "admin_approved_at",
    "rejected_by",
    "rejected_at",
    "remarks",
    "created_at",
)


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _movement_params(movement: Movement) -> tuple:
    return (
        movement.serial_no,
        movement.movement_date.isoformat(),
        movement.sequence,
        movement.movement_type.value,
        movement.variety,
        movement.bags,
        movement.gross_weight,
        movement.tare_weight,
        movement.from_location_id,
        movement.from_warehouse_id,
        movement.to_location_id,
        movement.to_warehouse_id,
        movement.production_lot_id,
        movement.acquisition_rate,
        movement.snapshot_rate,
        movement.status.value,
        movement.created_by,
        movement.approved_by,
        movement.approver_role,
        _iso(movement.approved_at),
        movement.admin_approved_by,
        _iso(movement.admin_approved_at),
        movement.rejected_by,
        _iso(movement.rejected_at),
        movement.remarks,
        _iso(movement.created_at),
    )


def _row_to_movement(row: aiosqlite.Row) -> Movement:
    return Movement(
        id=row["id"],
        serial_no=row["serial_no"],
        movement_date=date.fromisoformat(row["movement_date"]),
        sequence=row["sequence"],
        movement_type=MovementType(row["movement_type"]),
        variety=row["variety"],
        bags=row["bags"],
        gross_weight=row["gross_weight"],
        tare_weight=row["tare_weight"],
        from_location_id=row["from_location_id"],
        from_warehouse_id=row["from_warehouse_id"],
        to_location_id=row["to_location_id"],
        to_warehouse_id=row["to_warehouse_id"],
        production_lot_id=row["production_lot_id"],
        acquisition_rate=row["acquisition_rate"],
        snapshot_rate=row["snapshot_rate"],
        status=MovementStatus(row["status"]),
        created_by=row["created_by"],
        approved_by=row["approved_by"],
        approver_role=row["approver_role"],
        approved_at=_parse_datetime(row["approved_at"]),
        admin_approved_by=row["admin_approved_by"],
        admin_approved_at=_parse_datetime(row["admin_approved_at"]),
        rejected_by=row["rejected_by"],
        rejected_at=_parse_datetime(row["rejected_at"]),
        remarks=row["remarks"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _row_to_location(row: aiosqlite.Row) -> Location:
    return Location(
        id=row["id"],
        code=row["code"],
        name=row["name"],
        warehouse_id=row["warehouse_id"],
        variety=row["variety"],
        bags=row["bags"],
        net_weight=row["net_weight"],
        weighted_average_rate=row["weighted_average_rate"],
        version=row["version"],
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


async def _fetch_movement(conn: aiosqlite.Connection, movement_id: int) -> Movement | None:
    cursor = await conn.execute("SELECT * FROM movements WHERE id = ?", (movement_id,))
    row = await cursor.fetchone()
    return _row_to_movement(row) if row else None


async def _fetch_location(conn: aiosqlite.Connection, location_id: int) -> Location | None:
    cursor = await conn.execute("SELECT * FROM locations WHERE id = ?", (location_id,))
    row = await cursor.fetchone()
    return _row_to_location(row) if row else None


async def _fetch_location_movements(
    conn: aiosqlite.Connection,
    location_id: int,
    until: date | None,
    status: MovementStatus | None,
) -> list[Movement]:
    query = "SELECT * FROM movements WHERE (from_location_id = ? OR to_location_id = ?)"
    params: list = [location_id, location_id]
    if until is not None:
        query += " AND movement_date <= ?"
        params.append(until.isoformat())
    if status is not None:
        query += " AND status = ?"
        params.append(status.value)
    query += " ORDER BY movement_date, sequence"

    cursor = await conn.execute(query, params)
    rows = await cursor.fetchall()
    return [_row_to_movement(row) for row in rows]


def _is_lock_error(error: aiosqlite.OperationalError) -> bool:
    message = str(error).lower()
    return "locked" in message or "busy" in message


class SQLiteLedgerStore(ILedgerStore):
    """
    SQLite implementation of the location registry and movement ledger.

    Approval transactions run under BEGIN IMMEDIATE. SQLite holds one write
    lock per database, so transactions on disjoint locations serialize too;
    location rows additionally carry a version for optimistic checks.
    """

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    async def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = await get_pool()
        return self._pool

    # Location registry

    async def create_warehouse(self, warehouse: Warehouse) -> Warehouse:
        """Create a warehouse."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            cursor = await conn.execute(
                "INSERT INTO warehouses (code, name) VALUES (?, ?)",
                (warehouse.code, warehouse.name),
            )
            warehouse.id = cursor.lastrowid
        logger.info("warehouse_created", warehouse_id=warehouse.id, code=warehouse.code)
        return warehouse

    async def get_warehouse(self, warehouse_id: int) -> Warehouse | None:
        """Get warehouse by ID."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT * FROM warehouses WHERE id = ?", (warehouse_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return Warehouse(id=row["id"], code=row["code"], name=row["name"])

    async def list_warehouses(self) -> list[Warehouse]:
        """List all warehouses."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT * FROM warehouses ORDER BY id")
            rows = await cursor.fetchall()
            return [Warehouse(id=r["id"], code=r["code"], name=r["name"]) for r in rows]

    async def create_location(self, location: Location) -> Location:
        """Create a sub-location."""
        location.updated_at = datetime.utcnow()
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO locations (
                    code, name, warehouse_id, variety, bags, net_weight,
                    weighted_average_rate, version, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    location.code,
                    location.name,
                    location.warehouse_id,
                    location.variety,
                    location.bags,
                    location.net_weight,
                    location.weighted_average_rate,
                    location.version,
                    location.updated_at.isoformat(),
                ),
            )
            location.id = cursor.lastrowid
        logger.info("location_created", location_id=location.id, code=location.code)
        return location

    async def get_location(self, location_id: int) -> Location | None:
        """Get location by ID."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            return await _fetch_location(conn, location_id)

    async def list_locations(self, warehouse_id: int | None = None) -> list[Location]:
        """List sub-locations, optionally for one warehouse."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            if warehouse_id is None:
                cursor = await conn.execute("SELECT * FROM locations ORDER BY id")
            else:
                cursor = await conn.execute(
                    "SELECT * FROM locations WHERE warehouse_id = ? ORDER BY id",
                    (warehouse_id,),
                )
            rows = await cursor.fetchall()
            return [_row_to_location(row) for row in rows]

    async def create_production_lot(self, lot: ProductionLot) -> ProductionLot:
        """Create a production lot."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            cursor = await conn.execute(
                "INSERT INTO production_lots (code, variety) VALUES (?, ?)",
                (lot.code, lot.variety),
            )
            lot.id = cursor.lastrowid
        return lot

    async def get_production_lot(self, lot_id: int) -> ProductionLot | None:
        """Get production lot by ID."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT * FROM production_lots WHERE id = ?", (lot_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return ProductionLot(id=row["id"], code=row["code"], variety=row["variety"])

    async def list_production_lots(self) -> list[ProductionLot]:
        """List all production lots."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT * FROM production_lots ORDER BY id")
            rows = await cursor.fetchall()
            return [
                ProductionLot(id=r["id"], code=r["code"], variety=r["variety"]) for r in rows
            ]

    # Movements

    async def create_movement(self, movement: Movement) -> Movement:
        """Persist a new movement, assigning id, sequence and serial number."""
        placeholders = ", ".join("?" for _ in _MOVEMENT_COLUMNS)
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            cursor = await conn.execute(
                f"INSERT INTO movements ({', '.join(_MOVEMENT_COLUMNS)}) "
                f"VALUES ({placeholders})",
                _movement_params(movement),
            )
            movement.id = cursor.lastrowid
            movement.sequence = movement.id
            movement.serial_no = movement.serial_no or format_serial_no(
                movement.movement_type, movement.id
            )
            await conn.execute(
                "UPDATE movements SET sequence = ?, serial_no = ? WHERE id = ?",
                (movement.sequence, movement.serial_no, movement.id),
            )
        logger.info(
            "movement_recorded",
            movement_id=movement.id,
            serial_no=movement.serial_no,
            type=movement.movement_type.value,
        )
        return movement

    async def get_movement(self, movement_id: int) -> Movement | None:
        """Get movement by ID."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            return await _fetch_movement(conn, movement_id)

    async def list_movements(
        self,
        date_from: date | None = None,
        date_to: date | None = None,
        status: MovementStatus | None = None,
    ) -> list[Movement]:
        """List movements in a date range, ordered by (movement_date, sequence)."""
        query = "SELECT * FROM movements WHERE 1=1"
        params: list = []
        if date_from is not None:
            query += " AND movement_date >= ?"
            params.append(date_from.isoformat())
        if date_to is not None:
            query += " AND movement_date <= ?"
            params.append(date_to.isoformat())
        if status is not None:
            query += " AND status = ?"
            params.append(status.value)
        query += " ORDER BY movement_date, sequence"

        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            return [_row_to_movement(row) for row in rows]

    async def list_location_movements(
        self,
        location_id: int,
        until: date | None = None,
        status: MovementStatus | None = MovementStatus.APPROVED,
    ) -> list[Movement]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            return await _fetch_location_movements(conn, location_id, until, status)

    @asynccontextmanager
    async def transaction(
        self, location_ids: Iterable[int]
    ) -> AsyncIterator[ILedgerTransaction]:
        ids = sorted(set(location_ids))
        pool = await self._get_pool()
        try:
            async with pool.transaction(immediate=True) as conn:
                yield _SQLiteTransaction(conn)
        except aiosqlite.OperationalError as e:
            if _is_lock_error(e):
                logger.warning("ledger_transaction_locked", location_ids=ids, error=str(e))
                raise ConcurrentUpdateConflictError(ids, str(e)) from e
            raise DatabaseError("transaction", str(e)) from e


class _SQLiteTransaction(ILedgerTransaction):
    """Reads and writes on the connection holding the write lock."""

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def get_movement(self, movement_id: int) -> Movement | None:
        return await _fetch_movement(self._conn, movement_id)

    async def get_location(self, location_id: int) -> Location | None:
        return await _fetch_location(self._conn, location_id)

    async def list_location_movements(
        self,
        location_id: int,
        until: date | None = None,
        status: MovementStatus | None = MovementStatus.APPROVED,
    ) -> list[Movement]:
        return await _fetch_location_movements(self._conn, location_id, until, status)

    async def update_movement(self, movement: Movement) -> Movement:
        cursor = await self._conn.execute(
            """
            UPDATE movements SET
                status = ?,
                snapshot_rate = ?,
                approved_by = ?,
                approver_role = ?,
                approved_at = ?,
                admin_approved_by = ?,
                admin_approved_at = ?,
                rejected_by = ?,
                rejected_at = ?,
                remarks = ?
            WHERE id = ?
            """,
            (
                movement.status.value,
                movement.snapshot_rate,
                movement.approved_by,
                movement.approver_role,
                _iso(movement.approved_at),
                movement.admin_approved_by,
                _iso(movement.admin_approved_at),
                movement.rejected_by,
                _iso(movement.rejected_at),
                movement.remarks,
                movement.id,
            ),
        )
        if cursor.rowcount == 0:
            raise MovementNotFoundError(movement.id or 0)
        return movement

    async def update_location(self, location: Location) -> Location:
        updated_at = datetime.utcnow()
        cursor = await self._conn.execute(
            """
            UPDATE locations SET
                bags = ?,
                net_weight = ?,
                weighted_average_rate = ?,
                version = version + 1,
                updated_at = ?
            WHERE id = ? AND version = ?
            """,
            (
                location.bags,
                location.net_weight,
                location.weighted_average_rate,
                updated_at.isoformat(),
                location.id,
                location.version,
            ),
        )
        if cursor.rowcount == 0:
            raise ConcurrentUpdateConflictError([location.id or 0], "stale version")
        return location.model_copy(
            update={"version": location.version + 1, "updated_at": updated_at}
        )
