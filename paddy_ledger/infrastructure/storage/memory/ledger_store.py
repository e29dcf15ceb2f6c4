"""In-process implementation of ledger storage."""

import asyncio
import itertools
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import date, datetime

from paddy_ledger.config import get_logger
from paddy_ledger.core.entities.location import Location, ProductionLot, Warehouse
from paddy_ledger.core.entities.movement import Movement, MovementStatus, format_serial_no
from paddy_ledger.core.exceptions import (
    ConcurrentUpdateConflictError,
    LocationNotFoundError,
    MovementNotFoundError,
)
from paddy_ledger.core.interfaces.ledger_store import ILedgerStore, ILedgerTransaction

logger = get_logger(__name__)


def _select_location_movements(
    movements: Iterable[Movement],
    location_id: int,
    until: date | None,
    status: MovementStatus | None,
) -> list[Movement]:
    selected = [
        m.model_copy(deep=True)
        for m in movements
        if m.touches(location_id)
        and (until is None or m.movement_date <= until)
        and (status is None or m.status == status)
    ]
    return sorted(selected, key=lambda m: m.ordering_key)


class InMemoryLedgerStore(ILedgerStore):
    """
    Dict-backed ledger store.

    Each location has its own asyncio.Lock, so approvals on disjoint locations
    run concurrently while approvals sharing a location serialize. Locks are
    taken in id order to avoid deadlocks between transfers.
    """

    def __init__(self, lock_timeout: float = 5.0) -> None:
        self.lock_timeout = lock_timeout
        self._warehouses: dict[int, Warehouse] = {}
        self._locations: dict[int, Location] = {}
        self._lots: dict[int, ProductionLot] = {}
        self._movements: dict[int, Movement] = {}
        self._locks: dict[int, asyncio.Lock] = {}
        self._ids = {
            "warehouse": itertools.count(1),
            "location": itertools.count(1),
            "lot": itertools.count(1),
            "movement": itertools.count(1),
        }

    # Location registry

    async def create_warehouse(self, warehouse: Warehouse) -> Warehouse:
        stored = warehouse.model_copy(update={"id": next(self._ids["warehouse"])})
        self._warehouses[stored.id] = stored  # type: ignore[index]
        return stored.model_copy()

    async def get_warehouse(self, warehouse_id: int) -> Warehouse | None:
        warehouse = self._warehouses.get(warehouse_id)
        return warehouse.model_copy() if warehouse else None

    async def list_warehouses(self) -> list[Warehouse]:
        return [w.model_copy() for w in self._warehouses.values()]

    async def create_location(self, location: Location) -> Location:
        stored = location.model_copy(update={"id": next(self._ids["location"])})
        self._locations[stored.id] = stored  # type: ignore[index]
        logger.info("location_created", location_id=stored.id, code=stored.code)
        return stored.model_copy()

    async def get_location(self, location_id: int) -> Location | None:
        location = self._locations.get(location_id)
        return location.model_copy() if location else None

    async def list_locations(self, warehouse_id: int | None = None) -> list[Location]:
        return [
            loc.model_copy()
            for loc in self._locations.values()
            if warehouse_id is None or loc.warehouse_id == warehouse_id
        ]

    async def create_production_lot(self, lot: ProductionLot) -> ProductionLot:
        stored = lot.model_copy(update={"id": next(self._ids["lot"])})
        self._lots[stored.id] = stored  # type: ignore[index]
        return stored.model_copy()

    async def get_production_lot(self, lot_id: int) -> ProductionLot | None:
        lot = self._lots.get(lot_id)
        return lot.model_copy() if lot else None

    async def list_production_lots(self) -> list[ProductionLot]:
        return [lot.model_copy() for lot in self._lots.values()]

    # Movements

    async def create_movement(self, movement: Movement) -> Movement:
        movement_id = next(self._ids["movement"])
        stored = movement.model_copy(
            deep=True,
            update={
                "id": movement_id,
                "sequence": movement_id,
                "serial_no": movement.serial_no
                or format_serial_no(movement.movement_type, movement_id),
            },
        )
        self._movements[movement_id] = stored
        logger.info(
            "movement_recorded",
            movement_id=movement_id,
            serial_no=stored.serial_no,
            type=stored.movement_type.value,
        )
        return stored.model_copy(deep=True)

    async def get_movement(self, movement_id: int) -> Movement | None:
        movement = self._movements.get(movement_id)
        return movement.model_copy(deep=True) if movement else None

    async def list_movements(
        self,
        date_from: date | None = None,
        date_to: date | None = None,
        status: MovementStatus | None = None,
    ) -> list[Movement]:
        selected = [
            m.model_copy(deep=True)
            for m in self._movements.values()
            if (date_from is None or m.movement_date >= date_from)
            and (date_to is None or m.movement_date <= date_to)
            and (status is None or m.status == status)
        ]
        return sorted(selected, key=lambda m: m.ordering_key)

    async def list_location_movements(
        self,
        location_id: int,
        until: date | None = None,
        status: MovementStatus | None = MovementStatus.APPROVED,
    ) -> list[Movement]:
        return _select_location_movements(self._movements.values(), location_id, until, status)

    @asynccontextmanager
    async def transaction(
        self, location_ids: Iterable[int]
    ) -> AsyncIterator[ILedgerTransaction]:
        ids = sorted(set(location_ids))
        acquired: list[asyncio.Lock] = []
        try:
            for location_id in ids:
                lock = self._locks.setdefault(location_id, asyncio.Lock())
                try:
                    await asyncio.wait_for(lock.acquire(), timeout=self.lock_timeout)
                except asyncio.TimeoutError:
                    logger.warning("location_lock_timeout", location_id=location_id)
                    raise ConcurrentUpdateConflictError(ids) from None
                acquired.append(lock)

            tx = _MemoryTransaction(self, set(ids))
            yield tx
            tx.commit()
        finally:
            for lock in reversed(acquired):
                lock.release()


class _MemoryTransaction(ILedgerTransaction):
    """Staged writes over an InMemoryLedgerStore, applied on commit."""

    def __init__(self, store: InMemoryLedgerStore, locked_ids: set[int]) -> None:
        self._store = store
        self._locked_ids = locked_ids
        self._movements: dict[int, Movement] = {}
        self._locations: dict[int, Location] = {}

    async def get_movement(self, movement_id: int) -> Movement | None:
        movement = self._movements.get(movement_id) or self._store._movements.get(movement_id)
        return movement.model_copy(deep=True) if movement else None

    async def get_location(self, location_id: int) -> Location | None:
        location = self._locations.get(location_id) or self._store._locations.get(location_id)
        return location.model_copy() if location else None

    async def list_location_movements(
        self,
        location_id: int,
        until: date | None = None,
        status: MovementStatus | None = MovementStatus.APPROVED,
    ) -> list[Movement]:
        merged = {**self._store._movements, **self._movements}
        return _select_location_movements(merged.values(), location_id, until, status)

    async def update_movement(self, movement: Movement) -> Movement:
        if movement.id is None or movement.id not in self._store._movements:
            raise MovementNotFoundError(movement.id or 0)
        self._movements[movement.id] = movement.model_copy(deep=True)
        return movement

    async def update_location(self, location: Location) -> Location:
        if location.id is None or location.id not in self._store._locations:
            raise LocationNotFoundError(location.id or 0)
        if location.id not in self._locked_ids:
            raise ConcurrentUpdateConflictError([location.id], "location not locked")
        current = self._locations.get(location.id) or self._store._locations[location.id]
        if current.version != location.version:
            raise ConcurrentUpdateConflictError([location.id], "stale version")
        staged = location.model_copy(
            update={"version": location.version + 1, "updated_at": datetime.utcnow()}
        )
        self._locations[location.id] = staged
        return staged.model_copy()

    def commit(self) -> None:
        self._store._movements.update(self._movements)
        self._store._locations.update(self._locations)
