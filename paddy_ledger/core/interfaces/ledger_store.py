"""Abstract interfaces for ledger storage."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from contextlib import AbstractAsyncContextManager
from datetime import date

from paddy_ledger.core.entities.location import Location, ProductionLot, Warehouse
from paddy_ledger.core.entities.movement import Movement, MovementStatus


class ILedgerReader(ABC):
    """Read access shared by the store and by open transactions."""

    @abstractmethod
    async def get_movement(self, movement_id: int) -> Movement | None:
        """Get movement by ID."""
        pass

    @abstractmethod
    async def get_location(self, location_id: int) -> Location | None:
        """Get location by ID."""
        pass

    @abstractmethod
    async def list_location_movements(
        self,
        location_id: int,
        until: date | None = None,
        status: MovementStatus | None = MovementStatus.APPROVED,
    ) -> list[Movement]:
        """
        List movements naming the location as source or destination.

        Ordered by (movement_date, sequence) ascending. ``until`` is inclusive.
        """
        pass


class ILedgerTransaction(ILedgerReader):
    """
    Atomic unit of work holding locks on a set of locations.

    Writes become visible to other readers only when the transaction commits.
    """

    @abstractmethod
    async def update_movement(self, movement: Movement) -> Movement:
        """Write status and snapshot fields of a movement."""
        pass

    @abstractmethod
    async def update_location(self, location: Location) -> Location:
        """
        Write the cached cost-state of a location.

        Raises ConcurrentUpdateConflictError if the row changed since it was read.
        """
        pass


class ILedgerStore(ILedgerReader):
    """Interface for location registry and movement persistence."""

    # Location registry

    @abstractmethod
    async def create_warehouse(self, warehouse: Warehouse) -> Warehouse:
        """Create a warehouse."""
        pass

    @abstractmethod
    async def get_warehouse(self, warehouse_id: int) -> Warehouse | None:
        """Get warehouse by ID."""
        pass

    @abstractmethod
    async def list_warehouses(self) -> list[Warehouse]:
        """List all warehouses."""
        pass

    @abstractmethod
    async def create_location(self, location: Location) -> Location:
        """Create a sub-location."""
        pass

    @abstractmethod
    async def list_locations(self, warehouse_id: int | None = None) -> list[Location]:
        """List sub-locations, optionally for one warehouse."""
        pass

    @abstractmethod
    async def create_production_lot(self, lot: ProductionLot) -> ProductionLot:
        """Create a production lot."""
        pass

    @abstractmethod
    async def get_production_lot(self, lot_id: int) -> ProductionLot | None:
        """Get production lot by ID."""
        pass

    @abstractmethod
    async def list_production_lots(self) -> list[ProductionLot]:
        """List all production lots."""
        pass

    # Movements

    @abstractmethod
    async def create_movement(self, movement: Movement) -> Movement:
        """Persist a new movement, assigning id, sequence and serial number."""
        pass

    @abstractmethod
    async def list_movements(
        self,
        date_from: date | None = None,
        date_to: date | None = None,
        status: MovementStatus | None = None,
    ) -> list[Movement]:
        """List movements in a date range, ordered by (movement_date, sequence)."""
        pass

    @abstractmethod
    def transaction(
        self, location_ids: Iterable[int]
    ) -> AbstractAsyncContextManager[ILedgerTransaction]:
        """
        Open an atomic unit of work locking the given locations.

        Usage:
            async with store.transaction([1, 2]) as tx:
                await tx.update_location(...)

        Commits on success, rolls back on exception. Raises
        ConcurrentUpdateConflictError if the locks cannot be taken in time.
        """
        pass
