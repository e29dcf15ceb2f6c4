"""Lookup of locations, warehouses and production lots for key building."""

from __future__ import annotations

from dataclasses import dataclass, field

from paddy_ledger.core.entities.location import Location, ProductionLot, Warehouse
from paddy_ledger.core.interfaces.ledger_store import ILedgerStore


@dataclass
class LocationDirectory:
    """Snapshot of the location registry keyed by id."""

    locations: dict[int, Location] = field(default_factory=dict)
    warehouses: dict[int, Warehouse] = field(default_factory=dict)
    lots: dict[int, ProductionLot] = field(default_factory=dict)

    @classmethod
    async def load(cls, store: ILedgerStore) -> LocationDirectory:
        """Read the whole registry from the store."""
        locations = await store.list_locations()
        warehouses = await store.list_warehouses()
        lots = await store.list_production_lots()
        return cls(
            locations={loc.id: loc for loc in locations if loc.id is not None},
            warehouses={wh.id: wh for wh in warehouses if wh.id is not None},
            lots={lot.id: lot for lot in lots if lot.id is not None},
        )

    def location(self, location_id: int | None) -> Location | None:
        if location_id is None:
            return None
        return self.locations.get(location_id)

    def warehouse_of(self, location: Location | None) -> Warehouse | None:
        if location is None:
            return None
        return self.warehouses.get(location.warehouse_id)

    def lot(self, lot_id: int | None) -> ProductionLot | None:
        if lot_id is None:
            return None
        return self.lots.get(lot_id)
