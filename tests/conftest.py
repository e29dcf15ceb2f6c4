"""Pytest configuration and fixtures."""

from collections.abc import Generator
from dataclasses import dataclass
from datetime import date, datetime

import pytest

from paddy_ledger.application.use_cases.approve_movements import ApproveMovementsUseCase
from paddy_ledger.config import reset_settings
from paddy_ledger.config.settings import LedgerSettings
from paddy_ledger.core.entities import (
    Location,
    Movement,
    MovementStatus,
    MovementType,
    ProductionLot,
    Warehouse,
)
from paddy_ledger.core.interfaces import ILedgerStore
from paddy_ledger.core.services import LocationStateCache, StockCalculationService
from paddy_ledger.infrastructure.storage.memory import InMemoryLedgerStore

FIXED_NOW = datetime(2024, 3, 1, 10, 0, 0)
DAY_ONE = date(2024, 1, 1)


@dataclass
class SeededLedger:
    """A store with two warehouses, three sub-locations and one production lot."""

    store: ILedgerStore
    main: Warehouse
    annex: Warehouse
    a: Location
    b: Location
    c: Location
    lot: ProductionLot

    async def record(
        self,
        movement_type: MovementType,
        bags: int,
        weight: float,
        on: date = DAY_ONE,
        status: MovementStatus = MovementStatus.PENDING,
        **routing,
    ) -> Movement:
        return await self.store.create_movement(
            Movement(
                movement_date=on,
                movement_type=movement_type,
                variety="Sona",
                bags=bags,
                gross_weight=weight,
                status=status,
                **routing,
            )
        )

    async def purchase(self, location: Location, bags: int, weight: float, rate: float | None, **kw) -> Movement:
        return await self.record(
            MovementType.PURCHASE,
            bags,
            weight,
            to_location_id=location.id,
            to_warehouse_id=location.warehouse_id,
            acquisition_rate=rate,
            **kw,
        )

    async def production_purchase(self, bags: int, weight: float, rate: float, **kw) -> Movement:
        return await self.record(
            MovementType.PURCHASE,
            bags,
            weight,
            production_lot_id=self.lot.id,
            acquisition_rate=rate,
            **kw,
        )

    async def shift(self, source: Location, dest: Location, bags: int, weight: float, **kw) -> Movement:
        return await self.record(
            MovementType.SHIFTING,
            bags,
            weight,
            from_location_id=source.id,
            from_warehouse_id=source.warehouse_id,
            to_location_id=dest.id,
            to_warehouse_id=dest.warehouse_id,
            **kw,
        )

    async def production_shift(self, source: Location, bags: int, weight: float, **kw) -> Movement:
        return await self.record(
            MovementType.PRODUCTION_SHIFTING,
            bags,
            weight,
            from_location_id=source.id,
            from_warehouse_id=source.warehouse_id,
            production_lot_id=self.lot.id,
            **kw,
        )

    async def load(self, source: Location, bags: int, weight: float, **kw) -> Movement:
        return await self.record(
            MovementType.LOADING,
            bags,
            weight,
            from_location_id=source.id,
            from_warehouse_id=source.warehouse_id,
            **kw,
        )


async def seed_ledger(store: ILedgerStore) -> SeededLedger:
    """Create the standard registry in any store."""
    main = await store.create_warehouse(Warehouse(code="W1", name="Main Godown"))
    annex = await store.create_warehouse(Warehouse(code="W2", name="Annex"))
    a = await store.create_location(Location(code="K1", warehouse_id=main.id, variety="Sona"))
    b = await store.create_location(Location(code="K2", warehouse_id=main.id, variety="Sona"))
    c = await store.create_location(Location(code="K3", warehouse_id=annex.id, variety="Sona"))
    lot = await store.create_production_lot(ProductionLot(code="OUT1", variety="Sona"))
    return SeededLedger(store=store, main=main, annex=annex, a=a, b=b, c=c, lot=lot)


@pytest.fixture(autouse=True)
def clean_settings() -> Generator[None, None, None]:
    """Reset global settings around every test."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def ledger_settings() -> LedgerSettings:
    """Approval settings with fast retries."""
    return LedgerSettings(max_retries=3, retry_delay=0.0, lock_timeout=0.2)


@pytest.fixture
def memory_store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore(lock_timeout=0.2)


@pytest.fixture
async def ledger(memory_store: InMemoryLedgerStore) -> SeededLedger:
    return await seed_ledger(memory_store)


@pytest.fixture
def state_cache() -> LocationStateCache:
    return LocationStateCache()


@pytest.fixture
def calculator(memory_store, state_cache) -> StockCalculationService:
    return StockCalculationService(store=memory_store, cache=state_cache)


@pytest.fixture
def approver(memory_store, calculator, ledger_settings) -> ApproveMovementsUseCase:
    return ApproveMovementsUseCase(
        store=memory_store,
        calculator=calculator,
        clock=lambda: FIXED_NOW,
        settings=ledger_settings,
    )


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def ledger_factory():
    """Seed the standard registry into a given store."""
    return seed_ledger
