"""
Service factory functions for dependency injection.

This module wires storage implementations to core services. Use cases
import from here when they are not handed their collaborators explicitly.
"""

from paddy_ledger.config import get_logger, get_settings
from paddy_ledger.core.interfaces import ILedgerStore
from paddy_ledger.core.services import (
    DailyStockService,
    LocationStateCache,
    StockCalculationService,
)

logger = get_logger(__name__)

# Singleton instances
_ledger_store: ILedgerStore | None = None
_state_cache: LocationStateCache | None = None
_stock_calculation_service: StockCalculationService | None = None
_daily_stock_service: DailyStockService | None = None


async def get_ledger_store() -> ILedgerStore:
    """
    Get or create the configured ledger store.

    ``STORAGE_BACKEND=memory`` gives a process-local store; the default is
    the SQLite store with its schema applied.
    """
    global _ledger_store
    if _ledger_store is not None:
        return _ledger_store

    settings = get_settings()
    if settings.storage.backend == "memory":
        from paddy_ledger.infrastructure.storage.memory import InMemoryLedgerStore

        _ledger_store = InMemoryLedgerStore(lock_timeout=settings.ledger.lock_timeout)
    else:
        from paddy_ledger.infrastructure.storage.sqlite import (
            get_ledger_store as get_sqlite_ledger_store,
        )

        _ledger_store = await get_sqlite_ledger_store()

    logger.info("ledger_store_ready", backend=settings.storage.backend)
    return _ledger_store


def get_state_cache() -> LocationStateCache:
    """Get or create the shared location state cache."""
    global _state_cache
    if _state_cache is None:
        settings = get_settings()
        _state_cache = LocationStateCache(
            max_entries=settings.cache.location_state_max_entries,
            enabled=settings.cache.location_state_enabled,
        )
    return _state_cache


def get_stock_calculation_service(
    store: ILedgerStore,
    cache: LocationStateCache | None = None,
) -> StockCalculationService:
    """
    Get or create StockCalculationService.

    A service bound to a different store is created fresh and not cached.
    """
    global _stock_calculation_service

    if _stock_calculation_service is not None and store is _ledger_store and cache is None:
        return _stock_calculation_service

    service = StockCalculationService(store=store, cache=cache or get_state_cache())
    if store is _ledger_store and cache is None:
        _stock_calculation_service = service
    return service


def get_daily_stock_service(store: ILedgerStore) -> DailyStockService:
    """Get or create DailyStockService."""
    global _daily_stock_service

    if _daily_stock_service is not None and store is _ledger_store:
        return _daily_stock_service

    settings = get_settings()
    service = DailyStockService(
        store=store,
        max_days=settings.ledger.max_report_days,
        tolerance=settings.ledger.continuity_tolerance,
    )
    if store is _ledger_store:
        _daily_stock_service = service
    return service


async def reset_services() -> None:
    """Drop all singletons and close storage (for testing and shutdown)."""
    global _ledger_store, _state_cache, _stock_calculation_service, _daily_stock_service

    if _ledger_store is not None and get_settings().storage.backend == "sqlite":
        from paddy_ledger.infrastructure.storage.sqlite import close_ledger_store

        await close_ledger_store()

    _ledger_store = None
    _state_cache = None
    _stock_calculation_service = None
    _daily_stock_service = None
