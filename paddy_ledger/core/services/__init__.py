"""
Core business logic services.

Layer-pure services that depend only on:
- paddy_ledger/core/entities/*
- paddy_ledger/core/interfaces/*
- paddy_ledger/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from paddy_ledger.core.services.classifier import (
    classify_movement,
    location_key,
    production_key,
    validate_weights,
)
from paddy_ledger.core.services.daily_stock import (
    DailyStockService,
    check_continuity,
    movement_deltas,
)
from paddy_ledger.core.services.location_directory import LocationDirectory
from paddy_ledger.core.services.state_cache import LocationStateCache
from paddy_ledger.core.services.stock_calculation import (
    StockCalculationService,
    apply_inflow,
    apply_movement,
    apply_outflow,
    merge_weighted_average,
)

__all__ = [
    # Classifier
    "classify_movement",
    "validate_weights",
    "location_key",
    "production_key",
    # Stock calculation
    "StockCalculationService",
    "merge_weighted_average",
    "apply_inflow",
    "apply_outflow",
    "apply_movement",
    "LocationStateCache",
    # Daily stock
    "DailyStockService",
    "check_continuity",
    "movement_deltas",
    "LocationDirectory",
]
