"""Core domain entities."""

from paddy_ledger.core.entities.classification import (
    SNAPSHOT_CATEGORIES,
    ClassifiedMovement,
    ForProductionPurchase,
    Loading,
    MovementCategory,
    NormalPurchase,
    ProductionShifting,
    Shifting,
)
from paddy_ledger.core.entities.location import Location, ProductionLot, Warehouse
from paddy_ledger.core.entities.movement import (
    Movement,
    MovementStatus,
    MovementType,
    format_serial_no,
)
from paddy_ledger.core.entities.stock import (
    ContinuityViolation,
    DailyStockReport,
    DailyStockSnapshot,
    LocationState,
    StockBalance,
    StockDelta,
    StockKind,
)

__all__ = [
    # Location registry
    "Warehouse",
    "Location",
    "ProductionLot",
    # Movements
    "Movement",
    "MovementType",
    "MovementStatus",
    "format_serial_no",
    # Classification
    "MovementCategory",
    "ClassifiedMovement",
    "NormalPurchase",
    "ForProductionPurchase",
    "Shifting",
    "ProductionShifting",
    "Loading",
    "SNAPSHOT_CATEGORIES",
    # Stock views
    "LocationState",
    "StockKind",
    "StockBalance",
    "StockDelta",
    "DailyStockSnapshot",
    "ContinuityViolation",
    "DailyStockReport",
]
