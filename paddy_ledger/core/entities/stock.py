"""Derived stock views: location state and daily stock snapshots."""

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict

from paddy_ledger.core.entities.classification import MovementCategory


class LocationState(BaseModel):
    """Quantity and weighted-average rate of one location, from replay."""

    model_config = ConfigDict(frozen=True)

    location_id: int
    bags: int = 0
    net_weight: float = 0.0
    weighted_average_rate: float = 0.0
    as_of: date | None = None
    movement_count: int = 0

    @property
    def stock_value(self) -> float:
        return self.net_weight * self.weighted_average_rate


class StockKind(str, Enum):
    """Where a stock balance sits."""

    WAREHOUSE = "warehouse"
    PRODUCTION = "production"


class StockBalance(BaseModel):
    """Bags and weight held under one grouping key."""

    key: str
    kind: StockKind
    variety: str
    bags: int = 0
    net_weight: float = 0.0


class StockDelta(BaseModel):
    """Signed effect of one approved movement on one grouping key."""

    movement_id: int
    serial_no: str | None = None
    category: MovementCategory
    key: str
    kind: StockKind
    variety: str
    bags: int  # negative for outflow
    net_weight: float  # negative for outflow


class DailyStockSnapshot(BaseModel):
    """Opening stock, the day's deltas and closing stock for one date."""

    stock_date: date
    opening: list[StockBalance] = []
    transactions: list[StockDelta] = []
    closing: list[StockBalance] = []

    def opening_balance(self, key: str) -> StockBalance | None:
        return next((b for b in self.opening if b.key == key), None)

    def closing_balance(self, key: str) -> StockBalance | None:
        return next((b for b in self.closing if b.key == key), None)

    def opening_bags(self, kind: StockKind | None = None) -> int:
        return sum(b.bags for b in self.opening if kind is None or b.kind == kind)

    def closing_bags(self, kind: StockKind | None = None) -> int:
        return sum(b.bags for b in self.closing if kind is None or b.kind == kind)

    def net_bags(self, kind: StockKind | None = None) -> int:
        """Sum of the day's signed bag deltas."""
        return sum(d.bags for d in self.transactions if kind is None or d.kind == kind)


class ContinuityViolation(BaseModel):
    """Closing of one day disagrees with the opening of the next for a key."""

    key: str
    stock_date: date
    next_date: date
    closing_bags: int
    opening_bags: int
    closing_weight: float
    opening_weight: float

    def __str__(self) -> str:
        return (
            f"{self.key}: closing {self.closing_bags} bags on {self.stock_date} "
            f"!= opening {self.opening_bags} bags on {self.next_date}"
        )


class DailyStockReport(BaseModel):
    """Daily snapshots for a date range plus any continuity violations."""

    date_from: date
    date_to: date
    days: list[DailyStockSnapshot] = []
    violations: list[ContinuityViolation] = []

    @property
    def is_continuous(self) -> bool:
        return not self.violations
