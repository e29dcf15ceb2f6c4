"""Response DTOs for ledger use cases.

Pydantic v2 models for serializing use case results.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel

from paddy_ledger.core.entities.stock import StockBalance, StockDelta


class MovementResponse(BaseModel):
    """Movement response DTO."""

    id: int
    serial_no: str | None = None
    movement_date: date
    movement_type: str
    category: str | None = None
    variety: str
    bags: int
    net_weight: float
    from_location_id: int | None = None
    to_location_id: int | None = None
    production_lot_id: int | None = None
    acquisition_rate: float | None = None
    snapshot_rate: float | None = None
    status: str
    approved_by: int | None = None
    approved_at: datetime | None = None
    admin_approved_by: int | None = None
    rejected_by: int | None = None
    remarks: str | None = None


class LocationStateResponse(BaseModel):
    """Replayed quantity and rate of a location."""

    location_id: int
    bags: int
    net_weight: float
    weighted_average_rate: float
    stock_value: float
    as_of: date | None = None
    movement_count: int = 0


class ApprovalResultResponse(BaseModel):
    """Outcome of approving one movement."""

    movement_id: int
    outcome: str
    success: bool
    serial_no: str | None = None
    snapshot_rate: float | None = None
    retryable: bool = False
    error: dict[str, Any] | None = None


class BulkApprovalResponse(BaseModel):
    """Per-record outcomes of a bulk approval."""

    total: int
    approved: int
    failed: int
    results: list[ApprovalResultResponse]


class DailyStockDayResponse(BaseModel):
    """One day of the daily stock report."""

    stock_date: date
    opening: list[StockBalance]
    transactions: list[StockDelta]
    closing: list[StockBalance]
    opening_bags: int
    closing_bags: int


class DailyStockResponse(BaseModel):
    """Daily stock report for a date range."""

    date_from: date
    date_to: date
    is_continuous: bool
    violations: list[str] = []
    days: list[DailyStockDayResponse]


class ReconciliationResponse(BaseModel):
    """Cached versus replayed state of one location."""

    location_id: int
    location_code: str
    cached_bags: int
    cached_net_weight: float
    cached_rate: float
    replayed_bags: int | None = None
    replayed_net_weight: float | None = None
    replayed_rate: float | None = None
    drifted: bool
    repaired: bool = False
    error: dict[str, Any] | None = None
