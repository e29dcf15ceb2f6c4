"""Request DTOs for ledger use cases.

Pydantic v2 models validating caller input before it reaches the core.
"""

from datetime import date

from pydantic import BaseModel, Field

from paddy_ledger.core.entities.movement import MovementType


class RecordMovementRequest(BaseModel):
    """Request to record a new pending movement."""

    movement_date: date = Field(..., description="Business date of the movement")
    movement_type: MovementType = Field(..., description="Kind of movement")
    variety: str = Field(..., min_length=1, description="Paddy variety")
    bags: int = Field(..., gt=0, description="Number of bags moved")
    gross_weight: float = Field(..., gt=0, description="Gross weight in kg")
    tare_weight: float = Field(default=0.0, ge=0, description="Tare weight in kg")
    from_location_id: int | None = Field(default=None, description="Source sub-location")
    from_warehouse_id: int | None = Field(
        default=None,
        description="Source warehouse (filled from the sub-location when omitted)",
    )
    to_location_id: int | None = Field(default=None, description="Destination sub-location")
    to_warehouse_id: int | None = Field(
        default=None,
        description="Destination warehouse (filled from the sub-location when omitted)",
    )
    production_lot_id: int | None = Field(default=None, description="Production lot (outturn)")
    acquisition_rate: float | None = Field(
        default=None, ge=0, description="Purchase price per kg of net weight"
    )
    created_by: int | None = Field(default=None, description="User recording the movement")
    remarks: str | None = Field(default=None, description="Free-text remarks")


class ApproveMovementRequest(BaseModel):
    """Request to approve a single movement."""

    movement_id: int = Field(..., description="Movement to approve")
    approver_id: int = Field(..., description="Approving user")
    approver_role: str = Field(..., description="Role of the approving user")


class BulkApproveRequest(BaseModel):
    """Request to approve a batch of movements in order."""

    movement_ids: list[int] = Field(..., min_length=1, description="Movements in approval order")
    approver_id: int = Field(..., description="Approving user")
    approver_role: str = Field(..., description="Role of the approving user")
    all_or_nothing: bool = Field(
        default=False, description="Roll back the whole batch if any record fails"
    )
    stop_on_error: bool = Field(
        default=False, description="Stop at the first failure, skipping the rest"
    )


class RejectMovementRequest(BaseModel):
    """Request to reject a pending movement."""

    movement_id: int = Field(..., description="Movement to reject")
    rejected_by: int = Field(..., description="Rejecting user")
    approver_role: str = Field(..., description="Role of the rejecting user")
    remarks: str | None = Field(default=None, description="Reason for rejection")


class DailyStockRequest(BaseModel):
    """Request for a daily stock report."""

    date_from: date = Field(..., description="First day of the report")
    date_to: date = Field(..., description="Last day of the report (inclusive)")
    strict: bool = Field(
        default=False, description="Fail instead of reporting continuity violations"
    )


class ReconcileRequest(BaseModel):
    """Request to compare cached location state with a full replay."""

    location_ids: list[int] | None = Field(
        default=None, description="Locations to check (all when omitted)"
    )
    repair: bool = Field(default=False, description="Rewrite drifted cached state")
