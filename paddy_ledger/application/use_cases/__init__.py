"""Application use cases."""

from paddy_ledger.application.use_cases.approve_movements import (
    ApprovalOutcome,
    ApprovalResult,
    ApproveMovementsUseCase,
)
from paddy_ledger.application.use_cases.daily_stock_report import DailyStockReportUseCase
from paddy_ledger.application.use_cases.get_location_state import GetLocationStateUseCase
from paddy_ledger.application.use_cases.reconcile_locations import (
    ReconcileLocationsUseCase,
    ReconciliationResult,
)
from paddy_ledger.application.use_cases.record_movement import (
    RecordMovementResult,
    RecordMovementUseCase,
)
from paddy_ledger.application.use_cases.reject_movement import RejectMovementUseCase

__all__ = [
    # Recording
    "RecordMovementUseCase",
    "RecordMovementResult",
    # Approval workflow
    "ApproveMovementsUseCase",
    "ApprovalResult",
    "ApprovalOutcome",
    "RejectMovementUseCase",
    # Stock views
    "GetLocationStateUseCase",
    "DailyStockReportUseCase",
    "ReconcileLocationsUseCase",
    "ReconciliationResult",
]
