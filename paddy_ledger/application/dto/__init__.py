"""Request and response DTOs."""

from paddy_ledger.application.dto.requests import (
    ApproveMovementRequest,
    BulkApproveRequest,
    DailyStockRequest,
    ReconcileRequest,
    RecordMovementRequest,
    RejectMovementRequest,
)
from paddy_ledger.application.dto.responses import (
    ApprovalResultResponse,
    BulkApprovalResponse,
    DailyStockDayResponse,
    DailyStockResponse,
    LocationStateResponse,
    MovementResponse,
    ReconciliationResponse,
)

__all__ = [
    # Requests
    "RecordMovementRequest",
    "ApproveMovementRequest",
    "BulkApproveRequest",
    "RejectMovementRequest",
    "DailyStockRequest",
    "ReconcileRequest",
    # Responses
    "MovementResponse",
    "LocationStateResponse",
    "ApprovalResultResponse",
    "BulkApprovalResponse",
    "DailyStockDayResponse",
    "DailyStockResponse",
    "ReconciliationResponse",
]
