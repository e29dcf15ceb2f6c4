"""
Domain exceptions for the stock ledger.

Every failure mode of the ledger core is one of these types, so callers can
turn them into per-record results without inspecting messages.
"""

from typing import Any


class LedgerError(Exception):
    """Base exception for all ledger errors."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
        }


# Validation Exceptions
class ValidationError(LedgerError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


class InvalidWeightError(ValidationError):
    """Net weight (gross - tare) is zero or negative."""

    def __init__(self, gross_weight: float, tare_weight: float, movement_id: int | None = None):
        super().__init__(
            field="net_weight",
            message=(
                f"Net weight must be greater than 0 "
                f"(gross {gross_weight} - tare {tare_weight})"
            ),
            value=gross_weight - tare_weight,
        )
        self.code = "INVALID_WEIGHT"
        self.details.update(
            {
                "gross_weight": gross_weight,
                "tare_weight": tare_weight,
                "movement_id": movement_id,
            }
        )


class InvalidMovementError(ValidationError):
    """Movement routing is structurally invalid (e.g. shifting onto itself)."""

    def __init__(self, reason: str, movement_id: int | None = None):
        super().__init__(field="routing", message=reason)
        self.code = "INVALID_MOVEMENT"
        self.details["movement_id"] = movement_id


# Classification Exceptions
class ClassificationError(LedgerError):
    """Movement cannot be mapped to exactly one category."""

    pass


class AmbiguousClassificationError(ClassificationError):
    """Mutually exclusive routing fields are both set."""

    def __init__(self, movement_type: str, fields: list[str], movement_id: int | None = None):
        super().__init__(
            f"Ambiguous {movement_type} movement: {' and '.join(fields)} are both set",
            code="AMBIGUOUS_CLASSIFICATION",
            details={
                "movement_type": movement_type,
                "fields": fields,
                "movement_id": movement_id,
            },
        )


class UnclassifiedMovementError(ClassificationError):
    """Required routing fields are missing."""

    def __init__(self, movement_type: str, missing: list[str], movement_id: int | None = None):
        super().__init__(
            f"Unclassified {movement_type} movement: missing {' or '.join(missing)}",
            code="UNCLASSIFIED_MOVEMENT",
            details={
                "movement_type": movement_type,
                "missing": missing,
                "movement_id": movement_id,
            },
        )


# Stock Exceptions
class StockError(LedgerError):
    """Base exception for stock calculation errors."""

    pass


class StockUnderflowError(StockError):
    """An outflow would drive a location's stock negative."""

    def __init__(
        self,
        location_id: int,
        requested_bags: int,
        available_bags: int,
        requested_weight: float,
        available_weight: float,
        movement_id: int | None = None,
    ):
        super().__init__(
            f"Stock underflow at location {location_id}: "
            f"requested {requested_bags} bags / {requested_weight} kg, "
            f"available {available_bags} bags / {available_weight} kg",
            code="STOCK_UNDERFLOW",
            details={
                "location_id": location_id,
                "movement_id": movement_id,
                "requested_bags": requested_bags,
                "available_bags": available_bags,
                "requested_weight": requested_weight,
                "available_weight": available_weight,
            },
        )


class ContinuityViolationError(StockError):
    """Closing stock of one day differs from the opening stock of the next."""

    def __init__(self, violations: list[Any]):
        super().__init__(
            f"{len(violations)} stock continuity violation(s) detected",
            code="CONTINUITY_VIOLATION",
            details={"violations": [str(v) for v in violations]},
        )
        self.violations = violations


# Workflow Exceptions
class WorkflowError(LedgerError):
    """Base exception for approval workflow errors."""

    pass


class InvalidStatusTransitionError(WorkflowError):
    """Movement is not in a state that allows the requested transition."""

    def __init__(self, movement_id: int, current: str, target: str):
        super().__init__(
            f"Movement {movement_id} cannot move from '{current}' to '{target}'",
            code="INVALID_STATUS_TRANSITION",
            details={"movement_id": movement_id, "current": current, "target": target},
        )


class ApprovalNotPermittedError(WorkflowError):
    """Approver role is not allowed to approve or reject movements."""

    def __init__(self, approver_id: int, approver_role: str):
        super().__init__(
            f"Role '{approver_role}' may not approve movements",
            code="APPROVAL_NOT_PERMITTED",
            details={"approver_id": approver_id, "approver_role": approver_role},
        )


class ConcurrentUpdateConflictError(WorkflowError):
    """Lock contention on a location during approval. Safe to retry."""

    retryable = True

    def __init__(self, location_ids: list[int], reason: str = "lock timeout"):
        super().__init__(
            f"Concurrent update conflict on locations {location_ids}: {reason}",
            code="CONCURRENT_UPDATE_CONFLICT",
            details={"location_ids": location_ids, "reason": reason},
        )


# Storage Exceptions
class StorageError(LedgerError):
    """Base exception for storage operations."""

    pass


class MovementNotFoundError(StorageError):
    """Movement not found in storage."""

    def __init__(self, movement_id: int):
        super().__init__(
            f"Movement not found: {movement_id}",
            code="MOVEMENT_NOT_FOUND",
            details={"movement_id": movement_id},
        )


class LocationNotFoundError(StorageError):
    """Location not found in storage."""

    def __init__(self, location_id: int):
        super().__init__(
            f"Location not found: {location_id}",
            code="LOCATION_NOT_FOUND",
            details={"location_id": location_id},
        )


class WarehouseNotFoundError(StorageError):
    """Warehouse not found in storage."""

    def __init__(self, warehouse_id: int):
        super().__init__(
            f"Warehouse not found: {warehouse_id}",
            code="WAREHOUSE_NOT_FOUND",
            details={"warehouse_id": warehouse_id},
        )


class ProductionLotNotFoundError(StorageError):
    """Production lot not found in storage."""

    def __init__(self, lot_id: int):
        super().__init__(
            f"Production lot not found: {lot_id}",
            code="PRODUCTION_LOT_NOT_FOUND",
            details={"lot_id": lot_id},
        )


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )

