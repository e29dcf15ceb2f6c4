"""Movement ledger entries."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field


class MovementType(str, Enum):
    """Kinds of user-entered stock movements."""

    PURCHASE = "purchase"
    SHIFTING = "shifting"
    PRODUCTION_SHIFTING = "production-shifting"
    LOADING = "loading"


class MovementStatus(str, Enum):
    """Approval state of a movement."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


SERIAL_PREFIXES: dict[MovementType, str] = {
    MovementType.PURCHASE: "PUR",
    MovementType.SHIFTING: "SHF",
    MovementType.PRODUCTION_SHIFTING: "PSH",
    MovementType.LOADING: "LDG",
}


def format_serial_no(movement_type: MovementType, sequence: int) -> str:
    """Human-readable serial number, e.g. ``PUR-000042``."""
    return f"{SERIAL_PREFIXES[movement_type]}-{sequence:06d}"


class Movement(BaseModel):
    """
    A single ledger entry moving bags of one variety.

    Routing fields are free-form here; ``classify_movement`` turns a movement
    into exactly one category or rejects it. After approval only the status
    and snapshot fields are ever written.
    """

    id: int | None = None
    serial_no: str | None = None
    movement_date: date
    sequence: int | None = None  # insertion order, assigned by the store
    movement_type: MovementType
    variety: str
    bags: int
    gross_weight: float
    tare_weight: float = 0.0

    # Routing
    from_location_id: int | None = None
    from_warehouse_id: int | None = None
    to_location_id: int | None = None
    to_warehouse_id: int | None = None
    production_lot_id: int | None = None

    # Cost basis
    acquisition_rate: float | None = None  # purchase price per kg
    snapshot_rate: float | None = None  # source rate frozen at approval

    # Workflow
    status: MovementStatus = MovementStatus.PENDING
    created_by: int | None = None
    approved_by: int | None = None
    approver_role: str | None = None
    approved_at: datetime | None = None
    admin_approved_by: int | None = None
    admin_approved_at: datetime | None = None
    rejected_by: int | None = None
    rejected_at: datetime | None = None
    remarks: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def net_weight(self) -> float:
        """Net weight = gross - tare."""
        return self.gross_weight - self.tare_weight

    @property
    def cost_rate(self) -> float | None:
        """Rate carried into a destination: snapshot if frozen, else purchase rate."""
        if self.snapshot_rate is not None:
            return self.snapshot_rate
        return self.acquisition_rate

    @property
    def ordering_key(self) -> tuple[date, int]:
        """Replay order: date ascending, then insertion sequence."""
        return (self.movement_date, self.sequence or self.id or 0)

    @property
    def is_pending(self) -> bool:
        return self.status == MovementStatus.PENDING

    @property
    def is_approved(self) -> bool:
        return self.status == MovementStatus.APPROVED

    def touches(self, location_id: int) -> bool:
        """Check whether the movement names the location as source or destination."""
        return location_id in (self.from_location_id, self.to_location_id)

    def location_ids(self) -> list[int]:
        """Sub-locations named by the routing fields, source first."""
        ids: list[int] = []
        for location_id in (self.from_location_id, self.to_location_id):
            if location_id is not None and location_id not in ids:
                ids.append(location_id)
        return ids
