"""Record Movement Use Case - validate and persist a pending movement."""

from dataclasses import dataclass

from paddy_ledger.application.dto.requests import RecordMovementRequest
from paddy_ledger.application.dto.responses import MovementResponse
from paddy_ledger.config import get_logger
from paddy_ledger.core.entities.classification import ClassifiedMovement
from paddy_ledger.core.entities.movement import Movement, MovementStatus
from paddy_ledger.core.exceptions import (
    InvalidMovementError,
    LocationNotFoundError,
    ProductionLotNotFoundError,
    WarehouseNotFoundError,
)
from paddy_ledger.core.interfaces.ledger_store import ILedgerStore
from paddy_ledger.core.services.classifier import classify_movement, validate_weights

logger = get_logger(__name__)


@dataclass
class RecordMovementResult:
    """Result of recording a movement."""

    movement: Movement
    classified: ClassifiedMovement


class RecordMovementUseCase:
    """Record a movement as pending after classification and routing checks."""

    def __init__(self, store: ILedgerStore | None = None):
        self._store = store

    async def _get_store(self) -> ILedgerStore:
        if self._store is None:
            from paddy_ledger.application.services import get_ledger_store

            self._store = await get_ledger_store()
        return self._store

    async def execute(self, request: RecordMovementRequest) -> RecordMovementResult:
        """Execute record movement use case."""
        logger.info(
            "record_movement_started",
            type=request.movement_type.value,
            movement_date=request.movement_date.isoformat(),
            bags=request.bags,
        )

        movement = Movement(
            **request.model_dump(),
            status=MovementStatus.PENDING,
        )

        # 1. Shape checks, no I/O
        validate_weights(movement)
        classified = classify_movement(movement)

        # 2. Referenced registry entries must exist
        store = await self._get_store()
        movement.from_warehouse_id = await self._resolve_warehouse(
            store, movement.from_location_id, movement.from_warehouse_id, "from"
        )
        movement.to_warehouse_id = await self._resolve_warehouse(
            store, movement.to_location_id, movement.to_warehouse_id, "to"
        )
        if movement.production_lot_id is not None:
            lot = await store.get_production_lot(movement.production_lot_id)
            if lot is None:
                raise ProductionLotNotFoundError(movement.production_lot_id)

        # 3. Persist as pending
        movement = await store.create_movement(movement)

        logger.info(
            "record_movement_complete",
            movement_id=movement.id,
            serial_no=movement.serial_no,
            category=classified.category.value,
        )
        return RecordMovementResult(
            movement=movement,
            classified=classified.model_copy(update={"movement_id": movement.id}),
        )

    @staticmethod
    async def _resolve_warehouse(
        store: ILedgerStore,
        location_id: int | None,
        warehouse_id: int | None,
        side: str,
    ) -> int | None:
        """Return the warehouse of a referenced sub-location, checking any given id."""
        if location_id is None:
            if warehouse_id is not None and await store.get_warehouse(warehouse_id) is None:
                raise WarehouseNotFoundError(warehouse_id)
            return warehouse_id
        location = await store.get_location(location_id)
        if location is None:
            raise LocationNotFoundError(location_id)
        if warehouse_id is not None and warehouse_id != location.warehouse_id:
            raise InvalidMovementError(
                f"{side}_warehouse_id {warehouse_id} does not match sub-location "
                f"{location.code} in warehouse {location.warehouse_id}"
            )
        return location.warehouse_id

    def to_response(self, result: RecordMovementResult) -> MovementResponse:
        """Convert result to response DTO."""
        return movement_to_response(result.movement, result.classified.category.value)


def movement_to_response(movement: Movement, category: str | None = None) -> MovementResponse:
    """Map a movement entity onto its response DTO."""
    return MovementResponse(
        id=movement.id,  # type: ignore[arg-type]
        serial_no=movement.serial_no,
        movement_date=movement.movement_date,
        movement_type=movement.movement_type.value,
        category=category,
        variety=movement.variety,
        bags=movement.bags,
        net_weight=movement.net_weight,
        from_location_id=movement.from_location_id,
        to_location_id=movement.to_location_id,
        production_lot_id=movement.production_lot_id,
        acquisition_rate=movement.acquisition_rate,
        snapshot_rate=movement.snapshot_rate,
        status=movement.status.value,
        approved_by=movement.approved_by,
        approved_at=movement.approved_at,
        admin_approved_by=movement.admin_approved_by,
        rejected_by=movement.rejected_by,
        remarks=movement.remarks,
    )
