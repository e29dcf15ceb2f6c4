"""Reject Movement Use Case - pending to rejected, no stock effect."""

from collections.abc import Callable
from datetime import datetime

from paddy_ledger.application.dto.requests import RejectMovementRequest
from paddy_ledger.config import get_logger, get_settings
from paddy_ledger.config.settings import LedgerSettings
from paddy_ledger.core.entities.movement import Movement, MovementStatus
from paddy_ledger.core.exceptions import (
    ApprovalNotPermittedError,
    InvalidStatusTransitionError,
    MovementNotFoundError,
)
from paddy_ledger.core.interfaces.ledger_store import ILedgerStore

logger = get_logger(__name__)


class RejectMovementUseCase:
    """Reject a pending movement."""

    def __init__(
        self,
        store: ILedgerStore | None = None,
        clock: Callable[[], datetime] | None = None,
        settings: LedgerSettings | None = None,
    ):
        self._store = store
        self._clock = clock or datetime.utcnow
        self._settings = settings or get_settings().ledger

    async def _get_store(self) -> ILedgerStore:
        if self._store is None:
            from paddy_ledger.application.services import get_ledger_store

            self._store = await get_ledger_store()
        return self._store

    async def execute(self, request: RejectMovementRequest) -> Movement:
        """
        Execute reject movement use case.

        Takes the same location locks as approval so a rejection cannot race
        an approval of the same movement.

        Raises:
            ApprovalNotPermittedError: role may not reject
            MovementNotFoundError: unknown movement
            InvalidStatusTransitionError: movement is not pending
        """
        if request.approver_role.strip().lower() not in self._settings.approver_roles:
            raise ApprovalNotPermittedError(request.rejected_by, request.approver_role)

        store = await self._get_store()
        movement = await store.get_movement(request.movement_id)
        if movement is None:
            raise MovementNotFoundError(request.movement_id)

        async with store.transaction(movement.location_ids()) as tx:
            movement = await tx.get_movement(request.movement_id)
            if movement is None:
                raise MovementNotFoundError(request.movement_id)
            if movement.status != MovementStatus.PENDING:
                raise InvalidStatusTransitionError(
                    request.movement_id,
                    movement.status.value,
                    MovementStatus.REJECTED.value,
                )
            movement.status = MovementStatus.REJECTED
            movement.rejected_by = request.rejected_by
            movement.rejected_at = self._clock()
            movement.remarks = request.remarks or movement.remarks
            await tx.update_movement(movement)

        logger.info(
            "movement_rejected",
            movement_id=movement.id,
            serial_no=movement.serial_no,
            rejected_by=request.rejected_by,
        )
        return movement
