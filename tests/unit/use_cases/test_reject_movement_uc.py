"""Tests for RejectMovementUseCase."""

import pytest

from paddy_ledger.application.dto.requests import RejectMovementRequest
from paddy_ledger.application.use_cases.reject_movement import RejectMovementUseCase
from paddy_ledger.core.entities import MovementStatus
from paddy_ledger.core.exceptions import (
    ApprovalNotPermittedError,
    InvalidStatusTransitionError,
    MovementNotFoundError,
)


@pytest.fixture
def rejecter(memory_store, ledger_settings, fixed_now) -> RejectMovementUseCase:
    return RejectMovementUseCase(memory_store, clock=lambda: fixed_now, settings=ledger_settings)


class TestRejectMovement:
    async def test_pending_becomes_rejected(self, ledger, rejecter, memory_store, fixed_now):
        purchase = await ledger.purchase(ledger.a, 10, 10.0, 20.0)

        movement = await rejecter.execute(
            RejectMovementRequest(
                movement_id=purchase.id,
                rejected_by=3,
                approver_role="manager",
                remarks="Moisture too high",
            )
        )

        assert movement.status == MovementStatus.REJECTED
        stored = await memory_store.get_movement(purchase.id)
        assert stored.status == MovementStatus.REJECTED
        assert stored.rejected_by == 3
        assert stored.rejected_at == fixed_now
        assert stored.remarks == "Moisture too high"

    async def test_rejection_has_no_stock_effect(self, ledger, rejecter, memory_store):
        purchase = await ledger.purchase(ledger.a, 10, 10.0, 20.0)

        await rejecter.execute(
            RejectMovementRequest(movement_id=purchase.id, rejected_by=3, approver_role="admin")
        )

        location = await memory_store.get_location(ledger.a.id)
        assert location.bags == 0
        assert location.version == 0
        assert await memory_store.list_location_movements(ledger.a.id) == []

    async def test_approved_cannot_be_rejected(self, ledger, rejecter, approver):
        purchase = await ledger.purchase(ledger.a, 10, 10.0, 20.0)
        await approver.approve(purchase.id, 1, "manager")

        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            await rejecter.execute(
                RejectMovementRequest(movement_id=purchase.id, rejected_by=3, approver_role="admin")
            )

        assert exc_info.value.details["current"] == "approved"

    async def test_rejected_twice(self, ledger, rejecter):
        purchase = await ledger.purchase(ledger.a, 10, 10.0, 20.0, status=MovementStatus.REJECTED)

        with pytest.raises(InvalidStatusTransitionError):
            await rejecter.execute(
                RejectMovementRequest(movement_id=purchase.id, rejected_by=3, approver_role="admin")
            )

    async def test_role_not_permitted(self, ledger, rejecter, memory_store):
        purchase = await ledger.purchase(ledger.a, 10, 10.0, 20.0)

        with pytest.raises(ApprovalNotPermittedError):
            await rejecter.execute(
                RejectMovementRequest(movement_id=purchase.id, rejected_by=3, approver_role="clerk")
            )

        assert (await memory_store.get_movement(purchase.id)).is_pending

    async def test_unknown_movement(self, ledger, rejecter):
        with pytest.raises(MovementNotFoundError):
            await rejecter.execute(
                RejectMovementRequest(movement_id=404, rejected_by=3, approver_role="admin")
            )
