"""
Approve Movements Use Case.

Runs the approval cascade for one movement or a batch: snapshot the source
rate, mark the movement approved, replay every touched location and write its
cached cost-state, all inside one store transaction holding the location locks.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from paddy_ledger.application.dto.responses import (
    ApprovalResultResponse,
    BulkApprovalResponse,
)
from paddy_ledger.config import get_logger, get_settings, ledger_context
from paddy_ledger.config.settings import LedgerSettings
from paddy_ledger.core.entities.classification import SNAPSHOT_CATEGORIES
from paddy_ledger.core.entities.movement import Movement, MovementStatus
from paddy_ledger.core.exceptions import (
    ApprovalNotPermittedError,
    ConcurrentUpdateConflictError,
    InvalidStatusTransitionError,
    LedgerError,
    LocationNotFoundError,
    MovementNotFoundError,
)
from paddy_ledger.core.interfaces.ledger_store import ILedgerStore, ILedgerTransaction
from paddy_ledger.core.services.classifier import classify_movement, validate_weights
from paddy_ledger.core.services.stock_calculation import StockCalculationService

logger = get_logger(__name__)


class ApprovalOutcome(str, Enum):
    """What happened to one movement in an approval call."""

    APPROVED = "approved"
    ADMIN_CONFIRMED = "admin_confirmed"
    FAILED = "failed"
    SKIPPED = "skipped"
    ROLLED_BACK = "rolled_back"


@dataclass
class ApprovalResult:
    """Result of approving one movement."""

    movement_id: int
    outcome: ApprovalOutcome
    movement: Movement | None = None
    error: LedgerError | None = None
    affected_location_ids: list[int] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.outcome in (ApprovalOutcome.APPROVED, ApprovalOutcome.ADMIN_CONFIRMED)

    @property
    def retryable(self) -> bool:
        return self.error is not None and self.error.retryable

    @property
    def error_code(self) -> str | None:
        return self.error.code if self.error else None

    @property
    def snapshot_rate(self) -> float | None:
        return self.movement.snapshot_rate if self.movement else None


class _BatchAborted(Exception):
    """A record failed inside an all-or-nothing batch."""

    def __init__(self, movement_id: int, error: LedgerError):
        super().__init__(str(error))
        self.movement_id = movement_id
        self.error = error


class ApproveMovementsUseCase:
    """
    Approve pending movements.

    Each record is atomic: the snapshot, the approval mark and every location
    write commit together or not at all. Lock conflicts are retried with
    exponential backoff and reported as retryable once retries run out.
    """

    def __init__(
        self,
        store: ILedgerStore | None = None,
        calculator: StockCalculationService | None = None,
        clock: Callable[[], datetime] | None = None,
        settings: LedgerSettings | None = None,
    ):
        self._store = store
        self._calculator = calculator
        self._clock = clock or datetime.utcnow
        self._settings = settings or get_settings().ledger

    async def _get_store(self) -> ILedgerStore:
        if self._store is None:
            from paddy_ledger.application.services import get_ledger_store

            self._store = await get_ledger_store()
        return self._store

    async def _get_calculator(self) -> StockCalculationService:
        if self._calculator is None:
            from paddy_ledger.application.services import get_stock_calculation_service

            self._calculator = get_stock_calculation_service(await self._get_store())
        return self._calculator

    def _get_retry_decorator(self) -> Any:
        """Get tenacity retry decorator for lock conflicts."""
        delay = self._settings.retry_delay
        return retry(
            stop=stop_after_attempt(max(1, self._settings.max_retries)),
            wait=wait_exponential(
                multiplier=delay,
                min=delay,
                max=delay * (self._settings.retry_multiplier**3),
            ),
            retry=retry_if_exception_type(ConcurrentUpdateConflictError),
            before_sleep=self._log_retry,
            reraise=True,
        )

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        """Log retry attempts."""
        logger.warning(
            "approval_retry",
            attempt=retry_state.attempt_number,
            error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    def _check_role(self, approver_id: int, approver_role: str) -> None:
        if approver_role.strip().lower() not in self._settings.approver_roles:
            raise ApprovalNotPermittedError(approver_id, approver_role)

    def _is_admin(self, approver_role: str) -> bool:
        return approver_role.strip().lower() == self._settings.admin_role

    async def approve(
        self,
        movement_id: int,
        approver_id: int,
        approver_role: str,
    ) -> ApprovalResult:
        """
        Approve one movement.

        Never raises for ledger failures: the error is carried in the result
        with its retryable flag.
        """
        logger.info(
            "approval_started",
            movement_id=movement_id,
            approver_id=approver_id,
            approver_role=approver_role,
        )
        try:
            self._check_role(approver_id, approver_role)
            store = await self._get_store()
            calculator = await self._get_calculator()
            result = await self._get_retry_decorator()(self._approve_once)(
                store, calculator, movement_id, approver_id, approver_role
            )
        except LedgerError as e:
            logger.warning(
                "approval_failed",
                movement_id=movement_id,
                error=e.code,
                retryable=e.retryable,
            )
            return ApprovalResult(movement_id, ApprovalOutcome.FAILED, error=e)

        self._invalidate(calculator, result.affected_location_ids)
        logger.info(
            "approval_complete",
            movement_id=movement_id,
            outcome=result.outcome.value,
            snapshot_rate=result.snapshot_rate,
            locations=result.affected_location_ids,
        )
        return result

    async def bulk_approve(
        self,
        movement_ids: Sequence[int],
        approver_id: int,
        approver_role: str,
        all_or_nothing: bool = False,
        stop_on_error: bool = False,
    ) -> list[ApprovalResult]:
        """
        Approve movements in the given order.

        Args:
            movement_ids: Movements in approval order
            approver_id: Approving user
            approver_role: Role of the approving user
            all_or_nothing: Run the batch as one transaction; any failure
                rolls every record back
            stop_on_error: Stop between records at the first failure and
                report the rest as skipped

        Returns:
            One result per requested id, in request order
        """
        ids = list(movement_ids)
        with ledger_context(approver_id=approver_id, approver_role=approver_role):
            logger.info(
                "bulk_approval_started",
                count=len(ids),
                all_or_nothing=all_or_nothing,
                stop_on_error=stop_on_error,
            )

            if all_or_nothing:
                results = await self._approve_all_or_nothing(ids, approver_id, approver_role)
            else:
                results = []
                for index, movement_id in enumerate(ids):
                    result = await self.approve(movement_id, approver_id, approver_role)
                    results.append(result)
                    if stop_on_error and not result.success:
                        results.extend(
                            ApprovalResult(skipped_id, ApprovalOutcome.SKIPPED)
                            for skipped_id in ids[index + 1 :]
                        )
                        break

            logger.info(
                "bulk_approval_complete",
                total=len(results),
                approved=sum(1 for r in results if r.success),
                failed=sum(1 for r in results if r.outcome == ApprovalOutcome.FAILED),
            )
        return results

    async def _approve_once(
        self,
        store: ILedgerStore,
        calculator: StockCalculationService,
        movement_id: int,
        approver_id: int,
        approver_role: str,
    ) -> ApprovalResult:
        movement = await store.get_movement(movement_id)
        if movement is None:
            raise MovementNotFoundError(movement_id)

        async with store.transaction(movement.location_ids()) as tx:
            return await self._apply_approval(
                tx, calculator, movement_id, approver_id, approver_role
            )

    async def _approve_all_or_nothing(
        self,
        ids: list[int],
        approver_id: int,
        approver_role: str,
    ) -> list[ApprovalResult]:
        try:
            self._check_role(approver_id, approver_role)
            store = await self._get_store()
            calculator = await self._get_calculator()
            results = await self._get_retry_decorator()(self._approve_batch)(
                store, calculator, ids, approver_id, approver_role
            )
        except _BatchAborted as aborted:
            logger.warning(
                "bulk_approval_rolled_back",
                movement_id=aborted.movement_id,
                error=aborted.error.code,
            )
            return [
                ApprovalResult(movement_id, ApprovalOutcome.FAILED, error=aborted.error)
                if movement_id == aborted.movement_id
                else ApprovalResult(movement_id, ApprovalOutcome.ROLLED_BACK)
                for movement_id in ids
            ]
        except LedgerError as e:
            logger.warning("bulk_approval_failed", error=e.code, retryable=e.retryable)
            return [ApprovalResult(movement_id, ApprovalOutcome.FAILED, error=e) for movement_id in ids]

        touched = sorted({lid for r in results for lid in r.affected_location_ids})
        self._invalidate(calculator, touched)
        return results

    async def _approve_batch(
        self,
        store: ILedgerStore,
        calculator: StockCalculationService,
        ids: list[int],
        approver_id: int,
        approver_role: str,
    ) -> list[ApprovalResult]:
        lock_ids: set[int] = set()
        for movement_id in ids:
            movement = await store.get_movement(movement_id)
            if movement is None:
                raise _BatchAborted(movement_id, MovementNotFoundError(movement_id))
            lock_ids.update(movement.location_ids())

        results: list[ApprovalResult] = []
        async with store.transaction(lock_ids) as tx:
            for movement_id in ids:
                try:
                    results.append(
                        await self._apply_approval(
                            tx, calculator, movement_id, approver_id, approver_role
                        )
                    )
                except ConcurrentUpdateConflictError:
                    raise
                except LedgerError as e:
                    raise _BatchAborted(movement_id, e) from e
        return results

    async def _apply_approval(
        self,
        tx: ILedgerTransaction,
        calculator: StockCalculationService,
        movement_id: int,
        approver_id: int,
        approver_role: str,
    ) -> ApprovalResult:
        """The per-record cascade. Runs inside an open transaction."""
        movement = await tx.get_movement(movement_id)
        if movement is None:
            raise MovementNotFoundError(movement_id)
        now = self._clock()

        if movement.status == MovementStatus.APPROVED:
            if self._is_admin(approver_role) and movement.admin_approved_by is None:
                movement.admin_approved_by = approver_id
                movement.admin_approved_at = now
                await tx.update_movement(movement)
                return ApprovalResult(movement_id, ApprovalOutcome.ADMIN_CONFIRMED, movement)
            raise InvalidStatusTransitionError(
                movement_id, movement.status.value, MovementStatus.APPROVED.value
            )
        if movement.status != MovementStatus.PENDING:
            raise InvalidStatusTransitionError(
                movement_id, movement.status.value, MovementStatus.APPROVED.value
            )

        # 1. Re-validate
        validate_weights(movement)
        classified = classify_movement(movement)

        # 2. Freeze the source rate for transfers
        if classified.category in SNAPSHOT_CATEGORIES:
            source = await calculator.replay(tx, classified.outflow_location_id)  # type: ignore[arg-type]
            movement.snapshot_rate = source.weighted_average_rate

        # 3. Mark approved
        movement.status = MovementStatus.APPROVED
        movement.approved_by = approver_id
        movement.approver_role = approver_role
        movement.approved_at = now
        if self._is_admin(approver_role):
            movement.admin_approved_by = approver_id
            movement.admin_approved_at = now
        await tx.update_movement(movement)

        # 4. Recalculate and write every touched location
        affected = classified.affected_location_ids
        for location_id in affected:
            location = await tx.get_location(location_id)
            if location is None:
                raise LocationNotFoundError(location_id)
            state = await calculator.replay(tx, location_id)
            location.bags = state.bags
            location.net_weight = state.net_weight
            location.weighted_average_rate = state.weighted_average_rate
            await tx.update_location(location)

        return ApprovalResult(
            movement_id,
            ApprovalOutcome.APPROVED,
            movement,
            affected_location_ids=list(affected),
        )

    @staticmethod
    def _invalidate(calculator: StockCalculationService, location_ids: list[int]) -> None:
        if calculator.cache is not None and location_ids:
            calculator.cache.invalidate(location_ids)

    def to_response(self, result: ApprovalResult) -> ApprovalResultResponse:
        """Convert one result to its response DTO."""
        return ApprovalResultResponse(
            movement_id=result.movement_id,
            outcome=result.outcome.value,
            success=result.success,
            serial_no=result.movement.serial_no if result.movement else None,
            snapshot_rate=result.snapshot_rate,
            retryable=result.retryable,
            error=result.error.to_dict() if result.error else None,
        )

    def to_bulk_response(self, results: list[ApprovalResult]) -> BulkApprovalResponse:
        """Convert a batch of results to the bulk response DTO."""
        return BulkApprovalResponse(
            total=len(results),
            approved=sum(1 for r in results if r.success),
            failed=sum(1 for r in results if r.outcome == ApprovalOutcome.FAILED),
            results=[self.to_response(r) for r in results],
        )
