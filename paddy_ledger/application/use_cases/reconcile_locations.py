"""Reconcile Locations Use Case - cached cost-state versus full replay."""

from dataclasses import dataclass

from paddy_ledger.application.dto.responses import ReconciliationResponse
from paddy_ledger.config import get_logger, get_settings
from paddy_ledger.core.entities.location import Location
from paddy_ledger.core.entities.stock import LocationState
from paddy_ledger.core.exceptions import LedgerError, LocationNotFoundError
from paddy_ledger.core.interfaces.ledger_store import ILedgerStore
from paddy_ledger.core.services.stock_calculation import StockCalculationService

logger = get_logger(__name__)


@dataclass
class ReconciliationResult:
    """Cached and replayed state of one location."""

    location: Location
    replayed: LocationState | None = None
    drifted: bool = False
    repaired: bool = False
    error: LedgerError | None = None


class ReconcileLocationsUseCase:
    """
    Compare each location's cached cost-state with a replay of its history.

    Drift is reported; it is only rewritten when ``repair`` is requested.
    """

    def __init__(
        self,
        store: ILedgerStore | None = None,
        calculator: StockCalculationService | None = None,
        tolerance: float | None = None,
    ):
        self._store = store
        self._calculator = calculator
        self._tolerance = (
            tolerance if tolerance is not None else get_settings().ledger.continuity_tolerance
        )

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

    def _differs(self, location: Location, state: LocationState) -> bool:
        return (
            location.bags != state.bags
            or abs(location.net_weight - state.net_weight) > self._tolerance
            or abs(location.weighted_average_rate - state.weighted_average_rate) > self._tolerance
        )

    async def execute(
        self,
        location_ids: list[int] | None = None,
        repair: bool = False,
    ) -> list[ReconciliationResult]:
        """Execute reconcile use case."""
        store = await self._get_store()
        calculator = await self._get_calculator()

        if location_ids is None:
            locations = await store.list_locations()
        else:
            locations = []
            for location_id in location_ids:
                location = await store.get_location(location_id)
                if location is None:
                    raise LocationNotFoundError(location_id)
                locations.append(location)

        results = []
        for location in locations:
            result = ReconciliationResult(location=location)
            try:
                result.replayed = await calculator.replay(store, location.id)  # type: ignore[arg-type]
                result.drifted = self._differs(location, result.replayed)
                if result.drifted and repair:
                    result.replayed = await self._repair(store, calculator, location.id)  # type: ignore[arg-type]
                    result.repaired = True
            except LedgerError as e:
                result.error = e
                logger.warning(
                    "reconcile_location_failed", location_id=location.id, error=e.code
                )
            if result.drifted:
                logger.warning(
                    "location_state_drift",
                    location_id=location.id,
                    cached_bags=location.bags,
                    replayed_bags=result.replayed.bags if result.replayed else None,
                    cached_rate=location.weighted_average_rate,
                    replayed_rate=(
                        result.replayed.weighted_average_rate if result.replayed else None
                    ),
                    repaired=result.repaired,
                )
            results.append(result)

        logger.info(
            "reconcile_complete",
            locations=len(results),
            drifted=sum(1 for r in results if r.drifted),
            repaired=sum(1 for r in results if r.repaired),
            errors=sum(1 for r in results if r.error),
        )
        return results

    @staticmethod
    async def _repair(
        store: ILedgerStore,
        calculator: StockCalculationService,
        location_id: int,
    ) -> LocationState:
        async with store.transaction([location_id]) as tx:
            location = await tx.get_location(location_id)
            if location is None:
                raise LocationNotFoundError(location_id)
            state = await calculator.replay(tx, location_id)
            location.bags = state.bags
            location.net_weight = state.net_weight
            location.weighted_average_rate = state.weighted_average_rate
            await tx.update_location(location)
        if calculator.cache is not None:
            calculator.cache.invalidate([location_id])
        return state

    def to_response(self, result: ReconciliationResult) -> ReconciliationResponse:
        """Convert one result to its response DTO."""
        location = result.location
        replayed = result.replayed
        return ReconciliationResponse(
            location_id=location.id,  # type: ignore[arg-type]
            location_code=location.code,
            cached_bags=location.bags,
            cached_net_weight=location.net_weight,
            cached_rate=location.weighted_average_rate,
            replayed_bags=replayed.bags if replayed else None,
            replayed_net_weight=replayed.net_weight if replayed else None,
            replayed_rate=replayed.weighted_average_rate if replayed else None,
            drifted=result.drifted,
            repaired=result.repaired,
            error=result.error.to_dict() if result.error else None,
        )
