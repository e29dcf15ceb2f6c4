"""Get Location State Use Case - replayed quantity and weighted-average rate."""

from datetime import date

from paddy_ledger.application.dto.responses import LocationStateResponse
from paddy_ledger.core.entities.stock import LocationState
from paddy_ledger.core.services.stock_calculation import StockCalculationService


class GetLocationStateUseCase:
    """Compute a location's state, current or as of a date."""

    def __init__(self, calculator: StockCalculationService | None = None):
        self._calculator = calculator

    async def _get_calculator(self) -> StockCalculationService:
        if self._calculator is None:
            from paddy_ledger.application.services import (
                get_ledger_store,
                get_stock_calculation_service,
            )

            self._calculator = get_stock_calculation_service(await get_ledger_store())
        return self._calculator

    async def execute(self, location_id: int, as_of: date | None = None) -> LocationState:
        """Execute get location state use case."""
        calculator = await self._get_calculator()
        return await calculator.compute_location_state(location_id, as_of)

    def to_response(self, state: LocationState) -> LocationStateResponse:
        """Convert state to response DTO."""
        return LocationStateResponse(
            location_id=state.location_id,
            bags=state.bags,
            net_weight=state.net_weight,
            weighted_average_rate=state.weighted_average_rate,
            stock_value=state.stock_value,
            as_of=state.as_of,
            movement_count=state.movement_count,
        )
