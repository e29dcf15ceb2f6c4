"""
Stock Calculation Service.

Replays approved movements to get a location's quantity and weighted-average
rate. The arithmetic is exposed as plain functions so the approval workflow
and reconciliation share one implementation.
"""

from __future__ import annotations

from datetime import date

from paddy_ledger.config import get_logger
from paddy_ledger.core.entities.movement import Movement
from paddy_ledger.core.entities.stock import LocationState
from paddy_ledger.core.exceptions import LocationNotFoundError, StockUnderflowError
from paddy_ledger.core.interfaces.ledger_store import ILedgerReader, ILedgerStore
from paddy_ledger.core.services.classifier import classify_movement
from paddy_ledger.core.services.state_cache import LocationStateCache

logger = get_logger(__name__)

# Tolerance for float residue when a location is emptied
WEIGHT_EPSILON = 1e-9


def merge_weighted_average(
    quantity: float,
    rate: float,
    incoming_quantity: float,
    incoming_rate: float,
) -> tuple[float, float]:
    """
    Merge an incoming lot into an existing balance.

    Returns (new_quantity, new_rate). An empty balance takes the incoming rate;
    a non-positive result has rate 0.
    """
    new_quantity = quantity + incoming_quantity
    if new_quantity <= 0:
        return new_quantity, 0.0
    new_rate = (quantity * rate + incoming_quantity * incoming_rate) / new_quantity
    return new_quantity, new_rate


def apply_inflow(
    state: LocationState,
    bags: int,
    net_weight: float,
    rate: float | None,
) -> LocationState:
    """
    Add stock at a rate.

    A missing rate (an unpriced purchase) adds quantity at the current average,
    leaving the rate unchanged.
    """
    incoming_rate = state.weighted_average_rate if rate is None else rate
    new_weight, new_rate = merge_weighted_average(
        state.net_weight, state.weighted_average_rate, net_weight, incoming_rate
    )
    return state.model_copy(
        update={
            "bags": state.bags + bags,
            "net_weight": new_weight,
            "weighted_average_rate": new_rate,
        }
    )


def apply_outflow(
    state: LocationState,
    bags: int,
    net_weight: float,
    movement_id: int | None = None,
) -> LocationState:
    """
    Remove stock at the existing average; the rate is unchanged.

    Raises:
        StockUnderflowError: if bags or weight would go negative
    """
    remaining_bags = state.bags - bags
    remaining_weight = state.net_weight - net_weight
    if remaining_bags < 0 or remaining_weight < -WEIGHT_EPSILON:
        raise StockUnderflowError(
            location_id=state.location_id,
            requested_bags=bags,
            available_bags=state.bags,
            requested_weight=net_weight,
            available_weight=state.net_weight,
            movement_id=movement_id,
        )
    if abs(remaining_weight) < WEIGHT_EPSILON:
        remaining_weight = 0.0
    return state.model_copy(update={"bags": remaining_bags, "net_weight": remaining_weight})


def apply_movement(state: LocationState, movement: Movement) -> LocationState:
    """Apply one approved movement to a location's running state."""
    classified = classify_movement(movement)
    if classified.inflow_location_id == state.location_id:
        state = apply_inflow(state, movement.bags, movement.net_weight, movement.cost_rate)
    elif classified.outflow_location_id == state.location_id:
        state = apply_outflow(state, movement.bags, movement.net_weight, movement.id)
    else:
        return state
    return state.model_copy(update={"movement_count": state.movement_count + 1})


class StockCalculationService:
    """
    Layer-pure service computing location state by replay.

    Depends only on the ledger store interface and an optional state cache.
    """

    def __init__(
        self,
        store: ILedgerStore,
        cache: LocationStateCache | None = None,
    ) -> None:
        self._store = store
        self._cache = cache

    @property
    def cache(self) -> LocationStateCache | None:
        return self._cache

    async def compute_location_state(
        self,
        location_id: int,
        as_of: date | None = None,
    ) -> LocationState:
        """
        Get quantity and weighted-average rate of a location.

        Args:
            location_id: Sub-location ID
            as_of: Include movements dated on or before this day; None for current

        Returns:
            Replayed location state

        Raises:
            LocationNotFoundError: unknown location
            StockUnderflowError: approved history drives the location negative
        """
        generation = None
        if as_of is None and self._cache is not None:
            cached = self._cache.get(location_id)
            if cached is not None:
                return cached
            generation = self._cache.generation(location_id)

        location = await self._store.get_location(location_id)
        if location is None:
            raise LocationNotFoundError(location_id)

        state = await self.replay(self._store, location_id, as_of)

        # An approval may have committed while the replay awaited the store
        if generation is not None and self._cache is not None:
            self._cache.set(state, generation=generation)
        return state

    async def compute_all_location_states(
        self, as_of: date | None = None
    ) -> list[LocationState]:
        """Replay every registered location."""
        locations = await self._store.list_locations()
        return [
            await self.compute_location_state(location.id, as_of)  # type: ignore[arg-type]
            for location in locations
        ]

    async def replay(
        self,
        reader: ILedgerReader,
        location_id: int,
        as_of: date | None = None,
    ) -> LocationState:
        """
        Replay approved movements of a location through a reader.

        The reader may be an open transaction, so uncommitted approvals are
        included when recalculating inside the approval cascade.
        """
        movements = await reader.list_location_movements(location_id, until=as_of)
        state = LocationState(location_id=location_id, as_of=as_of)
        for movement in sorted(movements, key=lambda m: m.ordering_key):
            state = apply_movement(state, movement)

        logger.debug(
            "location_replayed",
            location_id=location_id,
            as_of=as_of.isoformat() if as_of else None,
            movements=state.movement_count,
            bags=state.bags,
            rate=round(state.weighted_average_rate, 4),
        )
        return state
