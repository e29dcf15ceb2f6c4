"""
Tagged movement categories.

Each category model carries only the routing fields it owns and forbids the
rest, so an ambiguous or unclassified movement cannot be represented once
classified. Build these through ``classify_movement``, not directly.
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class MovementCategory(str, Enum):
    """Semantic category of a movement."""

    NORMAL_PURCHASE = "normal-purchase"
    FOR_PRODUCTION_PURCHASE = "for-production-purchase"
    SHIFTING = "shifting"
    PRODUCTION_SHIFTING = "production-shifting"
    LOADING = "loading"


class _Classified(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    movement_id: int | None = None
    variety: str
    bags: int
    net_weight: float

    @property
    def inflow_location_id(self) -> int | None:
        """Sub-location that receives stock, if any."""
        return None

    @property
    def outflow_location_id(self) -> int | None:
        """Sub-location that gives up stock, if any."""
        return None

    @property
    def affected_location_ids(self) -> list[int]:
        """Sub-locations whose cost-state this movement changes."""
        return [
            location_id
            for location_id in (self.outflow_location_id, self.inflow_location_id)
            if location_id is not None
        ]


class NormalPurchase(_Classified):
    """Purchase stored in a warehouse sub-location."""

    category: Literal[MovementCategory.NORMAL_PURCHASE] = MovementCategory.NORMAL_PURCHASE
    to_location_id: int
    to_warehouse_id: int | None = None
    acquisition_rate: float | None = None

    @property
    def inflow_location_id(self) -> int | None:
        return self.to_location_id


class ForProductionPurchase(_Classified):
    """Purchase routed straight into a production lot; no sub-location stock."""

    category: Literal[MovementCategory.FOR_PRODUCTION_PURCHASE] = (
        MovementCategory.FOR_PRODUCTION_PURCHASE
    )
    production_lot_id: int
    source_location_id: int | None = None  # label only, stock is not drawn
    acquisition_rate: float | None = None


class Shifting(_Classified):
    """Transfer between two sub-locations, carrying the source rate."""

    category: Literal[MovementCategory.SHIFTING] = MovementCategory.SHIFTING
    from_location_id: int
    to_location_id: int
    from_warehouse_id: int | None = None
    to_warehouse_id: int | None = None

    @property
    def inflow_location_id(self) -> int | None:
        return self.to_location_id

    @property
    def outflow_location_id(self) -> int | None:
        return self.from_location_id


class ProductionShifting(_Classified):
    """Transfer from a sub-location into a production lot."""

    category: Literal[MovementCategory.PRODUCTION_SHIFTING] = (
        MovementCategory.PRODUCTION_SHIFTING
    )
    from_location_id: int
    production_lot_id: int
    from_warehouse_id: int | None = None

    @property
    def outflow_location_id(self) -> int | None:
        return self.from_location_id


class Loading(_Classified):
    """Dispatch out of a sub-location."""

    category: Literal[MovementCategory.LOADING] = MovementCategory.LOADING
    from_location_id: int
    from_warehouse_id: int | None = None

    @property
    def outflow_location_id(self) -> int | None:
        return self.from_location_id


ClassifiedMovement = Annotated[
    Union[NormalPurchase, ForProductionPurchase, Shifting, ProductionShifting, Loading],
    Field(discriminator="category"),
]

# Categories whose approval freezes the source location's rate on the movement
SNAPSHOT_CATEGORIES = frozenset(
    {
        MovementCategory.SHIFTING,
        MovementCategory.PRODUCTION_SHIFTING,
        MovementCategory.LOADING,
    }
)
