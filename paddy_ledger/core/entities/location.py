"""Location registry entities: warehouses, sub-locations and production lots."""

from datetime import datetime

from pydantic import BaseModel, Field


class Warehouse(BaseModel):
    """A warehouse grouping several storage sub-locations."""

    id: int | None = None
    code: str
    name: str


class Location(BaseModel):
    """
    A cost-tracked storage sub-location (kunchinittu) inside a warehouse.

    ``bags``, ``net_weight`` and ``weighted_average_rate`` are a cache of the
    replay of every approved movement touching this location. They are written
    only by the approval workflow and can be rebuilt by reconciliation.
    """

    id: int | None = None
    code: str  # unique within a warehouse
    name: str = ""
    warehouse_id: int
    variety: str
    bags: int = 0
    net_weight: float = 0.0
    weighted_average_rate: float = 0.0
    version: int = 0
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def stock_value(self) -> float:
        """Value of the stock held = net_weight * weighted_average_rate."""
        return self.net_weight * self.weighted_average_rate


class ProductionLot(BaseModel):
    """Grouping identity for stock routed into production (an outturn)."""

    id: int | None = None
    code: str
    variety: str = ""
