"""
Daily Stock Aggregator.

Buckets approved movements by date and grouping key and produces opening,
transaction and closing views per day. Purely derived: no writes, no caching,
so the same inputs always give the same report.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta

from paddy_ledger.config import get_logger
from paddy_ledger.core.entities.classification import (
    ForProductionPurchase,
    Loading,
    NormalPurchase,
    ProductionShifting,
    Shifting,
)
from paddy_ledger.core.entities.movement import Movement, MovementStatus
from paddy_ledger.core.entities.stock import (
    ContinuityViolation,
    DailyStockReport,
    DailyStockSnapshot,
    StockBalance,
    StockDelta,
    StockKind,
)
from paddy_ledger.core.exceptions import ContinuityViolationError, ValidationError
from paddy_ledger.core.interfaces.ledger_store import ILedgerStore
from paddy_ledger.core.services.classifier import (
    classify_movement,
    location_key,
    production_key,
)
from paddy_ledger.core.services.location_directory import LocationDirectory

logger = get_logger(__name__)

WEIGHT_EPSILON = 1e-9


@dataclass
class _RunningBalance:
    kind: StockKind
    variety: str
    bags: int = 0
    net_weight: float = 0.0

    @property
    def is_empty(self) -> bool:
        return self.bags == 0 and abs(self.net_weight) < WEIGHT_EPSILON


def movement_deltas(movement: Movement, directory: LocationDirectory) -> list[StockDelta]:
    """
    Signed per-key effects of one movement.

    Purchases and transfer destinations are positive; transfer sources and
    loading are negative.
    """
    classified = classify_movement(movement)
    variety = movement.variety

    def warehouse_delta(location_id: int, sign: int) -> StockDelta:
        location = directory.location(location_id)
        return StockDelta(
            movement_id=movement.id,  # type: ignore[arg-type]
            serial_no=movement.serial_no,
            category=classified.category,
            key=location_key(variety, location, directory.warehouse_of(location)),
            kind=StockKind.WAREHOUSE,
            variety=variety,
            bags=sign * movement.bags,
            net_weight=sign * movement.net_weight,
        )

    def production_delta(source_id: int | None, lot_id: int) -> StockDelta:
        return StockDelta(
            movement_id=movement.id,  # type: ignore[arg-type]
            serial_no=movement.serial_no,
            category=classified.category,
            key=production_key(
                variety, directory.location(source_id), directory.lot(lot_id), lot_id
            ),
            kind=StockKind.PRODUCTION,
            variety=variety,
            bags=movement.bags,
            net_weight=movement.net_weight,
        )

    if isinstance(classified, NormalPurchase):
        return [warehouse_delta(classified.to_location_id, 1)]
    if isinstance(classified, ForProductionPurchase):
        return [production_delta(classified.source_location_id, classified.production_lot_id)]
    if isinstance(classified, Shifting):
        return [
            warehouse_delta(classified.from_location_id, -1),
            warehouse_delta(classified.to_location_id, 1),
        ]
    if isinstance(classified, ProductionShifting):
        return [
            warehouse_delta(classified.from_location_id, -1),
            production_delta(classified.from_location_id, classified.production_lot_id),
        ]
    if isinstance(classified, Loading):
        return [warehouse_delta(classified.from_location_id, -1)]
    raise TypeError(f"Unhandled movement category: {classified!r}")


def check_continuity(
    days: list[DailyStockSnapshot],
    tolerance: float = 1e-6,
) -> list[ContinuityViolation]:
    """
    Compare closing stock of each day with opening stock of the next.

    Keys missing on one side count as zero, so a key that vanishes overnight
    is reported too.
    """
    violations: list[ContinuityViolation] = []
    ordered = sorted(days, key=lambda d: d.stock_date)

    for today, tomorrow in zip(ordered, ordered[1:]):
        closing = {b.key: b for b in today.closing}
        opening = {b.key: b for b in tomorrow.opening}
        for key in sorted(closing.keys() | opening.keys()):
            c = closing.get(key)
            o = opening.get(key)
            closing_bags = c.bags if c else 0
            opening_bags = o.bags if o else 0
            closing_weight = c.net_weight if c else 0.0
            opening_weight = o.net_weight if o else 0.0
            if closing_bags != opening_bags or abs(closing_weight - opening_weight) > tolerance:
                violations.append(
                    ContinuityViolation(
                        key=key,
                        stock_date=today.stock_date,
                        next_date=tomorrow.stock_date,
                        closing_bags=closing_bags,
                        opening_bags=opening_bags,
                        closing_weight=closing_weight,
                        opening_weight=opening_weight,
                    )
                )
    return violations


class DailyStockService:
    """Layer-pure service producing daily stock snapshots by replay."""

    def __init__(
        self,
        store: ILedgerStore,
        max_days: int = 366,
        tolerance: float = 1e-6,
    ) -> None:
        self._store = store
        self.max_days = max_days
        self.tolerance = tolerance

    async def daily_stock(
        self,
        date_from: date,
        date_to: date,
        strict: bool = False,
    ) -> DailyStockReport:
        """
        Build one snapshot per calendar day in [date_from, date_to].

        Opening stock of the first day is the replay of every approved movement
        strictly before ``date_from``; each later day opens with the previous
        closing.

        Raises:
            ValidationError: reversed or oversized date range
            ContinuityViolationError: only with ``strict=True``
        """
        if date_from > date_to:
            raise ValidationError("date_from", "must not be after date_to", date_from)
        span = (date_to - date_from).days + 1
        if span > self.max_days:
            raise ValidationError(
                "date_to", f"range of {span} days exceeds {self.max_days}", date_to
            )

        directory = await LocationDirectory.load(self._store)
        movements = await self._store.list_movements(
            date_to=date_to, status=MovementStatus.APPROVED
        )

        balances: dict[str, _RunningBalance] = {}
        by_day: dict[date, list[Movement]] = defaultdict(list)
        for movement in sorted(movements, key=lambda m: m.ordering_key):
            if movement.movement_date < date_from:
                self._apply(balances, movement_deltas(movement, directory))
            else:
                by_day[movement.movement_date].append(movement)

        days: list[DailyStockSnapshot] = []
        current = date_from
        while current <= date_to:
            opening = self._snapshot(balances)
            deltas = [
                delta
                for movement in by_day.get(current, [])
                for delta in movement_deltas(movement, directory)
            ]
            self._apply(balances, deltas)
            days.append(
                DailyStockSnapshot(
                    stock_date=current,
                    opening=opening,
                    transactions=deltas,
                    closing=self._snapshot(balances),
                )
            )
            current += timedelta(days=1)

        violations = check_continuity(days, self.tolerance)
        for violation in violations:
            logger.warning(
                "stock_continuity_violation",
                key=violation.key,
                stock_date=violation.stock_date.isoformat(),
                closing_bags=violation.closing_bags,
                opening_bags=violation.opening_bags,
            )

        logger.info(
            "daily_stock_built",
            date_from=date_from.isoformat(),
            date_to=date_to.isoformat(),
            days=len(days),
            movements=len(movements),
            violations=len(violations),
        )

        if strict and violations:
            raise ContinuityViolationError(violations)

        return DailyStockReport(
            date_from=date_from,
            date_to=date_to,
            days=days,
            violations=violations,
        )

    @staticmethod
    def _apply(balances: dict[str, _RunningBalance], deltas: list[StockDelta]) -> None:
        for delta in deltas:
            running = balances.get(delta.key)
            if running is None:
                running = balances[delta.key] = _RunningBalance(delta.kind, delta.variety)
            running.bags += delta.bags
            running.net_weight += delta.net_weight

    @staticmethod
    def _snapshot(balances: dict[str, _RunningBalance]) -> list[StockBalance]:
        return [
            StockBalance(
                key=key,
                kind=running.kind,
                variety=running.variety,
                bags=running.bags,
                net_weight=0.0 if abs(running.net_weight) < WEIGHT_EPSILON else running.net_weight,
            )
            for key, running in sorted(balances.items())
            if not running.is_empty
        ]
