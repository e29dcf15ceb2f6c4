"""Tests for the daily stock aggregator."""

from datetime import date, timedelta

import pytest

from paddy_ledger.core.entities import (
    ContinuityViolation,
    DailyStockSnapshot,
    MovementCategory,
    MovementStatus,
    StockBalance,
    StockKind,
)
from paddy_ledger.core.exceptions import ContinuityViolationError, ValidationError
from paddy_ledger.core.services import daily_stock as daily_stock_module
from paddy_ledger.core.services.daily_stock import DailyStockService, check_continuity

APPROVED = MovementStatus.APPROVED
JAN_1 = date(2024, 1, 1)
JAN_2 = date(2024, 1, 2)
JAN_3 = date(2024, 1, 3)

KEY_A = "Sona-K1 - Main Godown"
KEY_B = "Sona-K2 - Main Godown"
KEY_A_PRODUCTION = "Sona-K1-OUT1"
KEY_DIRECT_PRODUCTION = "Sona-Direct-OUT1"


@pytest.fixture
def service(memory_store) -> DailyStockService:
    return DailyStockService(memory_store, max_days=31)


def _balance(day: DailyStockSnapshot, key: str, closing: bool = True) -> int:
    balance = day.closing_balance(key) if closing else day.opening_balance(key)
    return balance.bags if balance else 0


class TestDailyStock:
    async def test_opening_from_history_before_range(self, ledger, service):
        await ledger.purchase(ledger.a, 100, 100.0, 20.0, on=JAN_1, status=APPROVED)

        report = await service.daily_stock(JAN_2, JAN_3)

        first = report.days[0]
        assert _balance(first, KEY_A, closing=False) == 100
        assert first.transactions == []
        assert _balance(first, KEY_A) == 100

    async def test_every_category_on_one_day(self, ledger, service):
        await ledger.purchase(ledger.a, 100, 100.0, 20.0, on=JAN_1, status=APPROVED)
        await ledger.production_purchase(20, 20.0, 22.0, on=JAN_1, status=APPROVED)
        await ledger.shift(ledger.a, ledger.b, 30, 30.0, on=JAN_1, status=APPROVED)
        await ledger.production_shift(ledger.a, 10, 10.0, on=JAN_1, status=APPROVED)
        await ledger.load(ledger.b, 5, 5.0, on=JAN_1, status=APPROVED)

        report = await service.daily_stock(JAN_1, JAN_1)
        day = report.days[0]

        assert day.opening == []
        assert _balance(day, KEY_A) == 60
        assert _balance(day, KEY_B) == 25
        assert _balance(day, KEY_A_PRODUCTION) == 10
        assert _balance(day, KEY_DIRECT_PRODUCTION) == 20

        signs = {(d.category, d.key): d.bags for d in day.transactions}
        assert signs[(MovementCategory.NORMAL_PURCHASE, KEY_A)] == 100
        assert signs[(MovementCategory.SHIFTING, KEY_A)] == -30
        assert signs[(MovementCategory.SHIFTING, KEY_B)] == 30
        assert signs[(MovementCategory.PRODUCTION_SHIFTING, KEY_A)] == -10
        assert signs[(MovementCategory.PRODUCTION_SHIFTING, KEY_A_PRODUCTION)] == 10
        assert signs[(MovementCategory.LOADING, KEY_B)] == -5

    async def test_balance_identity(self, ledger, service):
        await ledger.purchase(ledger.a, 100, 100.0, 20.0, on=JAN_1, status=APPROVED)
        await ledger.purchase(ledger.c, 40, 40.0, 21.0, on=JAN_2, status=APPROVED)
        await ledger.production_purchase(20, 20.0, 22.0, on=JAN_2, status=APPROVED)
        await ledger.shift(ledger.a, ledger.b, 30, 30.0, on=JAN_2, status=APPROVED)
        await ledger.production_shift(ledger.a, 10, 10.0, on=JAN_2, status=APPROVED)

        day = (await service.daily_stock(JAN_2, JAN_2)).days[0]

        opening = day.opening_bags(StockKind.WAREHOUSE)
        normal_purchases = 40
        production_shifting_out = 10
        # Shifting between sub-locations nets to zero across the warehouse view
        assert day.closing_bags(StockKind.WAREHOUSE) == (
            opening + normal_purchases - production_shifting_out
        )
        assert day.closing_bags(StockKind.PRODUCTION) == 20 + 10
        assert day.closing_bags() == opening + normal_purchases + 20

    async def test_unapproved_movements_ignored(self, ledger, service):
        await ledger.purchase(ledger.a, 100, 100.0, 20.0, on=JAN_1)
        await ledger.purchase(ledger.a, 50, 50.0, 20.0, on=JAN_1, status=MovementStatus.REJECTED)

        day = (await service.daily_stock(JAN_1, JAN_1)).days[0]

        assert day.transactions == []
        assert day.closing == []

    async def test_every_calendar_day_reported(self, ledger, service):
        await ledger.purchase(ledger.a, 100, 100.0, 20.0, on=JAN_1, status=APPROVED)

        report = await service.daily_stock(JAN_1, JAN_1 + timedelta(days=4))

        assert [d.stock_date for d in report.days] == [
            JAN_1 + timedelta(days=i) for i in range(5)
        ]
        assert report.is_continuous

    async def test_emptied_key_omitted(self, ledger, service):
        await ledger.purchase(ledger.b, 10, 10.0, 20.0, on=JAN_1, status=APPROVED)
        await ledger.load(ledger.b, 10, 10.0, on=JAN_2, status=APPROVED)

        report = await service.daily_stock(JAN_1, JAN_2)

        assert _balance(report.days[0], KEY_B) == 10
        assert report.days[1].closing_balance(KEY_B) is None
        assert report.is_continuous

    async def test_idempotent(self, ledger, service):
        await ledger.purchase(ledger.a, 100, 100.0, 20.0, on=JAN_1, status=APPROVED)
        await ledger.shift(ledger.a, ledger.b, 30, 30.0, on=JAN_2, status=APPROVED)

        first = await service.daily_stock(JAN_1, JAN_3)
        second = await service.daily_stock(JAN_1, JAN_3)

        assert first == second

    async def test_reversed_range(self, service):
        with pytest.raises(ValidationError):
            await service.daily_stock(JAN_3, JAN_1)

    async def test_range_too_long(self, memory_store):
        service = DailyStockService(memory_store, max_days=2)
        with pytest.raises(ValidationError):
            await service.daily_stock(JAN_1, JAN_3)

    async def test_strict_raises_on_violation(self, ledger, service, monkeypatch):
        violation = ContinuityViolation(
            key=KEY_A,
            stock_date=JAN_1,
            next_date=JAN_2,
            closing_bags=1,
            opening_bags=0,
            closing_weight=1.0,
            opening_weight=0.0,
        )
        monkeypatch.setattr(daily_stock_module, "check_continuity", lambda days, tol: [violation])

        report = await service.daily_stock(JAN_1, JAN_2)
        assert report.violations == [violation]

        with pytest.raises(ContinuityViolationError):
            await service.daily_stock(JAN_1, JAN_2, strict=True)


class TestCheckContinuity:
    def _balance(self, key: str, bags: int) -> StockBalance:
        return StockBalance(key=key, kind=StockKind.WAREHOUSE, variety="Sona", bags=bags, net_weight=float(bags))

    def test_continuous(self):
        days = [
            DailyStockSnapshot(stock_date=JAN_1, closing=[self._balance(KEY_A, 10)]),
            DailyStockSnapshot(stock_date=JAN_2, opening=[self._balance(KEY_A, 10)]),
        ]
        assert check_continuity(days) == []

    def test_mismatch(self):
        days = [
            DailyStockSnapshot(stock_date=JAN_1, closing=[self._balance(KEY_A, 10)]),
            DailyStockSnapshot(stock_date=JAN_2, opening=[self._balance(KEY_A, 9)]),
        ]
        [violation] = check_continuity(days)
        assert violation.closing_bags == 10
        assert violation.opening_bags == 9

    def test_vanished_key_counts_as_zero(self):
        days = [
            DailyStockSnapshot(stock_date=JAN_2, opening=[]),
            DailyStockSnapshot(stock_date=JAN_1, closing=[self._balance(KEY_B, 4)]),
        ]
        [violation] = check_continuity(days)
        assert violation.key == KEY_B
        assert violation.stock_date == JAN_1
        assert violation.opening_bags == 0
