"""Tests for the read-side use cases: location state and daily stock."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from paddy_ledger.application.dto.requests import DailyStockRequest
from paddy_ledger.application.use_cases.daily_stock_report import DailyStockReportUseCase
from paddy_ledger.application.use_cases.get_location_state import GetLocationStateUseCase
from paddy_ledger.core.entities import (
    DailyStockReport,
    DailyStockSnapshot,
    LocationState,
    StockBalance,
    StockKind,
)


class TestGetLocationState:
    @pytest.fixture
    def mock_calculator(self):
        calculator = MagicMock()
        calculator.compute_location_state = AsyncMock(
            return_value=LocationState(
                location_id=3,
                bags=50,
                net_weight=2500.0,
                weighted_average_rate=20.0,
                movement_count=2,
            )
        )
        return calculator

    async def test_delegates_to_calculator(self, mock_calculator):
        use_case = GetLocationStateUseCase(calculator=mock_calculator)

        state = await use_case.execute(3, date(2024, 1, 5))

        assert state.bags == 50
        mock_calculator.compute_location_state.assert_awaited_once_with(3, date(2024, 1, 5))

    async def test_response(self, mock_calculator):
        use_case = GetLocationStateUseCase(calculator=mock_calculator)

        response = use_case.to_response(await use_case.execute(3))

        assert response.location_id == 3
        assert response.stock_value == 50000.0
        assert response.movement_count == 2

    async def test_with_real_calculator(self, ledger, approver, calculator):
        early = await ledger.purchase(ledger.c, 10, 500.0, 20.0, on=date(2024, 1, 1))
        late = await ledger.purchase(ledger.c, 10, 500.0, 40.0, on=date(2024, 1, 3))
        await approver.bulk_approve([early.id, late.id], 1, "manager")
        use_case = GetLocationStateUseCase(calculator=calculator)

        as_of = await use_case.execute(ledger.c.id, date(2024, 1, 2))
        current = await use_case.execute(ledger.c.id)

        assert (as_of.bags, as_of.weighted_average_rate) == (10, 20.0)
        assert (current.bags, current.weighted_average_rate) == (20, 30.0)


class TestDailyStockReport:
    @pytest.fixture
    def report(self):
        balance = StockBalance(
            key="Sona-K1 - Main Godown", kind=StockKind.WAREHOUSE, variety="Sona", bags=10, net_weight=10.0
        )
        day = DailyStockSnapshot(
            stock_date=date(2024, 1, 1),
            opening=[],
            transactions=[],
            closing=[balance],
        )
        return DailyStockReport(
            date_from=date(2024, 1, 1),
            date_to=date(2024, 1, 1),
            days=[day],
        )

    async def test_passes_range_and_strictness(self, report):
        service = MagicMock()
        service.daily_stock = AsyncMock(return_value=report)
        use_case = DailyStockReportUseCase(service=service)

        result = await use_case.execute(
            DailyStockRequest(date_from=date(2024, 1, 1), date_to=date(2024, 1, 1), strict=True)
        )

        assert result is report
        service.daily_stock.assert_awaited_once_with(
            date(2024, 1, 1), date(2024, 1, 1), strict=True
        )

    def test_response(self, report):
        use_case = DailyStockReportUseCase(service=MagicMock())

        response = use_case.to_response(report)

        assert response.is_continuous
        assert len(response.days) == 1
        assert response.days[0].opening_bags == 0
        assert response.days[0].closing_bags == 10
