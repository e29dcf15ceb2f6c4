"""Daily Stock Report Use Case."""

from paddy_ledger.application.dto.requests import DailyStockRequest
from paddy_ledger.application.dto.responses import DailyStockDayResponse, DailyStockResponse
from paddy_ledger.core.entities.stock import DailyStockReport
from paddy_ledger.core.services.daily_stock import DailyStockService


class DailyStockReportUseCase:
    """Build the daily opening / transactions / closing report for a range."""

    def __init__(self, service: DailyStockService | None = None):
        self._service = service

    async def _get_service(self) -> DailyStockService:
        if self._service is None:
            from paddy_ledger.application.services import (
                get_daily_stock_service,
                get_ledger_store,
            )

            self._service = get_daily_stock_service(await get_ledger_store())
        return self._service

    async def execute(self, request: DailyStockRequest) -> DailyStockReport:
        """Execute daily stock report use case."""
        service = await self._get_service()
        return await service.daily_stock(request.date_from, request.date_to, strict=request.strict)

    def to_response(self, report: DailyStockReport) -> DailyStockResponse:
        """Convert report to response DTO."""
        return DailyStockResponse(
            date_from=report.date_from,
            date_to=report.date_to,
            is_continuous=report.is_continuous,
            violations=[str(v) for v in report.violations],
            days=[
                DailyStockDayResponse(
                    stock_date=day.stock_date,
                    opening=day.opening,
                    transactions=day.transactions,
                    closing=day.closing,
                    opening_bags=day.opening_bags(),
                    closing_bags=day.closing_bags(),
                )
                for day in report.days
            ],
        )
