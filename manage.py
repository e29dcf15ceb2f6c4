#!/usr/bin/env python3
"""
Paddy Ledger management CLI.

Usage:
    python manage.py init-db                       Create the ledger database
    python manage.py location-state 3 [--as-of D]  Replayed bags and rate of a sub-location
    python manage.py daily-stock FROM TO           Daily opening / closing stock
    python manage.py approve 7 8 --approver-id 1 --role manager
    python manage.py reject 9 --approver-id 1 --role manager --remarks "..."
    python manage.py reconcile [--repair]          Compare cached state with replay
"""

import argparse
import asyncio
import sys
from collections.abc import Awaitable, Callable
from datetime import date

from paddy_ledger.application.dto.requests import DailyStockRequest, RejectMovementRequest
from paddy_ledger.application.services import get_ledger_store, reset_services
from paddy_ledger.application.use_cases import (
    ApproveMovementsUseCase,
    DailyStockReportUseCase,
    GetLocationStateUseCase,
    ReconcileLocationsUseCase,
    RejectMovementUseCase,
)
from paddy_ledger.config import configure_logging, get_settings
from paddy_ledger.core.exceptions import LedgerError


async def cmd_init_db(args: argparse.Namespace) -> int:
    await get_ledger_store()
    print(f"Ledger database ready at {get_settings().storage.db_path}")
    return 0


async def cmd_location_state(args: argparse.Namespace) -> int:
    use_case = GetLocationStateUseCase()
    state = await use_case.execute(args.location_id, args.as_of)
    print(use_case.to_response(state).model_dump_json(indent=2))
    return 0


async def cmd_daily_stock(args: argparse.Namespace) -> int:
    use_case = DailyStockReportUseCase()
    report = await use_case.execute(
        DailyStockRequest(date_from=args.date_from, date_to=args.date_to, strict=args.strict)
    )
    print(use_case.to_response(report).model_dump_json(indent=2))
    return 0 if report.is_continuous else 2


async def cmd_approve(args: argparse.Namespace) -> int:
    use_case = ApproveMovementsUseCase()
    results = await use_case.bulk_approve(
        args.movement_ids,
        approver_id=args.approver_id,
        approver_role=args.role,
        all_or_nothing=args.all_or_nothing,
        stop_on_error=args.stop_on_error,
    )
    response = use_case.to_bulk_response(results)
    print(response.model_dump_json(indent=2))
    return 0 if response.failed == 0 else 1


async def cmd_reject(args: argparse.Namespace) -> int:
    movement = await RejectMovementUseCase().execute(
        RejectMovementRequest(
            movement_id=args.movement_id,
            rejected_by=args.approver_id,
            approver_role=args.role,
            remarks=args.remarks,
        )
    )
    print(f"Movement {movement.serial_no} rejected.")
    return 0


async def cmd_reconcile(args: argparse.Namespace) -> int:
    use_case = ReconcileLocationsUseCase()
    results = await use_case.execute(args.location_ids or None, repair=args.repair)
    for result in results:
        print(use_case.to_response(result).model_dump_json())
    unresolved = [r for r in results if r.error or (r.drifted and not r.repaired)]
    return 1 if unresolved else 0


def _run(handler: Callable[[argparse.Namespace], Awaitable[int]], args: argparse.Namespace) -> int:
    async def runner() -> int:
        try:
            return await handler(args)
        finally:
            await reset_services()

    try:
        return asyncio.run(runner())
    except LedgerError as e:
        print(f"Error [{e.code}]: {e.message}", file=sys.stderr)
        return 1


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Paddy Ledger management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # init-db
    p_init = sub.add_parser("init-db", help="Create the ledger database and schema")
    p_init.set_defaults(func=cmd_init_db)

    # location-state
    p_state = sub.add_parser("location-state", help="Show replayed state of a sub-location")
    p_state.add_argument("location_id", type=int, help="Sub-location ID")
    p_state.add_argument("--as-of", type=date.fromisoformat, default=None, help="Date (YYYY-MM-DD)")
    p_state.set_defaults(func=cmd_location_state)

    # daily-stock
    p_daily = sub.add_parser("daily-stock", help="Daily stock report for a date range")
    p_daily.add_argument("date_from", type=date.fromisoformat, help="First day (YYYY-MM-DD)")
    p_daily.add_argument("date_to", type=date.fromisoformat, help="Last day (YYYY-MM-DD)")
    p_daily.add_argument("--strict", action="store_true", help="Fail on continuity violations")
    p_daily.set_defaults(func=cmd_daily_stock)

    # approve
    p_approve = sub.add_parser("approve", help="Approve pending movements in order")
    p_approve.add_argument("movement_ids", type=int, nargs="+", help="Movement IDs")
    p_approve.add_argument("--approver-id", type=int, required=True, help="Approving user ID")
    p_approve.add_argument("--role", required=True, help="Approver role (e.g. manager, admin)")
    p_approve.add_argument("--all-or-nothing", action="store_true", help="Single transaction for the batch")
    p_approve.add_argument("--stop-on-error", action="store_true", help="Stop at the first failure")
    p_approve.set_defaults(func=cmd_approve)

    # reject
    p_reject = sub.add_parser("reject", help="Reject a pending movement")
    p_reject.add_argument("movement_id", type=int, help="Movement ID")
    p_reject.add_argument("--approver-id", type=int, required=True, help="Rejecting user ID")
    p_reject.add_argument("--role", required=True, help="Approver role")
    p_reject.add_argument("--remarks", default=None, help="Reason for rejection")
    p_reject.set_defaults(func=cmd_reject)

    # reconcile
    p_reconcile = sub.add_parser("reconcile", help="Compare cached location state with replay")
    p_reconcile.add_argument("location_ids", type=int, nargs="*", help="Sub-location IDs (default: all)")
    p_reconcile.add_argument("--repair", action="store_true", help="Rewrite drifted cached state")
    p_reconcile.set_defaults(func=cmd_reconcile)

    args = parser.parse_args()
    configure_logging()
    sys.exit(_run(args.func, args))


if __name__ == "__main__":
    main()
