#!/usr/bin/env python3
"""
Juni — Payout Runner CLI

Aggregates completed, unbilled visits into companion payouts for a period
and transfers the net amounts.  Intended for a scheduler (cron, Cloud
Scheduler) on the bi-weekly payout cadence.

Usage examples
--------------
  # Pay every eligible companion for the last 14 days
  python scripts/run_payouts.py

  # Explicit period
  python scripts/run_payouts.py --start 2026-02-01 --end 2026-02-15

  # Only specific companions, with JSON output
  python scripts/run_payouts.py --companion <uuid> --companion <uuid> --json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import uuid
from datetime import datetime, timedelta, timezone

# Ensure the project root is importable
sys.path.insert(0, ".")

from app.database import async_session_factory, engine
from app.services.payout_service import PayoutService
from app.utils.clock import utcnow

DEFAULT_PERIOD_DAYS = 14


def _parse_date(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Not an ISO date: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


async def run(args: argparse.Namespace) -> int:
    period_end = args.end or utcnow()
    period_start = args.start or period_end - timedelta(days=DEFAULT_PERIOD_DAYS)

    print(f"Running payouts for {period_start.isoformat()} .. {period_end.isoformat()}")

    service = PayoutService(async_session_factory)
    try:
        if args.companion:
            summary = await service.run_payouts(args.companion, period_start, period_end)
        else:
            summary = await service.run_payouts_for_active_companions(period_start, period_end)
    finally:
        await engine.dispose()

    print(
        f"  Processed: {summary.processed}  "
        f"Succeeded: {summary.succeeded}  Failed: {summary.failed}"
    )
    for companion_id, reason in summary.failures.items():
        print(f"  FAILED {companion_id}: {reason}")

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))

    return 1 if summary.failed else 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Juni Payout Runner: pay companions for completed visits.",
    )
    parser.add_argument(
        "--start",
        type=_parse_date,
        default=None,
        help=f"Period start (ISO date; default: end minus {DEFAULT_PERIOD_DAYS} days).",
    )
    parser.add_argument(
        "--end",
        type=_parse_date,
        default=None,
        help="Period end (ISO date; default: now).",
    )
    parser.add_argument(
        "--companion",
        type=uuid.UUID,
        action="append",
        default=None,
        help="Companion id to pay (repeatable; default: every eligible companion).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Also output the raw JSON summary.",
    )

    args = parser.parse_args()
    if args.start and args.end and args.end < args.start:
        parser.error("--end must not be before --start")

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
