"""Run one trend snapshot calculation from the command line.

Intended to be invoked by an external scheduler (cron, a platform job).
Exits with status 1 if any aggregate failed; the others stay committed.
"""
from __future__ import annotations

import argparse
import logging
import sys

from rankshare.core.errors import AggregationPartialFailure
from rankshare.db.session import SessionLocal, create_tables
from rankshare.models import TrendPeriod
from rankshare.services.trend_aggregator import TrendAggregator


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Calculate trend snapshots")
    parser.add_argument(
        "--period",
        action="append",
        choices=[period.value for period in TrendPeriod],
        help="Period to calculate; repeat for several. Defaults to all periods.",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before running.",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    if args.create_tables:
        create_tables()

    periods = [TrendPeriod(value) for value in args.period] if args.period else None
    report = TrendAggregator(SessionLocal).run(periods)
    for outcome in report.outcomes:
        status = "ok" if outcome.ok else f"FAILED ({outcome.error})"
        print(
            f"[trends] {outcome.period.value}/{outcome.aggregate.value}: "
            f"{outcome.row_count} rows {status}"
        )

    try:
        report.raise_for_failures()
    except AggregationPartialFailure as exc:
        print(f"[trends] ERROR: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
