import argparse
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterator, TextIO

from loguru import logger

from app.core.config import Settings, get_settings
from app.domain import FeeReport, UnknownChainError
from pipelines.daily_run import (
    SECONDS_PER_DAY,
    build_report,
    parse_timestamp,
    start_of_utc_day,
)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Backfill one fee report per UTC day for a chain")
    parser.add_argument("--chain", required=True, help="Configured chain name")
    parser.add_argument(
        "--from",
        dest="from_date",
        default=None,
        help="First UTC day whose bets are reported (unix seconds or ISO date); defaults to chain inception",
    )
    parser.add_argument(
        "--to",
        dest="to_date",
        default=None,
        help="Last UTC day whose bets are reported (unix seconds or ISO date); defaults to yesterday",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Append JSON lines to this file instead of stdout",
    )
    return parser.parse_args(argv)


def iter_report_days(first_day: int, last_day: int) -> Iterator[int]:
    day = start_of_utc_day(first_day)
    last = start_of_utc_day(last_day)
    while day <= last:
        yield day
        day += SECONDS_PER_DAY


def backfill(
    chain: str,
    settings: Settings,
    *,
    first_day: int | None,
    last_day: int | None,
    sink: TextIO,
    now: datetime | None = None,
    report_fn: Callable[..., FeeReport] = build_report,
) -> int:
    config = settings.chain(chain)
    if first_day is None:
        first_day = config.start_timestamp
    if last_day is None:
        today = start_of_utc_day(int((now or datetime.now(timezone.utc)).timestamp()))
        last_day = today - SECONDS_PER_DAY

    written = 0
    for day in iter_report_days(max(first_day, config.start_timestamp), last_day):
        # A report taken at midnight covers the day that just ended.
        report = report_fn(
            str(config.endpoint),
            config.start_timestamp,
            day + SECONDS_PER_DAY,
            settings=settings,
        )
        sink.write(json.dumps({"chain": chain, **report.to_dict()}, sort_keys=True) + "\n")
        sink.flush()
        written += 1
    logger.info("Backfilled {} daily reports for {}", written, chain)
    return written


def main(argv=None) -> None:
    args = parse_args(argv)
    settings = get_settings()

    first_day = parse_timestamp(args.from_date) if args.from_date else None
    last_day = parse_timestamp(args.to_date) if args.to_date else None

    sink = args.output.open("a", encoding="utf-8") if args.output else sys.stdout
    try:
        backfill(
            args.chain,
            settings,
            first_day=first_day,
            last_day=last_day,
            sink=sink,
        )
    except UnknownChainError as exc:
        logger.error("{}", exc)
        raise SystemExit(2) from exc
    except Exception as exc:
        logger.exception("Backfill for {} stopped on failure", args.chain)
        raise SystemExit(1) from exc
    finally:
        if sink is not sys.stdout:
            sink.close()


if __name__ == "__main__":
    main()
