from __future__ import annotations

import argparse
import json
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import ExitStack
from dataclasses import dataclass, field
from datetime import datetime, time, timezone
from itertools import chain as chain_iterables
from pathlib import Path
from typing import Callable, Hashable, Iterable, Mapping, Sequence
from uuid import uuid4

from dateutil import parser as date_parser
from loguru import logger

from app.core.config import METHODOLOGY, Settings, get_settings
from app.domain import (
    AggregateAmounts,
    BetCategory,
    BetRecord,
    FeeReport,
    MalformedBetError,
    TimeWindow,
    UnknownChainError,
)
from app.services.aggregation import aggregate, format_amount
from ingestion.service import subgraph_client

from .context import ReportWindows


SECONDS_PER_DAY = 24 * 60 * 60

FetchFn = Callable[[TimeWindow, BetCategory], Sequence[BetRecord]]
ReportFn = Callable[..., FeeReport]


def start_of_utc_day(timestamp: int) -> int:
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    day_start = datetime.combine(moment.date(), time.min, tzinfo=timezone.utc)
    return int(day_start.timestamp())


def report_windows(start_timestamp: int, report_timestamp: int) -> ReportWindows:
    day_start = start_of_utc_day(report_timestamp)
    if day_start < start_timestamp:
        raise ValueError(
            f"Report timestamp {report_timestamp} falls before chain inception {start_timestamp}"
        )
    return ReportWindows(
        report_timestamp=report_timestamp,
        day_start=day_start,
        daily=TimeWindow(day_start - SECONDS_PER_DAY, day_start),
        lifetime=TimeWindow(start_timestamp, day_start),
    )


def _fetch_concurrently(
    fetch_fn: FetchFn,
    jobs: Mapping[Hashable, tuple[TimeWindow, BetCategory]],
    *,
    max_workers: int,
) -> dict[Hashable, Sequence[BetRecord]]:
    """Run every fetch on a thread pool.

    The first failure is raised without waiting for sibling fetches; fetches
    that have not started are cancelled and running ones are abandoned.
    """
    executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="bets-fetch")
    try:
        futures = {
            executor.submit(fetch_fn, window, category): key
            for key, (window, category) in jobs.items()
        }
        results: dict[Hashable, Sequence[BetRecord]] = {}
        for future in as_completed(futures):
            results[futures[future]] = future.result()
    except BaseException:
        executor.shutdown(wait=False, cancel_futures=True)
        raise
    executor.shutdown()
    return results


def _aggregate_scope(
    endpoint: str, window: TimeWindow, records: Iterable[BetRecord]
) -> AggregateAmounts:
    try:
        return aggregate(records)
    except MalformedBetError as exc:
        raise MalformedBetError(f"{exc} (endpoint={endpoint}, window={window})") from exc


def build_report(
    endpoint: str,
    start_timestamp: int,
    report_timestamp: int,
    *,
    settings: Settings | None = None,
    fetch_fn: FetchFn | None = None,
) -> FeeReport:
    """Compute daily and lifetime pool profit for one chain.

    Standard and live bets are fetched concurrently for the trailing day and
    for the inception-to-date window, merged per window, then aggregated.
    Any failed fetch aborts the report.
    """
    settings = settings or get_settings()
    windows = report_windows(start_timestamp, report_timestamp)
    scopes = {"daily": windows.daily, "lifetime": windows.lifetime}
    jobs = {
        (scope, category): (window, category)
        for scope, window in scopes.items()
        for category in BetCategory
    }

    with ExitStack() as stack:
        if fetch_fn is None:
            client = stack.enter_context(subgraph_client(endpoint, settings))
            fetch_fn = client.fetch_all_bets
        results = _fetch_concurrently(
            fetch_fn, jobs, max_workers=settings.report_fetch_workers
        )

    amounts = {
        scope: _aggregate_scope(
            endpoint,
            window,
            chain_iterables.from_iterable(results[(scope, category)] for category in BetCategory),
        )
        for scope, window in scopes.items()
    }
    daily_profit = format_amount(amounts["daily"].profit)
    total_profit = format_amount(amounts["lifetime"].profit)

    logger.info(
        "Built fee report for {} at {} (daily window {}, daily={}, total={})",
        endpoint,
        report_timestamp,
        windows.daily,
        daily_profit,
        total_profit,
    )
    return FeeReport(
        timestamp=report_timestamp,
        daily_fees=daily_profit,
        daily_revenue=daily_profit,
        total_fees=total_profit,
        total_revenue=total_profit,
    )


@dataclass(slots=True)
class PipelineSummary:
    run_id: str
    report_timestamp: int
    chains: list[str]
    reports: dict[str, FeeReport] = field(default_factory=dict)
    failures: list[dict[str, str]] = field(default_factory=list)

    @property
    def failed_chains(self) -> int:
        return len(self.failures)

    def to_dict(self) -> dict[str, object]:
        return {
            "run_id": self.run_id,
            "report_timestamp": self.report_timestamp,
            "chains": list(self.chains),
            "reports": {
                chain: report.to_dict() for chain, report in sorted(self.reports.items())
            },
            "failures": self.failures,
        }


def parse_timestamp(value: str | int) -> int:
    """Accept unix seconds or an ISO date/datetime (naive values are UTC).

    Eight-digit values are read as ISO basic dates (YYYYMMDD), not unix seconds.
    """
    if isinstance(value, int):
        return value
    text = value.strip()
    if text.lstrip("-").isdigit() and len(text) != 8:
        return int(text)
    try:
        parsed = date_parser.isoparse(text)
    except ValueError as exc:
        raise ValueError(f"Invalid timestamp '{value}': expected unix seconds or ISO date") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def _resolve_chains(requested: Iterable[str] | None, settings: Settings) -> list[str]:
    if not requested:
        return list(settings.chains)
    names: list[str] = []
    for raw_name in requested:
        name = raw_name.strip().lower()
        if name not in settings.chains:
            raise UnknownChainError(name, sorted(settings.chains))
        if name not in names:
            names.append(name)
    return names


def chain_table(settings: Settings) -> list[dict[str, object]]:
    return [
        {
            "chain": name,
            "endpoint": str(config.endpoint),
            "start_timestamp": config.start_timestamp,
            "methodology": dict(METHODOLOGY),
        }
        for name, config in settings.chains.items()
    ]


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compute daily pool fee reports per chain")
    parser.add_argument(
        "--timestamp",
        type=str,
        default=None,
        help=(
            "Report timestamp as unix seconds or ISO date/datetime, defaults to now "
            "(8-digit values such as 20240523 are read as dates)"
        ),
    )
    parser.add_argument(
        "--chain",
        action="append",
        default=None,
        help="Restrict execution to the named chain (repeatable)",
    )
    parser.add_argument(
        "--summary-path",
        type=Path,
        default=None,
        help="Write JSON summary to the specified path",
    )
    parser.add_argument(
        "--list-chains",
        action="store_true",
        help="Print the configured chain table and methodology, then exit",
    )
    return parser.parse_args(argv)


def run_pipeline(
    args: argparse.Namespace,
    settings: Settings,
    *,
    now: datetime | None = None,
    report_fn: ReportFn = build_report,
) -> PipelineSummary:
    if args.timestamp is not None:
        report_timestamp = parse_timestamp(args.timestamp)
    else:
        report_timestamp = int((now or datetime.now(timezone.utc)).timestamp())

    chains = _resolve_chains(args.chain, settings)
    summary = PipelineSummary(
        run_id=str(uuid4()),
        report_timestamp=report_timestamp,
        chains=chains,
    )

    logger.info(
        "Starting fee run {} (timestamp {}, chains {})",
        summary.run_id,
        report_timestamp,
        ", ".join(chains),
    )

    for chain in chains:
        config = settings.chain(chain)
        try:
            report = report_fn(
                str(config.endpoint),
                config.start_timestamp,
                report_timestamp,
                settings=settings,
            )
        except Exception as exc:
            logger.exception(
                "Fee report failed for chain {} at {}", chain, report_timestamp
            )
            summary.failures.append({"chain": chain, "error": str(exc)})
            continue
        summary.reports[chain] = report

    logger.info(
        "Fee run {} completed. reported={}, failed={}",
        summary.run_id,
        len(summary.reports),
        summary.failed_chains,
    )

    if args.summary_path:
        _write_summary(args.summary_path, summary)
        logger.info("Wrote fee run summary to {}", args.summary_path)

    if summary.failures:
        logger.warning("Fee run completed with {} failures", summary.failed_chains)

    return summary


def _write_summary(path: Path, summary: PipelineSummary) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(summary.to_dict(), indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)
    settings = get_settings()

    if args.list_chains:
        print(json.dumps(chain_table(settings), indent=2, sort_keys=True))
        return

    try:
        summary = run_pipeline(args, settings)
    except (UnknownChainError, ValueError) as exc:
        logger.error("{}", exc)
        raise SystemExit(2) from exc

    if summary.failures:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
