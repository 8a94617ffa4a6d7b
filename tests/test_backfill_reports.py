from __future__ import annotations

import io
import json
from datetime import datetime, timezone
from functools import partial

import pytest

from app.domain import BetCategory, BetRecord, FeeReport, SubgraphQueryError, TimeWindow
from pipelines.daily_run import build_report
from scripts.backfill_reports import backfill, iter_report_days

CHILIZ_START = 1716422400  # 2024-05-23


def _report_fn(calls):
    def report_fn(endpoint, start_timestamp, report_timestamp, *, settings):
        calls.append(report_timestamp)
        return FeeReport(
            timestamp=report_timestamp,
            daily_fees="1",
            daily_revenue="1",
            total_fees=str(len(calls)),
            total_revenue=str(len(calls)),
        )

    return report_fn


def test_iter_report_days_aligns_to_utc_midnight():
    days = list(iter_report_days(CHILIZ_START + 500, CHILIZ_START + 2 * 86400 + 10))

    assert days == [CHILIZ_START, CHILIZ_START + 86400, CHILIZ_START + 2 * 86400]


def test_backfill_defaults_to_inception_through_yesterday(test_settings):
    calls: list[int] = []
    sink = io.StringIO()
    now = datetime(2024, 5, 26, 8, 0, tzinfo=timezone.utc)

    written = backfill(
        "chiliz",
        test_settings,
        first_day=None,
        last_day=None,
        sink=sink,
        now=now,
        report_fn=_report_fn(calls),
    )

    assert written == 3
    # each report is taken at the midnight closing the day it covers
    assert calls == [
        CHILIZ_START + 86400,
        CHILIZ_START + 2 * 86400,
        CHILIZ_START + 3 * 86400,
    ]
    lines = [json.loads(line) for line in sink.getvalue().splitlines()]
    assert lines[0] == {
        "chain": "chiliz",
        "timestamp": CHILIZ_START + 86400,
        "dailyFees": "1",
        "dailyRevenue": "1",
        "totalFees": "1",
        "totalRevenue": "1",
    }
    assert lines[-1]["totalFees"] == "3"


def test_backfill_reports_bets_from_inception_day_and_yesterday(test_settings):
    resolved_at = {
        "inception": CHILIZ_START + 3600,  # 2024-05-23T01:00Z
        "yesterday": CHILIZ_START + 2 * 86400 + 43200,  # 2024-05-25T12:00Z
    }
    bets = {
        "inception": BetRecord("7", "2", "Lost"),
        "yesterday": BetRecord("10", "2", "Lost"),
    }

    def fetcher(window, category):
        if category is not BetCategory.STANDARD:
            return []
        return [
            bets[name]
            for name, moment in resolved_at.items()
            if window.from_inclusive <= moment <= window.to_inclusive
        ]

    sink = io.StringIO()
    backfill(
        "chiliz",
        test_settings,
        first_day=None,
        last_day=None,
        sink=sink,
        now=datetime(2024, 5, 26, 8, 0, tzinfo=timezone.utc),
        report_fn=partial(build_report, fetch_fn=fetcher),
    )

    lines = [json.loads(line) for line in sink.getvalue().splitlines()]
    assert [line["dailyFees"] for line in lines] == ["7", "0", "10"]
    assert lines[-1]["totalFees"] == "17"


def test_backfill_clips_start_to_inception(test_settings):
    calls: list[int] = []

    backfill(
        "chiliz",
        test_settings,
        first_day=CHILIZ_START - 10 * 86400,
        last_day=CHILIZ_START,
        sink=io.StringIO(),
        report_fn=_report_fn(calls),
    )

    assert calls == [CHILIZ_START + 86400]


def test_backfill_stops_on_first_failure(test_settings):
    sink = io.StringIO()
    calls: list[int] = []

    def report_fn(endpoint, start_timestamp, report_timestamp, *, settings):
        calls.append(report_timestamp)
        if len(calls) == 2:
            raise SubgraphQueryError(
                "indexer down",
                endpoint=endpoint,
                window=TimeWindow(start_timestamp, report_timestamp),
                category=BetCategory.STANDARD,
                skip=0,
            )
        return _report_fn([])(endpoint, start_timestamp, report_timestamp, settings=settings)

    with pytest.raises(SubgraphQueryError):
        backfill(
            "chiliz",
            test_settings,
            first_day=CHILIZ_START,
            last_day=CHILIZ_START + 5 * 86400,
            sink=sink,
            report_fn=report_fn,
        )

    assert len(sink.getvalue().splitlines()) == 1
    assert len(calls) == 2
