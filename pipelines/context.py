from __future__ import annotations

from dataclasses import dataclass

from app.domain import TimeWindow


@dataclass(slots=True, frozen=True)
class ReportWindows:
    """Time windows evaluated for one report timestamp."""

    report_timestamp: int
    day_start: int
    daily: TimeWindow
    lifetime: TimeWindow
