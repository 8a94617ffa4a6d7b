"""Typed domain representations shared by ingestion, reporting, and the API."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class BetResult(str, Enum):
    WON = "Won"
    LOST = "Lost"


class BetCategory(str, Enum):
    """Subgraph entity holding one of the two betting markets."""

    STANDARD = "bets"
    LIVE = "liveBets"

    @property
    def entity(self) -> str:
        return self.value


@dataclass(slots=True, frozen=True)
class BetRecord:
    """Resolved bet as projected from the subgraph.

    Amount and odds stay as the decimal strings the indexer returns; parsing
    happens during aggregation.
    """

    amount: str
    odds: str
    result: str

    @property
    def is_won(self) -> bool:
        return self.result == BetResult.WON.value


@dataclass(slots=True, frozen=True)
class TimeWindow:
    """Closed interval of unix seconds."""

    from_inclusive: int
    to_inclusive: int

    def __post_init__(self) -> None:
        if self.from_inclusive > self.to_inclusive:
            raise ValueError(
                f"TimeWindow start {self.from_inclusive} is after end {self.to_inclusive}"
            )

    def __str__(self) -> str:
        return f"[{self.from_inclusive}, {self.to_inclusive}]"


@dataclass(slots=True, frozen=True)
class AggregateAmounts:
    total_wagered: float
    total_won: float

    @property
    def profit(self) -> float:
        return self.total_wagered - self.total_won


@dataclass(slots=True, frozen=True)
class FeeReport:
    """Fee and revenue figures for one chain at one report timestamp."""

    timestamp: int
    daily_fees: str
    daily_revenue: str
    total_fees: str
    total_revenue: str

    def to_dict(self) -> dict[str, object]:
        return {
            "timestamp": self.timestamp,
            "dailyFees": self.daily_fees,
            "dailyRevenue": self.daily_revenue,
            "totalFees": self.total_fees,
            "totalRevenue": self.total_revenue,
        }
