"""Domain models and errors for fee reporting."""

from .errors import (
    FeeReportError,
    MalformedBetError,
    PaginationLimitExceeded,
    SubgraphQueryError,
    UnknownChainError,
)
from .models import (
    AggregateAmounts,
    BetCategory,
    BetRecord,
    BetResult,
    FeeReport,
    TimeWindow,
)

__all__ = [
    "AggregateAmounts",
    "BetCategory",
    "BetRecord",
    "BetResult",
    "FeeReport",
    "FeeReportError",
    "MalformedBetError",
    "PaginationLimitExceeded",
    "SubgraphQueryError",
    "TimeWindow",
    "UnknownChainError",
]
