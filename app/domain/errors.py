"""Failures that abort a fee report."""

from __future__ import annotations

from typing import Sequence

from .models import BetCategory, TimeWindow


class FeeReportError(Exception):
    """Base class for errors raised while building a fee report."""


class SubgraphQueryError(FeeReportError):
    """A subgraph page request failed or returned an unusable payload."""

    def __init__(
        self,
        message: str,
        *,
        endpoint: str,
        window: TimeWindow,
        category: BetCategory,
        skip: int,
    ) -> None:
        super().__init__(
            f"{message} (endpoint={endpoint}, entity={category.entity}, "
            f"window={window}, skip={skip})"
        )
        self.endpoint = endpoint
        self.window = window
        self.category = category
        self.skip = skip


class MalformedBetError(FeeReportError, ValueError):
    """A bet row or one of its numeric fields could not be parsed."""


class PaginationLimitExceeded(FeeReportError):
    """The configured page cap was reached before the source ran out of bets."""

    def __init__(
        self,
        *,
        endpoint: str,
        window: TimeWindow,
        category: BetCategory,
        max_pages: int,
    ) -> None:
        super().__init__(
            f"Stopped after {max_pages} full pages of {category.entity} "
            f"(endpoint={endpoint}, window={window})"
        )
        self.endpoint = endpoint
        self.window = window
        self.category = category
        self.max_pages = max_pages


class UnknownChainError(FeeReportError, KeyError):
    def __init__(self, chain: str, known: Sequence[str]) -> None:
        super().__init__(chain)
        self.chain = chain
        self.known = tuple(known)

    def __str__(self) -> str:
        return f"Unknown chain '{self.chain}'. Configured chains: {', '.join(self.known)}"
