from __future__ import annotations

from typing import Any, Iterable

import httpx
from loguru import logger

from app.core.config import settings
from app.domain import (
    BetCategory,
    BetRecord,
    MalformedBetError,
    PaginationLimitExceeded,
    SubgraphQueryError,
    TimeWindow,
)

from .normalize import normalize_bet


BETS_QUERY_TEMPLATE = """
{{
    {entity}(
        where: {{
            status: Resolved,
            _isFreebet: false,
            resolvedBlockTimestamp_gte: {from_ts},
            resolvedBlockTimestamp_lte: {to_ts}
        }},
        first: {first},
        skip: {skip}
    ) {{
        amount
        odds
        result
    }}
}}
"""


def build_bets_query(
    category: BetCategory, window: TimeWindow, *, first: int, skip: int
) -> str:
    return BETS_QUERY_TEMPLATE.format(
        entity=category.entity,
        from_ts=int(window.from_inclusive),
        to_ts=int(window.to_inclusive),
        first=int(first),
        skip=int(skip),
    )


class SubgraphClient:
    """Thin wrapper around a betting protocol subgraph endpoint."""

    def __init__(
        self,
        endpoint: str,
        *,
        page_size: int | None = None,
        timeout: float | None = None,
        max_pages: int | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.endpoint = str(endpoint)
        self.page_size = page_size or settings.subgraph_page_size
        self.timeout = timeout or settings.subgraph_timeout_seconds
        self.max_pages = max_pages if max_pages is not None else settings.subgraph_max_pages
        self.client = httpx.Client(timeout=self.timeout, transport=transport)

    def _query_error(
        self, message: str, window: TimeWindow, category: BetCategory, skip: int
    ) -> SubgraphQueryError:
        return SubgraphQueryError(
            message,
            endpoint=self.endpoint,
            window=window,
            category=category,
            skip=skip,
        )

    def fetch_page(
        self, window: TimeWindow, category: BetCategory, *, skip: int
    ) -> list[BetRecord]:
        query = build_bets_query(category, window, first=self.page_size, skip=skip)
        logger.debug(
            "Subgraph POST {} entity={} window={} skip={}",
            self.endpoint,
            category.entity,
            window,
            skip,
        )
        try:
            response = self.client.post(self.endpoint, json={"query": query})
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise self._query_error(f"Subgraph request failed: {exc}", window, category, skip) from exc
        except ValueError as exc:
            raise self._query_error("Subgraph returned invalid JSON", window, category, skip) from exc

        if not isinstance(payload, dict):
            raise self._query_error("Subgraph returned a non-object payload", window, category, skip)

        errors = payload.get("errors")
        if errors:
            messages = [
                error.get("message", str(error)) if isinstance(error, dict) else str(error)
                for error in errors
            ]
            raise self._query_error(
                f"Subgraph query errors: {'; '.join(messages)}", window, category, skip
            )

        data = payload.get("data")
        rows: Any = data.get(category.entity) if isinstance(data, dict) else None
        if not isinstance(rows, list):
            raise self._query_error(
                f"Subgraph response has no '{category.entity}' list", window, category, skip
            )

        try:
            return [normalize_bet(row) for row in rows]
        except MalformedBetError as exc:
            raise MalformedBetError(
                f"{exc} (endpoint={self.endpoint}, entity={category.entity}, "
                f"window={window}, skip={skip})"
            ) from exc

    def iter_bets(self, window: TimeWindow, category: BetCategory) -> Iterable[BetRecord]:
        skip = 0
        pages = 0
        while True:
            page = self.fetch_page(window, category, skip=skip)
            pages += 1

            for bet in page:
                yield bet

            if len(page) < self.page_size:
                break

            if self.max_pages is not None and pages >= self.max_pages:
                raise PaginationLimitExceeded(
                    endpoint=self.endpoint,
                    window=window,
                    category=category,
                    max_pages=self.max_pages,
                )
            skip += self.page_size

    def fetch_all_bets(self, window: TimeWindow, category: BetCategory) -> list[BetRecord]:
        bets = list(self.iter_bets(window, category))
        logger.info(
            "Fetched {} {} from {} for window {}",
            len(bets),
            category.entity,
            self.endpoint,
            window,
        )
        return bets

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "SubgraphClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
