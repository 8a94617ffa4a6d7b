from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import httpx

from app.core.config import Settings, get_settings
from app.domain import BetCategory, BetRecord, TimeWindow

from .client import SubgraphClient


@contextmanager
def subgraph_client(
    endpoint: str,
    settings: Settings | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
) -> Iterator[SubgraphClient]:
    settings = settings or get_settings()
    client = SubgraphClient(
        endpoint,
        page_size=settings.subgraph_page_size,
        timeout=settings.subgraph_timeout_seconds,
        max_pages=settings.subgraph_max_pages,
        transport=transport,
    )
    try:
        yield client
    finally:
        client.close()


def fetch_bets(
    endpoint: str,
    window: TimeWindow,
    category: BetCategory,
    *,
    settings: Settings | None = None,
    transport: httpx.BaseTransport | None = None,
) -> list[BetRecord]:
    """Fetch every resolved, non-free bet of one category inside the window."""
    with subgraph_client(endpoint, settings, transport=transport) as client:
        return client.fetch_all_bets(window, category)
