from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import httpx
import pytest

from app.core.config import ChainConfig, Settings


ENDPOINT = "https://subgraph.example/azuro-api-test"


@pytest.fixture
def sample_bets_payload() -> dict[str, object]:
    path = Path(__file__).parent / "data" / "sample_bets.json"
    return json.loads(path.read_text(encoding="utf-8"))


@pytest.fixture
def test_settings(monkeypatch) -> Settings:
    settings = Settings(
        subgraph_page_size=3,
        subgraph_timeout_seconds=5.0,
        report_fetch_workers=4,
        chains={
            "Polygon": ChainConfig(endpoint=ENDPOINT, start_timestamp=1675209600),
            "chiliz": ChainConfig(
                endpoint="https://subgraph.example/azuro-api-chiliz",
                start_timestamp=1716422400,
            ),
        },
    )
    monkeypatch.setattr("app.core.config.get_settings", lambda: settings)
    monkeypatch.setattr("app.core.config.settings", settings)
    return settings


def make_bet(amount: object, odds: object = "1", result: str = "Lost") -> dict[str, Any]:
    return {"amount": str(amount), "odds": str(odds), "result": result}


class RecordingSubgraph:
    """In-memory subgraph that serves bets page by page and records each request."""

    def __init__(self, bets_by_entity: dict[str, list[dict[str, Any]]]) -> None:
        self.bets_by_entity = bets_by_entity
        self.requests: list[dict[str, Any]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        query = json.loads(request.content)["query"]
        entity = "liveBets" if "liveBets(" in query else "bets"
        first = int(query.split("first:")[1].split(",")[0])
        skip = int(query.split("skip:")[1].split(")")[0])
        self.requests.append({"entity": entity, "first": first, "skip": skip, "query": query})
        rows = self.bets_by_entity.get(entity, [])[skip : skip + first]
        return httpx.Response(200, json={"data": {entity: rows}})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def subgraph_factory() -> Callable[[dict[str, list[dict[str, Any]]]], RecordingSubgraph]:
    return RecordingSubgraph
