from __future__ import annotations

from typing import Any

from app.domain import BetRecord, MalformedBetError

BET_FIELDS = ("amount", "odds", "result")


def normalize_bet(raw_bet: Any) -> BetRecord:
    """Project a raw subgraph row onto a BetRecord.

    Numeric fields are kept as strings; they are parsed during aggregation.
    """
    if not isinstance(raw_bet, dict):
        raise MalformedBetError(f"Expected bet object, got {type(raw_bet).__name__}")

    missing = [field for field in BET_FIELDS if raw_bet.get(field) is None]
    if missing:
        raise MalformedBetError(
            f"Bet is missing field(s) {', '.join(missing)}: {raw_bet!r}"
        )

    return BetRecord(
        amount=str(raw_bet["amount"]).strip(),
        odds=str(raw_bet["odds"]).strip(),
        result=str(raw_bet["result"]),
    )
