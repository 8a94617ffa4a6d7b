"""Reduce resolved bets to wagered and paid-out totals."""

from __future__ import annotations

import math
from typing import Iterable

from app.domain import AggregateAmounts, BetRecord, MalformedBetError


def _parse_amount(value: str, field: str) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise MalformedBetError(f"Bet {field} is not a decimal number: {value!r}") from exc
    if not math.isfinite(parsed):
        raise MalformedBetError(f"Bet {field} is not finite: {value!r}")
    return parsed


def aggregate(records: Iterable[BetRecord]) -> AggregateAmounts:
    """Sum stakes over all bets and stake x odds over winning bets.

    Losing and voided bets only count towards the wagered total. Values are
    summed as floats.
    """
    total_wagered = 0.0
    total_won = 0.0
    for record in records:
        amount = _parse_amount(record.amount, "amount")
        total_wagered += amount
        if record.is_won:
            total_won += amount * _parse_amount(record.odds, "odds")
    return AggregateAmounts(total_wagered=total_wagered, total_won=total_won)


def format_amount(value: float) -> str:
    """Render a float without a trailing ``.0`` for integral values."""
    if math.isfinite(value) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)
