from __future__ import annotations

import pytest

from app.domain import AggregateAmounts, BetRecord, MalformedBetError
from app.services.aggregation import aggregate, format_amount


def test_aggregate_sums_stakes_and_winner_payouts():
    records = [
        BetRecord(amount="10", odds="2", result="Won"),
        BetRecord(amount="5", odds="3", result="Lost"),
    ]

    amounts = aggregate(records)

    assert amounts == AggregateAmounts(total_wagered=15.0, total_won=20.0)
    assert amounts.profit == -5.0


def test_aggregate_of_no_bets_is_zero():
    amounts = aggregate([])

    assert amounts.total_wagered == 0.0
    assert amounts.total_won == 0.0
    assert format_amount(amounts.profit) == "0"


def test_aggregate_merged_categories_match_single_list():
    standard = [BetRecord(amount="10", odds="1", result="Won")]
    live = [BetRecord(amount="5", odds="1", result="Lost")]

    merged = aggregate(standard + live)

    assert merged == aggregate([*live, *standard])
    assert merged.total_wagered == 15.0
    assert merged.total_won == 10.0


def test_aggregate_uses_fractional_odds():
    amounts = aggregate(
        [
            BetRecord(amount="2.5", odds="1.8", result="Won"),
            BetRecord(amount="100", odds="1.25", result="Canceled"),
        ]
    )

    assert amounts.total_wagered == pytest.approx(102.5)
    assert amounts.total_won == pytest.approx(4.5)


@pytest.mark.parametrize("amount", ["ten", "", "NaN", "inf"])
def test_aggregate_rejects_malformed_amounts(amount):
    with pytest.raises(MalformedBetError, match="amount"):
        aggregate([BetRecord(amount=amount, odds="1", result="Lost")])


def test_aggregate_rejects_malformed_odds_on_winning_bets():
    with pytest.raises(MalformedBetError, match="odds"):
        aggregate([BetRecord(amount="1", odds="x", result="Won")])


def test_aggregate_ignores_odds_of_losing_bets():
    amounts = aggregate([BetRecord(amount="1", odds="x", result="Lost")])

    assert amounts.total_wagered == 1.0


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (15.0, "15"),
        (-5.0, "-5"),
        (2.5, "2.5"),
        (0.1 + 0.2, "0.30000000000000004"),
        (-0.0, "0"),
        (1.5e-05, "1.5e-05"),
        (0.00015, "0.00015"),
    ],
)
def test_format_amount(value, expected):
    assert format_amount(value) == expected
