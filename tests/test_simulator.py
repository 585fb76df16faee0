import math

import pytest

from winbig.core.types import OrderBook, OrderLevel, Side
from winbig.execution.reason_codes import FillFailureReason
from winbig.execution.simulator import compute_fill, fair_price, preview_both_sides


def make_book(bids=None, asks=None) -> OrderBook:
    return OrderBook(
        bids=[{"price": p, "size": s} for p, s in (bids or [])],
        asks=[{"price": p, "size": s} for p, s in (asks or [])],
    )


def test_buy_fills_cheapest_ask_first_regardless_of_input_order() -> None:
    book = make_book(asks=[(2, 10), (1, 5)])

    result = compute_fill(book, 7, Side.BUY)

    assert result.success
    assert result.steps[0].startswith("Filled 5.00 shares @ $1.0000")
    assert result.steps[1].startswith("Partially filled 1.00 shares @ $2.0000")
    assert result.executed_shares == pytest.approx(6.0)


def test_exact_level_consumption() -> None:
    book = make_book(asks=[(1, 10)])

    result = compute_fill(book, 5, "BUY")

    assert result.success is True
    assert result.executed_shares == pytest.approx(5.0)
    assert result.vwap == pytest.approx(1.0)
    assert result.total_cost == pytest.approx(5.0)
    assert result.potential_payout == result.executed_shares


def test_partial_fill_at_last_level() -> None:
    book = make_book(asks=[(1, 10), (2, 10)])

    result = compute_fill(book, 15, Side.BUY)

    assert result.success
    assert result.executed_shares == pytest.approx(12.5)
    assert result.total_cost == pytest.approx(15.0)
    assert result.vwap == pytest.approx(1.2)
    assert result.levels_consumed == 2
    assert result.steps == [
        "Filled 10.00 shares @ $1.0000 = $10.00",
        "Partially filled 2.50 shares @ $2.0000 = $5.00",
    ]


def test_budget_larger_than_book_consumes_everything() -> None:
    book = make_book(asks=[(1, 1)])

    result = compute_fill(book, 100, Side.BUY)

    assert result.success
    assert result.executed_shares == pytest.approx(1.0)
    assert result.total_cost == pytest.approx(1.0)
    assert result.fill_ratio == pytest.approx(0.01)


def test_amount_below_epsilon_fails_without_numbers() -> None:
    book = make_book(asks=[(0.5, 100)])

    result = compute_fill(book, 0.0000001, Side.BUY)

    assert result.success is False
    assert result.error == FillFailureReason.AMOUNT_TOO_LOW.value
    assert result.vwap is None
    assert result.executed_shares is None
    assert result.total_cost is None
    assert result.steps == []


def test_empty_side_fails() -> None:
    book = make_book(bids=[(0.4, 100)], asks=[])

    result = compute_fill(book, 10, Side.BUY)

    assert result.success is False
    assert result.error == FillFailureReason.EMPTY_SIDE.value


@pytest.mark.parametrize("amount", [0, -5, math.nan, math.inf])
def test_non_positive_or_non_finite_amount_fails(amount) -> None:
    book = make_book(asks=[(0.5, 100)])

    result = compute_fill(book, amount, Side.BUY)

    assert result.success is False
    assert result.error == FillFailureReason.INVALID_AMOUNT.value


def test_price_impact_against_mid() -> None:
    book = make_book(bids=[(0.40, 100)], asks=[(0.60, 100)])

    result = compute_fill(book, 6, Side.BUY)

    assert result.success
    assert result.vwap == pytest.approx(0.60)
    assert result.fair_price == pytest.approx(0.50)
    assert result.price_impact_pct == pytest.approx(20.0)
    assert "impact: +20.00%" in result.summary


def test_sell_walks_highest_bid_first() -> None:
    book = make_book(bids=[(0.30, 10), (0.50, 10)], asks=[(0.60, 10)])

    result = compute_fill(book, 6, Side.SELL)

    assert result.success
    assert result.steps[0] == "Filled 10.00 shares @ $0.5000 = $5.00"
    assert result.steps[1].startswith("Partially filled 3.33 shares @ $0.3000")
    assert result.executed_shares == pytest.approx(10 + 1 / 0.30)
    assert result.summary.startswith("Sell ")
    # Selling below the mid shows up as negative impact
    assert result.price_impact_pct < 0


def test_one_sided_book_uses_available_quote_as_fair_price() -> None:
    book = make_book(asks=[(0.25, 100)])

    result = compute_fill(book, 5, Side.BUY)

    assert result.fair_price == pytest.approx(0.25)
    assert result.price_impact_pct == pytest.approx(0.0)


def test_fair_price_uses_best_quotes_not_input_order() -> None:
    book = make_book(bids=[(0.30, 5), (0.45, 5)], asks=[(0.70, 5), (0.55, 5)])

    assert fair_price(book) == pytest.approx(0.50)
    assert fair_price(make_book()) == 0.0


def test_repeated_calls_are_identical_and_do_not_reorder_book() -> None:
    book = make_book(bids=[(0.30, 10), (0.50, 10)], asks=[(0.70, 10), (0.60, 10)])
    asks_before = [lvl.price for lvl in book.asks]

    first = compute_fill(book, 9, Side.BUY)
    second = compute_fill(book, 9, Side.BUY)

    assert first == second
    assert [lvl.price for lvl in book.asks] == asks_before


def test_malformed_levels_are_skipped() -> None:
    book = OrderBook(
        asks=[
            {"price": "abc", "size": "10"},
            {"price": "0.50", "size": "not-a-number"},
            {"price": "0.60", "size": "10"},
            {"price": None, "size": 3},
        ]
    )

    result = compute_fill(book, 3, Side.BUY)

    assert result.success
    assert result.executed_shares == pytest.approx(5.0)
    assert result.levels_consumed == 1


def test_malformed_levels_that_empty_the_side_fail_cleanly() -> None:
    book = OrderBook(asks=[{"price": "x", "size": "y"}, {"price": "-1", "size": "5"}])

    result = compute_fill(book, 3, Side.BUY)

    assert result.success is False
    assert result.error == FillFailureReason.EMPTY_SIDE.value


def test_zero_size_levels_contribute_nothing() -> None:
    book = OrderBook(asks=[OrderLevel(price=0.10, size=0), OrderLevel(price=0.20, size=50)])

    result = compute_fill(book, 2, Side.BUY)

    assert result.steps == ["Partially filled 10.00 shares @ $0.2000 = $2.00"]


def test_result_is_immutable() -> None:
    result = compute_fill(make_book(asks=[(1, 10)]), 5, Side.BUY)

    with pytest.raises(Exception):
        result.vwap = 2.0


def test_preview_both_sides_from_one_snapshot() -> None:
    book = make_book(bids=[(0.40, 100)], asks=[(0.60, 100)])

    previews = preview_both_sides(book, 12)

    assert set(previews) == {Side.BUY, Side.SELL}
    assert previews[Side.BUY].executed_shares == pytest.approx(20.0)
    assert previews[Side.SELL].executed_shares == pytest.approx(30.0)
    assert previews[Side.SELL].price_impact_pct == pytest.approx(-20.0)
