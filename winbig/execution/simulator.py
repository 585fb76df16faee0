"""Order book fill simulation for cost-bounded market orders."""
from __future__ import annotations

import logging
import math
from typing import Dict, List, Tuple, Union

from winbig.core.types import ExecutionResult, OrderBook, OrderLevel, Side
from winbig.execution.reason_codes import FillFailureReason


logger = logging.getLogger("winbig.simulator")

DEFAULT_EPSILON = 1e-6


def best_quotes(book: OrderBook) -> Tuple[float, float]:
    """Return (best_bid, best_ask) over executable levels, 0.0 where a side is empty."""
    bids = [lvl.price for lvl in book.bids if lvl.executable]
    asks = [lvl.price for lvl in book.asks if lvl.executable]
    best_bid = max(bids) if bids else 0.0
    best_ask = min(asks) if asks else 0.0
    return best_bid, best_ask


def fair_price(book: OrderBook) -> float:
    """
    Mid of the best quotes.

    Falls back to whichever side is quoted, 0.0 if neither is.
    """
    best_bid, best_ask = best_quotes(book)
    if best_bid > 0 and best_ask > 0:
        return (best_bid + best_ask) / 2.0
    return best_bid or best_ask


def _consumption_order(levels: List[OrderLevel], side: Side) -> List[OrderLevel]:
    # Sorted copy; the caller's book is never reordered
    executable = [lvl for lvl in levels if lvl.executable]
    return sorted(executable, key=lambda lvl: lvl.price, reverse=side is Side.SELL)


def _step_line(prefix: str, shares: float, price: float, cost: float) -> str:
    return f"{prefix} {shares:.2f} shares @ ${price:.4f} = ${cost:.2f}"


def compute_fill(
    book: OrderBook,
    target_cost: float,
    side: Union[Side, str],
    epsilon: float = DEFAULT_EPSILON,
) -> ExecutionResult:
    """
    Simulate a market order that spends (BUY) or receives (SELL) target_cost.

    Walks the opposite side of the book best price first, consuming whole
    levels while the budget covers them and buying fractional shares at the
    first level it cannot clear. Adverse outcomes come back as
    success=False results rather than exceptions.
    """
    side = Side.parse(side)

    if (
        isinstance(target_cost, bool)
        or not isinstance(target_cost, (int, float))
        or not math.isfinite(target_cost)
        or target_cost <= 0
    ):
        return ExecutionResult.failure(side, FillFailureReason.INVALID_AMOUNT.value)

    levels = _consumption_order(book.levels_for(side), side)
    if not levels:
        return ExecutionResult.failure(side, FillFailureReason.EMPTY_SIDE.value)

    remaining_cost = float(target_cost)
    total_shares = 0.0
    actual_cost = 0.0
    steps: List[str] = []

    for level in levels:
        if remaining_cost < epsilon:
            break

        cost_to_clear = level.price * level.size
        if remaining_cost >= cost_to_clear:
            total_shares += level.size
            actual_cost += cost_to_clear
            remaining_cost -= cost_to_clear
            steps.append(_step_line("Filled", level.size, level.price, cost_to_clear))
        else:
            shares = remaining_cost / level.price
            total_shares += shares
            actual_cost += remaining_cost
            steps.append(_step_line("Partially filled", shares, level.price, remaining_cost))
            remaining_cost = 0.0
            break

    if total_shares <= 0:
        return ExecutionResult.failure(side, FillFailureReason.AMOUNT_TOO_LOW.value)

    vwap = actual_cost / total_shares
    mid = fair_price(book)
    impact_pct = ((vwap - mid) / mid) * 100 if mid > 0 else 0.0

    verb = "Buy" if side is Side.BUY else "Sell"
    summary = (
        f"{verb} {total_shares:.2f} shares for ${actual_cost:.2f} "
        f"(VWAP: ${vwap:.4f}, impact: {impact_pct:+.2f}%)"
    )

    logger.debug(
        f"{side.value} fill: {len(steps)} levels, {total_shares:.4f} shares, "
        f"vwap={vwap:.4f}, impact={impact_pct:.2f}%"
    )

    return ExecutionResult(
        success=True,
        side=side,
        vwap=vwap,
        total_cost=actual_cost,
        executed_shares=total_shares,
        potential_payout=total_shares,
        price_impact_pct=impact_pct,
        fair_price=mid,
        fill_ratio=actual_cost / target_cost,
        levels_consumed=len(steps),
        summary=summary,
        steps=steps,
    )


def preview_both_sides(
    book: OrderBook,
    target_cost: float,
    epsilon: float = DEFAULT_EPSILON,
) -> Dict[Side, ExecutionResult]:
    """Simulate BUY and SELL against one snapshot."""
    return {side: compute_fill(book, target_cost, side, epsilon=epsilon) for side in Side}
