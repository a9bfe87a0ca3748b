"""
Stop-loss solver for new leveraged positions.

For a position of `token_amount` tokens and a desired stop-loss price, find
the nearest executable stop (moving away from the current price) whose full
close interval neither overlaps an existing reservation nor enters the
reservation buffer of its predecessor. Then report the settlement amount,
loss percentage, leverage and estimated margin.

- Long positions close by selling downward into the "down_orders" book.
- Short positions close by buying upward into the "up_orders" book.
- The desired stop is first clamped to at least `min_stop_loss_per_mille`
  away from the current price; each failed attempt moves the candidate a
  further `price_adjustment_per_mille` of itself away.
- The relaxation loop is bounded; `relax_stop_loss` returns `Solved` or
  `NotFound` and the public wrappers raise SolverNonConvergence on the latter.

SOL-denominated variants binary-search the largest token amount whose
estimated margin stays strictly under a SOL budget, falling back to a small
position when nothing in the search range fits.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Callable, Optional, Sequence

from . import curve
from .book_orders import OrderLike, coerce_orders
from .core.amounts import parse_uint, require_positive
from .core.config import PLANNER_CFG, PlannerConfig
from .core.constants import INITIAL_PRICE, MAX_PRICE, MIN_PRICE, U64_MAX
from .core.datatypes import (
    DOWN_ORDERS,
    LONG,
    SHORT,
    UP_ORDERS,
    NotFound,
    Order,
    SolStopLossResult,
    Solved,
    StopLossResult,
    StopLossSearch,
)
from .core.exc import CurveDomainError, InputValidationError, PriceBoundsError, SolverNonConvergence
from .core.fmt import leverage_ratio, loss_percentage
from .insertion import check_price_range_overlap

# --- Debug utilities (toggleable) ---
DEBUG_STOP_LOSS = False

def _dbg(msg: str) -> None:
    if DEBUG_STOP_LOSS:
        print(f"[STOP] {msg}")


@dataclass(frozen=True)
class _Side:
    order_type: str
    book_side: str
    close: Callable[[int, int], Optional[tuple]]
    seed: Callable[[int, int], Optional[tuple]]


_LONG = _Side(LONG, DOWN_ORDERS, curve.sell_with_token_input, curve.sell_with_sol_output)
_SHORT = _Side(SHORT, UP_ORDERS, curve.buy_with_token_output, curve.buy_with_sol_input)
_SIDES = {LONG: _LONG, SHORT: _SHORT}


def _side(order_type: str) -> _Side:
    s = _SIDES.get(order_type)
    if s is None:
        raise InputValidationError(f"order_type must be 'long' or 'short', got {order_type!r}")
    return s


def resolve_current_price(last_price: Optional[int]) -> int:
    """Use `last_price` when given; a missing or zero price means the curve's initial price."""
    if last_price is None or last_price == 0 or last_price == "":
        return INITIAL_PRICE
    price = parse_uint(last_price, "current_price")
    if price < MIN_PRICE or price > MAX_PRICE:
        raise CurveDomainError(f"current_price={price} outside curve bounds [{MIN_PRICE}, {MAX_PRICE}]")
    return price


def clamp_stop_price(order_type: str, current_price: int, stop_price: int, config: PlannerConfig = PLANNER_CFG) -> int:
    """Push `stop_price` at least `min_stop_loss_per_mille` away from the current price."""
    min_dist = current_price * config.min_stop_loss_per_mille // 1000
    if order_type == LONG:
        stop = min(stop_price, current_price - min_dist)
        if stop >= current_price:
            raise PriceBoundsError(stop, current_price, "does not lie below the current price")
        if stop < MIN_PRICE:
            raise PriceBoundsError(stop, MIN_PRICE, "fell below MIN_PRICE")
    else:
        stop = max(stop_price, current_price + min_dist)
        if stop <= current_price:
            raise PriceBoundsError(stop, current_price, "does not lie above the current price")
        if stop >= MAX_PRICE:
            raise PriceBoundsError(stop, MAX_PRICE, "reached MAX_PRICE")
    return stop


# ----------------------------
# Relaxation loop
# ----------------------------

def relax_stop_loss(
    order_type: str,
    orders: Sequence[Order],
    stop_price: int,
    token_amount: int,
    *,
    config: PlannerConfig = PLANNER_CFG,
) -> StopLossSearch:
    """Move `stop_price` away from the market until its close interval is free.

    Returns Solved(price, ...) or NotFound after `max_stop_loss_iterations`
    attempts. Leaving the curve bounds raises PriceBoundsError.
    """
    s = _side(order_type)
    candidate = stop_price
    for iteration in range(config.max_stop_loss_iterations):
        closed = s.close(candidate, token_amount)
        if closed is None:
            raise CurveDomainError(f"Failed to calculate stop loss end price from {candidate} for {token_amount} tokens")
        end_price, amount = closed
        plan = check_price_range_overlap(s.book_side, orders, candidate, end_price, config=config)
        if plan.no_overlap:
            _dbg(f"{order_type}: solved at {candidate} after {iteration} adjustments")
            return Solved(
                price=candidate,
                end_price=end_price,
                trade_amount=amount,
                iterations=iteration,
                close_insert_indices=plan.close_insert_indices,
            )
        step = candidate * config.price_adjustment_per_mille // 1000
        if order_type == LONG:
            candidate -= step
            if candidate < MIN_PRICE:
                raise PriceBoundsError(candidate, MIN_PRICE, "fell below MIN_PRICE after adjustment")
        else:
            candidate += step
            if candidate >= MAX_PRICE:
                raise PriceBoundsError(candidate, MAX_PRICE, "reached MAX_PRICE after adjustment")
        _dbg(f"{order_type}: {plan.status} -> candidate {candidate}")
    return NotFound(iterations=config.max_stop_loss_iterations, last_candidate=candidate)


# ----------------------------
# Margin estimation
# ----------------------------

def estimate_margin(order_type: str, current_price: int, token_amount: int, trade_amount: int, borrow_fee: int) -> int:
    """SOL shortfall between opening at `current_price` and closing for `trade_amount`, floored at 0.

    - long: cost of buying the tokens now, minus close proceeds net of fee.
    - short: close cost plus fee, minus opening proceeds and the opening fee.
    """
    if order_type == LONG:
        opened = curve.buy_with_token_output(current_price, token_amount)
        if opened is None:
            raise CurveDomainError(f"Cannot price opening buy of {token_amount} tokens at {current_price}")
        required = opened[1]
        return max(required - curve.amount_after_fee(trade_amount, borrow_fee), 0)
    opened = curve.sell_with_token_input(current_price, token_amount)
    if opened is None:
        raise CurveDomainError(f"Cannot price opening sell of {token_amount} tokens at {current_price}")
    gain = opened[1]
    close_cost = trade_amount + curve.fee_on(trade_amount, borrow_fee)
    return max(close_cost - gain - curve.fee_on(gain, borrow_fee), 0)


# ----------------------------
# Token-denominated solves
# ----------------------------

def simulate_stop_loss(
    order_type: str,
    orders: Sequence[OrderLike],
    token_amount: int,
    stop_loss_price: int,
    current_price: Optional[int] = None,
    *,
    borrow_fee: Optional[int] = None,
    config: PlannerConfig = PLANNER_CFG,
) -> StopLossResult:
    s = _side(order_type)
    cur = resolve_current_price(current_price)
    amount = require_positive(token_amount, "token_amount")
    original = parse_uint(stop_loss_price, "stop_loss_price")
    fee = config.borrow_fee if borrow_fee is None else borrow_fee
    book = coerce_orders(orders, book_side=s.book_side)

    stop = clamp_stop_price(order_type, cur, original, config)
    search = relax_stop_loss(order_type, book, stop, amount, config=config)
    if isinstance(search, NotFound):
        raise SolverNonConvergence("Stop-loss relaxation", search.iterations, last_candidate=search.last_candidate)

    margin = estimate_margin(order_type, cur, amount, search.trade_amount, fee)
    return StopLossResult(
        order_type=order_type,
        token_amount=amount,
        executable_price=search.price,
        end_price=search.end_price,
        trade_amount=search.trade_amount,
        stop_loss_percentage=loss_percentage(cur, search.price),
        leverage=leverage_ratio(cur, search.price),
        current_price=cur,
        iterations=search.iterations,
        original_stop_loss_price=original,
        close_insert_indices=list(search.close_insert_indices),
        estimated_margin=margin,
    )


def simulate_long_stop_loss(orders, buy_token_amount, stop_loss_price, current_price=None, **kw) -> StopLossResult:
    """Long position: stop below the price, closed by selling into down_orders."""
    return simulate_stop_loss(LONG, orders, buy_token_amount, stop_loss_price, current_price, **kw)


def simulate_short_stop_loss(orders, sell_token_amount, stop_loss_price, current_price=None, **kw) -> StopLossResult:
    """Short position: stop above the price, closed by buying into up_orders."""
    return simulate_stop_loss(SHORT, orders, sell_token_amount, stop_loss_price, current_price, **kw)


# ----------------------------
# SOL-denominated solves (budget search)
# ----------------------------

def simulate_sol_stop_loss(
    order_type: str,
    orders: Sequence[OrderLike],
    sol_budget: int,
    stop_loss_price: int,
    current_price: Optional[int] = None,
    *,
    borrow_fee: Optional[int] = None,
    config: PlannerConfig = PLANNER_CFG,
) -> SolStopLossResult:
    """Largest position whose estimated margin stays strictly below `sol_budget`.

    Candidate sizes whose close cannot be represented on the curve count as
    too large. A stop pushed past the curve bounds (PriceBoundsError) and
    non-convergence of the relaxation loop both propagate.
    """
    s = _side(order_type)
    cur = resolve_current_price(current_price)
    budget = require_positive(sol_budget, "sol_budget")
    book = coerce_orders(orders, book_side=s.book_side)

    seeded = s.seed(cur, budget)
    if seeded is None:
        raise CurveDomainError(f"Failed to calculate token amount from {budget} lamports at {cur}")
    initial = seeded[1]

    def _solve(amount: int) -> StopLossResult:
        return simulate_stop_loss(
            order_type, book, amount, stop_loss_price, cur, borrow_fee=borrow_fee, config=config
        )

    left, right = 1, min(initial * 10, U64_MAX)
    best: Optional[StopLossResult] = None
    iterations = 0
    while iterations < config.max_margin_search_iterations and left <= right:
        mid = (left + right) // 2
        iterations += 1
        try:
            res = _solve(mid)
        except PriceBoundsError:
            raise
        except CurveDomainError as e:
            _dbg(f"budget search: {mid} tokens not representable ({e})")
            right = mid - 1
            continue
        if res.estimated_margin < budget:
            if best is None or mid > best.token_amount:
                best = res
            if budget - res.estimated_margin <= config.margin_tolerance:
                break
            left = mid + 1
        else:
            right = mid - 1

    used_fallback = best is None
    if used_fallback:
        amount = initial // 10
        if amount <= 0:
            amount = config.fallback_token_amount
        _dbg(f"budget search: no size under {budget}, falling back to {amount}")
        best = _solve(amount)

    base = {f.name: getattr(best, f.name) for f in fields(StopLossResult)}
    return SolStopLossResult(**base, sol_budget=budget, search_iterations=iterations, used_fallback=used_fallback)


def simulate_long_sol_stop_loss(orders, buy_sol_amount, stop_loss_price, current_price=None, **kw) -> SolStopLossResult:
    return simulate_sol_stop_loss(LONG, orders, buy_sol_amount, stop_loss_price, current_price, **kw)


def simulate_short_sol_stop_loss(orders, sell_sol_amount, stop_loss_price, current_price=None, **kw) -> SolStopLossResult:
    return simulate_sol_stop_loss(SHORT, orders, sell_sol_amount, stop_loss_price, current_price, **kw)


__all__ = [
    "resolve_current_price",
    "clamp_stop_price",
    "relax_stop_loss",
    "estimate_margin",
    "simulate_stop_loss",
    "simulate_long_stop_loss",
    "simulate_short_stop_loss",
    "simulate_sol_stop_loss",
    "simulate_long_sol_stop_loss",
    "simulate_short_sol_stop_loss",
]
