"""
Segmented liquidity calculator.

Walks a price-sorted list of reserved ranges (orders) once and decomposes a
target token amount into:
- free liquidity: the gaps between the current price and the first order,
  between consecutive orders, and (when the whole list was examined) the
  unbounded tail out to the curve bound; a skipped order counts as free too;
- locked liquidity: orders that would have to be force-closed.

When the running free token total first reaches the target, the exact SOL
settlement is re-solved from the start of the segment that crossed the
threshold, for precisely the portion of the target not yet accounted for.
A segment consumed in full settles at its own integrated amount.

Buy walks upward through the "up_orders" book (short positions, ascending);
sell walks downward through the "down_orders" book (long positions, descending).

Note: a target that is not reached is a normal result (`target_reached=False`,
`real_sol_amount=0`), never an exception. Malformed inputs raise
InputValidationError before any accumulation starts.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from . import curve
from .book_orders import OrderLike, coerce_orders
from .core.amounts import parse_uint, require_positive, to_u64
from .core.constants import DEFAULT_ONCE_MAX_ORDER, MAX_PRICE, MIN_PRICE
from .core.datatypes import DOWN_ORDERS, UP_ORDERS, LiquidityResult, Order
from .core.exc import CurveDomainError, InputValidationError

# --- Debug utilities (toggleable) ---
DEBUG_LIQ = False

def _dbg(msg: str) -> None:
    if DEBUG_LIQ:
        print(f"[LIQ] {msg}")


# ----------------------------
# Direction table
# ----------------------------

@dataclass(frozen=True)
class _Direction:
    name: str
    book_side: str
    bound: int
    opens: Callable[[int, int], bool]
    between: Callable[[int, int], Optional[tuple]]
    solve: Callable[[int, int], Optional[tuple]]


_BUY = _Direction(
    name="buy",
    book_side=UP_ORDERS,
    bound=MAX_PRICE,
    opens=operator.lt,
    between=curve.buy_between_prices,
    solve=curve.buy_with_token_output,
)

_SELL = _Direction(
    name="sell",
    book_side=DOWN_ORDERS,
    bound=MIN_PRICE,
    opens=operator.gt,
    between=curve.sell_between_prices,
    solve=curve.sell_with_token_input,
)

DIRECTIONS = {"buy": _BUY, "sell": _SELL}


# ----------------------------
# Accumulation state
# ----------------------------

class _Walk:
    """Running sums for one calculation; settles the exact amount once."""

    def __init__(self, d: _Direction, target: int) -> None:
        self.d = d
        self.target = target
        self.free_sol = 0
        self.free_token = 0
        self.locked_sol = 0
        self.locked_token = 0
        self.real_sol = 0
        self.settled = False
        self.force_close_num = 0

    def add_free(self, seg_start: int, sol: int, token: int, closed_so_far: int, what: str) -> None:
        before_sol, before_token = self.free_sol, self.free_token
        self.free_sol += sol
        self.free_token += token
        if self.settled or self.free_token < self.target:
            return
        remaining = self.target - before_token
        if remaining >= token:
            # the whole segment is consumed; its integrated amount is exact
            self.real_sol = before_sol + sol
        else:
            solved = self.d.solve(seg_start, remaining)
            if solved is None:
                raise CurveDomainError(
                    f"Liquidity calculation error: precise {self.d.name} of {remaining} tokens from {seg_start} ({what}) not representable"
                )
            self.real_sol = before_sol + solved[1]
        self.settled = True
        self.force_close_num = closed_so_far
        _dbg(f"settled in {what}: remaining={remaining} real={self.real_sol} force_close={closed_so_far}")

    def add_locked(self, order: Order) -> None:
        self.locked_sol += order.lock_sol_amount
        self.locked_token += order.lock_token_amount


def _gap(d: _Direction, start: int, end: int, what: str) -> tuple:
    try:
        seg = d.between(start, end)
    except CurveDomainError as e:
        raise CurveDomainError(f"Gap liquidity calculation failure: {what} [{start}, {end}]: {e}") from e
    if seg is None:
        raise CurveDomainError(f"Gap liquidity calculation failure: {what} [{start}, {end}] is empty")
    return seg


def _matches(order: Order, pass_order: Optional[str]) -> bool:
    return pass_order is not None and pass_order in (order.order_id, order.account)


# ----------------------------
# Public API
# ----------------------------

def calc_liquidity(
    side: str,
    price: int,
    token_amount: int,
    orders: Sequence[OrderLike],
    once_max_order: int = DEFAULT_ONCE_MAX_ORDER,
    pass_order: Optional[str] = None,
) -> LiquidityResult:
    """Decompose a `token_amount` buy or sell at `price` across `orders`.

    `orders` must already be sorted away from `price` (ascending for buy,
    descending for sell). Only the first `once_max_order` orders are examined;
    the unbounded tail is included only when that covers the whole list.
    `pass_order` names one order (by id or account) whose reserved liquidity
    is treated as free.
    """
    d = DIRECTIONS.get(side)
    if d is None:
        raise InputValidationError(f"Parameter validation error: side must be 'buy' or 'sell', got {side!r}")
    price = parse_uint(price, "price")
    target = require_positive(token_amount, "token_amount")
    if isinstance(once_max_order, bool) or not isinstance(once_max_order, int) or once_max_order <= 0:
        raise InputValidationError(f"Parameter validation error: once_max_order={once_max_order!r} must be a positive int")
    if pass_order is not None and (not isinstance(pass_order, str) or not pass_order):
        raise InputValidationError("Parameter validation error: pass_order must be a non-empty string or None")
    book = coerce_orders(orders, book_side=d.book_side)
    for i, order in enumerate(book):
        if order.book_side != d.book_side:
            raise InputValidationError(
                f"Order data format error: order {i} is a {order.order_type} order, {d.name} walks {d.book_side}"
            )

    ideal = d.solve(price, target)
    if ideal is None:
        raise CurveDomainError(f"Liquidity calculation error: ideal {d.name} of {target} tokens at {price} not representable")
    ideal_sol = ideal[1]

    walk = _Walk(d, target)
    skipped_index: Optional[int] = None
    has_infinite = False

    if not book:
        tail = d.between(price, d.bound)
        if tail is not None:
            walk.free_sol, walk.free_token = tail
        _dbg(f"{d.name}: empty book, ideal={ideal_sol}")
        return LiquidityResult(
            free_sol_amount=walk.free_sol,
            free_token_amount=walk.free_token,
            locked_sol_amount=0,
            locked_token_amount=0,
            has_infinite_liquidity=True,
            skipped_index=None,
            force_close_num=0,
            ideal_sol_amount=to_u64(ideal_sol, "ideal_sol_amount"),
            real_sol_amount=to_u64(ideal_sol, "real_sol_amount"),
            target_reached=True,
        )

    closed = 0
    for i, order in enumerate(book[:once_max_order]):
        gap_start = price if i == 0 else book[i - 1].lock_end_price
        gap_end = order.lock_start_price
        if d.opens(gap_start, gap_end):
            sol, token = _gap(d, gap_start, gap_end, f"gap before order {i}")
            walk.add_free(gap_start, sol, token, closed, f"gap before order {i}")

        if _matches(order, pass_order):
            skipped_index = i
            walk.add_free(order.lock_start_price, order.lock_sol_amount, order.lock_token_amount, closed, f"skipped order {i}")
        else:
            walk.add_locked(order)
            closed += 1

    if len(book) <= once_max_order:
        last_end = book[-1].lock_end_price
        if d.opens(last_end, d.bound):
            sol, token = _gap(d, last_end, d.bound, "unbounded tail")
            walk.add_free(last_end, sol, token, closed, "unbounded tail")
            has_infinite = True

    _dbg(
        f"{d.name}: free=({walk.free_sol},{walk.free_token}) locked=({walk.locked_sol},{walk.locked_token}) "
        f"settled={walk.settled} real={walk.real_sol} ideal={ideal_sol}"
    )
    return LiquidityResult(
        free_sol_amount=walk.free_sol,
        free_token_amount=walk.free_token,
        locked_sol_amount=walk.locked_sol,
        locked_token_amount=walk.locked_token,
        has_infinite_liquidity=has_infinite,
        skipped_index=skipped_index,
        force_close_num=walk.force_close_num,
        ideal_sol_amount=to_u64(ideal_sol, "ideal_sol_amount"),
        real_sol_amount=to_u64(walk.real_sol, "real_sol_amount"),
        target_reached=walk.settled,
    )


def calc_liquidity_buy(
    price: int,
    buy_token_amount: int,
    orders: Sequence[OrderLike],
    once_max_order: int = DEFAULT_ONCE_MAX_ORDER,
    pass_order: Optional[str] = None,
) -> LiquidityResult:
    """SOL needed to buy `buy_token_amount` tokens upward through the up_orders book."""
    return calc_liquidity("buy", price, buy_token_amount, orders, once_max_order, pass_order)


def calc_liquidity_sell(
    price: int,
    sell_token_amount: int,
    orders: Sequence[OrderLike],
    once_max_order: int = DEFAULT_ONCE_MAX_ORDER,
    pass_order: Optional[str] = None,
) -> LiquidityResult:
    """SOL obtained selling `sell_token_amount` tokens downward through the down_orders book."""
    return calc_liquidity("sell", price, sell_token_amount, orders, once_max_order, pass_order)


__all__ = [
    "DIRECTIONS",
    "calc_liquidity",
    "calc_liquidity_buy",
    "calc_liquidity_sell",
]
