"""
Gap-only trade quotes.

A plain (non-liquidating) trade can only fill inside the free gaps of the
book: from the current price to the first reserved range, then between
consecutive ranges. Locked ranges are jumped over, which is where the
slippage against an ideal, order-free curve comes from.

Quotes report:
- ideal amounts (order-free curve from the current price),
- actual amounts filled through the gaps (precise on the final gap),
- completion rate when the gaps cannot absorb the whole trade,
- minimum slippage versus the no-slippage cost of what was actually filled.

The unbounded tail past the last order out to the curve bound is free
liquidity when the whole book fits within `max_orders`; a longer book is
cut at the cap and gets no tail.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Sequence

from .book_orders import OrderLike, coerce_orders
from .core.amounts import parse_uint, require_positive, to_u64
from .core.constants import DEFAULT_ONCE_MAX_ORDER
from .core.exc import CurveDomainError, InputValidationError
from .core.fmt import percent_of
from .liquidity import DIRECTIONS
from . import curve

# Debug printing control
DEBUG_QUOTES = False

def _dbg(msg: str) -> None:
    if DEBUG_QUOTES:
        print(f"[QUOTE] {msg}")


@dataclass(frozen=True)
class QuoteSegment:
    start_price: int
    end_price: int
    sol_amount: int
    token_amount: int
    valid: bool


@dataclass(frozen=True)
class TradeQuote:
    """Gap-only fill estimate for one trade."""

    side: str
    input_type: str
    input_amount: int
    limit_price: int
    total_price_span: int
    completion_rate: Decimal
    ideal_token_amount: int
    ideal_sol_amount: int
    actual_sol_amount: int
    actual_token_amount: int
    theoretical_sol_amount: int
    minimum_slippage_percentage: Decimal
    total_liquidity_sol_amount: int
    total_liquidity_token_amount: int
    segments: List[QuoteSegment] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return self.completion_rate == Decimal(100)


def _segments(side: str, price: int, orders: Sequence[OrderLike], max_orders: int) -> tuple:
    d = DIRECTIONS[side]
    if isinstance(max_orders, bool) or not isinstance(max_orders, int) or max_orders <= 0:
        raise InputValidationError(f"Parameter validation error: max_orders={max_orders!r} must be a positive int")
    book = coerce_orders(orders, book_side=d.book_side)
    for i, o in enumerate(book):
        if o.book_side != d.book_side:
            raise InputValidationError(f"Order data format error: order {i} is a {o.order_type} order, {side} walks {d.book_side}")
    if not book:
        bounds = [(price, d.bound)]
        limit = d.bound
    else:
        scanned = book[:max_orders]
        bounds = [(price, scanned[0].lock_start_price)]
        bounds += [(prev.lock_end_price, nxt.lock_start_price) for prev, nxt in zip(scanned, scanned[1:])]
        if len(book) <= max_orders:
            bounds.append((scanned[-1].lock_end_price, d.bound))
        limit = book[0].lock_start_price

    segs: List[QuoteSegment] = []
    for start, end in bounds:
        if start == end:
            segs.append(QuoteSegment(start, end, 0, 0, True))
        elif d.opens(start, end):
            sol, token = d.between(start, end)
            segs.append(QuoteSegment(start, end, sol, token, True))
        else:
            segs.append(QuoteSegment(start, end, 0, 0, False))
    return d, segs, limit


def _fill(side: str, price: int, target_token: int, orders: Sequence[OrderLike], max_orders: int) -> dict:
    d, segs, limit = _segments(side, price, orders, max_orders)
    total_sol = sum(s.sol_amount for s in segs if s.valid)
    total_token = sum(s.token_amount for s in segs if s.valid)

    reached_at: Optional[int] = None
    cum = 0
    for i, s in enumerate(segs):
        if not s.valid:
            continue
        cum += s.token_amount
        if cum >= target_token:
            reached_at = i
            break

    actual_sol = actual_token = span = 0
    for i, s in enumerate(segs):
        if not s.valid:
            continue
        if reached_at is not None and i == reached_at:
            remaining = target_token - actual_token
            if remaining >= s.token_amount:
                final_price, sol = s.end_price, s.sol_amount
            else:
                solved = d.solve(s.start_price, remaining)
                if solved is None:
                    raise CurveDomainError(f"Partial {side} of {remaining} tokens from {s.start_price} not representable")
                final_price, sol = solved
            actual_sol += sol
            actual_token += remaining
            span += abs(s.start_price - final_price) + 1
            break
        actual_sol += s.sol_amount
        actual_token += s.token_amount
        span += abs(s.start_price - s.end_price) + 1

    _dbg(f"{side}: target={target_token} reached_at={reached_at} actual=({actual_sol},{actual_token})")
    return {
        "segments": segs,
        "limit_price": limit,
        "reached": reached_at is not None,
        "actual_sol": actual_sol,
        "actual_token": actual_token,
        "span": span,
        "total_sol": total_sol,
        "total_token": total_token,
    }


def _slippage(reference: int, actual: int) -> Decimal:
    if reference <= 0:
        return Decimal(0)
    return percent_of(abs(reference - actual), reference)


def quote_buy_with_sol(
    price: int,
    sol_amount: int,
    up_orders: Sequence[OrderLike],
    max_orders: int = DEFAULT_ONCE_MAX_ORDER,
) -> TradeQuote:
    """Quote spending `sol_amount` upward through the free gaps of the up_orders book."""
    price = parse_uint(price, "price")
    sol_in = require_positive(sol_amount, "sol_amount")
    ideal = curve.buy_with_sol_input(price, sol_in)
    if ideal is None:
        raise CurveDomainError(f"Quote error: ideal buy with {sol_in} lamports at {price} not representable")
    ideal_token = ideal[1]

    f = _fill("buy", price, ideal_token, up_orders, max_orders)
    if f["reached"]:
        completion = Decimal(100)
        theoretical = sol_in
    else:
        completion = percent_of(f["actual_token"], ideal_token) if ideal_token > 0 else Decimal(0)
        solved = curve.buy_with_token_output(price, f["actual_token"])
        theoretical = solved[1] if solved is not None else 0

    return TradeQuote(
        side="buy",
        input_type="sol",
        input_amount=sol_in,
        limit_price=f["limit_price"],
        total_price_span=f["span"],
        completion_rate=completion.quantize(Decimal("0.01")),
        ideal_token_amount=ideal_token,
        ideal_sol_amount=sol_in,
        actual_sol_amount=to_u64(f["actual_sol"], "actual_sol_amount"),
        actual_token_amount=to_u64(f["actual_token"], "actual_token_amount"),
        theoretical_sol_amount=theoretical,
        minimum_slippage_percentage=_slippage(theoretical, f["actual_sol"]),
        total_liquidity_sol_amount=f["total_sol"],
        total_liquidity_token_amount=f["total_token"],
        segments=f["segments"],
    )


def quote_sell_with_tokens(
    price: int,
    token_amount: int,
    down_orders: Sequence[OrderLike],
    max_orders: int = DEFAULT_ONCE_MAX_ORDER,
) -> TradeQuote:
    """Quote selling `token_amount` downward through the free gaps of the down_orders book."""
    price = parse_uint(price, "price")
    token_in = require_positive(token_amount, "token_amount")
    ideal = curve.sell_with_token_input(price, token_in)
    if ideal is None:
        raise CurveDomainError(f"Quote error: ideal sell of {token_in} tokens at {price} not representable")
    ideal_sol = ideal[1]

    f = _fill("sell", price, token_in, down_orders, max_orders)
    if f["reached"]:
        completion = Decimal(100)
        theoretical = ideal_sol
    else:
        completion = percent_of(f["actual_token"], token_in)
        solved = curve.sell_with_token_input(price, f["actual_token"])
        theoretical = solved[1] if solved is not None else 0

    return TradeQuote(
        side="sell",
        input_type="token",
        input_amount=token_in,
        limit_price=f["limit_price"],
        total_price_span=f["span"],
        completion_rate=completion.quantize(Decimal("0.01")),
        ideal_token_amount=token_in,
        ideal_sol_amount=ideal_sol,
        actual_sol_amount=to_u64(f["actual_sol"], "actual_sol_amount"),
        actual_token_amount=to_u64(f["actual_token"], "actual_token_amount"),
        theoretical_sol_amount=theoretical,
        minimum_slippage_percentage=_slippage(theoretical, f["actual_sol"]),
        total_liquidity_sol_amount=f["total_sol"],
        total_liquidity_token_amount=f["total_token"],
        segments=f["segments"],
    )


__all__ = [
    "QuoteSegment",
    "TradeQuote",
    "quote_buy_with_sol",
    "quote_sell_with_tokens",
]
