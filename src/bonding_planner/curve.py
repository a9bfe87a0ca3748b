"""
Bonding curve pool maths (constant product with virtual reserve offset).

The curve is `sol_reserve * token_reserve = CURVE_K`, starting from virtual
reserves so the price never reaches zero. Prices are Q64.64 integers:

    price = sol_reserve * 2**64 / token_reserve

Every function here is pure, integer-only and deterministic.

Alignment notes:
- Reserves are derived from price alone: `token(p) = isqrt(K * 2**64 // p)`,
  `sol(p) = ceil(K / token(p))`. Integration between two prices is the
  difference of these reserve functions, so adjacent intervals add up exactly.
- Trade-by-amount solves round against the trader: input amounts round up,
  output amounts round down, and the returned end price is placed so that
  integrating [start, end] covers at least the requested amount.
- Empty or inverted intervals return None; prices outside [MIN_PRICE, MAX_PRICE]
  raise CurveDomainError. Results that leave the price bounds return None.
"""
from __future__ import annotations

from typing import Optional, Tuple

from .core.amounts import _ceil_div, _isqrt_floor, to_u64, to_u128
from .core.constants import (
    CURVE_K,
    FEE_DENOMINATOR,
    INITIAL_PRICE,
    MAX_PRICE,
    MIN_PRICE,
    PRICE_FRACTION_BITS,
    U64_MAX,
)
from .core.exc import CurveDomainError, InputValidationError

# --- Debug utilities (toggleable) ---
DEBUG_CURVE = False

def _dbg(msg: str) -> None:
    if DEBUG_CURVE:
        print(f"[CURVE] {msg}")

#: K scaled into the price grid; token_reserve(p) = isqrt(_K_SCALED // p).
_K_SCALED = CURVE_K << PRICE_FRACTION_BITS

AmountPair = Tuple[int, int]


# ----------------------------
# Guards
# ----------------------------

def _check_price(price: int, what: str = "price") -> int:
    if isinstance(price, bool) or not isinstance(price, int):
        raise InputValidationError(f"{what} must be int, got {type(price).__name__}")
    if price < MIN_PRICE or price > MAX_PRICE:
        raise CurveDomainError(f"{what}={price} outside curve bounds [{MIN_PRICE}, {MAX_PRICE}]")
    return price


def _check_amount(amount: int, what: str = "amount") -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InputValidationError(f"{what} must be int, got {type(amount).__name__}")
    if amount < 0 or amount > U64_MAX:
        raise InputValidationError(f"{what}={amount} outside u64 domain")
    return amount


# ----------------------------
# Price <-> reserve conversion
# ----------------------------

def token_reserve_at_price(price: int) -> int:
    """Virtual token reserve at `price` (floor of the exact root)."""
    _check_price(price)
    return _isqrt_floor(_K_SCALED // price)


def sol_reserve_for_token(token_reserve: int) -> int:
    """Virtual SOL reserve matching `token_reserve` on the invariant (ceiling)."""
    if token_reserve <= 0:
        raise CurveDomainError("token reserve must be > 0")
    return _ceil_div(CURVE_K, token_reserve)


def reserves_at_price(price: int) -> AmountPair:
    """Return (sol_reserve, token_reserve) at `price`; raises outside bounds."""
    token = token_reserve_at_price(price)
    sol = sol_reserve_for_token(token)
    return to_u64(sol, "sol_reserve"), to_u64(token, "token_reserve")


def price_at_reserves(sol_reserve: int, token_reserve: int) -> int:
    """Price implied by a (sol, token) reserve pair, floored on the Q64.64 grid."""
    if sol_reserve < 0 or token_reserve <= 0:
        raise CurveDomainError("price_at_reserves expects sol >= 0 and token > 0")
    return to_u128((sol_reserve << PRICE_FRACTION_BITS) // token_reserve)


def price_at_token_reserve(token_reserve: int, *, round_up: bool = False) -> int:
    """Price at which the curve holds `token_reserve` tokens (`K*2**64 / t**2`)."""
    if token_reserve <= 0:
        raise CurveDomainError("token reserve must be > 0")
    sq = token_reserve * token_reserve
    return _ceil_div(_K_SCALED, sq) if round_up else _K_SCALED // sq


def get_initial_price() -> int:
    return INITIAL_PRICE


# ----------------------------
# Interval integration
# ----------------------------

def buy_between_prices(start_price: int, end_price: int) -> Optional[AmountPair]:
    """SOL paid and tokens received when buying from `start_price` up to `end_price`.

    Returns (sol_amount, token_amount), or None when the interval is empty or
    points downward.
    """
    _check_price(start_price, "start_price")
    _check_price(end_price, "end_price")
    if start_price >= end_price:
        return None
    t0 = token_reserve_at_price(start_price)
    t1 = token_reserve_at_price(end_price)
    sol = sol_reserve_for_token(t1) - sol_reserve_for_token(t0)
    return to_u64(sol, "sol_amount"), to_u64(t0 - t1, "token_amount")


def sell_between_prices(start_price: int, end_price: int) -> Optional[AmountPair]:
    """SOL received and tokens paid when selling from `start_price` down to `end_price`.

    Returns (sol_amount, token_amount), or None when the interval is empty or
    points upward.
    """
    _check_price(start_price, "start_price")
    _check_price(end_price, "end_price")
    if start_price <= end_price:
        return None
    t0 = token_reserve_at_price(start_price)
    t1 = token_reserve_at_price(end_price)
    sol = sol_reserve_for_token(t0) - sol_reserve_for_token(t1)
    return to_u64(sol, "sol_amount"), to_u64(t1 - t0, "token_amount")


# ----------------------------
# Trade solves (one side fixed)
# ----------------------------

def buy_with_sol_input(start_price: int, sol_amount: int) -> Optional[AmountPair]:
    """Spend exactly `sol_amount`; return (end_price, tokens_out) or None past MAX_PRICE."""
    _check_price(start_price, "start_price")
    _check_amount(sol_amount, "sol_amount")
    if sol_amount == 0:
        return start_price, 0
    t0 = token_reserve_at_price(start_price)
    s1 = sol_reserve_for_token(t0) + sol_amount
    # t1 rounds up: k never shrinks
    t1 = min(_ceil_div(CURVE_K, s1), t0)
    # end rounds up so [start, end] integrates to at least t0 - t1
    end_price = price_at_token_reserve(t1, round_up=True)
    if end_price > MAX_PRICE:
        _dbg(f"buy_with_sol_input: end={end_price} beyond MAX_PRICE")
        return None
    return end_price, to_u64(t0 - t1, "token_amount")


def buy_with_token_output(start_price: int, token_amount: int) -> Optional[AmountPair]:
    """Receive exactly `token_amount`; return (end_price, sol_in) or None if not representable."""
    _check_price(start_price, "start_price")
    _check_amount(token_amount, "token_amount")
    if token_amount == 0:
        return start_price, 0
    t0 = token_reserve_at_price(start_price)
    t1 = t0 - token_amount
    if t1 <= 0:
        _dbg(f"buy_with_token_output: request {token_amount} drains reserve {t0}")
        return None
    end_price = price_at_token_reserve(t1, round_up=True)
    if end_price > MAX_PRICE:
        _dbg(f"buy_with_token_output: end={end_price} beyond MAX_PRICE")
        return None
    sol_in = sol_reserve_for_token(token_reserve_at_price(end_price)) - sol_reserve_for_token(t0)
    return end_price, to_u64(sol_in, "sol_amount")


def sell_with_token_input(start_price: int, token_amount: int) -> Optional[AmountPair]:
    """Sell exactly `token_amount`; return (end_price, sol_out) or None below MIN_PRICE."""
    _check_price(start_price, "start_price")
    _check_amount(token_amount, "token_amount")
    if token_amount == 0:
        return start_price, 0
    t0 = token_reserve_at_price(start_price)
    t1 = t0 + token_amount
    end_price = price_at_token_reserve(t1)
    if end_price < MIN_PRICE:
        _dbg(f"sell_with_token_input: end={end_price} below MIN_PRICE")
        return None
    sol_out = sol_reserve_for_token(t0) - _ceil_div(CURVE_K, t1)
    return end_price, to_u64(max(sol_out, 0), "sol_amount")


def sell_with_sol_output(start_price: int, sol_amount: int) -> Optional[AmountPair]:
    """Receive exactly `sol_amount`; return (end_price, tokens_in) or None if not representable."""
    _check_price(start_price, "start_price")
    _check_amount(sol_amount, "sol_amount")
    if sol_amount == 0:
        return start_price, 0
    t0 = token_reserve_at_price(start_price)
    s1 = sol_reserve_for_token(t0) - sol_amount
    if s1 <= 0:
        _dbg(f"sell_with_sol_output: request {sol_amount} drains SOL reserve")
        return None
    t1 = max(_ceil_div(CURVE_K, s1), t0)
    end_price = price_at_token_reserve(t1)
    if end_price < MIN_PRICE:
        _dbg(f"sell_with_sol_output: end={end_price} below MIN_PRICE")
        return None
    return end_price, to_u64(t1 - t0, "token_amount")


# ----------------------------
# Fees
# ----------------------------

def amount_after_fee(amount: int, fee_rate: int) -> int:
    """Deduct a fee given on a FEE_DENOMINATOR base, flooring the remainder."""
    _check_amount(amount)
    if isinstance(fee_rate, bool) or not isinstance(fee_rate, int) or not 0 <= fee_rate <= FEE_DENOMINATOR:
        raise InputValidationError(f"fee_rate={fee_rate!r} must be an int in [0, {FEE_DENOMINATOR}]")
    return amount * (FEE_DENOMINATOR - fee_rate) // FEE_DENOMINATOR


def fee_on(amount: int, fee_rate: int) -> int:
    """Fee charged on `amount` (floor); complement of amount_after_fee up to rounding."""
    _check_amount(amount)
    if isinstance(fee_rate, bool) or not isinstance(fee_rate, int) or not 0 <= fee_rate <= FEE_DENOMINATOR:
        raise InputValidationError(f"fee_rate={fee_rate!r} must be an int in [0, {FEE_DENOMINATOR}]")
    return amount * fee_rate // FEE_DENOMINATOR


__all__ = [
    "token_reserve_at_price",
    "sol_reserve_for_token",
    "reserves_at_price",
    "price_at_reserves",
    "price_at_token_reserve",
    "get_initial_price",
    "buy_between_prices",
    "sell_between_prices",
    "buy_with_sol_input",
    "buy_with_token_output",
    "sell_with_token_input",
    "sell_with_sol_output",
    "amount_after_fee",
    "fee_on",
]
