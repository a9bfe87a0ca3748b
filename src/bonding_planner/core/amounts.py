"""
Integer amount primitives: rounding helpers, narrowing and input parsing.

- Amounts (lamports / token units) are u64; prices are u128 Q64.64.
- All intermediate arithmetic happens on unbounded Python ints and is narrowed
  back only at function boundaries. Narrowing that would lose digits raises.
- Non-negative domain: negative values are rejected at input.
- Rounding semantics: what the trader pays rounds up, what the trader receives rounds down.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from math import isqrt
from typing import Any

from .constants import U64_MAX, U128_MAX
from .exc import CurveDomainError, InputValidationError, NarrowingError

# Debug printing control
DEBUG_AMOUNTS = False

def _dbg(msg: str) -> None:
    if DEBUG_AMOUNTS:
        print(msg)


# ----------------------------
# Integer rounding helpers (centralised)
# ----------------------------

def _ceil_div(a: int, b: int) -> int:
    if a < 0 or b <= 0:
        raise CurveDomainError("_ceil_div expects a>=0 and b>0")
    return 0 if a == 0 else -(-a // b)


def _floor_div(a: int, b: int) -> int:
    if a < 0 or b <= 0:
        raise CurveDomainError("_floor_div expects a>=0 and b>0")
    return a // b


def _isqrt_floor(a: int) -> int:
    if a < 0:
        raise CurveDomainError("_isqrt_floor expects a>=0")
    return isqrt(a)


# ----------------------------
# Narrowing (unbounded int -> u64 / u128)
# ----------------------------

def to_u64(value: int, what: str = "amount") -> int:
    """Return `value` unchanged if it fits u64, else raise NarrowingError."""
    if value < 0 or value > U64_MAX:
        _dbg(f"to_u64 overflow: {what}={value}")
        raise NarrowingError(what, value, U64_MAX)
    return value


def to_u128(value: int, what: str = "price") -> int:
    """Return `value` unchanged if it fits u128, else raise NarrowingError."""
    if value < 0 or value > U128_MAX:
        _dbg(f"to_u128 overflow: {what}={value}")
        raise NarrowingError(what, value, U128_MAX)
    return value


# ----------------------------
# Input parsing (I/O boundary)
# ----------------------------

def parse_uint(value: Any, what: str) -> int:
    """Parse a non-negative integer from an int or a decimal-digit string.

    Floats and bools are rejected: a float cannot carry a u128 price exactly,
    and a bool is almost certainly a caller bug.
    """
    if value is None:
        raise InputValidationError(f"{what} is missing")
    if isinstance(value, bool):
        raise InputValidationError(f"{what} must be an integer, got bool")
    if isinstance(value, int):
        n = value
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            raise InputValidationError(f"{what} is empty")
        try:
            d = Decimal(s)
        except InvalidOperation:
            raise InputValidationError(f"{what}={value!r} is not numeric") from None
        if not d.is_finite() or d != d.to_integral_value():
            raise InputValidationError(f"{what}={value!r} is not an integer")
        n = int(d)
    else:
        raise InputValidationError(f"{what} has unsupported type {type(value).__name__}")
    if n < 0:
        raise InputValidationError(f"{what}={n} must be >= 0")
    return n


def require_positive(value: Any, what: str) -> int:
    """Parse like `parse_uint` and additionally require value > 0."""
    n = parse_uint(value, what)
    if n == 0:
        raise InputValidationError(f"{what} must be > 0")
    return n


__all__ = [
    "to_u64",
    "to_u128",
    "parse_uint",
    "require_positive",
]
