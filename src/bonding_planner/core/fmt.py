"""
Formatting helpers and Decimal-based ratios (non-core arithmetic).

Core arithmetic uses integers. Decimal here is only for display-grade
outputs (percentages, leverage, SOL/token amounts in logs and reports).
"""

from decimal import Decimal, getcontext, ROUND_DOWN, ROUND_HALF_UP

from .exc import InputValidationError
from .constants import (
    SOL_QUANTUM,
    TOKEN_QUANTUM,
    PERCENT_QUANTUM,
    LEVERAGE_QUANTUM,
)

# Debug printing control (formatting layer)
DEBUG_FMT = False

def _dbg(msg: str) -> None:
    if DEBUG_FMT:
        print(msg)


# ---------------------------------------------------------------------------
# Global Decimal precision (formatting only)
# ---------------------------------------------------------------------------

#: Default global precision (number of significant digits) for Decimal-based
#: formatting. This does not affect core arithmetic which uses integers.
DEFAULT_DECIMAL_PRECISION: int = 50
getcontext().prec = DEFAULT_DECIMAL_PRECISION


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def fmt_dec(x: Decimal, places: int = 9) -> str:
    """Format a Decimal with fixed fractional digits, e.g. Decimal('1.5') -> '1.500000000'."""
    return format(x, f".{places}f")


def lamports_to_sol(lamports: int) -> Decimal:
    """Integer lamports -> Decimal SOL (display only)."""
    return Decimal(lamports) * SOL_QUANTUM


def units_to_token(units: int) -> Decimal:
    """Integer token base units -> Decimal tokens (display only)."""
    return Decimal(units) * TOKEN_QUANTUM


def fmt_sol(lamports: int) -> str:
    return f"{fmt_dec(lamports_to_sol(lamports))} SOL"


def fmt_token(units: int) -> str:
    return fmt_dec(units_to_token(units))


# ---------------------------------------------------------------------------
# Ratios (integer numerators, Decimal presentation)
# ---------------------------------------------------------------------------

def percent_of(part: int, whole: int) -> Decimal:
    """Return 100 * part / whole rounded half-up to 2 places."""
    if whole <= 0:
        raise InputValidationError("percent_of expects whole > 0")
    pct = Decimal(part) * 100 / Decimal(whole)
    return pct.quantize(PERCENT_QUANTUM, rounding=ROUND_HALF_UP)


def loss_percentage(current_price: int, stop_price: int) -> Decimal:
    """Distance between current and stop price as percent of current price.

    Integer-floored on a 1/100 percent grid first, so the figure is
    reproducible from the raw prices alone.
    """
    if current_price <= 0:
        raise InputValidationError("loss_percentage expects current_price > 0")
    if current_price == stop_price:
        return Decimal(0)
    bps = (10000 * abs(current_price - stop_price)) // current_price
    return (Decimal(bps) / 100).quantize(PERCENT_QUANTUM, rounding=ROUND_DOWN)


def leverage_ratio(current_price: int, stop_price: int) -> Decimal:
    """Implied leverage current / |current - stop| on a 1e-4 grid (1 when equal)."""
    if current_price <= 0:
        raise InputValidationError("leverage_ratio expects current_price > 0")
    if current_price == stop_price:
        return Decimal(1)
    scaled = (10000 * current_price) // abs(current_price - stop_price)
    return (Decimal(scaled) / 10000).quantize(LEVERAGE_QUANTUM, rounding=ROUND_DOWN)


__all__ = [
    "DEFAULT_DECIMAL_PRECISION",
    "fmt_dec",
    "lamports_to_sol",
    "units_to_token",
    "fmt_sol",
    "fmt_token",
    "percent_of",
    "loss_percentage",
    "leverage_ratio",
]
