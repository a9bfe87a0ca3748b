"""
Bonding Planner Core Constants (integer domain)
===============================================

Integer bounds, curve parameters and planner knobs live here. Decimal quanta
are kept for display helpers in `fmt.py` only.
"""

# NOTE: Prices are Q64.64 fixed point (lamports per token unit, binary scaled);
#       amounts are u64 in lamports (SOL side) or token base units (9 decimals).

from decimal import Decimal

# ---------------------------------------------------------------------------
# Integer domain bounds
# ---------------------------------------------------------------------------

U64_MAX: int = (1 << 64) - 1
U128_MAX: int = (1 << 128) - 1

#: Reserved slot value meaning "no neighbour" / "insert at head" (u16::MAX).
NO_ORDER: int = 65535

#: Fractional bits of the fixed-point price.
PRICE_FRACTION_BITS: int = 64
PRICE_SCALE: int = 1 << PRICE_FRACTION_BITS


# ---------------------------------------------------------------------------
# Curve parameters (constant product with virtual reserve offset)
# ---------------------------------------------------------------------------

SOL_DECIMALS: int = 9
TOKEN_DECIMALS: int = 9
LAMPORTS_PER_SOL: int = 10 ** SOL_DECIMALS
UNITS_PER_TOKEN: int = 10 ** TOKEN_DECIMALS

#: Virtual reserves the curve starts from; they keep price strictly above zero.
INITIAL_SOL_RESERVE: int = 30 * LAMPORTS_PER_SOL
INITIAL_TOKEN_RESERVE: int = 1_073_000_000 * UNITS_PER_TOKEN

#: Curve invariant sol * token = k.
CURVE_K: int = INITIAL_SOL_RESERVE * INITIAL_TOKEN_RESERVE

#: Global price bounds; every reserve inside [MIN_PRICE, MAX_PRICE] fits u64.
MIN_PRICE: int = 10 ** 10
MAX_PRICE: int = 10 ** 29

INITIAL_PRICE: int = (INITIAL_SOL_RESERVE << PRICE_FRACTION_BITS) // INITIAL_TOKEN_RESERVE


# ---------------------------------------------------------------------------
# Fees
# ---------------------------------------------------------------------------

#: Fee rates are expressed on a 100_000 base (2_000 == 2%).
FEE_DENOMINATOR: int = 100_000
DEFAULT_BORROW_FEE: int = 2_000


# ---------------------------------------------------------------------------
# Planner knobs
# ---------------------------------------------------------------------------

#: Reservation buffer around the preceding order, percent of its own width.
LIQUIDITY_RESERVATION: int = 100

#: Stop-loss relaxation step, per-mille of the candidate price (15 == 1.5%).
PRICE_ADJUSTMENT_PERCENTAGE: int = 15

#: Minimum stop-loss distance from the current price, per-mille (40 == 4.0%).
MIN_STOP_LOSS_PERCENT: int = 40

#: Total candidate slot indices emitted by the insertion planner (odd, >= 1).
MAX_CANDIDATE_INDICES: int = 15
CANDIDATE_NODES_EACH_SIDE: int = (MAX_CANDIDATE_INDICES - 1) // 2

MAX_STOP_LOSS_ITERATIONS: int = 1000
MAX_MARGIN_SEARCH_ITERATIONS: int = 15

#: Early exit for the SOL budget search once margin is this close (lamports).
MARGIN_SEARCH_TOLERANCE: int = 10_000_000

#: Fallback position for the SOL budget search (1 token in base units).
FALLBACK_TOKEN_AMOUNT: int = 1_000_000_000

#: Default scan width of the liquidity calculator and the lp-pair builder.
DEFAULT_ONCE_MAX_ORDER: int = 10


# ---------------------------------------------------------------------------
# Decimal quanta for display/IO quantisation (formatting helpers)
# ---------------------------------------------------------------------------

SOL_QUANTUM: Decimal = Decimal("1e-9")
TOKEN_QUANTUM: Decimal = Decimal("1e-9")
PERCENT_QUANTUM: Decimal = Decimal("0.01")
LEVERAGE_QUANTUM: Decimal = Decimal("0.0001")


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

__all__ = [
    "U64_MAX",
    "U128_MAX",
    "NO_ORDER",
    "PRICE_FRACTION_BITS",
    "PRICE_SCALE",
    "SOL_DECIMALS",
    "TOKEN_DECIMALS",
    "LAMPORTS_PER_SOL",
    "UNITS_PER_TOKEN",
    "INITIAL_SOL_RESERVE",
    "INITIAL_TOKEN_RESERVE",
    "CURVE_K",
    "MIN_PRICE",
    "MAX_PRICE",
    "INITIAL_PRICE",
    "FEE_DENOMINATOR",
    "DEFAULT_BORROW_FEE",
    "LIQUIDITY_RESERVATION",
    "PRICE_ADJUSTMENT_PERCENTAGE",
    "MIN_STOP_LOSS_PERCENT",
    "MAX_CANDIDATE_INDICES",
    "CANDIDATE_NODES_EACH_SIDE",
    "MAX_STOP_LOSS_ITERATIONS",
    "MAX_MARGIN_SEARCH_ITERATIONS",
    "MARGIN_SEARCH_TOLERANCE",
    "FALLBACK_TOKEN_AMOUNT",
    "DEFAULT_ONCE_MAX_ORDER",
    "SOL_QUANTUM",
    "TOKEN_QUANTUM",
    "PERCENT_QUANTUM",
    "LEVERAGE_QUANTUM",
]
