"""
Bonding Planner Core
====================

Unified exports for integer-domain primitives shared by the calculators:
curve and planner constants, amount parsing and narrowing, datatypes,
configuration and exceptions. Decimal helpers are provided *only* for
display of percentages, leverage and SOL/token amounts.
"""

# NOTE:
#   Every price is a Q64.64 u128 integer and every amount a u64 integer.
#   Intermediate arithmetic runs on unbounded Python ints and is narrowed back
#   only at function boundaries (see `amounts.to_u64` / `amounts.to_u128`).

# Integer-domain constants
from .constants import (
    U64_MAX,
    U128_MAX,
    NO_ORDER,
    PRICE_FRACTION_BITS,
    PRICE_SCALE,
    LAMPORTS_PER_SOL,
    UNITS_PER_TOKEN,
    CURVE_K,
    MIN_PRICE,
    MAX_PRICE,
    INITIAL_PRICE,
    FEE_DENOMINATOR,
)

# Decimal formatting helpers (non-core arithmetic)
from .fmt import (
    DEFAULT_DECIMAL_PRECISION,
    fmt_dec,
    fmt_sol,
    fmt_token,
    lamports_to_sol,
    units_to_token,
    percent_of,
    loss_percentage,
    leverage_ratio,
)

# Amount primitives
from .amounts import (
    to_u64,
    to_u128,
    parse_uint,
    require_positive,
)

# Datatypes
from .datatypes import (
    LONG,
    SHORT,
    DOWN_ORDERS,
    UP_ORDERS,
    Order,
    OrderBook,
    LiquidityResult,
    InsertionPlan,
    Solved,
    NotFound,
    StopLossResult,
    SolStopLossResult,
)

# Configuration
from .config import PlannerConfig, PLANNER_CFG

# Core exceptions
from .exc import (
    InputValidationError,
    OrderNotFoundError,
    CurveDomainError,
    NarrowingError,
    PriceBoundsError,
    SolverNonConvergence,
)

__all__ = [
    # constants
    "U64_MAX",
    "U128_MAX",
    "NO_ORDER",
    "PRICE_FRACTION_BITS",
    "PRICE_SCALE",
    "LAMPORTS_PER_SOL",
    "UNITS_PER_TOKEN",
    "CURVE_K",
    "MIN_PRICE",
    "MAX_PRICE",
    "INITIAL_PRICE",
    "FEE_DENOMINATOR",
    # fmt
    "DEFAULT_DECIMAL_PRECISION",
    "fmt_dec",
    "fmt_sol",
    "fmt_token",
    "lamports_to_sol",
    "units_to_token",
    "percent_of",
    "loss_percentage",
    "leverage_ratio",
    # amounts
    "to_u64",
    "to_u128",
    "parse_uint",
    "require_positive",
    # datatypes
    "LONG",
    "SHORT",
    "DOWN_ORDERS",
    "UP_ORDERS",
    "Order",
    "OrderBook",
    "LiquidityResult",
    "InsertionPlan",
    "Solved",
    "NotFound",
    "StopLossResult",
    "SolStopLossResult",
    # config
    "PlannerConfig",
    "PLANNER_CFG",
    # exceptions
    "InputValidationError",
    "OrderNotFoundError",
    "CurveDomainError",
    "NarrowingError",
    "PriceBoundsError",
    "SolverNonConvergence",
]
