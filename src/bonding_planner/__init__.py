"""
Top-level API for bonding_planner (integer-domain).

This module exposes the stable interface of the trade-simulation and
order-book planning engine:
  - curve: constant-product bonding curve maths on Q64.64 prices
  - calc_liquidity_buy / calc_liquidity_sell: segmented liquidity across reserved ranges
  - check_price_range_overlap / close_candidates: insertion planning
  - simulate_*_stop_loss: stop-loss solving for new leveraged positions
  - quote_buy_with_sol / quote_sell_with_tokens: gap-only trade quotes

Research-oriented helpers (depth scans into pandas frames) remain under the
`bonding_planner.research` subpackage and are **not** part of the stable API.
"""

from __future__ import annotations

from . import curve
from .book_orders import (
    parse_order,
    parse_orders,
    coerce_orders,
    validate_order_payloads,
    build_lp_pairs,
    build_order_accounts,
    find_prev_next,
)
from .liquidity import calc_liquidity, calc_liquidity_buy, calc_liquidity_sell
from .insertion import check_price_range_overlap, close_candidates, find_insertion_index
from .stop_loss import (
    simulate_stop_loss,
    simulate_long_stop_loss,
    simulate_short_stop_loss,
    simulate_sol_stop_loss,
    simulate_long_sol_stop_loss,
    simulate_short_sol_stop_loss,
)
from .quotes import QuoteSegment, TradeQuote, quote_buy_with_sol, quote_sell_with_tokens

from .core import (
    Order,
    OrderBook,
    LiquidityResult,
    InsertionPlan,
    StopLossResult,
    SolStopLossResult,
    PlannerConfig,
    PLANNER_CFG,
    InputValidationError,
    CurveDomainError,
    SolverNonConvergence,
)

__all__ = [
    "curve",
    # payloads
    "parse_order",
    "parse_orders",
    "coerce_orders",
    "validate_order_payloads",
    "build_lp_pairs",
    "build_order_accounts",
    "find_prev_next",
    # liquidity
    "calc_liquidity",
    "calc_liquidity_buy",
    "calc_liquidity_sell",
    # insertion
    "check_price_range_overlap",
    "close_candidates",
    "find_insertion_index",
    # stop-loss
    "simulate_stop_loss",
    "simulate_long_stop_loss",
    "simulate_short_stop_loss",
    "simulate_sol_stop_loss",
    "simulate_long_sol_stop_loss",
    "simulate_short_sol_stop_loss",
    # quotes
    "QuoteSegment",
    "TradeQuote",
    "quote_buy_with_sol",
    "quote_sell_with_tokens",
    # core types
    "Order",
    "OrderBook",
    "LiquidityResult",
    "InsertionPlan",
    "StopLossResult",
    "SolStopLossResult",
    "PlannerConfig",
    "PLANNER_CFG",
    "InputValidationError",
    "CurveDomainError",
    "SolverNonConvergence",
]

# NOTE:
# Research utilities (depth scans) are intentionally *not* imported at the top-level.
