"""
Planner configuration.

`PlannerConfig` bundles the knobs shared by the insertion planner and the
stop-loss solver. Callers pass an instance explicitly, or rely on
`PLANNER_CFG`, the module-level default.
"""

from __future__ import annotations

from dataclasses import dataclass

from .constants import (
    LIQUIDITY_RESERVATION,
    PRICE_ADJUSTMENT_PERCENTAGE,
    MIN_STOP_LOSS_PERCENT,
    MAX_CANDIDATE_INDICES,
    MAX_STOP_LOSS_ITERATIONS,
    MAX_MARGIN_SEARCH_ITERATIONS,
    MARGIN_SEARCH_TOLERANCE,
    FALLBACK_TOKEN_AMOUNT,
    DEFAULT_BORROW_FEE,
    FEE_DENOMINATOR,
)
from .exc import InputValidationError


@dataclass(frozen=True)
class PlannerConfig:
    """Centralised knobs used by insertion planning and stop-loss solving.

    - `liquidity_reservation` → buffer (percent of the preceding order's width) that a
      new range must keep clear of.
    - `price_adjustment_per_mille` → stop-loss relaxation step per iteration.
    - `min_stop_loss_per_mille` → minimum stop distance from the current price.
    - `max_candidates` → total candidate slot indices (odd: one anchor + equal sides).
    - `max_stop_loss_iterations` / `max_margin_search_iterations` → hard iteration ceilings.
    - `margin_tolerance` → early exit (lamports) for the SOL budget search.
    - `borrow_fee` → fee rate on a FEE_DENOMINATOR base.
    """

    liquidity_reservation: int = LIQUIDITY_RESERVATION
    price_adjustment_per_mille: int = PRICE_ADJUSTMENT_PERCENTAGE
    min_stop_loss_per_mille: int = MIN_STOP_LOSS_PERCENT
    max_candidates: int = MAX_CANDIDATE_INDICES
    max_stop_loss_iterations: int = MAX_STOP_LOSS_ITERATIONS
    max_margin_search_iterations: int = MAX_MARGIN_SEARCH_ITERATIONS
    margin_tolerance: int = MARGIN_SEARCH_TOLERANCE
    fallback_token_amount: int = FALLBACK_TOKEN_AMOUNT
    borrow_fee: int = DEFAULT_BORROW_FEE

    def __post_init__(self):
        if self.max_candidates < 1 or self.max_candidates % 2 == 0:
            raise InputValidationError(f"max_candidates={self.max_candidates} must be odd and >= 1")
        if self.liquidity_reservation < 0:
            raise InputValidationError("liquidity_reservation must be >= 0")
        if not 0 < self.price_adjustment_per_mille < 1000:
            raise InputValidationError("price_adjustment_per_mille must be in (0, 1000)")
        if not 0 <= self.min_stop_loss_per_mille < 1000:
            raise InputValidationError("min_stop_loss_per_mille must be in [0, 1000)")
        if self.max_stop_loss_iterations <= 0 or self.max_margin_search_iterations <= 0:
            raise InputValidationError("iteration ceilings must be > 0")
        if self.margin_tolerance < 0 or self.fallback_token_amount <= 0:
            raise InputValidationError("margin_tolerance must be >= 0 and fallback_token_amount > 0")
        if not 0 <= self.borrow_fee < FEE_DENOMINATOR:
            raise InputValidationError(f"borrow_fee={self.borrow_fee} must be in [0, {FEE_DENOMINATOR})")

    @property
    def candidates_each_side(self) -> int:
        return (self.max_candidates - 1) // 2


# Module-level default configuration
PLANNER_CFG = PlannerConfig()

__all__ = ["PlannerConfig", "PLANNER_CFG"]
