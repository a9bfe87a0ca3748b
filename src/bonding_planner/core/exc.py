"""
Core exception types for bonding_planner.core.

These are dependency-free and may be imported by all modules. Three families
are kept apart so callers can tell them apart:
- InputValidationError: the caller handed in something malformed.
- CurveDomainError: input is well-formed but the curve cannot represent it.
- SolverNonConvergence: an iterative search hit its iteration ceiling.

A target that cannot be reached within the examined orders is NOT an error;
it is reported through `LiquidityResult.target_reached` (False).
"""

__all__ = [
    "InputValidationError",
    "OrderNotFoundError",
    "CurveDomainError",
    "NarrowingError",
    "PriceBoundsError",
    "SolverNonConvergence",
]


class InputValidationError(Exception):
    """Raised when inputs are missing, non-numeric, negative or inconsistent."""
    pass


class OrderNotFoundError(InputValidationError):
    """Raised when an order identity is not present in the order book snapshot."""

    def __init__(self, order_id, *, known=None):
        super().__init__(f"Order {order_id!r} not found in order book snapshot")
        self.order_id = order_id
        self.known = known


class CurveDomainError(Exception):
    """Raised when a price or amount falls outside what the curve can represent."""
    pass


class NarrowingError(CurveDomainError):
    """Raised when narrowing to u64/u128 would lose significant digits."""

    def __init__(self, what: str, value: int, bound: int):
        super().__init__(f"{what}={value} does not fit in [0, {bound}]")
        self.what = what
        self.value = value
        self.bound = bound


class PriceBoundsError(CurveDomainError):
    """Raised when a stop-loss candidate leaves the curve bounds or crosses the current price.

    Attributes
    ----------
    candidate : int
        The offending candidate price.
    bound : int
        The bound that was crossed (MIN_PRICE, MAX_PRICE or the current price).
    """

    def __init__(self, candidate: int, bound: int, reason: str):
        super().__init__(f"Stop-loss candidate {candidate} {reason} (bound={bound})")
        self.candidate = candidate
        self.bound = bound


class SolverNonConvergence(Exception):
    """Raised when an iterative solve exhausts its iteration ceiling.

    Attributes
    ----------
    iterations : int
        Number of iterations performed before giving up.
    last_candidate : int | None
        Last candidate examined, for debugging.
    """

    def __init__(self, what: str, iterations: int, *, last_candidate=None):
        super().__init__(
            f"{what}: reached maximum iterations ({iterations}) without a solution; last candidate={last_candidate}"
        )
        self.iterations = iterations
        self.last_candidate = last_candidate
