"""
Core datatypes used by the planner.

These datatypes are intentionally minimal and immutable so that the
calculators can treat every input as a read-only snapshot.

Notes:
- Prices are Q64.64 u128 integers; amounts are u64 integers.
- `Order` mirrors one reserved price range of the on-chain order book.
  Long orders live in the descending "down_orders" book (start > end),
  short orders in the ascending "up_orders" book (start < end).
- `OrderBook` is an arena keyed by physical slot index; neighbours are
  reached through `prev_slot` / `next_slot` integers, never references.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, Iterator, List, Literal, Optional, Union

from .constants import NO_ORDER, U64_MAX, U128_MAX
from .exc import InputValidationError, OrderNotFoundError

OrderType = Literal["long", "short"]
BookSide = Literal["down_orders", "up_orders"]

LONG: OrderType = "long"
SHORT: OrderType = "short"
DOWN_ORDERS: BookSide = "down_orders"
UP_ORDERS: BookSide = "up_orders"

#: Long positions reserve liquidity below the price, shorts above it.
BOOK_SIDE_BY_TYPE: Dict[str, str] = {LONG: DOWN_ORDERS, SHORT: UP_ORDERS}


def _check_int(name: str, value: object, lo: int, hi: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InputValidationError(f"Order field {name} must be int, got {type(value).__name__}")
    if value < lo or value > hi:
        raise InputValidationError(f"Order field {name}={value} outside [{lo}, {hi}]")


# ---------------------------------------------------------------------------
# Order
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Order:
    """Immutable snapshot of one reserved price range.

    Fields:
    - order_type: "long" or "short".
    - lock_start_price / lock_end_price: the reserved sub-range (near / far boundary
      as seen from the current price).
    - lock_sol_amount / lock_token_amount: liquidity reserved over that range.
    - order_id: stable external identity; also the skip identity.
    - slot_index: position in the physical order-book array.
    - prev_slot / next_slot: linked-list neighbours, NO_ORDER when absent.
    - account: optional on-chain account address of the order.
    """

    order_type: str
    lock_start_price: int
    lock_end_price: int
    lock_sol_amount: int
    lock_token_amount: int
    order_id: str
    slot_index: int
    prev_slot: int = NO_ORDER
    next_slot: int = NO_ORDER
    account: Optional[str] = None

    def __post_init__(self):
        if self.order_type not in BOOK_SIDE_BY_TYPE:
            raise InputValidationError(f"Order order_type={self.order_type!r} must be 'long' or 'short'")
        _check_int("lock_start_price", self.lock_start_price, 0, U128_MAX)
        _check_int("lock_end_price", self.lock_end_price, 0, U128_MAX)
        _check_int("lock_sol_amount", self.lock_sol_amount, 0, U64_MAX)
        _check_int("lock_token_amount", self.lock_token_amount, 0, U64_MAX)
        _check_int("slot_index", self.slot_index, 0, NO_ORDER - 1)
        _check_int("prev_slot", self.prev_slot, 0, NO_ORDER)
        _check_int("next_slot", self.next_slot, 0, NO_ORDER)
        if not isinstance(self.order_id, str) or not self.order_id:
            raise InputValidationError("Order order_id must be a non-empty string")
        if self.order_type == LONG and not self.lock_start_price > self.lock_end_price:
            raise InputValidationError(
                f"Long order {self.order_id} must have start > end, got [{self.lock_start_price}, {self.lock_end_price}]"
            )
        if self.order_type == SHORT and not self.lock_start_price < self.lock_end_price:
            raise InputValidationError(
                f"Short order {self.order_id} must have start < end, got [{self.lock_start_price}, {self.lock_end_price}]"
            )

    @property
    def book_side(self) -> str:
        return BOOK_SIDE_BY_TYPE[self.order_type]

    @property
    def low_price(self) -> int:
        return min(self.lock_start_price, self.lock_end_price)

    @property
    def high_price(self) -> int:
        return max(self.lock_start_price, self.lock_end_price)


# ---------------------------------------------------------------------------
# Order book arena
# ---------------------------------------------------------------------------

class OrderBook:
    """Orders indexed by physical slot; linked-list navigation by slot integers."""

    def __init__(self, orders: Iterable[Order] = ()) -> None:
        self._slots: Dict[int, Order] = {}
        for o in orders:
            if o.slot_index in self._slots:
                raise InputValidationError(f"Duplicate slot index {o.slot_index} in order book snapshot")
            self._slots[o.slot_index] = o

    def __len__(self) -> int:
        return len(self._slots)

    def __contains__(self, slot: object) -> bool:
        return slot in self._slots

    def __iter__(self) -> Iterator[Order]:
        for slot in sorted(self._slots):
            yield self._slots[slot]

    def get(self, slot: int) -> Optional[Order]:
        """Return the order in `slot`, or None for NO_ORDER / an empty slot."""
        if slot == NO_ORDER:
            return None
        return self._slots.get(slot)

    def find(self, order_id: str) -> Order:
        """Look an order up by identity (string comparison)."""
        key = str(order_id)
        for o in self._slots.values():
            if o.order_id == key:
                return o
        raise OrderNotFoundError(order_id, known=len(self._slots))

    def walk(self, start: Order, link: Literal["prev", "next"], limit: int) -> Iterator[Order]:
        """Yield up to `limit` orders reached by repeatedly following `link` from `start`.

        Stops at NO_ORDER, at a slot not present in the snapshot, or on revisiting a slot.
        """
        seen = {start.slot_index}
        cur = start
        for _ in range(limit):
            nxt_slot = cur.prev_slot if link == "prev" else cur.next_slot
            nxt = self.get(nxt_slot)
            if nxt is None or nxt.slot_index in seen:
                return
            seen.add(nxt.slot_index)
            yield nxt
            cur = nxt


# ---------------------------------------------------------------------------
# Liquidity result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LiquidityResult:
    """Decomposition of a target trade across free gaps and reserved orders.

    When the target is not reachable within the examined orders,
    `real_sol_amount` stays at its 0 sentinel and `target_reached` is False;
    this is a normal outcome the caller must check.
    """

    free_sol_amount: int
    free_token_amount: int
    locked_sol_amount: int
    locked_token_amount: int
    has_infinite_liquidity: bool
    skipped_index: Optional[int]
    force_close_num: int
    ideal_sol_amount: int
    real_sol_amount: int
    target_reached: bool = False

    @property
    def reachable(self) -> bool:
        return self.target_reached

    @property
    def total_sol_amount(self) -> int:
        return self.free_sol_amount + self.locked_sol_amount

    @property
    def total_token_amount(self) -> int:
        return self.free_token_amount + self.locked_token_amount


# ---------------------------------------------------------------------------
# Insertion plan
# ---------------------------------------------------------------------------

OVERLAP_REASON = "Overlaps with existing order range"
RESERVATION_REASON = "Overlaps with previous order's liquidity reservation range"


@dataclass(frozen=True)
class InsertionPlan:
    """Outcome of an insertion / overlap check.

    Exactly one of three states holds: success (no_overlap, candidates present),
    raw range overlap, or reservation-buffer overlap.
    """

    no_overlap: bool
    close_insert_indices: List[int] = field(default_factory=list)
    overlap_reason: str = ""
    insertion_index: Optional[int] = None

    @property
    def status(self) -> str:
        if self.no_overlap:
            return "ok"
        if self.overlap_reason == RESERVATION_REASON:
            return "reservation"
        return "overlap"


# ---------------------------------------------------------------------------
# Stop-loss search (tagged result) and solutions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Solved:
    price: int
    end_price: int
    trade_amount: int
    iterations: int
    close_insert_indices: List[int]


@dataclass(frozen=True)
class NotFound:
    iterations: int
    last_candidate: int


StopLossSearch = Union[Solved, NotFound]


@dataclass(frozen=True)
class StopLossResult:
    """Executable stop-loss for a position of `token_amount` tokens.

    - trade_amount: SOL received (long) or paid (short) when closing at the stop.
    - estimated_margin: SOL shortfall between opening now and closing at the stop, floored at 0.
    - close_insert_indices: neighbour slot hints for the closing reservation.
    """

    order_type: str
    token_amount: int
    executable_price: int
    end_price: int
    trade_amount: int
    stop_loss_percentage: Decimal
    leverage: Decimal
    current_price: int
    iterations: int
    original_stop_loss_price: int
    close_insert_indices: List[int]
    estimated_margin: int


@dataclass(frozen=True)
class SolStopLossResult(StopLossResult):
    """Stop-loss sized from a SOL margin budget."""

    sol_budget: int
    search_iterations: int
    used_fallback: bool


__all__ = [
    "OrderType",
    "BookSide",
    "LONG",
    "SHORT",
    "DOWN_ORDERS",
    "UP_ORDERS",
    "BOOK_SIDE_BY_TYPE",
    "Order",
    "OrderBook",
    "LiquidityResult",
    "OVERLAP_REASON",
    "RESERVATION_REASON",
    "InsertionPlan",
    "Solved",
    "NotFound",
    "StopLossSearch",
    "StopLossResult",
    "SolStopLossResult",
]
