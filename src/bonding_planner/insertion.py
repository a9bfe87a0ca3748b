"""
Order-book insertion planning (overlap checks and candidate slots).

Given a price-sorted order list and a new reserved range, decide whether the
range can be inserted without touching any existing reservation, and if so
emit a redundant list of candidate physical slots around the insertion point.

Key behaviours:
- One binary search serves both books. "down_orders" (descending) reads the
  new pair as (max=start, min=end); "up_orders" (ascending) as (min=start, max=end).
- Raw overlap: `new_min < probe_max and new_max > probe_min`. Touching
  boundaries do not overlap.
- Reservation buffer: the preceding order's far boundary is pushed outward by
  `liquidity_reservation` percent of its width; a new start price inside that
  zone is rejected with its own reason.
- Candidates: the predecessor's slot (NO_ORDER when inserting at head), then
  alternately one more predecessor and one successor, out to
  `candidates_each_side` per side; out-of-range positions are omitted.

Notes:
- Input sortedness is a precondition; an unsorted list yields undefined slots.
- The buffer test compares the new *start* price against the expanded far
  boundary in both directions (`>=` downward, `<=` upward). The two books are
  not symmetrised.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .book_orders import OrderLike, coerce_orders
from .core.amounts import parse_uint
from .core.config import PLANNER_CFG, PlannerConfig
from .core.constants import NO_ORDER
from .core.datatypes import (
    DOWN_ORDERS,
    OVERLAP_REASON,
    RESERVATION_REASON,
    UP_ORDERS,
    InsertionPlan,
    Order,
    OrderBook,
)
from .core.exc import InputValidationError

# Debug printing control
DEBUG_INSERTION = False

def _dbg(msg: str) -> None:
    if DEBUG_INSERTION:
        print(f"[INSERT] {msg}")


def _normalise(book_side: str, start_price: int, end_price: int) -> Tuple[bool, int, int]:
    """Return (descending, new_min, new_max); reject pairs contradicting the book."""
    if book_side not in (DOWN_ORDERS, UP_ORDERS):
        raise InputValidationError(f"book_side must be 'down_orders' or 'up_orders', got {book_side!r}")
    descending = book_side == DOWN_ORDERS
    if descending and start_price < end_price:
        raise InputValidationError(f"down_orders range must have start >= end, got [{start_price}, {end_price}]")
    if not descending and start_price > end_price:
        raise InputValidationError(f"up_orders range must have start <= end, got [{start_price}, {end_price}]")
    if descending:
        return True, end_price, start_price
    return False, start_price, end_price


def find_insertion_index(
    orders: Sequence[Order], descending: bool, new_min: int, new_max: int
) -> Optional[int]:
    """Binary-search the insertion index; None when the new range overlaps a probe.

    The lowest index consistent with the sort order is kept; `len(orders)`
    means append at the tail.
    """
    low, high = 0, len(orders) - 1
    index = len(orders)
    while low <= high:
        mid = (low + high) // 2
        probe = orders[mid]
        p_min, p_max = probe.low_price, probe.high_price
        if new_min < p_max and new_max > p_min:
            _dbg(f"overlap with order {mid} [{p_min}, {p_max}]")
            return None
        ahead = new_max > p_max if descending else new_min < p_min
        if ahead:
            index = mid
            high = mid - 1
        else:
            low = mid + 1
    return index


def _inside_reservation(prev: Order, descending: bool, start_price: int, reservation: int) -> bool:
    expansion = (prev.high_price - prev.low_price) * reservation // 100
    if descending:
        return start_price >= prev.low_price - expansion
    return start_price <= prev.high_price + expansion


def _candidate_slots(orders: Sequence[Order], index: int, each_side: int) -> List[int]:
    slots = [orders[index - 1].slot_index if index > 0 else NO_ORDER]
    for offset in range(1, each_side + 1):
        before = index - 1 - offset
        if before >= 0:
            slots.append(orders[before].slot_index)
        after = index + offset - 1
        if after < len(orders):
            slots.append(orders[after].slot_index)
    return slots


def check_price_range_overlap(
    book_side: str,
    orders: Sequence[OrderLike],
    start_price: int,
    end_price: int,
    *,
    config: PlannerConfig = PLANNER_CFG,
) -> InsertionPlan:
    """Plan inserting the range [start_price, end_price] into a sorted book.

    Returns an InsertionPlan whose state is exactly one of: success with
    candidate slots, raw overlap, or reservation-buffer overlap.
    """
    start_price = parse_uint(start_price, "start_price")
    end_price = parse_uint(end_price, "end_price")
    descending, new_min, new_max = _normalise(book_side, start_price, end_price)
    book = coerce_orders(orders, book_side=book_side)
    for i, order in enumerate(book):
        if order.book_side != book_side:
            raise InputValidationError(f"Order data format error: order {i} is a {order.order_type} order, not in {book_side}")

    if not book:
        return InsertionPlan(no_overlap=True, close_insert_indices=[NO_ORDER], insertion_index=0)

    index = find_insertion_index(book, descending, new_min, new_max)
    if index is None:
        return InsertionPlan(no_overlap=False, close_insert_indices=[], overlap_reason=OVERLAP_REASON)

    if index > 0 and _inside_reservation(book[index - 1], descending, start_price, config.liquidity_reservation):
        _dbg(f"start={start_price} inside reservation of order {index - 1}")
        return InsertionPlan(no_overlap=False, close_insert_indices=[], overlap_reason=RESERVATION_REASON)

    slots = _candidate_slots(book, index, config.candidates_each_side)
    _dbg(f"insert at {index}: candidates={slots}")
    return InsertionPlan(no_overlap=True, close_insert_indices=slots, insertion_index=index)


def close_candidates(book: OrderBook, order_id: str, *, each_side: Optional[int] = None) -> List[int]:
    """Slot hints for closing `order_id`: its own slot, then linked neighbours.

    Neighbours are reached by following prev/next slot links, alternating one
    hop backward and one hop forward per round, up to `each_side` per side.
    A slot reached from both directions is listed once.
    """
    if not isinstance(order_id, str) or not order_id:
        raise InputValidationError("order_id must be a non-empty string")
    if each_side is None:
        each_side = PLANNER_CFG.candidates_each_side
    if each_side < 0:
        raise InputValidationError("each_side must be >= 0")
    target = book.find(order_id)
    backward = list(book.walk(target, "prev", each_side))
    forward = list(book.walk(target, "next", each_side))
    slots = [target.slot_index]
    for offset in range(each_side):
        for side in (backward, forward):
            if offset < len(side) and side[offset].slot_index not in slots:
                slots.append(side[offset].slot_index)
    return slots


__all__ = [
    "find_insertion_index",
    "check_price_range_overlap",
    "close_candidates",
]
