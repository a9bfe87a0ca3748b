"""Build `Order` snapshots directly from order-book payloads, plus settlement helpers.

Payloads are the dicts served by the order-book data source, one per reserved
range. Numeric fields may arrive as ints or decimal strings (u128 prices do
not survive a float round-trip, so floats are rejected).

Also here:
- `build_lp_pairs`: free (sol, token) liquidity between consecutive orders, in
  the fixed-width layout a settlement instruction expects.
- `build_order_accounts`: order account addresses padded to a fixed width.
- `find_prev_next`: array neighbours of an order in a sorted list.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .core.amounts import parse_uint
from .core.constants import DEFAULT_ONCE_MAX_ORDER, MAX_PRICE, MIN_PRICE, NO_ORDER
from .core.datatypes import DOWN_ORDERS, LONG, SHORT, UP_ORDERS, Order
from .core.exc import InputValidationError
from . import curve

# --- Debug utilities (toggleable) ---
DEBUG_BOOK = False

def _dbg(msg: str) -> None:
    if DEBUG_BOOK:
        print(f"[BOOK] {msg}")

OrderLike = Union[Order, Mapping[str, Any]]

#: Numeric order_type codes used by the order-book payloads.
_ORDER_TYPE_CODES = {1: LONG, 2: SHORT, "1": LONG, "2": SHORT, LONG: LONG, SHORT: SHORT}
_ORDER_TYPE_BY_SIDE = {DOWN_ORDERS: LONG, UP_ORDERS: SHORT}

#: Fields without which a payload cannot describe a reserved range.
REQUIRED_FIELDS = (
    "lock_lp_start_price",
    "lock_lp_end_price",
    "lock_lp_sol_amount",
    "lock_lp_token_amount",
)
#: Fields that the settlement side expects but the planner can do without.
ADVISORY_FIELDS = ("order_pda", "index", "prev_order", "next_order")


def _parse_order_type(raw: Any, book_side: Optional[str]) -> str:
    if raw is None:
        if book_side is None:
            raise InputValidationError("missing order_type and no book side given")
        return _ORDER_TYPE_BY_SIDE[book_side]
    key = raw.strip().lower() if isinstance(raw, str) else raw
    if isinstance(key, bool) or not isinstance(key, (int, str)) or key not in _ORDER_TYPE_CODES:
        raise InputValidationError(f"unsupported order_type {raw!r}")
    return _ORDER_TYPE_CODES[key]


def _parse_link(raw: Any, what: str) -> int:
    if raw is None or raw == "":
        return NO_ORDER
    return parse_uint(raw, what)


def parse_order(payload: Mapping[str, Any], index: int, *, book_side: Optional[str] = None) -> Order:
    """Convert one payload into an `Order`.

    Errors carry the payload position, e.g.
    "Order data format error: order 3 missing lock_lp_start_price".
    """
    if not isinstance(payload, Mapping):
        raise InputValidationError(f"Order data format error: order {index} is {type(payload).__name__}, expected mapping")
    for f in REQUIRED_FIELDS:
        if payload.get(f) in (None, ""):
            raise InputValidationError(f"Order data format error: order {index} missing {f}")
    try:
        order_type = _parse_order_type(payload.get("order_type"), book_side)
        account = payload.get("order_pda")
        order_id = payload.get("order_id")
        if order_id in (None, ""):
            order_id = account
        if order_id in (None, ""):
            raise InputValidationError("missing order_id and order_pda")
        slot = payload.get("index")
        return Order(
            order_type=order_type,
            lock_start_price=parse_uint(payload["lock_lp_start_price"], "lock_lp_start_price"),
            lock_end_price=parse_uint(payload["lock_lp_end_price"], "lock_lp_end_price"),
            lock_sol_amount=parse_uint(payload["lock_lp_sol_amount"], "lock_lp_sol_amount"),
            lock_token_amount=parse_uint(payload["lock_lp_token_amount"], "lock_lp_token_amount"),
            order_id=str(order_id),
            slot_index=index if slot is None else parse_uint(slot, "index"),
            prev_slot=_parse_link(payload.get("prev_order"), "prev_order"),
            next_slot=_parse_link(payload.get("next_order"), "next_order"),
            account=None if account in (None, "") else str(account),
        )
    except InputValidationError as e:
        raise InputValidationError(f"Order data format error: order {index} {e}") from e


def parse_orders(payloads: Iterable[Mapping[str, Any]], *, book_side: Optional[str] = None) -> List[Order]:
    """Parse a payload list, preserving order; fails on the first malformed entry."""
    if book_side is not None and book_side not in _ORDER_TYPE_BY_SIDE:
        raise InputValidationError(f"book_side must be 'down_orders' or 'up_orders', got {book_side!r}")
    return [parse_order(p, i, book_side=book_side) for i, p in enumerate(payloads)]


def coerce_orders(items: Sequence[OrderLike], *, book_side: Optional[str] = None) -> List[Order]:
    """Accept a mix of `Order` objects and raw payloads; validate all before use."""
    if isinstance(items, (str, bytes, Mapping)) or not isinstance(items, Sequence):
        raise InputValidationError("Parameter validation error: orders must be a sequence")
    out: List[Order] = []
    for i, item in enumerate(items):
        if isinstance(item, Order):
            out.append(item)
        elif item is None:
            raise InputValidationError(f"Order data format error: order {i} is None")
        else:
            out.append(parse_order(item, i, book_side=book_side))
    return out


def validate_order_payloads(payloads: Any) -> Tuple[bool, List[str], List[str]]:
    """Non-raising validation: returns (valid, errors, warnings).

    Errors are payloads the planner cannot parse; warnings are missing advisory
    fields that only matter to the settlement side.
    """
    errors: List[str] = []
    warnings: List[str] = []
    if isinstance(payloads, (str, bytes, Mapping)) or not isinstance(payloads, Sequence):
        return False, ["orders must be a sequence"], warnings
    for i, p in enumerate(payloads):
        if p is None:
            warnings.append(f"Order {i} is None")
            continue
        try:
            parse_order(p, i)
        except InputValidationError as e:
            errors.append(str(e))
            continue
        for f in ADVISORY_FIELDS:
            if f not in p:
                warnings.append(f"Order {i} missing field {f}")
        pda = p.get("order_pda")
        if pda is not None and not isinstance(pda, str):
            warnings.append(f"Order {i} order_pda is not str")
    return not errors, errors, warnings


# ---------------------------------------------------------------------------
# Settlement-side helpers
# ---------------------------------------------------------------------------

def build_lp_pairs(
    orders: Sequence[OrderLike],
    book_side: str,
    price: int,
    max_count: int = DEFAULT_ONCE_MAX_ORDER,
) -> List[Tuple[int, int]]:
    """Free liquidity pairs (sol_amount, token_amount) around the reserved ranges.

    Gaps are taken strictly inside order boundaries (one price unit away from
    each boundary) and the list is zero-padded to `max_count` entries.
    """
    if book_side not in _ORDER_TYPE_BY_SIDE:
        raise InputValidationError(f"book_side must be 'down_orders' or 'up_orders', got {book_side!r}")
    if isinstance(max_count, bool) or not isinstance(max_count, int) or max_count <= 0:
        raise InputValidationError("max_count must be a positive int")
    price = parse_uint(price, "price")
    book = coerce_orders(orders, book_side=book_side)
    up = book_side == UP_ORDERS
    between = curve.buy_between_prices if up else curve.sell_between_prices
    step = 1 if up else -1
    bound = MAX_PRICE if up else MIN_PRICE

    pairs: List[Tuple[int, int]] = []

    def _push(lo: int, hi: int) -> None:
        res = between(lo, hi)
        if res is not None:
            pairs.append(res)

    if not book:
        _push(price, bound)
    else:
        first_start = book[0].lock_start_price
        if (price < first_start) if up else (price > first_start):
            _push(price, first_start - step)
        for prev, nxt in zip(book, book[1:]):
            if len(pairs) >= max_count:
                break
            a = prev.lock_end_price + step
            b = nxt.lock_start_price - step
            if (a < b) if up else (a > b):
                _push(a, b)
        if len(pairs) < max_count:
            tail = book[-1].lock_end_price + step
            if (tail < bound) if up else (tail > bound):
                _push(tail, bound)
    _dbg(f"build_lp_pairs: side={book_side} pairs={len(pairs)}")
    pairs = pairs[:max_count]
    pairs.extend([(0, 0)] * (max_count - len(pairs)))
    return pairs


def build_order_accounts(orders: Sequence[OrderLike], max_count: int = DEFAULT_ONCE_MAX_ORDER) -> List[Optional[str]]:
    """Order account addresses for the first `max_count` orders, padded with None."""
    if isinstance(max_count, bool) or not isinstance(max_count, int) or max_count <= 0:
        raise InputValidationError("max_count must be a positive int")
    book = coerce_orders(orders)
    out: List[Optional[str]] = [o.account for o in book[:max_count]]
    out.extend([None] * (max_count - len(out)))
    return out


def find_prev_next(orders: Sequence[OrderLike], order_id: str) -> Tuple[Optional[Order], Optional[Order]]:
    """Array neighbours (prev, next) of the order whose id or account equals `order_id`."""
    if not isinstance(order_id, str) or not order_id:
        raise InputValidationError("order_id must be a non-empty string")
    book = coerce_orders(orders)
    for i, o in enumerate(book):
        if order_id in (o.order_id, o.account):
            prev = book[i - 1] if i > 0 else None
            nxt = book[i + 1] if i + 1 < len(book) else None
            return prev, nxt
    _dbg(f"find_prev_next: {order_id} not found")
    return None, None


__all__ = [
    "REQUIRED_FIELDS",
    "ADVISORY_FIELDS",
    "parse_order",
    "parse_orders",
    "coerce_orders",
    "validate_order_payloads",
    "build_lp_pairs",
    "build_order_accounts",
    "find_prev_next",
]
