from __future__ import annotations

from typing import Callable, Optional

import pytest

from bonding_planner import curve
from bonding_planner.core.constants import INITIAL_PRICE, NO_ORDER
from bonding_planner.core.datatypes import LONG, SHORT, Order


# -----------------------------
# Test helpers (pure functions)
# -----------------------------

P = INITIAL_PRICE


def pct(n: int, base: int = 100) -> int:
    """Price at n/base of the initial price (integer grid)."""
    return P * n // base


def make_long(
    start: int,
    end: int,
    slot: int = 0,
    order_id: Optional[str] = None,
    *,
    prev_slot: int = NO_ORDER,
    next_slot: int = NO_ORDER,
    account: Optional[str] = None,
) -> Order:
    """Long reservation [start > end] with the liquidity the curve holds over it."""
    sol, token = curve.sell_between_prices(start, end)
    return Order(
        order_type=LONG,
        lock_start_price=start,
        lock_end_price=end,
        lock_sol_amount=sol,
        lock_token_amount=token,
        order_id=order_id or f"long-{slot}",
        slot_index=slot,
        prev_slot=prev_slot,
        next_slot=next_slot,
        account=account,
    )


def make_short(
    start: int,
    end: int,
    slot: int = 0,
    order_id: Optional[str] = None,
    *,
    prev_slot: int = NO_ORDER,
    next_slot: int = NO_ORDER,
    account: Optional[str] = None,
) -> Order:
    """Short reservation [start < end] with the liquidity the curve holds over it."""
    sol, token = curve.buy_between_prices(start, end)
    return Order(
        order_type=SHORT,
        lock_start_price=start,
        lock_end_price=end,
        lock_sol_amount=sol,
        lock_token_amount=token,
        order_id=order_id or f"short-{slot}",
        slot_index=slot,
        prev_slot=prev_slot,
        next_slot=next_slot,
        account=account,
    )


def payload_of(order: Order) -> dict:
    """Order -> order-book payload dict (numbers as strings, as served)."""
    return {
        "order_type": 1 if order.order_type == LONG else 2,
        "order_pda": order.account or order.order_id,
        "index": order.slot_index,
        "prev_order": None if order.prev_slot == NO_ORDER else order.prev_slot,
        "next_order": None if order.next_slot == NO_ORDER else order.next_slot,
        "lock_lp_start_price": str(order.lock_start_price),
        "lock_lp_end_price": str(order.lock_end_price),
        "lock_lp_sol_amount": str(order.lock_sol_amount),
        "lock_lp_token_amount": str(order.lock_token_amount),
    }


# -----------------------------
# Pytest fixtures
# -----------------------------

@pytest.fixture()
def price() -> int:
    return P


@pytest.fixture()
def long_order() -> Callable[..., Order]:
    return make_long


@pytest.fixture()
def short_order() -> Callable[..., Order]:
    return make_short


@pytest.fixture()
def down_book():
    """Two long reservations below the price: [90%, 85%] and [80%, 75%]."""
    return [
        make_long(pct(90), pct(85), slot=3, order_id="a", account="PdaA"),
        make_long(pct(80), pct(75), slot=7, order_id="b", account="PdaB"),
    ]


@pytest.fixture()
def up_book():
    """Two short reservations above the price: [110%, 115%] and [130%, 135%]."""
    return [
        make_short(pct(110), pct(115), slot=1, order_id="c", account="PdaC"),
        make_short(pct(130), pct(135), slot=2, order_id="d", account="PdaD"),
    ]


@pytest.fixture()
def ladder_down():
    """Ten long reservations 2% wide with 4% gaps, slot = 2 * position."""
    orders = []
    for i in range(10):
        start = pct(95 - 6 * i)
        end = start - pct(2)
        orders.append(make_long(start, end, slot=2 * i, order_id=f"l{i}"))
    return orders
