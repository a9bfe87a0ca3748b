from decimal import Decimal

import pytest

from bonding_planner.core.fmt import (
    fmt_dec,
    fmt_sol,
    fmt_token,
    lamports_to_sol,
    leverage_ratio,
    loss_percentage,
    percent_of,
    units_to_token,
)
from bonding_planner.core.exc import InputValidationError


def test_display_conversions():
    assert lamports_to_sol(1_500_000_000) == Decimal("1.5")
    assert units_to_token(1) == Decimal("1e-9")
    assert fmt_sol(1_500_000_000) == "1.500000000 SOL"
    assert fmt_token(2_000_000_000) == "2.000000000"
    assert fmt_dec(Decimal("1.5"), places=2) == "1.50"


@pytest.mark.parametrize(
    "part,whole,expected",
    [(1, 3, "33.33"), (2, 3, "66.67"), (0, 5, "0.00"), (5, 5, "100.00")],
)
def test_percent_of(part, whole, expected):
    assert percent_of(part, whole) == Decimal(expected)


def test_percent_of_rejects_empty_whole():
    with pytest.raises(InputValidationError):
        percent_of(1, 0)


@pytest.mark.parametrize(
    "cur,stop,loss,lev",
    [
        (100, 90, "10.00", "10.0000"),
        (100, 110, "10.00", "10.0000"),
        (300, 299, "0.33", "300.0000"),
        (100, 100, "0", "1"),
    ],
)
def test_loss_and_leverage(cur, stop, loss, lev):
    print(f"[loss/leverage] cur={cur} stop={stop} -> {loss_percentage(cur, stop)} / {leverage_ratio(cur, stop)}")
    assert loss_percentage(cur, stop) == Decimal(loss)
    assert leverage_ratio(cur, stop) == Decimal(lev)


def test_ratios_reject_zero_price():
    with pytest.raises(InputValidationError):
        loss_percentage(0, 1)
    with pytest.raises(InputValidationError):
        leverage_ratio(0, 1)
