import pytest
from hypothesis import given, settings, strategies as st

from bonding_planner import curve
from bonding_planner.liquidity import calc_liquidity, calc_liquidity_buy, calc_liquidity_sell
from bonding_planner.core.constants import MAX_PRICE, MIN_PRICE
from bonding_planner.core.exc import CurveDomainError, InputValidationError

from conftest import P, make_long, make_short, payload_of, pct


# -----------------------------
# Empty book
# -----------------------------

def test_empty_book_is_infinite_and_ideal():
    amount = 10 ** 15
    res = calc_liquidity_buy(P, amount, [])
    ideal = curve.buy_with_token_output(P, amount)[1]
    print(f"[empty-buy] ideal={res.ideal_sol_amount} real={res.real_sol_amount}")
    assert res.has_infinite_liquidity
    assert res.reachable
    assert res.force_close_num == 0
    assert res.ideal_sol_amount == res.real_sol_amount == ideal
    assert res.skipped_index is None
    assert (res.locked_sol_amount, res.locked_token_amount) == (0, 0)
    assert (res.free_sol_amount, res.free_token_amount) == curve.buy_between_prices(P, MAX_PRICE)


# -----------------------------
# Settlement and force-close counting
# -----------------------------

def test_target_inside_first_gap():
    order = make_long(pct(90), pct(80))
    res = calc_liquidity_sell(P, 500 * 10 ** 9, [order])
    assert res.reachable
    assert res.force_close_num == 0
    assert res.real_sol_amount == res.ideal_sol_amount
    assert res.locked_sol_amount == order.lock_sol_amount
    assert res.locked_token_amount == order.lock_token_amount
    assert res.has_infinite_liquidity


def test_target_past_locked_order_counts_force_close():
    order = make_long(pct(90), pct(80))
    gap_sol, gap_token = curve.sell_between_prices(P, pct(90))
    extra = 10 ** 15
    res = calc_liquidity_sell(P, gap_token + extra, [order])
    expected = gap_sol + curve.sell_with_token_input(pct(80), extra)[1]
    print(f"[cross-order] real={res.real_sol_amount} ideal={res.ideal_sol_amount}")
    assert res.reachable
    assert res.force_close_num == 1
    assert res.real_sol_amount == expected
    # the extra tokens are sold lower on the curve than on the ideal path
    assert res.real_sol_amount < res.ideal_sol_amount


def test_buy_side_mirror(up_book):
    gap_sol, gap_token = curve.buy_between_prices(P, pct(110))
    res = calc_liquidity_buy(P, gap_token, up_book)
    assert res.reachable
    assert res.force_close_num == 0
    # precise re-solve may land one isqrt step past the gap boundary
    assert abs(res.real_sol_amount - gap_sol) <= 1
    assert res.locked_token_amount == sum(o.lock_token_amount for o in up_book)


def test_target_equal_to_all_free_liquidity_settles(up_book):
    free = calc_liquidity_buy(P, 10 ** 9, up_book)
    res = calc_liquidity_buy(P, free.free_token_amount, up_book)
    print(f"[whole-tail] target={free.free_token_amount} real={res.real_sol_amount}")
    assert res.reachable
    assert res.has_infinite_liquidity
    assert res.force_close_num == len(up_book)
    assert res.real_sol_amount == free.free_sol_amount
    assert res.real_sol_amount > res.ideal_sol_amount


def test_target_equal_to_first_gap_uses_gap_amount(down_book):
    gap_sol, gap_token = curve.sell_between_prices(P, pct(90))
    res = calc_liquidity_sell(P, gap_token, down_book)
    assert res.real_sol_amount == gap_sol


def test_threshold_is_inclusive(down_book):
    _, gap_token = curve.sell_between_prices(P, pct(90))
    res = calc_liquidity_sell(P, gap_token, down_book)
    assert res.reachable
    assert res.force_close_num == 0


# -----------------------------
# Scan cap and unreachable targets
# -----------------------------

def test_cap_excludes_tail_and_leaves_target_unreached(down_book):
    _, gap_token = curve.sell_between_prices(P, pct(90))
    res = calc_liquidity_sell(P, gap_token + 10 ** 15, down_book, once_max_order=1)
    assert not res.reachable
    assert res.real_sol_amount == 0
    assert not res.has_infinite_liquidity
    assert res.free_token_amount == gap_token
    assert res.locked_token_amount == down_book[0].lock_token_amount


def test_target_beyond_everything_is_not_an_error():
    order = make_long(pct(90), pct(80))
    # representable on the ideal curve, but more than the free gaps hold
    target = curve.token_reserve_at_price(MIN_PRICE) - curve.token_reserve_at_price(P) - 10 ** 12
    res = calc_liquidity_sell(P, target, [order])
    assert not res.reachable
    assert res.real_sol_amount == 0
    assert res.has_infinite_liquidity


# -----------------------------
# Skip (pass_order)
# -----------------------------

@pytest.mark.parametrize("identity", ["b", "PdaB"])
def test_skipped_order_counts_as_free(down_book, identity):
    target = 10 ** 9
    plain = calc_liquidity_sell(P, target, down_book)
    skipped = calc_liquidity_sell(P, target, down_book, pass_order=identity)
    b = down_book[1]
    assert skipped.skipped_index == 1
    assert skipped.free_token_amount - plain.free_token_amount == b.lock_token_amount
    assert plain.locked_token_amount - skipped.locked_token_amount == b.lock_token_amount
    assert skipped.total_token_amount == plain.total_token_amount
    assert skipped.total_sol_amount == plain.total_sol_amount


def test_settlement_inside_skipped_order(down_book):
    g0_sol, g0_token = curve.sell_between_prices(P, pct(90))
    g1_sol, g1_token = curve.sell_between_prices(pct(85), pct(80))
    extra = 10 ** 12
    res = calc_liquidity_sell(P, g0_token + g1_token + extra, down_book, pass_order="b")
    expected = g0_sol + g1_sol + curve.sell_with_token_input(pct(80), extra)[1]
    assert res.reachable
    assert res.skipped_index == 1
    assert res.force_close_num == 1
    assert res.real_sol_amount == expected


def test_skip_second_of_two_touching_orders():
    first = make_long(pct(90), pct(85), slot=0, order_id="first")
    second = make_long(pct(85), pct(80), slot=1, order_id="second")
    book = [first, second]
    g0_sol, g0_token = curve.sell_between_prices(P, pct(90))

    plain = calc_liquidity_sell(P, 10 ** 9, book)
    skipped = calc_liquidity_sell(P, 10 ** 9, book, pass_order="second")
    assert skipped.skipped_index == 1
    assert plain.free_token_amount == g0_token + curve.sell_between_prices(pct(80), MIN_PRICE)[1]
    assert skipped.free_token_amount == plain.free_token_amount + second.lock_token_amount
    assert skipped.free_sol_amount == plain.free_sol_amount + second.lock_sol_amount
    assert skipped.locked_token_amount == first.lock_token_amount

    extra = 10 ** 12
    res = calc_liquidity_sell(P, g0_token + extra, book, pass_order="second")
    assert res.reachable
    assert res.force_close_num == 1
    assert res.real_sol_amount == g0_sol + curve.sell_with_token_input(pct(85), extra)[1]


def test_unknown_pass_order_skips_nothing(down_book):
    res = calc_liquidity_sell(P, 10 ** 9, down_book, pass_order="nobody")
    assert res.skipped_index is None


# -----------------------------
# Inputs
# -----------------------------

def test_payloads_accepted(down_book):
    payloads = [payload_of(o) for o in down_book]
    assert calc_liquidity_sell(P, 10 ** 9, payloads) == calc_liquidity_sell(P, 10 ** 9, down_book)


@pytest.mark.parametrize(
    "call",
    [
        lambda: calc_liquidity("sideways", P, 1, []),
        lambda: calc_liquidity_sell(P, 0, []),
        lambda: calc_liquidity_sell(P, -5, []),
        lambda: calc_liquidity_sell(P, 1, [], once_max_order=0),
        lambda: calc_liquidity_sell(P, 1, [], pass_order=""),
        lambda: calc_liquidity_sell(P, 1, {"not": "a list"}),
        lambda: calc_liquidity_sell(P, 1, [make_short(pct(110), pct(120))]),
    ],
)
def test_invalid_inputs_rejected(call):
    with pytest.raises(InputValidationError):
        call()


def test_malformed_payload_names_its_position():
    bad = payload_of(make_long(pct(90), pct(80)))
    del bad["lock_lp_sol_amount"]
    with pytest.raises(InputValidationError, match="order 0 missing lock_lp_sol_amount"):
        calc_liquidity_sell(P, 1, [bad])


def test_unrepresentable_ideal_raises():
    with pytest.raises(CurveDomainError):
        calc_liquidity_buy(P, 2 * 10 ** 18, [])


# -----------------------------
# Conservation
# -----------------------------

_LADDER = [make_long(pct(95 - 6 * i), pct(95 - 6 * i) - pct(2), slot=i) for i in range(10)]


@given(target=st.integers(min_value=1, max_value=10 ** 17))
@settings(max_examples=50)
def test_locked_sum_equals_order_amounts(target):
    res = calc_liquidity_sell(P, target, _LADDER)
    assert res.locked_sol_amount == sum(o.lock_sol_amount for o in _LADDER)
    assert res.locked_token_amount == sum(o.lock_token_amount for o in _LADDER)
    assert res.skipped_index is None
    assert res.force_close_num <= len(_LADDER)
