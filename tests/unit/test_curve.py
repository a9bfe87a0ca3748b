import pytest
from hypothesis import given, settings, strategies as st

from bonding_planner import curve
from bonding_planner.core.constants import (
    CURVE_K,
    INITIAL_PRICE,
    INITIAL_SOL_RESERVE,
    INITIAL_TOKEN_RESERVE,
    MAX_PRICE,
    MIN_PRICE,
    PRICE_FRACTION_BITS,
    U64_MAX,
)
from bonding_planner.core.exc import CurveDomainError, InputValidationError

from conftest import P, pct

prices = st.integers(min_value=MIN_PRICE, max_value=MAX_PRICE)
# Prices between 1/50x and 100x of the initial price
near_prices = st.integers(min_value=INITIAL_PRICE // 50, max_value=INITIAL_PRICE * 100)
amounts = st.integers(min_value=1, max_value=10 ** 17)


# -----------------------------
# Price <-> reserves
# -----------------------------

def test_initial_reserves_match_virtual_reserves():
    sol, token = curve.reserves_at_price(INITIAL_PRICE)
    print(f"[initial] sol={sol} token={token}")
    assert abs(token - INITIAL_TOKEN_RESERVE) <= 10 ** 7
    assert abs(sol - INITIAL_SOL_RESERVE) <= 10
    assert curve.get_initial_price() == INITIAL_PRICE
    assert curve.price_at_reserves(INITIAL_SOL_RESERVE, INITIAL_TOKEN_RESERVE) == INITIAL_PRICE


@pytest.mark.parametrize("p", [MIN_PRICE, MAX_PRICE])
def test_reserves_fit_u64_at_bounds(p):
    sol, token = curve.reserves_at_price(p)
    assert 0 < sol <= U64_MAX
    assert 0 < token <= U64_MAX


@pytest.mark.parametrize("p", [MIN_PRICE - 1, MAX_PRICE + 1, 0])
def test_price_outside_bounds_raises(p):
    with pytest.raises(CurveDomainError):
        curve.token_reserve_at_price(p)


@pytest.mark.parametrize("bad", [1.5, "100", None, True])
def test_non_int_price_rejected(bad):
    with pytest.raises(InputValidationError):
        curve.token_reserve_at_price(bad)


@given(a=prices, b=prices)
def test_token_reserve_non_increasing_in_price(a, b):
    lo, hi = sorted((a, b))
    assert curve.token_reserve_at_price(lo) >= curve.token_reserve_at_price(hi)


@given(p=prices)
def test_round_trip_within_sqrt_granularity(p):
    t = curve.token_reserve_at_price(p)
    back = curve.price_at_token_reserve(t)
    assert p <= back <= p * (t + 1) ** 2 // t ** 2 + 1


def test_price_at_token_reserve_rounding():
    t = 10 ** 18
    floor = curve.price_at_token_reserve(t)
    ceil = curve.price_at_token_reserve(t, round_up=True)
    assert ceil - floor in (0, 1)
    assert floor == (CURVE_K << PRICE_FRACTION_BITS) // t ** 2
    with pytest.raises(CurveDomainError):
        curve.price_at_token_reserve(0)


# -----------------------------
# Interval integration
# -----------------------------

def test_empty_or_inverted_intervals_return_none():
    assert curve.buy_between_prices(P, P) is None
    assert curve.buy_between_prices(pct(110), P) is None
    assert curve.sell_between_prices(P, P) is None
    assert curve.sell_between_prices(pct(90), P) is None


@given(bounds=st.lists(prices, min_size=2, max_size=2, unique=True).map(sorted))
def test_buy_and_sell_are_symmetric(bounds):
    a, b = bounds
    assert curve.sell_between_prices(b, a) == curve.buy_between_prices(a, b)


@given(bounds=st.lists(prices, min_size=3, max_size=3, unique=True).map(sorted))
def test_segments_add_up_exactly(bounds):
    a, m, b = bounds
    s1, t1 = curve.buy_between_prices(a, m)
    s2, t2 = curve.buy_between_prices(m, b)
    s, t = curve.buy_between_prices(a, b)
    assert (s1 + s2, t1 + t2) == (s, t)


def test_buy_between_amounts_are_positive_over_wide_range():
    sol, token = curve.buy_between_prices(P, pct(200))
    print(f"[buy P->2P] sol={sol} token={token}")
    assert sol > 0 and token > 0
    # Doubling price from the start moves the token reserve by 1 - 1/sqrt(2)
    assert 0.29 * INITIAL_TOKEN_RESERVE < token < 0.30 * INITIAL_TOKEN_RESERVE


# -----------------------------
# Trade solves
# -----------------------------

@given(p=near_prices, amount=amounts)
@settings(max_examples=200)
def test_buy_with_token_output_covers_request(p, amount):
    solved = curve.buy_with_token_output(p, amount)
    if solved is None:
        return
    end, sol_in = solved
    assert end > p
    sol, token = curve.buy_between_prices(p, end)
    assert token >= amount
    assert sol_in == sol


@given(p=near_prices, amount=amounts)
@settings(max_examples=200)
def test_sell_with_token_input_never_overpays(p, amount):
    solved = curve.sell_with_token_input(p, amount)
    if solved is None:
        return
    end, sol_out = solved
    assert end < p
    sol, token = curve.sell_between_prices(p, end)
    assert token >= amount
    assert sol_out <= sol


@given(p=near_prices, sol_amount=st.integers(min_value=1, max_value=10 ** 13))
@settings(max_examples=200)
def test_buy_with_sol_input_end_covers_tokens(p, sol_amount):
    solved = curve.buy_with_sol_input(p, sol_amount)
    if solved is None:
        return
    end, tokens = solved
    assert end >= p
    if tokens == 0:
        return
    _, token = curve.buy_between_prices(p, end)
    assert token >= tokens


def test_buy_with_sol_input_one_sol_at_start():
    end, tokens = curve.buy_with_sol_input(P, 10 ** 9)
    print(f"[buy 1 SOL] end={end} tokens={tokens}")
    # 1 SOL against 30 SOL of virtual reserve yields ~1/31 of the token reserve
    assert 3.4 * 10 ** 16 < tokens < 3.5 * 10 ** 16
    assert end > P


def test_sell_with_sol_output_needs_tokens():
    end, tokens = curve.sell_with_sol_output(P, 10 ** 9)
    assert end < P
    # Receiving 1 SOL out of 30 needs ~1/29 of the token reserve
    assert 3.6 * 10 ** 16 < tokens < 3.8 * 10 ** 16


@pytest.mark.parametrize(
    "fn",
    [curve.buy_with_sol_input, curve.buy_with_token_output, curve.sell_with_token_input, curve.sell_with_sol_output],
)
def test_zero_amount_is_identity(fn):
    assert fn(P, 0) == (P, 0)


def test_solves_return_none_past_bounds():
    t0 = curve.token_reserve_at_price(P)
    assert curve.buy_with_token_output(P, t0) is None
    assert curve.sell_with_token_input(MIN_PRICE, 10 ** 18) is None
    assert curve.sell_with_sol_output(P, U64_MAX) is None


def test_negative_amount_rejected():
    with pytest.raises(InputValidationError):
        curve.buy_with_token_output(P, -1)


# -----------------------------
# Fees
# -----------------------------

def test_fee_helpers():
    assert curve.amount_after_fee(100_000, 2_000) == 98_000
    assert curve.fee_on(100_000, 2_000) == 2_000
    assert curve.amount_after_fee(7, 0) == 7
    assert curve.fee_on(49, 2_000) == 0
    with pytest.raises(InputValidationError):
        curve.amount_after_fee(1, 100_001)
