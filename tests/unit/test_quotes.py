from decimal import Decimal

import pytest

from bonding_planner import curve
from bonding_planner.quotes import quote_buy_with_sol, quote_sell_with_tokens
from bonding_planner.core.constants import MAX_PRICE, MIN_PRICE
from bonding_planner.core.exc import CurveDomainError, InputValidationError

from conftest import P, make_long, make_short, pct

ONE_SOL = 10 ** 9


def test_buy_quote_empty_book_is_complete():
    q = quote_buy_with_sol(P, ONE_SOL, [])
    ideal_tokens = curve.buy_with_sol_input(P, ONE_SOL)[1]
    print(f"[quote-buy] tokens={q.actual_token_amount} sol={q.actual_sol_amount} slip={q.minimum_slippage_percentage}%")
    assert q.complete
    assert q.limit_price == MAX_PRICE
    assert q.ideal_token_amount == ideal_tokens
    assert q.actual_token_amount == ideal_tokens
    assert q.minimum_slippage_percentage <= Decimal("0.01")
    assert len(q.segments) == 1 and q.segments[0].valid


def test_buy_quote_blocked_at_the_cap():
    book = [make_short(pct(101), pct(150), slot=0), make_short(pct(160), pct(170), slot=1)]
    gap_sol, gap_token = curve.buy_between_prices(P, pct(101))
    q = quote_buy_with_sol(P, ONE_SOL, book, max_orders=1)
    assert not q.complete
    assert Decimal(0) < q.completion_rate < Decimal(100)
    assert q.limit_price == pct(101)
    assert len(q.segments) == 1
    assert (q.actual_sol_amount, q.actual_token_amount) == (gap_sol, gap_token)
    assert q.theoretical_sol_amount == curve.buy_with_token_output(P, gap_token)[1]
    assert (q.total_liquidity_sol_amount, q.total_liquidity_token_amount) == (gap_sol, gap_token)


def test_buy_quote_fills_past_the_last_order():
    order = make_short(pct(101), pct(150))
    q = quote_buy_with_sol(P, ONE_SOL, [order])
    print(f"[quote-tail] tokens={q.actual_token_amount} sol={q.actual_sol_amount} rate={q.completion_rate}")
    assert q.complete
    assert len(q.segments) == 2
    assert (q.segments[-1].start_price, q.segments[-1].end_price) == (pct(150), MAX_PRICE)
    assert q.actual_token_amount == q.ideal_token_amount
    # the tokens above 150% cost more than on the ideal path
    assert q.actual_sol_amount > ONE_SOL


def test_buy_quote_jumps_reserved_range():
    book = [make_short(pct(101), pct(102)), make_short(pct(120), pct(130))]
    q = quote_buy_with_sol(P, ONE_SOL, book)
    assert q.complete
    assert len(q.segments) == 3
    assert q.actual_token_amount == q.ideal_token_amount
    # the jump over [101%, 102%] makes the same tokens cost more
    assert q.actual_sol_amount > ONE_SOL
    assert q.minimum_slippage_percentage > 0
    assert q.total_price_span > 0


def test_sell_quote_empty_book_matches_ideal():
    amount = 10 ** 16
    q = quote_sell_with_tokens(P, amount, [])
    assert q.complete
    assert q.limit_price == MIN_PRICE
    assert q.actual_sol_amount == q.ideal_sol_amount == curve.sell_with_token_input(P, amount)[1]
    assert q.minimum_slippage_percentage == Decimal("0.00")


def test_sell_quote_partial_at_the_cap(down_book):
    _, gap_token = curve.sell_between_prices(P, pct(90))
    q = quote_sell_with_tokens(P, gap_token + 10 ** 15, down_book, max_orders=1)
    assert not q.complete
    assert q.actual_token_amount == gap_token
    assert q.limit_price == pct(90)


def test_sell_quote_completes_through_tail(down_book):
    _, gap_token = curve.sell_between_prices(P, pct(90))
    g1_token = curve.sell_between_prices(pct(85), pct(80))[1]
    target = gap_token + g1_token + 10 ** 15
    q = quote_sell_with_tokens(P, target, down_book)
    assert q.complete
    assert q.actual_token_amount == target
    assert len(q.segments) == 3
    assert q.segments[-1].end_price == MIN_PRICE


def test_unrepresentable_ideal_raises():
    with pytest.raises(CurveDomainError):
        quote_buy_with_sol(P, 15 * 10 ** 18, [])
    with pytest.raises(CurveDomainError):
        quote_sell_with_tokens(P, 10 ** 19, [])


@pytest.mark.parametrize(
    "call",
    [
        lambda: quote_buy_with_sol(P, 0, []),
        lambda: quote_sell_with_tokens(P, -1, []),
        lambda: quote_buy_with_sol(P, ONE_SOL, [make_long(pct(90), pct(80))]),
        lambda: quote_sell_with_tokens(P, ONE_SOL, [], max_orders=0),
    ],
)
def test_invalid_quotes_rejected(call):
    with pytest.raises(InputValidationError):
        call()
