#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Run planner simulations on an order-book snapshot.

Input JSON layout:
    {
      "price": "<Q64.64 current price, or null/0 for the initial price>",
      "down_orders": [ {order payload}, ... ],   # long reservations, descending
      "up_orders":   [ {order payload}, ... ],   # short reservations, ascending
      "trades": [
        {"kind": "buy",  "token_amount": "..."},
        {"kind": "sell", "token_amount": "...", "pass_order": "<order id>"},
        {"kind": "quote_buy",  "sol_amount": "..."},
        {"kind": "quote_sell", "token_amount": "..."},
        {"kind": "long_stop_loss",  "token_amount": "...", "stop_loss_price": "..."},
        {"kind": "short_stop_loss", "token_amount": "...", "stop_loss_price": "..."},
        {"kind": "long_sol_stop_loss",  "sol_amount": "...", "stop_loss_price": "..."},
        {"kind": "short_sol_stop_loss", "sol_amount": "...", "stop_loss_price": "..."},
        {"kind": "insert", "book_side": "down_orders", "start_price": "...", "end_price": "..."}
      ]
    }

Printing policy:
1) Snapshot summary (price, book sizes, payload warnings).
2) One block per trade; failures are reported and the run continues.
3) Errors, with a non-zero exit code when any trade failed.

`--dry-run` validates the snapshot and lists the trades without running them.
`--json` prints machine-readable results instead of the text report.
"""

import argparse
import json
import sys
from dataclasses import asdict, is_dataclass
from decimal import Decimal

from bonding_planner import (
    calc_liquidity_buy,
    calc_liquidity_sell,
    check_price_range_overlap,
    parse_orders,
    quote_buy_with_sol,
    quote_sell_with_tokens,
    simulate_long_sol_stop_loss,
    simulate_long_stop_loss,
    simulate_short_sol_stop_loss,
    simulate_short_stop_loss,
    validate_order_payloads,
)
from bonding_planner.core import (
    CurveDomainError,
    InputValidationError,
    SolverNonConvergence,
    fmt_sol,
    fmt_token,
    parse_uint,
)
from bonding_planner.core.datatypes import DOWN_ORDERS, UP_ORDERS
from bonding_planner.stop_loss import resolve_current_price

TRADE_KINDS = (
    "buy",
    "sell",
    "quote_buy",
    "quote_sell",
    "long_stop_loss",
    "short_stop_loss",
    "long_sol_stop_loss",
    "short_sol_stop_loss",
    "insert",
)


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Run bonding-curve planner simulations on a snapshot")
    p.add_argument("--input", required=True, help="Path to snapshot JSON")
    p.add_argument("--dry-run", action="store_true", help="Validate the snapshot and list trades only")
    p.add_argument("--json", action="store_true", help="Print results as JSON")
    return p.parse_args(argv)


def _jsonable(obj):
    if is_dataclass(obj):
        return _jsonable(asdict(obj))
    if isinstance(obj, dict):
        return {k: _jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_jsonable(v) for v in obj]
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, int) and not isinstance(obj, bool) and obj.bit_length() > 53:
        # u128 prices do not survive a JSON float reader
        return str(obj)
    return obj


def run_trade(trade: dict, price: int, down_orders, up_orders):
    """Dispatch one trade request; returns the library result object."""
    kind = trade.get("kind")
    if kind == "buy":
        return calc_liquidity_buy(price, trade["token_amount"], up_orders, pass_order=trade.get("pass_order"))
    if kind == "sell":
        return calc_liquidity_sell(price, trade["token_amount"], down_orders, pass_order=trade.get("pass_order"))
    if kind == "quote_buy":
        return quote_buy_with_sol(price, trade["sol_amount"], up_orders)
    if kind == "quote_sell":
        return quote_sell_with_tokens(price, trade["token_amount"], down_orders)
    if kind == "long_stop_loss":
        return simulate_long_stop_loss(down_orders, trade["token_amount"], trade["stop_loss_price"], price)
    if kind == "short_stop_loss":
        return simulate_short_stop_loss(up_orders, trade["token_amount"], trade["stop_loss_price"], price)
    if kind == "long_sol_stop_loss":
        return simulate_long_sol_stop_loss(down_orders, trade["sol_amount"], trade["stop_loss_price"], price)
    if kind == "short_sol_stop_loss":
        return simulate_short_sol_stop_loss(up_orders, trade["sol_amount"], trade["stop_loss_price"], price)
    if kind == "insert":
        side = trade.get("book_side")
        book = down_orders if side == DOWN_ORDERS else up_orders
        return check_price_range_overlap(side, book, trade["start_price"], trade["end_price"])
    raise InputValidationError(f"unknown trade kind {kind!r}; expected one of {', '.join(TRADE_KINDS)}")


def _print_result(i: int, kind: str, res) -> None:
    print(f"\n=== Trade {i}: {kind} ===")
    if kind in ("buy", "sell"):
        print(f"reachable      : {res.reachable}")
        print(f"ideal_sol      : {fmt_sol(res.ideal_sol_amount)}")
        print(f"real_sol       : {fmt_sol(res.real_sol_amount)}")
        print(f"force_close    : {res.force_close_num}")
        print(f"free / locked  : {fmt_token(res.free_token_amount)} / {fmt_token(res.locked_token_amount)} tokens")
        print(f"infinite_tail  : {res.has_infinite_liquidity}")
    elif kind.startswith("quote"):
        print(f"completion     : {res.completion_rate}%")
        print(f"actual         : {fmt_sol(res.actual_sol_amount)} for {fmt_token(res.actual_token_amount)} tokens")
        print(f"min_slippage   : {res.minimum_slippage_percentage}%")
        print(f"limit_price    : {res.limit_price}")
    elif kind == "insert":
        print(f"status         : {res.status}")
        if res.no_overlap:
            print(f"candidates     : {res.close_insert_indices}")
        else:
            print(f"reason         : {res.overlap_reason}")
    else:
        print(f"token_amount   : {fmt_token(res.token_amount)}")
        print(f"stop (asked)   : {res.original_stop_loss_price}")
        print(f"stop (exec)    : {res.executable_price} after {res.iterations} adjustments")
        print(f"close_amount   : {fmt_sol(res.trade_amount)}")
        print(f"loss / leverage: {res.stop_loss_percentage}% / {res.leverage}x")
        print(f"margin         : {fmt_sol(res.estimated_margin)}")
        print(f"candidates     : {res.close_insert_indices}")


def main(argv=None) -> int:
    args = parse_args(argv)

    with open(args.input, "r", encoding="utf-8") as f:
        inp = json.load(f)

    # -----------------------------
    # 1) Snapshot
    # -----------------------------
    errors = []
    try:
        price = resolve_current_price(inp.get("price"))
        down_raw = inp.get("down_orders", [])
        up_raw = inp.get("up_orders", [])
        down_orders = parse_orders(down_raw, book_side=DOWN_ORDERS)
        up_orders = parse_orders(up_raw, book_side=UP_ORDERS)
    except (InputValidationError, CurveDomainError) as e:
        print(f"snapshot error: {e}", file=sys.stderr)
        return 2

    warnings = validate_order_payloads(down_raw)[2] + validate_order_payloads(up_raw)[2]
    trades = inp.get("trades", [])

    if not args.json:
        print("=== Snapshot ===")
        print(f"price          : {price}")
        print(f"down_orders    : {len(down_orders)}")
        print(f"up_orders      : {len(up_orders)}")
        print(f"trades         : {len(trades)}")
        for w in warnings:
            print(f"warning        : {w}")

    if args.dry_run:
        for i, t in enumerate(trades):
            kind = t.get("kind")
            mark = "" if kind in TRADE_KINDS else "  (unknown kind)"
            print(f"[{i}] {kind}{mark}")
        return 0

    # -----------------------------
    # 2) Trades
    # -----------------------------
    results = []
    for i, t in enumerate(trades):
        kind = t.get("kind")
        try:
            if "price" in t:
                trade_price = parse_uint(t["price"], "price")
            else:
                trade_price = price
            res = run_trade(t, trade_price, down_orders, up_orders)
        except (InputValidationError, CurveDomainError, SolverNonConvergence, KeyError) as e:
            errors.append(f"trade {i} ({kind}): {type(e).__name__}: {e}")
            results.append({"index": i, "kind": kind, "error": str(e)})
            continue
        results.append({"index": i, "kind": kind, "result": res})
        if not args.json:
            _print_result(i, kind, res)

    # -----------------------------
    # 3) Errors
    # -----------------------------
    if args.json:
        print(json.dumps(_jsonable({"price": price, "results": results, "warnings": warnings}), indent=2))
    elif errors:
        print("\n=== Errors ===")
        for e in errors:
            print(e)
    return 1 if errors else 0


if __name__ == "__main__":
    sys.exit(main())
