"""
Depth scans: run the segmented liquidity calculator over a ladder of target
sizes and tabulate the outcome with pandas.

Each row answers "what happens if I trade `target` tokens right now":
- ideal: SOL on the order-free curve,
- real: SOL through the free gaps of the book (0 when unreachable),
- force_close: reserved ranges that would have to be closed first,
- slippage: real / ideal - 1, only defined for reachable rows.

This module is research-only; integer results stay exact in the row
dataclass and are only converted to Decimal/float for the frame.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from ..book_orders import OrderLike, coerce_orders
from ..core.constants import DEFAULT_ONCE_MAX_ORDER
from ..core.exc import InputValidationError
from ..core.fmt import lamports_to_sol, units_to_token
from ..liquidity import DIRECTIONS, calc_liquidity

# Debug printing control
DEBUG_DEPTH = False

def _dbg(msg: str) -> None:
    if DEBUG_DEPTH:
        print(f"[DEPTH] {msg}")


DEPTH_COLUMNS = [
    "direction",
    "target",
    "ideal",
    "real",
    "force_close",
    "reachable",
    "free_token",
    "locked_token",
    "slippage",
]


@dataclass(frozen=True)
class DepthRow:
    direction: str
    target: int
    ideal: int
    real: int
    force_close: int
    reachable: bool
    free_token: int
    locked_token: int
    slippage: Optional[Decimal]


def _slippage(ideal: int, real: int, reachable: bool) -> Optional[Decimal]:
    if not reachable or ideal == 0:
        return None
    return Decimal(real) / Decimal(ideal) - 1


def depth_rows(
    price: int,
    orders: Sequence[OrderLike],
    targets: Iterable[int],
    direction: str = "buy",
    *,
    once_max_order: int = DEFAULT_ONCE_MAX_ORDER,
    pass_order: Optional[str] = None,
) -> List[DepthRow]:
    """Evaluate every target; orders are parsed once up front."""
    d = DIRECTIONS.get(direction)
    if d is None:
        raise InputValidationError(f"direction must be 'buy' or 'sell', got {direction!r}")
    book = coerce_orders(orders, book_side=d.book_side)
    rows: List[DepthRow] = []
    for target in targets:
        res = calc_liquidity(direction, price, target, book, once_max_order, pass_order)
        rows.append(
            DepthRow(
                direction=direction,
                target=int(target),
                ideal=res.ideal_sol_amount,
                real=res.real_sol_amount,
                force_close=res.force_close_num,
                reachable=res.reachable,
                free_token=res.free_token_amount,
                locked_token=res.locked_token_amount,
                slippage=_slippage(res.ideal_sol_amount, res.real_sol_amount, res.reachable),
            )
        )
        _dbg(f"{direction} target={target} ideal={res.ideal_sol_amount} real={res.real_sol_amount}")
    return rows


def scan_depth(
    price: int,
    orders: Sequence[OrderLike],
    targets: Iterable[int],
    direction: str = "buy",
    *,
    once_max_order: int = DEFAULT_ONCE_MAX_ORDER,
    pass_order: Optional[str] = None,
    human: bool = False,
) -> pd.DataFrame:
    """Depth profile as a DataFrame with DEPTH_COLUMNS, one row per target.

    With `human=True` the amount columns are converted to SOL / token units
    (Decimal) for display; otherwise they stay raw integers.
    """
    rows = depth_rows(price, orders, targets, direction, once_max_order=once_max_order, pass_order=pass_order)
    records = [asdict(r) for r in rows]
    if human:
        for rec in records:
            rec["target"] = units_to_token(rec["target"])
            rec["ideal"] = lamports_to_sol(rec["ideal"])
            rec["real"] = lamports_to_sol(rec["real"])
            rec["free_token"] = units_to_token(rec["free_token"])
            rec["locked_token"] = units_to_token(rec["locked_token"])
    return pd.DataFrame(records, columns=DEPTH_COLUMNS)


def geometric_targets(start: int, factor: int, count: int) -> List[int]:
    """start, start*factor, start*factor**2, ... (`count` entries)."""
    if start <= 0 or factor < 2 or count <= 0:
        raise InputValidationError("geometric_targets expects start > 0, factor >= 2 and count > 0")
    return [start * factor ** i for i in range(count)]


def summarize_depth(df: pd.DataFrame) -> Dict[str, object]:
    """Headline figures of a scan: largest reachable target and worst slippage seen."""
    reachable = df[df["reachable"].astype(bool)] if not df.empty else df
    if reachable.empty:
        return {"rows": len(df), "max_reachable_target": None, "max_slippage": None, "first_force_close": None}
    closing = df[df["force_close"] > 0]
    slips = [s for s in reachable["slippage"] if s is not None]
    return {
        "rows": len(df),
        "max_reachable_target": reachable["target"].max(),
        "max_slippage": max(slips) if slips else None,
        "first_force_close": None if closing.empty else closing["target"].iloc[0],
    }


__all__ = [
    "DEPTH_COLUMNS",
    "DepthRow",
    "depth_rows",
    "scan_depth",
    "geometric_targets",
    "summarize_depth",
]
