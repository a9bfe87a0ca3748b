"""
Research utilities (non-stable API).

Depth scans over the liquidity calculator for post-hoc analysis. This is NOT
part of the stable API surface and may change without notice.
"""
from __future__ import annotations

from .depth_scan import (
    DEPTH_COLUMNS,
    DepthRow,
    depth_rows,
    scan_depth,
    geometric_targets,
    summarize_depth,
)

__all__ = [
    "DEPTH_COLUMNS",
    "DepthRow",
    "depth_rows",
    "scan_depth",
    "geometric_targets",
    "summarize_depth",
]
