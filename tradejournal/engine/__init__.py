"""Incremental trade position accounting engine.

Pure functions only: a trade snapshot and one execution go in, the next
snapshot (or the patch between the two) comes out. No I/O, no clock reads
unless the caller passes one in.
"""

from tradejournal.engine.calculator import (
    apply_execution,
    apply_patch,
    next_state,
    open_trade_state,
    replay,
)
from tradejournal.engine.normalizer import (
    is_entry,
    normalize_execution,
    normalize_trade,
)
from tradejournal.engine.risk import RiskMetrics, compute_risk_metrics
from tradejournal.engine.state import Execution, TradePatch, TradeState

__all__ = [
    "Execution",
    "RiskMetrics",
    "TradePatch",
    "TradeState",
    "apply_execution",
    "apply_patch",
    "compute_risk_metrics",
    "is_entry",
    "next_state",
    "normalize_execution",
    "normalize_trade",
    "open_trade_state",
    "replay",
]
