"""Time and execution-quality metrics."""

from dataclasses import replace

from tradejournal.engine.guards import safe_divide
from tradejournal.engine.state import Execution, TradeState
from tradejournal.utils.constants import SECONDS_PER_HOUR


def execution_slippage(execution: Execution) -> float:
    """|fill - expected| * quantity; fills without an expected price contribute 0."""
    if execution.expected_price is None:
        return 0.0
    return abs(execution.price - execution.expected_price) * execution.quantity


def apply_timing(state: TradeState, execution: Execution, closed_quantity: float) -> TradeState:
    """Widen the entry/exit bounds and compute duration on close.

    Bounds are min/max so a late-arriving, earlier fill still moves entry_date.
    """
    entry_date = state.entry_date
    exit_date = state.exit_date
    timestamp = execution.timestamp
    if timestamp is not None:
        if entry_date is None or timestamp < entry_date:
            entry_date = timestamp
        if closed_quantity > 0 and (exit_date is None or timestamp > exit_date):
            exit_date = timestamp

    duration_seconds = 0.0
    profit_velocity = 0.0
    if state.is_flat and entry_date is not None and exit_date is not None:
        duration_seconds = max((exit_date - entry_date).total_seconds(), 0.0)
        profit_velocity = safe_divide(state.net_pnl, duration_seconds / SECONDS_PER_HOUR)

    return replace(
        state,
        entry_date=entry_date,
        exit_date=exit_date,
        duration_seconds=duration_seconds,
        profit_velocity=profit_velocity,
        total_slippage=state.total_slippage + execution_slippage(execution),
    )
