"""PnL calculator: fees, realized gross/net P&L and return percentage."""

from dataclasses import replace

from tradejournal.engine.guards import safe_divide
from tradejournal.engine.position import PositionChange
from tradejournal.engine.state import Execution, TradeState
from tradejournal.utils.constants import LONG


def realized_pnl_delta(direction: str, cost_basis: float, price: float, quantity: float) -> float:
    """P&L of closing `quantity` of a `direction` leg carried at `cost_basis`."""
    if direction == LONG:
        return (price - cost_basis) * quantity
    return (cost_basis - price) * quantity


def unrealized_pnl(state: TradeState, mark_price: float) -> float:
    """Open quantity marked at `mark_price` against the current cost basis."""
    if state.is_flat:
        return 0.0
    return realized_pnl_delta(state.direction, state.avg_entry_price, mark_price, state.open_quantity)


def return_percent(net_pnl: float, invested_amount: float, fill_value: float) -> float:
    # The very first fill can arrive before anything is invested
    denominator = invested_amount if invested_amount != 0 else fill_value
    return safe_divide(net_pnl, denominator) * 100


def apply_pnl(change: PositionChange, execution: Execution) -> TradeState:
    state = change.state
    total_fees = state.total_fees + execution.fees

    delta = 0.0
    if change.closed_quantity > 0:
        delta = realized_pnl_delta(
            change.closed_direction, change.cost_basis, execution.price, change.closed_quantity
        )

    gross_pnl = state.gross_pnl + delta
    net_pnl = gross_pnl - total_fees
    return replace(
        state,
        total_fees=total_fees,
        gross_pnl=gross_pnl,
        realized_pnl=state.realized_pnl + delta,
        net_pnl=net_pnl,
        unrealized_pnl=unrealized_pnl(state, execution.price),
        return_percent=return_percent(net_pnl, state.invested_amount, execution.value),
    )
