"""Position aggregator: net quantity, cost basis, exit averages and the flip algorithm."""

from dataclasses import dataclass, replace

from tradejournal.engine.guards import clamp_dust, safe_divide
from tradejournal.engine.normalizer import is_entry
from tradejournal.engine.state import Execution, TradeState
from tradejournal.utils.constants import BUY, CLOSED, LONG, OPEN, SHORT


@dataclass(frozen=True)
class PositionChange:
    """Result of applying one fill to the position.

    cost_basis and closed_direction describe the leg *before* the fill, which
    is what realized P&L on the closing portion must be measured against.
    """
    state: TradeState
    closed_quantity: float = 0.0
    cost_basis: float = 0.0
    closed_direction: str = LONG


def opposite(direction: str) -> str:
    return SHORT if direction == LONG else LONG


def signed_quantity(direction: str, magnitude: float) -> float:
    magnitude = clamp_dust(magnitude)
    if magnitude == 0:
        return 0.0
    return magnitude if direction == LONG else -magnitude


def _with_status(state: TradeState) -> TradeState:
    return replace(state, status=CLOSED if state.net_quantity == 0 else OPEN)


def _record_side_value(state: TradeState, execution: Execution) -> TradeState:
    if execution.side == BUY:
        return replace(state, total_buy_value=state.total_buy_value + execution.value)
    return replace(state, total_sell_value=state.total_sell_value + execution.value)


def _start_leg(state: TradeState, direction: str) -> TradeState:
    """Reset the leg-scoped high-water marks before a fresh leg opens."""
    return replace(
        state,
        direction=direction,
        net_quantity=0.0,
        peak_quantity=0.0,
        peak_invested=0.0,
        planned_quantity=0.0,
    )


def add_to_position(state: TradeState, price: float, quantity: float) -> TradeState:
    """Weighted-average entry update in the state's current direction."""
    open_quantity = state.open_quantity
    new_open = clamp_dust(open_quantity + quantity)
    avg_entry = state.avg_entry_price
    if new_open > 0:
        avg_entry = (open_quantity * state.avg_entry_price + quantity * price) / new_open

    return replace(
        state,
        net_quantity=signed_quantity(state.direction, new_open),
        avg_entry_price=avg_entry,
        invested_amount=state.invested_amount + price * quantity,
        peak_quantity=max(state.peak_quantity, new_open),
        peak_invested=max(state.peak_invested, new_open * avg_entry),
        planned_quantity=state.planned_quantity or quantity,
    )


def reduce_position(state: TradeState, price: float, quantity: float) -> tuple[TradeState, float, float]:
    """Close up to the open quantity at `price`.

    Returns (state, closed_quantity, leftover_quantity). The leftover is the
    part of the fill that exceeded the open position, already dust-clamped.
    """
    open_quantity = state.open_quantity
    closed = min(quantity, open_quantity)
    leftover = clamp_dust(quantity - closed)
    remaining = clamp_dust(open_quantity - closed)

    total_exit_quantity = state.total_exit_quantity + closed
    total_exit_value = state.total_exit_value + price * closed
    avg_exit = state.avg_exit_price
    if total_exit_quantity > 0:
        avg_exit = safe_divide(total_exit_value, total_exit_quantity)

    reduced = replace(
        state,
        net_quantity=signed_quantity(state.direction, remaining),
        total_exit_quantity=total_exit_quantity,
        total_exit_value=total_exit_value,
        avg_exit_price=avg_exit,
    )
    return reduced, closed, leftover


def apply_fill(state: TradeState, execution: Execution) -> PositionChange:
    """Route one fill to accumulate, reduce, close or flip the position."""
    price, quantity = execution.price, execution.quantity
    before = _record_side_value(state, execution)

    if before.is_flat:
        # A flat trade reopens in whichever direction the fill points
        direction = LONG if execution.side == BUY else SHORT
        opened = add_to_position(_start_leg(before, direction), price, quantity)
        return PositionChange(
            state=_with_status(opened),
            cost_basis=state.avg_entry_price,
            closed_direction=state.direction,
        )

    if is_entry(before.direction, execution.side):
        added = add_to_position(before, price, quantity)
        return PositionChange(
            state=_with_status(added),
            cost_basis=state.avg_entry_price,
            closed_direction=state.direction,
        )

    reduced, closed, leftover = reduce_position(before, price, quantity)
    if leftover > 0 and reduced.is_flat:
        # The excess opens a brand-new leg on the other side at the fill price
        reduced = add_to_position(_start_leg(reduced, opposite(state.direction)), price, leftover)

    return PositionChange(
        state=_with_status(reduced),
        closed_quantity=closed,
        cost_basis=state.avg_entry_price,
        closed_direction=state.direction,
    )
