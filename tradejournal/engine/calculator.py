"""Orchestrator: thread one execution through every stage and return the patch.

    normalize -> position -> pnl -> risk -> timing -> bookkeeping

`apply_execution` is deterministic: the same (trade, execution, now) always
yields the same patch, which is what makes retries and replays safe.
"""

from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime

from tradejournal.engine.normalizer import normalize_execution, normalize_trade
from tradejournal.engine.pnl import apply_pnl
from tradejournal.engine.position import apply_fill
from tradejournal.engine.risk import apply_risk
from tradejournal.engine.state import STATE_FIELDS, Execution, TradePatch, TradeState
from tradejournal.engine.timing import apply_timing
from tradejournal.utils.constants import BUY, LONG, SHORT


def next_state(trade, execution, now: datetime | None = None) -> TradeState:
    """Return the full snapshot after applying `execution` to `trade`.

    `now` stamps updated_at; without it the execution's own timestamp is
    used so the function never reads the clock.
    """
    state = normalize_trade(trade)
    fill = normalize_execution(execution)

    change = apply_fill(state, fill)
    updated = apply_pnl(change, fill)
    updated = apply_risk(updated)
    updated = apply_timing(updated, fill, change.closed_quantity)

    return replace(
        updated,
        total_executions=state.total_executions + 1,
        updated_at=now or fill.timestamp or state.updated_at,
    )


def diff_states(before: TradeState, after: TradeState) -> TradePatch:
    """Fields that differ between two snapshots; bookkeeping is always included."""
    patch = {
        name: getattr(after, name)
        for name in STATE_FIELDS
        if getattr(after, name) != getattr(before, name)
    }
    patch["total_executions"] = after.total_executions
    patch["updated_at"] = after.updated_at
    return patch


def apply_execution(trade, execution, now: datetime | None = None) -> TradePatch:
    """Apply one execution and return every changed trade field."""
    state = normalize_trade(trade)
    return diff_states(state, next_state(state, execution, now=now))


def apply_patch(trade, patch: TradePatch) -> TradeState:
    unknown = set(patch) - set(STATE_FIELDS)
    if unknown:
        raise KeyError(f"Unknown trade fields in patch: {sorted(unknown)}")
    return replace(normalize_trade(trade), **patch)


def open_trade_state(
    symbol: str,
    execution,
    initial_stop_loss: float | None = None,
    take_profit_target: float | None = None,
    now: datetime | None = None,
) -> TradeState:
    """Snapshot of a new trade after its first execution; direction follows the fill's side."""
    fill = normalize_execution(execution)
    empty = TradeState(
        symbol=symbol,
        direction=LONG if fill.side == BUY else SHORT,
        initial_stop_loss=initial_stop_loss,
        take_profit_target=take_profit_target,
    )
    return next_state(empty, fill, now=now)


def _chronological_key(fill: Execution):
    # Undated fills keep their relative order after the dated ones
    return (fill.timestamp is None, fill.timestamp or datetime.min)


def replay(
    executions: Iterable,
    initial=None,
    chronological: bool = True,
) -> TradeState:
    """Rebuild a snapshot from scratch by folding the whole execution history.

    Only identity and the risk plan survive from `initial`; every aggregate
    is recomputed. With `chronological=True` fills are applied in timestamp
    order, which makes the result independent of arrival order.
    """
    fills = [normalize_execution(e) for e in executions]
    if chronological:
        fills.sort(key=_chronological_key)

    seed = normalize_trade(initial) if initial is not None else TradeState()
    state = TradeState(
        id=seed.id,
        symbol=seed.symbol,
        direction=seed.direction,
        initial_stop_loss=seed.initial_stop_loss,
        original_stop_loss=seed.original_stop_loss,
        take_profit_target=seed.take_profit_target,
    )
    for fill in fills:
        state = next_state(state, fill)
    return state
