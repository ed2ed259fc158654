"""Journal service: the transactional caller of the accounting engine.

Every write loads the trade row under a row lock, runs the pure engine,
persists the resulting patch and appends the raw execution in one commit.
The cash ledger itself lives elsewhere; callers receive the net P&L delta
it should post.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone

from sqlmodel import Session, select

from tradejournal.config import settings
from tradejournal.engine import (
    apply_execution,
    compute_risk_metrics,
    normalize_execution,
    normalize_trade,
    open_trade_state,
    replay,
)
from tradejournal.engine.normalizer import parse_timestamp
from tradejournal.engine.risk import freeze_stop
from tradejournal.engine.state import STATE_FIELDS, TradeState
from tradejournal.engine.timing import execution_slippage
from tradejournal.models.execution import TradeExecution
from tradejournal.models.trade import Trade
from tradejournal.schemas.execution import ExecutionCreate
from tradejournal.schemas.trade import TradeCreate, TradePlanUpdate

logger = logging.getLogger(__name__)


@dataclass
class AppliedExecution:
    trade: Trade
    execution: TradeExecution
    ledger_delta: float


@dataclass
class DeletedTrade:
    id: int
    executions_deleted: int
    ledger_reversal: float


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _state_values(state: TradeState) -> dict:
    return {name: getattr(state, name) for name in STATE_FIELDS if name != "id"}


def _write(trade: Trade, values: dict):
    for key, value in values.items():
        setattr(trade, key, value)


def _build_execution(trade_id: int, data: ExecutionCreate, now: datetime) -> TradeExecution:
    payload = data.model_dump()
    # Stored as UTC; SQLite drops the offset on the way in
    payload["timestamp"] = parse_timestamp(payload["timestamp"]) or now
    record = TradeExecution(trade_id=trade_id, **payload)
    record.slippage = execution_slippage(normalize_execution(record))
    return record


def _history(session: Session, trade_id: int) -> list[TradeExecution]:
    stmt = (
        select(TradeExecution)
        .where(TradeExecution.trade_id == trade_id)
        .order_by(TradeExecution.timestamp, TradeExecution.id)
    )
    return list(session.exec(stmt).all())


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def list_trades(
    session: Session,
    symbol: str | None = None,
    status: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Trade]:
    stmt = select(Trade).order_by(Trade.entry_date.desc(), Trade.id.desc())
    if symbol is not None:
        stmt = stmt.where(Trade.symbol == symbol.strip().upper())
    if status is not None:
        stmt = stmt.where(Trade.status == status.strip().upper())
    stmt = stmt.offset(offset).limit(limit)
    return list(session.exec(stmt).all())


def list_executions(session: Session, trade_id: int) -> list[TradeExecution]:
    return _history(session, trade_id)


def lock_trade(session: Session, trade_id: int) -> Trade | None:
    """Load a trade holding its row lock until the session commits."""
    return session.get(Trade, trade_id, with_for_update=True)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def open_trade(session: Session, data: TradeCreate) -> AppliedExecution:
    """Create a trade from its first execution."""
    now = _utcnow()
    try:
        trade = Trade(symbol=data.symbol, notes=data.notes, created_at=now, updated_at=now)
        session.add(trade)
        session.flush()

        execution = _build_execution(trade.id, data.execution, now)
        state = open_trade_state(
            data.symbol,
            execution,
            initial_stop_loss=data.initial_stop_loss,
            take_profit_target=data.take_profit_target,
            now=now,
        )
        _write(trade, _state_values(state))
        session.add(execution)
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Failed to open trade for {data.symbol}: {e}")
        raise

    session.refresh(trade)
    session.refresh(execution)
    logger.info(
        f"[trade_{trade.id}] Opened {trade.direction} {trade.symbol} "
        f"qty={execution.quantity} @ {execution.price}"
    )
    return AppliedExecution(trade=trade, execution=execution, ledger_delta=trade.net_pnl)


def record_execution(session: Session, trade: Trade, data: ExecutionCreate) -> AppliedExecution:
    """Apply one execution to a locked trade and append it to the log."""
    now = _utcnow()
    previous_net = trade.net_pnl
    previous_status = trade.status
    try:
        execution = _build_execution(trade.id, data, now)
        if settings.replay_on_write:
            state = replay(_history(session, trade.id) + [execution], initial=trade)
            values = _state_values(state)
            values["updated_at"] = now
        else:
            values = apply_execution(trade, execution, now=now)
        _write(trade, values)
        session.add(execution)
        session.add(trade)
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"[trade_{trade.id}] Failed to apply execution: {e}")
        raise

    session.refresh(trade)
    session.refresh(execution)
    ledger_delta = trade.net_pnl - previous_net
    logger.info(
        f"[trade_{trade.id}] {execution.side} {execution.quantity} @ {execution.price} "
        f"-> net_qty={trade.net_quantity} net_pnl={trade.net_pnl:.2f} (delta {ledger_delta:+.2f})"
    )
    if trade.status != previous_status:
        logger.info(f"[trade_{trade.id}] Status {previous_status} -> {trade.status}")
    return AppliedExecution(trade=trade, execution=execution, ledger_delta=ledger_delta)


def update_plan(session: Session, trade: Trade, data: TradePlanUpdate) -> Trade:
    """Edit stop/target/notes and re-derive the risk metrics without a new execution."""
    try:
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(trade, key, value)

        state = freeze_stop(normalize_trade(trade))
        trade.original_stop_loss = state.original_stop_loss
        _write(trade, asdict(compute_risk_metrics(state)))
        trade.updated_at = _utcnow()

        session.add(trade)
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"[trade_{trade.id}] Failed to update plan: {e}")
        raise

    session.refresh(trade)
    logger.info(
        f"[trade_{trade.id}] Plan updated: stop={trade.initial_stop_loss} "
        f"(frozen {trade.original_stop_loss}) target={trade.take_profit_target}"
    )
    return trade


def recalculate_trade(session: Session, trade: Trade) -> Trade:
    """Rebuild the aggregate by replaying the stored executions in timestamp order."""
    try:
        history = _history(session, trade.id)
        state = replay(history, initial=trade)
        values = _state_values(state)
        values["updated_at"] = _utcnow()
        _write(trade, values)

        session.add(trade)
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"[trade_{trade.id}] Failed to recalculate: {e}")
        raise

    session.refresh(trade)
    logger.info(f"[trade_{trade.id}] Recalculated from {len(history)} executions")
    return trade


def delete_trade(session: Session, trade: Trade) -> DeletedTrade:
    """Delete a trade and its executions; report the P&L the ledger must reverse."""
    try:
        history = _history(session, trade.id)
        result = DeletedTrade(
            id=trade.id,
            executions_deleted=len(history),
            ledger_reversal=-trade.net_pnl,
        )
        for execution in history:
            session.delete(execution)
        session.delete(trade)
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"[trade_{trade.id}] Failed to delete: {e}")
        raise

    logger.info(
        f"[trade_{result.id}] Deleted with {result.executions_deleted} executions, "
        f"ledger reversal {result.ledger_reversal:+.2f}"
    )
    return result
