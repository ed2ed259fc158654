"""Trade journal API: trades, their executions and plan edits."""

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from tradejournal.database import get_session
from tradejournal.models.trade import Trade
from tradejournal.schemas.execution import ExecutionCreate, ExecutionRead
from tradejournal.schemas.trade import (
    ExecutionApplied,
    TradeCreate,
    TradeDeleted,
    TradePlanUpdate,
    TradeRead,
)
from tradejournal.services import journal

router = APIRouter(prefix="/api/trades", tags=["trades"])


def _get_trade(session: Session, trade_id: int, lock: bool = False) -> Trade:
    trade = journal.lock_trade(session, trade_id) if lock else session.get(Trade, trade_id)
    if not trade:
        raise HTTPException(status_code=404, detail="Trade not found")
    return trade


@router.get("", response_model=list[TradeRead])
def list_trades(
    symbol: str | None = None,
    status: str | None = None,
    limit: int = 50,
    offset: int = 0,
    session: Session = Depends(get_session),
):
    return journal.list_trades(session, symbol=symbol, status=status, limit=limit, offset=offset)


@router.post("", response_model=ExecutionApplied, status_code=201)
def create_trade(data: TradeCreate, session: Session = Depends(get_session)):
    applied = journal.open_trade(session, data)
    return ExecutionApplied(
        trade=TradeRead.model_validate(applied.trade),
        execution=ExecutionRead.model_validate(applied.execution),
        ledger_delta=applied.ledger_delta,
    )


@router.get("/{trade_id}", response_model=TradeRead)
def get_trade(trade_id: int, session: Session = Depends(get_session)):
    return _get_trade(session, trade_id)


@router.patch("/{trade_id}/plan", response_model=TradeRead)
def update_plan(
    trade_id: int,
    data: TradePlanUpdate,
    session: Session = Depends(get_session),
):
    trade = _get_trade(session, trade_id, lock=True)
    return journal.update_plan(session, trade, data)


@router.get("/{trade_id}/executions", response_model=list[ExecutionRead])
def list_executions(trade_id: int, session: Session = Depends(get_session)):
    _get_trade(session, trade_id)
    return journal.list_executions(session, trade_id)


@router.post("/{trade_id}/executions", response_model=ExecutionApplied, status_code=201)
def add_execution(
    trade_id: int,
    data: ExecutionCreate,
    session: Session = Depends(get_session),
):
    trade = _get_trade(session, trade_id, lock=True)
    applied = journal.record_execution(session, trade, data)
    return ExecutionApplied(
        trade=TradeRead.model_validate(applied.trade),
        execution=ExecutionRead.model_validate(applied.execution),
        ledger_delta=applied.ledger_delta,
    )


@router.post("/{trade_id}/recalculate", response_model=TradeRead)
def recalculate_trade(trade_id: int, session: Session = Depends(get_session)):
    """Replay every stored execution in timestamp order."""
    trade = _get_trade(session, trade_id, lock=True)
    return journal.recalculate_trade(session, trade)


@router.delete("/{trade_id}", response_model=TradeDeleted)
def delete_trade(trade_id: int, session: Session = Depends(get_session)):
    trade = _get_trade(session, trade_id, lock=True)
    deleted = journal.delete_trade(session, trade)
    return TradeDeleted(
        id=deleted.id,
        executions_deleted=deleted.executions_deleted,
        ledger_reversal=deleted.ledger_reversal,
    )
