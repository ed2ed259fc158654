"""Tests for the transactional journal service against an in-memory database."""

import logging
from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import select

from tradejournal.config import settings
from tradejournal.models import Trade, TradeExecution
from tradejournal.schemas.execution import ExecutionCreate
from tradejournal.schemas.trade import TradeCreate, TradePlanUpdate
from tradejournal.services import journal

T0 = datetime(2024, 3, 1, 14, 30, tzinfo=timezone.utc)


def _exec(side: str, quantity: float, price: float, minutes: float = 0, **kwargs) -> ExecutionCreate:
    return ExecutionCreate(
        side=side, price=price, quantity=quantity,
        timestamp=T0 + timedelta(minutes=minutes), **kwargs,
    )


def _open(session, side: str = "BUY", quantity: float = 10, price: float = 100, **kwargs) -> Trade:
    data = TradeCreate(symbol="aapl", execution=_exec(side, quantity, price), **kwargs)
    return journal.open_trade(session, data).trade


# ---------------------------------------------------------------------------
# 1. Opening
# ---------------------------------------------------------------------------

class TestOpenTrade:
    def test_creates_trade_and_first_execution(self, session):
        applied = journal.open_trade(
            session,
            TradeCreate(symbol=" aapl ", execution=_exec("BUY", 10, 100, fees=1.5)),
        )
        trade = applied.trade
        assert trade.id is not None
        assert trade.symbol == "AAPL"
        assert trade.direction == "LONG"
        assert trade.status == "OPEN"
        assert trade.net_quantity == 10
        assert trade.total_executions == 1
        assert applied.execution.trade_id == trade.id
        assert applied.ledger_delta == -1.5

    def test_short_first_fill(self, session):
        trade = _open(session, side="SELL")
        assert trade.direction == "SHORT"
        assert trade.net_quantity == -10

    def test_stop_is_frozen_at_open(self, session):
        trade = _open(session, initial_stop_loss=90.0, take_profit_target=120.0)
        assert trade.original_stop_loss == 90.0
        assert trade.risk_amount == 100.0
        assert trade.planned_rr == pytest.approx(2.0)


# ---------------------------------------------------------------------------
# 2. Recording executions
# ---------------------------------------------------------------------------

class TestRecordExecution:
    def test_scale_out_reports_ledger_delta(self, session):
        trade = _open(session)
        applied = journal.record_execution(session, trade, _exec("SELL", 5, 150, minutes=10, fees=2))
        assert applied.trade.net_quantity == 5
        assert applied.trade.realized_pnl == 250
        assert applied.trade.net_pnl == 248
        assert applied.ledger_delta == 248
        assert applied.trade.total_executions == 2

    def test_full_close_sets_duration(self, session):
        trade = _open(session)
        trade = journal.record_execution(session, trade, _exec("SELL", 10, 110, minutes=30)).trade
        assert trade.status == "CLOSED"
        assert trade.duration_seconds == 1800
        assert trade.profit_velocity == pytest.approx(200.0)

    def test_execution_slippage_is_stored(self, session):
        trade = _open(session)
        applied = journal.record_execution(
            session, trade, _exec("SELL", 4, 109, minutes=5, expected_price=110)
        )
        assert applied.execution.slippage == 4.0
        assert applied.trade.total_slippage == 4.0

    def test_missing_timestamp_uses_server_time(self, session):
        trade = _open(session)
        before = datetime.now(timezone.utc).replace(tzinfo=None)
        applied = journal.record_execution(session, trade, ExecutionCreate(side="BUY", price=101, quantity=1))
        assert applied.execution.timestamp.replace(tzinfo=None) >= before - timedelta(seconds=1)

    def test_logs_status_transition(self, session, caplog):
        trade = _open(session)
        with caplog.at_level(logging.INFO, logger="tradejournal.services.journal"):
            journal.record_execution(session, trade, _exec("SELL", 10, 100, minutes=1))
        assert "Status OPEN -> CLOSED" in caplog.text

    def test_executions_are_appended(self, session):
        trade = _open(session)
        journal.record_execution(session, trade, _exec("BUY", 5, 90, minutes=3))
        journal.record_execution(session, trade, _exec("SELL", 15, 95, minutes=9))
        rows = journal.list_executions(session, trade.id)
        assert [r.side for r in rows] == ["BUY", "BUY", "SELL"]


# ---------------------------------------------------------------------------
# 3. Out-of-order arrival: incremental vs replay-on-write
# ---------------------------------------------------------------------------

def _late_arrival(session) -> Trade:
    trade = _open(session)  # BUY 10 @ 100 at t+0
    journal.record_execution(session, trade, _exec("SELL", 10, 110, minutes=30))
    # an earlier fill reported after the close
    return journal.record_execution(session, trade, _exec("BUY", 10, 90, minutes=10)).trade


def test_incremental_mode_is_order_sensitive(session):
    trade = _late_arrival(session)
    # the late buy reopened a fresh long leg
    assert trade.status == "OPEN"
    assert trade.net_quantity == 10
    assert trade.avg_entry_price == 90
    assert trade.realized_pnl == 100


def test_replay_on_write_is_order_independent(session, monkeypatch):
    monkeypatch.setattr(settings, "replay_on_write", True)
    trade = _late_arrival(session)
    # chronologically: 20 @ 95, then sell 10 @ 110
    assert trade.status == "OPEN"
    assert trade.net_quantity == 10
    assert trade.avg_entry_price == 95
    assert trade.realized_pnl == 150
    assert trade.total_executions == 3


def test_recalculate_replays_in_timestamp_order(session):
    trade = _late_arrival(session)
    trade = journal.recalculate_trade(session, trade)
    assert trade.avg_entry_price == 95
    assert trade.realized_pnl == 150
    assert trade.total_executions == 3


# ---------------------------------------------------------------------------
# 4. Plan edits, listing and deletion
# ---------------------------------------------------------------------------

class TestUpdatePlan:
    def test_first_stop_freezes_and_later_edits_do_not(self, session):
        trade = _open(session)
        assert trade.original_stop_loss is None

        trade = journal.update_plan(session, trade, TradePlanUpdate(initial_stop_loss=95.0))
        assert trade.original_stop_loss == 95.0
        assert trade.risk_amount == 50.0

        trade = journal.update_plan(session, trade, TradePlanUpdate(initial_stop_loss=99.0))
        assert trade.initial_stop_loss == 99.0
        assert trade.original_stop_loss == 95.0
        assert trade.risk_amount == 50.0

    def test_target_edit_rederives_reward_to_risk(self, session):
        trade = _open(session, initial_stop_loss=90.0)
        trade = journal.update_plan(session, trade, TradePlanUpdate(take_profit_target=150.0))
        assert trade.planned_rr == pytest.approx(5.0)


def test_list_trades_filters(session):
    _open(session)
    closed = _open(session, side="SELL")
    journal.record_execution(session, closed, _exec("BUY", 10, 95, minutes=5))

    assert len(journal.list_trades(session)) == 2
    assert [t.id for t in journal.list_trades(session, status="closed")] == [closed.id]
    assert journal.list_trades(session, symbol="MSFT") == []


def test_delete_trade_reports_reversal(session):
    trade = _open(session)
    journal.record_execution(session, trade, _exec("SELL", 10, 120, minutes=5, fees=3))
    trade_id = trade.id

    deleted = journal.delete_trade(session, trade)
    assert deleted.id == trade_id
    assert deleted.executions_deleted == 2
    assert deleted.ledger_reversal == -197
    assert session.get(Trade, trade_id) is None
    assert session.exec(select(TradeExecution)).all() == []


# ---------------------------------------------------------------------------
# 5. Failed writes roll back
# ---------------------------------------------------------------------------

def _failing_commit():
    raise RuntimeError("database is locked")


class TestRollback:
    def test_update_plan(self, session, monkeypatch, caplog):
        trade = _open(session)
        monkeypatch.setattr(session, "commit", _failing_commit)

        with pytest.raises(RuntimeError):
            journal.update_plan(session, trade, TradePlanUpdate(initial_stop_loss=95.0))
        assert "Failed to update plan" in caplog.text
        assert trade.initial_stop_loss is None
        assert trade.original_stop_loss is None

    def test_recalculate_trade(self, session, monkeypatch, caplog):
        trade = _late_arrival(session)
        monkeypatch.setattr(session, "commit", _failing_commit)

        with pytest.raises(RuntimeError):
            journal.recalculate_trade(session, trade)
        assert "Failed to recalculate" in caplog.text
        assert trade.avg_entry_price == 90
        assert trade.realized_pnl == 100

    def test_delete_trade(self, session, monkeypatch, caplog):
        trade = _open(session)
        trade_id = trade.id
        monkeypatch.setattr(session, "commit", _failing_commit)

        with pytest.raises(RuntimeError):
            journal.delete_trade(session, trade)
        assert "Failed to delete" in caplog.text
        monkeypatch.undo()
        assert session.get(Trade, trade_id) is not None
        assert len(journal.list_executions(session, trade_id)) == 1
