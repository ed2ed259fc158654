"""Tests for fee accumulation, realized P&L and return percentage."""

import pytest

from tradejournal.engine.pnl import apply_pnl, realized_pnl_delta, return_percent, unrealized_pnl
from tradejournal.engine.position import apply_fill
from tradejournal.engine.state import Execution, TradeState


def _apply(state: TradeState, side: str, quantity: float, price: float, fees: float = 0.0) -> TradeState:
    fill = Execution(side=side, price=price, quantity=quantity, fees=fees)
    return apply_pnl(apply_fill(state, fill), fill)


def _long(quantity: float, price: float, **overrides) -> TradeState:
    return TradeState(
        symbol="BTC", direction="LONG", status="OPEN",
        net_quantity=quantity, avg_entry_price=price, **overrides,
    )


def test_realized_delta_by_direction():
    assert realized_pnl_delta("LONG", 100, 150, 5) == 250
    assert realized_pnl_delta("SHORT", 100, 80, 10) == 200
    assert realized_pnl_delta("SHORT", 100, 120, 10) == -200


class TestApplyPnl:
    def test_entry_fees_make_net_negative(self):
        state = _apply(TradeState(symbol="BTC"), "BUY", 10, 100, fees=5)
        assert state.total_fees == 5
        assert state.gross_pnl == 0
        assert state.realized_pnl == 0
        assert state.net_pnl == -5

    def test_scale_out_realizes_against_cost_basis(self):
        state = _apply(_long(10, 100), "SELL", 5, 150, fees=2)
        assert state.realized_pnl == 250
        assert state.gross_pnl == 250
        assert state.net_pnl == 248
        assert state.unrealized_pnl == 250  # 5 still open, marked at 150

    def test_flip_realizes_only_the_closing_portion(self):
        state = _apply(_long(10, 100), "SELL", 20, 90)
        assert state.realized_pnl == -100
        # new short leg opened at the fill price has nothing unrealized yet
        assert state.unrealized_pnl == 0

    def test_fees_accumulate_across_fills(self):
        state = _apply(TradeState(symbol="BTC"), "BUY", 10, 100, fees=1.5)
        state = _apply(state, "BUY", 5, 101, fees=0.75)
        state = _apply(state, "SELL", 15, 102, fees=2.25)
        assert state.total_fees == pytest.approx(4.5)
        assert state.net_pnl == pytest.approx(state.gross_pnl - 4.5)

    def test_return_percent_uses_invested_amount(self):
        state = _apply(TradeState(symbol="BTC"), "BUY", 10, 100)
        state = _apply(state, "SELL", 10, 110, fees=10)
        # net 90 on 1000 invested
        assert state.return_percent == pytest.approx(9.0)


class TestReturnPercent:
    def test_falls_back_to_fill_value(self):
        assert return_percent(50, 0, 1000) == 5.0

    def test_zero_denominators_give_zero(self):
        assert return_percent(50, 0, 0) == 0.0


def test_unrealized_is_zero_when_flat():
    assert unrealized_pnl(TradeState(), 123.0) == 0.0
    assert unrealized_pnl(_long(10, 100), 105) == 50
