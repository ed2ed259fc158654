"""Pydantic schemas for the trade API."""

from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from tradejournal.schemas.execution import ExecutionCreate, ExecutionRead


class TradeCreate(BaseModel):
    """A trade is always opened by its first execution."""
    symbol: str = Field(min_length=1, max_length=32)
    execution: ExecutionCreate
    initial_stop_loss: float | None = Field(default=None, gt=0)
    take_profit_target: float | None = Field(default=None, gt=0)
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, value: str) -> str:
        text = value.strip().upper()
        if not text:
            raise ValueError("must not be empty")
        return text


class TradePlanUpdate(BaseModel):
    initial_stop_loss: float | None = Field(default=None, gt=0)
    take_profit_target: float | None = Field(default=None, gt=0)
    notes: str | None = Field(default=None, max_length=2000)


class TradeRead(BaseModel):
    id: int
    symbol: str
    direction: str
    status: str
    net_quantity: float
    avg_entry_price: float
    avg_exit_price: float
    planned_quantity: float
    peak_quantity: float
    peak_invested: float
    invested_amount: float
    total_exit_quantity: float
    total_exit_value: float
    total_buy_value: float
    total_sell_value: float
    total_fees: float
    gross_pnl: float
    realized_pnl: float
    net_pnl: float
    unrealized_pnl: float
    return_percent: float
    initial_stop_loss: float | None
    original_stop_loss: float | None
    take_profit_target: float | None
    risk_amount: float
    planned_rr: float
    risk_multiple: float
    holding_period_return: float
    profit_capture: float
    entry_date: datetime | None
    exit_date: datetime | None
    duration_seconds: float
    profit_velocity: float
    total_slippage: float
    notes: str | None
    total_executions: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ExecutionApplied(BaseModel):
    trade: TradeRead
    execution: ExecutionRead
    ledger_delta: float  # change in net_pnl the cash ledger should post


class TradeDeleted(BaseModel):
    id: int
    executions_deleted: int
    ledger_reversal: float  # amount the cash ledger must post to undo this trade
