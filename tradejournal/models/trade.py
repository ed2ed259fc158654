"""Trade model: the persisted aggregate the engine recomputes on every execution."""

from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


class Trade(SQLModel, table=True):
    __tablename__ = "trade"

    id: int | None = Field(default=None, primary_key=True)
    symbol: str = Field(index=True)  # normalized upper-case, e.g. "BTCUSD", "AAPL"
    direction: str = "LONG"  # "LONG" | "SHORT"
    status: str = Field(default="OPEN", index=True)  # "OPEN" | "CLOSED"

    # Position (net_quantity is signed: >0 long, <0 short)
    net_quantity: float = 0.0
    avg_entry_price: float = 0.0
    avg_exit_price: float = 0.0
    planned_quantity: float = 0.0
    peak_quantity: float = 0.0
    peak_invested: float = 0.0
    invested_amount: float = 0.0
    total_exit_quantity: float = 0.0
    total_exit_value: float = 0.0
    total_buy_value: float = 0.0
    total_sell_value: float = 0.0

    # Financials
    total_fees: float = 0.0
    gross_pnl: float = 0.0
    realized_pnl: float = 0.0
    net_pnl: float = 0.0
    unrealized_pnl: float = 0.0
    return_percent: float = 0.0

    # Risk plan
    initial_stop_loss: float | None = None  # user-editable, may trail
    original_stop_loss: float | None = None  # frozen at first assignment
    take_profit_target: float | None = None
    risk_amount: float = 0.0
    planned_rr: float = 0.0
    risk_multiple: float = 0.0
    holding_period_return: float = 0.0
    profit_capture: float = 0.0

    # Timing & execution quality
    entry_date: datetime | None = None
    exit_date: datetime | None = None
    duration_seconds: float = 0.0
    profit_velocity: float = 0.0
    total_slippage: float = 0.0

    notes: str | None = None
    total_executions: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
