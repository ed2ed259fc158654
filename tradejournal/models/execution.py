"""TradeExecution model: append-only log of every fill applied to a trade."""

from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


class TradeExecution(SQLModel, table=True):
    __tablename__ = "execution"

    id: int | None = Field(default=None, primary_key=True)
    trade_id: int = Field(foreign_key="trade.id", index=True)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    side: str  # "BUY" | "SELL"
    price: float
    quantity: float  # always positive
    fees: float = 0.0
    expected_price: float | None = None  # limit/stop price, used for slippage
    slippage: float = 0.0  # |price - expected_price| * quantity
    broker_order_id: str | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
