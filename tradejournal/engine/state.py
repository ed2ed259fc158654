"""Value types passed between the engine stages."""

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any

from tradejournal.utils.constants import BUY, CLOSED, LONG

# Changed TradeState fields keyed by name, ready to persist
TradePatch = dict[str, Any]


@dataclass(frozen=True)
class Execution:
    """One normalized fill. Quantity is always a positive magnitude."""
    side: str = BUY
    price: float = 0.0
    quantity: float = 0.0
    fees: float = 0.0
    expected_price: float | None = None
    timestamp: datetime | None = None

    @property
    def value(self) -> float:
        return self.price * self.quantity


@dataclass(frozen=True)
class TradeState:
    """Snapshot of one trade's aggregate.

    net_quantity is signed (positive LONG, negative SHORT); its magnitude is
    the open quantity. A snapshot with no fills applied is flat and CLOSED.
    """
    id: int | None = None
    symbol: str = ""
    direction: str = LONG
    status: str = CLOSED

    # Position
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
    initial_stop_loss: float | None = None
    original_stop_loss: float | None = None
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

    # Bookkeeping
    total_executions: int = 0
    updated_at: datetime | None = None

    @property
    def open_quantity(self) -> float:
        return abs(self.net_quantity)

    @property
    def is_flat(self) -> bool:
        return self.net_quantity == 0


STATE_FIELDS = tuple(f.name for f in fields(TradeState))
PLAN_FIELDS = ("initial_stop_loss", "original_stop_loss", "take_profit_target")
DATE_FIELDS = ("entry_date", "exit_date", "updated_at")
TEXT_FIELDS = ("symbol", "direction", "status")
FLOAT_FIELDS = tuple(
    name for name in STATE_FIELDS
    if name not in PLAN_FIELDS + DATE_FIELDS + TEXT_FIELDS + ("id", "total_executions")
)
