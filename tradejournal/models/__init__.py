"""Database models."""

from tradejournal.models.trade import Trade
from tradejournal.models.execution import TradeExecution

__all__ = [
    "Trade",
    "TradeExecution",
]
