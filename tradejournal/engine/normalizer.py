"""Execution normalizer: parse raw fills and persisted trades at the boundary.

Everything numeric goes through safe_number, so malformed persisted data
degrades to zero-valued metrics instead of crashing the recompute path.
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone

from tradejournal.engine.guards import clamp_dust, safe_number, safe_optional_number
from tradejournal.engine.state import (
    DATE_FIELDS,
    FLOAT_FIELDS,
    PLAN_FIELDS,
    Execution,
    TradeState,
)
from tradejournal.utils.constants import BUY, CLOSED, LONG, OPEN, SELL, SHORT

# Epoch values above this are milliseconds (year 2286 in seconds)
_EPOCH_MILLIS_THRESHOLD = 1e10

logger = logging.getLogger(__name__)


def _field(raw, name: str, default=None):
    if isinstance(raw, Mapping):
        return raw.get(name, default)
    return getattr(raw, name, default)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value) -> datetime | None:
    """Accept datetimes, ISO-8601 strings and epoch seconds/millis. Returns aware UTC or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, (int, float)):
        seconds = safe_number(value)
        if seconds <= 0:
            return None
        if seconds > _EPOCH_MILLIS_THRESHOLD:
            seconds /= 1000.0
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    # pandas.Timestamp and friends
    to_pydatetime = getattr(value, "to_pydatetime", None)
    if callable(to_pydatetime):
        try:
            return _as_utc(to_pydatetime())
        except (TypeError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return _as_utc(datetime.fromisoformat(text))
        except ValueError:
            number = safe_number(text)
            return parse_timestamp(number) if number > 0 else None
    return None


def parse_side(value) -> str:
    """BUY or SELL. A missing side is BUY; anything else that is not BUY sells."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return BUY
    side = str(getattr(value, "value", value)).strip().upper()
    if side == BUY:
        return BUY
    if side != SELL:
        logger.warning(f"Unknown execution side {value!r}, treating it as {SELL}")
    return SELL


def parse_direction(value) -> str:
    direction = str(getattr(value, "value", value) or "").strip().upper()
    return SHORT if direction == SHORT else LONG


def normalize_execution(raw) -> Execution:
    """Build a typed Execution from a mapping or attribute object."""
    if isinstance(raw, Execution):
        return raw
    return Execution(
        side=parse_side(_field(raw, "side")),
        price=safe_number(_field(raw, "price")),
        quantity=abs(safe_number(_field(raw, "quantity"))),
        fees=abs(safe_number(_field(raw, "fees"))),
        expected_price=safe_optional_number(_field(raw, "expected_price")),
        timestamp=parse_timestamp(_field(raw, "timestamp")),
    )


def normalize_trade(record) -> TradeState:
    """Build a TradeState from a persisted trade (model row, mapping or TradeState)."""
    if isinstance(record, TradeState):
        return record

    values = {name: safe_number(_field(record, name)) for name in FLOAT_FIELDS}
    values.update({name: safe_optional_number(_field(record, name)) for name in PLAN_FIELDS})
    values.update({name: parse_timestamp(_field(record, name)) for name in DATE_FIELDS})

    # An explicit direction wins and fixes the sign; otherwise the sign implies it
    net_quantity = clamp_dust(values["net_quantity"])
    raw_direction = _field(record, "direction")
    if raw_direction:
        direction = parse_direction(raw_direction)
        net_quantity = abs(net_quantity) if direction == LONG else -abs(net_quantity)
    else:
        direction = SHORT if net_quantity < 0 else LONG
    values["net_quantity"] = net_quantity + 0.0  # drop a negative zero

    return TradeState(
        id=_field(record, "id"),
        symbol=str(_field(record, "symbol") or ""),
        direction=direction,
        status=CLOSED if net_quantity == 0 else OPEN,
        total_executions=int(safe_number(_field(record, "total_executions"))),
        **values,
    )


def is_entry(direction: str, side: str) -> bool:
    """A fill is an entry iff it adds to the position in the trade's direction."""
    return (direction == LONG and side == BUY) or (direction == SHORT and side == SELL)
