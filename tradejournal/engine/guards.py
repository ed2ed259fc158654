"""Numeric guards used at every arithmetic step that can misbehave."""

import math

from tradejournal.utils.constants import QUANTITY_EPSILON


def safe_number(value) -> float:
    """Coerce anything to a finite float. Unparsable or non-finite input is 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def safe_optional_number(value) -> float | None:
    """Like safe_number, but unset, blank and non-positive values become None."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    number = safe_number(value)
    return number if number > 0 else None


def safe_divide(numerator: float, denominator: float) -> float:
    """Division that returns 0.0 instead of Infinity or NaN."""
    if denominator == 0:
        return 0.0
    result = numerator / denominator
    return result if math.isfinite(result) else 0.0


def clamp_dust(quantity: float) -> float:
    """Snap floating-point residue (|q| < 1e-6) to exactly 0.0."""
    if abs(quantity) < QUANTITY_EPSILON:
        return 0.0
    return quantity
