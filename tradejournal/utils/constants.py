"""Shared constants for the accounting engine."""

# Quantities with a smaller magnitude are floating-point dust and clamp to 0
QUANTITY_EPSILON = 1e-6

SECONDS_PER_HOUR = 3600.0

LONG = "LONG"
SHORT = "SHORT"
BUY = "BUY"
SELL = "SELL"
OPEN = "OPEN"
CLOSED = "CLOSED"

VALID_SIDES = [BUY, SELL]
