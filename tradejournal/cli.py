"""CLI tool for offline and maintenance operations.

Usage:
    python -m tradejournal.cli replay <fills.csv> [SYMBOL]
    python -m tradejournal.cli recalculate <trade_id>

The CSV needs `side,price,quantity` columns; `fees`, `expected_price` and
`timestamp` are optional.
"""

import sys
from dataclasses import fields

import pandas as pd
from sqlmodel import Session

from tradejournal.database import engine, create_db_and_tables
from tradejournal.engine import TradeState, replay
from tradejournal.services import journal
from tradejournal.utils.constants import VALID_SIDES
from tradejournal.utils.logging import setup_logging

REQUIRED_COLUMNS = ["side", "price", "quantity"]


def load_fills(path: str) -> list[dict]:
    """Read a CSV of fills into row dicts, in file order.

    Rows missing a required value are dropped. Sides must be BUY or SELL,
    as in the API.
    """
    frame = pd.read_csv(path)
    frame.columns = [str(c).strip().lower() for c in frame.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in frame.columns]
    if missing:
        raise ValueError(f"missing columns: {', '.join(missing)}")
    frame = frame.dropna(subset=REQUIRED_COLUMNS)

    frame = frame.assign(side=frame["side"].astype(str).str.strip().str.upper())
    invalid = frame[~frame["side"].isin(VALID_SIDES)]
    if not invalid.empty:
        # +2 for the header line and 1-based file lines
        lines = ", ".join(str(i + 2) for i in invalid.index)
        raise ValueError(f"invalid side on line(s) {lines}")
    return frame.to_dict("records")


def format_state(state: TradeState) -> str:
    lines = []
    for f in fields(state):
        value = getattr(state, f.name)
        if isinstance(value, float):
            value = f"{value:.6f}".rstrip("0").rstrip(".")
        lines.append(f"{f.name:>22}: {value}")
    return "\n".join(lines)


def replay_csv(path: str, symbol: str = ""):
    """Fold a CSV of fills through the engine and print the final snapshot."""
    try:
        fills = load_fills(path)
        state = replay(fills, initial=TradeState(symbol=symbol.upper()))
    except (OSError, ValueError) as e:
        print(f"Cannot replay fills: {e}")
        sys.exit(1)

    print(f"Replayed {len(fills)} fills from {path}\n")
    print(format_state(state))


def recalculate(trade_id: str):
    """Replay a stored trade's executions and persist the rebuilt aggregate."""
    if not trade_id.isdigit():
        print("Trade id must be an integer.")
        sys.exit(1)

    create_db_and_tables()
    with Session(engine) as session:
        trade = journal.lock_trade(session, int(trade_id))
        if trade is None:
            print(f"Trade {trade_id} not found.")
            sys.exit(1)
        trade = journal.recalculate_trade(session, trade)
        print(
            f"Trade {trade.id} {trade.symbol}: status={trade.status} "
            f"net_qty={trade.net_quantity} net_pnl={trade.net_pnl:.2f}"
        )


def main():
    if len(sys.argv) < 3:
        print("Usage: python -m tradejournal.cli <command> <arg> [SYMBOL]")
        print("Commands: replay, recalculate")
        sys.exit(1)

    setup_logging()
    command = sys.argv[1]
    if command == "replay":
        replay_csv(sys.argv[2], sys.argv[3] if len(sys.argv) > 3 else "")
    elif command == "recalculate":
        recalculate(sys.argv[2])
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


if __name__ == "__main__":
    main()
