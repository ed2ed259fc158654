"""Risk metrics: frozen-stop risk amount, planned R:R, R-multiple, capital efficiency.

The stop used for risk is `original_stop_loss` when set, else
`initial_stop_loss`. The original is frozen the first time a stop is seen,
so trailing the stop later cannot shrink the risk that was actually taken.
"""

from dataclasses import asdict, dataclass, replace

from tradejournal.engine.guards import safe_divide
from tradejournal.engine.state import TradeState


@dataclass(frozen=True)
class RiskMetrics:
    risk_amount: float = 0.0
    planned_rr: float = 0.0
    risk_multiple: float = 0.0
    holding_period_return: float = 0.0
    profit_capture: float = 0.0


def _is_set(price: float | None) -> bool:
    return price is not None and price > 0


def frozen_stop(state: TradeState) -> float | None:
    if _is_set(state.original_stop_loss):
        return state.original_stop_loss
    if _is_set(state.initial_stop_loss):
        return state.initial_stop_loss
    return None


def freeze_stop(state: TradeState) -> TradeState:
    """Copy initial_stop_loss into original_stop_loss on its first assignment."""
    if not _is_set(state.original_stop_loss) and _is_set(state.initial_stop_loss):
        return replace(state, original_stop_loss=state.initial_stop_loss)
    return state


def compute_risk_metrics(state: TradeState) -> RiskMetrics:
    """Derive risk metrics from a snapshot. Every ratio is 0 on a zero denominator."""
    stop = frozen_stop(state)
    entry = state.avg_entry_price
    target = state.take_profit_target
    # Risk is on the open quantity; a flat trade falls back to the leg's peak size
    # rather than 0, so a closed trade still reports its R-multiple
    risk_quantity = state.open_quantity or state.peak_quantity

    risk_amount = 0.0
    planned_rr = 0.0
    if stop is not None and entry > 0:
        risk_distance = abs(entry - stop)
        risk_amount = risk_distance * risk_quantity
        if _is_set(target):
            planned_rr = safe_divide(abs(target - entry), risk_distance)

    profit_capture = 0.0
    if _is_set(target) and entry > 0:
        planned_reward = abs(target - entry) * state.planned_quantity
        profit_capture = safe_divide(state.net_pnl, planned_reward) * 100

    return RiskMetrics(
        risk_amount=risk_amount,
        planned_rr=planned_rr,
        risk_multiple=safe_divide(state.net_pnl, risk_amount),
        holding_period_return=safe_divide(state.net_pnl, state.peak_invested) * 100,
        profit_capture=profit_capture,
    )


def apply_risk(state: TradeState) -> TradeState:
    frozen = freeze_stop(state)
    return replace(frozen, **asdict(compute_risk_metrics(frozen)))
