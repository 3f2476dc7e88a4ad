"""
ledger.py
---------

Sequential recalculation of the trade log. Every function here is pure:
it takes the configuration and the current list of trades and returns a
new, fully recomputed list. The web layer calls one of the mutations
(add, delete, edit, clear) and persists whatever comes back.

Arithmetic that cannot be completed (non-finite input, overflow) is
masked with a safe fallback instead of being raised.
"""

import logging
from dataclasses import replace
from decimal import Decimal, DivisionByZero, InvalidOperation, Overflow, getcontext, localcontext
from typing import List, Optional, Tuple

from .models import (
    HUNDRED,
    ZERO,
    CalculatorConfig,
    Outcome,
    Trade,
    new_trade_id,
    parse_non_negative,
)

logger = logging.getLogger(__name__)

# suggestions at or above this are treated as unusable for a new trade
MAX_SUGGESTED_RISK = Decimal("50")

TRADE_VALUE_FIELDS = {
    "risk_percentage": "Risk %",
    "win_multiplier": "Win Multiplier",
}


class InvalidTradeValue(ValueError):
    """Raised when an edited risk % or win multiplier is rejected."""


def _finite(value: Decimal, fallback: Decimal) -> Decimal:
    return value if value.is_finite() else fallback


def _quiet_context():
    """Decimal context where invalid operations yield NaN/Infinity instead of raising."""
    ctx = getcontext().copy()
    ctx.traps[InvalidOperation] = False
    ctx.traps[DivisionByZero] = False
    ctx.traps[Overflow] = False
    return localcontext(ctx)


def suggested_risk(balance: Decimal, target: Decimal, multiplier: Decimal) -> Optional[Decimal]:
    """Risk % that closes the distance to ``target`` on one win at ``multiplier``.

    Returns None when the target is already met, the balance or
    multiplier is not positive, or the result is not finite.
    """
    if not (balance.is_finite() and target.is_finite() and multiplier.is_finite()):
        return None
    if balance <= 0 or multiplier <= 0:
        return None
    with _quiet_context():
        remaining = target - balance
        if not remaining.is_finite() or remaining <= 0:
            return None
        risk = (remaining / (balance * multiplier)) * HUNDRED
    return risk if risk.is_finite() else None


def calculate_trade_row(trade: Trade, previous_balance: Decimal, target: Decimal) -> Trade:
    """Derive balances and P/L for one trade starting at ``previous_balance``."""
    account_size = previous_balance
    with _quiet_context():
        risk_amount = account_size * (trade.risk_percentage / HUNDRED)
        floating_pl = trade.outcome.floating_pl(risk_amount, trade.win_multiplier)
        account_balance = account_size + floating_pl
        distance_to_target = target - account_balance

    return replace(
        trade,
        account_size=account_size,
        risk_amount=_finite(risk_amount, ZERO),
        floating_pl=_finite(floating_pl, ZERO),
        account_balance=_finite(account_balance, account_size),
        distance_to_target=_finite(distance_to_target, target - account_size),
    )


def recompute(config: CalculatorConfig, trades: List[Trade]) -> List[Trade]:
    """Recalculate every trade in order from the configured initial balance.

    Trades are renumbered from 1. Each row's suggested risk uses the
    configured default win multiplier, the same one used for new trades.
    """
    balance = config.initial_balance
    target = config.profit_target
    out: List[Trade] = []
    for index, trade in enumerate(trades, start=1):
        row = calculate_trade_row(trade, balance, target)
        balance = row.account_balance
        out.append(
            replace(
                row,
                trade_number=index,
                next_suggested_risk=suggested_risk(balance, target, config.default_win_multiplier),
            )
        )
    return out


def current_balance(config: CalculatorConfig, trades: List[Trade]) -> Decimal:
    """Ending balance of the last trade, or the initial balance for an empty log."""
    return trades[-1].account_balance if trades else config.initial_balance


def current_suggested_risk(config: CalculatorConfig, trades: List[Trade]) -> Optional[Decimal]:
    return suggested_risk(
        current_balance(config, trades), config.profit_target, config.default_win_multiplier
    )


def risk_for_new_trade(config: CalculatorConfig, trades: List[Trade]) -> Decimal:
    """Suggested risk when it is usable (0 < risk < 50), otherwise the default risk."""
    risk = current_suggested_risk(config, trades)
    if risk is not None and ZERO < risk < MAX_SUGGESTED_RISK:
        return risk
    return config.default_risk_percentage


def find_trade(trades: List[Trade], trade_id: str) -> Optional[Trade]:
    for trade in trades:
        if trade.id == trade_id:
            return trade
    return None


# ---------- mutations ----------
def add_trade(config: CalculatorConfig, trades: List[Trade]) -> List[Trade]:
    """Append a pending trade pre-filled with the risk from :func:`risk_for_new_trade`."""
    trade = Trade(
        id=new_trade_id(),
        risk_percentage=risk_for_new_trade(config, trades),
        win_multiplier=config.default_win_multiplier,
        outcome=Outcome.PENDING,
    )
    logger.info("Adding trade #%d (risk %s%%)", len(trades) + 1, trade.risk_percentage)
    return recompute(config, list(trades) + [trade])


def delete_trade(config: CalculatorConfig, trades: List[Trade], trade_id: str) -> List[Trade]:
    remaining = [t for t in trades if t.id != trade_id]
    if len(remaining) != len(trades):
        logger.info("Deleted trade %s", trade_id)
    return recompute(config, remaining)


def update_outcome(
    config: CalculatorConfig, trades: List[Trade], trade_id: str, outcome: Outcome
) -> Tuple[List[Trade], bool]:
    """Set a trade's outcome. Returns the recomputed log and whether anything changed."""
    changed = False
    updated = []
    for trade in trades:
        if trade.id == trade_id and trade.outcome != outcome:
            trade = replace(trade, outcome=outcome)
            changed = True
        updated.append(trade)
    if changed:
        logger.info("Trade %s outcome set to %s", trade_id, outcome.value)
    return recompute(config, updated), changed


def update_trade_value(
    config: CalculatorConfig, trades: List[Trade], trade_id: str, field_name: str, raw: str
) -> Tuple[List[Trade], bool]:
    """Edit a trade's risk % or win multiplier.

    Raises
    ------
    InvalidTradeValue
        If ``raw`` is not a non-negative number. The log is left as is.
    """
    if field_name not in TRADE_VALUE_FIELDS:
        raise ValueError(f"Unknown trade field: {field_name}")
    value = parse_non_negative(raw)
    if value is None:
        logger.warning("Rejected %s=%r for trade %s", field_name, raw, trade_id)
        raise InvalidTradeValue(f"Invalid {TRADE_VALUE_FIELDS[field_name]} value.")

    changed = False
    updated = []
    for trade in trades:
        if trade.id == trade_id and getattr(trade, field_name) != value:
            trade = replace(trade, **{field_name: value})
            changed = True
        updated.append(trade)
    if changed:
        logger.info("Trade %s %s set to %s", trade_id, field_name, value)
    return recompute(config, updated), changed


def clear_trades() -> List[Trade]:
    logger.info("Cleared trade log")
    return []
