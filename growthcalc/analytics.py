"""
analytics.py
-------------

Summary figures for a recomputed trade log: the totals shown under the
trade table plus simple outcome statistics. Kept apart from the ledger
so the same numbers can be used by the HTML page, the JSON endpoint and
tests without touching storage or presentation.
"""

from decimal import Decimal
from typing import Any, Dict, List

from .ledger import current_balance, current_suggested_risk
from .models import HUNDRED, ZERO, CalculatorConfig, Outcome, Trade

WINNING_OUTCOMES = {Outcome.WIN, Outcome.PARTIAL_WIN}


def compute_summary(config: CalculatorConfig, trades: List[Trade]) -> Dict[str, Any]:
    """Compute totals and outcome statistics for an already recomputed log.

    Parameters
    ----------
    config: CalculatorConfig
        Configuration the log was recomputed with.
    trades: List[Trade]
        Output of :func:`growthcalc.ledger.recompute`.

    Returns
    -------
    Dict[str, Any]
        Keys include:
        - total_trades: int
        - current_balance: Decimal
        - total_pl: Decimal (current balance minus initial balance)
        - profit_target: Decimal
        - distance_to_target: Decimal
        - target_reached: bool
        - current_suggested_risk: Optional[Decimal]
        - outcome_counts: Dict[str, int]
        - resolved_trades: int (non-pending)
        - win_rate: Decimal (percentage of resolved trades that won)
        - largest_win: Decimal
        - largest_loss: Decimal
    """
    balance = current_balance(config, trades)
    target = config.profit_target
    distance = target - balance

    summary: Dict[str, Any] = {
        "total_trades": len(trades),
        "current_balance": balance,
        "total_pl": balance - config.initial_balance,
        "profit_target": target,
        "distance_to_target": distance,
        "target_reached": distance <= 0,
        "current_suggested_risk": current_suggested_risk(config, trades),
        "outcome_counts": {o.value: 0 for o in Outcome},
        "resolved_trades": 0,
        "win_rate": ZERO,
        "largest_win": ZERO,
        "largest_loss": ZERO,
    }
    if not trades:
        return summary

    for trade in trades:
        summary["outcome_counts"][trade.outcome.value] += 1

    resolved = [t for t in trades if t.outcome is not Outcome.PENDING]
    wins = [t for t in resolved if t.outcome in WINNING_OUTCOMES]
    pls = [t.floating_pl for t in trades]

    summary.update(
        {
            "resolved_trades": len(resolved),
            "win_rate": Decimal(len(wins)) / Decimal(len(resolved)) * HUNDRED if resolved else ZERO,
            "largest_win": max((p for p in pls if p > 0), default=ZERO),
            "largest_loss": min((p for p in pls if p < 0), default=ZERO),
        }
    )
    return summary
