"""
models.py
---------

Defines the core data model for the growth calculator: the calculator
configuration, a single logged trade and the closed set of outcomes a
trade can take. Keeping these in a separate module lets the ledger,
the store and the web layer share one definition.

All money and percentage values are ``Decimal``. Values coming from
forms or from the store are parsed leniently with :func:`to_decimal`.
"""

from dataclasses import dataclass, field, asdict
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional
import uuid

ZERO = Decimal("0")
HUNDRED = Decimal("100")
DEFAULT_TARGET_GROWTH = Decimal("1.08")


# -------------------------
# small parse helpers
# -------------------------
def to_decimal(x: Any) -> Decimal:
    """Lenient parse: empty, un-parsable, non-finite or negative -> 0."""
    if x is None or x == "":
        return ZERO
    try:
        value = Decimal(str(x).strip())
    except (InvalidOperation, ValueError, TypeError):
        return ZERO
    if not value.is_finite() or value < 0:
        return ZERO
    return value


def parse_non_negative(x: Any) -> Optional[Decimal]:
    """Strict parse for user edits. Returns None when the value is rejected."""
    if x is None:
        return None
    try:
        value = Decimal(str(x).strip())
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not value.is_finite() or value < 0:
        return None
    return value


def _optional_decimal(x: Any) -> Optional[Decimal]:
    if x is None or x == "":
        return None
    try:
        value = Decimal(str(x))
    except (InvalidOperation, ValueError, TypeError):
        return None
    return value if value.is_finite() else None


def _raw_decimal(x: Any) -> Decimal:
    # derived values may legitimately be negative (P/L, distance)
    value = _optional_decimal(x)
    return ZERO if value is None else value


class Outcome(str, Enum):
    """Closed set of trade outcomes. Values are the persisted strings."""

    WIN = "win"
    PARTIAL_WIN = "partial win"
    LOSS = "loss"
    BREAKEVEN = "breakeven"
    PENDING = "pending"

    @classmethod
    def parse(cls, value: Any) -> "Outcome":
        """Map a stored string to an outcome; anything unknown is pending."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.PENDING

    @property
    def label(self) -> str:
        return self.value.title()

    def floating_pl(self, risk_amount: Decimal, win_multiplier: Decimal) -> Decimal:
        """Profit or loss realised by this outcome for the given risk."""
        factor, scaled = PL_FACTORS[self]
        if scaled:
            return risk_amount * win_multiplier * factor
        return risk_amount * factor


# outcome -> (P/L factor, scaled by win multiplier)
PL_FACTORS: Dict[Outcome, tuple] = {
    Outcome.WIN: (Decimal("1"), True),
    Outcome.PARTIAL_WIN: (Decimal("0.5"), True),
    Outcome.LOSS: (Decimal("-1"), False),
    Outcome.BREAKEVEN: (ZERO, False),
    Outcome.PENDING: (ZERO, False),
}


@dataclass(frozen=True)
class CalculatorConfig:
    """Starting parameters for a recalculation pass.

    Attributes
    ----------
    initial_balance: Decimal
        Starting capital of the account.
    profit_target_input: Decimal
        Desired end balance as entered. Zero means unset.
    default_risk_percentage: Decimal
        Risk % used for new trades when no usable suggestion exists.
    default_win_multiplier: Decimal
        Reward to risk ratio (R) used for new trades and suggestions.
    """

    initial_balance: Decimal = Decimal("10000")
    profit_target_input: Decimal = ZERO
    default_risk_percentage: Decimal = Decimal("1.23")
    default_win_multiplier: Decimal = Decimal("6.5")

    @property
    def profit_target(self) -> Decimal:
        """Entered target when positive, otherwise 8% above the initial balance."""
        if self.profit_target_input > 0:
            return self.profit_target_input
        return self.initial_balance * DEFAULT_TARGET_GROWTH

    @classmethod
    def from_strings(
        cls,
        initial_balance: Any,
        profit_target: Any,
        default_risk_percentage: Any,
        default_win_multiplier: Any,
    ) -> "CalculatorConfig":
        return cls(
            initial_balance=to_decimal(initial_balance),
            profit_target_input=to_decimal(profit_target),
            default_risk_percentage=to_decimal(default_risk_percentage),
            default_win_multiplier=to_decimal(default_win_multiplier),
        )


def new_trade_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Trade:
    """Represents a single entry of the trade log.

    Attributes
    ----------
    id: str
        Stable identity, unchanged by edits and recalculation.
    risk_percentage: Decimal
        Percentage of the starting balance put at risk.
    win_multiplier: Decimal
        Reward to risk ratio applied on a win.
    outcome: Outcome
        Result of the trade, ``pending`` until resolved.

    The remaining attributes are derived by the ledger and never
    edited directly:

    trade_number: int
        1-based position in the log.
    account_size: Decimal
        Balance before the trade.
    risk_amount: Decimal
        ``account_size * risk_percentage / 100``.
    floating_pl: Decimal
        Profit or loss for the outcome.
    account_balance: Decimal
        Balance after the trade.
    distance_to_target: Decimal
        Profit target minus ``account_balance``.
    next_suggested_risk: Optional[Decimal]
        Risk % the next trade needs to reach the target, None when the
        target is met or the value cannot be computed.
    """

    id: str
    risk_percentage: Decimal
    win_multiplier: Decimal
    outcome: Outcome = Outcome.PENDING
    trade_number: int = 0
    account_size: Decimal = ZERO
    risk_amount: Decimal = ZERO
    floating_pl: Decimal = ZERO
    account_balance: Decimal = ZERO
    distance_to_target: Decimal = ZERO
    next_suggested_risk: Optional[Decimal] = field(default=None)

    def to_row(self) -> Dict[str, Any]:
        """Flat dict of strings, used for the trades log and CSV export."""
        row = asdict(self)
        for key, value in row.items():
            if isinstance(value, Decimal):
                row[key] = str(value)
        row["outcome"] = self.outcome.value
        return row

    @classmethod
    def from_row(cls, d: Dict[str, Any]) -> "Trade":
        return cls(
            id=str(d.get("id") or new_trade_id()),
            risk_percentage=to_decimal(d.get("risk_percentage")),
            win_multiplier=to_decimal(d.get("win_multiplier")),
            outcome=Outcome.parse(d.get("outcome")),
            trade_number=int(d.get("trade_number") or 0),
            account_size=_raw_decimal(d.get("account_size")),
            risk_amount=_raw_decimal(d.get("risk_amount")),
            floating_pl=_raw_decimal(d.get("floating_pl")),
            account_balance=_raw_decimal(d.get("account_balance")),
            distance_to_target=_raw_decimal(d.get("distance_to_target")),
            next_suggested_risk=_optional_decimal(d.get("next_suggested_risk")),
        )
