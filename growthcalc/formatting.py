"""Display helpers shared by the templates and the CSV export."""

from decimal import Decimal, InvalidOperation
from typing import Any


def _as_decimal(amount: Any):
    if amount is None:
        return None
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        return None
    return value if value.is_finite() else None


def format_currency(amount: Any) -> str:
    """US dollar format, e.g. ``-$1,234.56``. Invalid amounts show as ``$0.00``."""
    value = _as_decimal(amount)
    if value is None:
        return "$0.00"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_percentage_precise(amount: Any) -> str:
    """Three decimal percentage, or ``-`` when not applicable (missing or <= 0)."""
    value = _as_decimal(amount)
    if value is None or value <= 0:
        return "-"
    return f"{value:.3f}%"
