# Overview: Fixed-point currency helpers shared by order totals and reporting.

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """
    Normalize a numeric value to a Decimal with two places (half-up).

    Floats go through str() first so 99.99 stays 99.99 rather than the
    nearest binary fraction.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise ValueError("Boolean is not a monetary amount")
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Invalid monetary amount: {value!r}") from exc


def line_total(quantity: int, unit_price: Any) -> Decimal:
    """quantity x unit_price, rounded to cents."""
    return to_money(Decimal(quantity) * to_money(unit_price))


def money_to_float(value: Optional[Decimal]) -> Optional[float]:
    """JSON rendering for Numeric columns."""
    if value is None:
        return None
    return float(to_money(value))
