"""Decimal helpers for money amounts stored as ``Numeric(15, 2)``."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from budget_ledger.utils.constants import CENT, ZERO


def to_money(value: Any) -> Decimal:
    """Coerce *value* to a ``Decimal`` rounded half-up to cents.

    ``None`` becomes zero.  Floats go through ``str`` first so that
    ``0.1`` stays ``0.10`` instead of its binary expansion.

    Raises:
        ValueError: If *value* is not numeric.
    """
    if value is None:
        return ZERO
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"{value!r} is not a valid amount") from exc
    if not amount.is_finite():
        raise ValueError(f"{value!r} is not a valid amount")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def within_tolerance(a: Decimal, b: Decimal, tolerance: Decimal) -> bool:
    return abs(to_money(a) - to_money(b)) <= tolerance
