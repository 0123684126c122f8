"""
Sun <-> TRX conversion. 1 TRX = 1_000_000 Sun.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

SUN_PER_TRX = 1_000_000
_DIVISOR = Decimal(SUN_PER_TRX)


def format_sun(value: Any) -> str:
    """
    Render a Sun amount as a plain decimal TRX string ("1.5", "0", "0.000001").

    Never uses scientific notation. Values that are not numeric render as "0".
    """
    if value is None or isinstance(value, bool):
        return "0"
    try:
        amount = Decimal(str(value)) / _DIVISOR
    except (InvalidOperation, ValueError):
        return "0"
    if not amount.is_finite():
        return "0"
    if amount == 0:
        return "0"
    return format(amount.normalize(), "f")


def to_sun(amount: Any) -> int:
    """Convert a TRX amount to Sun, rounding half away from zero to the nearest integer."""
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid TRX amount: {amount!r}") from e
    if not value.is_finite():
        raise ValueError(f"Invalid TRX amount: {amount!r}")
    return int((value * _DIVISOR).quantize(Decimal(1), rounding=ROUND_HALF_UP))
