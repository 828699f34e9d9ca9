"""Exact money helpers.

Amounts are carried as :class:`~decimal.Decimal` end to end. Rounding to
cents only happens where a value leaves the engine: on a printed receipt or
when it is written to storage.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from gelato_pos.config import CURRENCY_SYMBOL

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert a price-like value to Decimal without binary float artifacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() yields the shortest repr, so 3.5 becomes Decimal("3.5").
        return Decimal(str(value))
    return Decimal(value)


def quantize(amount: Decimal) -> Decimal:
    """Round to two decimal places, half-up."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(amount: Decimal) -> str:
    """Format an amount as ``$1234.50``."""
    return f"{CURRENCY_SYMBOL}{quantize(amount):.2f}"
