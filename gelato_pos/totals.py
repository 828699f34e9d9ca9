"""Totals calculation and tax policies."""

from __future__ import annotations

from decimal import Decimal
from typing import Callable, Sequence

from gelato_pos.models import OrderItem, Totals
from gelato_pos.money import ZERO, to_decimal

TaxPolicy = Callable[[Decimal, Sequence[OrderItem]], Decimal]


def no_tax(subtotal: Decimal, items: Sequence[OrderItem]) -> Decimal:
    """Tax-free policy; the shop's current default."""
    return ZERO


def flat_rate_tax(rate: Decimal | str | float) -> TaxPolicy:
    """Build a policy charging ``rate`` (e.g. ``0.0825``) on the whole subtotal."""
    rate = to_decimal(rate)
    if rate < 0:
        raise ValueError("tax rate must not be negative")

    def policy(subtotal: Decimal, items: Sequence[OrderItem]) -> Decimal:
        return subtotal * rate

    return policy


def tax_policy_for_rate(rate: Decimal) -> TaxPolicy:
    """Pick the policy matching a configured rate."""
    if rate == 0:
        return no_tax
    return flat_rate_tax(rate)


def calculate_totals(items: Sequence[OrderItem], tax_policy: TaxPolicy = no_tax) -> Totals:
    """Sum item subtotals, apply ``tax_policy`` and return exact totals."""
    subtotal = sum((item.subtotal for item in items), ZERO)
    tax = tax_policy(subtotal, items)
    return Totals(subtotal=subtotal, tax=tax, total=subtotal + tax)
