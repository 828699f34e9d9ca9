"""In-memory builder for the sale currently being rung up."""

from __future__ import annotations

import math
import numbers
import re
from decimal import Decimal

from gelato_pos.models import OrderItem, Product

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def coerce_quantity(value: object) -> int:
    """
    Turn UI input into an integer quantity.

    Integers pass through, other real numbers (floats, Decimals, Fractions)
    are truncated toward zero, strings are read up to the first non-digit
    ("3 cups" -> 3). Anything else, including booleans, None, NaN,
    infinities and digit strings too long to convert, counts as 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, Decimal):
        if not value.is_finite():
            return 0
        return int(value)
    if isinstance(value, numbers.Real):
        try:
            return int(value) if math.isfinite(value) else 0
        except (OverflowError, ValueError):
            return 0
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match is None:
            return 0
        try:
            return int(match.group(1))
        except ValueError:
            # past the interpreter's integer string conversion limit
            return 0
    return 0


class OrderBuilder:
    """Owns the item list of one open sale, keyed by product id in first-added order."""

    def __init__(self) -> None:
        self._items: dict[str, OrderItem] = {}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._items

    @property
    def is_empty(self) -> bool:
        return not self._items

    def get(self, product_id: str) -> OrderItem | None:
        return self._items.get(product_id)

    def items(self) -> tuple[OrderItem, ...]:
        """Return an immutable snapshot of the current lines."""
        return tuple(self._items.values())

    def add_item(self, product: Product) -> None:
        existing = self._items.get(product.id)
        if existing is None:
            self._items[product.id] = OrderItem.from_product(product)
            return
        self._items[product.id] = existing.with_quantity(existing.quantity + 1)

    def set_quantity(self, product_id: str, quantity: object) -> None:
        qty = coerce_quantity(quantity)
        if qty <= 0:
            self.remove_item(product_id)
            return
        existing = self._items.get(product_id)
        if existing is None:
            return
        self._items[product_id] = existing.with_quantity(qty)

    def increment(self, product_id: str) -> None:
        existing = self._items.get(product_id)
        if existing is not None:
            self.set_quantity(product_id, existing.quantity + 1)

    def decrement(self, product_id: str) -> None:
        existing = self._items.get(product_id)
        if existing is not None:
            self.set_quantity(product_id, existing.quantity - 1)

    def remove_item(self, product_id: str) -> None:
        self._items.pop(product_id, None)

    def clear(self) -> None:
        self._items.clear()
