"""Domain models for the order engine."""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal


@dataclass(frozen=True)
class Product:
    """A catalog entry as supplied by the catalog provider."""

    id: str
    name: str
    category: str
    price: Decimal
    description: str | None = None
    active: bool = True


@dataclass(frozen=True)
class OrderItem:
    """One line of an open order.

    Name and unit price are copied from the product when it is first added,
    so later catalog edits never reach an order that is already open.
    """

    product_id: str
    product_name: str
    unit_price: Decimal
    quantity: int = 1

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

    @classmethod
    def from_product(cls, product: Product) -> OrderItem:
        return cls(product_id=product.id, product_name=product.name, unit_price=product.price)

    def with_quantity(self, quantity: int) -> OrderItem:
        return replace(self, quantity=quantity)


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    tax: Decimal
    total: Decimal


@dataclass(frozen=True)
class ShopSettings:
    """Shop identity printed on receipts, plus printer selection."""

    shop_name: str
    address: str | None = None
    phone: str | None = None
    printer_ip: str | None = None
    printer_name: str | None = None


@dataclass(frozen=True)
class StaffIdentity:
    staff_id: str
    role: str = "staff"
