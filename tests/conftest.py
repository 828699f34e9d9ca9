"""Shared fixtures for the order engine tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from gelato_pos.models import Product, ShopSettings, StaffIdentity
from gelato_pos.persistence import bootstrap_schema
from gelato_pos.session import OrderSession
from gelato_pos.settlement import SettlementPersister

FIXED_NOW = datetime(2026, 10, 19, 14, 30, 5, tzinfo=timezone.utc)


class FakeStore:
    """In-memory persistence provider recording every call."""

    def __init__(self, order_ids=("o1", "o2", "o3")) -> None:
        self.order_ids = list(order_ids)
        self.calls: list[tuple] = []
        self.orders: dict[str, dict] = {}
        self.items: dict[str, list[dict]] = {}
        self.fail_create_order: Exception | None = None
        self.fail_create_items: Exception | None = None
        self.fail_delete: Exception | None = None
        self.item_delay = 0.0

    async def create_order(self, fields):
        self.calls.append(("create_order", dict(fields)))
        if self.fail_create_order is not None:
            raise self.fail_create_order
        order_id = self.order_ids.pop(0)
        self.orders[order_id] = dict(fields)
        return order_id

    async def create_order_items(self, order_id, rows):
        self.calls.append(("create_order_items", order_id, [dict(row) for row in rows]))
        if self.item_delay:
            await asyncio.sleep(self.item_delay)
        if self.fail_create_items is not None:
            raise self.fail_create_items
        self.items[order_id] = [dict(row) for row in rows]

    async def delete_order(self, order_id):
        self.calls.append(("delete_order", order_id))
        if self.fail_delete is not None:
            raise self.fail_delete
        self.orders.pop(order_id, None)
        self.items.pop(order_id, None)


class RecordingPrinter:
    def __init__(self, error: Exception | None = None) -> None:
        self.documents = []
        self.error = error

    def dispatch(self, document) -> None:
        if self.error is not None:
            raise self.error
        self.documents.append(document)


@pytest.fixture
def gelato_cup() -> Product:
    return Product(id="gelato_cup", name="Gelato Cup", category="Classics", price=Decimal("3.50"))


@pytest.fixture
def cone() -> Product:
    return Product(id="cone", name="Cone", category="Classics", price=Decimal("2.00"))


@pytest.fixture
def shop_settings() -> ShopSettings:
    return ShopSettings(shop_name="Boutique del Gelato", address="12 Via Roma", phone="555-0142")


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def printer() -> RecordingPrinter:
    return RecordingPrinter()


@pytest.fixture
def session(store, printer, shop_settings) -> OrderSession:
    return OrderSession(
        persister=SettlementPersister(store, timeout=1.0),
        printer=printer,
        staff=StaffIdentity(staff_id="staff-7"),
        settings_provider=lambda: shop_settings,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "pos.db"
    bootstrap_schema(path)
    return path
