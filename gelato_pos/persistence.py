"""SQLite storage: catalog and shop settings (read side) and settled orders."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any
from uuid import uuid4

from gelato_pos import config
from gelato_pos.constant import DEMO_CATALOG, DEMO_SHOP
from gelato_pos.models import Product, ShopSettings
from gelato_pos.money import ZERO

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredOrderItem:
    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


@dataclass(frozen=True)
class StoredOrder:
    """A settled order as read back from storage."""

    order_id: str
    staff_id: str | None
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    created_at: str
    items: list[StoredOrderItem]


@dataclass(frozen=True)
class DailySummary:
    day: date
    order_count: int
    revenue: Decimal


@contextmanager
def _connect(db_path: str | Path | None = None) -> Iterator[sqlite3.Connection]:
    db_file = Path(db_path or config.DB_PATH)
    db_file.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_file)
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()


def bootstrap_schema(db_path: str | Path | None = None) -> None:
    """Create persistence schema if it does not already exist."""
    with _connect(db_path) as conn:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS products (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                category TEXT NOT NULL,
                price TEXT NOT NULL,
                description TEXT,
                is_active INTEGER NOT NULL DEFAULT 1
            );

            CREATE TABLE IF NOT EXISTS shop_settings (
                id INTEGER PRIMARY KEY CHECK (id = 1),
                shop_name TEXT NOT NULL,
                address TEXT,
                phone TEXT,
                printer_ip TEXT,
                printer_name TEXT
            );

            CREATE TABLE IF NOT EXISTS orders (
                id TEXT PRIMARY KEY,
                staff_id TEXT,
                subtotal TEXT NOT NULL,
                tax TEXT NOT NULL,
                total TEXT NOT NULL,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS order_items (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                order_id TEXT NOT NULL,
                line_index INTEGER NOT NULL,
                product_id TEXT NOT NULL,
                product_name TEXT NOT NULL,
                quantity INTEGER NOT NULL,
                unit_price TEXT NOT NULL,
                subtotal TEXT NOT NULL,
                FOREIGN KEY(order_id) REFERENCES orders(id) ON DELETE CASCADE
            );

            CREATE INDEX IF NOT EXISTS idx_order_items_order_id_line
                ON order_items(order_id, line_index);

            CREATE INDEX IF NOT EXISTS idx_orders_created_at
                ON orders(created_at);
            """
        )


def add_product(
    product_id: str,
    name: str,
    category: str,
    price: Decimal | str,
    description: str | None = None,
    active: bool = True,
    db_path: str | Path | None = None,
) -> None:
    """Insert or replace a catalog row."""
    with _connect(db_path) as conn:
        with conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO products (id, name, category, price, description, is_active)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (product_id, name, category, str(price), description, int(active)),
            )


def list_active_products(db_path: str | Path | None = None) -> list[Product]:
    """Return active products ordered by category, then name."""
    with _connect(db_path) as conn:
        rows = conn.execute(
            """
            SELECT id, name, category, price, description
            FROM products
            WHERE is_active = 1
            ORDER BY category ASC, name ASC
            """
        ).fetchall()
    return [
        Product(id=row[0], name=row[1], category=row[2], price=Decimal(row[3]), description=row[4])
        for row in rows
    ]


def load_shop_settings(db_path: str | Path | None = None) -> ShopSettings | None:
    with _connect(db_path) as conn:
        row = conn.execute(
            "SELECT shop_name, address, phone, printer_ip, printer_name FROM shop_settings WHERE id = 1"
        ).fetchone()
    if row is None:
        return None
    return ShopSettings(shop_name=row[0], address=row[1], phone=row[2], printer_ip=row[3], printer_name=row[4])


def save_shop_settings(settings: ShopSettings, db_path: str | Path | None = None) -> None:
    with _connect(db_path) as conn:
        with conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO shop_settings (id, shop_name, address, phone, printer_ip, printer_name)
                VALUES (1, ?, ?, ?, ?, ?)
                """,
                (settings.shop_name, settings.address, settings.phone, settings.printer_ip, settings.printer_name),
            )


def seed_demo_catalog(db_path: str | Path | None = None) -> bool:
    """Fill an empty database with the demo shop and catalog. Returns True if seeded."""
    with _connect(db_path) as conn:
        (count,) = conn.execute("SELECT COUNT(*) FROM products").fetchone()
    if count:
        return False
    for product_id, name, category, price, description in DEMO_CATALOG:
        add_product(product_id, name, category, price, description, db_path=db_path)
    if load_shop_settings(db_path) is None:
        save_shop_settings(ShopSettings(**DEMO_SHOP), db_path)
    logger.info("seeded_demo_catalog products=%d", len(DEMO_CATALOG))
    return True


def insert_order(fields: Mapping[str, Any], db_path: str | Path | None = None) -> str:
    """Write one order header row and return its id."""
    order_id = uuid4().hex
    with _connect(db_path) as conn:
        with conn:
            conn.execute(
                """
                INSERT INTO orders (id, staff_id, subtotal, tax, total, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    order_id,
                    fields["staff_id"],
                    str(fields["subtotal"]),
                    str(fields["tax"]),
                    str(fields["total"]),
                    fields["created_at"],
                ),
            )
    return order_id


def replace_order_items(order_id: str, rows: Sequence[Mapping[str, Any]], db_path: str | Path | None = None) -> None:
    """
    Write the item rows of an order in one transaction.

    Rows already stored for the order are replaced, so retrying after an
    uncertain failure cannot duplicate lines.
    """
    with _connect(db_path) as conn:
        with conn:
            (exists,) = conn.execute("SELECT COUNT(*) FROM orders WHERE id = ?", (order_id,)).fetchone()
            if not exists:
                raise LookupError(f"order {order_id} does not exist")
            conn.execute("DELETE FROM order_items WHERE order_id = ?", (order_id,))
            conn.executemany(
                """
                INSERT INTO order_items
                    (order_id, line_index, product_id, product_name, quantity, unit_price, subtotal)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        row["order_id"],
                        idx,
                        row["product_id"],
                        row["product_name"],
                        row["quantity"],
                        str(row["unit_price"]),
                        str(row["subtotal"]),
                    )
                    for idx, row in enumerate(rows)
                ],
            )


def remove_order(order_id: str, db_path: str | Path | None = None) -> None:
    with _connect(db_path) as conn:
        with conn:
            conn.execute("DELETE FROM orders WHERE id = ?", (order_id,))


def load_order(order_id: str, db_path: str | Path | None = None) -> StoredOrder | None:
    with _connect(db_path) as conn:
        header = conn.execute(
            "SELECT id, staff_id, subtotal, tax, total, created_at FROM orders WHERE id = ?", (order_id,)
        ).fetchone()
        if header is None:
            return None
        item_rows = conn.execute(
            """
            SELECT product_id, product_name, quantity, unit_price, subtotal
            FROM order_items
            WHERE order_id = ?
            ORDER BY line_index
            """,
            (order_id,),
        ).fetchall()
    return StoredOrder(
        order_id=header[0],
        staff_id=header[1],
        subtotal=Decimal(header[2]),
        tax=Decimal(header[3]),
        total=Decimal(header[4]),
        created_at=header[5],
        items=[
            StoredOrderItem(
                product_id=row[0],
                product_name=row[1],
                quantity=row[2],
                unit_price=Decimal(row[3]),
                subtotal=Decimal(row[4]),
            )
            for row in item_rows
        ],
    )


def daily_summary(day: date, db_path: str | Path | None = None) -> DailySummary:
    """Count orders and sum their totals for one calendar day of `created_at`."""
    with _connect(db_path) as conn:
        rows = conn.execute(
            "SELECT total FROM orders WHERE substr(created_at, 1, 10) = ?", (day.isoformat(),)
        ).fetchall()
    return DailySummary(day=day, order_count=len(rows), revenue=sum((Decimal(row[0]) for row in rows), ZERO))


class SqliteOrderStore:
    """Persistence provider backed by the SQLite file.

    Each call runs in a worker thread with its own connection so the event
    loop stays responsive while a write is in flight.
    """

    def __init__(self, db_path: str | Path | None = None) -> None:
        self.db_path = db_path

    async def create_order(self, fields: Mapping[str, Any]) -> str:
        return await asyncio.to_thread(insert_order, fields, self.db_path)

    async def create_order_items(self, order_id: str, rows: Sequence[Mapping[str, Any]]) -> None:
        await asyncio.to_thread(replace_order_items, order_id, rows, self.db_path)

    async def delete_order(self, order_id: str) -> None:
        await asyncio.to_thread(remove_order, order_id, self.db_path)
