"""Editable receipt wording and the demo catalog seeded into an empty database."""

from __future__ import annotations

RECEIPT_LABELS: dict[str, str] = {
    "subtotal": "Subtotal",
    "tax": "Tax",
    "total": "Total",
}

RECEIPT_FOOTER = "Thank you!"

DEMO_SHOP: dict[str, str | None] = {
    "shop_name": "Boutique del Gelato",
    "address": "12 Via Roma",
    "phone": "555-0142",
    "printer_ip": None,
    "printer_name": None,
}

# (id, name, category, price, description)
DEMO_CATALOG: list[tuple[str, str, str, str, str | None]] = [
    ("cone", "Cone", "Classics", "2.00", "Single scoop in a waffle cone"),
    ("gelato_cup", "Gelato Cup", "Classics", "3.50", "Two scoops, any flavours"),
    ("affogato", "Affogato", "Classics", "4.75", "Vanilla gelato drowned in espresso"),
    ("sundae", "Sundae", "Specials", "6.25", None),
    ("gelato_sandwich", "Gelato Sandwich", "Specials", "5.00", "Brioche bun, one scoop"),
    ("espresso", "Espresso", "Drinks", "1.80", None),
    ("cappuccino", "Cappuccino", "Drinks", "2.90", None),
    ("sparkling_water", "Sparkling Water", "Drinks", "1.50", None),
]
