"""Receipt rendering.

``render_receipt`` is a pure function of its inputs: it never touches the
builder or storage and can be called again at any time to reprint.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from gelato_pos.config import DEFAULT_SHOP_NAME, RECEIPT_TEXT_WIDTH, RECEIPT_TIMESTAMP_FORMAT
from gelato_pos.constant import RECEIPT_FOOTER, RECEIPT_LABELS
from gelato_pos.models import OrderItem, ShopSettings, Totals
from gelato_pos.money import ZERO, format_money, quantize

HEADER = "header"
DIVIDER = "divider"
ITEM = "item"
SUBTOTAL = "subtotal"
TAX = "tax"
TOTAL = "total"
FOOTER = "footer"

_COLUMN_GAP = 2


@dataclass(frozen=True)
class ReceiptLine:
    kind: str
    left: str = ""
    right: str = ""
    emphasized: bool = False

    @property
    def centered(self) -> bool:
        return self.kind in {HEADER, FOOTER}

    def __str__(self) -> str:
        if self.right:
            return f"{self.left}{' ' * _COLUMN_GAP}{self.right}"
        return self.left


@dataclass(frozen=True)
class ReceiptDocument:
    lines: tuple[ReceiptLine, ...]

    def lines_of(self, kind: str) -> list[ReceiptLine]:
        return [line for line in self.lines if line.kind == kind]

    def to_text(self, width: int = RECEIPT_TEXT_WIDTH) -> str:
        """Lay the receipt out as fixed-width text."""
        out: list[str] = []
        for line in self.lines:
            if line.kind == DIVIDER:
                out.append("-" * width)
            elif line.centered:
                out.append(line.left.center(width).rstrip())
            elif line.right:
                gap = max(_COLUMN_GAP, width - len(line.left) - len(line.right))
                out.append(f"{line.left}{' ' * gap}{line.right}")
            else:
                out.append(line.left)
        return "\n".join(out)


def _header_lines(settings: ShopSettings | None, timestamp: datetime) -> list[ReceiptLine]:
    shop_name = (settings.shop_name or "").strip() if settings else ""
    lines = [ReceiptLine(HEADER, shop_name or DEFAULT_SHOP_NAME, emphasized=True)]
    if settings and settings.address:
        lines.append(ReceiptLine(HEADER, settings.address))
    if settings and settings.phone:
        lines.append(ReceiptLine(HEADER, settings.phone))
    lines.append(ReceiptLine(HEADER, timestamp.strftime(RECEIPT_TIMESTAMP_FORMAT)))
    return lines


def render_receipt(
    settings: ShopSettings | None,
    items: Sequence[OrderItem],
    totals: Totals,
    timestamp: datetime,
) -> ReceiptDocument:
    """Build the receipt document for a settled sale."""
    lines = _header_lines(settings, timestamp)
    lines.append(ReceiptLine(DIVIDER))
    lines.extend(
        ReceiptLine(ITEM, f"{item.quantity}x {item.product_name}", format_money(item.subtotal)) for item in items
    )
    lines.append(ReceiptLine(DIVIDER))
    lines.append(ReceiptLine(SUBTOTAL, RECEIPT_LABELS[SUBTOTAL], format_money(totals.subtotal)))
    if quantize(totals.tax) > ZERO:
        lines.append(ReceiptLine(TAX, RECEIPT_LABELS[TAX], format_money(totals.tax)))
    lines.append(ReceiptLine(TOTAL, RECEIPT_LABELS[TOTAL], format_money(totals.total), emphasized=True))
    lines.append(ReceiptLine(FOOTER, RECEIPT_FOOTER))
    return ReceiptDocument(tuple(lines))
