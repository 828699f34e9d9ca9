"""Tests for receipt rasterisation and printer selection."""

from datetime import datetime
from decimal import Decimal

import pytest

from gelato_pos.config import PRINTER_WIDTH_PX
from gelato_pos.errors import PrintDispatchError
from gelato_pos.models import OrderItem, ShopSettings
from gelato_pos.printer import EscposPrintDispatcher, NullPrintDispatcher, ReceiptFonts, render_receipt_images
from gelato_pos.receipt import render_receipt
from gelato_pos.totals import calculate_totals


@pytest.fixture
def document():
    items = (
        OrderItem("gelato_cup", "Gelato Cup", Decimal("3.50"), 2),
        OrderItem("long", "Extra Large Pistachio Stracciatella Waffle Basket", Decimal("12.00"), 1),
    )
    return render_receipt(ShopSettings(shop_name="Boutique"), items, calculate_totals(items), datetime(2026, 1, 2, 3, 4, 5))


def test_one_image_per_line_at_printer_width(document):
    images = render_receipt_images(document, ReceiptFonts.builtin())

    assert len(images) == len(document.lines)
    assert all(img.width == PRINTER_WIDTH_PX for img in images)
    assert all(img.mode == "1" for img in images)


def test_lines_contain_ink(document):
    images = render_receipt_images(document, ReceiptFonts.builtin())
    # 1-bit images: a black pixel shows up as 0 in the extrema.
    assert all(img.getextrema()[0] == 0 for img in images)


def test_dispatch_errors_are_print_dispatch_errors(document, monkeypatch):
    monkeypatch.setenv("RECEIPT_PRINTER_FONT_PATH", "/nonexistent/font.ttf")
    monkeypatch.setattr("gelato_pos.printer.PRINTER_FONT_PATH", "/nonexistent/other.ttf")
    monkeypatch.setattr("gelato_pos.printer._LINUX_FONT_FALLBACKS", ())

    with pytest.raises(PrintDispatchError):
        EscposPrintDispatcher().dispatch(document)


def test_network_printer_selected_from_settings(document, monkeypatch):
    opened = []

    class FakeNetwork:
        def __init__(self, host, port=9100):
            opened.append((host, port))
            self.images = []
            self.closed = False

        def image(self, img):
            self.images.append(img)

        def cut(self):
            pass

        def close(self):
            self.closed = True

    monkeypatch.setattr("escpos.printer.Network", FakeNetwork)
    monkeypatch.setattr("gelato_pos.printer.resolve_printer_font_path", lambda: "unused.ttf")
    monkeypatch.setattr(ReceiptFonts, "load", classmethod(lambda cls, path: cls.builtin()))

    dispatcher = EscposPrintDispatcher(lambda: ShopSettings(shop_name="Boutique", printer_ip="192.168.1.50"))
    dispatcher.dispatch(document)

    assert opened == [("192.168.1.50", 9100)]


def test_null_dispatcher_accepts_documents(document):
    NullPrintDispatcher().dispatch(document)
