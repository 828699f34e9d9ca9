"""Runtime configuration defaults for persistence, settlement and printing."""

from __future__ import annotations

import os
from decimal import Decimal

DB_PATH = os.environ.get("POS_DB_PATH", "data/gelato_pos.db")
DEBUG_LOG_PATH = os.environ.get("POS_DEBUG_LOG_PATH", "/tmp/gelato-pos-debug.log")

# Identity of the staff member running this terminal.
STAFF_ID = os.environ.get("POS_STAFF_ID", "counter")
STAFF_ROLE = os.environ.get("POS_STAFF_ROLE", "staff")

# Proportional tax rate, e.g. "0.0825". Zero disables the tax line.
TAX_RATE = Decimal(os.environ.get("POS_TAX_RATE", "0"))

# Upper bound (seconds) on each of the two settlement writes.
SETTLEMENT_TIMEOUT_SECONDS = float(os.environ.get("POS_SETTLEMENT_TIMEOUT", "10"))

DEFAULT_SHOP_NAME = "Boutique del Gelato"
CURRENCY_SYMBOL = "$"
RECEIPT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
RECEIPT_TEXT_WIDTH = 32

PRINTER_USB_VENDOR_ID = 0x28E9
PRINTER_USB_PRODUCT_ID = 0x0289
PRINTER_NETWORK_PORT = 9100
PRINTER_WIDTH_PX = 384
PRINTER_FONT_SIZE = 22
PRINTER_TOTAL_FONT_SIZE = 30
PRINTER_HEADER_FONT_SIZE = 28
PRINTER_FONT_PATH = "/System/Library/Fonts/SFNS.ttf"
PRINTER_LEFT_INDENT_PX = 8
PRINTER_TAIL_SPACER_PX = 40

# "escpos" prints to a thermal printer; "none" only logs receipts.
PRINTER_BACKEND = os.environ.get("POS_PRINTER", "escpos")
