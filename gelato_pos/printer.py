"""ESC/POS receipt printing.

Every receipt line is rasterised into a 1-bit Pillow image and sent to the
printer as a picture, which keeps glyphs and column alignment identical
across printer models.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from gelato_pos.config import (
    PRINTER_FONT_PATH,
    PRINTER_FONT_SIZE,
    PRINTER_HEADER_FONT_SIZE,
    PRINTER_LEFT_INDENT_PX,
    PRINTER_NETWORK_PORT,
    PRINTER_TAIL_SPACER_PX,
    PRINTER_TOTAL_FONT_SIZE,
    PRINTER_USB_PRODUCT_ID,
    PRINTER_USB_VENDOR_ID,
    PRINTER_WIDTH_PX,
)
from gelato_pos.errors import PrintDispatchError
from gelato_pos.models import ShopSettings
from gelato_pos.receipt import DIVIDER, ReceiptDocument, ReceiptLine

logger = logging.getLogger(__name__)

_LINE_PADDING_PX = 8
_DIVIDER_HEIGHT_PX = 12
_DASH_PX = 6
_COLUMN_GUTTER_PX = 12
_FONT_OVERRIDE_ENV = "RECEIPT_PRINTER_FONT_PATH"
_LINUX_FONT_FALLBACKS = (
    "/usr/share/fonts/TTF/DejaVuSansMono.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/noto/NotoSans-Regular.ttf",
    "/usr/share/fonts/liberation/LiberationSans-Regular.ttf",
)


@dataclass(frozen=True)
class ReceiptFonts:
    body: Any
    header: Any
    total: Any

    @classmethod
    def load(cls, font_path: str) -> ReceiptFonts:
        from PIL import ImageFont

        return cls(
            body=ImageFont.truetype(font_path, PRINTER_FONT_SIZE),
            header=ImageFont.truetype(font_path, PRINTER_HEADER_FONT_SIZE),
            total=ImageFont.truetype(font_path, PRINTER_TOTAL_FONT_SIZE),
        )

    @classmethod
    def builtin(cls) -> ReceiptFonts:
        """Pillow's bundled bitmap font, for machines without a usable TTF."""
        from PIL import ImageFont

        font = ImageFont.load_default()
        return cls(body=font, header=font, total=font)


def resolve_printer_font_path() -> str:
    """
    Resolve a printer font path with macOS default behavior preserved.

    Resolution order:
    1. RECEIPT_PRINTER_FONT_PATH (if set)
    2. PRINTER_FONT_PATH
    3. Known Linux fallbacks
    """
    env_override = os.environ.get(_FONT_OVERRIDE_ENV, "").strip()
    candidates: list[str] = []
    if env_override:
        candidates.append(env_override)
    candidates.append(PRINTER_FONT_PATH)
    candidates.extend(_LINUX_FONT_FALLBACKS)

    seen: set[str] = set()
    for candidate in candidates:
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        if Path(candidate).is_file():
            return candidate

    raise RuntimeError(
        f"No usable printer font found. Set {_FONT_OVERRIDE_ENV} to a valid .ttf/.otf file. "
        f"Tried: {', '.join(seen)}"
    )


def check_printer_dependencies() -> tuple[bool, str]:
    """Check whether printer dependencies are importable."""
    try:
        from escpos.printer import Network, Usb  # noqa: F401
        from PIL import ImageFont

        font_path = resolve_printer_font_path()
        ImageFont.truetype(font_path, PRINTER_FONT_SIZE)
    except Exception as exc:
        return (False, f"Printer deps unavailable: {exc}")
    return (True, "Printer ready")


def _text_bbox(text: str, font: Any) -> tuple[int, int, int, int]:
    from PIL import Image, ImageDraw

    probe = ImageDraw.Draw(Image.new("1", (1, 1), color=1))
    return probe.textbbox((0, 0), text, font=font)


def _fit_text_to_px(text: str, font: Any, max_width_px: int) -> str:
    if _text_bbox(text, font)[2] <= max_width_px:
        return text
    ellipsis = "..."
    trimmed = text
    while trimmed:
        candidate = f"{trimmed}{ellipsis}"
        if _text_bbox(candidate, font)[2] <= max_width_px:
            return candidate
        trimmed = trimmed[:-1]
    return ellipsis


def _canvas_for(font: Any) -> tuple[Any, Any, int]:
    from PIL import Image, ImageDraw

    # Size the canvas from a probe with ascenders and descenders so every line has the same height.
    bbox = _text_bbox("Hg$", font)
    height = (bbox[3] - bbox[1]) + _LINE_PADDING_PX
    img = Image.new("1", (PRINTER_WIDTH_PX, height), color=1)
    return img, ImageDraw.Draw(img), height


def _render_centered(text: str, font: Any) -> Any:
    img, draw, height = _canvas_for(font)
    text = _fit_text_to_px(text, font, PRINTER_WIDTH_PX - 2 * PRINTER_LEFT_INDENT_PX)
    bbox = draw.textbbox((0, 0), text, font=font)
    x = (PRINTER_WIDTH_PX - (bbox[2] - bbox[0])) // 2 - bbox[0]
    y = (height - (bbox[3] - bbox[1])) // 2 - bbox[1]
    draw.text((x, y), text, font=font, fill=0)
    return img


def _render_columns(left: str, right: str, font: Any) -> Any:
    img, draw, height = _canvas_for(font)
    right_bbox = draw.textbbox((0, 0), right, font=font)
    right_width = right_bbox[2] - right_bbox[0]
    right_x = PRINTER_WIDTH_PX - PRINTER_LEFT_INDENT_PX - right_width - right_bbox[0]

    # Long product names are cut so they never run into the amount column.
    left_max = right_x - PRINTER_LEFT_INDENT_PX - _COLUMN_GUTTER_PX
    left = _fit_text_to_px(left, font, max(_COLUMN_GUTTER_PX, left_max))
    left_bbox = draw.textbbox((0, 0), left, font=font)

    draw.text((PRINTER_LEFT_INDENT_PX, (height - (left_bbox[3] - left_bbox[1])) // 2 - left_bbox[1]), left, font=font, fill=0)
    draw.text((right_x, (height - (right_bbox[3] - right_bbox[1])) // 2 - right_bbox[1]), right, font=font, fill=0)
    return img


def _render_divider() -> Any:
    from PIL import Image, ImageDraw

    img = Image.new("1", (PRINTER_WIDTH_PX, _DIVIDER_HEIGHT_PX), color=1)
    draw = ImageDraw.Draw(img)
    y = _DIVIDER_HEIGHT_PX // 2
    for x in range(PRINTER_LEFT_INDENT_PX, PRINTER_WIDTH_PX - PRINTER_LEFT_INDENT_PX, _DASH_PX * 2):
        draw.line((x, y, x + _DASH_PX - 1, y), fill=0, width=1)
    return img


def _render_spacer(height_px: int) -> Any:
    from PIL import Image

    return Image.new("1", (PRINTER_WIDTH_PX, max(1, height_px)), color=1)


def _font_for(line: ReceiptLine, fonts: ReceiptFonts) -> Any:
    if not line.emphasized:
        return fonts.body
    return fonts.header if line.centered else fonts.total


def render_receipt_images(document: ReceiptDocument, fonts: ReceiptFonts) -> list[Any]:
    """Rasterise each receipt line, top to bottom."""
    images = []
    for line in document.lines:
        if line.kind == DIVIDER:
            images.append(_render_divider())
        elif line.centered:
            images.append(_render_centered(line.left, _font_for(line, fonts)))
        else:
            images.append(_render_columns(line.left, line.right, _font_for(line, fonts)))
    return images


def _no_settings() -> ShopSettings | None:
    return None


class EscposPrintDispatcher:
    """Prints receipts on an ESC/POS printer.

    A printer IP in the shop settings selects a network printer; otherwise the
    configured USB device is used.
    """

    def __init__(self, settings_provider: Callable[[], ShopSettings | None] = _no_settings) -> None:
        self.settings_provider = settings_provider

    def _open_printer(self) -> Any:
        from escpos.printer import Network, Usb

        settings = self.settings_provider()
        if settings is not None and settings.printer_ip:
            logger.debug("printer_open network host=%s name=%s", settings.printer_ip, settings.printer_name)
            return Network(settings.printer_ip, port=PRINTER_NETWORK_PORT)
        logger.debug("printer_open usb vendor=%#06x product=%#06x", PRINTER_USB_VENDOR_ID, PRINTER_USB_PRODUCT_ID)
        return Usb(PRINTER_USB_VENDOR_ID, PRINTER_USB_PRODUCT_ID)

    def dispatch(self, document: ReceiptDocument) -> None:
        try:
            fonts = ReceiptFonts.load(resolve_printer_font_path())
            images = render_receipt_images(document, fonts)
            printer = self._open_printer()
        except Exception as exc:
            raise PrintDispatchError(f"Printer unavailable: {exc}") from exc

        try:
            for img in images:
                printer.image(img)
            printer.image(_render_spacer(PRINTER_TAIL_SPACER_PX))
            printer.cut()
        except Exception as exc:
            raise PrintDispatchError(f"Receipt print failed: {exc}") from exc
        finally:
            printer.close()
        logger.info("receipt_printed lines=%d", len(document.lines))


class NullPrintDispatcher:
    """Logs receipts instead of printing them."""

    def dispatch(self, document: ReceiptDocument) -> None:
        logger.info("receipt_discarded\n%s", document.to_text())
