"""Quantity entry modal screen."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from gelato_pos.builder import coerce_quantity
from gelato_pos.models import OrderItem

_MAX_DIGITS = 3


class QuantityModal(ModalScreen[int | None]):
    """Prompt for a new quantity of one order line. Zero removes the line."""

    CSS = """
    QuantityModal {
        align: center middle;
        background: $background 60%;
    }

    #quantity-dialog {
        width: 56;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #quantity-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #quantity-value {
        border: heavy $secondary;
        padding: 0 1;
        color: white;
        margin-bottom: 1;
    }

    #quantity-help {
        color: #dddddd;
    }
    """

    def __init__(self, item: OrderItem) -> None:
        super().__init__()
        self.item = item
        self.value = str(item.quantity)

    def compose(self) -> ComposeResult:
        with Container(id="quantity-dialog"):
            yield Static(f"Quantity: {self.item.product_name}", id="quantity-title")
            yield Static(id="quantity-value")
            yield Static("Digits only. Enter confirm (0 removes). Backspace delete. Esc cancel.", id="quantity-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return

        if event.key == "enter":
            self.dismiss(coerce_quantity(self.value))
            event.stop()
            return

        if event.key == "backspace":
            self.value = self.value[:-1]
            self._refresh_content()
            event.stop()
            return

        if event.is_printable and event.character and event.character.isdigit():
            if len(self.value) < _MAX_DIGITS:
                self.value += event.character
            self._refresh_content()
            event.stop()

    def _refresh_content(self) -> None:
        self.query_one("#quantity-value", Static).update(self.value or "")
