"""Main Textual app class."""

from __future__ import annotations

import logging

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.events import Key
from textual.reactive import reactive
from textual.widgets import Header, Static

from gelato_pos.errors import PosError, SettlementError
from gelato_pos.models import OrderItem, Product
from gelato_pos.quantity_modal import QuantityModal
from gelato_pos.rendering import format_order_line, format_product_label, format_state_badge, format_totals
from gelato_pos.session import OrderSession, SessionState

logger = logging.getLogger(__name__)


def describe_error(exc: PosError) -> str:
    """One-line operator message for an engine error."""
    if isinstance(exc, SettlementError) and exc.order_id:
        return f"{exc} [ctrl+r retry items, ctrl+o discard order {exc.order_id[:8]}]"
    return str(exc)


class PosApp(App):
    """A Textual app for ringing up sales and printing receipts."""

    TITLE = "Gelato POS"
    SUB_TITLE = "New Order"

    CSS = """
    Screen {
        layout: vertical;
    }

    #main-layout {
        height: 1fr;
    }

    #orders-pane {
        width: 3fr;
        border: round $primary;
        padding: 1;
    }

    #catalog-pane {
        width: 2fr;
        border: round $secondary;
        padding: 1;
    }

    #search-bar {
        border: heavy $secondary;
        padding: 0 1;
        margin-bottom: 1;
        height: 4;
    }

    #results {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #orders-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #totals {
        height: auto;
        padding: 0 1;
        margin-top: 1;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    input_state = reactive("normal")
    search_query = reactive("")
    selected_index = reactive(0)
    order_selected_index = reactive(None)

    BINDINGS = [
        ("tab", "cycle_results(1)", "Next product"),
        ("up", "cycle_results(-1)", "Previous product"),
        ("down", "cycle_results(1)", "Next product"),
        ("enter", "add_selected", "Add product"),
        ("backspace", "backspace_query", "Delete query char"),
        Binding("ctrl+s", "checkout", "Checkout + Print", priority=True),
        Binding("ctrl+r", "retry_items", "Retry items"),
        Binding("ctrl+o", "discard_orphan", "Discard order"),
        Binding("ctrl+p", "reprint", "Reprint"),
        ("ctrl+c", "cancel_active_mode", "Exit search"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, session: OrderSession, products: list[Product]) -> None:
        super().__init__()
        self.session = session
        self.products = products
        self.system_status = ""

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-layout"):
            with Vertical(id="orders-pane"):
                yield Static("Current Order", classes="pane-title")
                yield Static("No items in order", id="orders-list")
                yield Static(id="totals")
            with Vertical(id="catalog-pane"):
                yield Static(id="search-bar")
                yield Static(id="results")

    def on_mount(self) -> None:
        logger.debug("app_mount products=%d staff_id=%s", len(self.products), self.session.staff.staff_id)
        self._refresh_all()

    def on_key(self, event: Key) -> None:
        if isinstance(self.screen, QuantityModal):
            return

        if self.input_state == "normal" and event.character in {"+", "-"}:
            self._step_selected_quantity(1 if event.character == "+" else -1)
            event.stop()
            return

        if not event.is_printable or not event.character or len(event.character) != 1:
            return
        if not (event.character.isalnum() or event.character == " "):
            return

        if self.input_state == "normal":
            key = event.character.lower()
            handlers = {
                "a": self._enter_search,
                "d": self._delete_selected_order,
                "x": self._clear_order,
                "q": self._open_quantity_for_selected_order,
                "j": lambda: self._move_order_selection(1),
                "k": lambda: self._move_order_selection(-1),
            }
            handler = handlers.get(key)
            if handler is not None:
                handler()
                event.stop()
            return

        self.search_query += event.character
        self.selected_index = 0
        self._refresh_search()
        event.stop()

    # -- catalog search ------------------------------------------------------

    def _enter_search(self) -> None:
        self.input_state = "active"
        self.search_query = ""
        self.selected_index = 0
        self._refresh_search()

    def action_cancel_active_mode(self) -> None:
        if isinstance(self.screen, QuantityModal):
            return
        if self.input_state == "normal":
            return

        self.input_state = "normal"
        self.search_query = ""
        self.selected_index = 0
        self._refresh_search()

    def action_cycle_results(self, delta: int) -> None:
        if isinstance(self.screen, QuantityModal) or self.input_state != "active":
            return

        results = self._filtered_results()
        if not results:
            self.selected_index = 0
            self._refresh_results(results)
            return
        self.selected_index = (self.selected_index + delta) % len(results)
        self._refresh_results(results)

    def action_add_selected(self) -> None:
        if isinstance(self.screen, QuantityModal) or self.input_state != "active":
            return

        results = self._filtered_results()
        if not results:
            return

        product = results[self.selected_index]
        self.session.add_item(product)
        ids = [item.product_id for item in self.session.builder.items()]
        self.order_selected_index = ids.index(product.id) if product.id in ids else None
        self._refresh_orders()

    def action_backspace_query(self) -> None:
        if isinstance(self.screen, QuantityModal) or self.input_state != "active":
            return
        if not self.search_query:
            return
        self.search_query = self.search_query[:-1]
        self.selected_index = 0
        self._refresh_search()

    def _filtered_results(self) -> list[Product]:
        if not self.search_query:
            return self.products
        q = self.search_query.lower()
        return [p for p in self.products if q in p.name.lower() or q in p.category.lower()]

    # -- order editing ---------------------------------------------------------

    def _order_items(self) -> tuple[OrderItem, ...]:
        return self.session.builder.items()

    def _selected_order(self) -> OrderItem | None:
        items = self._order_items()
        if self.order_selected_index is None or not (0 <= self.order_selected_index < len(items)):
            return None
        return items[self.order_selected_index]

    def _move_order_selection(self, delta: int) -> None:
        items = self._order_items()
        if not items:
            return
        if self.order_selected_index is None:
            self.order_selected_index = 0 if delta > 0 else len(items) - 1
        else:
            self.order_selected_index = (self.order_selected_index + delta) % len(items)
        self._refresh_orders()

    def _step_selected_quantity(self, delta: int) -> None:
        item = self._selected_order()
        if item is None:
            return
        if delta > 0:
            self.session.increment(item.product_id)
        else:
            self.session.decrement(item.product_id)
        self._refresh_orders()

    def _delete_selected_order(self) -> None:
        item = self._selected_order()
        if item is None:
            return
        self.session.remove_item(item.product_id)
        self._refresh_orders()

    def _clear_order(self) -> None:
        self.session.clear()
        self.order_selected_index = None
        self.system_status = "Order cleared"
        self._refresh_all()

    def _open_quantity_for_selected_order(self) -> None:
        item = self._selected_order()
        if item is None:
            return

        def apply(quantity: int | None) -> None:
            if quantity is None:
                return
            self.session.set_quantity(item.product_id, quantity)
            self._refresh_orders()

        self.push_screen(QuantityModal(item), apply)

    # -- settlement ------------------------------------------------------------

    def action_checkout(self) -> None:
        if isinstance(self.screen, QuantityModal):
            return
        logger.debug("checkout_requested state=%s rows=%d", self.session.state.value, len(self.session.builder))
        self.run_worker(self._run_settlement(self.session.checkout), group="settlement")

    def action_retry_items(self) -> None:
        if self.session.state is not SessionState.PARTIAL_FAILURE:
            return
        self.run_worker(self._run_settlement(self.session.retry_order_items), group="settlement")

    def action_discard_orphan(self) -> None:
        if self.session.state is not SessionState.PARTIAL_FAILURE:
            return
        self.run_worker(self._discard_orphan(), group="settlement")

    def action_reprint(self) -> None:
        if self.session.last_settlement is None:
            self.system_status = "Nothing to reprint"
            self._refresh_search()
            return
        self.run_worker(self._reprint(), group="settlement")

    async def _run_settlement(self, step) -> None:
        self.system_status = "Saving order..."
        self._refresh_all()
        try:
            settled = await step()
        except PosError as exc:
            self.system_status = describe_error(exc)
        else:
            short_id = settled.order_id[:8]
            if settled.print_error is not None:
                self.system_status = f"Saved {short_id} but print failed: {settled.print_error}"
            else:
                self.system_status = f"Order completed: {short_id}"
            self.order_selected_index = None
        self._refresh_all()

    async def _discard_orphan(self) -> None:
        order_id = self.session.pending_order_id or ""
        try:
            await self.session.discard_orphan()
        except PosError as exc:
            self.system_status = describe_error(exc)
        else:
            self.system_status = f"Discarded order {order_id[:8]}; items kept"
        self._refresh_all()

    async def _reprint(self) -> None:
        error = await self.session.reprint_last()
        self.system_status = f"Reprint failed: {error}" if error else "Receipt reprinted"
        self._refresh_search()

    # -- drawing ---------------------------------------------------------------

    def _refresh_all(self) -> None:
        self._refresh_orders()
        self._refresh_search()

    def _visible_rows(self, widget: Static) -> int:
        height = widget.size.height
        if height <= 0:
            return 8
        return max(1, height)

    def _window_bounds(self, total: int, rows: int, selected: int | None) -> tuple[int, int]:
        if total <= 0:
            return (0, 0)

        rows = max(1, rows)
        if total <= rows:
            return (0, total)

        start = 0
        if selected is not None:
            start = max(0, selected - rows // 2)
            start = min(start, total - rows)
        return (start, start + rows)

    def _refresh_orders(self) -> None:
        try:
            orders_widget = self.query_one("#orders-list", Static)
            totals_widget = self.query_one("#totals", Static)
        except NoMatches:
            return
        totals_widget.update(format_totals(self.session.totals))

        items = self._order_items()
        if not items:
            self.order_selected_index = None
            orders_widget.update("No items in order")
            return

        if self.order_selected_index is None:
            self.order_selected_index = len(items) - 1
        elif self.order_selected_index >= len(items):
            self.order_selected_index = len(items) - 1

        start, end = self._window_bounds(len(items), self._visible_rows(orders_widget), self.order_selected_index)

        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")
        for idx in range(start, end):
            if idx > start:
                lines.append("\n")
            lines.append("➤ " if idx == self.order_selected_index else "  ")
            lines.append_text(format_order_line(items[idx]))
        if end < len(items):
            lines.append("\n⋮", style="dim")

        orders_widget.update(lines)

    def _refresh_search(self) -> None:
        self._refresh_search_bar()
        if self.input_state == "normal":
            self._refresh_results([])
            return
        self._refresh_results(self._filtered_results())

    def _refresh_search_bar(self) -> None:
        try:
            bar = self.query_one("#search-bar", Static)
        except NoMatches:
            return
        text = format_state_badge(self.session.state)
        if self.input_state == "normal":
            text.append(" A search. J/K select, +/- qty, Q set qty, D remove, X clear. Ctrl+S checkout.\n")
            text.append(self.system_status or "Ready")
        else:
            text.append(f" Search: {self.search_query}")
        bar.update(text)

    def _refresh_results(self, results: list[Product]) -> None:
        try:
            results_widget = self.query_one("#results", Static)
        except NoMatches:
            return
        if self.input_state == "normal":
            results_widget.update("")
            return

        if not results:
            results_widget.update("No products available")
            return

        if self.selected_index >= len(results):
            self.selected_index = 0

        start, end = self._window_bounds(len(results), self._visible_rows(results_widget), self.selected_index)

        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")
        for idx in range(start, end):
            if idx > start:
                lines.append("\n")
            lines.append("➤ " if idx == self.selected_index else "  ")
            lines.append_text(format_product_label(results[idx]))
        if end < len(results):
            lines.append("\n⋮", style="dim")

        results_widget.update(lines)
