"""Rich text helpers for the terminal UI."""

from __future__ import annotations

from rich.text import Text

from gelato_pos.models import OrderItem, Product, Totals
from gelato_pos.money import ZERO, format_money, quantize
from gelato_pos.session import SessionState


def state_style(state: SessionState) -> str:
    """Return a consistent badge style for session states."""
    if state is SessionState.PARTIAL_FAILURE:
        return "bold #ffffff on #b23a48"
    if state is SessionState.FAILED:
        return "bold #0b0b0b on #e0a030"
    if state in {SessionState.SETTLING, SessionState.SETTLED}:
        return "bold #ffffff on #2f6db5"
    return "bold #0b1f0f on #5fbf72"


def format_state_badge(state: SessionState) -> Text:
    return Text(f" {state.value} ", style=state_style(state))


def format_product_label(product: Product) -> Text:
    text = Text()
    text.append(product.name)
    text.append(f"  {product.category}", style="dim")
    text.append(f"  {format_money(product.price)}", style="bold")
    return text


def format_order_line(item: OrderItem) -> Text:
    """Render ``2x Gelato Cup  $7.00  ($3.50 each)``."""
    text = Text()
    text.append(f"{item.quantity}x ", style="bold")
    text.append(item.product_name)
    text.append(f"  {format_money(item.subtotal)}", style="bold")
    text.append(f"  ({format_money(item.unit_price)} each)", style="dim")
    return text


def format_totals(totals: Totals) -> Text:
    text = Text()
    text.append(f"Subtotal  {format_money(totals.subtotal)}")
    if quantize(totals.tax) > ZERO:
        text.append(f"\nTax       {format_money(totals.tax)}")
    text.append(f"\nTotal     {format_money(totals.total)}", style="bold #5fbf72")
    return text
