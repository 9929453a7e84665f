"""Rendering helpers for order lines, badges and the scan buffer."""

from __future__ import annotations

from rich.text import Text

from order_scanner.accumulator import draft_total
from order_scanner.data import badge_for_category
from order_scanner.models import OrderDraft, OrderLine, Product


def badge_style(category_name: str | None) -> str:
    """Return a consistent badge style for service-type tags."""
    if category_name == "Printing":
        return "bold #ffffff on #b23a48"
    if category_name == "ID Creation":
        return "bold #ffffff on #2f6db5"
    return "bold #0b1f0f on #5fbf72"


def format_badge(category_name: str | None) -> Text:
    text = Text()
    badge = badge_for_category(category_name)
    if badge is not None:
        text.append(badge, style=badge_style(category_name))
    return text


def format_product_label(product: Product) -> Text:
    """Render a catalog product with its category badge and price."""
    text = format_badge(product.category_name)
    if text.plain:
        text.append(" ")
    text.append(product.name)
    text.append(f"  {product.price:.2f}", style="dim")
    if not product.is_active:
        text.append("  (inactive)", style="italic #ffb3b3")
    return text


def format_order_line(line: OrderLine) -> Text:
    text = Text()
    text.append(f"{line.quantity} x ", style="bold")
    text.append(line.product_name)
    text.append(f"  @ {line.unit_price:.2f} = {line.subtotal:.2f}", style="dim")
    return text


def format_draft_lines(draft: OrderDraft, selected: int | None) -> Text:
    if not draft.lines:
        return Text("(scan or add a product)", style="dim")

    lines = Text()
    for idx, line in enumerate(draft.lines):
        if idx > 0:
            lines.append("\n")
        pointer = "➤ " if idx == selected else "  "
        lines.append(pointer)
        lines.append(f"{idx + 1}. ")
        lines.append_text(format_order_line(line))
    return lines


def format_draft_summary(draft: OrderDraft) -> Text:
    text = Text()
    if draft.service_type:
        text.append_text(format_badge(draft.service_type))
        text.append(f" {draft.service_type}  ")
    items = sum(line.quantity for line in draft.lines)
    text.append(f"Items: {items}  ")
    text.append(f"Total: {draft_total(draft):.2f}", style="bold")
    return text


def format_scan_buffer(buffer: str) -> Text:
    """Render the live scan buffer for the status line."""
    if not buffer:
        return Text("Scanner ready", style="dim")
    text = Text("Scanning: ")
    text.append(buffer, style="bold #5fbf72")
    return text
