"""Main Textual app class."""

from __future__ import annotations

import logging
from typing import Callable

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.events import Key
from textual.reactive import reactive
from textual.widgets import Header, Static

from order_scanner.accumulator import OrderLineAccumulator, draft_total
from order_scanner.clock import Clock, TextualClock
from order_scanner.compose_modal import ComposeOrderModal
from order_scanner.data import load_catalog
from order_scanner.models import FieldKind, KeyEvent, OrderDraft, Product
from order_scanner.notifier import Notifier, ToastNotifier
from order_scanner.rendering import format_badge, format_product_label, format_scan_buffer
from order_scanner.resolver import CatalogSnapshot, ProductResolver
from order_scanner.router import ScannerContextRouter

logger = logging.getLogger(__name__)

SEARCH_FIELD_ID = "search"


class ComposerToggle:
    """Open/closed signal for the order form, as seen by the router."""

    def __init__(self, app: OrderScannerApp) -> None:
        self._app = app

    @property
    def is_open(self) -> bool:
        return self._app.composer is not None

    def open(self) -> None:
        self._app.open_composer()


class OrderScannerApp(App):
    """A Textual order console fed by a keyboard-wedge barcode scanner."""

    TITLE = "Order Scanner"
    SUB_TITLE = "Scan to order"

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

    #search-pane {
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

    #scan-status {
        height: 1;
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
        ("tab", "cycle_results(1)", "Next result"),
        ("up", "cycle_results(-1)", "Previous result"),
        ("down", "cycle_results(1)", "Next result"),
        ("enter", "order_selected", "Order item"),
        ("backspace", "backspace_query", "Delete query char"),
        ("escape", "cancel_search", "Exit search"),
        ("ctrl+c", "cancel_search", "Exit search"),
        Binding("ctrl+q", "quit", "Quit", priority=True),
    ]

    def __init__(
        self,
        catalog: CatalogSnapshot | None = None,
        clock: Clock | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        super().__init__()
        self.catalog = catalog if catalog is not None else load_catalog()
        self.notifier = notifier if notifier is not None else ToastNotifier(self)
        self.submitted_orders: list[OrderDraft] = []
        self.system_status = ""
        self.scan_buffer = ""
        self._scan_mirror_pending = False
        self._composer: ComposeOrderModal | None = None
        self.router = ScannerContextRouter(
            clock if clock is not None else TextualClock(self),
            ProductResolver(self.catalog),
            OrderLineAccumulator(self.notifier),
            self.notifier,
            surface=ComposerToggle(self),
            on_draft_change=self._on_draft_change,
            on_buffer=self._on_scan_buffer,
        )

    @property
    def composer(self) -> ComposeOrderModal | None:
        return self._composer

    def open_composer(self, product_id: int | None = None) -> None:
        if self._composer is not None:
            return
        self.router.surface_opened()
        self._composer = ComposeOrderModal(self.router, self.catalog.active_products(), product_id=product_id)
        logger.debug(f"composer_open product_id={product_id}")
        self.push_screen(self._composer, callback=self._on_composer_closed)

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-layout"):
            with Vertical(id="orders-pane"):
                yield Static("Submitted Orders", classes="pane-title")
                yield Static("(no orders yet)", id="orders-list")
            with Vertical(id="search-pane"):
                yield Static(id="search-bar")
                yield Static(id="results")
                yield Static(id="scan-status")

    def on_mount(self) -> None:
        self.router.start()
        logger.debug(f"on_mount products={len(self.catalog)}")
        self._refresh_all()

    def on_unmount(self) -> None:
        self.router.stop()

    def on_key(self, event: Key) -> None:
        # While the order form is open it owns keyboard handling.
        if self._composer is not None:
            return

        searching = self.input_state == "search"
        result = self.router.feed(
            KeyEvent(
                key=event.key,
                timestamp=event.time,
                target_id=SEARCH_FIELD_ID if searching else None,
                target_kind=FieldKind.TEXT if searching else None,
            )
        )
        if result.suppress_default:
            event.prevent_default()
            event.stop()
            return

        if not searching and event.character == "/":
            self.input_state = "search"
            self.search_query = ""
            self.selected_index = 0
            self._refresh_search()
            event.stop()
            return

        if not event.is_printable or event.character is None or len(event.character) != 1:
            return

        if not searching:
            key = event.character.lower()
            if key == "n":
                self.open_composer()
                event.stop()
                return

            if key == "j":
                self._move_order_selection(1)
                event.stop()
                return

            if key == "k":
                self._move_order_selection(-1)
                event.stop()
                return
            return

        self.search_query += event.character
        self.selected_index = 0
        self._refresh_search()
        event.stop()

    def action_cancel_search(self) -> None:
        if self._composer is not None:
            return
        if self.input_state == "normal":
            return

        self.input_state = "normal"
        self.search_query = ""
        self.selected_index = 0
        self._refresh_search()

    def action_cycle_results(self, delta: int) -> None:
        if self._composer is not None:
            return
        if self.input_state != "search":
            return

        results = self._filtered_results()
        if not results:
            self.selected_index = 0
            self._refresh_results(results)
            return
        self.selected_index = (self.selected_index + delta) % len(results)
        self._refresh_results(results)

    def action_order_selected(self) -> None:
        if self._composer is not None:
            return
        if self.input_state != "search":
            return

        results = self._filtered_results()
        if not results:
            return

        product = results[self.selected_index]
        self.input_state = "normal"
        self.search_query = ""
        self._refresh_search()
        self.open_composer(product_id=product.id)

    def action_backspace_query(self) -> None:
        if self._composer is not None:
            return
        if self.input_state != "search":
            return

        if not self.search_query:
            return
        self.search_query = self.search_query[:-1]
        self.selected_index = 0
        self._refresh_search()

    def _on_composer_closed(self, result: OrderDraft | None) -> None:
        self._composer = None
        self.router.surface_closed()
        if result is None:
            self.system_status = "Order discarded"
            logger.debug("composer_closed submitted=False")
        else:
            self.submitted_orders.append(result)
            self.order_selected_index = len(self.submitted_orders) - 1
            self.system_status = f"Order submitted: {len(result.lines)} line(s), total {draft_total(result):.2f}"
            logger.debug(f"composer_closed submitted=True lines={len(result.lines)}")
            self.notifier.success("Order created successfully!")
        self._refresh_all()

    def _on_draft_change(self, draft: OrderDraft) -> None:
        if self._composer is not None:
            self._composer.refresh_draft()

    def _on_scan_buffer(self, buffer: str) -> None:
        # Runs inside the key handler; the redraw waits for the next refresh.
        self.scan_buffer = buffer
        if not self._scan_mirror_pending:
            self._scan_mirror_pending = True
            self.call_after_refresh(self._show_scan_buffer)

    def _show_scan_buffer(self) -> None:
        self._scan_mirror_pending = False
        if self._composer is not None:
            self._composer.refresh_scan_status(self.scan_buffer)
            return
        try:
            self.query_one("#scan-status", Static).update(format_scan_buffer(self.scan_buffer))
        except NoMatches:
            return

    def _filtered_results(self) -> list[Product]:
        source = list(self.catalog.products)
        if not self.search_query:
            return source
        q = self.search_query.lower()
        return [product for product in source if q in product.name.lower() or q in product.sku.lower()]

    def _refresh_all(self) -> None:
        self._refresh_orders()
        self._refresh_search()
        self._show_scan_buffer()

    def _move_order_selection(self, delta: int) -> None:
        if not self.submitted_orders:
            return

        if self.order_selected_index is None:
            self.order_selected_index = 0 if delta > 0 else len(self.submitted_orders) - 1
        else:
            self.order_selected_index = (self.order_selected_index + delta) % len(self.submitted_orders)
        self._refresh_orders()

    def _render_window(self, widget: Static, total: int, selected: int | None, render_row: Callable[[int], Text]) -> Text:
        """Render the rows that fit in ``widget``, keeping ``selected`` centred."""
        rows = widget.size.height if widget.size.height > 0 else 8
        if total <= rows or selected is None:
            start = 0
        else:
            start = min(max(0, selected - rows // 2), total - rows)
        end = min(total, start + rows)

        text = Text()
        if start > 0:
            text.append("⋮\n", style="dim")
        for idx in range(start, end):
            if idx > start:
                text.append("\n")
            text.append("➤ " if idx == selected else "  ")
            text.append_text(render_row(idx))
        if end < total:
            text.append("\n⋮", style="dim")
        return text

    def _refresh_orders(self) -> None:
        try:
            orders_widget = self.query_one("#orders-list", Static)
        except NoMatches:
            return
        if not self.submitted_orders:
            self.order_selected_index = None
            orders_widget.update("(no orders yet)")
            return

        orders_widget.update(
            self._render_window(orders_widget, len(self.submitted_orders), self.order_selected_index, self._order_row)
        )

    def _order_row(self, idx: int) -> Text:
        order = self.submitted_orders[idx]
        row = Text(f"{idx + 1}. ")
        if order.service_type:
            row.append_text(format_badge(order.service_type))
            row.append(" ")
        row.append(order.customer_name or "Walk-in Customer")
        row.append(f"  {len(order.lines)} line(s)  {draft_total(order):.2f}", style="dim")
        return row

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
        if self.input_state == "normal":
            status = self.system_status or "Ready"
            bar.update(f"Scan a barcode, N new order, / search catalog.\n{status}")
            return

        text = Text()
        text.append("Search", style="bold")
        text.append(f": {self.search_query}|")
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
            results_widget.update("No results")
            return

        if self.selected_index >= len(results):
            self.selected_index = 0

        results_widget.update(
            self._render_window(results_widget, len(results), self.selected_index, lambda idx: format_product_label(results[idx]))
        )
