"""Order composition modal screen."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.css.query import NoMatches
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from order_scanner.accumulator import ensure_submittable
from order_scanner.config import QUANTITY_FIELD_ID
from order_scanner.errors import EmptyOrder, InvalidManualLine
from order_scanner.models import FieldKind, KeyEvent, OrderDraft, Product
from order_scanner.rendering import format_draft_lines, format_draft_summary, format_product_label, format_scan_buffer
from order_scanner.router import ScannerContextRouter


@dataclass(frozen=True)
class FormField:
    field_id: str
    label: str
    kind: FieldKind
    max_length: int = 60


FORM_FIELDS: tuple[FormField, ...] = (
    FormField("customer", "Customer", FieldKind.TEXT),
    FormField("pickup", "Pickup date", FieldKind.TEXT, max_length=10),
    FormField("product", "Product", FieldKind.SELECT),
    FormField(QUANTITY_FIELD_ID, "Quantity", FieldKind.NUMERIC, max_length=4),
    FormField("price", "Unit price", FieldKind.NUMERIC, max_length=9),
    FormField("notes", "Notes", FieldKind.TEXTAREA, max_length=240),
)


class ComposeOrderModal(ModalScreen[OrderDraft | None]):
    """Order form. Scans and hand-entered lines both land in the router's draft."""

    CSS = """
    ComposeOrderModal {
        align: center middle;
        background: $background 60%;
    }

    #compose-dialog {
        width: 84;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #compose-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #compose-fields {
        color: white;
        margin-bottom: 1;
    }

    #compose-lines {
        border: tall $surface;
        padding: 0 1;
        min-height: 3;
        color: white;
    }

    #compose-summary {
        margin-top: 1;
        color: white;
    }

    #compose-scan {
        margin-top: 1;
    }

    #compose-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    def __init__(self, router: ScannerContextRouter, products: list[Product], product_id: int | None = None) -> None:
        super().__init__()
        self.router = router
        self.products = products
        self.focus_index = 0
        self.product_index = 0
        self.line_cursor: int | None = None
        self.scan_buffer = ""
        self._scan_snapshot: tuple[str, str | None] | None = None
        draft = router.draft or OrderDraft.empty()
        self.values: dict[str, str] = {
            "customer": draft.customer_name,
            "pickup": draft.pickup_date.isoformat() if draft.pickup_date else "",
            QUANTITY_FIELD_ID: "1",
            "price": "",
            "notes": draft.notes,
        }
        if product_id is not None:
            for idx, product in enumerate(products):
                if product.id == product_id:
                    self.product_index = idx
                    self.focus_index = self._field_index(QUANTITY_FIELD_ID)
                    break

    def compose(self) -> ComposeResult:
        with Container(id="compose-dialog"):
            yield Static("New Order", id="compose-title")
            yield Static(id="compose-fields")
            yield Static(id="compose-lines")
            yield Static(id="compose-summary")
            yield Static(id="compose-scan")
            yield Static(
                "Tab/Shift+Tab field, ↑/↓ product, Enter add, PgUp/PgDn line, Ctrl+D remove, Ctrl+S submit, Esc cancel",
                id="compose-help",
            )

    def on_mount(self) -> None:
        self._refresh_content()
        self.router.surface_ready()

    @property
    def focused_field(self) -> FormField:
        return FORM_FIELDS[self.focus_index]

    def on_key(self, event: Key) -> None:
        field = self.focused_field
        classifier = self.router.classifier
        if classifier is not None and not classifier.buffer:
            self._scan_snapshot = (field.field_id, self.values.get(field.field_id))
        result = self.router.feed(
            KeyEvent(key=event.key, timestamp=event.time, target_id=field.field_id, target_kind=field.kind)
        )
        if result.suppress_default:
            self._restore_scan_snapshot(field)
            event.stop()
            return

        event.stop()
        key = event.key

        if key == "escape":
            self.dismiss(None)
            return
        if key == "ctrl+s":
            self._submit()
            return
        if key in {"tab", "shift+tab"}:
            step = -1 if key == "shift+tab" else 1
            self.focus_index = (self.focus_index + step) % len(FORM_FIELDS)
            self._refresh_content()
            return
        if key in {"pageup", "pagedown"}:
            self._move_line_cursor(-1 if key == "pageup" else 1)
            return
        if key == "ctrl+d":
            self._remove_selected_line()
            return

        if field.kind is FieldKind.SELECT:
            self._handle_select_key(key)
        else:
            self._handle_field_key(field, event)

    def _handle_select_key(self, key: str) -> None:
        if not self.products:
            return
        if key in {"up", "down"}:
            step = -1 if key == "up" else 1
            self.product_index = (self.product_index + step) % len(self.products)
            self._refresh_content()
            return
        if key == "enter":
            self.focus_index = self._field_index(QUANTITY_FIELD_ID)
            self._refresh_content()

    def _handle_field_key(self, field: FormField, event: Key) -> None:
        value = self.values[field.field_id]

        if event.key == "backspace":
            self.values[field.field_id] = value[:-1]
            self._refresh_content()
            return

        if event.key == "enter":
            if field.kind is FieldKind.NUMERIC:
                self._add_manual_line()
            elif field.kind is FieldKind.TEXTAREA:
                self._append_char(field, "\n")
            else:
                self.focus_index = (self.focus_index + 1) % len(FORM_FIELDS)
                self._refresh_content()
            return

        if not event.is_printable or not event.character:
            return
        char = event.character
        if field.kind is FieldKind.NUMERIC:
            allowed = char.isdigit() or (char == "." and field.field_id == "price" and "." not in value)
            if not allowed:
                return
        self._append_char(field, char)

    def _append_char(self, field: FormField, char: str) -> None:
        value = self.values[field.field_id]
        if len(value) < field.max_length:
            self.values[field.field_id] = value + char
        self._refresh_content()

    def _restore_scan_snapshot(self, field: FormField) -> None:
        # The scanned digits were echoed into the focused field; put back what was there.
        snapshot = self._scan_snapshot
        self._scan_snapshot = None
        if snapshot is None:
            return
        field_id, value = snapshot
        if field_id == field.field_id and value is not None:
            self.values[field_id] = value
        self._refresh_content()

    def _selected_product(self) -> Product | None:
        if not self.products:
            return None
        return self.products[self.product_index]

    def _add_manual_line(self) -> None:
        product = self._selected_product()
        raw_quantity = self.values[QUANTITY_FIELD_ID]
        quantity = int(raw_quantity) if raw_quantity else None
        raw_price = self.values["price"]
        try:
            price = Decimal(raw_price) if raw_price else None
        except InvalidOperation:
            self.router.notifier.error("Unit price must be a number")
            return

        try:
            self.router.apply(lambda draft: self.router.accumulator.add_manual(draft, product, quantity, price))
        except InvalidManualLine as exc:
            self.router.notifier.error(str(exc))
            return

        self.values[QUANTITY_FIELD_ID] = "1"
        self.values["price"] = ""
        self._refresh_content()

    def _move_line_cursor(self, delta: int) -> None:
        draft = self.router.draft
        if draft is None or not draft.lines:
            self.line_cursor = None
            return
        if self.line_cursor is None:
            self.line_cursor = 0 if delta > 0 else len(draft.lines) - 1
        else:
            self.line_cursor = (self.line_cursor + delta) % len(draft.lines)
        self._refresh_content()

    def _remove_selected_line(self) -> None:
        draft = self.router.draft
        if draft is None or self.line_cursor is None or not (0 <= self.line_cursor < len(draft.lines)):
            return
        idx = self.line_cursor
        updated = self.router.apply(lambda current: self.router.accumulator.remove(current, idx))
        self.line_cursor = min(idx, len(updated.lines) - 1) if updated.lines else None
        self._refresh_content()

    def _submit(self) -> None:
        raw_pickup = self.values["pickup"].strip()
        try:
            pickup = date.fromisoformat(raw_pickup) if raw_pickup else None
        except ValueError:
            self.router.notifier.error("Pickup date must be YYYY-MM-DD")
            return

        try:
            draft = self.router.apply(
                lambda current: current.with_details(
                    customer_name=self.values["customer"].strip(),
                    notes=self.values["notes"].strip(),
                    pickup_date=pickup,
                )
            )
            ensure_submittable(draft)
        except EmptyOrder as exc:
            self.router.notifier.error(str(exc))
            return

        self.dismiss(draft)

    def _field_index(self, field_id: str) -> int:
        for idx, field in enumerate(FORM_FIELDS):
            if field.field_id == field_id:
                return idx
        raise KeyError(field_id)

    def refresh_draft(self) -> None:
        draft = self.router.draft
        if draft is not None and self.line_cursor is not None and self.line_cursor >= len(draft.lines):
            self.line_cursor = len(draft.lines) - 1 if draft.lines else None
        self._refresh_content()

    def refresh_scan_status(self, buffer: str) -> None:
        self.scan_buffer = buffer
        try:
            self.query_one("#compose-scan", Static).update(format_scan_buffer(buffer))
        except NoMatches:
            return

    def _refresh_content(self) -> None:
        try:
            fields_widget = self.query_one("#compose-fields", Static)
            lines_widget = self.query_one("#compose-lines", Static)
            summary_widget = self.query_one("#compose-summary", Static)
        except NoMatches:
            return

        content = Text(style="white")
        for idx, field in enumerate(FORM_FIELDS):
            if idx > 0:
                content.append("\n")
            focused = idx == self.focus_index
            pointer = "➤ " if focused else "  "
            content.append(f"{pointer}{field.label}: ", style="bold white" if focused else "white")
            if field.kind is FieldKind.SELECT:
                product = self._selected_product()
                if product is None:
                    content.append("(catalog empty)", style="dim")
                else:
                    content.append_text(format_product_label(product))
                continue
            shown = self.values[field.field_id].replace("\n", " ⏎ ")
            content.append(shown)
            if focused:
                content.append("|", style="bold")

        draft = self.router.draft or OrderDraft.empty()
        fields_widget.update(content)
        lines_widget.update(format_draft_lines(draft, self.line_cursor))
        summary_widget.update(format_draft_summary(draft))
        self.refresh_scan_status(self.scan_buffer)
