"""Order-line accumulation: merge-or-append, manual add, removal and totals.

Every function here takes a draft and returns a new one; drafts are never
changed in place.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal
from enum import Enum

from order_scanner.errors import EmptyOrder, InvalidManualLine
from order_scanner.models import OrderDraft, OrderLine, Product
from order_scanner.notifier import Notifier

logger = logging.getLogger(__name__)


class AddOutcome(str, Enum):
    ADDED = "added"
    INCREASED = "increased"


def line_for_product(product: Product, quantity: int = 1, unit_price: Decimal | None = None, notes: str = "") -> OrderLine:
    return OrderLine(
        product_id=product.id,
        product_name=product.name,
        sku=product.sku,
        quantity=quantity,
        unit_price=product.price if unit_price is None else unit_price,
        notes=notes,
    )


def append_line(draft: OrderDraft, line: OrderLine, category_name: str | None = None) -> OrderDraft:
    """Append ``line``; the first line of an empty draft sets its service type."""
    service_type = draft.service_type
    if not draft.lines and category_name:
        service_type = category_name
    return replace(draft, lines=draft.lines + (line,), service_type=service_type)


def merge_or_append(draft: OrderDraft, product: Product) -> tuple[OrderDraft, AddOutcome]:
    for idx, line in enumerate(draft.lines):
        if line.product_id != product.id:
            continue
        bumped = replace(line, quantity=line.quantity + 1)
        lines = draft.lines[:idx] + (bumped,) + draft.lines[idx + 1 :]
        return replace(draft, lines=lines), AddOutcome.INCREASED

    return append_line(draft, line_for_product(product), product.category_name), AddOutcome.ADDED


def append_manual(
    draft: OrderDraft,
    product: Product | None,
    quantity: int | None,
    unit_price: Decimal | None = None,
    notes: str = "",
) -> OrderDraft:
    """Append a hand-entered line.

    Unlike scanning, this never merges with an existing line for the same
    product. A missing or zero price falls back to the catalog price.
    """
    if product is None or quantity is None or quantity <= 0:
        raise InvalidManualLine()
    if unit_price is not None and unit_price < 0:
        raise InvalidManualLine("Unit price cannot be negative")
    price = unit_price if unit_price else product.price
    return append_line(draft, line_for_product(product, quantity, price, notes), product.category_name)


def remove_line(draft: OrderDraft, index: int) -> OrderDraft:
    if not (0 <= index < len(draft.lines)):
        raise IndexError(f"No order line at index {index}")
    return replace(draft, lines=draft.lines[:index] + draft.lines[index + 1 :])


def draft_total(draft: OrderDraft) -> Decimal:
    return sum((line.subtotal for line in draft.lines), Decimal("0"))


def ensure_submittable(draft: OrderDraft) -> OrderDraft:
    if not draft.lines:
        raise EmptyOrder()
    return draft


class OrderLineAccumulator:
    """Applies scanned products to a draft and reports what happened."""

    def __init__(self, notifier: Notifier) -> None:
        self.notifier = notifier

    def add_scanned(self, draft: OrderDraft, product: Product) -> OrderDraft:
        updated, outcome = merge_or_append(draft, product)
        if outcome is AddOutcome.INCREASED:
            quantity = next(line.quantity for line in updated.lines if line.product_id == product.id)
            self.notifier.success(f"Quantity increased: {product.name} (x{quantity})")
        else:
            self.notifier.success(f"Item added: {product.name}")
        logger.debug(f"accumulate product_id={product.id} outcome={outcome.value} lines={len(updated.lines)}")
        return updated

    def add_manual(
        self,
        draft: OrderDraft,
        product: Product | None,
        quantity: int | None,
        unit_price: Decimal | None = None,
        notes: str = "",
    ) -> OrderDraft:
        updated = append_manual(draft, product, quantity, unit_price, notes)
        self.notifier.success("Product added to order")
        return updated

    def remove(self, draft: OrderDraft, index: int) -> OrderDraft:
        updated = remove_line(draft, index)
        self.notifier.success("Product removed from order")
        return updated
