"""Tests for merge-or-append, manual lines and totals."""

from datetime import date
from decimal import Decimal

import pytest

from order_scanner.accumulator import (
    AddOutcome,
    OrderLineAccumulator,
    append_manual,
    draft_total,
    ensure_submittable,
    merge_or_append,
    remove_line,
)
from order_scanner.errors import EmptyOrder, InvalidManualLine
from order_scanner.models import OrderDraft


@pytest.fixture
def by_id(products):
    return {product.id: product for product in products}


@pytest.fixture
def draft():
    return OrderDraft.empty(date(2026, 10, 19))


class TestMergeOrAppend:
    def test_first_scan_appends_line_at_catalog_price(self, draft, by_id):
        updated, outcome = merge_or_append(draft, by_id[7])

        assert outcome is AddOutcome.ADDED
        assert len(updated.lines) == 1
        line = updated.lines[0]
        assert (line.product_id, line.quantity, line.unit_price) == (7, 1, Decimal("25.00"))

    def test_repeat_scan_bumps_quantity_only(self, draft, by_id):
        first, _ = merge_or_append(draft, by_id[7])
        second, outcome = merge_or_append(first, by_id[7])

        assert outcome is AddOutcome.INCREASED
        assert len(second.lines) == 1
        assert second.lines[0].quantity == 2
        assert second.lines[0].unit_price == first.lines[0].unit_price

    def test_k_scans_give_quantity_k(self, draft, by_id):
        for _ in range(5):
            draft, _ = merge_or_append(draft, by_id[12])

        assert [line.quantity for line in draft.lines] == [5]

    def test_merge_keeps_line_order(self, draft, by_id):
        for product_id in (7, 12, 7):
            draft, _ = merge_or_append(draft, by_id[product_id])

        assert [line.product_id for line in draft.lines] == [7, 12]

    def test_first_line_sets_service_type(self, draft, by_id):
        updated, _ = merge_or_append(draft, by_id[7])
        updated, _ = merge_or_append(updated, by_id[12])

        assert updated.service_type == "Printing"

    def test_service_type_untouched_when_draft_already_has_lines(self, draft, by_id):
        updated, _ = merge_or_append(draft, by_id[7])
        updated, _ = merge_or_append(updated, by_id[7])

        assert updated.service_type == "Printing"

    def test_draft_is_not_mutated(self, draft, by_id):
        merge_or_append(draft, by_id[7])

        assert draft.lines == ()
        assert draft.service_type is None


class TestManualLines:
    def test_manual_add_never_merges(self, draft, by_id):
        scanned, _ = merge_or_append(draft, by_id[7])
        updated = append_manual(scanned, by_id[7], 3)

        assert [line.quantity for line in updated.lines] == [1, 3]

    def test_zero_or_missing_price_uses_catalog_price(self, draft, by_id):
        updated = append_manual(draft, by_id[7], 2, Decimal("0"))
        updated = append_manual(updated, by_id[7], 1)

        assert [line.unit_price for line in updated.lines] == [Decimal("25.00"), Decimal("25.00")]

    def test_custom_price_is_kept(self, draft, by_id):
        updated = append_manual(draft, by_id[52], 2, Decimal("40.50"), notes="size M")

        line = updated.lines[0]
        assert line.unit_price == Decimal("40.50")
        assert line.notes == "size M"
        assert updated.service_type == "Uniform"

    @pytest.mark.parametrize("quantity", [None, 0, -1])
    def test_invalid_quantity(self, draft, by_id, quantity):
        with pytest.raises(InvalidManualLine, match="valid quantity"):
            append_manual(draft, by_id[7], quantity)

    def test_missing_product(self, draft):
        with pytest.raises(InvalidManualLine):
            append_manual(draft, None, 1)

    def test_negative_price(self, draft, by_id):
        with pytest.raises(InvalidManualLine, match="negative"):
            append_manual(draft, by_id[7], 1, Decimal("-1"))


class TestRemovalAndTotals:
    def test_remove_line(self, draft, by_id):
        draft, _ = merge_or_append(draft, by_id[7])
        draft, _ = merge_or_append(draft, by_id[12])

        updated = remove_line(draft, 0)

        assert [line.product_id for line in updated.lines] == [12]

    def test_remove_out_of_range(self, draft):
        with pytest.raises(IndexError):
            remove_line(draft, 0)

    def test_total(self, draft, by_id):
        draft, _ = merge_or_append(draft, by_id[7])
        draft, _ = merge_or_append(draft, by_id[7])
        draft = append_manual(draft, by_id[12], 1, Decimal("100"))

        assert draft_total(draft) == Decimal("150.00")

    def test_empty_draft_is_not_submittable(self, draft, by_id):
        with pytest.raises(EmptyOrder):
            ensure_submittable(draft)

        filled, _ = merge_or_append(draft, by_id[7])
        assert ensure_submittable(filled) is filled


class TestOrderLineAccumulator:
    def test_scan_notifications(self, draft, by_id, notifier):
        accumulator = OrderLineAccumulator(notifier)

        draft = accumulator.add_scanned(draft, by_id[7])
        accumulator.add_scanned(draft, by_id[7])

        assert notifier.successes == [
            "Item added: A4 Bond Paper Print",
            "Quantity increased: A4 Bond Paper Print (x2)",
        ]

    def test_manual_and_remove_notifications(self, draft, by_id, notifier):
        accumulator = OrderLineAccumulator(notifier)

        draft = accumulator.add_manual(draft, by_id[52], 1)
        accumulator.remove(draft, 0)

        assert notifier.successes == ["Product added to order", "Product removed from order"]

    def test_rejected_manual_line_is_not_announced(self, draft, notifier):
        accumulator = OrderLineAccumulator(notifier)

        with pytest.raises(InvalidManualLine):
            accumulator.add_manual(draft, None, 1)

        assert notifier.messages == []
