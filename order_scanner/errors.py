"""Error taxonomy for the scan-to-order pipeline."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from order_scanner.models import Product


class ScanError(Exception):
    """A recognized code that could not be turned into an order line."""


class UnknownCode(ScanError):
    def __init__(self, code: str) -> None:
        super().__init__(f"No product found with barcode: {code}")
        self.code = code


class InactiveProduct(ScanError):
    def __init__(self, product: Product) -> None:
        super().__init__(f"{product.name} is not available")
        self.product = product


class InvalidManualLine(ValueError):
    def __init__(self, message: str = "Please select a product and enter valid quantity") -> None:
        super().__init__(message)


class EmptyOrder(ValueError):
    def __init__(self, message: str = "Please add at least one product to the order") -> None:
        super().__init__(message)


class DiscardReason(str, Enum):
    """Why a digit buffer was dropped without emitting a code.

    Discards are ambiguous input and are only ever logged.
    """

    INACTIVITY = "inactivity"
    UNCONFIRMED_ENTER = "unconfirmed_enter"
    CONTEXT_TEARDOWN = "context_teardown"
