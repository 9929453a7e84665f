"""Domain models for order-scanner."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import NewType

RecognizedCode = NewType("RecognizedCode", str)


class FieldKind(str, Enum):
    """Kind of input control a key was typed into."""

    TEXT = "text"
    NUMERIC = "numeric"
    TEXTAREA = "textarea"
    SELECT = "select"


@dataclass(frozen=True)
class KeyEvent:
    """One raw keystroke as seen by the scanner pipeline.

    ``key`` is either a single printable character or a named control key
    such as ``"enter"``. ``target_kind`` is ``None`` when no input control
    has focus (the key landed on the page itself).
    """

    key: str
    timestamp: float
    target_id: str | None = None
    target_kind: FieldKind | None = None

    @property
    def is_digit(self) -> bool:
        return len(self.key) == 1 and "0" <= self.key <= "9"

    @property
    def is_enter(self) -> bool:
        return self.key == "enter"


class ProductStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class Product:
    """A catalog product as supplied by the catalog provider."""

    id: int
    name: str
    sku: str
    price: Decimal
    barcode: str | None = None
    status: ProductStatus = ProductStatus.ACTIVE
    category_name: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status is ProductStatus.ACTIVE


@dataclass(frozen=True)
class OrderLine:
    """A single line item of an order draft."""

    product_id: int
    product_name: str
    sku: str
    quantity: int
    unit_price: Decimal
    notes: str = ""

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be at least 1")
        if self.unit_price < 0:
            raise ValueError("unit_price must not be negative")

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class OrderDraft:
    """The in-progress order. Every change produces a new draft."""

    customer_name: str = ""
    notes: str = ""
    pickup_date: date | None = None
    service_type: str | None = None
    lines: tuple[OrderLine, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls, pickup_date: date | None = None) -> OrderDraft:
        return cls(pickup_date=pickup_date or date.today())

    def with_details(self, **changes: object) -> OrderDraft:
        """Return a copy with customer name, notes or pickup date replaced."""
        unknown = set(changes) - {"customer_name", "notes", "pickup_date"}
        if unknown:
            raise TypeError(f"Cannot change draft field(s): {', '.join(sorted(unknown))}")
        return replace(self, **changes)  # type: ignore[arg-type]
