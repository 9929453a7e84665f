"""Shared fixtures: virtual clock, sample catalog, recording notifier, router."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

import pytest

from order_scanner.accumulator import OrderLineAccumulator
from order_scanner.classifier import Classification, StreamClassifier
from order_scanner.clock import VirtualClock
from order_scanner.models import FieldKind, KeyEvent, Product, ProductStatus
from order_scanner.resolver import CatalogSnapshot, ProductResolver
from order_scanner.router import ScannerContextRouter

FAST_GAP = 0.010
SLOW_GAP = 0.150


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    @property
    def errors(self) -> list[str]:
        return [message for level, message in self.messages if level == "error"]

    @property
    def successes(self) -> list[str]:
        return [message for level, message in self.messages if level == "success"]


class FakeSurface:
    """Composition surface that reports open/close straight to the router."""

    def __init__(self, opens_synchronously: bool = True) -> None:
        self.router: ScannerContextRouter | None = None
        self.opened = False
        self.open_requests = 0
        self.opens_synchronously = opens_synchronously

    @property
    def is_open(self) -> bool:
        return self.opened

    def open(self) -> None:
        self.open_requests += 1
        if self.opens_synchronously:
            self.finish_opening()

    def finish_opening(self) -> None:
        assert self.router is not None
        self.opened = True
        self.router.surface_opened()

    def close(self):
        assert self.router is not None
        self.opened = False
        return self.router.surface_closed()


def type_keys(
    target: StreamClassifier | ScannerContextRouter,
    clock: VirtualClock,
    keys: Iterable[str],
    gap: float,
    *,
    target_id: str | None = "customer",
    target_kind: FieldKind | None = FieldKind.TEXT,
) -> list[Classification]:
    """Feed keys ``gap`` seconds apart, letting virtual time (and timers) run in between."""
    results = []
    for idx, key in enumerate(keys):
        if idx > 0:
            clock.advance(gap)
        results.append(target.feed(KeyEvent(key, clock.now(), target_id, target_kind)))
    return results


def scan(
    target: StreamClassifier | ScannerContextRouter,
    clock: VirtualClock,
    code: str,
    gap: float = FAST_GAP,
    *,
    target_id: str | None = "customer",
    target_kind: FieldKind | None = FieldKind.TEXT,
) -> Classification:
    """Type ``code`` then Enter and return the Enter classification."""
    results = type_keys(target, clock, [*code, "enter"], gap, target_id=target_id, target_kind=target_kind)
    return results[-1]


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock(start=100.0)


@pytest.fixture
def products() -> list[Product]:
    return [
        Product(
            id=7,
            name="A4 Bond Paper Print",
            sku="PRN-A4-001",
            barcode="8901234",
            price=Decimal("25.00"),
            category_name="Printing",
        ),
        Product(
            id=12,
            name="PVC ID Card",
            sku="IDC-PVC-001",
            barcode="4800016644290",
            price=Decimal("120.00"),
            category_name="ID Creation",
        ),
        Product(
            id=31,
            name="Lamination ID Size",
            sku="LAM-ID-002",
            barcode="4806502170037",
            price=Decimal("20.00"),
            status=ProductStatus.INACTIVE,
            category_name="Lamination",
        ),
        Product(
            id=52,
            name="School Uniform Patch",
            sku="UNI-PAT-001",
            price=Decimal("55.00"),
            category_name="Uniform",
        ),
    ]


@pytest.fixture
def catalog(products: list[Product]) -> CatalogSnapshot:
    return CatalogSnapshot(products)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def surface() -> FakeSurface:
    return FakeSurface()


@pytest.fixture
def router(clock: VirtualClock, catalog: CatalogSnapshot, notifier: RecordingNotifier, surface: FakeSurface) -> ScannerContextRouter:
    router = ScannerContextRouter(
        clock,
        ProductResolver(catalog),
        OrderLineAccumulator(notifier),
        notifier,
        surface,
    )
    surface.router = router
    router.start()
    return router
