"""Catalog snapshot and recognized-code lookup."""

from __future__ import annotations

import logging
from typing import Iterable

from order_scanner.errors import InactiveProduct, UnknownCode
from order_scanner.models import Product

logger = logging.getLogger(__name__)


class CatalogSnapshot:
    """Read-only, fully materialized view of the product catalog.

    Indexes are built once so lookups never touch disk or network. The
    surrounding app replaces the whole snapshot when the catalog changes.
    """

    def __init__(self, products: Iterable[Product]) -> None:
        self.products: tuple[Product, ...] = tuple(products)
        self._by_barcode: dict[str, Product] = {}
        self._by_id: dict[str, Product] = {}
        for product in self.products:
            if product.barcode:
                self._by_barcode.setdefault(product.barcode, product)
            self._by_id.setdefault(str(product.id), product)

    def __len__(self) -> int:
        return len(self.products)

    def find_by_barcode(self, code: str) -> Product | None:
        return self._by_barcode.get(code)

    def find_by_id(self, code: str) -> Product | None:
        return self._by_id.get(code)

    def active_products(self) -> list[Product]:
        return [product for product in self.products if product.is_active]


class ProductResolver:
    """Turns a recognized code into an orderable product."""

    def __init__(self, catalog: CatalogSnapshot) -> None:
        self.catalog = catalog

    def lookup(self, code: str) -> Product | None:
        # A barcode hit wins over a product id that happens to match.
        return self.catalog.find_by_barcode(code) or self.catalog.find_by_id(code)

    def resolve(self, code: str) -> Product:
        """Return the active product for ``code``.

        Raises:
            UnknownCode: nothing in the catalog matches.
            InactiveProduct: the match is not currently sold.
        """
        product = self.lookup(code)
        if product is None:
            logger.info(f"resolve_unknown code={code}")
            raise UnknownCode(code)
        if not product.is_active:
            logger.info(f"resolve_inactive code={code} product_id={product.id}")
            raise InactiveProduct(product)
        return product
