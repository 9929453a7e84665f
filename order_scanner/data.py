"""Catalog provider: builds the in-memory catalog snapshot."""

from __future__ import annotations

import json
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Iterable

from order_scanner.config import CATALOG_PATH
from order_scanner.constant import CATEGORY_BADGES, PRODUCT_CATALOG
from order_scanner.models import Product, ProductStatus
from order_scanner.resolver import CatalogSnapshot

logger = logging.getLogger(__name__)


def product_from_record(record: dict[str, Any]) -> Product:
    """Build a product from one catalog record.

    Raises ``ValueError`` for records missing an id, name or valid price.
    """
    try:
        product_id = int(record["id"])
        name = str(record["name"])
        price = Decimal(str(record["price"]))
    except (KeyError, TypeError, ValueError, InvalidOperation) as exc:
        raise ValueError(f"Invalid catalog record {record!r}") from exc
    if price < 0:
        raise ValueError(f"Negative price for product {product_id}")

    barcode = record.get("barcode")
    category = record.get("category_name")
    return Product(
        id=product_id,
        name=name,
        sku=str(record.get("sku") or ""),
        price=price,
        barcode=str(barcode) if barcode else None,
        status=ProductStatus(str(record.get("status") or "active").lower()),
        category_name=str(category) if category else None,
    )


def build_catalog(records: Iterable[dict[str, Any]]) -> CatalogSnapshot:
    return CatalogSnapshot(product_from_record(record) for record in records)


def load_catalog(path: str | Path | None = CATALOG_PATH) -> CatalogSnapshot:
    """Materialize the catalog from a JSON file, or the static sample catalog."""
    if path is None:
        return build_catalog(PRODUCT_CATALOG)

    catalog_file = Path(path)
    with catalog_file.open(encoding="utf-8") as fh:
        payload = json.load(fh)
    records = payload["products"] if isinstance(payload, dict) else payload
    snapshot = build_catalog(records)
    logger.info(f"catalog_loaded path={catalog_file} products={len(snapshot)}")
    return snapshot


def badge_for_category(category_name: str | None) -> str | None:
    if not category_name:
        return None
    return CATEGORY_BADGES.get(category_name, category_name[:2].upper())
