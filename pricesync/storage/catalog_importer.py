# pricesync/storage/catalog_importer.py

"""Loads catalog products from CSV or JSON files."""

import csv
import json
import logging
from pathlib import Path
from typing import Any, cast

from pricesync.models.product import Product
from pricesync.storage.price_store import PriceStore

logger = logging.getLogger("pricesync.catalog")

_FIELDS = ("id", "name", "brand", "size", "category", "barcode", "image")


def _row_to_product(row: dict[str, Any]) -> Product | None:
    """Build a product from a loosely-typed row; ``None`` if unnamed."""
    values = {
        key: str(row.get(key) or "").strip() for key in _FIELDS
    }
    if not values["name"]:
        return None
    return Product(**values)


def read_products(filepath: Path) -> list[Product]:
    """Parse a ``.csv`` or ``.json`` catalog file.

    JSON must be a list of objects.  Rows without a name are
    dropped.  Unknown suffixes raise ``ValueError``.
    """
    suffix = filepath.suffix.lower()
    rows: list[dict[str, Any]]
    if suffix == ".csv":
        with open(filepath, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
    elif suffix == ".json":
        with open(filepath, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            msg = f"{filepath.name}: expected a JSON list of products"
            raise ValueError(msg)
        items = cast(list[object], data)
        rows = [
            cast(dict[str, Any], e) for e in items if isinstance(e, dict)
        ]
    else:
        msg = f"Unsupported catalog format: {filepath.suffix}"
        raise ValueError(msg)

    products: list[Product] = []
    dropped = 0
    for row in rows:
        product = _row_to_product(row)
        if product is None:
            dropped += 1
            continue
        products.append(product)

    if dropped:
        logger.info(
            "Dropped %d unnamed rows from %s", dropped, filepath.name,
        )
    return products


def import_catalog(store: PriceStore, filepath: Path) -> int:
    """Insert or update every product in *filepath*; return the count."""
    products = read_products(filepath)
    for product in products:
        store.add_product(product)
    logger.info(
        "Imported %d products from %s", len(products), filepath,
    )
    return len(products)
