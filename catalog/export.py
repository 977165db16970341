"""CSV export and per-item JSON merge utilities."""

import csv
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Tuple

from catalog.logging_config import get_logger
from catalog.models import CatalogData
from catalog.store import CatalogError, write_json

__all__ = ["CSV_FIELDS", "product_to_row", "export_catalog_to_csv", "merge_item_files"]

logger = get_logger("export")

CSV_FIELDS = [
    "id", "name", "nameRu", "nameEn", "brand", "category", "type", "weight",
    "flavors", "sku", "image", "tags", "legacyId", "description",
]

LIST_SEPARATOR = "|"


def product_to_row(product: Dict[str, Any]) -> Dict[str, str]:
    """Flatten a product into a CSV-ready row; lists are joined with ``|``."""
    row: Dict[str, str] = {}
    for field in CSV_FIELDS:
        value = product.get(field)
        if value is None:
            row[field] = ""
        elif isinstance(value, list):
            row[field] = LIST_SEPARATOR.join(str(v) for v in value)
        elif isinstance(value, dict):
            row[field] = json.dumps(value, ensure_ascii=False)
        else:
            row[field] = str(value)
    return row


def export_catalog_to_csv(data: CatalogData, csv_path) -> int:
    """Write the core product fields to CSV.

    Returns:
        Number of products exported
    """
    if not data.products:
        logger.info("No products to export.")
        return 0

    os.makedirs(os.path.dirname(str(csv_path)) or ".", exist_ok=True)
    with open(csv_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS, extrasaction="ignore")
        writer.writeheader()
        for product in data.products:
            writer.writerow(product_to_row(product))

    logger.info(f"Exported {len(data.products)} products to {csv_path}")
    return len(data.products)


def merge_item_files(products_dir, out_path=None) -> Tuple[int, List[Dict[str, str]]]:
    """Collect ``out/products/*.json`` into one JSON array.

    ``_issues.json`` and files that are not a product object are skipped.
    The default output is ``products.json`` one level above ``products_dir``.

    Returns:
        (products written, list of ``{file, error}`` for unreadable files)
    """
    products_dir = Path(products_dir)
    if not products_dir.is_dir():
        raise CatalogError(f"Products directory not found: {products_dir}")
    out_path = Path(out_path) if out_path else products_dir.parent / "products.json"

    products: List[Dict[str, Any]] = []
    errors: List[Dict[str, str]] = []
    for item in sorted(products_dir.glob("*.json")):
        if item.name == "_issues.json":
            continue
        try:
            with open(item, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, ValueError) as e:
            errors.append({"file": item.name, "error": str(e)})
            continue
        if not isinstance(payload, dict) or "id" not in payload:
            logger.debug(f"Skipping non-product file {item.name}")
            continue
        products.append(payload)

    for error in errors[:10]:
        logger.warning(f"Could not read {error['file']}: {error['error']}")

    write_json(out_path, products)
    logger.info(f"Merged {len(products)} products into {out_path}")
    return len(products), errors
