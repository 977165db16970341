"""Walk foods/ and group image/document files into product groups."""

import hashlib
import os
from pathlib import Path
from typing import Dict, Tuple

from catalog.config import DOC_EXTENSIONS, IMAGE_EXTENSIONS
from catalog.extract import detect_brand, extract_sku, get_product_folder
from catalog.images import is_placeholder
from catalog.logging_config import get_logger
from catalog.models import ProductGroup

__all__ = ["scan_foods", "folder_hash", "group_key"]

logger = get_logger("scanner")


def folder_hash(product_folder: str) -> str:
    """Stable 8-char id for a product folder (used when there is no SKU)."""
    return hashlib.md5(product_folder.encode("utf-8")).hexdigest()[:8]


def group_key(brand: str, sku, product_folder: str) -> str:
    if sku:
        return f"{brand}|{sku}"
    return f"{brand}|NO-SKU-{folder_hash(product_folder)}"


def scan_foods(foods_dir) -> Tuple[Dict[str, ProductGroup], Dict[str, int]]:
    """Scan ``foods_dir`` for product images and documents.

    Files are grouped by ``BRAND|SKU`` (or ``BRAND|NO-SKU-<hash>``).
    Placeholder banners are kept apart from real images. Unreadable
    directories are logged and skipped.

    Returns:
        (groups keyed by group key in discovery order, scan stats)
    """
    foods_dir = Path(foods_dir)
    groups: Dict[str, ProductGroup] = {}
    stats = {
        "totalFiles": 0,
        "imagesFound": 0,
        "docsFound": 0,
        "placeholdersFound": 0,
        "unreadableDirs": 0,
    }

    def on_error(error: OSError) -> None:
        stats["unreadableDirs"] += 1
        logger.warning(f"Cannot scan {error.filename}: {error.strerror}")

    for dirpath, dirnames, filenames in os.walk(foods_dir, onerror=on_error):
        dirnames.sort()
        relative_dir = Path(dirpath).relative_to(foods_dir).as_posix()
        if relative_dir == ".":
            relative_dir = ""

        for file_name in sorted(filenames):
            ext = Path(file_name).suffix.lower()
            if ext not in IMAGE_EXTENSIONS and ext not in DOC_EXTENSIONS:
                continue

            stats["totalFiles"] += 1
            product_folder = get_product_folder(relative_dir)
            folder_name = Path(relative_dir).name if relative_dir else ""
            sku = extract_sku(relative_dir, file_name, folder_name)
            brand = detect_brand(product_folder)
            key = group_key(brand, sku, product_folder)

            group = groups.get(key)
            if group is None:
                group = ProductGroup(key=key, brand=brand, product_folder=product_folder, sku=sku)
                groups[key] = group

            file_path = str(Path(dirpath) / file_name)
            if ext in IMAGE_EXTENSIONS:
                stats["imagesFound"] += 1
                if is_placeholder(file_path):
                    stats["placeholdersFound"] += 1
                    group.placeholder_images.append(file_path)
                else:
                    group.image_paths.append(file_path)
            else:
                stats["docsFound"] += 1
                group.doc_paths.append(file_path)

    logger.info(
        f"Scanned {stats['totalFiles']} files ({stats['imagesFound']} images, "
        f"{stats['docsFound']} documents) into {len(groups)} product groups"
    )
    return groups, stats
