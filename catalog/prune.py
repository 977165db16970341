"""Remove products whose image is on an exclusion list."""

import json
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from catalog.config import DEFAULT_EXCLUDED_IMAGES, EXCLUDED_IMAGES_PATH
from catalog.logging_config import get_logger
from catalog.models import CatalogData

__all__ = ["load_excluded_images", "normalize_image_path", "image_matches", "remove_products_by_images"]

logger = get_logger("prune")

_SRC_ATTR_RE = re.compile(r"src=[\"']([^\"']+)[\"']")
_TAG_RE = re.compile(r"<[^>]+>")
_SCHEME_HOST_RE = re.compile(r"^https?://[^/\s]+")


def load_excluded_images(path: Optional[Path] = None) -> List[str]:
    """Read ``{"images": [...]}``; fall back to the built-in list when absent or unreadable."""
    path = Path(path) if path is not None else EXCLUDED_IMAGES_PATH
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                return list(json.load(f).get("images") or [])
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(f"Could not load {path}: {e}")
    return list(DEFAULT_EXCLUDED_IMAGES)


def normalize_image_path(image_path: Any) -> str:
    """Reduce an image reference to a bare relative path.

    Handles ``<img src="...">`` snippets, absolute URLs with host/port,
    leading slashes, query strings, fragments and stray whitespace.
    """
    if not image_path:
        return ""
    text = str(image_path)

    match = _SRC_ATTR_RE.search(text)
    text = match.group(1) if match else _TAG_RE.sub("", text)

    text = _SCHEME_HOST_RE.sub("", text.strip())
    text = text.lstrip("/")
    text = text.split("?")[0].split("#")[0]
    return re.sub(r"\s+", "", text)


def image_matches(product_image: str, excluded: str) -> bool:
    """Exact, case-insensitive or containment match of two normalised paths."""
    if not product_image or not excluded:
        return False
    if product_image == excluded or product_image.lower() == excluded.lower():
        return True
    return excluded in product_image or product_image in excluded


def remove_products_by_images(data: CatalogData, excluded_images: Iterable[str]) -> Dict[str, Any]:
    """Drop products whose image matches an excluded image. Products without an image stay."""
    excluded = [p for p in (normalize_image_path(img) for img in excluded_images) if p]
    before = len(data.products)
    kept: List[Dict[str, Any]] = []
    removed: List[Dict[str, Any]] = []

    for product in data.products:
        image = normalize_image_path(product.get("image"))
        if image and any(image_matches(image, item) for item in excluded):
            removed.append({
                "id": product.get("id"),
                "name": product.get("name") or product.get("nameRu") or product.get("nameEn"),
                "image": product.get("image"),
                "brand": product.get("brand"),
                "category": product.get("category"),
            })
            logger.info(f"Removing {product.get('id')} ({product.get('image')})")
        else:
            kept.append(product)

    data.products = kept
    return {
        "timestamp": datetime.now().isoformat(),
        "imagesToRemove": excluded,
        "stats": {"total": before, "removed": len(removed), "afterCount": len(kept)},
        "removedProducts": removed,
    }
