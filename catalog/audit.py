"""Read-only checks over the catalog and the site pages."""

import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

from bs4 import BeautifulSoup

from catalog.images import site_path
from catalog.logging_config import get_logger
from catalog.models import CatalogData

__all__ = ["validate_catalog", "analyze_sanitation", "audit_page", "audit_pages"]

logger = get_logger("audit")

_SUFFIX_ID_RE = re.compile(r"-\d+$")
SAMPLE_LIMIT = 20


def validate_catalog(data: CatalogData, project_root: Path) -> Dict[str, Any]:
    """Regression checks: unique ids and every image path resolving to a file.

    JSON validity is already guaranteed by the time ``data`` was loaded.

    Returns:
        Dict with ``ok`` plus the offending ids and images
    """
    project_root = Path(project_root)
    counts: Dict[str, int] = {}
    missing_ids = []
    for product in data.products:
        product_id = product.get("id")
        if product_id in (None, ""):
            missing_ids.append(product)
            continue
        counts[str(product_id)] = counts.get(str(product_id), 0) + 1
    duplicate_ids = sorted(pid for pid, count in counts.items() if count > 1)

    missing_images = [
        {"id": p.get("id"), "image": p["image"]}
        for p in data.products
        if p.get("image") and not site_path(project_root, p["image"]).is_file()
    ]

    ok = not duplicate_ids and not missing_images and not missing_ids
    if duplicate_ids:
        logger.error(f"Duplicate ids: {', '.join(duplicate_ids[:10])}")
    if missing_images:
        logger.error(f"{len(missing_images)} products point at missing images")
    if missing_ids:
        logger.error(f"{len(missing_ids)} products have no id")

    return {
        "ok": ok,
        "products": len(data.products),
        "duplicateIds": duplicate_ids,
        "missingImages": missing_images,
        "missingIds": len(missing_ids),
    }


def analyze_sanitation(data: CatalogData, project_root: Path) -> Dict[str, Any]:
    """Find likely junk records: ``-N`` id suffixes, shared images, missing files, short ids."""
    project_root = Path(project_root)
    products = data.products

    with_suffix = [p for p in products if _SUFFIX_ID_RE.search(str(p.get("id", "")))]

    by_image: Dict[str, List[Dict[str, Any]]] = {}
    for product in products:
        if product.get("image"):
            key = str(product["image"]).lower().replace("\\", "/")
            by_image.setdefault(key, []).append(product)
    shared_images = {img: group for img, group in by_image.items() if len(group) > 1}

    missing_images = [
        p for p in products
        if p.get("image") and not site_path(project_root, p["image"]).exists()
    ]

    def is_suspicious(product_id: str) -> bool:
        parts = product_id.split("-")
        return len(parts) < 2 or len(product_id) < 10 or parts[-1].isdigit()

    suspicious = [p for p in products if is_suspicious(str(p.get("id", "")))]

    extra_copies = sum(len(group) - 1 for group in shared_images.values())
    logger.info(
        f"Sanitation: {len(with_suffix)} suffixed ids, {extra_copies} shared-image copies, "
        f"{len(missing_images)} missing images, {len(suspicious)} suspicious ids"
    )

    return {
        "timestamp": datetime.now().isoformat(),
        "totalProducts": len(products),
        "withSuffix": [{"id": p.get("id"), "name": p.get("name"), "image": p.get("image")} for p in with_suffix],
        "duplicateImages": [
            {"image": img, "products": [{"id": p.get("id"), "name": p.get("name")} for p in group]}
            for img, group in shared_images.items()
        ],
        "missingImages": [{"id": p.get("id"), "name": p.get("name"), "image": p.get("image")} for p in missing_images],
        "suspiciousIds": [{"id": p.get("id"), "name": p.get("name")} for p in suspicious[:SAMPLE_LIMIT]],
        "estimatedJunk": max(len(with_suffix), extra_copies, len(missing_images)),
    }


def audit_page(path: Path) -> Dict[str, Any]:
    """Check one HTML page for <title>, meta viewport and meta description."""
    try:
        html = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        html = ""

    if not html.strip():
        return {"file": Path(path).name, "empty": True, "title": False, "viewport": False, "description": False}

    soup = BeautifulSoup(html, "html.parser")
    return {
        "file": Path(path).name,
        "empty": False,
        "title": soup.find("title") is not None,
        "viewport": soup.find("meta", attrs={"name": re.compile(r"^viewport$", re.I)}) is not None,
        "description": soup.find("meta", attrs={"name": re.compile(r"^description$", re.I)}) is not None,
    }


def audit_pages(site_root: Path) -> Dict[str, Any]:
    """Audit every root-level ``*.html`` page. Never modifies files."""
    site_root = Path(site_root)
    files = sorted(p for p in site_root.iterdir() if p.is_file() and p.suffix.lower() == ".html")
    results = [audit_page(p) for p in files]

    summary = {
        "pages": len(results),
        "empty": [r["file"] for r in results if r["empty"]],
        "missingTitle": [r["file"] for r in results if not r["empty"] and not r["title"]],
        "missingViewport": [r["file"] for r in results if not r["empty"] and not r["viewport"]],
        "missingDescription": [r["file"] for r in results if not r["empty"] and not r["description"]],
    }
    summary["titleAndViewportOk"] = not summary["missingTitle"] and not summary["missingViewport"]
    summary["descriptionOk"] = not summary["missingDescription"]

    for result in results:
        if result["empty"]:
            logger.warning(f"{result['file']}: empty or unreadable")
            continue
        missing = [name for name in ("title", "viewport", "description") if not result[name]]
        if missing:
            logger.info(f"{result['file']}: missing {', '.join(missing)}")
        else:
            logger.info(f"{result['file']}: OK")

    return {"results": results, "summary": summary}
