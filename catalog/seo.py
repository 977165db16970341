"""Search text, SEO metadata and id normalisation for the catalog."""

import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from catalog.config import TYPE_NAMES_RU
from catalog.images import site_path
from catalog.logging_config import get_logger
from catalog.models import CatalogData
from catalog.text_utils import (
    dedupe_preserve_order,
    has_cyrillic,
    normalize_brand,
    normalize_for_search,
    slugify,
    transliterate,
)

__all__ = [
    "generate_search_text",
    "generate_seo_title",
    "generate_seo_description",
    "generate_seo_keywords",
    "normalize_product_id",
    "check_filter_readiness",
    "prepare_search_seo",
]

logger = get_logger("seo")

SEARCH_TEXT_LIMIT = 2000
TITLE_LIMIT = 60
DESCRIPTION_LIMIT = 160
DESCRIPTION_MIN = 140
KEYWORDS_LIMIT = 12
ID_LIMIT = 150
DESCRIPTION_FILLER = ". Высокое качество, натуральные ингредиенты."
DESCRIPTION_DEFAULT = "Качественный продукт от проверенного производителя."

_FLAVOR_TAG_RE = re.compile(
    r"(strawberry|клубника|chocolate|шоколад|sour|кислый|fruit|фрукт|cola|кола|apple|яблоко|watermelon|арбуз)",
    re.IGNORECASE,
)
_SHAPE_TAG_RE = re.compile(
    r"(bears|мишка|cubes|кубик|belts|ремень|tubes|трубка|wafers|вафля|sticks|палочка)",
    re.IGNORECASE,
)
_WEIGHT_TAG_RE = re.compile(r"\d+g|\d+gr|\d+kg", re.IGNORECASE)


def _truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit - 3] + "..."
    return text


def generate_search_text(product: Dict[str, Any]) -> str:
    """Normalised names, brand, category and tags plus transliterations."""
    parts: List[str] = []
    if product.get("nameRu"):
        normalized = normalize_for_search(product["nameRu"])
        parts += [normalized, transliterate(normalized)]
    if product.get("nameEn"):
        parts.append(normalize_for_search(product["nameEn"]))
    if product.get("name"):
        parts.append(normalize_for_search(product["name"]))
    if product.get("brand"):
        normalized = normalize_for_search(product["brand"])
        parts += [normalized, transliterate(normalized)]
    if product.get("category"):
        parts.append(normalize_for_search(product["category"]))
    for tag in product.get("tags") or []:
        normalized = normalize_for_search(tag)
        parts += [normalized, transliterate(normalized)]

    return " ".join(dedupe_preserve_order(parts))[:SEARCH_TEXT_LIMIT]


def _primary_name(product: Dict[str, Any], include_plain: bool = True) -> Optional[str]:
    keys = ("nameRu", "nameEn", "name") if include_plain else ("nameRu", "nameEn")
    return next((product[k] for k in keys if product.get(k)), None)


def generate_seo_title(product: Dict[str, Any], category_name: Optional[str]) -> str:
    parts = [_primary_name(product), product.get("brand"), category_name]
    title = " - ".join(p for p in parts if p)
    return _truncate(title, TITLE_LIMIT) or "Product"


def generate_seo_description(product: Dict[str, Any], category_name: Optional[str]) -> str:
    parts: List[str] = []
    name = _primary_name(product, include_plain=False)
    if name:
        parts.append(name)
    if product.get("type"):
        parts.append(TYPE_NAMES_RU.get(product["type"], product["type"]))
    if product.get("flavors"):
        parts.append(f"со вкусом {product['flavors'][0]}")
    if product.get("weight"):
        parts.append(f"вес {product['weight']}")
    if category_name:
        parts.append(f"категория {category_name}")
    if product.get("brand"):
        parts.append(f"бренд {product['brand']}")

    description = ", ".join(parts)
    if len(description) > DESCRIPTION_LIMIT:
        description = _truncate(description, DESCRIPTION_LIMIT)
    elif len(description) < DESCRIPTION_MIN:
        description = _truncate(description + DESCRIPTION_FILLER, DESCRIPTION_LIMIT)
    return description or DESCRIPTION_DEFAULT


def generate_seo_keywords(product: Dict[str, Any], category_name: Optional[str]) -> List[str]:
    keywords: List[str] = []
    for key in ("nameRu", "nameEn", "brand"):
        if product.get(key):
            keywords.append(str(product[key]).lower())
    if category_name:
        keywords.append(category_name.lower())
    if product.get("type"):
        keywords.append(str(product["type"]).lower())
    keywords += [str(f).lower() for f in (product.get("flavors") or [])[:3] if f]
    if product.get("weight"):
        keywords.append(str(product["weight"]).lower())
    keywords += [str(t).lower() for t in (product.get("tags") or [])[:5] if t and len(t) > 2]

    return dedupe_preserve_order(keywords)[:KEYWORDS_LIMIT]


def normalize_product_id(product: Dict[str, Any]) -> str:
    """``brand-type|category-nameSlug-<n>g``, at most 150 chars."""
    parts: List[str] = []

    brand_slug = slugify(product.get("brand") or "")
    if brand_slug:
        parts.append(brand_slug)

    if product.get("type"):
        parts.append(str(product["type"]))
    elif product.get("category"):
        parts.append(re.sub(r"[^a-z0-9]", "-", str(product["category"]).lower()))

    name_slug = slugify(_primary_name(product) or "product", max_length=30)
    if name_slug and name_slug != "product":
        parts.append(name_slug)

    if product.get("weight"):
        weight_num = re.sub(r"[^0-9]", "", str(product["weight"]))
        if weight_num:
            parts.append(f"{weight_num}g")

    return "-".join(parts)[:ID_LIMIT]


def _brand_name(brand: Any) -> Any:
    if isinstance(brand, Mapping):
        return brand.get("name")
    return brand


def check_filter_readiness(
    product: Dict[str, Any],
    categories: Optional[Mapping[str, Any]],
    brands: Optional[Sequence[Any]],
) -> List[str]:
    """List what keeps a product from showing up correctly under the site filters."""
    issues: List[str] = []

    category = product.get("category")
    if not category:
        issues.append("missing_category")
    elif categories and category not in categories:
        issues.append(f"invalid_category: {category}")

    brand = product.get("brand")
    if not brand:
        issues.append("missing_brand")
    elif brands and not any(normalize_brand(_brand_name(b)) == normalize_brand(brand) for b in brands):
        issues.append(f"invalid_brand: {brand}")

    tags = product.get("tags")
    if not tags or not isinstance(tags, list):
        issues.append("missing_tags")
    else:
        tag_text = " ".join(str(t) for t in tags).lower()
        if not _FLAVOR_TAG_RE.search(tag_text) and not product.get("flavors"):
            issues.append("missing_flavor_in_tags")
        if not _SHAPE_TAG_RE.search(tag_text) and not product.get("type"):
            issues.append("missing_shape_in_tags")
        if not _WEIGHT_TAG_RE.search(tag_text) and not product.get("weight"):
            issues.append("missing_weight_in_tags")

    return issues


def prepare_search_seo(data: CatalogData, project_root: Optional[Path] = None) -> Dict[str, Any]:
    """Fill ``searchText``/``seo``, normalise ids and report catalog problems.

    Existing ``searchText`` and ``seo`` values are kept. A normalised id that
    is already taken leaves the old id in place and is reported.

    Returns:
        Report with stats, issues, duplicate ids, missing images, empty fields
        and a final pass/fail check list
    """
    products = data.products
    categories = data.categories or {}
    brands = data.brands or []
    category_names = {
        key: (value.get("nameRu") or value.get("name") or key) if isinstance(value, Mapping) else key
        for key, value in categories.items()
    }

    stats = {"total": len(products), "searchTextAdded": 0, "seoAdded": 0, "idNormalized": 0}
    issues: List[Dict[str, Any]] = []
    missing_images: List[Dict[str, Any]] = []
    empty_fields: List[Dict[str, Any]] = []
    taken = {p.get("id") for p in products}

    for product in products:
        if not product.get("searchText"):
            product["searchText"] = generate_search_text(product)
            stats["searchTextAdded"] += 1

        if not product.get("seo"):
            category_name = category_names.get(product.get("category"), product.get("category"))
            product["seo"] = {
                "title": generate_seo_title(product, category_name),
                "description": generate_seo_description(product, category_name),
                "keywords": generate_seo_keywords(product, category_name),
            }
            stats["seoAdded"] += 1

        new_id = normalize_product_id(product)
        if new_id and new_id != product.get("id"):
            if new_id not in taken:
                taken.discard(product.get("id"))
                product["legacyId"] = product.get("id")
                product["id"] = new_id
                taken.add(new_id)
                stats["idNormalized"] += 1
            else:
                issues.append({
                    "productId": product.get("id"),
                    "issue": f"id_conflict: suggested {new_id} already exists",
                })

        filter_issues = check_filter_readiness(product, categories, brands)
        if filter_issues:
            issues.append({"productId": product.get("id"), "issues": filter_issues})

        empty = []
        if not (product.get("name") or product.get("nameRu") or product.get("nameEn")):
            empty.append("name")
        empty += [key for key in ("brand", "category", "image") if not product.get(key)]
        if empty:
            empty_fields.append({"productId": product.get("id"), "fields": empty})

        if has_cyrillic(product.get("id")):
            issues.append({"productId": product.get("id"), "issue": "cyrillic_in_id"})
        image = product.get("image")
        if image and has_cyrillic(image):
            issues.append({"productId": product.get("id"), "issue": "cyrillic_in_image_path"})
        if image and project_root is not None and not site_path(project_root, image).exists():
            missing_images.append({"productId": product.get("id"), "image": image})

    id_counts: Dict[Any, int] = {}
    for product in products:
        id_counts[product.get("id")] = id_counts.get(product.get("id"), 0) + 1
    duplicates = [{"id": pid, "count": count} for pid, count in id_counts.items() if count > 1]

    checks = {
        "searchText": all(p.get("searchText") for p in products),
        "seo": all(p.get("seo") for p in products),
        "noCyrillicInId": not any(has_cyrillic(p.get("id")) for p in products),
        "noCyrillicInImage": not any(has_cyrillic(p.get("image")) for p in products),
        "noDuplicates": not duplicates,
        "allImagesExist": not missing_images,
    }

    logger.info(
        f"SEO: {stats['searchTextAdded']} searchText, {stats['seoAdded']} seo blocks, "
        f"{stats['idNormalized']} ids normalised, {len(issues)} issues"
    )
    for check, passed in checks.items():
        if not passed:
            logger.warning(f"Check failed: {check}")

    return {
        "timestamp": datetime.now().isoformat(),
        "stats": stats,
        "issues": issues,
        "duplicates": duplicates,
        "missingImages": missing_images,
        "emptyFields": empty_fields,
        "checks": checks,
    }
