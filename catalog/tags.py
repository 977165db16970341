"""Tag enrichment for catalog products."""

import re
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from catalog.config import (
    CATEGORY_SYNONYMS,
    FLAVOR_MAP,
    MAX_TAGS,
    SHAPE_MAP,
    STOP_WORDS,
    TEXTURE_MAP,
)
from catalog.logging_config import get_logger
from catalog.models import CatalogData
from catalog.text_utils import has_cyrillic, transliterate

__all__ = ["tags_from_text", "weight_tag", "tags_from_image_path", "enrich_product_tags", "enrich_tags"]

logger = get_logger("tags")

MAX_TAG_LENGTH = 30
MAX_WORD_LENGTH = 20
EXAMPLE_LIMIT = 10


def _norm(value: Any) -> str:
    return str(value).lower().strip() if value else ""


def tags_from_text(text: str, tag_map: Mapping[str, Sequence[str]]) -> List[str]:
    """Keys of ``tag_map`` whose variants appear as substrings of ``text``."""
    if not text:
        return []
    lower = _norm(text)
    return [key for key, variants in tag_map.items() if any(_norm(v) in lower for v in variants)]


def weight_tag(weight: Optional[str]) -> Optional[str]:
    """``80gr`` -> ``80g``, ``1kg`` -> ``1kg``."""
    if not weight:
        return None
    match = re.search(r"(\d+)", str(weight))
    if not match:
        return None
    lower = _norm(weight)
    unit = "kg" if ("kg" in lower or "кг" in lower) else "g"
    return f"{match.group(1)}{unit}"


def tags_from_image_path(image_path: Optional[str]) -> List[str]:
    """Shape, flavor and texture tags from the image's folder and file name."""
    if not image_path:
        return []
    parts = re.split(r"[\\/]", image_path)
    text = " ".join(parts[-2:]).lower()
    return (
        tags_from_text(text, SHAPE_MAP)
        + tags_from_text(text, FLAVOR_MAP)
        + tags_from_text(text, TEXTURE_MAP)
    )


def enrich_product_tags(product: Dict[str, Any]) -> List[str]:
    """Compute the enriched, sorted tag list for one product."""
    tags: Dict[str, None] = {}

    def add(tag: Optional[str]) -> None:
        if tag:
            tags.setdefault(tag, None)

    for tag in product.get("tags") or []:
        add(_norm(tag))

    category = _norm(product.get("category"))
    if category:
        add(category)
        for synonym in CATEGORY_SYNONYMS.get(category, []):
            add(_norm(synonym))

    product_type = _norm(product.get("type"))
    if product_type:
        add(product_type)
        for synonym in SHAPE_MAP.get(product_type, []):
            add(_norm(synonym))

    name_text = " ".join(str(product.get(k) or "") for k in ("name", "nameRu", "nameEn"))
    for tag in tags_from_text(name_text, SHAPE_MAP):
        add(tag)

    for flavor in product.get("flavors") or []:
        flavor_tag = _norm(flavor)
        if not flavor_tag:
            continue
        add(flavor_tag)
        for key, variants in FLAVOR_MAP.items():
            if any(_norm(v) == flavor_tag for v in variants):
                add(key)
                break

    for tag in tags_from_text(name_text, FLAVOR_MAP):
        add(tag)
    for tag in tags_from_text(name_text, TEXTURE_MAP):
        add(tag)

    add(weight_tag(product.get("weight")))

    brand = _norm(product.get("brand"))
    if brand:
        add(brand)
        add(transliterate(brand))

    for tag in tags_from_image_path(product.get("image")):
        add(tag)

    words = re.sub(r"[^a-zа-яё0-9\s]", " ", name_text.lower()).split()
    for word in words:
        if len(word) <= 2 or word in STOP_WORDS:
            continue
        if word.isdigit() or len(word) >= MAX_WORD_LENGTH:
            continue
        latin = transliterate(word)
        if latin != word and len(latin) > 2:
            add(latin)
        add(word)

    if has_cyrillic(name_text):
        add("ru")
    add("en")

    final = [
        tag for tag in tags
        if len(tag) < MAX_TAG_LENGTH and not (tag.isdigit() and len(tag) > 4)
    ][:MAX_TAGS]
    return sorted(final)


def enrich_tags(data: CatalogData) -> Dict[str, Any]:
    """Replace every product's tags with the enriched list.

    Returns:
        Report with tag counts and a few examples
    """
    stats = {"total": len(data.products), "enriched": 0, "tagsBefore": 0, "tagsAfter": 0}
    examples = []

    for product in data.products:
        before = len(product.get("tags") or [])
        product["tags"] = enrich_product_tags(product)
        after = len(product["tags"])
        stats["tagsBefore"] += before
        stats["tagsAfter"] += after
        if after > before:
            stats["enriched"] += 1
            if len(examples) < EXAMPLE_LIMIT:
                examples.append({
                    "id": product.get("id"),
                    "name": product.get("name") or product.get("nameRu"),
                    "tagsBefore": before,
                    "tagsAfter": after,
                    "tags": product["tags"],
                })

    logger.info(
        f"Tags enriched for {stats['enriched']}/{stats['total']} products "
        f"({stats['tagsBefore']} -> {stats['tagsAfter']} tags)"
    )
    return {"timestamp": datetime.now().isoformat(), "stats": stats, "examples": examples}
