"""Duplicate and variant detection for catalog products.

Two products are compared on six signals (brand, category, weight, name
similarity, shared image path parts, tag overlap). Two or more hits make a
duplicate pair. Pairs of the same brand that differ in weight, type or
flavors are variants and are kept side by side; true duplicates are merged.
"""

import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from catalog.config import DEDUPE_THRESHOLDS
from catalog.images import site_path
from catalog.logging_config import get_logger
from catalog.models import CatalogData
from catalog.text_utils import normalize_brand, slugify

__all__ = [
    "normalize_string",
    "levenshtein_distance",
    "name_similarity",
    "tags_similarity",
    "compare_products",
    "are_variants",
    "merge_products",
    "normalize_variant_id",
    "ensure_unique_ids",
    "deduplicate_products",
]

logger = get_logger("dedupe")

_NON_WORD_RE = re.compile(r"[^a-z0-9а-яё]")


def normalize_string(value: Any) -> str:
    """Lower-case and keep only Latin/Cyrillic letters and digits."""
    if not value:
        return ""
    return _NON_WORD_RE.sub("", str(value).lower().strip())


def levenshtein_distance(first: str, second: str) -> int:
    """Edit distance between the normalised forms of two strings."""
    s1 = normalize_string(first)
    s2 = normalize_string(second)
    if s1 == s2:
        return 0
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    previous = list(range(len(s1) + 1))
    for i, ch2 in enumerate(s2, start=1):
        current = [i]
        for j, ch1 in enumerate(s1, start=1):
            if ch1 == ch2:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j - 1], current[j - 1], previous[j]) + 1)
        previous = current
    return previous[-1]


def name_similarity(first: str, second: str) -> float:
    """1 - distance / longer length; two empty names count as identical."""
    max_len = max(len(normalize_string(first)), len(normalize_string(second)))
    if max_len == 0:
        return 1.0
    return 1 - levenshtein_distance(first, second) / max_len


def tags_similarity(tags1: Optional[Sequence[str]], tags2: Optional[Sequence[str]]) -> float:
    """Jaccard similarity of the normalised tag sets (0 if either is empty)."""
    if not tags1 or not tags2:
        return 0.0
    set1 = {normalize_string(t) for t in tags1}
    set2 = {normalize_string(t) for t in tags2}
    union = set1 | set2
    if not union:
        return 0.0
    return len(set1 & set2) / len(union)


def _display_name(product: Dict[str, Any]) -> str:
    return product.get("name") or product.get("nameRu") or ""


def _shared_image_parts(image1: str, image2: str) -> int:
    parts1 = [normalize_string(p) for p in re.split(r"[\\/]", image1)]
    parts2 = set(normalize_string(p) for p in re.split(r"[\\/]", image2))
    return sum(1 for p in parts1 if len(p) > 3 and p in parts2)


def compare_products(first: Dict[str, Any], second: Dict[str, Any]) -> Dict[str, Any]:
    """Score two products on the duplicate signals.

    Returns:
        Dict with ``is_duplicate``, ``matches``, ``details`` and the two
        similarity values
    """
    details: List[str] = []

    brand1 = normalize_brand(first.get("brand"))
    if brand1 and brand1 == normalize_brand(second.get("brand")):
        details.append("brand")

    if first.get("category") and first.get("category") == second.get("category"):
        details.append("category")

    weight1 = normalize_string(first.get("weight"))
    if weight1 and weight1 == normalize_string(second.get("weight")):
        details.append("weight")

    name_sim = name_similarity(_display_name(first), _display_name(second))
    if name_sim >= DEDUPE_THRESHOLDS["name_similarity"]:
        details.append(f"name({name_sim:.2f})")

    image1, image2 = first.get("image") or "", second.get("image") or ""
    if image1 and image2 and _shared_image_parts(image1, image2) >= 2:
        details.append("image")

    tags_sim = tags_similarity(first.get("tags"), second.get("tags"))
    if tags_sim >= DEDUPE_THRESHOLDS["tags_overlap"]:
        details.append(f"tags({tags_sim:.2f})")

    return {
        "is_duplicate": len(details) >= DEDUPE_THRESHOLDS["min_matches"],
        "matches": len(details),
        "details": details,
        "name_similarity": name_sim,
        "tags_similarity": tags_sim,
    }


def are_variants(first: Dict[str, Any], second: Dict[str, Any]) -> bool:
    """Same brand, similar name, but a different weight, type or flavor set."""
    brand1 = normalize_brand(first.get("brand"))
    if not brand1 or brand1 != normalize_brand(second.get("brand")):
        return False

    differs = (
        first.get("weight") != second.get("weight")
        or first.get("type") != second.get("type")
        or {normalize_string(f) for f in first.get("flavors") or []}
        != {normalize_string(f) for f in second.get("flavors") or []}
    )
    if not differs:
        return False

    similarity = name_similarity(_display_name(first), _display_name(second))
    return similarity >= DEDUPE_THRESHOLDS["variant_name_similarity"]


def _richness(product: Dict[str, Any]) -> int:
    score = sum(1 for key in ("image", "weight", "type") if product.get(key))
    if product.get("flavors"):
        score += 1
    score += len(product.get("tags") or [])
    return score


def merge_products(products: List[Dict[str, Any]], project_root: Optional[Path] = None) -> Dict[str, Any]:
    """Merge duplicates into the richest record.

    Tags are unioned, the first image that exists on disk wins, missing
    weight/type/flavors are filled from the others, and the other ids are
    recorded in ``mergedFrom``.
    """
    main = products[0]
    for candidate in products[1:]:
        if _richness(candidate) > _richness(main):
            main = candidate

    tags: List[str] = []
    for product in products:
        for tag in product.get("tags") or []:
            if tag not in tags:
                tags.append(tag)
    main["tags"] = tags

    if project_root is not None:
        for product in products:
            image = product.get("image")
            if image and site_path(project_root, image).exists():
                main["image"] = image
                break

    for key in ("weight", "type"):
        if not main.get(key):
            value = next((p[key] for p in products if p.get(key)), None)
            if value:
                main[key] = value

    if not main.get("flavors"):
        flavors: List[str] = []
        for product in products:
            for flavor in product.get("flavors") or []:
                if flavor not in flavors:
                    flavors.append(flavor)
        if flavors:
            main["flavors"] = flavors

    merged_from = main.setdefault("mergedFrom", [])
    for product in products:
        if product is not main and product.get("id") not in merged_from:
            merged_from.append(product.get("id"))

    return main


def normalize_variant_id(product: Dict[str, Any]) -> str:
    """Id of the form ``brand-type|name-<n>gr-flavor`` (max 150 chars)."""
    parts: List[str] = []

    if product.get("brand"):
        parts.append(re.sub(r"[^a-z0-9]", "-", normalize_brand(product["brand"]).lower()))

    if product.get("type"):
        parts.append(product["type"])
    else:
        name_slug = slugify(_display_name(product), max_length=30)
        if name_slug:
            parts.append(name_slug)

    if product.get("weight"):
        weight_num = re.sub(r"[^0-9]", "", str(product["weight"]))
        if weight_num:
            parts.append(f"{weight_num}gr")

    flavors = product.get("flavors") or []
    if flavors:
        flavor_slug = slugify(flavors[0], max_length=20)
        if len(flavor_slug) > 2:
            parts.append(flavor_slug)

    return "-".join(parts)[:150]


def ensure_unique_ids(products: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Suffix repeated ids with ``-2``, ``-3``... keeping the old id in ``legacyId``.

    Returns:
        One entry per renamed product
    """
    seen = set()
    taken = {str(p.get("id")) for p in products}
    renamed = []
    for product in products:
        product_id = str(product.get("id"))
        if product_id not in seen:
            seen.add(product_id)
            continue
        n = 2
        while f"{product_id}-{n}" in taken:
            n += 1
        new_id = f"{product_id}-{n}"
        product.setdefault("legacyId", product_id)
        product["id"] = new_id
        taken.add(new_id)
        seen.add(new_id)
        renamed.append({"from": product_id, "to": new_id})
    return renamed


def _group_summary(products: List[Dict[str, Any]], keys: Sequence[str]) -> List[Dict[str, Any]]:
    return [
        {"id": p.get("id"), "name": _display_name(p), **{k: p.get(k) for k in keys}}
        for p in products
    ]


def deduplicate_products(data: CatalogData, project_root: Optional[Path] = None) -> Dict[str, Any]:
    """Merge duplicates and normalise variant ids in place.

    Returns:
        Report with stats, duplicate groups, variant groups and suspicious cases
    """
    products = data.products
    before = len(products)

    processed = set()
    duplicate_groups = []
    variant_groups = []

    for i, first in enumerate(products):
        if i in processed:
            continue
        indices = [i]
        is_variant_group = False
        for j in range(i + 1, len(products)):
            if j in processed:
                continue
            second = products[j]
            if compare_products(first, second)["is_duplicate"]:
                if are_variants(first, second):
                    is_variant_group = True
                indices.append(j)

        if len(indices) > 1:
            processed.update(indices)
            group = {"indices": indices, "products": [products[k] for k in indices]}
            if is_variant_group:
                variant_groups.append(group)
            else:
                group["details"] = compare_products(group["products"][0], group["products"][1])
                duplicate_groups.append(group)

    suspicious: List[Dict[str, Any]] = []
    duplicate_report = []
    to_remove = set()
    replacements: Dict[int, Dict[str, Any]] = {}

    for group in duplicate_groups:
        duplicate_report.append({
            "count": len(group["products"]),
            "products": _group_summary(group["products"], ("brand", "category", "weight", "image")),
            "details": group["details"]["details"],
        })
        if len(group["products"]) > 3:
            suspicious.append({
                "type": "many_duplicates",
                "count": len(group["products"]),
                "products": _group_summary(group["products"], ("image",)),
            })
        replacements[group["indices"][0]] = merge_products(group["products"], project_root)
        to_remove.update(group["indices"][1:])

    taken = {p.get("id") for p in products}
    normalized = 0
    variant_report = []
    for group in variant_groups:
        variant_report.append({
            "count": len(group["products"]),
            "products": _group_summary(group["products"], ("brand", "weight", "type", "flavors")),
        })
        for product in group["products"]:
            new_id = normalize_variant_id(product)
            if new_id and new_id != product.get("id"):
                if new_id not in taken:
                    taken.discard(product.get("id"))
                    product["legacyId"] = product.get("id")
                    product["id"] = new_id
                    taken.add(new_id)
                    normalized += 1
                else:
                    suspicious.append({
                        "type": "id_conflict",
                        "product": {"id": product.get("id"), "name": _display_name(product), "suggestedId": new_id},
                    })

            tags = list(product.get("tags") or [])
            extras = [product.get("weight"), product.get("type")] + list(product.get("flavors") or [])
            for tag in extras:
                if tag and tag not in tags:
                    tags.append(tag)
            product["tags"] = tags

    data.products = [
        replacements.get(i, product)
        for i, product in enumerate(products)
        if i not in to_remove
    ]
    renamed = ensure_unique_ids(data.products)

    stats = {
        "beforeCount": before,
        "afterCount": len(data.products),
        "duplicatesFound": len(duplicate_groups),
        "merged": len(duplicate_groups),
        "removed": len(to_remove),
        "normalized": normalized,
        "idsDeduplicated": len(renamed),
    }
    logger.info(
        f"Dedupe: {before} -> {len(data.products)} products, "
        f"{len(duplicate_groups)} duplicate groups, {len(variant_groups)} variant groups, "
        f"{len(suspicious)} suspicious cases"
    )
    return {
        "timestamp": datetime.now().isoformat(),
        "stats": stats,
        "duplicateGroups": duplicate_report,
        "variantGroups": variant_report,
        "suspiciousCases": suspicious,
        "renamedIds": renamed,
    }
