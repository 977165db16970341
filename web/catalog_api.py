"""Read-only catalog API.

Server-side version of the catalog page's filtering so that clients can
query data/products.json without downloading it whole:

- GET /api/products    filter, search, sort and page products
- GET /api/suggest     search-box suggestions
- GET /api/categories  category list
- GET /api/brands      brand list
"""

import logging
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from flask import Blueprint, Response, current_app, jsonify, request

from catalog.models import CatalogData
from catalog.store import CatalogError, load_catalog
from catalog.text_utils import normalize_brand

from .config import API_MAX_PER_PAGE, MAX_SUGGESTIONS
from .pagination import PageCursor

__all__ = [
    "catalog_api",
    "CatalogCache",
    "filter_products",
    "sort_products",
    "generate_suggestions",
    "category_name",
]

logger = logging.getLogger(__name__)

catalog_api = Blueprint("catalog_api", __name__, url_prefix="/api")

MISSING_POPULARITY = 1e9


class CatalogCache:
    """Loads the catalog once per file modification."""

    def __init__(self):
        self._lock = threading.Lock()
        self._key: Optional[Tuple[str, int]] = None
        self._data: Optional[CatalogData] = None

    def get(self, path: Path) -> CatalogData:
        """Return the parsed catalog, reloading when the file changed.

        Raises:
            CatalogError: file missing or not a catalog document
        """
        path = Path(path)
        try:
            mtime = path.stat().st_mtime_ns
        except OSError as e:
            raise CatalogError(f"Catalog not found: {path}") from e

        key = (str(path), mtime)
        with self._lock:
            if self._key != key:
                self._data = load_catalog(path)
                self._key = key
                logger.info(f"Loaded {len(self._data.products)} products from {path}")
            return self._data

    def clear(self) -> None:
        with self._lock:
            self._key = None
            self._data = None


_cache = CatalogCache()


def _catalog() -> CatalogData:
    return _cache.get(current_app.config["CATALOG_PATH"])


def category_name(categories: Dict[str, Any], category: Optional[str], lang: str = "ru") -> str:
    """Localised category name, falling back to the category key."""
    if not category:
        return ""
    info = categories.get(category)
    if not isinstance(info, dict):
        return str(category)
    if lang == "en":
        return info.get("nameEn") or info.get("nameRu") or str(category)
    return info.get("nameRu") or info.get("nameEn") or str(category)


def _text(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, dict):
        return [str(v) for v in value.values() if v]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v]
    return [str(value)]


def _search_text(product: Dict[str, Any], categories: Dict[str, Any], lang: str) -> str:
    brand = normalize_brand(product.get("brand"))
    parts: List[str] = [
        product.get("nameRu") or "",
        product.get("nameEn") or "",
        product.get("name") or "",
        brand,
        brand.lower(),
        product.get("brand") or "",
        category_name(categories, product.get("category"), lang),
        product.get("category") or "",
        product.get("type") or "",
        product.get("weight") or "",
        product.get("sku") or "",
    ]
    parts.extend(_text(product.get("description")))
    parts.extend(_text(product.get("composition")))
    parts.extend(_text(product.get("flavors")))
    parts.extend(_text(product.get("tags")))
    return " ".join(str(p) for p in parts if p).lower()


def filter_products(
    products: Iterable[Dict[str, Any]],
    categories: Optional[Dict[str, Any]] = None,
    brand: Optional[str] = None,
    category: Optional[str] = None,
    weight: Optional[str] = None,
    flavor: Optional[str] = None,
    product_type: Optional[str] = None,
    q: Optional[str] = None,
    lang: str = "ru",
) -> List[Dict[str, Any]]:
    """Apply the catalog page's filters. Empty filters match everything.

    Brand compares strict-normalised keys; flavor is a case-insensitive
    substring of any flavor; ``q`` is a substring of the product's
    combined text fields.
    """
    categories = categories or {}
    brand_key = normalize_brand(brand)
    flavor_query = (flavor or "").lower()
    search = (q or "").strip().lower()

    result = []
    for product in products:
        if brand_key and normalize_brand(product.get("brand")) != brand_key:
            continue
        if category and product.get("category") != category:
            continue
        if weight and product.get("weight") != weight:
            continue
        if flavor_query and not any(flavor_query in str(f).lower() for f in product.get("flavors") or []):
            continue
        if product_type and product.get("type") != product_type:
            continue
        if search and search not in _search_text(product, categories, lang):
            continue
        result.append(product)
    return result


def _popularity(product: Dict[str, Any]) -> float:
    value = product.get("popularityIndex")
    if value is None:
        return MISSING_POPULARITY
    try:
        return float(value)
    except (TypeError, ValueError):
        return MISSING_POPULARITY


def sort_products(products: List[Dict[str, Any]], order: Optional[str]) -> List[Dict[str, Any]]:
    """Sort by ``popularity`` (popularityIndex, missing last) or ``alphabet``; otherwise keep order."""
    if order == "popularity":
        return sorted(products, key=_popularity)
    if order == "alphabet":
        return sorted(products, key=lambda p: (p.get("nameRu") or p.get("name") or p.get("nameEn") or "").strip().lower())
    return list(products)


def _brand_names(brand: Any) -> List[str]:
    if isinstance(brand, dict):
        return [n for n in (brand.get("name"), brand.get("displayName")) if n]
    return [str(brand)] if brand else []


def generate_suggestions(data: CatalogData, query: Optional[str], limit: int = MAX_SUGGESTIONS) -> List[str]:
    """Search-box suggestions: names, brands, tags, category and brand names.

    Queries shorter than two characters give no suggestions.
    """
    if not query or len(query) < 2:
        return []
    needle = query.lower()
    found: Dict[str, None] = {}

    def add(value: Any) -> None:
        if value:
            found.setdefault(str(value), None)

    for product in data.products:
        name_ru = product.get("nameRu") or product.get("name") or ""
        name_en = product.get("nameEn") or product.get("name") or ""
        for name in (name_ru, name_en):
            lowered = name.lower()
            if needle in lowered and lowered != needle:
                add(name)
        if needle in str(product.get("brand") or "").lower():
            add(product.get("brand"))
        for tag in product.get("tags") or []:
            if len(str(tag)) > 2 and needle in str(tag).lower():
                add(tag)

    for info in data.categories.values():
        if not isinstance(info, dict):
            continue
        for name in (info.get("nameRu"), info.get("nameEn")):
            if name and needle in name.lower():
                add(name)

    for brand in data.brands:
        names = _brand_names(brand)
        if any(needle in n.lower() for n in names):
            add(names[-1])

    return list(found)[:limit]


def _int_arg(name: str, default: int) -> int:
    try:
        return int(request.args.get(name, default))
    except (TypeError, ValueError):
        return default


def _unavailable(error: Exception) -> Tuple[Response, int]:
    logger.error(f"Catalog unavailable: {error}")
    return jsonify({"success": False, "error": f"Каталог недоступен: {error}"}), 503


@catalog_api.route("/products", methods=["GET"])
def products() -> Tuple[Response, int]:
    """Filtered, sorted and paged products.

    Query params: brand, category, weight, flavor, type, q, sort, lang,
    page (1-based) and per_page.
    """
    try:
        data = _catalog()
    except CatalogError as e:
        return _unavailable(e)

    lang = "en" if request.args.get("lang") == "en" else "ru"
    matched = filter_products(
        data.products,
        data.categories,
        brand=request.args.get("brand"),
        category=request.args.get("category"),
        weight=request.args.get("weight"),
        flavor=request.args.get("flavor"),
        product_type=request.args.get("type"),
        q=request.args.get("q"),
        lang=lang,
    )
    matched = sort_products(matched, request.args.get("sort"))

    per_page = max(1, min(_int_arg("per_page", current_app.config["API_PER_PAGE"]), API_MAX_PER_PAGE))
    cursor = PageCursor(len(matched), page_size=per_page, index=_int_arg("page", 1) - 1)
    start, stop = cursor.bounds()

    return jsonify({
        "success": True,
        "products": matched[start:stop],
        "total": len(matched),
        "page": cursor.index + 1,
        "pages": cursor.page_count,
        "perPage": per_page,
        "lang": lang,
    }), 200


@catalog_api.route("/suggest", methods=["GET"])
def suggest() -> Tuple[Response, int]:
    try:
        data = _catalog()
    except CatalogError as e:
        return _unavailable(e)
    q = request.args.get("q", "").strip()
    return jsonify({"success": True, "query": q, "suggestions": generate_suggestions(data, q)}), 200


@catalog_api.route("/categories", methods=["GET"])
def categories() -> Tuple[Response, int]:
    try:
        data = _catalog()
    except CatalogError as e:
        return _unavailable(e)

    counts: Dict[str, int] = {}
    for product in data.products:
        key = product.get("category")
        if key:
            counts[key] = counts.get(key, 0) + 1

    result = []
    for key, info in data.categories.items():
        info = info if isinstance(info, dict) else {}
        result.append({
            "id": key,
            "nameRu": info.get("nameRu") or key,
            "nameEn": info.get("nameEn") or info.get("nameRu") or key,
            "count": counts.get(key, 0),
        })
    return jsonify({"success": True, "categories": result}), 200


@catalog_api.route("/brands", methods=["GET"])
def brands() -> Tuple[Response, int]:
    try:
        data = _catalog()
    except CatalogError as e:
        return _unavailable(e)

    counts: Dict[str, int] = {}
    for product in data.products:
        key = normalize_brand(product.get("brand"))
        if key:
            counts[key] = counts.get(key, 0) + 1

    result = []
    for brand in data.brands:
        entry = dict(brand) if isinstance(brand, dict) else {"name": str(brand)}
        entry["key"] = normalize_brand(entry.get("name"))
        entry["count"] = counts.get(entry["key"], 0)
        result.append(entry)
    return jsonify({"success": True, "brands": result}), 200
