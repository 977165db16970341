"""Confectionery catalog build and enrichment tools."""

__version__ = "0.1.0"

# Re-export main components for convenient imports
from catalog.builder import BuildSettings, build_catalog
from catalog.config import CATALOG_PATH, FOODS_DIR, PROJECT_ROOT
from catalog.dedupe import deduplicate_products
from catalog.models import CatalogData, Issue, Product
from catalog.prune import remove_products_by_images
from catalog.seo import prepare_search_seo
from catalog.store import CatalogError, edit_catalog, load_catalog, save_catalog
from catalog.tags import enrich_tags

__all__ = [
    # Version
    "__version__",
    # Config
    "CATALOG_PATH",
    "FOODS_DIR",
    "PROJECT_ROOT",
    # Models
    "CatalogData",
    "Issue",
    "Product",
    # Storage
    "CatalogError",
    "load_catalog",
    "save_catalog",
    "edit_catalog",
    # Passes
    "BuildSettings",
    "build_catalog",
    "deduplicate_products",
    "enrich_tags",
    "prepare_search_seo",
    "remove_products_by_images",
]
