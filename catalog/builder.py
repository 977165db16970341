"""Build catalog products from the foods/ tree.

Scans foods/, turns each product group into a product record and writes:

- data/products.json (the catalog the site reads)
- out/products/<id>.json (one file per product)
- out/products.json (all products as one array)
- out/issues.json (problems found along the way)
- out/report.json (scan/build statistics)
"""

import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from catalog.config import (
    CATALOG_RELPATH,
    EXPECTED_BRAND_FOLDERS,
    FOODS_SUBDIR,
    LONG_PATH_LIMIT,
    OUT_SUBDIR,
    PROJECT_ROOT,
)
from catalog.documents import extract_document_info, parse_document
from catalog.extract import detect_category, detect_sub_brand, detect_type, extract_flavor, extract_weight
from catalog.images import pick_main_image
from catalog.logging_config import get_logger, log_catalog_event
from catalog.models import CatalogData, Issue, Product, ProductFlags, ProductGroup
from catalog.scanner import folder_hash, scan_foods
from catalog.store import (
    CatalogError,
    create_backup,
    list_backups,
    load_catalog,
    save_catalog,
    write_json,
)
from catalog.text_utils import clean_product_name

__all__ = ["BuildSettings", "BuildResult", "process_group", "build_catalog", "check_foods_dir"]

logger = get_logger("builder")

DESCRIPTION_LIMIT = 500

# Catalog metadata falls back to this backup when the current file has none
METADATA_BACKUP_LABEL = "prepare-search-seo"


@dataclass
class BuildSettings:
    """Where the builder reads from and writes to."""

    project_root: Path = PROJECT_ROOT
    foods_dir: Optional[Path] = None
    catalog_path: Optional[Path] = None
    out_dir: Optional[Path] = None
    write_item_files: bool = True

    def __post_init__(self):
        self.project_root = Path(self.project_root)
        if self.foods_dir is None:
            self.foods_dir = self.project_root / FOODS_SUBDIR
        if self.catalog_path is None:
            self.catalog_path = self.project_root / CATALOG_RELPATH
        if self.out_dir is None:
            self.out_dir = self.project_root / OUT_SUBDIR


@dataclass
class BuildResult:
    products: List[Dict[str, Any]] = field(default_factory=list)
    issues: List[Dict[str, Any]] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)
    report: Dict[str, Any] = field(default_factory=dict)


def _name_from_file(path: str) -> str:
    return clean_product_name(Path(path).stem)


def _relative_to_root(path: str, project_root: Path) -> str:
    return Path(os.path.relpath(path, project_root)).as_posix()


def process_group(group: ProductGroup, project_root: Path) -> Tuple[Product, List[Issue]]:
    """Turn one product group into a Product and the issues it raised."""
    issues: List[Issue] = []
    folder = group.product_folder
    product_id = group.sku or f"NO-SKU-{folder_hash(folder)}"

    doc_info = None
    doc_parse_failed = False
    if group.doc_paths:
        paragraphs: List[str] = []
        for doc_path in group.doc_paths:
            parsed = parse_document(doc_path)
            if parsed is None:
                doc_parse_failed = True
            else:
                paragraphs.extend(parsed)
        if paragraphs:
            doc_info = extract_document_info(paragraphs)
        elif doc_parse_failed:
            issues.append(Issue(product_id, "doc_parse_failed", folder, {
                "files": [Path(p).name for p in group.doc_paths],
            }))

    # Name: document file name, then placeholder banner, then folder, then id
    name = ""
    placeholder_used_for_name = False
    if group.doc_paths:
        name = _name_from_file(group.doc_paths[0])
    if not name and group.placeholder_images:
        name = _name_from_file(group.placeholder_images[0])
        placeholder_used_for_name = bool(name)
    if not name:
        name = clean_product_name(Path(folder).name)
    if not name:
        name = group.sku or product_id

    main_image = pick_main_image(group.image_paths)
    flavor = extract_flavor(folder)

    flags = ProductFlags(
        missing_text=doc_info is None and not doc_parse_failed,
        missing_images=not group.image_paths,
        placeholder_removed=bool(group.placeholder_images),
        placeholder_used_for_name=placeholder_used_for_name,
        no_sku=not group.sku,
        doc_parse_failed=doc_parse_failed,
    )

    product = Product(
        id=product_id,
        name=name,
        brand=detect_sub_brand(folder, group.brand),
        category=detect_category(folder) or "unknown",
        image=_relative_to_root(main_image, project_root) if main_image else None,
        sku=group.sku,
        type=detect_type(folder),
        weight=extract_weight(folder),
        flavors=[flavor] if flavor else [],
        flags=flags,
        source_path=folder,
    )

    if doc_info:
        product.composition = doc_info["composition"]
        product.nutrition = doc_info["nutrition"]
        product.packaging = doc_info["packaging"]
        product.description = doc_info["full_text"][:DESCRIPTION_LIMIT]

    if flags.missing_text:
        issues.append(Issue(product_id, "missing_text", folder))
    if flags.missing_images:
        issues.append(Issue(product_id, "missing_images", folder))
    if flags.no_sku:
        issues.append(Issue(product_id, "no_sku", folder))
    if flags.placeholder_removed:
        issues.append(Issue(product_id, "placeholder_images_removed", folder, {
            "removed": len(group.placeholder_images),
        }))
    if len(folder) > LONG_PATH_LIMIT:
        issues.append(Issue(product_id, "long_path", folder, {"length": len(folder)}))

    return product, issues


def check_foods_dir(foods_dir: Path) -> List[str]:
    """Return the expected brand folders present in foods/.

    Raises:
        CatalogError: foods/ is missing or holds none of the brand folders
    """
    if not foods_dir.is_dir():
        raise CatalogError(f"foods folder not found: {foods_dir}")

    present = {entry.name.lower() for entry in foods_dir.iterdir() if entry.is_dir()}
    found = [name for name in EXPECTED_BRAND_FOLDERS if name.lower() in present]
    if not found:
        raise CatalogError(
            f"No expected brand folders in {foods_dir} "
            f"(expected one of: {', '.join(EXPECTED_BRAND_FOLDERS)})"
        )
    return found


def _existing_metadata(catalog_path: Path) -> Tuple[Dict[str, Any], List[Any]]:
    """Categories and brands to carry over from the current catalog or its backup."""
    categories: Dict[str, Any] = {}
    brands: List[Any] = []

    if catalog_path.exists():
        try:
            current = load_catalog(catalog_path)
            categories, brands = current.categories, current.brands
        except CatalogError as e:
            logger.warning(f"Could not read existing catalog metadata: {e}")

    if not categories or not brands:
        backups = list_backups(catalog_path, METADATA_BACKUP_LABEL)
        if backups:
            try:
                backup = load_catalog(backups[0])
                if not categories and backup.categories:
                    categories = backup.categories
                    logger.info(f"Categories taken from backup {backups[0].name}")
                if not brands and backup.brands:
                    brands = backup.brands
                    logger.info(f"Brands taken from backup {backups[0].name}")
            except CatalogError as e:
                logger.warning(f"Could not read backup {backups[0].name}: {e}")

    return categories, brands


def build_catalog(settings: Optional[BuildSettings] = None) -> BuildResult:
    """Scan foods/ and (re)write the catalog and the out/ files.

    A group that raises is recorded as a ``processing_error`` issue and skipped.

    Raises:
        CatalogError: foods/ is missing or has no brand folders
    """
    settings = settings or BuildSettings()
    found_brands = check_foods_dir(settings.foods_dir)
    logger.info(f"Found {len(found_brands)}/{len(EXPECTED_BRAND_FOLDERS)} brand folders")

    groups, stats = scan_foods(settings.foods_dir)
    stats.update({
        "productsCreated": 0,
        "noSkuGroups": 0,
        "missingText": 0,
        "missingImages": 0,
        "noSku": 0,
        "docParseFailed": 0,
        "longPaths": 0,
    })

    products: List[Dict[str, Any]] = []
    issues: List[Dict[str, Any]] = []

    for index, (key, group) in enumerate(groups.items(), start=1):
        if index % 10 == 0:
            logger.debug(f"Processed {index}/{len(groups)} groups")
        try:
            product, group_issues = process_group(group, settings.project_root)
        except Exception as e:
            logger.warning(f"Failed to process {key}: {e}")
            issues.append(Issue("ERROR", "processing_error", group.product_folder, {"error": str(e)}).to_dict())
            continue

        flags = product.flags
        stats["productsCreated"] += 1
        stats["noSkuGroups"] += int(flags.no_sku)
        stats["noSku"] += int(flags.no_sku)
        stats["missingText"] += int(flags.missing_text)
        stats["missingImages"] += int(flags.missing_images)
        stats["docParseFailed"] += int(flags.doc_parse_failed)
        stats["longPaths"] += int(len(group.product_folder) > LONG_PATH_LIMIT)

        products.append(product.to_dict())
        issues.extend(issue.to_dict() for issue in group_issues)

    out_dir = settings.out_dir
    if settings.write_item_files:
        items_dir = out_dir / "products"
        items_dir.mkdir(parents=True, exist_ok=True)
        for product in products:
            write_json(items_dir / f"{product['id']}.json", product)

    categories, brands = _existing_metadata(settings.catalog_path)
    if settings.catalog_path.exists():
        create_backup(settings.catalog_path, "build")
    save_catalog(CatalogData(products=products, categories=categories, brands=brands), settings.catalog_path)

    stats["issuesFound"] = len(issues)
    if products:
        success_rate = f"{(len(products) - len(issues)) / len(products) * 100:.2f}%"
    else:
        success_rate = "0.00%"
    report = {
        "timestamp": datetime.now().isoformat(),
        "stats": stats,
        "summary": {
            "totalProducts": len(products),
            "totalIssues": len(issues),
            "successRate": success_rate,
        },
    }

    write_json(out_dir / "products.json", products)
    write_json(out_dir / "issues.json", issues)
    write_json(out_dir / "report.json", report)

    log_catalog_event("build_complete", {
        "message": f"Built {len(products)} products with {len(issues)} issues",
        "products": len(products),
        "issues": len(issues),
        "categories": len(categories),
        "brands": len(brands),
    })
    return BuildResult(products=products, issues=issues, stats=stats, report=report)
