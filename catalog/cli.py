"""Command-line interface for the catalog tools."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from catalog.audit import analyze_sanitation, audit_pages, validate_catalog
from catalog.builder import BuildSettings, build_catalog
from catalog.config import CATALOG_RELPATH, OUT_SUBDIR, PROJECT_ROOT, REPORTS_SUBDIR
from catalog.dedupe import deduplicate_products
from catalog.export import export_catalog_to_csv, merge_item_files
from catalog.logging_config import get_logger, setup_logging
from catalog.prune import load_excluded_images, remove_products_by_images
from catalog.report import format_summary, summarize_catalog
from catalog.seo import prepare_search_seo
from catalog.store import (
    CatalogError,
    edit_catalog,
    list_backups,
    load_catalog,
    restore_backup,
    restore_brands_categories,
    write_json,
)
from catalog.tags import enrich_tags

__all__ = ["main", "parse_args"]

logger = get_logger("cli")


def _catalog_path(args: argparse.Namespace) -> Path:
    return Path(args.catalog) if args.catalog else args.root / CATALOG_RELPATH


def _write_report(args: argparse.Namespace, name: str, report: dict) -> Path:
    path = args.root / REPORTS_SUBDIR / f"{name}-report.json"
    write_json(path, report)
    print(f"Report saved: {path}")
    return path


def cmd_build(args: argparse.Namespace) -> int:
    settings = BuildSettings(
        project_root=args.root,
        catalog_path=_catalog_path(args),
        write_item_files=not args.no_item_files,
    )
    result = build_catalog(settings)
    summary = result.report["summary"]
    print(f"Products: {summary['totalProducts']}")
    print(f"Issues: {summary['totalIssues']}")
    print(f"Success rate: {summary['successRate']}")
    return 0


def cmd_dedupe(args: argparse.Namespace) -> int:
    with edit_catalog(_catalog_path(args), "deduplicate", dry_run=args.dry_run) as data:
        report = deduplicate_products(data, args.root)
    stats = report["stats"]
    print(f"Products: {stats['beforeCount']} -> {stats['afterCount']}")
    print(f"Merged groups: {stats['merged']}, removed: {stats['removed']}, variants renamed: {stats['normalized']}")
    print(f"Suspicious cases: {len(report['suspiciousCases'])}")
    _write_report(args, "deduplicate", report)
    return 0


def cmd_enrich_tags(args: argparse.Namespace) -> int:
    with edit_catalog(_catalog_path(args), "enrich-tags", dry_run=args.dry_run) as data:
        report = enrich_tags(data)
    stats = report["stats"]
    print(f"Enriched {stats['enriched']}/{stats['total']} products ({stats['tagsBefore']} -> {stats['tagsAfter']} tags)")
    _write_report(args, "enrich-tags", report)
    return 0


def cmd_prepare_seo(args: argparse.Namespace) -> int:
    with edit_catalog(_catalog_path(args), "prepare-search-seo", dry_run=args.dry_run) as data:
        report = prepare_search_seo(data, args.root)
    for check, passed in report["checks"].items():
        print(f"  [{'ok' if passed else 'FAIL'}] {check}")
    _write_report(args, "prepare-search-seo", report)
    return 0


def cmd_prune_images(args: argparse.Namespace) -> int:
    excluded = load_excluded_images(args.exclude_file)
    with edit_catalog(_catalog_path(args), "remove-by-images", dry_run=args.dry_run) as data:
        report = remove_products_by_images(data, excluded)
    stats = report["stats"]
    print(f"Removed {stats['removed']} of {stats['total']} products")
    _write_report(args, "remove-products-by-images", report)
    return 0


def cmd_restore(args: argparse.Namespace) -> int:
    data = restore_backup(_catalog_path(args), backup=args.backup, label=args.label)
    print(f"Restored {len(data.products)} products, {len(data.categories)} categories, {len(data.brands)} brands")
    return 0


def cmd_restore_meta(args: argparse.Namespace) -> int:
    data = restore_brands_categories(_catalog_path(args), backup=args.backup, label=args.label)
    print(f"Categories: {len(data.categories)}, brands: {len(data.brands)}, products kept: {len(data.products)}")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    result = validate_catalog(load_catalog(_catalog_path(args)), args.root)
    print(f"Products: {result['products']}")
    print(f"Duplicate ids: {len(result['duplicateIds'])}")
    print(f"Missing images: {len(result['missingImages'])}")
    print("OK" if result["ok"] else "FAILED")
    return 0 if result["ok"] else 1


def cmd_sanitation(args: argparse.Namespace) -> int:
    report = analyze_sanitation(load_catalog(_catalog_path(args)), args.root)
    print(f"Suffixed ids: {len(report['withSuffix'])}")
    print(f"Shared images: {len(report['duplicateImages'])} groups")
    print(f"Missing images: {len(report['missingImages'])}")
    print(f"Estimated junk: ~{report['estimatedJunk']} products")
    _write_report(args, "sanitation-analysis", report)
    return 0


def cmd_audit_pages(args: argparse.Namespace) -> int:
    site_root = Path(args.site_root) if args.site_root else args.root
    result = audit_pages(site_root)
    summary = result["summary"]
    print(f"Pages checked: {summary['pages']}")
    print(f"Title + viewport: {'all present' if summary['titleAndViewportOk'] else 'some missing'}")
    print(f"Meta description: {'all present' if summary['descriptionOk'] else 'some missing (report only)'}")
    return 0


def cmd_export_csv(args: argparse.Namespace) -> int:
    csv_path = Path(args.path) if args.path else args.root / OUT_SUBDIR / "products.csv"
    if not csv_path.is_absolute():
        csv_path = args.root / csv_path
    export_catalog_to_csv(load_catalog(_catalog_path(args)), csv_path)
    return 0


def cmd_merge_items(args: argparse.Namespace) -> int:
    products_dir = Path(args.path) if args.path else args.root / OUT_SUBDIR / "products"
    if not products_dir.is_absolute():
        products_dir = args.root / products_dir
    count, errors = merge_item_files(products_dir, args.output)
    print(f"Merged {count} products ({len(errors)} unreadable files)")
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    print(format_summary(summarize_catalog(load_catalog(_catalog_path(args)))))
    return 0


def cmd_backups(args: argparse.Namespace) -> int:
    backups = list_backups(_catalog_path(args), args.label)
    if not backups:
        print("No backups found.")
        return 0
    for backup in backups:
        print(f"  {backup.name}")
    return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--root",
        type=Path,
        default=PROJECT_ROOT,
        help=f"Project root holding foods/, data/ and out/ (default: {PROJECT_ROOT})",
    )
    common.add_argument(
        "--catalog",
        metavar="PATH",
        help="Catalog JSON path (default: <root>/data/products.json)",
    )
    common.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    dry_run = argparse.ArgumentParser(add_help=False)
    dry_run.add_argument("--dry-run", action="store_true", help="Report only, do not write the catalog")

    parser = argparse.ArgumentParser(
        prog="python -m catalog.cli",
        description="Catalog ingestion, enrichment and audit tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Rebuild data/products.json from foods/
  python -m catalog.cli build

  # Enrichment passes (each backs up the catalog first)
  python -m catalog.cli dedupe --dry-run
  python -m catalog.cli enrich-tags
  python -m catalog.cli prepare-seo

  # Remove products whose image is listed in catalog/excluded-images.json
  python -m catalog.cli prune-images

  # Regression checks (exit status 1 on failure)
  python -m catalog.cli validate

  # Undo the last SEO pass
  python -m catalog.cli restore --label prepare-search-seo

  # Export to CSV / merge out/products/*.json
  python -m catalog.cli export-csv --path out/products.csv
  python -m catalog.cli merge-items --path out/products
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    p = sub.add_parser("build", parents=[common], help="Build the catalog from foods/")
    p.add_argument("--no-item-files", action="store_true", help="Skip out/products/<id>.json")
    p.set_defaults(func=cmd_build)

    p = sub.add_parser("dedupe", parents=[common, dry_run], help="Merge duplicates, rename variants")
    p.set_defaults(func=cmd_dedupe)

    p = sub.add_parser("enrich-tags", parents=[common, dry_run], help="Rebuild product tags")
    p.set_defaults(func=cmd_enrich_tags)

    p = sub.add_parser("prepare-seo", parents=[common, dry_run], help="Add searchText/seo, normalise ids")
    p.set_defaults(func=cmd_prepare_seo)

    p = sub.add_parser("prune-images", parents=[common, dry_run], help="Remove products by excluded image")
    p.add_argument("--exclude-file", type=Path, help="JSON file with an images list")
    p.set_defaults(func=cmd_prune_images)

    p = sub.add_parser("restore", parents=[common], help="Restore the catalog from a backup")
    p.add_argument("--backup", type=Path, help="Backup file (default: newest)")
    p.add_argument("--label", help="Only consider backups with this label")
    p.set_defaults(func=cmd_restore)

    p = sub.add_parser("restore-meta", parents=[common], help="Restore categories and brands from a backup")
    p.add_argument("--backup", type=Path, help="Backup file (default: newest prepare-search-seo backup)")
    p.add_argument("--label", default="prepare-search-seo", help="Backup label (default: prepare-search-seo)")
    p.set_defaults(func=cmd_restore_meta)

    p = sub.add_parser("validate", parents=[common], help="Check unique ids and image files")
    p.set_defaults(func=cmd_validate)

    p = sub.add_parser("sanitation", parents=[common], help="Report likely junk products")
    p.set_defaults(func=cmd_sanitation)

    p = sub.add_parser("audit-pages", parents=[common], help="Check root *.html pages for SEO basics")
    p.add_argument("--site-root", help="Directory with the pages (default: --root)")
    p.set_defaults(func=cmd_audit_pages)

    p = sub.add_parser("export-csv", parents=[common], help="Export the catalog to CSV")
    p.add_argument("--path", help="CSV path (default: <root>/out/products.csv)")
    p.set_defaults(func=cmd_export_csv)

    p = sub.add_parser("merge-items", parents=[common], help="Merge out/products/*.json into one file")
    p.add_argument("--path", "-p", help="Directory with per-product JSON (default: <root>/out/products)")
    p.add_argument("--output", help="Output file (default: products.json beside that directory)")
    p.set_defaults(func=cmd_merge_items)

    p = sub.add_parser("stats", parents=[common], help="Products by category and brand")
    p.set_defaults(func=cmd_stats)

    p = sub.add_parser("backups", parents=[common], help="List catalog backups, newest first")
    p.add_argument("--label", help="Only this label")
    p.set_defaults(func=cmd_backups)

    args = parser.parse_args(argv)
    args.root = Path(args.root).resolve()
    return args


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    args = parse_args(argv)
    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_dir=args.root / "logs",
    )

    try:
        return args.func(args)
    except CatalogError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
