"""Catalog summaries: products per category and brand, field coverage."""

from typing import Any, Dict, List

import pandas as pd

from catalog.models import CatalogData

__all__ = ["catalog_frame", "summarize_catalog", "format_summary", "COVERAGE_FIELDS"]

COVERAGE_FIELDS = ["image", "weight", "type", "flavors", "tags", "sku", "description", "seo", "searchText"]


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (list, dict, str)):
        return len(value) > 0
    return True


def catalog_frame(data: CatalogData) -> pd.DataFrame:
    """One row per product with the columns the summary needs."""
    rows = []
    for product in data.products:
        row = {
            "id": product.get("id"),
            "brand": product.get("brand") or "UNKNOWN",
            "category": product.get("category") or "unknown",
        }
        for field in COVERAGE_FIELDS:
            row[f"has_{field}"] = _present(product.get(field))
        rows.append(row)
    return pd.DataFrame(rows, columns=["id", "brand", "category"] + [f"has_{f}" for f in COVERAGE_FIELDS])


def summarize_catalog(data: CatalogData) -> Dict[str, Any]:
    """Counts per category and brand plus the share of products having each field.

    Category names come from the catalog's ``categories`` block where present.
    """
    df = catalog_frame(data)
    if df.empty:
        return {"total": 0, "byCategory": [], "byBrand": [], "coverage": {}}

    category_names = {
        key: value.get("nameRu") or value.get("nameEn") or key
        for key, value in data.categories.items()
        if isinstance(value, dict)
    }

    by_category = df.groupby("category").size().sort_values(ascending=False)
    by_brand = df.groupby("brand").size().sort_values(ascending=False)
    coverage = df[[f"has_{f}" for f in COVERAGE_FIELDS]].mean()

    return {
        "total": int(len(df)),
        "byCategory": [
            {"category": cat, "name": category_names.get(cat, cat), "count": int(count)}
            for cat, count in by_category.items()
        ],
        "byBrand": [{"brand": brand, "count": int(count)} for brand, count in by_brand.items()],
        "coverage": {f: round(float(coverage[f"has_{f}"]), 3) for f in COVERAGE_FIELDS},
    }


def format_summary(summary: Dict[str, Any]) -> str:
    """Plain-text rendition of ``summarize_catalog`` output for the console."""
    lines: List[str] = [f"Total products: {summary['total']}", "", "By category:"]
    for row in summary["byCategory"]:
        lines.append(f"  {row['name']} ({row['category']}): {row['count']}")
    lines += ["", "By brand:"]
    for row in summary["byBrand"]:
        lines.append(f"  {row['brand']}: {row['count']}")
    lines += ["", "Field coverage:"]
    for field, share in summary["coverage"].items():
        lines.append(f"  {field}: {share:.0%}")
    return "\n".join(lines)
