"""Tests for CSV export, per-item merge and catalog summaries."""

import csv
import json

import pytest

from catalog.export import CSV_FIELDS, export_catalog_to_csv, merge_item_files, product_to_row
from catalog.models import CatalogData
from catalog.report import format_summary, summarize_catalog
from catalog.store import CatalogError


class TestCsvExport:
    """Exporting the catalog to CSV."""

    def test_product_to_row(self):
        row = product_to_row({
            "id": "x",
            "flavors": ["арбуз", "кола"],
            "tags": [],
            "weight": None,
            "description": {"ru": "Текст"},
        })
        assert row["flavors"] == "арбуз|кола"
        assert row["tags"] == ""
        assert row["weight"] == ""
        assert json.loads(row["description"]) == {"ru": "Текст"}
        assert set(row) == set(CSV_FIELDS)

    def test_export(self, tmp_path, sample_catalog):
        csv_path = tmp_path / "out" / "products.csv"
        count = export_catalog_to_csv(CatalogData.from_dict(sample_catalog), csv_path)

        assert count == 3
        with open(csv_path, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 3
        assert rows[0]["nameRu"] == "Кислые ремешки Арбуз"
        assert rows[0]["tags"] == "marmalade|belts"
        assert rows[2]["image"] == ""

    def test_export_empty_catalog(self, tmp_path):
        csv_path = tmp_path / "products.csv"
        assert export_catalog_to_csv(CatalogData(), csv_path) == 0
        assert not csv_path.exists()


class TestMergeItems:
    """Merging out/products/*.json."""

    def test_merge(self, tmp_path):
        items = tmp_path / "out" / "products"
        items.mkdir(parents=True)
        (items / "b.json").write_text(json.dumps({"id": "b"}), encoding="utf-8")
        (items / "a.json").write_text(json.dumps({"id": "a"}), encoding="utf-8")
        (items / "_issues.json").write_text(json.dumps([{"id": "z"}]), encoding="utf-8")
        (items / "list.json").write_text(json.dumps([1, 2]), encoding="utf-8")
        (items / "broken.json").write_text("{", encoding="utf-8")

        count, errors = merge_item_files(items)

        assert count == 2
        assert [e["file"] for e in errors] == ["broken.json"]
        merged = json.loads((tmp_path / "out" / "products.json").read_text(encoding="utf-8"))
        assert [p["id"] for p in merged] == ["a", "b"]

    def test_custom_output(self, tmp_path):
        items = tmp_path / "items"
        items.mkdir()
        (items / "a.json").write_text(json.dumps({"id": "a"}), encoding="utf-8")
        out = tmp_path / "all.json"
        assert merge_item_files(items, out) == (1, [])
        assert out.exists()

    def test_missing_directory(self, tmp_path):
        with pytest.raises(CatalogError):
            merge_item_files(tmp_path / "nope")


class TestSummary:
    """Counts and field coverage."""

    def test_summarize(self, sample_catalog):
        summary = summarize_catalog(CatalogData.from_dict(sample_catalog))

        assert summary["total"] == 3
        by_category = {row["category"]: row for row in summary["byCategory"]}
        assert by_category["marmalade"]["name"] == "Мармелад"
        assert by_category["marmalade"]["count"] == 1
        assert {row["brand"] for row in summary["byBrand"]} == {"TAYAS", "PAKEL", "PUFFI"}
        assert summary["coverage"]["image"] == pytest.approx(0.667)
        assert summary["coverage"]["seo"] == 0.0

    def test_unknown_category_and_brand(self):
        summary = summarize_catalog(CatalogData(products=[{"id": "x"}, {"id": "y", "category": "jelly"}]))
        by_category = {row["category"]: row["count"] for row in summary["byCategory"]}
        assert by_category == {"unknown": 1, "jelly": 1}
        assert summary["byBrand"] == [{"brand": "UNKNOWN", "count": 2}]

    def test_empty_catalog(self):
        assert summarize_catalog(CatalogData())["total"] == 0

    def test_format_summary(self, sample_catalog):
        text = format_summary(summarize_catalog(CatalogData.from_dict(sample_catalog)))
        assert "Total products: 3" in text
        assert "Мармелад (marmalade): 1" in text
        assert "image: 67%" in text
