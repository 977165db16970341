"""Test the read-only catalog API."""

import json
import os

import pytest

from catalog.models import CatalogData
from web.catalog_api import category_name, filter_products, generate_suggestions, sort_products


def ids(products):
    return [p["id"].split("-")[0] for p in products]


class TestFilterProducts:
    """Filtering rules shared with the catalog page."""

    @pytest.fixture
    def data(self, web_catalog):
        return CatalogData.from_dict(web_catalog)

    def test_no_filters(self, data):
        assert len(filter_products(data.products, data.categories)) == 3

    @pytest.mark.parametrize("brand", ["panda-lee", "PANDA LEE", "Panda Lee", "pandalee"])
    def test_brand_strict_normalisation(self, data, brand):
        assert ids(filter_products(data.products, brand=brand)) == ["panda"]

    def test_category_and_weight(self, data):
        assert ids(filter_products(data.products, category="marmalade")) == ["tayas", "panda"]
        assert ids(filter_products(data.products, weight="100gr")) == ["pakel"]
        assert filter_products(data.products, weight="100") == []

    def test_flavor_substring(self, data):
        assert ids(filter_products(data.products, flavor="КОЛ")) == ["panda"]

    def test_type(self, data):
        assert ids(filter_products(data.products, product_type="belts")) == ["tayas"]

    def test_search_category_name(self, data):
        assert ids(filter_products(data.products, data.categories, q="мармелад")) == ["tayas", "panda"]

    def test_search_description_and_sku(self, data):
        assert ids(filter_products(data.products, data.categories, q="Хрустящее")) == ["pakel"]
        assert ids(filter_products(data.products, data.categories, q="pl1048")) == ["tayas"]

    def test_search_normalised_brand(self, data):
        assert ids(filter_products(data.products, data.categories, q="pandalee")) == ["panda"]

    def test_combined_filters(self, data):
        assert filter_products(data.products, data.categories, category="cookies", q="кола") == []


class TestSorting:
    """popularity and alphabet orders."""

    def test_popularity_missing_last(self, web_catalog):
        assert ids(sort_products(web_catalog["products"], "popularity")) == ["panda", "tayas", "pakel"]

    def test_alphabet(self, web_catalog):
        assert ids(sort_products(web_catalog["products"], "alphabet")) == ["tayas", "panda", "pakel"]

    def test_unknown_order_keeps_input(self, web_catalog):
        assert ids(sort_products(web_catalog["products"], "price")) == ["tayas", "panda", "pakel"]


class TestCategoryName:

    def test_localised(self, web_catalog):
        categories = web_catalog["categories"]
        assert category_name(categories, "cookies") == "Печенье"
        assert category_name(categories, "cookies", "en") == "Cookies"
        assert category_name(categories, "toys") == "toys"
        assert category_name(categories, None) == ""


class TestSuggestions:
    """Search-box suggestions."""

    @pytest.fixture
    def data(self, web_catalog):
        return CatalogData.from_dict(web_catalog)

    def test_short_query(self, data):
        assert generate_suggestions(data, "c") == []
        assert generate_suggestions(data, "") == []

    def test_sources_in_order(self, data):
        assert generate_suggestions(data, "co") == ["Cola Bears", "cola", "Oat Cookies", "cookies", "Cookies"]

    def test_exact_name_excluded(self, data):
        assert generate_suggestions(data, "cola bears") == []

    def test_brand_display_name(self, data):
        assert generate_suggestions(data, "panda") == ["Panda Lee", "Panda Lee Candy"]

    def test_limit(self):
        data = CatalogData(products=[{"id": f"t{i}", "nameRu": f"Торт {i}"} for i in range(20)])
        assert len(generate_suggestions(data, "торт")) == 8


class TestProductsEndpoint:
    """Test GET /api/products."""

    def test_all_products(self, client):
        response = client.get("/api/products")
        assert response.status_code == 200
        data = response.json
        assert data["success"] is True
        assert data["total"] == 3
        assert data["page"] == 1
        assert data["pages"] == 1
        assert data["lang"] == "ru"

    def test_filters_and_sort(self, client):
        response = client.get("/api/products", query_string={"category": "marmalade", "sort": "popularity"})
        assert ids(response.json["products"]) == ["panda", "tayas"]

    def test_english_category_search(self, client):
        response = client.get("/api/products", query_string={"q": "Cookies", "lang": "en"})
        assert response.json["lang"] == "en"
        assert ids(response.json["products"]) == ["pakel"]

    def test_page_clamped(self, client):
        response = client.get("/api/products", query_string={"per_page": 2, "page": 5})
        data = response.json
        assert data["page"] == 2
        assert data["pages"] == 2
        assert len(data["products"]) == 1

        response = client.get("/api/products", query_string={"per_page": 2, "page": 0})
        assert response.json["page"] == 1
        assert len(response.json["products"]) == 2

    def test_bad_paging_params(self, client):
        response = client.get("/api/products", query_string={"per_page": "abc", "page": "x"})
        assert response.status_code == 200
        assert response.json["page"] == 1
        assert response.json["perPage"] == 24

    def test_empty_result(self, client):
        response = client.get("/api/products", query_string={"brand": "nobody"})
        data = response.json
        assert data["total"] == 0
        assert data["products"] == []
        assert data["page"] == 1

    def test_missing_catalog(self, client, catalog_file):
        catalog_file.unlink()
        response = client.get("/api/products")
        assert response.status_code == 503
        assert response.json["success"] is False

    def test_broken_catalog(self, client, catalog_file):
        catalog_file.write_text("{", encoding="utf-8")
        assert client.get("/api/brands").status_code == 503

    def test_reload_after_change(self, client, catalog_file, web_catalog):
        assert client.get("/api/products").json["total"] == 3

        web_catalog["products"] = web_catalog["products"][:1]
        catalog_file.write_text(json.dumps(web_catalog, ensure_ascii=False), encoding="utf-8")
        stat = catalog_file.stat()
        os.utime(catalog_file, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))

        assert client.get("/api/products").json["total"] == 1


class TestOtherEndpoints:
    """Test suggest, categories and brands."""

    def test_suggest(self, client):
        response = client.get("/api/suggest", query_string={"q": "ко"})
        assert response.status_code == 200
        assert response.json["suggestions"] == ["Мишки Кола"]

    def test_suggest_short(self, client):
        assert client.get("/api/suggest?q=a").json["suggestions"] == []

    def test_categories(self, client):
        categories = {c["id"]: c for c in client.get("/api/categories").json["categories"]}
        assert categories["marmalade"]["count"] == 2
        assert categories["cookies"]["nameEn"] == "Cookies"

    def test_brands(self, client):
        brands = client.get("/api/brands").json["brands"]
        assert [b["key"] for b in brands] == ["TAYAS", "PANDALEE", "PAKEL"]
        assert all(b["count"] == 1 for b in brands)
        assert brands[1]["displayName"] == "Panda Lee Candy"
