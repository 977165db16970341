"""Shared test fixtures and utilities for the web test suite."""

import json
from pathlib import Path

import pytest

from web import logging_utils
from web.app import create_app
from web.catalog_api import _cache
from web.extensions import limiter


@pytest.fixture
def web_catalog():
    """Catalog document with a few products, categories and brands."""
    return {
        "products": [
            {
                "id": "tayas-belts-kislye-remeshki-arbuz-15g",
                "nameRu": "Кислые ремешки Арбуз",
                "nameEn": "Sour Belts Watermelon",
                "brand": "TAYAS",
                "category": "marmalade",
                "type": "belts",
                "weight": "15gr",
                "sku": "PL1048",
                "flavors": ["арбуз"],
                "tags": ["marmalade", "belts", "watermelon"],
                "popularityIndex": 2,
            },
            {
                "id": "panda-lee-bears-mishki-kola-80g",
                "nameRu": "Мишки Кола",
                "nameEn": "Cola Bears",
                "brand": "Panda Lee",
                "category": "marmalade",
                "type": "bears",
                "weight": "80gr",
                "flavors": ["кола"],
                "tags": ["bears", "cola"],
                "popularityIndex": 1,
            },
            {
                "id": "pakel-cookies-pechene-ovsyanoe-100g",
                "nameRu": "Печенье овсяное",
                "nameEn": "Oat Cookies",
                "brand": "PAKEL",
                "category": "cookies",
                "type": "cookies",
                "weight": "100gr",
                "flavors": [],
                "tags": ["cookies"],
                "description": {"ru": "Хрустящее печенье"},
            },
        ],
        "categories": {
            "marmalade": {"nameRu": "Мармелад", "nameEn": "Marmalade"},
            "cookies": {"nameRu": "Печенье", "nameEn": "Cookies"},
        },
        "brands": [
            {"name": "TAYAS"},
            {"name": "PANDA LEE", "displayName": "Panda Lee Candy"},
            {"name": "PAKEL"},
        ],
    }


@pytest.fixture
def site_root(tmp_path, web_catalog):
    """A small static site: pages, assets, a dot-file and the catalog."""
    root = tmp_path / "site"
    (root / "assets" / "css").mkdir(parents=True)
    (root / "data").mkdir()
    (root / "news").mkdir()
    (root / "index.html").write_text("<h1>Главная</h1>", encoding="utf-8")
    (root / "partners.html").write_text("<h1>Партнёрам</h1>", encoding="utf-8")
    (root / "news" / "index.html").write_text("<h1>Новости</h1>", encoding="utf-8")
    (root / "robots.txt").write_text("User-agent: *\n", encoding="utf-8")
    (root / "assets" / "css" / "site.css").write_text("body{}", encoding="utf-8")
    (root / ".env").write_text("SMTP_PASS=secret\n", encoding="utf-8")
    (root / "data" / "products.json").write_text(
        json.dumps(web_catalog, ensure_ascii=False), encoding="utf-8"
    )
    return root


@pytest.fixture
def catalog_file(site_root) -> Path:
    return site_root / "data" / "products.json"


@pytest.fixture(autouse=True)
def log_dir(tmp_path, monkeypatch):
    """Send JSONL interaction logs to a temporary directory."""
    logs = tmp_path / "logs"
    monkeypatch.setattr(logging_utils, "LOG_DIR", logs)
    return logs


@pytest.fixture(autouse=True)
def smtp_env(monkeypatch):
    """Baseline SMTP environment; tests unset or change values as needed."""
    monkeypatch.setenv("SMTP_HOST", "smtp.example.com")
    monkeypatch.setenv("SMTP_PORT", "587")
    monkeypatch.setenv("SMTP_SECURE", "false")
    monkeypatch.setenv("SMTP_USER", "robot@example.com")
    monkeypatch.setenv("SMTP_PASS", "hunter2")
    monkeypatch.delenv("SMTP_FROM", raising=False)
    monkeypatch.setenv("EMAIL_TO", "sales@example.com")


@pytest.fixture
def app_config(site_root, catalog_file):
    return {
        "TESTING": True,
        "SITE_ROOT": site_root,
        "CATALOG_PATH": catalog_file,
    }


@pytest.fixture
def app(app_config):
    """Create a Flask app with test config and fresh limiter/catalog state."""
    _cache.clear()
    flask_app = create_app(app_config)
    with flask_app.app_context():
        limiter.reset()
    yield flask_app
    _cache.clear()


@pytest.fixture
def client(app):
    """Create Flask test client."""
    with app.test_client() as test_client:
        yield test_client
