"""Shared fixtures for the catalog test suite."""

import json
import logging
from pathlib import Path

import pytest
from PIL import Image


def write_image(path: Path, size=(200, 200), color=(200, 40, 60)) -> Path:
    """Create a small real image file (PNG) at ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(path, format="PNG")
    return path


@pytest.fixture
def make_image():
    """Factory fixture for writing test images."""
    return write_image


@pytest.fixture
def sample_products():
    """A handful of catalog records in the shape the site reads."""
    return [
        {
            "id": "tayas-belts-arbuz-15g",
            "name": "Кислые ремешки Арбуз",
            "nameRu": "Кислые ремешки Арбуз",
            "nameEn": "Sour Belts Watermelon",
            "brand": "TAYAS",
            "category": "marmalade",
            "type": "belts",
            "weight": "15gr",
            "flavors": ["арбуз"],
            "image": "assets/images/products/tayas/tayas-belts-arbuz-15gr.webp",
            "tags": ["marmalade", "belts"],
        },
        {
            "id": "pakel-cookies-ovsyanoe-100g",
            "name": "Печенье овсяное",
            "nameRu": "Печенье овсяное",
            "nameEn": "Oat Cookies",
            "brand": "PAKEL",
            "category": "cookies",
            "type": "cookies",
            "weight": "100gr",
            "flavors": [],
            "image": "assets/images/products/pakel/pakel-cookies-100gr.webp",
            "tags": ["cookies"],
        },
        {
            "id": "puffi-chocolate-bar",
            "name": "Шоколадный батончик",
            "brand": "PUFFI",
            "category": "chocolate",
            "image": None,
            "tags": [],
        },
    ]


@pytest.fixture
def sample_catalog(sample_products):
    """Catalog document with categories and brands blocks."""
    return {
        "products": sample_products,
        "categories": {
            "marmalade": {"nameRu": "Мармелад", "nameEn": "Marmalade"},
            "cookies": {"nameRu": "Печенье", "nameEn": "Cookies"},
            "chocolate": {"nameRu": "Шоколад", "nameEn": "Chocolate"},
        },
        "brands": [{"name": "TAYAS"}, {"name": "PAKEL"}, {"name": "PUFFI"}],
        "version": 3,
    }


@pytest.fixture
def catalog_root(tmp_path, sample_catalog):
    """Project root with data/products.json written from ``sample_catalog``."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "products.json").write_text(
        json.dumps(sample_catalog, ensure_ascii=False, indent=2), encoding="utf-8"
    )
    return tmp_path


@pytest.fixture
def catalog_path(catalog_root):
    return catalog_root / "data" / "products.json"


@pytest.fixture(autouse=True)
def reset_catalog_logging():
    """Drop handlers the CLI attached so later tests don't log to closed streams."""
    yield
    logger = logging.getLogger("catalog")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
