"""Configuration and lookup tables for the catalog tools."""

import os
from pathlib import Path
from typing import Dict, List

__all__ = [
    "PROJECT_ROOT",
    "FOODS_SUBDIR",
    "CATALOG_RELPATH",
    "OUT_SUBDIR",
    "REPORTS_SUBDIR",
    "FOODS_DIR",
    "CATALOG_PATH",
    "EXCLUDED_IMAGES_PATH",
    "IMAGE_EXTENSIONS",
    "DOC_EXTENSIONS",
    "PLACEHOLDER_SIZE",
    "PLACEHOLDER_TOLERANCE",
    "LONG_PATH_LIMIT",
    "EXPECTED_BRAND_FOLDERS",
    "BRAND_MAP",
    "SUB_BRANDS",
    "CATEGORY_MAP",
    "TYPE_MAP",
    "FLAVOR_WORDS",
    "COMMON_WEIGHTS",
    "SERVICE_WORDS",
    "CATEGORY_SYNONYMS",
    "SHAPE_MAP",
    "FLAVOR_MAP",
    "TEXTURE_MAP",
    "STOP_WORDS",
    "TYPE_NAMES_RU",
    "DEDUPE_THRESHOLDS",
    "MAX_TAGS",
    "DEFAULT_EXCLUDED_IMAGES",
    "get_brand_for_folder",
]

# Project layout, relative to a project root
FOODS_SUBDIR = Path("foods")
CATALOG_RELPATH = Path("data") / "products.json"
OUT_SUBDIR = Path("out")
REPORTS_SUBDIR = OUT_SUBDIR / "reports"

# Default project root (override with CATALOG_ROOT for ad hoc runs)
PROJECT_ROOT = Path(os.getenv("CATALOG_ROOT", Path(__file__).resolve().parent.parent))
FOODS_DIR = PROJECT_ROOT / FOODS_SUBDIR
CATALOG_PATH = PROJECT_ROOT / CATALOG_RELPATH
EXCLUDED_IMAGES_PATH = PROJECT_ROOT / "catalog" / "excluded-images.json"

# File types picked up from foods/
IMAGE_EXTENSIONS = {".webp", ".png", ".jpg", ".jpeg"}
DOC_EXTENSIONS = {".docx", ".pdf", ".doc"}

# Banner images carrying only the product name are 478x58
PLACEHOLDER_SIZE = (478, 58)
PLACEHOLDER_TOLERANCE = 5

LONG_PATH_LIMIT = 240

EXPECTED_BRAND_FOLDERS: List[str] = [
    "01 Tayas",
    "02 Pakel",
    "03 Alikhan Ata",
    "04 Puffico",
    "05 Oslo",
    "06 Love Me TM",
    "07 Panda Lee TM",
    "08 Navroz",
    "09 Crafers",
]

# Top-level foods/ folder (lower-cased) -> brand
BRAND_MAP: Dict[str, str] = {
    "01 tayas": "TAYAS",
    "02 pakel": "PAKEL",
    "03 alikhan ata": "ALIKHAN ATA",
    "04 puffico": "PUFFI",
    "05 oslo": "OSLO",
    "06 love me tm": "LOVE ME",
    "07 panda lee tm": "PANDA LEE",
    "08 navroz": "NAVROZ",
    "09 crafers": "CRAFERS",
}

# Sub-brands living inside a parent brand folder (marker -> brand)
SUB_BRANDS: Dict[str, str] = {
    "DAMLA": "DAMLA",
    "JIMMY": "JIMMY",
    "MINIYUM": "MINIYUM",
    "KIDZI": "KIDZI",
    "MISKETS": "MISKETS",
    "BONJUKS": "BONJUKS",
}

# Folder path keyword -> category id. Order matters: first hit wins.
CATEGORY_MAP: Dict[str, str] = {
    "мармелад": "marmalade",
    "жевательные конфеты": "candy",
    "конфет": "candy",
    "шоколад": "chocolate",
    "карамель": "caramel",
    "драже": "candy",
    "лукум": "candy",
    "lokum": "candy",
    "бисквитное пирожное": "cookies",
    "пирожное": "cookies",
    "желейный десерт": "jelly",
    "десерт": "jelly",
    "печенье": "cookies",
    "вафли": "cookies",
    "wafers": "cookies",
}

# Folder path keyword -> product form
TYPE_MAP: Dict[str, str] = {
    "ремешки": "belts",
    "ремни": "belts",
    "belts": "belts",
    "карандаши": "pencils",
    "pencils": "pencils",
    "мишки": "bears",
    "mishki": "bears",
    "bears": "bears",
    "трубочки": "tubes",
    "tubes": "tubes",
    "вафли": "wafers",
    "wafers": "wafers",
    "печенье": "cookies",
    "cookies": "cookies",
    "конфеты": "candies",
    "candies": "candies",
    "мармелад": "marmalade",
    "marmalade": "marmalade",
    "шоколад": "chocolate",
    "chocolate": "chocolate",
    "драже": "dragee",
    "dragee": "dragee",
    "лукум": "lokum",
    "lokum": "lokum",
    "паста": "paste",
    "paste": "paste",
    "кубики": "cubes",
    "кубы": "cubes",
    "cubes": "cubes",
}

# Flavor words recognised in folder names
FLAVOR_WORDS: List[str] = [
    "арбуз", "клубника", "яблоко", "апельсин", "виноград", "вишня",
    "малина", "ежевика", "кола", "ананас", "кокос", "ваниль", "шоколад",
    "кофе", "радуга", "ассорти", "тропик", "голубика", "пина-колада",
]

# Numbers that look like a SKU but are almost always pack weights
COMMON_WEIGHTS = {15, 18, 20, 25, 30, 35, 40, 42, 52, 60, 70, 75, 80, 90, 100, 150, 250, 300, 500, 700, 1000}

# Words dropped from document/folder names when deriving a product name
SERVICE_WORDS: List[str] = [
    "текстовка", "маркировка", "состав", "описание", "этикетка",
    "text", "marking", "composition", "description", "label",
]

# =============================================================================
# Tag enrichment vocabularies
# =============================================================================

CATEGORY_SYNONYMS: Dict[str, List[str]] = {
    "cookies": ["cookie", "biscuit", "печенье", "бисквит", "cracker"],
    "marmalade": ["marmalade", "gummy", "мармелад", "жевательный", "jelly"],
    "candy": ["candy", "sweet", "конфета", "сладость", "sweets"],
    "chocolate": ["chocolate", "шоколад", "choco"],
    "cake": ["cake", "торт", "пирожное", "dessert"],
    "wafers": ["wafer", "вафля", "вафельный"],
    "caramel": ["caramel", "карамель", "карамельный"],
    "jelly": ["jelly", "желе", "желейный", "десерт"],
}

SHAPE_MAP: Dict[str, List[str]] = {
    "bears": ["bear", "мишка", "медведь", "mishki", "bears"],
    "cubes": ["cube", "кубик", "куб", "cubes"],
    "belts": ["belt", "ремень", "ремешок", "strip", "belts", "remeshki"],
    "tubes": ["tube", "трубка", "трубочка", "tubes", "trubochki"],
    "wafers": ["wafer", "вафля", "wafers", "вафельный"],
    "sticks": ["stick", "палочка", "карандаш", "pencil", "sticks", "karandashi"],
    "balls": ["ball", "шарик", "мячик", "balls"],
    "rings": ["ring", "кольцо", "колечко", "rings"],
    "hearts": ["heart", "сердце", "сердечко", "hearts"],
    "stars": ["star", "звезда", "звездочка", "stars"],
    "pencils": ["pencil", "карандаш", "karandash", "pencils", "karandashi"],
}

FLAVOR_MAP: Dict[str, List[str]] = {
    "chocolate": ["chocolate", "шоколад", "шоколадный"],
    "milk": ["milk", "молоко", "молочный", "cream", "крем", "сливочный"],
    "strawberry": ["strawberry", "клубника", "клубничный", "klubnika"],
    "sour": ["sour", "кислый", "кислота", "acid"],
    "fruit": ["fruit", "фрукт", "фруктовый", "fruity"],
    "cola": ["cola", "кола", "coca-cola"],
    "apple": ["apple", "яблоко", "яблочный", "yabloko"],
    "orange": ["orange", "апельсин", "апельсиновый"],
    "cherry": ["cherry", "вишня", "вишневый"],
    "grape": ["grape", "виноград", "виноградный"],
    "watermelon": ["watermelon", "арбуз", "арбузный"],
    "rainbow": ["rainbow", "радуга", "радужный", "raduga"],
    "pistachio": ["pistachio", "фисташка", "фисташковый"],
    "vanilla": ["vanilla", "ваниль", "ванильный"],
    "caramel": ["caramel", "карамель", "карамельный"],
    "coffee": ["coffee", "кофе", "кофейный"],
}

TEXTURE_MAP: Dict[str, List[str]] = {
    "chewy": ["chewy", "жевательный", "тягучий", "elastic"],
    "crispy": ["crispy", "хрустящий", "хруст", "crunchy"],
    "soft": ["soft", "мягкий", "нежный"],
    "glazed": ["glazed", "глазированный", "glaze"],
    "hard": ["hard", "твердый", "жесткий"],
    "creamy": ["creamy", "кремовый", "сливочный"],
}

STOP_WORDS = {
    "the", "and", "or", "but", "for", "with", "from", "this", "that", "a", "an",
    "и", "или", "но", "для", "с", "от", "это", "то", "а", "в", "на", "по", "из",
}

# Russian names for product forms used in SEO descriptions
TYPE_NAMES_RU: Dict[str, str] = {
    "bears": "мишки",
    "cubes": "кубики",
    "belts": "ремешки",
    "tubes": "трубочки",
    "wafers": "вафли",
    "sticks": "палочки",
    "pencils": "карандаши",
}

DEDUPE_THRESHOLDS = {
    "name_similarity": 0.7,
    "tags_overlap": 0.7,
    "min_matches": 2,
    "variant_name_similarity": 0.5,
}

MAX_TAGS = 25

# Used by the prune pass when no exclusion file exists
DEFAULT_EXCLUDED_IMAGES: List[str] = [
    "assets/images/products/tayas/tayas-belts-assorti-75gr.webp",
    "assets/images/products/tayas/tayas-marmalade-80gr.webp",
    "assets/images/products/tayas/tayas-marmalade-80gr-v1.webp",
    "assets/images/products/tayas/tayas-marmalade-sour-80gr.webp",
    "assets/images/products/tayas/tayas-marmalade-80gr-v4.webp",
    "assets/images/products/tayas/tayas-marmalade-80gr-v8.webp",
    "assets/images/products/tayas/tayas-marmalade-80gr-v10.webp",
    "assets/images/products/tayas/tayas-belts-vinograd-15gr-v2.webp",
    "assets/images/products/tayas/tayas-belts-pina-kolada-15gr-v2.webp",
    "assets/images/products/tayas/tayas-belts-arbuz-15gr-v2.webp",
    "assets/images/products/tayas/tayas-belts-malina-ezhevika-15gr-v2.webp",
    "assets/images/products/tayas/tayas-belts-klubnika-15gr-v2.webp",
    "assets/images/products/tayas/tayas-belts-golubika-15gr-v2.webp",
    "assets/images/products/tayas/tayas-marmalade-80gr-v6.webp",
    "assets/images/products/tayas/tayas-belts-yabloko-15gr-v2.webp",
    "assets/images/products/tayas/tayas-belts-kola-15gr-v2.webp",
    "assets/images/products/tayas/tayas-belts-raduga-15gr-v2.webp",
    "assets/images/products/tayas/tayas-belts-raduga-75gr-v1.webp",
    "assets/images/products/tayas/tayas-belts-raduga-75gr.webp",
    "assets/images/products/tayas/tayas-belts-assorti-75gr-v3.webp",
    "assets/images/products/tayas/tayas-belts-assorti-75gr-v2.webp",
]


def get_brand_for_folder(folder_name: str) -> str:
    """Map a top-level foods/ folder name to a brand (``UNKNOWN`` if unmapped)."""
    return BRAND_MAP.get(folder_name.strip().lower(), "UNKNOWN")
