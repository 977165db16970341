"""Heuristics that read product attributes out of file and folder names.

These are tuned to one vendor's folder naming under foods/, for example::

    01 Tayas/01 Мармелады/Кислые Ремешки Арбуз 15 г PL1048/photo_main.webp
"""

import re
from typing import Optional

from catalog.config import (
    CATEGORY_MAP,
    COMMON_WEIGHTS,
    FLAVOR_WORDS,
    SUB_BRANDS,
    TYPE_MAP,
    get_brand_for_folder,
)

__all__ = [
    "extract_sku",
    "extract_weight",
    "extract_flavor",
    "detect_type",
    "detect_category",
    "detect_brand",
    "detect_sub_brand",
    "get_product_folder",
    "split_path",
]

_ALNUM_SKU_RE = re.compile(r"([A-Z]{1,3}\d{3,6})", re.ASCII)
_NUMBER_SIGN_SKU_RE = re.compile(r"№\s*(\d{3,6})", re.ASCII)
# ASCII word boundaries: a number glued to Cyrillic letters still stands alone
_STANDALONE_NUMBER_RE = re.compile(r"\b(\d{3,6})\b", re.ASCII)
_UNIT_NEAR_RE = re.compile(r"(г|гр|gr|kg|кг|ml|мл|шт|pcs|box|carton|упаковка|пакет)", re.IGNORECASE)

_GRAMS_RE = re.compile(r"(\d+(?:[.,]\d+)?)\s*(?:гр|gr|grams|gram|г)", re.IGNORECASE)
_KILOGRAMS_RE = re.compile(r"(\d+(?:[.,]\d+)?)\s*кг", re.IGNORECASE)

_NUMBERED_FOLDER_RE = re.compile(r"^\d+\s+")

# How far either side of a number to look for a unit
_UNIT_WINDOW = 20


def split_path(relative_path: str):
    """Split a relative path on either separator, dropping empty parts."""
    return [part for part in re.split(r"[\\/]", relative_path or "") if part]


def extract_sku(path: str, file_name: str, folder_name: Optional[str] = None) -> Optional[str]:
    """Find a vendor SKU in a path, file name and folder name.

    Tried in order:
        1. 1-3 Latin letters followed by 3-6 digits (``PL1048``)
        2. ``№`` followed by 3-6 digits
        3. a standalone 3-6 digit number with no weight/pack unit within
           20 characters and not one of the common pack weights

    Returns:
        The SKU, or None
    """
    parts = [path or "", file_name or ""]
    if folder_name:
        parts.append(folder_name)
    text = " ".join(parts).upper()

    match = _ALNUM_SKU_RE.search(text)
    if match:
        return match.group(1)

    match = _NUMBER_SIGN_SKU_RE.search(text)
    if match:
        return match.group(1)

    for match in _STANDALONE_NUMBER_RE.finditer(text):
        before = text[max(0, match.start() - _UNIT_WINDOW):match.start()]
        after = text[match.end():match.end() + _UNIT_WINDOW]
        if _UNIT_NEAR_RE.search(before) or _UNIT_NEAR_RE.search(after):
            continue
        if int(match.group(1)) in COMMON_WEIGHTS:
            continue
        return match.group(1)

    return None


def _format_grams(value: float) -> Optional[str]:
    text = ("%f" % value).rstrip("0").rstrip(".")
    if not text or text == "0":
        return None
    return f"{text}gr"


def extract_weight(text: str) -> Optional[str]:
    """Extract a pack weight as ``"<n>gr"``.

    Accepts ``15 г``, ``90gr``, ``20гр``, ``49,3 г`` and kilograms
    (``1 кг`` -> ``1000gr``). A zero weight gives None.
    """
    if not text:
        return None

    match = _GRAMS_RE.search(text)
    if match:
        return _format_grams(float(match.group(1).replace(",", ".")))

    match = _KILOGRAMS_RE.search(text)
    if match:
        return _format_grams(float(match.group(1).replace(",", ".")) * 1000)

    return None


def extract_flavor(text: str) -> Optional[str]:
    if not text:
        return None
    lower = text.lower()
    for flavor in FLAVOR_WORDS:
        if flavor in lower:
            return flavor
    return None


def detect_type(text: str) -> Optional[str]:
    if not text:
        return None
    lower = text.lower()
    for key, value in TYPE_MAP.items():
        if key in lower:
            return value
    return None


def detect_category(text: str) -> Optional[str]:
    if not text:
        return None
    lower = text.lower()
    for key, value in CATEGORY_MAP.items():
        if key in lower:
            return value
    return None


def detect_brand(product_folder: str) -> str:
    """Brand from the top-level folder of a path relative to foods/."""
    parts = split_path(product_folder)
    return get_brand_for_folder(parts[0]) if parts else "UNKNOWN"


def detect_sub_brand(dir_name: str, parent_brand: Optional[str] = None) -> Optional[str]:
    """Return a sub-brand named in ``dir_name``, else ``parent_brand``."""
    upper = (dir_name or "").upper()
    for marker, brand in SUB_BRANDS.items():
        if marker in upper:
            return brand
    return parent_brand


def get_product_folder(relative_dir: str) -> str:
    """Pick the folder that represents the product for a file's directory.

    Walks up from the deepest folder, skipping numbered category folders
    (``01 Мармелады``), and stops at the first one that carries a SKU or has
    a name longer than 10 characters.
    """
    parts = split_path(relative_dir)
    for i in range(len(parts) - 1, -1, -1):
        part = parts[i]
        if _NUMBERED_FOLDER_RE.match(part):
            continue
        if extract_sku("", "", part) or len(part) > 10:
            return "/".join(parts[:i + 1])
    return "/".join(parts)
