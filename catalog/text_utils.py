"""Text normalisation helpers shared by the catalog passes."""

import re
from typing import Any, Iterable, List

from catalog.config import SERVICE_WORDS

__all__ = [
    "normalize_numbers",
    "normalize_spaces",
    "clean_product_name",
    "transliterate",
    "slugify",
    "normalize_brand",
    "normalize_for_search",
    "has_cyrillic",
    "dedupe_preserve_order",
]

_TRANSLIT = {
    "а": "a", "б": "b", "в": "v", "г": "g", "д": "d", "е": "e", "ё": "yo",
    "ж": "zh", "з": "z", "и": "i", "й": "y", "к": "k", "л": "l", "м": "m",
    "н": "n", "о": "o", "п": "p", "р": "r", "с": "s", "т": "t", "у": "u",
    "ф": "f", "х": "h", "ц": "ts", "ч": "ch", "ш": "sh", "щ": "sch",
    "ъ": "", "ы": "y", "ь": "", "э": "e", "ю": "yu", "я": "ya",
    # Turkish letters show up in brand and product names
    "ı": "i", "ş": "s", "ç": "c", "ğ": "g", "ö": "o", "ü": "u",
}
# Upper-case forms, capitalised ("Ж" -> "Zh")
_TRANSLIT.update({k.upper(): v.capitalize() for k, v in list(_TRANSLIT.items()) if k.upper() != k})
_TRANSLIT["İ"] = "I"

_TURKISH_UPPER = str.maketrans({
    "Ş": "S", "ş": "S", "Ç": "C", "ç": "C", "Ğ": "G", "ğ": "G",
    "İ": "I", "ı": "I", "Ö": "O", "ö": "O", "Ü": "U", "ü": "U",
})

_SERVICE_WORDS_RE = re.compile(
    r"(?<!\w)(?:" + "|".join(re.escape(w) for w in SERVICE_WORDS) + r")(?!\w)",
    re.IGNORECASE,
)
_CYRILLIC_RE = re.compile(r"[а-яё]", re.IGNORECASE)


def normalize_numbers(text: str) -> str:
    """Turn decimal commas into dots: ``49,3`` -> ``49.3``."""
    return re.sub(r"(\d+),(\d+)", r"\1.\2", text)


def normalize_spaces(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def clean_product_name(raw: str) -> str:
    """Clean a file or folder name into a display name.

    Underscores become spaces, quotes and brackets are stripped from the
    edges, and service words like ``текстовка`` or ``label`` are dropped.
    """
    if not raw:
        return ""

    name = re.sub(r"[_\s]+", " ", raw)
    name = re.sub(r"^[«»\"']+|[«»\"']+$", "", name)
    name = re.sub(r"^[()\[\]]+|[()\[\]]+$", "", name)
    name = _SERVICE_WORDS_RE.sub("", name)
    return normalize_spaces(name)


def transliterate(text: str) -> str:
    """Transliterate Cyrillic and Turkish letters to Latin."""
    if not text:
        return ""
    return "".join(_TRANSLIT.get(ch, ch) for ch in text)


def slugify(text: str, max_length: int = 0) -> str:
    """Lower-case Latin slug with single dashes."""
    slug = transliterate(str(text or "")).lower()
    slug = re.sub(r"[^a-z0-9]+", "-", slug).strip("-")
    if max_length:
        slug = slug[:max_length].strip("-")
    return slug


def normalize_brand(value: Any) -> str:
    """Strict brand key: ``PANDA LEE``, ``panda-lee`` and ``Panda Lee`` all give ``PANDALEE``."""
    if not value:
        return ""
    text = str(value).strip().translate(_TURKISH_UPPER).upper()
    return re.sub(r"[\s-]+", "", text)


def normalize_for_search(value: Any) -> str:
    """Lower-case, keep Latin/Cyrillic letters and digits, collapse spaces."""
    if not value:
        return ""
    text = str(value).lower().strip()
    text = re.sub(r"[^a-zа-яё0-9\s]", " ", text)
    return normalize_spaces(text)


def has_cyrillic(text: Any) -> bool:
    return bool(text) and bool(_CYRILLIC_RE.search(str(text)))


def dedupe_preserve_order(items: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            result.append(item)
    return result
