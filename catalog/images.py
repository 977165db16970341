"""Image helpers: placeholder banner detection and main image choice."""

from pathlib import Path
from typing import Iterable, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from catalog.config import PLACEHOLDER_SIZE, PLACEHOLDER_TOLERANCE

__all__ = ["get_image_size", "is_placeholder", "pick_main_image", "site_path"]


def site_path(project_root, image) -> Path:
    """Resolve a site-relative image reference (``/images/a.webp`` or ``images/a.webp``) under the project root."""
    return Path(project_root) / str(image).replace("\\", "/").lstrip("/")


def get_image_size(path) -> Optional[Tuple[int, int]]:
    """Return (width, height), or None if the file is not a readable image."""
    try:
        with Image.open(path) as img:
            return img.size
    except (OSError, UnidentifiedImageError, ValueError):
        return None


def is_placeholder(path) -> bool:
    """True for the 478x58 (+-5 px) banners that only carry a product name."""
    size = get_image_size(path)
    if size is None:
        return False
    width, height = size
    return (
        abs(width - PLACEHOLDER_SIZE[0]) <= PLACEHOLDER_TOLERANCE
        and abs(height - PLACEHOLDER_SIZE[1]) <= PLACEHOLDER_TOLERANCE
    )


def _main_image_key(path) -> Tuple[int, int, int]:
    name = Path(path).name.lower()
    return (
        0 if "main" in name else 1,
        0 if "1" in name else 1,
        len(name),
    )


def pick_main_image(paths: Iterable) -> Optional[str]:
    """Prefer names containing ``main``, then containing ``1``, then the shortest."""
    candidates = list(paths)
    if not candidates:
        return None
    return min(candidates, key=_main_image_key)
