"""Persistence helpers for data/products.json: load, atomic save, backups."""

import json
import os
import re
import shutil
import tempfile
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Generator, List, Optional, Union

from catalog.config import CATALOG_PATH
from catalog.logging_config import get_logger, log_catalog_event
from catalog.models import CatalogData

__all__ = [
    "CatalogError",
    "read_json",
    "write_json",
    "load_catalog",
    "save_catalog",
    "create_backup",
    "list_backups",
    "edit_catalog",
    "restore_backup",
    "restore_brands_categories",
]

logger = get_logger("store")

PathLike = Union[str, Path]

_BACKUP_TS_FORMAT = "%Y%m%d-%H%M%S"


class CatalogError(Exception):
    """Unrecoverable problem with catalog input (missing file, bad JSON, no foods/)."""


def read_json(path: PathLike) -> Any:
    """Read a JSON file, raising CatalogError on a missing file or bad JSON."""
    path = Path(path)
    if not path.exists():
        raise CatalogError(f"File not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise CatalogError(f"Invalid JSON in {path}: {e}") from e


def write_json(path: PathLike, payload: Any) -> None:
    """Write pretty-printed UTF-8 JSON through a temp file and ``os.replace``."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
            f.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def load_catalog(path: PathLike = CATALOG_PATH) -> CatalogData:
    """Load the catalog document.

    Raises:
        CatalogError: file missing, not JSON, or without a ``products`` list
    """
    raw = read_json(path)
    if not isinstance(raw, dict) or not isinstance(raw.get("products"), list):
        raise CatalogError(f"{path} is not a catalog document (expected an object with a products list)")
    return CatalogData.from_dict(raw)


def save_catalog(data: CatalogData, path: PathLike = CATALOG_PATH) -> None:
    write_json(path, data.to_dict())
    logger.debug(f"Saved {len(data.products)} products to {path}")


def _backup_pattern(path: Path) -> "re.Pattern":
    return re.compile(
        rf"^{re.escape(path.stem)}\.backup-(?P<label>.+?)"
        r"(?:-(?P<ts>\d{8}-\d{6})(?:-(?P<n>\d+))?)?\.json$"
    )


def create_backup(path: PathLike = CATALOG_PATH, label: str = "manual") -> Path:
    """Copy the catalog to ``<stem>.backup-<label>-<timestamp>.json`` beside it.

    Returns:
        Path of the new backup file
    """
    path = Path(path)
    if not path.exists():
        raise CatalogError(f"Cannot back up missing file: {path}")

    stamp = datetime.now().strftime(_BACKUP_TS_FORMAT)
    backup = path.with_name(f"{path.stem}.backup-{label}-{stamp}.json")
    counter = 1
    while backup.exists():
        backup = path.with_name(f"{path.stem}.backup-{label}-{stamp}-{counter}.json")
        counter += 1

    shutil.copy2(path, backup)
    log_catalog_event("backup_created", {
        "message": f"Backup created: {backup.name}",
        "backup": str(backup),
        "label": label,
    })
    return backup


def list_backups(path: PathLike = CATALOG_PATH, label: Optional[str] = None) -> List[Path]:
    """Return backups of ``path`` newest-first, optionally only one label.

    Backups without a timestamp (older naming) sort after timestamped ones.
    """
    path = Path(path)
    if not path.parent.exists():
        return []

    pattern = _backup_pattern(path)
    found = []
    for candidate in path.parent.iterdir():
        match = pattern.match(candidate.name)
        if not match or not candidate.is_file():
            continue
        if label is not None and match.group("label") != label:
            continue
        ts = match.group("ts")
        key = (
            1 if ts else 0,
            ts or "",
            int(match.group("n") or 0),
            candidate.stat().st_mtime,
        )
        found.append((key, candidate))

    found.sort(key=lambda item: item[0], reverse=True)
    return [candidate for _, candidate in found]


@contextmanager
def edit_catalog(
    path: PathLike = CATALOG_PATH,
    label: str = "edit",
    dry_run: bool = False,
) -> Generator[CatalogData, None, None]:
    """Load the catalog, back it up, and save it when the block exits cleanly.

    With ``dry_run`` nothing is written. On an exception the file is left untouched.
    """
    path = Path(path)
    data = load_catalog(path)
    if not dry_run:
        create_backup(path, label)

    yield data

    if dry_run:
        logger.info("Dry run: catalog not written")
        return
    save_catalog(data, path)


def _resolve_backup(path: Path, backup: Optional[PathLike], label: Optional[str]) -> Path:
    if backup is not None:
        resolved = Path(backup)
        if not resolved.exists():
            raise CatalogError(f"Backup not found: {resolved}")
        return resolved

    backups = list_backups(path, label)
    if not backups:
        suffix = f" with label '{label}'" if label else ""
        raise CatalogError(f"No backups of {path.name}{suffix} in {path.parent}")
    return backups[0]


def restore_backup(
    path: PathLike = CATALOG_PATH,
    backup: Optional[PathLike] = None,
    label: Optional[str] = None,
) -> CatalogData:
    """Replace the catalog with a backup (given explicitly or newest for ``label``).

    The backup must parse as a catalog. The current file is backed up first, and
    ``categories.json`` is written beside the catalog when the backup has categories.
    """
    path = Path(path)
    source = _resolve_backup(path, backup, label)
    data = load_catalog(source)

    if path.exists():
        create_backup(path, "pre-restore")
    save_catalog(data, path)

    if data.categories:
        write_json(path.with_name("categories.json"), data.categories)

    log_catalog_event("backup_restored", {
        "message": f"Restored {path.name} from {source.name}",
        "backup": str(source),
        "products": len(data.products),
        "categories": len(data.categories),
        "brands": len(data.brands),
    })
    return data


def restore_brands_categories(
    path: PathLike = CATALOG_PATH,
    backup: Optional[PathLike] = None,
    label: Optional[str] = "prepare-search-seo",
) -> CatalogData:
    """Keep current products but take ``categories`` and ``brands`` from a backup."""
    path = Path(path)
    source = _resolve_backup(path, backup, label)
    backup_data = load_catalog(source)

    if path.exists():
        current = load_catalog(path)
        create_backup(path, "restore-meta")
    else:
        current = CatalogData()

    if backup_data.categories:
        current.categories = backup_data.categories
    if backup_data.brands:
        current.brands = backup_data.brands

    save_catalog(current, path)
    logger.info(
        f"Restored {len(current.categories)} categories and {len(current.brands)} brands "
        f"from {source.name} ({len(current.products)} products kept)"
    )
    return current
