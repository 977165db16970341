"""Logging for catalog passes (build, dedupe, enrich-tags, prepare-seo, ...).

Each CLI run prints progress to the console and appends to
``logs/catalog_YYYYMMDD.jsonl``. Backups, restores and finished builds are
recorded there as events tagged with ``event_type``.
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

__all__ = [
    "setup_logging",
    "get_logger",
    "log_catalog_event",
    "LOG_DIR",
]

LOG_DIR = Path(__file__).parent.parent / "logs"


class JSONLFileHandler(logging.Handler):
    """Append each record to the pass log of the day it was emitted."""

    def __init__(self, log_dir: Path, prefix: str = "catalog"):
        super().__init__()
        self.log_dir = log_dir
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.prefix = prefix

    def _get_log_file(self) -> Path:
        today = datetime.now().strftime("%Y%m%d")
        return self.log_dir / f"{self.prefix}_{today}.jsonl"

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = {
                "timestamp": datetime.now().isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
            }

            if hasattr(record, "event_type"):
                entry["event_type"] = record.event_type
            if hasattr(record, "extra_data"):
                entry.update(record.extra_data)

            with open(self._get_log_file(), "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")

        except Exception:
            self.handleError(record)


class ColoredConsoleHandler(logging.StreamHandler):
    """Progress lines for whoever is running a pass; level names colored on a tty."""

    COLORS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "CRITICAL": "\033[35m",   # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if hasattr(self.stream, "isatty") and self.stream.isatty():
            color = self.COLORS.get(record.levelname, "")
            if color:
                text = text.replace(record.levelname, f"{color}{record.levelname}{self.RESET}", 1)
        return text


def setup_logging(
    level: int = logging.INFO,
    log_to_file: bool = True,
    log_to_console: bool = True,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """Configure the ``catalog`` logger for one CLI run.

    Called once per pass; replaces handlers left by an earlier run in the
    same process.

    Args:
        level: Console level; INFO, or DEBUG with ``--verbose``
        log_to_file: Append records to the daily pass log
        log_to_console: Print progress lines to stdout
        log_dir: Where the pass log goes (the CLI passes ``<root>/logs``)

    Returns:
        The ``catalog`` logger
    """
    logger = logging.getLogger("catalog")
    logger.setLevel(level)
    logger.handlers.clear()

    if log_to_console:
        console_handler = ColoredConsoleHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", datefmt="%H:%M:%S")
        )
        logger.addHandler(console_handler)

    if log_to_file:
        file_handler = JSONLFileHandler(log_dir or LOG_DIR)
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = "catalog") -> logging.Logger:
    """Logger for one catalog module, e.g. ``get_logger("dedupe")`` -> ``catalog.dedupe``."""
    if name == "catalog":
        return logging.getLogger("catalog")
    return logging.getLogger(f"catalog.{name}")


def log_catalog_event(
    event_type: str,
    data: Dict[str, Any],
    level: int = logging.INFO,
    logger_name: str = "catalog",
) -> None:
    """Record a pass milestone in the pass log.

    Args:
        event_type: ``build_complete``, ``backup_created`` or ``backup_restored``
        data: Fields stored on the JSONL line, e.g. product counts or backup
            file names; a ``message`` key becomes the console text instead
        level: Log level
        logger_name: Catalog module logging the event
    """
    logger = get_logger(logger_name)
    if not logger.isEnabledFor(level):
        return

    record = logger.makeRecord(
        logger.name,
        level,
        "(catalog)",
        0,
        data.get("message", event_type),
        (),
        None,
    )
    record.event_type = event_type
    record.extra_data = {k: v for k, v in data.items() if k != "message"}

    logger.handle(record)
