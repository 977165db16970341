"""Logging utilities for the site web server.

Provides structured JSONL logging for form submissions and other events.
"""

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

__all__ = ["log_interaction", "LOG_DIR", "log_file_for"]

LOG_DIR = Path(os.getenv("WEB_LOG_DIR", str(Path(__file__).parent / "logs")))


def log_file_for(prefix: str, when: Optional[datetime] = None) -> Path:
    """Daily log file path, e.g. ``form_submissions_20240131.jsonl``."""
    when = when or datetime.now()
    return LOG_DIR / f"{prefix}_{when.strftime('%Y%m%d')}.jsonl"


def log_interaction(event_type: str, data: Dict[str, Any], prefix: str = "form_submissions") -> None:
    """Log an event to a structured JSONL file.

    Args:
        event_type: Type of event (form_submission, mail_error, etc.)
        data: Event-specific data to log
        prefix: Log file name prefix
    """
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    log_entry = {"timestamp": datetime.now().isoformat(), "event_type": event_type, **data}
    with open(log_file_for(prefix), "a", encoding="utf-8") as f:
        f.write(json.dumps(log_entry, ensure_ascii=False) + "\n")
