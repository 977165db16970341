"""Centralized configuration for the catalog site web server."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

# Determine project root (parent of 'web' directory)
_THIS_DIR = Path(__file__).parent
_PROJECT_ROOT = _THIS_DIR.parent

# Static site content (HTML pages, assets/, data/products.json)
SITE_ROOT = Path(os.getenv("SITE_ROOT", str(_PROJECT_ROOT))).resolve()
CATALOG_PATH = Path(os.getenv("CATALOG_PATH", str(SITE_ROOT / "data" / "products.json")))

# Flask app settings (allow env overrides; default debug off for safety)
# Hosting platforms set PORT dynamically; fall back to FLASK_PORT or 5500 for local.
FLASK_HOST = os.getenv("FLASK_HOST", "0.0.0.0")
FLASK_PORT = int(os.getenv("FLASK_PORT", os.getenv("PORT", "5500")))
FLASK_DEBUG = os.getenv("FLASK_DEBUG", "False").lower() == "true"

# CORS: reflect any origin unless one is pinned
ALLOWED_ORIGIN = os.getenv("ALLOWED_ORIGIN") or None

# Contact-form rate limit (per client IP, shared by all three forms)
FORM_RATE_LIMIT = os.getenv("FORM_RATE_LIMIT", "50 per 15 minutes")
RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")

# Static caching
LONG_CACHE = "public, max-age=604800"
HTML_CACHE = "public, max-age=0, must-revalidate"
LONG_CACHE_DIRS = ("assets", "images", "data")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
}

# Catalog API paging
API_PER_PAGE = int(os.getenv("API_PER_PAGE", "24"))
API_MAX_PER_PAGE = 100
MAX_SUGGESTIONS = 8


def get_email_recipient() -> Optional[str]:
    return os.getenv("EMAIL_TO") or None


def get_smtp_settings() -> Dict[str, Any]:
    """Read SMTP settings from the environment at send time.

    Returns:
        Dict with host, port, secure, user, password, sender and recipient

    Raises:
        ValueError: SMTP_PORT is not a number
    """
    user: Optional[str] = os.getenv("SMTP_USER") or None
    return {
        "host": os.getenv("SMTP_HOST") or None,
        "port": int(os.getenv("SMTP_PORT", "587")),
        "secure": os.getenv("SMTP_SECURE", "false").lower() == "true",
        "user": user,
        "password": os.getenv("SMTP_PASS") or None,
        "sender": os.getenv("SMTP_FROM") or user,
        "recipient": get_email_recipient(),
    }
