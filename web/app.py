"""Flask web server for the confectionery catalog site.

Serves the static site with cache rules, exposes a health check, relays
contact-form submissions by email and offers a read-only catalog API.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv
from flask import Flask, Response, abort, jsonify, redirect, request, send_from_directory
from flask_cors import CORS

# Load environment variables from .env file before reading config
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

from .catalog_api import catalog_api  # noqa: E402
from .config import (  # noqa: E402
    ALLOWED_ORIGIN,
    API_PER_PAGE,
    CATALOG_PATH,
    FLASK_DEBUG,
    FLASK_HOST,
    FLASK_PORT,
    FORM_RATE_LIMIT,
    HTML_CACHE,
    LONG_CACHE,
    LONG_CACHE_DIRS,
    SECURITY_HEADERS,
    SITE_ROOT,
)
from .extensions import limiter  # noqa: E402
from .forms import forms  # noqa: E402

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Слишком много запросов. Попробуйте позже."


def cache_control_for(path: str) -> Optional[str]:
    """Cache-Control value for a site-relative path, or None to keep the default."""
    normalized = path.replace("\\", "/").lstrip("/")
    if normalized.split("/", 1)[0] in LONG_CACHE_DIRS:
        return LONG_CACHE
    if normalized.lower().endswith(".html"):
        return HTML_CACHE
    return None


def create_app(overrides: Optional[Dict[str, Any]] = None) -> Flask:
    """Build the Flask app.

    Args:
        overrides: config values applied after the defaults (tests use this
            for SITE_ROOT, CATALOG_PATH and FORM_RATE_LIMIT)
    """
    app = Flask(__name__, static_folder=None)
    app.config.update(
        SITE_ROOT=SITE_ROOT,
        CATALOG_PATH=CATALOG_PATH,
        FORM_RATE_LIMIT=FORM_RATE_LIMIT,
        API_PER_PAGE=API_PER_PAGE,
        RATELIMIT_HEADERS_ENABLED=True,
    )
    if overrides:
        app.config.update(overrides)
    app.json.ensure_ascii = False

    if ALLOWED_ORIGIN:
        CORS(app, origins=[ALLOWED_ORIGIN])
    else:
        CORS(app)

    limiter.init_app(app)
    app.register_blueprint(forms)
    app.register_blueprint(catalog_api)

    @app.after_request
    def add_security_headers(response: Response) -> Response:
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    @app.errorhandler(429)
    def rate_limited(error) -> Tuple[Response, int]:
        logger.warning(f"Rate limit exceeded for {request.remote_addr} on {request.path}")
        return jsonify({"success": False, "error": RATE_LIMIT_MESSAGE}), 429

    @app.route("/health")
    def health() -> Response:
        return jsonify({"ok": True})

    @app.route("/", defaults={"path": ""})
    @app.route("/<path:path>")
    def static_site(path: str) -> Response:
        """Serve files from the site root; ``/`` and directories give index.html."""
        root = Path(app.config["SITE_ROOT"])
        parts = [p for p in path.split("/") if p]
        if any(p.startswith(".") for p in parts):
            abort(404)

        relative = "/".join(parts)
        if relative and (root / relative).is_dir():
            # Relative links inside the index resolve against the slash form
            if not request.path.endswith("/"):
                location = request.path + "/"
                if request.query_string:
                    location += "?" + request.query_string.decode("latin-1")
                return redirect(location, code=308)
            relative = f"{relative}/index.html"
        elif not relative:
            relative = "index.html"

        response = send_from_directory(root, relative)
        cache_control = cache_control_for(relative)
        if cache_control:
            response.headers["Cache-Control"] = cache_control
        return response

    return app


app = create_app()


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG if FLASK_DEBUG else logging.INFO)
    app.run(host=FLASK_HOST, port=FLASK_PORT, debug=FLASK_DEBUG)
