"""
Web server for the CV site.

Routes:
- ``/``              redirects to the default language page
- ``/<lang>``        the profile page; unsupported languages redirect to the default
- ``/api/profile``   the resolved tree as JSON (``?lang=xx``)

The app holds no state beyond the injected profile store; every request
resolves the profile afresh.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from flask import Flask, Response, jsonify, redirect, request

from .db import SQLiteProfileStore, get_db_path
from .languages import DEFAULT_LANGUAGE, is_supported_language, normalize_language
from .profile import ProfileResolver
from .rendering import install_helpers, render_not_found_page, render_profile_page
from .store import ProfileStore

logger = logging.getLogger(__name__)


def is_localhost(host: str) -> bool:
    """
    Check if a host string represents localhost.

    Returns:
        True if host is localhost (127.x.x.x, ::1 or "localhost"), False otherwise.
    """
    if host == "localhost":
        return True
    if host.startswith("127."):
        return True
    if host == "::1":
        return True
    return False


def create_app(db_path: Optional[Path] = None, store: Optional[ProfileStore] = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        db_path: Path to the database file. Uses default if None.
        store: Profile store to read from. Defaults to a SQLiteProfileStore
            over db_path.

    Returns:
        Configured Flask application.
    """
    templates_dir = Path(__file__).parent / "templates"
    app = Flask(__name__, template_folder=str(templates_dir))
    install_helpers(app.jinja_env)

    if store is None:
        db_path = get_db_path(db_path)
        store = SQLiteProfileStore(db_path)
    app.config["DB_PATH"] = db_path
    app.config["PROFILE_STORE"] = store

    def get_resolver() -> ProfileResolver:
        return ProfileResolver(app.config["PROFILE_STORE"])

    @app.route("/")
    def index():
        """Send visitors to the default language."""
        return redirect(f"/{DEFAULT_LANGUAGE}")

    @app.route("/api/profile")
    def api_profile():
        """Resolved profile as JSON."""
        language = normalize_language(request.args.get("lang"))
        data = get_resolver().resolve(language)
        if data is None:
            return jsonify({"message": "Profile not found"}), 404
        return jsonify(data.to_dict())

    @app.route("/<lang>")
    def profile_page(lang: str):
        """Profile page in the requested language."""
        if not is_supported_language(lang):
            logger.debug(f"Redirecting unsupported language '{lang}' to '{DEFAULT_LANGUAGE}'")
            return redirect(f"/{DEFAULT_LANGUAGE}")

        language = normalize_language(lang)
        data = get_resolver().resolve(language)
        if data is None:
            html = render_not_found_page(app.jinja_env, language)
            return Response(html, status=404, mimetype="text/html")
        return Response(render_profile_page(app.jinja_env, data), mimetype="text/html")

    return app


def run_server(
    host: str = "127.0.0.1",
    port: int = 5000,
    debug: bool = False,
    db_path: Optional[Path] = None,
    allow_unsafe_bind: bool = False,
) -> None:
    """
    Run the web server.

    Args:
        host: Host to bind to. Defaults to 127.0.0.1 (localhost only).
        port: Port to listen on.
        debug: Enable debug mode.
        db_path: Path to the database file.
        allow_unsafe_bind: If True, allow binding to a non-localhost address.
    """
    if not is_localhost(host) and not allow_unsafe_bind:
        logger.error(
            f"Refusing to bind to '{host}': this exposes the server beyond this machine. "
            "Pass --i-know-what-im-doing to proceed."
        )
        raise SystemExit(1)

    app = create_app(db_path)
    logger.info(f"Starting CV site at http://{host}:{port}")
    print(f"\nCV site running at http://{host}:{port}")
    print("   Press Ctrl+C to stop\n")
    app.run(host=host, port=port, debug=debug)
