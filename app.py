"""
FestivalPOS - Flask Application Entry Point.

This is a slim app factory that:
1. Loads configuration and logging
2. Creates the backend client (seeded in-memory store unless one is given)
3. Builds the register state and starts restoring the order history
4. Registers route blueprints
5. Sets up the hydration gate and JSON error handlers

ARCHITECTURE:
    Main Thread
    ├── Flask request handling
    └── PosState (one lock serializes every mutation)

    Hydration Thread (once, at startup)
    └── Reads DATA_DIR/STORAGE_KEY.json into the order ledger

Every route except /health and /api/hydration answers 503 until the order
history has been restored.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Dict, Any, Optional

from dotenv import load_dotenv
from flask import Flask, request
from werkzeug.exceptions import HTTPException

from logging_config import setup_logging, get_logger
from core.backend import BackendClient, InMemoryBackend
from core.exceptions import FestivalPosError
from services.persistence import PersistenceAdapter
from services.pos_state import PosState
from routes import register_blueprints, HYDRATION_EXEMPT_ENDPOINTS


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def _get_base_path() -> Path:
    """
    Get the base path for the application.

    In PyInstaller bundle: Returns the directory containing the executable
    In development: Returns the directory containing app.py
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    else:
        return Path(__file__).parent


def _create_backend(app: Flask) -> BackendClient:
    """In-memory backend, seeded from SEED_DATA_PATH when configured."""
    credentials = {
        "admin_email": app.config.get("ADMIN_EMAIL", ""),
        "admin_password": app.config.get("ADMIN_PASSWORD", ""),
    }
    seed_path = app.config.get("SEED_DATA_PATH")
    if seed_path:
        return InMemoryBackend.from_seed_file(seed_path, **credentials)
    logger.warning("No SEED_DATA_PATH configured, starting with an empty catalog")
    return InMemoryBackend(**credentials)


def create_app(
    config_object: str = "config.Config",
    backend: Optional[BackendClient] = None,
    config_overrides: Optional[Dict[str, Any]] = None,
) -> Flask:
    """
    Application factory - creates and configures Flask app.

    Args:
        config_object: Import path of the configuration class
        backend: Backend client to use instead of the seeded in-memory one
        config_overrides: Values applied on top of config_object

    Returns:
        Configured Flask application
    """
    # Load .env from base path (next to executable in production)
    base_path = _get_base_path()
    env_file = base_path / '.env'
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)

    # Create Flask app
    app = Flask(__name__)
    app.config.from_object(config_object)
    if config_overrides:
        app.config.update(config_overrides)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        app_name="festival_pos",
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )

    # Set Flask's logger to use our configured logger
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting FestivalPOS in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # CORE INITIALIZATION
    # =========================================================================

    if backend is None:
        backend = _create_backend(app)
    app.config["BACKEND"] = backend

    persistence = PersistenceAdapter(app.config["DATA_DIR"], app.config["STORAGE_KEY"])

    # =========================================================================
    # SERVICES INITIALIZATION
    # =========================================================================

    state = PosState(
        backend,
        persistence,
        vat_rate=app.config["VAT_RATE"],
        default_share_percentage=app.config["DEFAULT_TENANT_SHARE_PERCENT"],
    )
    state.start()
    app.config["POS_STATE"] = state
    logger.info(f"Register state created, restoring history from {persistence.path}")

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # HYDRATION GATE
    # =========================================================================

    @app.before_request
    def wait_for_hydration():
        """Hold requests briefly while the history loads, then answer 503."""
        if request.endpoint in HYDRATION_EXEMPT_ENDPOINTS:
            return None
        state.ensure_hydrated(timeout=app.config.get("HYDRATION_WAIT_SECONDS", 0.0))
        return None

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(FestivalPosError)
    def handle_pos_error(e: FestivalPosError):
        if e.status_code >= 500:
            logger.error(f"{type(e).__name__}: {e}")
        else:
            logger.warning(f"{request.method} {request.path} -> {e.status_code}: {e.message}")
        return e.to_dict(), e.status_code

    @app.errorhandler(404)
    def handle_not_found(e):
        return {"error": "NotFound", "message": "Resource not found"}, 404

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return {"error": "MethodNotAllowed", "message": str(e.description)}, 405

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return {"error": type(e).__name__, "message": e.description}, e.code

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        return {"error": "InternalServerError", "message": "An unexpected error occurred"}, 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(debug=debug_mode)
