"""
Service routes.

Handles:
- /health         - Health check endpoint
- /api/hydration  - Poll whether the order history has been restored

Both answer before hydration completes; every other route waits for it.
"""

from flask import Blueprint, current_app

from logging_config import get_logger
from .common import get_state


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)

# Endpoints that must answer while the order history is still loading
HYDRATION_EXEMPT_ENDPOINTS = frozenset({"api.health", "api.hydration", "static"})


@api_bp.route("/api/hydration", methods=["GET"])
def hydration():
    """
    Hydration status for the UI's loading screen.

    The UI polls this and renders nothing until "hydrated" is true.
    """
    state = get_state()
    return {
        "hydrated": state.is_hydrated,
        "storage_path": str(state.persistence.path),
    }


@api_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with service status."""
    health_status = {
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "checks": {}
    }

    state = current_app.config.get("POS_STATE")
    if state is None:
        health_status["checks"]["state"] = "not_available"
        health_status["status"] = "degraded"
        return health_status, 503

    # Check order history restore
    if state.is_hydrated:
        health_status["checks"]["hydration"] = "ok"
        health_status["checks"]["completed_orders"] = len(state.ledger)
        health_status["checks"]["unsynced_orders"] = len(state.ledger.unsynced_orders())
    else:
        health_status["checks"]["hydration"] = "loading"
        health_status["status"] = "degraded"

    # Check backend reachability
    if state.catalog.fetch_tenants(force=True):
        health_status["checks"]["backend"] = "ok"
    else:
        health_status["checks"]["backend"] = "unavailable"
        health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code
