"""
Tenant selection routes.

Handles:
- GET  /tenants                      - Tenant grid
- POST /tenants/<id>/select          - Make a tenant active (clears cart on switch)
- POST /tenants/reset                - Back to the tenant grid
- GET  /tenants/<id>/products        - Product list of a tenant
"""

from flask import Blueprint, request

from core.exceptions import BackendUnavailableError
from logging_config import get_logger
from .common import get_state


# Module logger
logger = get_logger(__name__)

tenants_bp = Blueprint("tenants", __name__, url_prefix="/tenants")


@tenants_bp.route("", methods=["GET"])
def list_tenants():
    """Tenants from the catalog cache; ?refresh=1 forces a reload."""
    state = get_state()
    state.session.require_any()

    force = request.args.get("refresh") in ("1", "true")
    tenants = state.list_tenants(force=force)
    if tenants is None:
        raise BackendUnavailableError("fetch_tenants")

    return {
        "tenants": [t.to_dict() for t in tenants],
        "selected_tenant_id": state.selected_tenant_id,
    }


@tenants_bp.route("/<int:tenant_id>/select", methods=["POST"])
def select_tenant(tenant_id: int):
    state = get_state()
    state.session.require_cashier()

    tenant = state.select_tenant(tenant_id)
    return {
        "tenant": tenant.to_dict(),
        "products": [p.to_dict() for p in state.catalog.products],
    }


@tenants_bp.route("/reset", methods=["POST"])
def reset_selection():
    state = get_state()
    state.session.require_any()
    state.reset_to_tenant_selection()
    return {"selected_tenant_id": None}


@tenants_bp.route("/<int:tenant_id>/products", methods=["GET"])
def tenant_products(tenant_id: int):
    """
    Products of one tenant.

    The cached list is used for the selected tenant; any other tenant is
    read straight from the backend without touching the cache.
    """
    state = get_state()
    state.session.require_any()

    products = state.catalog.products_for(tenant_id)

    return {"tenant_id": tenant_id, "products": [p.to_dict() for p in products]}
