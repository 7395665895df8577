"""
Administration routes.

Handles:
- POST   /admin/tenants                  - Create a tenant
- PUT    /admin/tenants/<id>             - Edit a tenant
- POST   /admin/products                 - Create a product
- PUT    /admin/products/<pid>           - Edit a product
- DELETE /admin/products/<pid>           - Delete a product
- POST   /admin/products/<pid>/stock     - Apply a signed stock delta
- GET    /admin/cashiers                 - Cashiers (without PINs)
- POST   /admin/cashiers                 - Create a cashier
- PUT    /admin/cashiers/<cid>           - Edit a cashier
- GET    /admin/categories               - Product categories
- GET    /admin/events                   - Events
- POST   /admin/events/<id>/activate     - Make one event the active one

Every route needs an admin session. Free-text input is stripped of markup
and truncated before it reaches the backend.
"""

from decimal import Decimal
from typing import Dict, Any

from flask import Blueprint, request

from core.exceptions import BackendUnavailableError, ValidationError
from logging_config import get_logger
from .common import (
    get_json_body,
    get_state,
    optional_text,
    parse_decimal,
    parse_int,
    require_text,
)


# Module logger
logger = get_logger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")

MIN_NAME_LENGTH = 2
PIN_LENGTH = 4


@admin_bp.before_request
def require_admin_session():
    get_state().session.require_admin()


# =========================================================================
# Input validation
# =========================================================================

def _name(data: Dict[str, Any], field: str = "name") -> str:
    value = require_text(data, field)
    if len(value) < MIN_NAME_LENGTH:
        raise ValidationError(f"{field} must be at least {MIN_NAME_LENGTH} characters", field=field)
    return value


def _tenant_fields(data: Dict[str, Any], partial: bool) -> Dict[str, Any]:
    """Validated tenant columns; with partial=True only supplied fields are returned."""
    fields: Dict[str, Any] = {}

    if not partial or "name" in data:
        fields["name"] = _name(data)
    if not partial or "responsible_party" in data:
        fields["responsible_party"] = _name(data, "responsible_party")
    if not partial or "mobile" in data:
        fields["mobile"] = require_text(data, "mobile")
    for key in ("brn", "vat", "address"):
        if not partial or key in data:
            fields[key] = optional_text(data, key)
    if "revenue_share_percentage" in data:
        share = parse_decimal(
            data, "revenue_share_percentage", required=False,
            minimum=Decimal(0), maximum=Decimal(100),
        )
        fields["revenue_share_percentage"] = str(share) if share is not None else None

    return fields


def _product_fields(data: Dict[str, Any], partial: bool) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}

    if not partial or "name" in data:
        fields["name"] = _name(data)
    if not partial or "selling_price" in data or "price" in data:
        key = "price" if "price" in data else "selling_price"
        fields["price"] = str(parse_decimal(data, key))
    if "buying_price" in data:
        fields["buying_price"] = str(parse_decimal(data, "buying_price"))
    if "category_id" in data:
        fields["category_id"] = parse_int(data, "category_id", required=False)
    if not partial or "stock" in data:
        stock = parse_int(data, "stock", required=not partial) or 0
        if stock < 0:
            raise ValidationError("stock cannot be negative", field="stock")
        fields["stock"] = stock

    return fields


def _pin(data: Dict[str, Any]) -> str:
    pin = str(data.get("pin") or "").strip()
    if len(pin) != PIN_LENGTH or not pin.isdigit():
        raise ValidationError(f"PIN must be {PIN_LENGTH} digits", field="pin")
    return pin


# =========================================================================
# Tenants
# =========================================================================

@admin_bp.route("/tenants", methods=["POST"])
def create_tenant():
    state = get_state()
    fields = _tenant_fields(get_json_body(), partial=False)

    tenant_id = state.catalog.add_tenant(fields)
    if tenant_id is None:
        raise BackendUnavailableError("create_tenant")

    logger.info(f"Admin created tenant {tenant_id}")
    return {"tenant": state.catalog.get_tenant(tenant_id).to_dict()}, 201


@admin_bp.route("/tenants/<int:tenant_id>", methods=["PUT"])
def update_tenant(tenant_id: int):
    state = get_state()
    state.catalog.fetch_tenants()
    if state.catalog.get_tenant(tenant_id) is None:
        raise ValidationError(f"Unknown tenant {tenant_id}", status_code=404)

    fields = _tenant_fields(get_json_body(), partial=True)
    if not state.catalog.edit_tenant(tenant_id, fields):
        raise BackendUnavailableError("update_tenant")

    return {"tenant": state.catalog.get_tenant(tenant_id).to_dict()}


# =========================================================================
# Products
# =========================================================================

@admin_bp.route("/products", methods=["POST"])
def create_product():
    state = get_state()
    data = get_json_body()

    tenant_id = parse_int(data, "tenant_id")
    state.catalog.fetch_tenants()
    if state.catalog.get_tenant(tenant_id) is None:
        raise ValidationError(f"Unknown tenant {tenant_id}", field="tenant_id", status_code=404)

    fields = _product_fields(data, partial=False)
    fields["tenant_id"] = tenant_id

    product = state.catalog.add_product(fields)
    if product is None:
        raise BackendUnavailableError("create_product")

    return {"product": product.to_dict()}, 201


@admin_bp.route("/products/<product_id>", methods=["PUT"])
def update_product(product_id: str):
    state = get_state()
    fields = _product_fields(get_json_body(), partial=True)

    if not state.catalog.edit_product(product_id, fields):
        raise BackendUnavailableError("update_product")

    return {"product_id": product_id, "updated": sorted(fields)}


@admin_bp.route("/products/<product_id>", methods=["DELETE"])
def delete_product(product_id: str):
    """?tenant_id=<id> refreshes that tenant's cached product list."""
    state = get_state()
    tenant_id = request.args.get("tenant_id", type=int)

    if not state.catalog.delete_product(product_id, tenant_id=tenant_id):
        raise BackendUnavailableError("delete_product")

    return {"deleted": product_id}


@admin_bp.route("/products/<product_id>/stock", methods=["POST"])
def adjust_stock(product_id: str):
    """Body: {"delta": int}; negative values remove stock."""
    state = get_state()
    delta = parse_int(get_json_body(), "delta")
    if delta == 0:
        raise ValidationError("delta must not be zero", field="delta")

    new_stock = state.catalog.adjust_stock(product_id, delta)
    if new_stock is None:
        raise BackendUnavailableError("adjust_stock")

    return {"product_id": product_id, "stock": new_stock}


# =========================================================================
# Cashiers
# =========================================================================

@admin_bp.route("/cashiers", methods=["GET"])
def list_cashiers():
    state = get_state()
    if not state.catalog.fetch_cashiers(force=True):
        raise BackendUnavailableError("fetch_cashiers")
    return {"cashiers": [c.to_dict() for c in state.catalog.cashiers]}


@admin_bp.route("/cashiers", methods=["POST"])
def create_cashier():
    state = get_state()
    data = get_json_body()
    fields = {"name": _name(data), "pin": _pin(data)}

    cashier = state.catalog.add_cashier(fields)
    if cashier is None:
        raise BackendUnavailableError("create_cashier")

    return {"cashier": cashier.to_dict()}, 201


@admin_bp.route("/cashiers/<cashier_id>", methods=["PUT"])
def update_cashier(cashier_id: str):
    state = get_state()
    data = get_json_body()

    fields: Dict[str, Any] = {}
    if "name" in data:
        fields["name"] = _name(data)
    if "pin" in data:
        fields["pin"] = _pin(data)
    if not fields:
        raise ValidationError("Nothing to update")

    if not state.catalog.edit_cashier(cashier_id, fields):
        raise BackendUnavailableError("update_cashier")

    return {"cashier_id": cashier_id, "updated": sorted(fields)}


# =========================================================================
# Categories and events
# =========================================================================

@admin_bp.route("/categories", methods=["GET"])
def list_categories():
    state = get_state()
    if not state.catalog.fetch_categories():
        raise BackendUnavailableError("fetch_product_categories")
    return {"categories": [c.to_dict() for c in state.catalog.categories]}


@admin_bp.route("/events", methods=["GET"])
def list_events():
    state = get_state()
    if not state.catalog.fetch_events(force=True):
        raise BackendUnavailableError("fetch_events")
    return {"events": [e.to_dict() for e in state.catalog.events]}


@admin_bp.route("/events/<int:event_id>/activate", methods=["POST"])
def activate_event(event_id: int):
    state = get_state()
    if not state.catalog.set_active_event(event_id):
        raise BackendUnavailableError("set_active_event")
    return {"events": [e.to_dict() for e in state.catalog.events]}
