"""
Current order (cart) routes.

Handles:
- GET    /order                  - Cart lines and totals
- POST   /order/items            - Add one unit of a product
- PATCH  /order/items/<pid>      - Set a line quantity (<= 0 removes it)
- DELETE /order/items/<pid>      - Remove a line
- DELETE /order                  - Empty the cart
- POST   /order/complete         - Finalize the cart into a completed order
- GET    /order/last             - Receipt of the last completed order

Only a cashier shift can use these routes.
"""

from flask import Blueprint

from core.exceptions import ValidationError
from logging_config import get_logger
from models.session import AddResult
from .common import get_json_body, get_state, parse_int


# Module logger
logger = get_logger(__name__)

order_bp = Blueprint("order", __name__, url_prefix="/order")


_REJECTION_MESSAGES = {
    AddResult.REJECTED_OTHER_TENANT: "Current order already holds another tenant's products",
    AddResult.REJECTED_NOT_SELECTED_TENANT: "Product does not belong to the selected tenant",
    AddResult.REJECTED_NO_SHIFT: "No active cashier shift",
}


@order_bp.route("", methods=["GET"])
def current_order():
    state = get_state()
    state.session.require_cashier()
    return state.current_order()


@order_bp.route("/items", methods=["POST"])
def add_item():
    """
    Body: {"product_id": str}

    A rejected add answers 409 with the reason in "result" and leaves the
    cart unchanged.
    """
    state = get_state()
    state.session.require_cashier()

    data = get_json_body()
    product_id = str(data.get("product_id") or "").strip()
    if not product_id:
        raise ValidationError("product_id is required", field="product_id")

    result = state.add_product_to_order(product_id)
    if not result.accepted:
        return {
            "error": "AddRejected",
            "result": result.value,
            "message": _REJECTION_MESSAGES[result],
            "order": state.current_order(),
        }, 409

    return {"result": result.value, "order": state.current_order()}


@order_bp.route("/items/<product_id>", methods=["PATCH"])
def update_item(product_id: str):
    """Body: {"quantity": int}"""
    state = get_state()
    state.session.require_cashier()

    quantity = parse_int(get_json_body(), "quantity")
    if not state.update_product_quantity(product_id, quantity):
        raise ValidationError(f"Product {product_id} is not in the current order", status_code=404)

    return state.current_order()


@order_bp.route("/items/<product_id>", methods=["DELETE"])
def remove_item(product_id: str):
    state = get_state()
    state.session.require_cashier()

    if not state.remove_product_from_order(product_id):
        raise ValidationError(f"Product {product_id} is not in the current order", status_code=404)

    return state.current_order()


@order_bp.route("", methods=["DELETE"])
def clear_order():
    state = get_state()
    state.session.require_cashier()
    state.clear_current_order()
    return state.current_order()


@order_bp.route("/complete", methods=["POST"])
def complete_order():
    """
    Finalize the cart.

    The order is kept locally whatever happens at the backend; "synced"
    in the response tells whether the immediate push succeeded.
    """
    state = get_state()
    state.session.require_cashier()

    order = state.complete_order()
    if order is None:
        raise ValidationError("Nothing to complete: the current order is empty or no tenant is selected")

    if not order.synced:
        logger.warning(f"Order {order.id} stored locally, backend push pending")

    return {"order": order.to_dict()}, 201


@order_bp.route("/last", methods=["GET"])
def last_order():
    state = get_state()
    state.session.require_cashier()

    order = state.last_completed_order
    if order is None:
        raise ValidationError("No order completed yet", status_code=404)

    tenant = state.catalog.get_tenant(order.tenant_id)
    return {
        "order": order.to_dict(),
        "tenant": tenant.to_dict() if tenant else None,
    }
