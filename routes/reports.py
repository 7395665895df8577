"""
Reporting routes.

Handles:
- GET  /reports/revenue          - Revenue split per tenant plus totals
- GET  /reports/orders           - Completed orders, newest first
- GET  /reports/tenants/<id>     - One tenant's split, product sales and orders
- POST /reports/done             - Set or clear the reporting gate
- POST /reports/sync             - Push unsynced orders to the backend
- POST /reports/reset-shift      - Clear the order history for a new shift

reset-shift is reachable from the logged-out landing screen, so it needs
no session; the reporting gate alone protects it.
"""

from flask import Blueprint

from core.exceptions import ValidationError
from logging_config import get_logger
from .common import get_json_body, get_state


# Module logger
logger = get_logger(__name__)

reports_bp = Blueprint("reports", __name__, url_prefix="/reports")


@reports_bp.route("/revenue", methods=["GET"])
def revenue():
    state = get_state()
    state.session.require_any()

    report = state.revenue_report()
    return {
        "summary": state.order_summary().to_dict(),
        **report.to_dict(),
        "reporting_done": state.reporting_done,
    }


@reports_bp.route("/orders", methods=["GET"])
def orders():
    state = get_state()
    state.session.require_any()

    history = sorted(state.completed_orders(), key=lambda o: o.created_at, reverse=True)
    return {"orders": [o.to_dict() for o in history]}


@reports_bp.route("/tenants/<int:tenant_id>", methods=["GET"])
def tenant_detail(tenant_id: int):
    state = get_state()
    state.session.require_any()

    report = state.tenant_report(tenant_id)
    tenant = state.catalog.get_tenant(tenant_id)
    return {"tenant": tenant.to_dict() if tenant else None, **report.to_dict()}


@reports_bp.route("/done", methods=["POST"])
def reporting_done():
    """Body: {"done": bool} (defaults to true)."""
    state = get_state()
    state.session.require_any()

    done = get_json_body().get("done", True)
    if not isinstance(done, bool):
        raise ValidationError("done must be true or false", field="done")

    state.set_reporting_done(done)
    return {"reporting_done": state.reporting_done, "can_reset_shift": state.can_reset_shift}


@reports_bp.route("/sync", methods=["POST"])
def sync():
    """
    Push every unsynced order in one batch.

    A backend failure answers 502 and leaves all orders unsynced.
    """
    state = get_state()
    state.session.require_any()

    result = state.sync_orders()
    if not result.success:
        return {"error": "SyncFailed", **result.to_dict()}, 502
    return result.to_dict()


@reports_bp.route("/reset-shift", methods=["POST"])
def reset_shift():
    state = get_state()
    removed = state.reset_shift()
    return {"cleared_orders": removed, "reporting_done": state.reporting_done}
