"""
Login routes.

Cashier shift start (id + PIN + float), admin login, logout and end of
shift. Failed logins always answer with the same generic message.
"""

from flask import Blueprint

from core.exceptions import AuthenticationError, BackendUnavailableError, ValidationError
from logging_config import get_logger
from .common import get_json_body, get_state, parse_decimal


# Module logger
logger = get_logger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def session_payload(state) -> dict:
    """Current session as returned by every auth route."""
    shift = state.session.active_shift
    admin = state.session.active_admin
    return {
        "state": state.session.state.value,
        "shift": shift.to_dict() if shift else None,
        "admin": admin.to_dict() if admin else None,
        "selected_tenant_id": state.selected_tenant_id,
        "reporting_done": state.reporting_done,
        "can_reset_shift": state.can_reset_shift,
    }


@auth_bp.route("/session", methods=["GET"])
def current_session():
    """Who is logged in; the UI routes to the login screen on logged_out."""
    return session_payload(get_state())


@auth_bp.route("/cashiers", methods=["GET"])
def cashiers():
    """Cashier list for the login picker (PINs are never included)."""
    state = get_state()
    if not state.catalog.fetch_cashiers():
        raise BackendUnavailableError("fetch_cashiers")
    return {"cashiers": [c.to_dict() for c in state.catalog.cashiers]}


@auth_bp.route("/shift", methods=["POST"])
def start_shift():
    """
    Start a cashier shift.

    Body: {"cashier_id": str, "pin": str, "float_amount": number}
    """
    data = get_json_body()
    cashier_id = str(data.get("cashier_id") or "").strip()
    pin = str(data.get("pin") or "")
    if not cashier_id or not pin:
        raise ValidationError("cashier_id and pin are required")
    float_amount = parse_decimal(data, "float_amount")

    state = get_state()
    if not state.start_shift(cashier_id, pin, float_amount):
        raise AuthenticationError()

    return session_payload(state)


@auth_bp.route("/admin", methods=["POST"])
def admin_login():
    """Body: {"email": str, "password": str}"""
    data = get_json_body()
    email = str(data.get("email") or "").strip()
    password = str(data.get("password") or "")
    if not email or not password:
        raise ValidationError("email and password are required")

    state = get_state()
    if not state.admin_login(email, password):
        raise AuthenticationError()

    return session_payload(state)


@auth_bp.route("/logout", methods=["POST"])
def logout():
    state = get_state()
    state.logout()
    return session_payload(state)


@auth_bp.route("/end-shift", methods=["POST"])
def end_shift():
    """End the cashier shift; refused until reporting is marked done."""
    state = get_state()
    state.end_shift()
    return session_payload(state)
