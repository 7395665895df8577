"""
Flask route blueprints for FestivalPOS.

This module contains all route handlers organized by functionality:
- auth: Cashier shift and admin login
- tenants: Tenant selection and product lists
- order: Current order (cart) and order completion
- reports: Revenue reports, sync, reporting gate and shift reset
- admin: Tenant, product, cashier and event management
- api: Health check and hydration status

Each blueprint is registered with the Flask app in create_app().
"""

from .auth import auth_bp
from .tenants import tenants_bp
from .order import order_bp
from .reports import reports_bp
from .admin import admin_bp
from .api import api_bp, HYDRATION_EXEMPT_ENDPOINTS

__all__ = [
    "auth_bp",
    "tenants_bp",
    "order_bp",
    "reports_bp",
    "admin_bp",
    "api_bp",
    "HYDRATION_EXEMPT_ENDPOINTS",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(auth_bp)
    app.register_blueprint(tenants_bp)
    app.register_blueprint(order_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(api_bp)
