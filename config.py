"""
Configuration for FestivalPOS.

Values come from the environment (a .env file is loaded first) with
development defaults. The register keeps its completed-order history in
DATA_DIR/STORAGE_KEY.json.
"""

import os
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv

# Load .env early so environment variables are available for Config class
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"
    TESTING = False

    # ==========================================================================
    # Local persistence
    # ==========================================================================
    # The completed-order history survives reloads; the cart and the login
    # session do not. Changing STORAGE_KEY starts from an empty history.
    DATA_DIR = os.environ.get("POS_DATA_DIR", str(BASE_DIR / "data"))
    STORAGE_KEY = os.environ.get("POS_STORAGE_KEY", "fids-cashier-lite-storage")

    # ==========================================================================
    # Money
    # ==========================================================================
    VAT_RATE = Decimal(os.environ.get("POS_VAT_RATE", "0.15"))
    DEFAULT_TENANT_SHARE_PERCENT = Decimal(
        os.environ.get("POS_DEFAULT_TENANT_SHARE_PERCENT", "70")
    )

    # ==========================================================================
    # Backend
    # ==========================================================================
    # The bundled in-memory backend is seeded from this JSON file when set.
    SEED_DATA_PATH = os.environ.get("POS_SEED_DATA_PATH", "")
    ADMIN_EMAIL = os.environ.get("POS_ADMIN_EMAIL", "admin@fids.mu")
    ADMIN_PASSWORD = os.environ.get("POS_ADMIN_PASSWORD", "fidsadmin")

    # Admin form input
    MAX_TEXT_LENGTH = int(os.environ.get("POS_MAX_TEXT_LENGTH", "200"))

    # Seconds a request waits for the history restore before answering 503
    HYDRATION_WAIT_SECONDS = float(os.environ.get("POS_HYDRATION_WAIT_SECONDS", "2.0"))


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    HYDRATION_WAIT_SECONDS = 5.0
