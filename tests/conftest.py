"""
Shared fixtures: a small seeded catalog and helpers to build models.
"""

import copy
from decimal import Decimal

import pytest

from core.backend import InMemoryBackend
from models.catalog import Product
from services.persistence import PersistenceAdapter
from services.pos_state import PosState


ADMIN_EMAIL = "admin@fids.mu"
ADMIN_PASSWORD = "secret-admin"

SEED = {
    "tenants": [
        {"tenant_id": 1, "name": "Dholl Puri Corner", "responsible_party": "Anil",
         "mobile": "57001122", "revenue_share_percentage": 70},
        {"tenant_id": 2, "name": "Island Juice Bar", "responsible_party": "Marie",
         "mobile": "57113344", "revenue_share_percentage": 80},
        {"tenant_id": 3, "name": "Festival Merch", "responsible_party": "Desk",
         "mobile": "57225566"},
    ],
    "products": [
        {"id": "p-101", "name": "Dholl Puri", "selling_price": "10.00", "tenant_id": 1, "stock": 100},
        {"id": "p-102", "name": "Roti", "selling_price": "5.00", "tenant_id": 1, "stock": 8},
        {"id": "p-201", "name": "Alouda", "selling_price": "7.50", "tenant_id": 2, "stock": 50},
        {"id": "p-301", "name": "T-Shirt", "selling_price": "450.00", "tenant_id": 3, "stock": 40},
    ],
    "cashiers": [
        {"id": "c-1", "name": "Priya", "pin": "1234"},
        {"id": "c-2", "name": "Kevin", "pin": "4321"},
    ],
    "product_categories": [
        {"id": 1, "name": "Food"},
        {"id": 2, "name": "Drinks"},
    ],
    "events": [
        {"id": 1, "name": "FIDS 2025", "is_active": True},
        {"id": 2, "name": "FIDS 2026", "is_active": False},
    ],
}


def _build_product(product_id="p-1", price="10.00", tenant_id=1, name=None):
    return Product(
        id=product_id,
        name=name or f"Product {product_id}",
        price=Decimal(price),
        tenant_id=tenant_id,
    )


@pytest.fixture
def make_product():
    """Factory building a Product without going through a backend."""
    return _build_product


@pytest.fixture
def admin_credentials():
    """(email, password) accepted by the backend fixture."""
    return ADMIN_EMAIL, ADMIN_PASSWORD


@pytest.fixture
def seed():
    """A fresh copy of the seed data for each test."""
    return copy.deepcopy(SEED)


@pytest.fixture
def backend(seed):
    """In-memory backend loaded with the seed data."""
    return InMemoryBackend(admin_email=ADMIN_EMAIL, admin_password=ADMIN_PASSWORD, seed=seed)


@pytest.fixture
def persistence(tmp_path):
    """Persistence adapter writing into a temporary directory."""
    return PersistenceAdapter(tmp_path, "test-storage")


@pytest.fixture
def state(backend, persistence):
    """Register state, hydrated synchronously."""
    pos_state = PosState(backend, persistence)
    pos_state.hydrate_now()
    return pos_state


@pytest.fixture
def cashier_state(state):
    """Register state with an open shift for cashier c-1 and tenant 1 selected."""
    assert state.start_shift("c-1", "1234", "500")
    state.select_tenant(1)
    return state
