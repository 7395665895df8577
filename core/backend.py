"""
Backend store client.

The register treats the backend (tenant, product, cashier, event and order
tables) as an async-style CRUD service: every call either returns typed
records or raises BackendUnavailableError when it cannot be reached.
Writes it refuses (unknown ids, negative stock) raise BackendRejectedError.
Nothing in the core depends on a wire format.

Implementations:
    - BackendClient: abstract interface consumed by the services
    - InMemoryBackend: thread-safe in-process tables, optionally seeded from
      a JSON file; used for development runs and tests

Concurrency:
    Stock adjustments and the single-active-event rule are enforced here,
    inside the backend's own lock, not by the register.

Usage:
    backend = InMemoryBackend.from_seed_file("seed.json",
                                            admin_email="admin@fids.mu",
                                            admin_password="secret")
    tenants = backend.fetch_tenants()
    backend.available = False   # simulate an outage in tests
"""

from __future__ import annotations

import hmac
import json
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, List, Optional, Sequence

from models.catalog import Cashier, Event, Product, ProductCategory, Tenant
from models.money import to_decimal
from models.order import Order
from logging_config import get_logger
from .exceptions import BackendRejectedError, BackendUnavailableError


logger = get_logger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class BackendClient(ABC):
    """Interface to the persistent backend store."""

    # Reads

    @abstractmethod
    def fetch_tenants(self) -> List[Tenant]: ...

    @abstractmethod
    def fetch_products(self, tenant_id: int) -> List[Product]: ...

    @abstractmethod
    def fetch_cashiers(self) -> List[Cashier]: ...

    @abstractmethod
    def fetch_product_categories(self) -> List[ProductCategory]: ...

    @abstractmethod
    def fetch_events(self) -> List[Event]: ...

    # Authentication

    @abstractmethod
    def authenticate_cashier(self, cashier_id: str, pin: str) -> Optional[Cashier]:
        """Return the cashier when id and PIN match, None otherwise."""

    @abstractmethod
    def authenticate_admin(self, email: str, password: str) -> bool: ...

    @abstractmethod
    def open_station(self, cashier_id: str, float_amount) -> str:
        """Record a cashing-station login and return its session id."""

    # Writes

    @abstractmethod
    def create_tenant(self, data: Dict[str, Any]) -> Tenant: ...

    @abstractmethod
    def update_tenant(self, tenant_id: int, data: Dict[str, Any]) -> Tenant: ...

    @abstractmethod
    def create_product(self, data: Dict[str, Any]) -> Product: ...

    @abstractmethod
    def update_product(self, product_id: str, data: Dict[str, Any]) -> Product: ...

    @abstractmethod
    def delete_product(self, product_id: str) -> None: ...

    @abstractmethod
    def create_cashier(self, data: Dict[str, Any]) -> Cashier: ...

    @abstractmethod
    def update_cashier(self, cashier_id: str, data: Dict[str, Any]) -> Cashier: ...

    @abstractmethod
    def adjust_stock(self, product_id: str, delta: int) -> int:
        """
        Apply a signed stock delta atomically and return the new stock.

        Raises BackendRejectedError when the product is unknown or the
        result would be negative.
        """

    @abstractmethod
    def set_active_event(self, event_id: int) -> Event:
        """Make exactly one event active."""

    @abstractmethod
    def insert_orders(self, orders: Sequence[Order]) -> None:
        """Upsert orders and their items, keyed by order id."""


class InMemoryBackend(BackendClient):
    """
    In-process backend tables guarded by one lock.

    Rows are stored as plain dicts (the backend's own column names) and
    converted to model objects on the way out, so callers never share
    mutable state with the store.

    Attributes:
        available: Set False to make every call raise BackendUnavailableError
    """

    def __init__(
        self,
        admin_email: str = "",
        admin_password: str = "",
        seed: Optional[Dict[str, Any]] = None,
    ):
        self._admin_email = admin_email
        self._admin_password = admin_password
        self._lock = threading.Lock()
        self.available = True

        seed = seed or {}
        self._tenants: Dict[int, Dict[str, Any]] = {
            row["tenant_id"]: dict(row) for row in seed.get("tenants", [])
        }
        self._products: Dict[str, Dict[str, Any]] = {
            str(row["id"]): dict(row) for row in seed.get("products", [])
        }
        self._cashiers: Dict[str, Dict[str, Any]] = {
            str(row["id"]): dict(row) for row in seed.get("cashiers", [])
        }
        self._categories: Dict[int, Dict[str, Any]] = {
            row["id"]: dict(row) for row in seed.get("product_categories", [])
        }
        self._events: Dict[int, Dict[str, Any]] = {
            row["id"]: dict(row) for row in seed.get("events", [])
        }
        self._stations: Dict[str, Dict[str, Any]] = {}
        self._orders: Dict[str, Dict[str, Any]] = {}
        self._order_items: Dict[str, List[Dict[str, Any]]] = {}
        self._next_tenant_id = max(self._tenants, default=0) + 1

        logger.info(
            f"InMemoryBackend initialized ({len(self._tenants)} tenants, "
            f"{len(self._products)} products, {len(self._cashiers)} cashiers)"
        )

    @classmethod
    def from_seed_file(cls, path: str | Path, **kwargs) -> "InMemoryBackend":
        """
        Create a backend seeded from a JSON file.

        The file holds lists under "tenants", "products", "cashiers",
        "product_categories" and "events".
        """
        with open(path, "r", encoding="utf-8") as f:
            seed = json.load(f)
        logger.info(f"Loaded backend seed data from {path}")
        return cls(seed=seed, **kwargs)

    def _check(self, operation: str) -> None:
        if not self.available:
            raise BackendUnavailableError(operation)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch_tenants(self) -> List[Tenant]:
        with self._lock:
            self._check("fetch_tenants")
            return [Tenant.from_dict(row) for row in self._tenants.values()]

    def fetch_products(self, tenant_id: int) -> List[Product]:
        with self._lock:
            self._check("fetch_products")
            return [
                Product.from_dict(row)
                for row in self._products.values()
                if row["tenant_id"] == tenant_id
            ]

    def fetch_cashiers(self) -> List[Cashier]:
        with self._lock:
            self._check("fetch_cashiers")
            return [Cashier.from_dict(row) for row in self._cashiers.values()]

    def fetch_product_categories(self) -> List[ProductCategory]:
        with self._lock:
            self._check("fetch_product_categories")
            return [ProductCategory.from_dict(row) for row in self._categories.values()]

    def fetch_events(self) -> List[Event]:
        with self._lock:
            self._check("fetch_events")
            return [Event.from_dict(row) for row in self._events.values()]

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def authenticate_cashier(self, cashier_id: str, pin: str) -> Optional[Cashier]:
        with self._lock:
            self._check("authenticate_cashier")
            row = self._cashiers.get(str(cashier_id))
            if row is None or row.get("pin") is None:
                return None
            if not hmac.compare_digest(str(row["pin"]).encode(), str(pin).encode()):
                return None
            return Cashier.from_dict(row)

    def authenticate_admin(self, email: str, password: str) -> bool:
        self._check("authenticate_admin")
        if not self._admin_email or not self._admin_password:
            return False
        email_ok = hmac.compare_digest(email.strip().lower().encode(), self._admin_email.lower().encode())
        password_ok = hmac.compare_digest(password.encode(), self._admin_password.encode())
        return email_ok and password_ok

    def open_station(self, cashier_id: str, float_amount) -> str:
        with self._lock:
            self._check("open_station")
            station_id = str(uuid.uuid4())
            self._stations[station_id] = {
                "id": station_id,
                "current_cashier_id": cashier_id,
                "last_login_at": _utc_now_iso(),
                "starting_float": str(float_amount),
                "is_active": True,
            }
            return station_id

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_tenant(self, data: Dict[str, Any]) -> Tenant:
        with self._lock:
            self._check("create_tenant")
            row = dict(data)
            row["tenant_id"] = self._next_tenant_id
            row["created_at"] = _utc_now_iso()
            tenant = Tenant.from_dict(row)
            self._tenants[tenant.tenant_id] = row
            self._next_tenant_id += 1
            return tenant

    def update_tenant(self, tenant_id: int, data: Dict[str, Any]) -> Tenant:
        with self._lock:
            self._check("update_tenant")
            if tenant_id not in self._tenants:
                raise BackendRejectedError("update_tenant", f"tenant {tenant_id} not found", status_code=404)
            row = {**self._tenants[tenant_id], **data, "tenant_id": tenant_id}
            tenant = Tenant.from_dict(row)
            self._tenants[tenant_id] = row
            return tenant

    def create_product(self, data: Dict[str, Any]) -> Product:
        with self._lock:
            self._check("create_product")
            if data.get("tenant_id") not in self._tenants:
                raise BackendRejectedError("create_product", "unknown tenant", status_code=404)
            row = dict(data)
            row["id"] = str(uuid.uuid4())
            row["created_at"] = _utc_now_iso()
            row.setdefault("initial_stock", row.get("stock", 0))
            product = Product.from_dict(row)
            self._products[product.id] = row
            return product

    def update_product(self, product_id: str, data: Dict[str, Any]) -> Product:
        with self._lock:
            self._check("update_product")
            if product_id not in self._products:
                raise BackendRejectedError("update_product", f"product {product_id} not found", status_code=404)
            row = {**self._products[product_id], **data, "id": product_id}
            product = Product.from_dict(row)
            self._products[product_id] = row
            return product

    def delete_product(self, product_id: str) -> None:
        with self._lock:
            self._check("delete_product")
            if self._products.pop(product_id, None) is None:
                raise BackendRejectedError("delete_product", f"product {product_id} not found", status_code=404)

    def create_cashier(self, data: Dict[str, Any]) -> Cashier:
        with self._lock:
            self._check("create_cashier")
            row = dict(data)
            row["id"] = str(uuid.uuid4())
            row["created_at"] = _utc_now_iso()
            cashier = Cashier.from_dict(row)
            self._cashiers[cashier.id] = row
            return cashier

    def update_cashier(self, cashier_id: str, data: Dict[str, Any]) -> Cashier:
        with self._lock:
            self._check("update_cashier")
            if cashier_id not in self._cashiers:
                raise BackendRejectedError("update_cashier", f"cashier {cashier_id} not found", status_code=404)
            row = {**self._cashiers[cashier_id], **data, "id": cashier_id}
            cashier = Cashier.from_dict(row)
            self._cashiers[cashier_id] = row
            return cashier

    def adjust_stock(self, product_id: str, delta: int) -> int:
        with self._lock:
            self._check("adjust_stock")
            row = self._products.get(product_id)
            if row is None:
                raise BackendRejectedError("adjust_stock", f"product {product_id} not found", status_code=404)
            new_stock = int(row.get("stock", 0) or 0) + int(delta)
            if new_stock < 0:
                raise BackendRejectedError("adjust_stock", "stock cannot go negative")
            row["stock"] = new_stock
            return new_stock

    def set_active_event(self, event_id: int) -> Event:
        with self._lock:
            self._check("set_active_event")
            if event_id not in self._events:
                raise BackendRejectedError("set_active_event", f"event {event_id} not found", status_code=404)
            for row in self._events.values():
                row["is_active"] = row["id"] == event_id
            return Event.from_dict(self._events[event_id])

    def insert_orders(self, orders: Sequence[Order]) -> None:
        with self._lock:
            self._check("insert_orders")
            for order in orders:
                self._orders[order.id] = {
                    "id": order.id,
                    "tenant_id": order.tenant_id,
                    "subtotal": str(order.subtotal),
                    "vat": str(order.vat),
                    "total": str(order.total),
                    "created_at": datetime.fromtimestamp(
                        order.created_at / 1000, tz=timezone.utc
                    ).isoformat(),
                    "cashier_id": order.cashier_id,
                    "station_id": order.station_id,
                }
                self._order_items[order.id] = [
                    {
                        "order_id": order.id,
                        "product_id": item.product_id,
                        "quantity": item.quantity,
                        "price": str(item.price),
                    }
                    for item in order.items
                ]

    # ------------------------------------------------------------------
    # Inspection helpers
    # ------------------------------------------------------------------

    def stored_order_ids(self) -> List[str]:
        """Ids of orders received through insert_orders()."""
        with self._lock:
            return list(self._orders)

    def stored_order_total(self, order_id: str):
        with self._lock:
            row = self._orders.get(order_id)
            return to_decimal(row["total"]) if row else None
