"""
Application state for one register.

PosState is the explicit state object handed to the HTTP layer through
app.config["POS_STATE"]. It owns the catalog cache, the cart, the order
ledger, the session state machine and the persistence adapter, and funnels
every mutation through one lock so each resource keeps a single writer.

Operation Flow:
    start_shift() ──> select_tenant() ──> add/update/remove ──> complete_order()
                                                                   │
                   persistence.save() <── ledger listener <────────┘
    set_reporting_done() ──> reset_shift()

Gating:
    - Nothing that reads or writes the ledger runs before hydration
      completes (StoreNotReadyError)
    - Only a cashier shift can sell; admins are rejected
    - reset_shift() / end_shift() need reporting_done when orders exist
"""

from __future__ import annotations

import threading
from decimal import Decimal
from typing import Dict, Any, Iterable, List, Optional

from core.backend import BackendClient
from core.exceptions import ResetNotAllowedError, StoreNotReadyError, ValidationError
from models.catalog import DEFAULT_TENANT_SHARE_PERCENT, Tenant
from models.order import Order, VAT_RATE
from models.session import AddResult
from modules.revenue import (
    OrderSummary,
    RevenueReport,
    TenantReport,
    allocate_revenue,
    summarize_orders,
    tenant_report,
)
from logging_config import get_logger
from .cart_service import CartService
from .catalog_service import CatalogCache
from .order_ledger import OrderLedger, SyncResult
from .persistence import PersistenceAdapter
from .session_service import SessionService


logger = get_logger(__name__)


class PosState:
    """
    Single-register POS state.

    Attributes:
        catalog: Catalog read cache and admin CRUD passthrough
        cart: Current order
        ledger: Completed-order history
        session: Login state machine and reporting gate
        persistence: Local store of the ledger
    """

    def __init__(
        self,
        backend: BackendClient,
        persistence: PersistenceAdapter,
        vat_rate: Decimal = VAT_RATE,
        default_share_percentage: Decimal = DEFAULT_TENANT_SHARE_PERCENT,
    ):
        self._backend = backend
        self._lock = threading.Lock()
        self._selected_tenant_id: Optional[int] = None
        self._default_share = default_share_percentage

        self.catalog = CatalogCache(backend)
        self.cart = CartService(vat_rate)
        self.ledger = OrderLedger()
        self.session = SessionService(backend)
        self.persistence = persistence

        self.ledger.add_listener(self.persistence.save)

    # ------------------------------------------------------------------
    # Hydration
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin restoring the order history in the background."""
        self.persistence.start_hydration(self._apply_restored)

    def hydrate_now(self) -> None:
        """Restore synchronously (CLI tools and tests)."""
        self.persistence.hydrate(self._apply_restored)

    def _apply_restored(self, orders: List[Order]) -> None:
        with self._lock:
            self.ledger.load(orders)

    @property
    def is_hydrated(self) -> bool:
        return self.persistence.is_hydrated

    def ensure_hydrated(self, timeout: float = 0.0) -> None:
        """
        Raises:
            StoreNotReadyError: If hydration has not finished within timeout
        """
        if not self.persistence.wait_until_hydrated(timeout):
            raise StoreNotReadyError()

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def start_shift(self, cashier_id: str, pin: str, float_amount) -> bool:
        with self._lock:
            ok = self.session.start_shift(cashier_id, pin, float_amount)
            if ok:
                self._reset_selection()
            return ok

    def admin_login(self, email: str, password: str) -> bool:
        with self._lock:
            ok = self.session.admin_login(email, password)
            if ok:
                self._reset_selection()
            return ok

    def logout(self) -> None:
        with self._lock:
            self.session.logout()
            self._reset_selection()

    def end_shift(self) -> None:
        """
        Close the cashier shift.

        Raises:
            ResetNotAllowedError: Orders exist and reporting is not done
        """
        self.ensure_hydrated()
        with self._lock:
            self.session.require_cashier()
            if not self.session.can_reset_shift(len(self.ledger)):
                raise ResetNotAllowedError(len(self.ledger), action="end the shift")
            self.session.logout()
            self._reset_selection()

    # ------------------------------------------------------------------
    # Tenant selection
    # ------------------------------------------------------------------

    @property
    def selected_tenant_id(self) -> Optional[int]:
        return self._selected_tenant_id

    def list_tenants(self, force: bool = False) -> Optional[List[Tenant]]:
        """Cached tenants, or None if they could not be loaded."""
        if not self.catalog.fetch_tenants(force=force):
            return None
        return list(self.catalog.tenants)

    def select_tenant(self, tenant_id: int) -> Tenant:
        """
        Make a tenant the active one and load its products.

        Switching to a different tenant empties the cart.

        Raises:
            ValidationError: Unknown tenant (404)
        """
        with self._lock:
            self.catalog.fetch_tenants()
            tenant = self.catalog.get_tenant(tenant_id)
            if tenant is None:
                raise ValidationError(f"Unknown tenant {tenant_id}", field="tenant_id", status_code=404)

            if self._selected_tenant_id != tenant_id:
                self.cart.clear()
                self.catalog.clear_products()
            self._selected_tenant_id = tenant_id
            self.catalog.fetch_products(tenant_id)
            logger.info(f"Selected tenant {tenant_id} ({tenant.name})")
            return tenant

    def reset_to_tenant_selection(self) -> None:
        """Back to the tenant grid: clears cart, selection and receipt, keeps the shift."""
        with self._lock:
            self._reset_selection()

    def _reset_selection(self) -> None:
        self.cart.clear()
        self._selected_tenant_id = None
        self.ledger.set_last_completed_order(None)
        self.catalog.clear_products()

    # ------------------------------------------------------------------
    # Cart
    # ------------------------------------------------------------------

    def add_product_to_order(self, product_id: str) -> AddResult:
        """
        Add one unit of a cached product of the selected tenant.

        Raises:
            ValidationError: Product not in the catalog cache (404)
        """
        with self._lock:
            if self.session.active_shift is None:
                logger.warning("Rejected add to order: no active cashier shift")
                return AddResult.REJECTED_NO_SHIFT

            product = self.catalog.get_product(product_id)
            if product is None:
                raise ValidationError(f"Unknown product {product_id}", field="product_id", status_code=404)

            if self.cart.is_empty and product.tenant_id != self._selected_tenant_id:
                logger.warning(
                    f"Rejected product {product_id}: not from selected tenant "
                    f"{self._selected_tenant_id}"
                )
                return AddResult.REJECTED_NOT_SELECTED_TENANT

            return self.cart.add_product(product)

    def remove_product_from_order(self, product_id: str) -> bool:
        with self._lock:
            return self.cart.remove_product(product_id)

    def update_product_quantity(self, product_id: str, quantity: int) -> bool:
        with self._lock:
            return self.cart.update_quantity(product_id, quantity)

    def clear_current_order(self) -> None:
        with self._lock:
            self.cart.clear()

    def current_order(self) -> Dict[str, Any]:
        """Cart view for the order screen."""
        with self._lock:
            return {
                "tenant_id": self._selected_tenant_id,
                "items": [line.to_dict() for line in self.cart.lines],
                "item_count": self.cart.item_count,
                **self.cart.totals().to_dict(),
            }

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    @property
    def last_completed_order(self) -> Optional[Order]:
        return self.ledger.last_completed_order

    def completed_orders(self) -> List[Order]:
        self.ensure_hydrated()
        return list(self.ledger.orders)

    def complete_order(self) -> Optional[Order]:
        """
        Finalize the cart and try to store the order at the backend.

        Returns None (no-op) when the cart is empty, no tenant is selected
        or no shift is active. A backend failure keeps the order with
        synced=False for a later sync_orders(). A new order clears the
        reporting-done flag so it has to be reconciled before a reset.
        """
        self.ensure_hydrated()
        with self._lock:
            shift = self.session.active_shift
            if self.cart.is_empty or self._selected_tenant_id is None or shift is None:
                return None

            order = self.ledger.complete_order(
                self.cart, cashier_id=shift.cashier_id, station_id=shift.station_id
            )
            if self.session.reporting_done:
                self.session.set_reporting_done(False)
            self.ledger.push_order(self._backend, order)
            return self.ledger.get(order.id)

    def sync_orders(self) -> SyncResult:
        self.ensure_hydrated()
        with self._lock:
            return self.ledger.sync_orders(self._backend)

    def mark_orders_as_synced(self, order_ids: Iterable[str]) -> int:
        self.ensure_hydrated()
        with self._lock:
            return self.ledger.mark_orders_as_synced(order_ids)

    # ------------------------------------------------------------------
    # Reporting gate and shift reset
    # ------------------------------------------------------------------

    @property
    def reporting_done(self) -> bool:
        return self.session.reporting_done

    @property
    def can_reset_shift(self) -> bool:
        return self.session.can_reset_shift(len(self.ledger))

    def set_reporting_done(self, done: bool = True) -> None:
        """
        Raises:
            ValidationError: Marking done with no orders to report (409)
        """
        self.ensure_hydrated()
        with self._lock:
            if done and len(self.ledger) == 0:
                raise ValidationError("No completed orders to report", status_code=409)
            self.session.set_reporting_done(done)

    def reset_shift(self) -> int:
        """
        Clear the completed-order history to start a fresh shift.

        Also clears the reporting gate, logs everyone out and resets the
        tenant selection.

        Returns:
            Number of orders removed

        Raises:
            ResetNotAllowedError: Orders exist and reporting is not done
        """
        self.ensure_hydrated()
        with self._lock:
            count = len(self.ledger)
            if not self.session.can_reset_shift(count):
                raise ResetNotAllowedError(count)
            removed = self.ledger.clear_completed_orders()
            self.session.set_reporting_done(False)
            self.session.logout()
            self._reset_selection()
            logger.info(f"Shift reset, {removed} orders cleared")
            return removed

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def revenue_report(self) -> RevenueReport:
        self.ensure_hydrated()
        self.catalog.fetch_tenants()
        return allocate_revenue(self.ledger.orders, self.catalog.tenants, self._default_share)

    def order_summary(self) -> OrderSummary:
        self.ensure_hydrated()
        return summarize_orders(self.ledger.orders)

    def tenant_report(self, tenant_id: int) -> TenantReport:
        """
        Raises:
            ValidationError: Unknown tenant (404)
        """
        self.ensure_hydrated()
        self.catalog.fetch_tenants()
        tenant = self.catalog.get_tenant(tenant_id)
        if tenant is None:
            raise ValidationError(f"Unknown tenant {tenant_id}", field="tenant_id", status_code=404)
        return tenant_report(
            tenant,
            self.ledger.orders,
            self.catalog.products_for(tenant_id),
            self._default_share,
        )
