"""
Catalog cache.

Holds tenant, product, cashier, category and event reference data fetched
from the backend. It has no business rules of its own: reads replace the
cached tuples wholesale, and admin writes go straight to the backend and
then refresh the affected cache.

Failure Model:
    Every backend call can raise BackendUnavailableError. The cache catches
    it, logs it and returns a failure value (False / None). Cached data is
    left exactly as it was before the call. BackendRejectedError (unknown
    id, negative stock) is not caught and reaches the caller with its reason.

Thread Safety:
    Cached collections are tuples replaced by a single assignment, so a
    reader always sees either the old or the new snapshot.
"""

from __future__ import annotations

from typing import Dict, Any, Optional, Tuple

from core.backend import BackendClient
from core.exceptions import BackendUnavailableError
from models.catalog import Cashier, Event, Product, ProductCategory, Tenant
from logging_config import get_logger


logger = get_logger(__name__)


class CatalogCache:
    """
    Read cache for catalog reference data plus admin CRUD passthrough.

    Products are cached for one tenant at a time (the tenant currently
    selected at the register); tenants, cashiers, categories and events are
    cached globally and only refetched when empty or when forced.
    """

    def __init__(self, backend: BackendClient):
        self._backend = backend
        self._tenants: Tuple[Tenant, ...] = ()
        self._products: Tuple[Product, ...] = ()
        self._products_tenant_id: Optional[int] = None
        self._cashiers: Tuple[Cashier, ...] = ()
        self._categories: Tuple[ProductCategory, ...] = ()
        self._events: Tuple[Event, ...] = ()

    # ------------------------------------------------------------------
    # Cached views
    # ------------------------------------------------------------------

    @property
    def tenants(self) -> Tuple[Tenant, ...]:
        return self._tenants

    @property
    def products(self) -> Tuple[Product, ...]:
        """Products of the tenant loaded by the last fetch_products()."""
        return self._products

    @property
    def products_tenant_id(self) -> Optional[int]:
        return self._products_tenant_id

    @property
    def cashiers(self) -> Tuple[Cashier, ...]:
        return self._cashiers

    @property
    def categories(self) -> Tuple[ProductCategory, ...]:
        return self._categories

    @property
    def events(self) -> Tuple[Event, ...]:
        return self._events

    def get_tenant(self, tenant_id: Optional[int]) -> Optional[Tenant]:
        if tenant_id is None:
            return None
        return next((t for t in self._tenants if t.tenant_id == tenant_id), None)

    def get_product(self, product_id: str) -> Optional[Product]:
        return next((p for p in self._products if p.id == product_id), None)

    def clear_products(self) -> None:
        self._products = ()
        self._products_tenant_id = None

    # ------------------------------------------------------------------
    # Fetches
    # ------------------------------------------------------------------

    def fetch_tenants(self, force: bool = False) -> bool:
        """
        Load tenants unless already cached.

        Returns:
            True if the cache holds current data, False on backend failure
        """
        if self._tenants and not force:
            return True
        try:
            self._tenants = tuple(self._backend.fetch_tenants())
        except BackendUnavailableError as e:
            logger.error(f"Error fetching tenants: {e}")
            return False
        logger.debug(f"Cached {len(self._tenants)} tenants")
        return True

    def fetch_products(self, tenant_id: int) -> bool:
        """
        Load the products of one tenant, replacing the product cache.

        On failure the product cache is emptied so the register never shows
        another tenant's products.
        """
        try:
            products = tuple(self._backend.fetch_products(tenant_id))
        except BackendUnavailableError as e:
            logger.error(f"Error fetching products for tenant {tenant_id}: {e}")
            self.clear_products()
            return False
        self._products = products
        self._products_tenant_id = tenant_id
        logger.debug(f"Cached {len(products)} products for tenant {tenant_id}")
        return True

    def products_for(self, tenant_id: int) -> Tuple[Product, ...]:
        """
        Products of any tenant without disturbing the register's cache.

        Returns an empty tuple when the backend is unavailable.
        """
        if self._products_tenant_id == tenant_id:
            return self._products
        try:
            return tuple(self._backend.fetch_products(tenant_id))
        except BackendUnavailableError as e:
            logger.error(f"Error fetching products for tenant {tenant_id}: {e}")
            return ()

    def fetch_cashiers(self, force: bool = False) -> bool:
        if self._cashiers and not force:
            return True
        try:
            self._cashiers = tuple(self._backend.fetch_cashiers())
        except BackendUnavailableError as e:
            logger.error(f"Error fetching cashiers: {e}")
            return False
        return True

    def fetch_categories(self, force: bool = False) -> bool:
        if self._categories and not force:
            return True
        try:
            self._categories = tuple(self._backend.fetch_product_categories())
        except BackendUnavailableError as e:
            logger.error(f"Error fetching product categories: {e}")
            return False
        return True

    def fetch_events(self, force: bool = False) -> bool:
        if self._events and not force:
            return True
        try:
            self._events = tuple(self._backend.fetch_events())
        except BackendUnavailableError as e:
            logger.error(f"Error fetching events: {e}")
            return False
        return True

    # ------------------------------------------------------------------
    # Admin writes
    # ------------------------------------------------------------------

    def add_tenant(self, data: Dict[str, Any]) -> Optional[int]:
        """
        Create a tenant.

        Returns:
            The new tenant id, or None if the backend refused
        """
        try:
            tenant = self._backend.create_tenant(data)
        except (BackendUnavailableError, ValueError) as e:
            logger.error(f"Error adding tenant: {e}")
            return None
        self.fetch_tenants(force=True)
        logger.info(f"Added tenant {tenant.tenant_id} ({tenant.name})")
        return tenant.tenant_id

    def edit_tenant(self, tenant_id: int, data: Dict[str, Any]) -> bool:
        try:
            self._backend.update_tenant(tenant_id, data)
        except (BackendUnavailableError, ValueError) as e:
            logger.error(f"Error editing tenant {tenant_id}: {e}")
            return False
        self.fetch_tenants(force=True)
        return True

    def add_product(self, data: Dict[str, Any]) -> Optional[Product]:
        try:
            product = self._backend.create_product(data)
        except (BackendUnavailableError, ValueError) as e:
            logger.error(f"Error adding product: {e} (sent: {data})")
            return None
        self._refresh_products_for(product.tenant_id)
        return product

    def edit_product(self, product_id: str, data: Dict[str, Any]) -> bool:
        try:
            product = self._backend.update_product(product_id, data)
        except (BackendUnavailableError, ValueError) as e:
            logger.error(f"Error editing product {product_id}: {e}")
            return False
        self._refresh_products_for(product.tenant_id)
        return True

    def delete_product(self, product_id: str, tenant_id: Optional[int] = None) -> bool:
        try:
            self._backend.delete_product(product_id)
        except BackendUnavailableError as e:
            logger.error(f"Error deleting product {product_id}: {e}")
            return False
        if tenant_id is not None:
            self._refresh_products_for(tenant_id)
        return True

    def add_cashier(self, data: Dict[str, Any]) -> Optional[Cashier]:
        try:
            cashier = self._backend.create_cashier(data)
        except BackendUnavailableError as e:
            logger.error(f"Error adding cashier: {e}")
            return None
        self.fetch_cashiers(force=True)
        return cashier

    def edit_cashier(self, cashier_id: str, data: Dict[str, Any]) -> bool:
        try:
            self._backend.update_cashier(cashier_id, data)
        except BackendUnavailableError as e:
            logger.error(f"Error editing cashier {cashier_id}: {e}")
            return False
        self.fetch_cashiers(force=True)
        return True

    def adjust_stock(self, product_id: str, delta: int) -> Optional[int]:
        """
        Apply a signed stock delta at the backend.

        Atomicity is the backend's responsibility; the cache only reloads.

        Returns:
            New stock level, or None when the backend is unreachable

        Raises:
            BackendRejectedError: Unknown product or negative result
        """
        try:
            new_stock = self._backend.adjust_stock(product_id, delta)
        except BackendUnavailableError as e:
            logger.error(f"Error adjusting stock for {product_id}: {e}")
            return None
        if self._products_tenant_id is not None and self.get_product(product_id):
            self._refresh_products_for(self._products_tenant_id)
        return new_stock

    def set_active_event(self, event_id: int) -> bool:
        try:
            self._backend.set_active_event(event_id)
        except BackendUnavailableError as e:
            logger.error(f"Error activating event {event_id}: {e}")
            return False
        self.fetch_events(force=True)
        return True

    def _refresh_products_for(self, tenant_id: int) -> None:
        # Only the currently cached tenant's products are reloaded
        if self._products_tenant_id == tenant_id:
            self.fetch_products(tenant_id)
