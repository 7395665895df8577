"""
Services layer for FestivalPOS.

This module contains the register's business logic:
- CatalogCache: Tenant/product/cashier reference data
- CartService: Single-tenant current order
- OrderLedger: Completed orders and sync bookkeeping
- SessionService: Login state machine and reporting gate
- PersistenceAdapter: Local store of the order history
- PosState: Composes the above for one register

Thread Model:
    Main Thread / Flask workers
    └── PosState (one lock serializes every mutation)

    Hydration thread (once, at startup)
    └── Restores the order history, then signals ready
"""

from .cart_service import CartService
from .catalog_service import CatalogCache
from .order_ledger import OrderLedger, SyncResult
from .persistence import PersistenceAdapter
from .pos_state import PosState
from .session_service import SessionService

__all__ = [
    "CartService",
    "CatalogCache",
    "OrderLedger",
    "SyncResult",
    "PersistenceAdapter",
    "PosState",
    "SessionService",
]
