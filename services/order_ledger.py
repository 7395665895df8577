"""
Order ledger: the completed-order history of the current shift.

The ledger is the only writer of Order records. It turns a cart into an
immutable Order, keeps the history in completion order, tracks which
orders reached the backend, and tells its listeners (the persistence
adapter) after every mutation.

Flow:
    1. complete_order(cart) freezes the lines, computes totals, appends
    2. PosState pushes the order to the backend; success -> mark synced
    3. sync_orders() retries every order still marked unsynced
    4. clear_completed_orders() empties the history for a new shift

Thread Safety:
    Not locked itself. PosState serializes every call under its lock.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

from core.backend import BackendClient
from core.exceptions import BackendUnavailableError
from models.order import Order, compute_totals, generate_order_id
from logging_config import get_logger
from .cart_service import CartService


logger = get_logger(__name__)

LedgerListener = Callable[[Tuple[Order, ...]], None]


@dataclass(frozen=True)
class SyncResult:
    """Outcome of pushing unsynced orders to the backend."""

    success: bool
    synced_count: int
    error: Optional[str] = None

    def to_dict(self):
        return {"success": self.success, "synced_count": self.synced_count, "error": self.error}


class OrderLedger:
    """
    Completed-order history with sync bookkeeping.

    Attributes:
        orders: Snapshot of the history in completion order
        last_completed_order: Most recent order, shown on the receipt
    """

    def __init__(self):
        self._orders: List[Order] = []
        self._ids: set[str] = set()
        self._last_completed: Optional[Order] = None
        self._listeners: List[LedgerListener] = []

    @property
    def orders(self) -> Tuple[Order, ...]:
        return tuple(self._orders)

    @property
    def last_completed_order(self) -> Optional[Order]:
        return self._last_completed

    def __len__(self) -> int:
        return len(self._orders)

    def get(self, order_id: str) -> Optional[Order]:
        return next((o for o in self._orders if o.id == order_id), None)

    def unsynced_orders(self) -> Tuple[Order, ...]:
        return tuple(o for o in self._orders if not o.synced)

    def add_listener(self, listener: LedgerListener) -> None:
        """Register a callback invoked with the full history after each mutation."""
        self._listeners.append(listener)

    def set_last_completed_order(self, order: Optional[Order]) -> None:
        self._last_completed = order

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def complete_order(
        self,
        cart: CartService,
        cashier_id: Optional[str] = None,
        station_id: Optional[str] = None,
    ) -> Optional[Order]:
        """
        Turn the cart into an Order and clear the cart.

        Args:
            cart: Cart to finalize; left empty on success
            cashier_id: Cashier running the shift
            station_id: Cashing-station session of the shift

        Returns:
            The new order, or None if the cart was empty
        """
        if cart.is_empty:
            return None

        items = cart.lines
        totals = compute_totals(items, cart.vat_rate)
        now_ms = int(time.time() * 1000)

        order_id = generate_order_id(now_ms)
        while order_id in self._ids:
            order_id = generate_order_id(now_ms)

        order = Order(
            id=order_id,
            tenant_id=items[0].tenant_id,
            items=items,
            subtotal=totals.subtotal,
            vat=totals.vat,
            total=totals.total,
            created_at=now_ms,
            synced=False,
            cashier_id=cashier_id,
            station_id=station_id,
        )

        self._orders.append(order)
        self._ids.add(order.id)
        self._last_completed = order
        cart.clear()

        logger.info(
            f"Completed order {order.id} for tenant {order.tenant_id}: "
            f"{order.item_count} items, total {order.total}"
        )
        self._notify()
        return order

    def mark_orders_as_synced(self, order_ids: Iterable[str]) -> int:
        """
        Set synced=True on every order whose id is given.

        Unknown ids are ignored; already-synced orders stay synced.

        Returns:
            Number of orders that changed
        """
        wanted = set(order_ids)
        changed = 0
        for index, order in enumerate(self._orders):
            if order.id in wanted and not order.synced:
                self._orders[index] = order.mark_synced()
                changed += 1
                if self._last_completed is not None and self._last_completed.id == order.id:
                    self._last_completed = self._orders[index]

        if changed:
            logger.info(f"Marked {changed} orders as synced")
            self._notify()
        return changed

    def clear_completed_orders(self) -> int:
        """
        Empty the whole history.

        Gating (reporting done) is the caller's job; see PosState.reset_shift().

        Returns:
            Number of orders removed
        """
        count = len(self._orders)
        self._orders = []
        self._ids = set()
        self._last_completed = None
        logger.info(f"Cleared {count} completed orders")
        self._notify()
        return count

    def load(self, orders: Iterable[Order]) -> None:
        """Replace the history with restored orders without notifying listeners."""
        self._orders = list(orders)
        self._ids = {o.id for o in self._orders}
        self._last_completed = None

    # ------------------------------------------------------------------
    # Backend sync
    # ------------------------------------------------------------------

    def push_order(self, backend: BackendClient, order: Order) -> bool:
        """
        Try to store one order at the backend right after completion.

        Returns:
            True if the order is now synced
        """
        try:
            backend.insert_orders([order])
        except BackendUnavailableError as e:
            logger.warning(f"Order {order.id} kept locally, will sync later: {e}")
            return False
        self.mark_orders_as_synced([order.id])
        return True

    def sync_orders(self, backend: BackendClient) -> SyncResult:
        """
        Push every unsynced order to the backend in one batch.

        Orders are marked synced only if the whole batch was accepted.
        """
        pending = self.unsynced_orders()
        if not pending:
            return SyncResult(success=True, synced_count=0)

        try:
            backend.insert_orders(pending)
        except BackendUnavailableError as e:
            logger.error(f"Error syncing {len(pending)} orders: {e}")
            return SyncResult(success=False, synced_count=0, error=str(e))

        self.mark_orders_as_synced(o.id for o in pending)
        return SyncResult(success=True, synced_count=len(pending))

    def _notify(self) -> None:
        snapshot = self.orders
        for listener in self._listeners:
            listener(snapshot)
