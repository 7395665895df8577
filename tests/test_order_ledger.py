"""
Unit tests for the order ledger.

Tests order completion, sync bookkeeping, listeners and backend pushes.
"""

import re
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from core.exceptions import BackendUnavailableError
from models.order import Order
from services.cart_service import CartService
from services.order_ledger import OrderLedger


# Fixtures

@pytest.fixture
def ledger():
    """Create an empty ledger."""
    return OrderLedger()


@pytest.fixture
def filled_cart(make_product):
    """Cart holding 2 x 10.00 and 1 x 5.00 for tenant 1."""
    cart = CartService()
    cart.add_product(make_product("p-1", price="10.00"))
    cart.add_product(make_product("p-1", price="10.00"))
    cart.add_product(make_product("p-2", price="5.00"))
    return cart


def _complete(ledger, make_product, price="10.00"):
    cart = CartService()
    cart.add_product(make_product("p-1", price=price))
    return ledger.complete_order(cart)


# Tests for order completion

class TestCompleteOrder:
    """Test complete_order()."""

    def test_empty_cart_returns_none(self, ledger):
        """Test completing an empty cart is a no-op."""
        listener = MagicMock()
        ledger.add_listener(listener)

        assert ledger.complete_order(CartService()) is None
        assert len(ledger) == 0
        listener.assert_not_called()

    def test_order_snapshot_and_totals(self, ledger, filled_cart):
        """Test the order copies the lines and stores rounded amounts."""
        lines = filled_cart.lines

        order = ledger.complete_order(filled_cart, cashier_id="c-1", station_id="st-1")

        assert order.items == lines
        assert order.tenant_id == 1
        assert order.subtotal == Decimal("25.00")
        assert order.vat == Decimal("3.75")
        assert order.total == Decimal("28.75")
        assert order.synced is False
        assert order.cashier_id == "c-1"
        assert order.station_id == "st-1"

    def test_cart_cleared_and_receipt_set(self, ledger, filled_cart):
        """Test the cart empties and the order becomes the last completed one."""
        order = ledger.complete_order(filled_cart)

        assert filled_cart.is_empty
        assert ledger.last_completed_order == order
        assert ledger.orders == (order,)

    def test_order_id_format(self, ledger, filled_cart):
        """Test ids look like order-<epoch ms>-<9 chars>."""
        order = ledger.complete_order(filled_cart)

        assert re.fullmatch(r"order-\d+-[a-z0-9]{9}", order.id)
        assert order.id.split("-")[1] == str(order.created_at)

    def test_order_ids_unique(self, ledger, make_product):
        """Test many orders completed in the same millisecond get distinct ids."""
        ids = {_complete(ledger, make_product).id for _ in range(50)}

        assert len(ids) == 50

    def test_listener_receives_history(self, ledger, filled_cart):
        """Test listeners are called with the full history after completion."""
        listener = MagicMock()
        ledger.add_listener(listener)

        order = ledger.complete_order(filled_cart)

        listener.assert_called_once_with((order,))


# Tests for sync bookkeeping

class TestMarkSynced:
    """Test mark_orders_as_synced() and unsynced_orders()."""

    def test_marks_only_given_ids(self, ledger, make_product):
        """Test only listed orders flip to synced."""
        first = _complete(ledger, make_product)
        second = _complete(ledger, make_product)

        changed = ledger.mark_orders_as_synced([first.id, "unknown-id"])

        assert changed == 1
        assert ledger.get(first.id).synced is True
        assert ledger.get(second.id).synced is False
        assert ledger.unsynced_orders() == (ledger.get(second.id),)

    def test_idempotent(self, ledger, make_product):
        """Test marking twice leaves the same state and reports no change."""
        order = _complete(ledger, make_product)
        ledger.mark_orders_as_synced([order.id])
        snapshot = ledger.orders

        assert ledger.mark_orders_as_synced([order.id]) == 0
        assert ledger.orders == snapshot

    def test_amounts_unchanged_by_sync(self, ledger, make_product):
        """Test syncing never touches items or amounts."""
        order = _complete(ledger, make_product, price="7.30")
        ledger.mark_orders_as_synced([order.id])

        synced = ledger.get(order.id)
        assert (synced.items, synced.subtotal, synced.vat, synced.total) == (
            order.items, order.subtotal, order.vat, order.total
        )

    def test_receipt_follows_sync(self, ledger, make_product):
        """Test the last completed order reflects its synced flag."""
        order = _complete(ledger, make_product)
        ledger.mark_orders_as_synced([order.id])

        assert ledger.last_completed_order.synced is True


# Tests for clearing and restoring

class TestClearAndLoad:
    """Test clear_completed_orders() and load()."""

    def test_clear_removes_everything(self, ledger, make_product):
        """Test clearing empties history and receipt and notifies listeners."""
        _complete(ledger, make_product)
        _complete(ledger, make_product)
        listener = MagicMock()
        ledger.add_listener(listener)

        assert ledger.clear_completed_orders() == 2
        assert len(ledger) == 0
        assert ledger.last_completed_order is None
        listener.assert_called_once_with(())

    def test_load_does_not_notify(self, ledger):
        """Test restored orders replace history silently."""
        listener = MagicMock()
        ledger.add_listener(listener)
        restored = Order(
            id="order-1-abcdefghi", tenant_id=1, items=(), subtotal=Decimal("0"),
            vat=Decimal("0"), total=Decimal("0"), created_at=1,
        )

        ledger.load([restored])

        assert ledger.orders == (restored,)
        listener.assert_not_called()


# Tests for backend pushes

class TestBackendSync:
    """Test push_order() and sync_orders()."""

    def test_push_success_marks_synced(self, ledger, make_product, backend):
        """Test an accepted push marks the order synced."""
        order = _complete(ledger, make_product)

        assert ledger.push_order(backend, order) is True
        assert ledger.get(order.id).synced is True
        assert order.id in backend.stored_order_ids()

    def test_push_failure_keeps_order_unsynced(self, ledger, make_product, backend):
        """Test a failed push keeps the order locally with synced=False."""
        order = _complete(ledger, make_product)
        backend.available = False

        assert ledger.push_order(backend, order) is False
        assert ledger.get(order.id).synced is False

    def test_sync_pushes_all_unsynced(self, ledger, make_product, backend):
        """Test sync_orders() sends every unsynced order in one batch."""
        backend.available = False
        orders = [_complete(ledger, make_product) for _ in range(3)]
        backend.available = True

        result = ledger.sync_orders(backend)

        assert result.success is True
        assert result.synced_count == 3
        assert ledger.unsynced_orders() == ()
        assert set(backend.stored_order_ids()) == {o.id for o in orders}

    def test_sync_failure_changes_nothing(self, ledger, make_product):
        """Test a failed batch leaves every order unsynced."""
        _complete(ledger, make_product)
        _complete(ledger, make_product)
        failing = MagicMock()
        failing.insert_orders.side_effect = BackendUnavailableError("insert_orders")

        result = ledger.sync_orders(failing)

        assert result.success is False
        assert result.synced_count == 0
        assert "insert_orders" in result.error
        assert len(ledger.unsynced_orders()) == 2

    def test_sync_with_nothing_pending(self, ledger):
        """Test syncing an empty ledger succeeds without calling the backend."""
        client = MagicMock()

        result = ledger.sync_orders(client)

        assert result.success is True
        assert result.synced_count == 0
        client.insert_orders.assert_not_called()
