"""
Integration tests for the register state.

Exercises the full flow over the in-memory backend: login, tenant
selection, cart building, completion, sync, reporting gate and reset.
"""

import pytest

from core.exceptions import (
    NotAuthenticatedError,
    ResetNotAllowedError,
    StoreNotReadyError,
    ValidationError,
)
from models.session import AddResult, SessionState
from services.persistence import PersistenceAdapter
from services.pos_state import PosState


# Fixtures

@pytest.fixture
def order_with_sale(cashier_state):
    """Register state with one completed order for tenant 1."""
    cashier_state.add_product_to_order("p-101")
    cashier_state.add_product_to_order("p-101")
    cashier_state.add_product_to_order("p-102")
    cashier_state.complete_order()
    return cashier_state


# Tests for tenant selection

class TestTenantSelection:
    """Test select_tenant() and reset_to_tenant_selection()."""

    def test_select_loads_products(self, cashier_state):
        """Test selecting a tenant caches only its products."""
        assert cashier_state.selected_tenant_id == 1
        assert {p.id for p in cashier_state.catalog.products} == {"p-101", "p-102"}

    def test_switch_clears_cart(self, cashier_state):
        """Test switching tenants empties the cart."""
        cashier_state.add_product_to_order("p-101")

        cashier_state.select_tenant(2)

        assert cashier_state.cart.is_empty
        assert cashier_state.selected_tenant_id == 2

    def test_reselect_same_tenant_keeps_cart(self, cashier_state):
        """Test selecting the current tenant again keeps the cart."""
        cashier_state.add_product_to_order("p-101")

        cashier_state.select_tenant(1)

        assert cashier_state.cart.item_count == 1

    def test_unknown_tenant(self, cashier_state):
        """Test selecting an unknown tenant raises a 404 validation error."""
        with pytest.raises(ValidationError) as exc_info:
            cashier_state.select_tenant(999)

        assert exc_info.value.status_code == 404

    def test_reset_to_selection_keeps_shift(self, cashier_state):
        """Test going back to the tenant grid keeps the shift open."""
        cashier_state.add_product_to_order("p-101")

        cashier_state.reset_to_tenant_selection()

        assert cashier_state.cart.is_empty
        assert cashier_state.selected_tenant_id is None
        assert cashier_state.session.state is SessionState.CASHIER_SHIFT_ACTIVE


# Tests for cart gating

class TestCartGating:
    """Test who may add what to the current order."""

    def test_add_and_merge(self, cashier_state):
        """Test add then merge through the state."""
        assert cashier_state.add_product_to_order("p-101") is AddResult.ADDED
        assert cashier_state.add_product_to_order("p-101") is AddResult.MERGED

    def test_unknown_product(self, cashier_state):
        """Test a product outside the cache raises a 404 validation error."""
        with pytest.raises(ValidationError):
            cashier_state.add_product_to_order("p-999")

    def test_product_of_other_tenant_rejected(self, cashier_state):
        """Test a product not belonging to the selected tenant is refused."""
        cashier_state.catalog.fetch_products(2)

        result = cashier_state.add_product_to_order("p-201")

        assert result is AddResult.REJECTED_NOT_SELECTED_TENANT
        assert cashier_state.cart.is_empty

    def test_admin_cannot_add(self, state, admin_credentials):
        """Test an admin session cannot build orders."""
        state.admin_login(*admin_credentials)
        state.catalog.fetch_products(1)

        assert state.add_product_to_order("p-101") is AddResult.REJECTED_NO_SHIFT
        assert state.cart.is_empty

    def test_login_clears_cart(self, cashier_state):
        """Test a new login starts with an empty cart and no tenant."""
        cashier_state.add_product_to_order("p-101")

        assert cashier_state.start_shift("c-2", "4321", "0")

        assert cashier_state.cart.is_empty
        assert cashier_state.selected_tenant_id is None

    def test_current_order_view(self, cashier_state):
        """Test the cart view carries lines and two-decimal totals."""
        cashier_state.add_product_to_order("p-101")
        cashier_state.add_product_to_order("p-102")

        view = cashier_state.current_order()

        assert view["tenant_id"] == 1
        assert view["item_count"] == 2
        assert view["subtotal"] == "15.00"
        assert view["vat"] == "2.25"
        assert view["total"] == "17.25"


# Tests for completion and sync

class TestCompletion:
    """Test complete_order() and sync_orders()."""

    def test_complete_pushes_to_backend(self, order_with_sale, backend):
        """Test a completed order is stored at the backend and marked synced."""
        order = order_with_sale.last_completed_order

        assert order.synced is True
        assert order.total == order.subtotal + order.vat
        assert order.cashier_id == "c-1"
        assert backend.stored_order_ids() == [order.id]
        assert order_with_sale.cart.is_empty

    def test_complete_offline_then_sync(self, cashier_state, backend):
        """Test an offline completion is kept and synced later."""
        cashier_state.add_product_to_order("p-101")
        backend.available = False

        order = cashier_state.complete_order()

        assert order.synced is False
        backend.available = True
        result = cashier_state.sync_orders()
        assert result.synced_count == 1
        assert cashier_state.last_completed_order.synced is True

    def test_complete_empty_cart_is_noop(self, cashier_state):
        """Test completing an empty cart creates nothing."""
        assert cashier_state.complete_order() is None
        assert cashier_state.completed_orders() == []

    def test_completion_is_persisted(self, order_with_sale, persistence):
        """Test the history is written after completion."""
        restored = persistence.load()

        assert [o.id for o in restored] == [o.id for o in order_with_sale.completed_orders()]
        assert restored[0].synced is True

    def test_history_survives_restart(self, order_with_sale, backend, persistence):
        """Test a new register state restores the same history."""
        fresh = PosState(backend, PersistenceAdapter(persistence.path.parent, "test-storage"))
        fresh.hydrate_now()

        assert fresh.completed_orders() == order_with_sale.completed_orders()
        assert fresh.cart.is_empty
        assert fresh.session.state is SessionState.LOGGED_OUT


# Tests for the reporting gate and shift reset

class TestShiftReset:
    """Test set_reporting_done(), reset_shift() and end_shift()."""

    def test_reset_refused_until_reporting_done(self, order_with_sale):
        """Test reset raises while orders are unreconciled."""
        with pytest.raises(ResetNotAllowedError) as exc_info:
            order_with_sale.reset_shift()

        assert exc_info.value.order_count == 1
        assert len(order_with_sale.completed_orders()) == 1

    def test_reset_after_reporting_done(self, order_with_sale, persistence):
        """Test reset clears history, flag and session once reporting is done."""
        order_with_sale.set_reporting_done(True)

        assert order_with_sale.reset_shift() == 1
        assert order_with_sale.completed_orders() == []
        assert order_with_sale.reporting_done is False
        assert order_with_sale.session.state is SessionState.LOGGED_OUT
        assert persistence.load() == []

    def test_new_sale_clears_reporting_done(self, order_with_sale):
        """Test a sale after reconciliation closes the reset gate again."""
        order_with_sale.set_reporting_done(True)

        order_with_sale.add_product_to_order("p-101")
        order_with_sale.complete_order()

        assert order_with_sale.reporting_done is False
        with pytest.raises(ResetNotAllowedError) as exc_info:
            order_with_sale.reset_shift()

        assert exc_info.value.order_count == 2
        assert len(order_with_sale.completed_orders()) == 2

    def test_reset_with_no_orders(self, state):
        """Test reset is allowed on an empty history."""
        assert state.reset_shift() == 0

    def test_reporting_done_needs_orders(self, state):
        """Test marking reporting done with nothing to report is refused."""
        with pytest.raises(ValidationError) as exc_info:
            state.set_reporting_done(True)

        assert exc_info.value.status_code == 409

    def test_end_shift_gated(self, order_with_sale):
        """Test ending the shift follows the same gate."""
        with pytest.raises(ResetNotAllowedError):
            order_with_sale.end_shift()

        order_with_sale.set_reporting_done(True)
        order_with_sale.end_shift()

        assert order_with_sale.session.state is SessionState.LOGGED_OUT
        assert len(order_with_sale.completed_orders()) == 1

    def test_end_shift_requires_cashier(self, state):
        """Test ending a shift without one raises."""
        with pytest.raises(NotAuthenticatedError):
            state.end_shift()


# Tests for hydration gating

class TestHydrationGate:
    """Test ledger access before the history is restored."""

    def test_ledger_reads_blocked_before_hydration(self, backend, persistence):
        """Test reading orders before hydration raises StoreNotReadyError."""
        pos_state = PosState(backend, persistence)

        assert pos_state.is_hydrated is False
        with pytest.raises(StoreNotReadyError):
            pos_state.completed_orders()

    def test_reports_after_sale(self, order_with_sale):
        """Test revenue report and tenant report reflect the sale."""
        report = order_with_sale.revenue_report()
        detail = order_with_sale.tenant_report(1)

        row = next(a for a in report.allocations if a.tenant_id == 1)
        assert row.order_count == 1
        assert row.gross_revenue == order_with_sale.last_completed_order.total
        assert {p.product_id: p.units_sold for p in detail.products} == {"p-101": 2, "p-102": 1}
