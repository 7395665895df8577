"""
Unit tests for revenue allocation and tenant reports.
"""

from decimal import Decimal

import pytest

from models.catalog import Product, Tenant
from models.order import Order, OrderItem
from modules.revenue import allocate_revenue, split_revenue, summarize_orders, tenant_report


# Fixtures

def _order(order_id, tenant_id, total, created_at=1, synced=False, items=()):
    total = Decimal(total)
    return Order(
        id=order_id,
        tenant_id=tenant_id,
        items=tuple(items),
        subtotal=total,
        vat=Decimal("0"),
        total=total,
        created_at=created_at,
        synced=synced,
    )


@pytest.fixture
def tenants():
    """Three tenants: 70%, 80% and no configured share."""
    return [
        Tenant(tenant_id=1, name="Dholl Puri Corner", revenue_share_percentage=Decimal("70")),
        Tenant(tenant_id=2, name="Island Juice Bar", revenue_share_percentage=Decimal("80")),
        Tenant(tenant_id=3, name="Festival Merch"),
    ]


# Tests for the split

class TestSplitRevenue:
    """Test split_revenue()."""

    def test_seventy_thirty(self):
        """Test 100.00 at 70% splits 70.00 / 30.00."""
        assert split_revenue(Decimal("100.00"), Decimal("70")) == (Decimal("70.00"), Decimal("30.00"))

    def test_default_when_unset(self):
        """Test a missing percentage uses the default."""
        assert split_revenue(Decimal("10.00"), None) == (Decimal("7.00"), Decimal("3.00"))

    def test_shares_always_add_up(self):
        """Test rounding never loses a cent between the two shares."""
        tenant, organizer = split_revenue(Decimal("33.33"), Decimal("66.6"))

        assert tenant == Decimal("22.20")
        assert tenant + organizer == Decimal("33.33")


# Tests for the allocation table

class TestAllocateRevenue:
    """Test allocate_revenue()."""

    def test_two_orders_one_tenant(self, tenants):
        """Test two orders totaling 100.00 at 70% give 70.00 / 30.00."""
        orders = [_order("o1", 1, "60.00"), _order("o2", 1, "40.00")]

        report = allocate_revenue(orders, tenants)
        row = next(a for a in report.allocations if a.tenant_id == 1)

        assert row.order_count == 2
        assert row.gross_revenue == Decimal("100.00")
        assert row.tenant_share == Decimal("70.00")
        assert row.organizer_share == Decimal("30.00")

    def test_rows_sum_to_grand_totals(self, tenants):
        """Test per-tenant rows add up to the report totals."""
        orders = [
            _order("o1", 1, "60.00"),
            _order("o2", 2, "45.55"),
            _order("o3", 3, "12.10"),
            _order("o4", 2, "9.99"),
        ]

        report = allocate_revenue(orders, tenants)

        assert report.total_orders == 4
        assert report.gross_revenue == Decimal("127.64")
        assert report.tenant_share == sum(a.tenant_share for a in report.allocations)
        assert report.organizer_share == sum(a.organizer_share for a in report.allocations)
        assert report.tenant_share + report.organizer_share == report.gross_revenue

    def test_sorted_by_gross_with_stable_ties(self, tenants):
        """Test rows are ordered by gross revenue, ties in tenant order."""
        orders = [_order("o1", 3, "50.00"), _order("o2", 2, "10.00"), _order("o3", 1, "10.00")]

        report = allocate_revenue(orders, tenants)

        assert [a.tenant_id for a in report.allocations] == [3, 1, 2]

    def test_tenants_without_orders_listed(self, tenants):
        """Test every tenant appears even with no sales."""
        report = allocate_revenue([], tenants)

        assert [a.tenant_id for a in report.allocations] == [1, 2, 3]
        assert all(a.gross_revenue == 0 for a in report.allocations)

    def test_unknown_tenant_gets_row(self, tenants):
        """Test orders of an unlisted tenant still count toward totals."""
        report = allocate_revenue([_order("o1", 99, "20.00")], tenants)

        row = report.allocations[0]
        assert row.tenant_id == 99
        assert row.name == "Tenant 99"
        assert row.tenant_share == Decimal("14.00")

    def test_to_dict_shape(self, tenants):
        """Test the serialized report has tenant rows and totals."""
        data = allocate_revenue([_order("o1", 2, "10.00")], tenants).to_dict()

        assert data["tenants"][0]["tenant_share"] == "8.00"
        assert data["totals"]["gross_revenue"] == "10.00"
        assert data["totals"]["order_count"] == 1


# Tests for summary and tenant report

class TestSummaries:
    """Test summarize_orders() and tenant_report()."""

    def test_summary_counts_sync_state(self):
        """Test synced and pending counts."""
        orders = [_order("o1", 1, "5.00", synced=True), _order("o2", 1, "7.00")]

        summary = summarize_orders(orders)

        assert summary.gross_revenue == Decimal("12.00")
        assert summary.synced_orders == 1
        assert summary.pending_sync_orders == 1

    def test_tenant_report_units_and_reorder(self, tenants):
        """Test units sold, units left and the 25% reorder flag."""
        products = [
            Product(id="p-1", name="Roti", price=Decimal("5"), tenant_id=1, stock=8),
            Product(id="p-2", name="Dholl Puri", price=Decimal("10"), tenant_id=1, stock=100),
        ]
        items = [
            OrderItem("p-1", "Roti", Decimal("5"), 6, 1),
            OrderItem("p-2", "Dholl Puri", Decimal("10"), 3, 1),
        ]
        orders = [
            _order("old", 1, "60.00", created_at=1, items=items),
            _order("new", 1, "0.00", created_at=2),
            _order("other", 2, "99.00", created_at=3),
        ]

        report = tenant_report(tenants[0], orders, products)
        rows = {r.product_id: r for r in report.products}

        assert rows["p-1"].units_sold == 6
        assert rows["p-1"].units_left == 2
        assert rows["p-1"].needs_reorder is True
        assert rows["p-2"].needs_reorder is False
        assert [r.name for r in report.products] == ["Dholl Puri", "Roti"]
        assert [o.id for o in report.orders] == ["new", "old"]
        assert report.allocation.gross_revenue == Decimal("60.00")
