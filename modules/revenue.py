"""Revenue allocation between tenants and the event organizer."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Any, Iterable, List, Optional, Sequence, Tuple

from models.catalog import DEFAULT_TENANT_SHARE_PERCENT, Product, Tenant
from models.money import ZERO, money_str, round_money
from models.order import Order


# A product needs reordering once units left fall to this share of its stock
REORDER_THRESHOLD = Decimal("0.25")


@dataclass(frozen=True)
class TenantAllocation:
    """One tenant's row of the revenue-sharing table."""

    tenant_id: int
    name: str
    order_count: int
    gross_revenue: Decimal
    tenant_share: Decimal
    organizer_share: Decimal
    share_percentage: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tenant_id": self.tenant_id,
            "name": self.name,
            "order_count": self.order_count,
            "gross_revenue": money_str(self.gross_revenue),
            "tenant_share": money_str(self.tenant_share),
            "organizer_share": money_str(self.organizer_share),
            "share_percentage": str(self.share_percentage),
        }


@dataclass(frozen=True)
class RevenueReport:
    """Per-tenant allocations plus grand totals."""

    allocations: Tuple[TenantAllocation, ...]
    total_orders: int
    gross_revenue: Decimal
    tenant_share: Decimal
    organizer_share: Decimal
    vat_total: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tenants": [a.to_dict() for a in self.allocations],
            "totals": {
                "order_count": self.total_orders,
                "gross_revenue": money_str(self.gross_revenue),
                "tenant_share": money_str(self.tenant_share),
                "organizer_share": money_str(self.organizer_share),
                "vat_total": money_str(self.vat_total),
            },
        }


@dataclass(frozen=True)
class OrderSummary:
    """Headline numbers for the reports screen."""

    gross_revenue: Decimal
    total_orders: int
    synced_orders: int
    pending_sync_orders: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gross_revenue": money_str(self.gross_revenue),
            "total_orders": self.total_orders,
            "synced_orders": self.synced_orders,
            "pending_sync_orders": self.pending_sync_orders,
        }


@dataclass(frozen=True)
class ProductSales:
    """Units sold against stock for one product."""

    product_id: str
    name: str
    stock: int
    units_sold: int
    units_left: int
    needs_reorder: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "stock": self.stock,
            "units_sold": self.units_sold,
            "units_left": self.units_left,
            "needs_reorder": self.needs_reorder,
        }


@dataclass(frozen=True)
class TenantReport:
    """Revenue split, product sales and order list for a single tenant."""

    allocation: TenantAllocation
    products: Tuple[ProductSales, ...]
    orders: Tuple[Order, ...]
    """Newest first."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "revenue": self.allocation.to_dict(),
            "products": [p.to_dict() for p in self.products],
            "orders": [o.to_dict() for o in self.orders],
        }


def split_revenue(
    gross: Decimal,
    percentage: Optional[Decimal],
    default_percentage: Decimal = DEFAULT_TENANT_SHARE_PERCENT,
) -> Tuple[Decimal, Decimal]:
    """
    Split gross revenue into (tenant share, organizer share).

    The tenant share is rounded to cents and the organizer gets the rest,
    so the two always add back to the gross.
    """
    pct = default_percentage if percentage is None else percentage
    tenant_share = round_money(gross * pct / Decimal(100))
    return tenant_share, gross - tenant_share


def _allocate(
    tenant_id: int,
    name: str,
    percentage: Optional[Decimal],
    orders: Sequence[Order],
    default_percentage: Decimal,
) -> TenantAllocation:
    gross = sum((o.total for o in orders), ZERO)
    tenant_share, organizer_share = split_revenue(gross, percentage, default_percentage)
    return TenantAllocation(
        tenant_id=tenant_id,
        name=name,
        order_count=len(orders),
        gross_revenue=gross,
        tenant_share=tenant_share,
        organizer_share=organizer_share,
        share_percentage=default_percentage if percentage is None else percentage,
    )


def allocate_revenue(
    orders: Iterable[Order],
    tenants: Iterable[Tenant],
    default_percentage: Decimal = DEFAULT_TENANT_SHARE_PERCENT,
) -> RevenueReport:
    """
    Build the revenue-sharing table.

    Every known tenant gets a row, including tenants without orders. Orders
    whose tenant is not in the list still get a row (named after the id) so
    the grand totals always match the order history. Rows are sorted by
    gross revenue, highest first; ties keep tenant list order.
    """
    orders = tuple(orders)
    by_tenant: Dict[int, List[Order]] = {}
    for order in orders:
        by_tenant.setdefault(order.tenant_id, []).append(order)

    allocations = []
    seen = set()
    for tenant in tenants:
        seen.add(tenant.tenant_id)
        allocations.append(_allocate(
            tenant.tenant_id,
            tenant.name,
            tenant.revenue_share_percentage,
            by_tenant.get(tenant.tenant_id, []),
            default_percentage,
        ))
    for tenant_id, tenant_orders in by_tenant.items():
        if tenant_id not in seen:
            allocations.append(_allocate(
                tenant_id, f"Tenant {tenant_id}", None, tenant_orders, default_percentage
            ))

    # sorted() is stable, so equal revenues keep insertion order
    allocations = sorted(allocations, key=lambda a: a.gross_revenue, reverse=True)

    return RevenueReport(
        allocations=tuple(allocations),
        total_orders=len(orders),
        gross_revenue=sum((a.gross_revenue for a in allocations), ZERO),
        tenant_share=sum((a.tenant_share for a in allocations), ZERO),
        organizer_share=sum((a.organizer_share for a in allocations), ZERO),
        vat_total=sum((o.vat for o in orders), ZERO),
    )


def summarize_orders(orders: Iterable[Order]) -> OrderSummary:
    orders = tuple(orders)
    synced = sum(1 for o in orders if o.synced)
    return OrderSummary(
        gross_revenue=sum((o.total for o in orders), ZERO),
        total_orders=len(orders),
        synced_orders=synced,
        pending_sync_orders=len(orders) - synced,
    )


def tenant_report(
    tenant: Tenant,
    orders: Iterable[Order],
    products: Iterable[Product],
    default_percentage: Decimal = DEFAULT_TENANT_SHARE_PERCENT,
) -> TenantReport:
    """
    Report for one tenant.

    Only orders of this tenant are considered. Units left are computed
    against each product's current stock; a product needs reordering when
    units left fall to 25% of that stock or below.
    """
    tenant_orders = [o for o in orders if o.tenant_id == tenant.tenant_id]

    sold: Dict[str, int] = {}
    for order in tenant_orders:
        for item in order.items:
            sold[item.product_id] = sold.get(item.product_id, 0) + item.quantity

    rows = []
    for product in products:
        if product.tenant_id != tenant.tenant_id:
            continue
        units_sold = sold.get(product.id, 0)
        units_left = product.stock - units_sold
        rows.append(ProductSales(
            product_id=product.id,
            name=product.name,
            stock=product.stock,
            units_sold=units_sold,
            units_left=units_left,
            needs_reorder=units_left <= product.stock * REORDER_THRESHOLD,
        ))
    rows.sort(key=lambda r: r.name.lower())

    return TenantReport(
        allocation=_allocate(
            tenant.tenant_id,
            tenant.name,
            tenant.revenue_share_percentage,
            tenant_orders,
            default_percentage,
        ),
        products=tuple(rows),
        orders=tuple(sorted(tenant_orders, key=lambda o: o.created_at, reverse=True)),
    )
