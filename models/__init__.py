"""
Data models for FestivalPOS.

This module contains dataclasses for:
- Catalog: Tenant, Product, Cashier, ProductCategory, Event
- Orders: OrderItem (cart line), Order (completed sale), CartTotals
- Session: ActiveShift, ActiveAdmin, SessionState, AddResult

Catalog records and orders are frozen; an Order only ever changes by being
replaced with its synced copy.
"""

from .catalog import Tenant, Product, Cashier, ProductCategory, Event
from .order import Order, OrderItem, CartTotals, VAT_RATE, compute_totals
from .session import ActiveShift, ActiveAdmin, SessionState, AddResult

__all__ = [
    # Catalog models
    "Tenant",
    "Product",
    "Cashier",
    "ProductCategory",
    "Event",
    # Order models
    "Order",
    "OrderItem",
    "CartTotals",
    "VAT_RATE",
    "compute_totals",
    # Session models
    "ActiveShift",
    "ActiveAdmin",
    "SessionState",
    "AddResult",
]
