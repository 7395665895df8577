"""
Order data models.

These models represent a sale as it flows through the register:
cart lines (OrderItem) -> completed Order -> synced Order.

Immutability:
    - OrderItem and Order are frozen dataclasses
    - An Order's items and amounts never change after completion
    - mark_synced() returns a replacement record with synced=True
"""

from __future__ import annotations

import secrets
import string
import time
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Dict, Any, Iterable, Optional, Tuple

from .catalog import Product
from .money import ZERO, money_str, round_money, to_decimal


VAT_RATE = Decimal("0.15")
"""VAT applied to every order subtotal."""

_ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class OrderItem:
    """
    One cart or order line: a product snapshot plus a quantity.

    The name and price are copied from the product when the line is
    created, so later catalog edits do not reach completed orders.
    """

    product_id: str
    """Catalog product id."""

    name: str
    """Product name at the time it was added."""

    price: Decimal
    """Unit price at the time it was added."""

    quantity: int
    """Positive number of units."""

    tenant_id: int
    """Owning tenant, identical for every line of one cart."""

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    @classmethod
    def from_product(cls, product: Product, quantity: int = 1) -> "OrderItem":
        return cls(
            product_id=product.id,
            name=product.name,
            price=product.price,
            quantity=quantity,
            tenant_id=product.tenant_id,
        )

    def with_quantity(self, quantity: int) -> "OrderItem":
        return replace(self, quantity=quantity)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price": str(self.price),
            "quantity": self.quantity,
            "tenant_id": self.tenant_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderItem":
        """
        Create from a stored dictionary.

        Raises:
            KeyError: If a required key is missing
            ValueError: If price or quantity is invalid
        """
        quantity = int(data["quantity"])
        if quantity <= 0:
            raise ValueError("Order item quantity must be positive")
        return cls(
            product_id=str(data["product_id"]),
            name=data.get("name", ""),
            price=to_decimal(data["price"]),
            quantity=quantity,
            tenant_id=data["tenant_id"],
        )


@dataclass(frozen=True)
class CartTotals:
    """Subtotal, VAT and total for a set of lines."""

    subtotal: Decimal = ZERO
    vat: Decimal = ZERO
    total: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subtotal": money_str(self.subtotal),
            "vat": money_str(self.vat),
            "total": money_str(self.total),
        }


def compute_totals(items: Iterable[OrderItem], vat_rate: Decimal = VAT_RATE) -> CartTotals:
    """
    Compute order amounts.

    subtotal = sum(price x quantity), VAT = subtotal x rate rounded to
    cents, total = subtotal + VAT.
    """
    subtotal = sum((item.line_total for item in items), ZERO)
    vat = round_money(subtotal * vat_rate)
    return CartTotals(subtotal=subtotal, vat=vat, total=subtotal + vat)


def generate_order_id(now_ms: Optional[int] = None) -> str:
    """Return an id of the form order-<epoch ms>-<9 random chars>."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"order-{now_ms}-{suffix}"


@dataclass(frozen=True)
class Order:
    """
    A completed sale.

    Everything except `synced` is fixed at completion time. VAT and total
    are stored, never recomputed, so later price edits do not alter history.
    """

    id: str
    tenant_id: int
    items: Tuple[OrderItem, ...]
    subtotal: Decimal
    vat: Decimal
    total: Decimal
    created_at: int
    """Epoch milliseconds."""

    synced: bool = False
    cashier_id: Optional[str] = None
    station_id: Optional[str] = None

    def mark_synced(self) -> "Order":
        """Return this order with synced=True (self if already synced)."""
        if self.synced:
            return self
        return replace(self, synced=True)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON-ready dictionary used for storage and the API."""
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "items": [item.to_dict() for item in self.items],
            "subtotal": str(self.subtotal),
            "vat": str(self.vat),
            "total": str(self.total),
            "created_at": self.created_at,
            "synced": self.synced,
            "cashier_id": self.cashier_id,
            "station_id": self.station_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Order":
        """
        Create Order from a stored dictionary.

        Raises:
            KeyError: If a required key is missing
            ValueError: If an amount or item is invalid
        """
        return cls(
            id=str(data["id"]),
            tenant_id=data["tenant_id"],
            items=tuple(OrderItem.from_dict(item) for item in data["items"]),
            subtotal=to_decimal(data["subtotal"]),
            vat=to_decimal(data["vat"]),
            total=to_decimal(data["total"]),
            created_at=int(data["created_at"]),
            synced=bool(data.get("synced", False)),
            cashier_id=data.get("cashier_id"),
            station_id=data.get("station_id"),
        )
