"""
Cart engine for the current order.

The cart is an ordered list of OrderItem lines that all belong to one
tenant. Lines are immutable; each mutation replaces the affected line.

Invariants:
    - Empty, or every line has the tenant id of the first line
    - Every quantity is a positive integer
    - Operations on a missing product id are no-ops, never errors
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Tuple

from models.catalog import Product
from models.order import CartTotals, OrderItem, VAT_RATE, compute_totals
from models.session import AddResult
from logging_config import get_logger


logger = get_logger(__name__)


class CartService:
    """Single-tenant cart with add/merge/remove/update and totals."""

    def __init__(self, vat_rate: Decimal = VAT_RATE):
        self._lines: List[OrderItem] = []
        self._vat_rate = vat_rate

    @property
    def lines(self) -> Tuple[OrderItem, ...]:
        """Snapshot of the current lines."""
        return tuple(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def tenant_id(self) -> Optional[int]:
        """Tenant of the cart, or None while empty."""
        return self._lines[0].tenant_id if self._lines else None

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    @property
    def vat_rate(self) -> Decimal:
        return self._vat_rate

    def add_product(self, product: Product) -> AddResult:
        """
        Add one unit of a product.

        A product from another tenant while the cart holds lines is rejected
        without changing the cart; the caller decides how to tell the user.
        """
        if self._lines and product.tenant_id != self._lines[0].tenant_id:
            logger.warning(
                f"Rejected product {product.id}: tenant {product.tenant_id} "
                f"differs from cart tenant {self._lines[0].tenant_id}"
            )
            return AddResult.REJECTED_OTHER_TENANT

        for index, line in enumerate(self._lines):
            if line.product_id == product.id:
                self._lines[index] = line.with_quantity(line.quantity + 1)
                return AddResult.MERGED

        self._lines.append(OrderItem.from_product(product))
        return AddResult.ADDED

    def remove_product(self, product_id: str) -> bool:
        """Remove a line. Returns True if a line was removed."""
        before = len(self._lines)
        self._lines = [line for line in self._lines if line.product_id != product_id]
        return len(self._lines) != before

    def update_quantity(self, product_id: str, quantity: int) -> bool:
        """
        Set a line's quantity; zero or negative removes the line.

        Returns:
            True if a line changed or was removed
        """
        if quantity <= 0:
            return self.remove_product(product_id)

        for index, line in enumerate(self._lines):
            if line.product_id == product_id:
                self._lines[index] = line.with_quantity(quantity)
                return True
        return False

    def clear(self) -> None:
        self._lines = []

    def totals(self) -> CartTotals:
        return compute_totals(self._lines, self._vat_rate)
