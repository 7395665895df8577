"""
Catalog data models.

Reference data fetched from the backend and held by the catalog cache:
tenants (vendor stalls), their products, cashiers, product categories and
events. All are frozen; an admin edit produces a new record that replaces
the cached one on the next fetch.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Any, Optional

from .money import ZERO, money_str, to_decimal


DEFAULT_TENANT_SHARE_PERCENT = Decimal("70")


@dataclass(frozen=True)
class Product:
    """A sellable item owned by one tenant."""

    id: str
    name: str
    price: Decimal
    tenant_id: int
    category_id: Optional[int] = None
    stock: int = 0
    initial_stock: int = 0
    buying_price: Decimal = ZERO
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": money_str(self.price),
            "tenant_id": self.tenant_id,
            "category_id": self.category_id,
            "stock": self.stock,
            "initial_stock": self.initial_stock,
            "buying_price": money_str(self.buying_price),
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        """
        Build from a backend row.

        Accepts the backend's `selling_price` column as an alias for `price`.

        Raises:
            ValueError: If price is missing, negative or not a number
        """
        raw_price = data.get("price", data.get("selling_price"))
        if raw_price is None:
            raise ValueError("Product price is required")
        price = to_decimal(raw_price)
        if price < 0:
            raise ValueError("Product price cannot be negative")

        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            price=price,
            tenant_id=data["tenant_id"],
            category_id=data.get("category_id", data.get("product_type_id")),
            stock=int(data.get("stock", 0) or 0),
            initial_stock=int(data.get("initial_stock", 0) or 0),
            buying_price=to_decimal(data.get("buying_price", 0) or 0),
            created_at=data.get("created_at", "") or "",
        )


@dataclass(frozen=True)
class Tenant:
    """
    A vendor stall participating in the event.

    revenue_share_percentage is the tenant's cut of gross revenue (0-100).
    None means the tenant was never given one and the configured default
    (POS_DEFAULT_TENANT_SHARE_PERCENT, 70% unless set) applies.
    """

    tenant_id: int
    name: str
    responsible_party: str = ""
    mobile: str = ""
    brn: Optional[str] = None
    vat: Optional[str] = None
    address: Optional[str] = None
    revenue_share_percentage: Optional[Decimal] = None
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tenant_id": self.tenant_id,
            "name": self.name,
            "responsible_party": self.responsible_party,
            "mobile": self.mobile,
            "brn": self.brn,
            "vat": self.vat,
            "address": self.address,
            "revenue_share_percentage": (
                str(self.revenue_share_percentage)
                if self.revenue_share_percentage is not None else None
            ),
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tenant":
        """
        Build from a backend row.

        Raises:
            ValueError: If revenue_share_percentage is outside 0-100
        """
        share = data.get("revenue_share_percentage")
        if share is not None and share != "":
            share = to_decimal(share)
            if not (0 <= share <= 100):
                raise ValueError("revenue_share_percentage must be between 0 and 100")
        else:
            share = None

        return cls(
            tenant_id=data["tenant_id"],
            name=data.get("name", ""),
            responsible_party=data.get("responsible_party", data.get("responsibleParty", "")) or "",
            mobile=data.get("mobile", "") or "",
            brn=data.get("brn") or None,
            vat=data.get("vat") or None,
            address=data.get("address") or None,
            revenue_share_percentage=share,
            created_at=data.get("created_at", "") or "",
        )


@dataclass(frozen=True)
class Cashier:
    """An operator who logs in with a PIN to run a shift."""

    id: str
    name: str
    pin: Optional[str] = None
    created_at: str = ""

    def to_dict(self, include_pin: bool = False) -> Dict[str, Any]:
        """Serialize; the PIN is omitted unless explicitly requested."""
        data = {"id": self.id, "name": self.name, "created_at": self.created_at}
        if include_pin:
            data["pin"] = self.pin
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Cashier":
        pin = data.get("pin")
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            pin=str(pin) if pin is not None else None,
            created_at=data.get("created_at", "") or "",
        )


@dataclass(frozen=True)
class ProductCategory:
    """Product grouping used by the admin catalog screens."""

    id: int
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductCategory":
        return cls(id=data["id"], name=data.get("name", ""))


@dataclass(frozen=True)
class Event:
    """A festival edition. At most one event is active at a time."""

    id: int
    name: str
    start_date: str = ""
    end_date: str = ""
    venue: Optional[str] = None
    event_manager: Optional[str] = None
    is_active: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "venue": self.venue,
            "event_manager": self.event_manager,
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            start_date=data.get("start_date", "") or "",
            end_date=data.get("end_date", "") or "",
            venue=data.get("venue") or None,
            event_manager=data.get("event_manager") or None,
            is_active=bool(data.get("is_active", False)),
        )
