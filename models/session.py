"""
Session data models.

Exactly one of {no session, cashier shift, admin session} holds at a time.
SessionService owns the transitions; these records are the payloads.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Any, Optional

from .money import money_str


class SessionState(Enum):
    """Who is currently authenticated at the register."""

    LOGGED_OUT = "logged_out"
    CASHIER_SHIFT_ACTIVE = "cashier_shift_active"
    ADMIN_ACTIVE = "admin_active"


class AddResult(Enum):
    """Outcome of adding a product to the current order."""

    ADDED = "added"
    MERGED = "merged"
    REJECTED_OTHER_TENANT = "rejected_other_tenant"
    REJECTED_NOT_SELECTED_TENANT = "rejected_not_selected_tenant"
    REJECTED_NO_SHIFT = "rejected_no_shift"

    @property
    def accepted(self) -> bool:
        return self in (AddResult.ADDED, AddResult.MERGED)


@dataclass(frozen=True)
class ActiveShift:
    """An open cashier shift."""

    cashier_id: str
    cashier_name: str
    float_amount: Decimal
    """Cash in the drawer when the shift started."""

    start_time: str
    """ISO 8601 UTC timestamp."""

    station_id: Optional[str] = None
    """Cashing-station session id from the backend, if one was opened."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cashier_id": self.cashier_id,
            "cashier_name": self.cashier_name,
            "float_amount": money_str(self.float_amount),
            "start_time": self.start_time,
            "station_id": self.station_id,
        }


@dataclass(frozen=True)
class ActiveAdmin:
    """An authenticated administrator."""

    email: str

    def to_dict(self) -> Dict[str, Any]:
        return {"email": self.email}
