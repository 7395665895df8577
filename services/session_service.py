"""
Shift/session state machine.

States:
    LOGGED_OUT ──start_shift()──> CASHIER_SHIFT_ACTIVE
    LOGGED_OUT ──admin_login()──> ADMIN_ACTIVE
    any ────────logout()────────> LOGGED_OUT

A successful login from any state replaces the previous session, so at
most one of {cashier shift, admin session} exists at a time. A failed login
changes nothing.

The reporting gate also lives here: once an operator confirms end-of-shift
reconciliation, reporting_done is set and the shift data may be reset.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from core.backend import BackendClient
from core.exceptions import BackendUnavailableError, NotAuthenticatedError, NotAuthorizedError
from models.money import to_decimal
from models.session import ActiveAdmin, ActiveShift, SessionState
from logging_config import get_logger


logger = get_logger(__name__)


class SessionService:
    """Owns who is logged in and whether reporting has been confirmed."""

    def __init__(self, backend: BackendClient):
        self._backend = backend
        self._shift: Optional[ActiveShift] = None
        self._admin: Optional[ActiveAdmin] = None
        self._reporting_done = False

    @property
    def state(self) -> SessionState:
        if self._shift is not None:
            return SessionState.CASHIER_SHIFT_ACTIVE
        if self._admin is not None:
            return SessionState.ADMIN_ACTIVE
        return SessionState.LOGGED_OUT

    @property
    def active_shift(self) -> Optional[ActiveShift]:
        return self._shift

    @property
    def active_admin(self) -> Optional[ActiveAdmin]:
        return self._admin

    @property
    def reporting_done(self) -> bool:
        return self._reporting_done

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start_shift(self, cashier_id: str, pin: str, float_amount) -> bool:
        """
        Open a cashier shift after PIN validation.

        Args:
            cashier_id: Cashier to log in
            pin: PIN entered at the register
            float_amount: Cash in the drawer at shift start (>= 0)

        Returns:
            True on success. On failure the session is unchanged and the
            reason is only logged, never returned.
        """
        try:
            float_value = to_decimal(float_amount)
        except ValueError:
            logger.warning("Shift login rejected: invalid float amount")
            return False
        if float_value < 0:
            logger.warning("Shift login rejected: negative float amount")
            return False

        try:
            cashier = self._backend.authenticate_cashier(cashier_id, pin)
        except BackendUnavailableError as e:
            logger.error(f"Cannot start shift, backend unavailable: {e}")
            return False

        if cashier is None:
            logger.warning(f"Shift login failed for cashier {cashier_id}")
            return False

        try:
            station_id = self._backend.open_station(cashier.id, float_value)
        except BackendUnavailableError as e:
            logger.error(f"Could not create cashing station session: {e}")
            return False

        self._shift = ActiveShift(
            cashier_id=cashier.id,
            cashier_name=cashier.name,
            float_amount=float_value,
            start_time=datetime.now(timezone.utc).isoformat(),
            station_id=station_id,
        )
        self._admin = None
        logger.info(f"Shift started for {cashier.name} with float {float_value}")
        return True

    def admin_login(self, email: str, password: str) -> bool:
        """Open an admin session; verification is delegated to the backend."""
        try:
            ok = self._backend.authenticate_admin(email, password)
        except BackendUnavailableError as e:
            logger.error(f"Cannot log in admin, backend unavailable: {e}")
            return False

        if not ok:
            logger.warning("Admin login failed")
            return False

        self._admin = ActiveAdmin(email=email.strip().lower())
        self._shift = None
        logger.info(f"Admin session started for {self._admin.email}")
        return True

    def logout(self) -> None:
        if self._shift is not None:
            logger.info(f"Shift ended for {self._shift.cashier_name}")
        elif self._admin is not None:
            logger.info(f"Admin {self._admin.email} logged out")
        self._shift = None
        self._admin = None

    # ------------------------------------------------------------------
    # Gating
    # ------------------------------------------------------------------

    def require_cashier(self) -> ActiveShift:
        """
        Raises:
            NotAuthorizedError: If an admin is logged in instead
            NotAuthenticatedError: If nobody is logged in
        """
        if self._shift is not None:
            return self._shift
        if self._admin is not None:
            raise NotAuthorizedError("Admins cannot take orders")
        raise NotAuthenticatedError("cashier shift")

    def require_admin(self) -> ActiveAdmin:
        if self._admin is not None:
            return self._admin
        if self._shift is not None:
            raise NotAuthorizedError("Admin session required")
        raise NotAuthenticatedError("admin session")

    def require_any(self) -> SessionState:
        state = self.state
        if state is SessionState.LOGGED_OUT:
            raise NotAuthenticatedError("cashier shift or admin session")
        return state

    # ------------------------------------------------------------------
    # Reporting gate
    # ------------------------------------------------------------------

    def set_reporting_done(self, done: bool) -> None:
        self._reporting_done = bool(done)
        logger.info(f"Reporting marked {'done' if done else 'not done'}")

    def can_reset_shift(self, completed_order_count: int) -> bool:
        """True when there is nothing to lose or reporting was confirmed."""
        return completed_order_count == 0 or self._reporting_done

