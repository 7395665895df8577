"""
Custom exceptions for FestivalPOS.

Exception Hierarchy:
    FestivalPosError (base)
    ├── BackendUnavailableError - Backend store could not be reached
    ├── BackendRejectedError    - Backend refused a write (missing id, bad value)
    ├── StoreNotReadyError      - Order history not yet restored from disk
    ├── AuthenticationError     - Bad PIN or admin credentials
    ├── NotAuthenticatedError   - Operation needs a cashier shift or admin session
    ├── NotAuthorizedError      - Session exists but has the wrong role
    ├── ResetNotAllowedError    - Shift reset refused by the reporting gate
    └── ValidationError         - Malformed input or rejected cart operation

Usage:
    The core services never raise for cart rejections or missing ids on
    reads; they return explicit results. These exceptions are raised at the gating seams
    (PosState, routes) and translated to JSON responses by the app factory.
"""

from typing import Optional, Dict, Any


class FestivalPosError(Exception):
    """
    Base exception for all FestivalPOS errors.

    Carries a human-readable message plus an optional details dict that the
    HTTP error handlers return verbatim.
    """

    status_code = 500
    """HTTP status used when this error reaches a route."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for a JSON error response."""
        data = {"error": type(self).__name__, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data


class BackendUnavailableError(FestivalPosError):
    """
    The backend store could not complete a read or write.

    Catalog and admin operations catch this and return a failure value,
    leaving local state exactly as it was.
    """

    status_code = 502

    def __init__(self, operation: str, reason: str = "backend unavailable"):
        message = f"Backend {operation} failed: {reason}"
        details = {
            "operation": operation,
            "resolution": "Retry the action once the backend is reachable",
        }
        super().__init__(message, details)
        self.operation = operation
        self.reason = reason


class BackendRejectedError(FestivalPosError):
    """
    The backend was reached but refused the write.

    Raised for unknown ids (404) and values the backend will not accept,
    such as a stock delta that would go negative (409). Catalog writes let
    it propagate so routes answer with the real reason.
    """

    status_code = 409

    def __init__(self, operation: str, reason: str, status_code: Optional[int] = None):
        super().__init__(reason, {"operation": operation})
        self.operation = operation
        self.reason = reason
        if status_code is not None:
            self.status_code = status_code


class StoreNotReadyError(FestivalPosError):
    """
    Completed orders have not yet been restored from local storage.

    Screens must not render until hydration finishes, so routes raise this
    while the background restore is still running.
    """

    status_code = 503

    def __init__(self, message: str = "Order history is still loading"):
        super().__init__(message, {"resolution": "Retry in a moment"})


class AuthenticationError(FestivalPosError):
    """
    Login failed.

    The message is the same whether the id, PIN, email or password was
    wrong.
    """

    status_code = 401

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class NotAuthenticatedError(FestivalPosError):
    """No cashier shift or admin session is active."""

    status_code = 401

    def __init__(self, required: str = "cashier shift"):
        super().__init__(f"An active {required} is required", {"required": required})
        self.required = required


class NotAuthorizedError(FestivalPosError):
    """A session is active but its role cannot perform the operation."""

    status_code = 403

    def __init__(self, message: str = "Operation not permitted for this session"):
        super().__init__(message)


class ResetNotAllowedError(FestivalPosError):
    """
    Shift data cannot be cleared yet.

    Raised when completed orders exist and reporting has not been marked
    done.
    """

    status_code = 409

    def __init__(self, order_count: int, action: str = "reset the shift"):
        message = (
            f"Cannot {action} with {order_count} unreconciled orders; "
            "mark reporting as done first"
        )
        super().__init__(message, {"order_count": order_count, "action": action})
        self.order_count = order_count
        self.action = action


class ValidationError(FestivalPosError):
    """Input was malformed or a cart operation was rejected."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None, status_code: Optional[int] = None):
        details = {"field": field} if field else None
        super().__init__(message, details)
        self.field = field
        if status_code is not None:
            self.status_code = status_code
