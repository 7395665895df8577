"""
Core module for FestivalPOS.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
- backend: Backend store client interface and in-memory implementation
"""

from .exceptions import (
    FestivalPosError,
    BackendUnavailableError,
    BackendRejectedError,
    StoreNotReadyError,
    AuthenticationError,
    NotAuthenticatedError,
    NotAuthorizedError,
    ResetNotAllowedError,
    ValidationError,
)
from .backend import BackendClient, InMemoryBackend

__all__ = [
    "FestivalPosError",
    "BackendUnavailableError",
    "BackendRejectedError",
    "StoreNotReadyError",
    "AuthenticationError",
    "NotAuthenticatedError",
    "NotAuthorizedError",
    "ResetNotAllowedError",
    "ValidationError",
    "BackendClient",
    "InMemoryBackend",
]
