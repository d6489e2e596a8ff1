"""
Domain: error taxonomy.

Errors are grouped by origin, not by the library that raised them:
- authentication (bad credentials, expired session)
- authorization (missing capability)
- row-visibility anomalies (zero or several rows where one was expected)
- validation (rejected before any remote call)
- backend business rules (insufficient stock at commit time)
- connectivity (no response, non-JSON response)

Every error carries a short `title` and a descriptive `message` so callers can
surface it as a notification without inspecting the type.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional


class PosError(Exception):
    """Base exception for all application errors."""

    title = "Error"
    status_code = 500

    def __init__(
        self,
        message: str = "An internal error occurred",
        *,
        title: Optional[str] = None,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if title is not None:
            self.title = title
        self.payload = dict(payload or {})

    def to_dict(self) -> dict[str, Any]:
        rv = dict(self.payload)
        rv["error"] = self.title
        rv["detail"] = self.message
        rv["status_code"] = self.status_code
        return rv


class AuthenticationError(PosError):
    """Raised for invalid credentials or a missing/expired session."""

    title = "Authentication error"
    status_code = 401

    INVALID_CREDENTIALS = "invalid_credentials"
    SESSION_EXPIRED = "session_expired"

    def __init__(self, message: str, *, kind: str = SESSION_EXPIRED) -> None:
        super().__init__(message)
        self.kind = kind

    @classmethod
    def invalid_credentials(cls) -> "AuthenticationError":
        return cls("Email atau password salah", kind=cls.INVALID_CREDENTIALS)

    @classmethod
    def session_expired(cls) -> "AuthenticationError":
        return cls("Session expired, please log in again", kind=cls.SESSION_EXPIRED)


class PermissionDeniedError(PosError):
    """Raised when the acting user lacks a capability."""

    title = "Permission denied"
    status_code = 403


class NotFoundError(PosError):
    """Raised when a resource is not found."""

    title = "Not found"
    status_code = 404

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message)


class DataInconsistencyError(PosError):
    """Raised when several rows come back where exactly one was expected."""

    title = "Data inconsistency"
    status_code = 409


class ValidationError(PosError):
    """Raised when a user action violates an input rule."""

    title = "Invalid input"
    status_code = 400

    def __init__(self, message: str, *, rule: str) -> None:
        super().__init__(message, payload={"rule": rule})
        self.rule = rule


class InsufficientStockError(PosError):
    """Raised when requested quantity exceeds stock."""

    title = "Insufficient stock"
    status_code = 409

    @classmethod
    def for_product(cls, product_name: str, available: int, requested: int) -> "InsufficientStockError":
        return cls(
            f"Stok tidak mencukupi untuk {product_name}. "
            f"Tersedia: {available}, Diminta: {requested}"
        )


class BackendUnavailableError(PosError):
    """Raised when the backend does not answer with a usable response."""

    title = "Server error"
    status_code = 502

    def __init__(
        self,
        message: str = "Server tidak merespons dengan benar. Silakan coba lagi.",
    ) -> None:
        super().__init__(message)


class BackendError(PosError):
    """Raised for any other failure reported by the backend."""

    title = "Server error"
    status_code = 500


__all__ = [
    "PosError",
    "AuthenticationError",
    "PermissionDeniedError",
    "NotFoundError",
    "DataInconsistencyError",
    "ValidationError",
    "InsufficientStockError",
    "BackendUnavailableError",
    "BackendError",
]
