"""
Supabase Auth access.

Only identity operations live here; profiles are handled by
`repositories.user_repository`. Auth errors are translated as follows:

- HTTP 400/401 on sign-in        -> AuthenticationError (invalid credentials)
- HTTP 5xx                        -> BackendError ("Server error, silakan coba lagi")
- token rejected by get_user      -> AuthenticationError (session expired)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from supabase import AuthError

from domain.errors import AuthenticationError, BackendError, BackendUnavailableError, PosError
from repositories.client import get_auth_client, get_client

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Server error, silakan coba lagi"


@dataclass(frozen=True, slots=True)
class AuthIdentity:
    """The identity-provider side of a user (not the profile row)."""

    id: str
    email: str


@dataclass(frozen=True, slots=True)
class AuthSession:
    access_token: str
    identity: AuthIdentity
    refresh_token: Optional[str] = None


def _status_of(exc: AuthError) -> Optional[int]:
    status = getattr(exc, "status", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


def _translate(exc: AuthError, *, credentials: bool) -> PosError:
    status = _status_of(exc)
    if status is not None and status >= 500:
        return BackendError(SERVER_ERROR_MESSAGE)
    if credentials and status in (400, 401):
        return AuthenticationError.invalid_credentials()
    if credentials:
        return AuthenticationError(getattr(exc, "message", None) or str(exc), kind=AuthenticationError.INVALID_CREDENTIALS)
    return AuthenticationError.session_expired()


def _identity_of(user: Any) -> AuthIdentity:
    return AuthIdentity(id=str(getattr(user, "id")), email=str(getattr(user, "email", "") or ""))


def sign_in(email: str, password: str) -> AuthSession:
    try:
        response = get_auth_client().auth.sign_in_with_password({"email": email, "password": password})
    except AuthError as exc:
        raise _translate(exc, credentials=True) from exc
    except httpx.HTTPError as exc:
        raise BackendUnavailableError() from exc

    session = getattr(response, "session", None)
    user = getattr(response, "user", None)
    if session is None or user is None:
        raise AuthenticationError.invalid_credentials()

    return AuthSession(
        access_token=str(session.access_token),
        refresh_token=getattr(session, "refresh_token", None),
        identity=_identity_of(user),
    )


def sign_up(email: str, password: str, name: str) -> AuthIdentity:
    try:
        response = get_auth_client().auth.sign_up(
            {"email": email, "password": password, "options": {"data": {"name": name}}}
        )
    except AuthError as exc:
        status = _status_of(exc)
        if status is not None and status >= 500:
            raise BackendError(SERVER_ERROR_MESSAGE) from exc
        raise BackendError(f"Failed to register: {getattr(exc, 'message', None) or exc}") from exc
    except httpx.HTTPError as exc:
        raise BackendUnavailableError() from exc

    user = getattr(response, "user", None)
    if user is None:
        raise BackendError("Failed to register: no user returned")
    return _identity_of(user)


def get_identity(token: str) -> AuthIdentity:
    """Resolve a session token to its identity; an invalid token means the session expired."""

    if not token:
        raise AuthenticationError.session_expired()
    try:
        response = get_auth_client().auth.get_user(token)
    except AuthError as exc:
        raise _translate(exc, credentials=False) from exc
    except httpx.HTTPError as exc:
        raise BackendUnavailableError() from exc

    user = getattr(response, "user", None) if response is not None else None
    if user is None:
        raise AuthenticationError.session_expired()
    return _identity_of(user)


def request_password_reset(email: str, redirect_to: str) -> None:
    try:
        get_auth_client().auth.reset_password_for_email(email, {"redirect_to": redirect_to})
    except AuthError as exc:
        logger.error("Password reset request failed", extra={"status": _status_of(exc)})
        raise BackendError(f"Failed to request password reset: {getattr(exc, 'message', None) or exc}") from exc
    except httpx.HTTPError as exc:
        raise BackendUnavailableError() from exc


def set_password(identity_id: str, password: str) -> None:
    """Change the password of an identity (server-side key required)."""

    try:
        get_client().auth.admin.update_user_by_id(identity_id, {"password": password})
    except AuthError as exc:
        raise BackendError(f"Failed to update password: {getattr(exc, 'message', None) or exc}") from exc
    except httpx.HTTPError as exc:
        raise BackendUnavailableError() from exc


__all__ = [
    "AuthIdentity",
    "AuthSession",
    "SERVER_ERROR_MESSAGE",
    "sign_in",
    "sign_up",
    "get_identity",
    "request_password_reset",
    "set_password",
]
