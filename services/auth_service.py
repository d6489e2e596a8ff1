"""
Authentication service.

Handles:
- login (email normalized, profile resolved by email)
- owner registration (an owner's tenant is its own id)
- resolving the current user from a session token
- password reset requests and password changes

Auth failures never retry. Wrong credentials and an expired session are
reported as distinct AuthenticationError kinds.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from domain.errors import PermissionDeniedError, ValidationError
from domain.user import UserProfile
from repositories import auth_repository, user_repository

logger = logging.getLogger(__name__)

DEFAULT_SITE_URL = "https://idcashier.my.id"
MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True, slots=True)
class LoginResult:
    token: str
    user: UserProfile


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def demo_account_email() -> str:
    return normalize_email(os.getenv("DEMO_ACCOUNT_EMAIL", "demo@gmail.com"))


def is_demo_account(user: UserProfile) -> bool:
    return normalize_email(user.email) == demo_account_email()


def _require_credentials(email: str, password: str) -> None:
    if not email:
        raise ValidationError("Email is required", rule="email_required")
    if not password:
        raise ValidationError("Password is required", rule="password_required")


def login(email: str, password: str) -> LoginResult:
    normalized = normalize_email(email)
    _require_credentials(normalized, password)

    session = auth_repository.sign_in(normalized, password)
    profile = user_repository.get_profile_by_email(normalize_email(session.identity.email) or normalized)
    logger.info("User logged in", extra={"user_id": profile.id, "role": profile.resolved_role.value})
    return LoginResult(token=session.access_token, user=profile)


def register_owner(name: str, email: str, password: str) -> UserProfile:
    normalized = normalize_email(email)
    _require_credentials(normalized, password)
    if not (name or "").strip():
        raise ValidationError("Name is required", rule="name_required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            rule="password_too_short",
        )

    identity = auth_repository.sign_up(normalized, password, name.strip())
    profile = user_repository.insert_profile(
        user_id=identity.id,
        name=name.strip(),
        email=normalized,
        role="owner",
        tenant_id=identity.id,
    )
    logger.info("Owner registered", extra={"user_id": profile.id})
    return profile


def current_user(token: str) -> UserProfile:
    """Resolve a session token to the caller's profile."""

    identity = auth_repository.get_identity(token)
    return user_repository.get_profile_by_email(normalize_email(identity.email))


def request_password_reset(email: str) -> None:
    normalized = normalize_email(email)
    if not normalized:
        raise ValidationError("Email is required", rule="email_required")

    site_url = os.getenv("SITE_URL", DEFAULT_SITE_URL).rstrip("/")
    auth_repository.request_password_reset(normalized, f"{site_url}/reset-password")


def update_password(token: str, password: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            rule="password_too_short",
        )

    identity = auth_repository.get_identity(token)
    if normalize_email(identity.email) == demo_account_email():
        raise PermissionDeniedError("The demo account password cannot be changed")
    auth_repository.set_password(identity.id, password)
    logger.info("Password updated", extra={"identity_id": identity.id})


__all__ = [
    "LoginResult",
    "normalize_email",
    "is_demo_account",
    "login",
    "register_owner",
    "current_user",
    "request_password_reset",
    "update_password",
]
