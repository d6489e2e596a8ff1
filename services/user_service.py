"""
Tenant user management (owner only).

Listing reads the `users` table directly. Creating, updating and deleting a
cashier also touches the identity provider, so those go through the
`auth-register`, `users-update` and `users-delete` edge functions with the
owner's session token.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from domain.errors import NotFoundError, PermissionDeniedError, ValidationError
from domain.permissions import PermissionSet
from domain.user import UserProfile
from repositories import user_repository
from repositories.functions_repository import invoke_function
from services.auth_service import MIN_PASSWORD_LENGTH, normalize_email

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = ("name", "email", "password", "permissions")


def _require_owner(user: UserProfile) -> None:
    if not user.is_owner:
        raise PermissionDeniedError("Only the store owner can manage users")


def list_users(user: UserProfile) -> List[UserProfile]:
    _require_owner(user)
    return [u for u in user_repository.list_tenant_users(user.owner_id) if u.id != user.id]


def _require_cashier(owner: UserProfile, user_id: str) -> UserProfile:
    target = user_repository.get_profile_by_id(user_id, tenant_id=owner.owner_id)
    if target is None or target.id == owner.id:
        raise NotFoundError("User not found")
    return target


def create_cashier(
    owner: UserProfile,
    token: str,
    *,
    name: str,
    email: str,
    password: str,
    permissions: Optional[Mapping[str, Any]] = None,
) -> Any:
    _require_owner(owner)
    normalized = normalize_email(email)
    if not (name or "").strip() or not normalized:
        raise ValidationError("Name and email are required", rule="user_fields_required")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            rule="password_too_short",
        )

    data = invoke_function(
        "auth-register",
        token=token,
        body={
            "name": name.strip(),
            "email": normalized,
            "password": password,
            "role": "cashier",
            "tenant_id": owner.owner_id,
            "permissions": PermissionSet.from_stored(permissions).to_stored(),
        },
    )
    logger.info("Cashier created", extra={"owner_id": owner.owner_id})
    return data.get("user", data) if isinstance(data, Mapping) else data


def update_cashier(owner: UserProfile, token: str, user_id: str, changes: Mapping[str, Any]) -> Any:
    _require_owner(owner)
    _require_cashier(owner, user_id)

    body = {key: changes[key] for key in _UPDATABLE_FIELDS if changes.get(key) is not None}
    if "email" in body:
        body["email"] = normalize_email(body["email"])
    if "password" in body and len(body["password"]) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            rule="password_too_short",
        )
    if "permissions" in body:
        body["permissions"] = PermissionSet.from_stored(body["permissions"]).to_stored()
    if not body:
        raise ValidationError("Nothing to update", rule="empty_update")

    return invoke_function(f"users-update?id={user_id}", token=token, body=body)


def delete_cashier(owner: UserProfile, token: str, user_id: str) -> None:
    _require_owner(owner)
    _require_cashier(owner, user_id)
    invoke_function(f"users-delete?id={user_id}", token=token, body={"id": user_id})
    logger.info("Cashier deleted", extra={"owner_id": owner.owner_id, "user_id": user_id})


__all__ = ["list_users", "create_cashier", "update_cashier", "delete_cashier"]
