"""
User profile repository (persistence).

Profiles live in the `users` table and are looked up by EMAIL, because the
Auth identity id and the profile id are not guaranteed to be equal.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from domain.permissions import PermissionSet
from domain.time import parse_optional_utc_datetime
from domain.user import UserProfile
from repositories.base import execute, fetch_one, fetch_optional
from repositories.client import get_client

_USERS_TABLE: str = "users"
PROFILE_COLUMNS: str = "id, name, email, role, tenant_id, permissions, created_at"


def row_to_profile(row: Mapping[str, Any]) -> UserProfile:
    """Convert a `users` row into a UserProfile."""

    stored = row.get("permissions")
    return UserProfile(
        id=str(row["id"]),
        email=str(row.get("email") or ""),
        name=row.get("name"),
        role=row.get("role"),
        tenant_id=str(row["tenant_id"]) if row.get("tenant_id") else None,
        permissions=PermissionSet.from_stored(stored),
        has_stored_permissions=stored not in (None, "", {}),
        created_at=parse_optional_utc_datetime(row.get("created_at")),
    )


def get_profile_by_email(email: str) -> UserProfile:
    """
    Fetch the profile for `email` using the single-row fallback.

    Raises:
        NotFoundError: no profile is visible for the email
        DataInconsistencyError: several profiles share the email
    """

    row = fetch_one(
        lambda: get_client().table(_USERS_TABLE).select(PROFILE_COLUMNS).eq("email", email),
        action="get user profile",
        not_found="User not found",
    )
    return row_to_profile(row)


def get_profile_by_id(user_id: str, *, tenant_id: Optional[str] = None) -> Optional[UserProfile]:
    query = get_client().table(_USERS_TABLE).select(PROFILE_COLUMNS).eq("id", user_id)
    if tenant_id is not None:
        query = query.eq("tenant_id", tenant_id)
    row = fetch_optional(query, action="get user")
    return row_to_profile(row) if row else None


def list_tenant_users(owner_id: str) -> List[UserProfile]:
    """Every profile belonging to the tenant, the owner included."""

    response_rows = execute(
        get_client().table(_USERS_TABLE).select(PROFILE_COLUMNS).eq("tenant_id", owner_id),
        action="list users",
    )
    return [row_to_profile(row) for row in response_rows]


def list_tenant_user_ids(owner_id: str) -> List[str]:
    ids = [profile.id for profile in list_tenant_users(owner_id)]
    if owner_id not in ids:
        ids.insert(0, owner_id)
    return ids


def insert_profile(
    *,
    user_id: str,
    name: str,
    email: str,
    role: str,
    tenant_id: str,
    permissions: Optional[Mapping[str, bool]] = None,
) -> UserProfile:
    payload: dict[str, Any] = {
        "id": user_id,
        "name": name,
        "email": email,
        "role": role,
        "tenant_id": tenant_id,
    }
    if permissions is not None:
        payload["permissions"] = dict(permissions)

    rows = execute(
        get_client().table(_USERS_TABLE).insert(payload),
        action="create user profile",
    )
    return row_to_profile(rows[0] if rows else payload)


def update_profile(user_id: str, changes: Mapping[str, Any]) -> Optional[UserProfile]:
    rows = execute(
        get_client().table(_USERS_TABLE).update(dict(changes)).eq("id", user_id),
        action="update user profile",
    )
    return row_to_profile(rows[0]) if rows else None


__all__ = [
    "PROFILE_COLUMNS",
    "row_to_profile",
    "get_profile_by_email",
    "get_profile_by_id",
    "list_tenant_users",
    "list_tenant_user_ids",
    "insert_profile",
    "update_profile",
]
