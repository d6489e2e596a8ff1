"""
Domain: user profiles.

A profile is the row of the `users` table that belongs to an authenticated
identity. It is replaced wholesale on login, update and logout; nothing caches
values derived from it.

Tenancy:
- An owner's tenant is the owner's own id.
- A cashier works under `tenant_id`, the id of the owner that created them.
- Catalog, customer and settings data are keyed by that owner id.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Optional

from .permissions import CapabilitySet, PermissionSet, Role, resolve_permissions, resolve_role
from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class UserProfile:
    id: str
    email: str
    name: Optional[str] = None
    role: Optional[str] = None  # raw stored value; see resolved_role
    tenant_id: Optional[str] = None
    permissions: PermissionSet = field(default_factory=PermissionSet.empty)
    has_stored_permissions: bool = False
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    @property
    def resolved_role(self) -> Role:
        return resolve_role(self.role)

    @property
    def is_owner(self) -> bool:
        return self.resolved_role is Role.OWNER

    @property
    def is_cashier(self) -> bool:
        return self.resolved_role is Role.CASHIER

    @property
    def owner_id(self) -> str:
        """Id of the tenant owner whose data this user works on."""

        if self.is_cashier and self.tenant_id:
            return self.tenant_id
        return self.id

    @property
    def capabilities(self) -> CapabilitySet:
        return resolve_permissions(self)

    def with_updates(self, **changes: Any) -> "UserProfile":
        """Return a copy with the given fields merged in (unknown names raise TypeError)."""

        return replace(self, **changes)


__all__ = ["UserProfile"]
