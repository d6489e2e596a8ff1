"""
Domain: role resolution and the capability gate.

Rules:
- Roles `owner` and `admin` resolve to OWNER; `cashier` and `kasir` resolve to
  CASHIER; anything else (including a missing role) resolves to OWNER.
- OWNER holds every capability, whatever the stored permissions object says.
- CASHIER holds exactly the capabilities whose stored flag is `true`.
- No user holds no capability.
- The dashboard page is never gated.

This gate mirrors the row-level-security policies of the backend; the backend
remains the authority.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Mapping, Optional

from .errors import PermissionDeniedError

if TYPE_CHECKING:
    from .user import UserProfile

logger = logging.getLogger(__name__)


class Role(str, Enum):
    OWNER = "owner"
    CASHIER = "cashier"


_ROLE_ALIASES = {
    "owner": Role.OWNER,
    "admin": Role.OWNER,
    "cashier": Role.CASHIER,
    "kasir": Role.CASHIER,
}


def resolve_role(raw: Any) -> Role:
    """Map a stored role string onto a Role (unknown values fall back to OWNER)."""

    key = str(raw or "owner").strip().lower()
    return _ROLE_ALIASES.get(key, Role.OWNER)


# snake_case attribute -> camelCase key of the stored permissions object
CAPABILITY_KEYS = {
    "can_edit_product": "canEditProduct",
    "can_delete_product": "canDeleteProduct",
    "can_add_product": "canAddProduct",
    "can_import_product": "canImportProduct",
    "can_add_customer": "canAddCustomer",
    "can_add_supplier": "canAddSupplier",
    "can_apply_discount": "canApplyDiscount",
    "can_apply_tax": "canApplyTax",
    "can_delete_transaction": "canDeleteTransaction",
    "can_export_reports": "canExportReports",
}
_CAMEL_TO_SNAKE = {camel: snake for snake, camel in CAPABILITY_KEYS.items()}

PAGE_KEYS = ("sales", "products", "reports")
OWNER_PAGES = ("dashboard", "sales", "products", "reports", "settings", "subscription")


@dataclass(frozen=True, slots=True)
class CapabilitySet:
    can_edit_product: bool
    can_delete_product: bool
    can_add_product: bool
    can_import_product: bool
    can_add_customer: bool
    can_add_supplier: bool
    can_apply_discount: bool
    can_apply_tax: bool
    can_delete_transaction: bool
    can_export_reports: bool

    @classmethod
    def all_granted(cls) -> "CapabilitySet":
        return cls(**{name: True for name in CAPABILITY_KEYS})

    @classmethod
    def none_granted(cls) -> "CapabilitySet":
        return cls(**{name: False for name in CAPABILITY_KEYS})

    def has(self, key: str) -> bool:
        """Look up a capability by snake_case or camelCase name (unknown -> False)."""

        name = _CAMEL_TO_SNAKE.get(key, key)
        if name not in CAPABILITY_KEYS:
            return False
        return bool(getattr(self, name))

    def as_dict(self) -> dict[str, bool]:
        return {camel: getattr(self, snake) for snake, camel in CAPABILITY_KEYS.items()}


@dataclass(frozen=True, slots=True)
class PermissionSet:
    """Typed form of a user's stored permissions object."""

    capabilities: CapabilitySet
    sales: bool
    products: bool
    reports: bool

    @classmethod
    def empty(cls) -> "PermissionSet":
        return cls(capabilities=CapabilitySet.none_granted(), sales=False, products=False, reports=False)

    @classmethod
    def from_stored(cls, stored: Any) -> "PermissionSet":
        """
        Deserialize the stored permissions object.

        Accepts a mapping, a JSON string or None. A flag is granted only when its
        stored value is exactly `true`; every absent key reads as False.
        """

        data = _coerce_mapping(stored)
        if not data:
            return cls.empty()

        capabilities = CapabilitySet(
            **{snake: data.get(camel) is True for snake, camel in CAPABILITY_KEYS.items()}
        )
        return cls(
            capabilities=capabilities,
            sales=data.get("sales") is True,
            products=data.get("products") is True,
            reports=data.get("reports") is True,
        )

    def to_stored(self) -> dict[str, bool]:
        stored = self.capabilities.as_dict()
        for page in PAGE_KEYS:
            stored[page] = getattr(self, page)
        return stored

    def page_allowed(self, page: str) -> bool:
        return page in PAGE_KEYS and bool(getattr(self, page))


def _coerce_mapping(stored: Any) -> Optional[Mapping[str, Any]]:
    if stored is None:
        return None
    if isinstance(stored, Mapping):
        return stored
    if isinstance(stored, (str, bytes)):
        try:
            parsed = json.loads(stored)
        except ValueError:
            logger.warning("Ignoring unparseable permissions object")
            return None
        return parsed if isinstance(parsed, Mapping) else None
    return None


def resolve_permissions(user: Optional["UserProfile"]) -> CapabilitySet:
    """Resolve the capability set of `user`. Pure and total."""

    if user is None:
        return CapabilitySet.none_granted()
    if resolve_role(user.role) is Role.OWNER:
        return CapabilitySet.all_granted()
    return user.permissions.capabilities


def visible_pages(user: Optional["UserProfile"]) -> List[str]:
    """Navigation entries the user may open, dashboard first."""

    if user is None:
        return []
    if resolve_role(user.role) is Role.OWNER:
        return list(OWNER_PAGES)

    pages = ["dashboard"]
    for page in PAGE_KEYS:
        # cashiers without a stored permissions object see every cashier page
        if not user.has_stored_permissions or user.permissions.page_allowed(page):
            pages.append(page)
    return pages


def require(capabilities: CapabilitySet, key: str) -> None:
    """Raise PermissionDeniedError unless `key` is granted."""

    if not capabilities.has(key):
        name = CAPABILITY_KEYS.get(key, key)
        raise PermissionDeniedError(f"You do not have permission to perform this action ({name})")


__all__ = [
    "Role",
    "CapabilitySet",
    "PermissionSet",
    "CAPABILITY_KEYS",
    "resolve_role",
    "resolve_permissions",
    "visible_pages",
    "require",
]
