"""
Customer service.

Customers are tenant scoped. Creating one needs a name and a phone number
and the canAddCustomer capability.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping

from domain.catalog import Customer
from domain.errors import NotFoundError, ValidationError
from domain.permissions import require
from domain.user import UserProfile
from repositories import customer_repository

logger = logging.getLogger(__name__)

_CUSTOMER_FIELDS = ("name", "phone", "email", "address")


def _clean(fields: Mapping[str, Any], *, partial: bool) -> dict[str, Any]:
    cleaned = {key: fields[key] for key in _CUSTOMER_FIELDS if key in fields}
    for key in ("name", "phone"):
        if partial and key not in cleaned:
            continue
        value = str(cleaned.get(key) or "").strip()
        if not value:
            raise ValidationError(f"Customer {key} is required", rule=f"customer_{key}_required")
        cleaned[key] = value
    return cleaned


def list_customers(user: UserProfile) -> List[Customer]:
    return customer_repository.list_customers(user.owner_id)


def get_customer(user: UserProfile, customer_id: str) -> Customer:
    customer = customer_repository.get_customer(user.owner_id, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")
    return customer


def create_customer(user: UserProfile, fields: Mapping[str, Any]) -> Customer:
    require(user.capabilities, "canAddCustomer")
    customer = customer_repository.insert_customer(user.owner_id, _clean(fields, partial=False))
    logger.info("Customer created", extra={"customer_id": customer.id, "owner_id": user.owner_id})
    return customer


def update_customer(user: UserProfile, customer_id: str, fields: Mapping[str, Any]) -> Customer:
    require(user.capabilities, "canAddCustomer")
    customer = customer_repository.update_customer(user.owner_id, customer_id, _clean(fields, partial=True))
    if customer is None:
        raise NotFoundError("Customer not found")
    return customer


def delete_customer(user: UserProfile, customer_id: str) -> None:
    require(user.capabilities, "canAddCustomer")
    if not customer_repository.delete_customer(user.owner_id, customer_id):
        raise NotFoundError("Customer not found")


__all__ = ["list_customers", "get_customer", "create_customer", "update_customer", "delete_customer"]
