"""
Customer repository (persistence).

Customers belong to the tenant owner (`user_id` column).
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional
from uuid import uuid4

from domain.catalog import Customer
from domain.time import parse_optional_utc_datetime
from repositories.base import execute, fetch_optional
from repositories.client import get_client

_CUSTOMERS_TABLE: str = "customers"


def row_to_customer(row: Mapping[str, Any]) -> Customer:
    return Customer(
        id=str(row["id"]),
        owner_id=str(row.get("user_id") or ""),
        name=str(row.get("name") or ""),
        phone=row.get("phone"),
        email=row.get("email"),
        address=row.get("address"),
        created_at=parse_optional_utc_datetime(row.get("created_at")),
    )


def list_customers(owner_id: str) -> List[Customer]:
    rows = execute(
        get_client().table(_CUSTOMERS_TABLE).select("*").eq("user_id", owner_id).order("name"),
        action="get customers",
    )
    return [row_to_customer(row) for row in rows]


def get_customer(owner_id: str, customer_id: str) -> Optional[Customer]:
    query = get_client().table(_CUSTOMERS_TABLE).select("*").eq("id", customer_id).eq("user_id", owner_id)
    row = fetch_optional(query, action="get customer")
    return row_to_customer(row) if row else None


def insert_customer(owner_id: str, fields: Mapping[str, Any]) -> Customer:
    payload = dict(fields)
    payload["id"] = str(uuid4())
    payload["user_id"] = owner_id
    rows = execute(get_client().table(_CUSTOMERS_TABLE).insert(payload), action="create customer")
    return row_to_customer(rows[0] if rows else payload)


def update_customer(owner_id: str, customer_id: str, fields: Mapping[str, Any]) -> Optional[Customer]:
    rows = execute(
        get_client()
        .table(_CUSTOMERS_TABLE)
        .update(dict(fields))
        .eq("id", customer_id)
        .eq("user_id", owner_id),
        action="update customer",
    )
    return row_to_customer(rows[0]) if rows else None


def delete_customer(owner_id: str, customer_id: str) -> bool:
    rows = execute(
        get_client().table(_CUSTOMERS_TABLE).delete().eq("id", customer_id).eq("user_id", owner_id),
        action="delete customer",
    )
    return bool(rows)


__all__ = [
    "row_to_customer",
    "list_customers",
    "get_customer",
    "insert_customer",
    "update_customer",
    "delete_customer",
]
