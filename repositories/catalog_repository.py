"""
Catalog repository (persistence).

Products, categories and suppliers, each keyed by the tenant owner's id in
the `user_id` column. This module only reads and writes rows; permission
checks live in `services.catalog_service`.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, List, Mapping, Optional
from uuid import uuid4

from domain.catalog import Category, Product, Supplier
from domain.money import to_money
from repositories.base import execute, fetch_optional
from repositories.client import get_client

_PRODUCTS_TABLE: str = "products"
_CATEGORIES_TABLE: str = "categories"
_SUPPLIERS_TABLE: str = "suppliers"

PRODUCT_COLUMNS: str = (
    "*, "
    "category:categories!products_category_id_fkey(name), "
    "supplier:suppliers!products_supplier_id_fkey(name, phone, address)"
)


def _optional_money(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return to_money(value)


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def row_to_product(row: Mapping[str, Any]) -> Product:
    """Convert a products row (with optional category/supplier joins) into a Product."""

    category = row.get("category") or {}
    supplier = row.get("supplier") or {}
    return Product(
        id=str(row["id"]),
        owner_id=str(row.get("user_id") or ""),
        name=str(row.get("name") or ""),
        price=to_money(row.get("price")),
        cost=_optional_money(row.get("cost")),
        stock=_optional_int(row.get("stock")),
        barcode=row.get("barcode") or None,
        category_id=row.get("category_id"),
        supplier_id=row.get("supplier_id"),
        category_name=category.get("name") or row.get("category_name"),
        supplier_name=supplier.get("name") or row.get("supplier_name"),
        supplier_phone=supplier.get("phone") or row.get("supplier_phone"),
        supplier_address=supplier.get("address") or row.get("supplier_address"),
    )


def row_to_category(row: Mapping[str, Any]) -> Category:
    return Category(id=str(row["id"]), owner_id=str(row.get("user_id") or ""), name=str(row.get("name") or ""))


def row_to_supplier(row: Mapping[str, Any]) -> Supplier:
    return Supplier(
        id=str(row["id"]),
        owner_id=str(row.get("user_id") or ""),
        name=str(row.get("name") or ""),
        phone=row.get("phone"),
        address=row.get("address"),
    )


def _serialize(fields: Mapping[str, Any]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for key, value in fields.items():
        payload[key] = str(value) if isinstance(value, Decimal) else value
    return payload


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


def list_products(owner_id: str) -> List[Product]:
    rows = execute(
        get_client().table(_PRODUCTS_TABLE).select(PRODUCT_COLUMNS).eq("user_id", owner_id).order("name"),
        action="get products",
    )
    return [row_to_product(row) for row in rows]


def get_product(owner_id: str, product_id: str) -> Optional[Product]:
    query = get_client().table(_PRODUCTS_TABLE).select(PRODUCT_COLUMNS).eq("id", product_id).eq("user_id", owner_id)
    row = fetch_optional(query, action="get product")
    return row_to_product(row) if row else None


def insert_product(owner_id: str, fields: Mapping[str, Any]) -> Product:
    payload = _serialize(fields)
    payload["id"] = str(uuid4())
    payload["user_id"] = owner_id
    rows = execute(get_client().table(_PRODUCTS_TABLE).insert(payload), action="create product")
    return row_to_product(rows[0] if rows else payload)


def update_product(owner_id: str, product_id: str, fields: Mapping[str, Any]) -> Optional[Product]:
    rows = execute(
        get_client()
        .table(_PRODUCTS_TABLE)
        .update(_serialize(fields))
        .eq("id", product_id)
        .eq("user_id", owner_id),
        action="update product",
    )
    return row_to_product(rows[0]) if rows else None


def delete_product(owner_id: str, product_id: str) -> bool:
    rows = execute(
        get_client().table(_PRODUCTS_TABLE).delete().eq("id", product_id).eq("user_id", owner_id),
        action="delete product",
    )
    return bool(rows)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


def list_categories(owner_id: str) -> List[Category]:
    rows = execute(
        get_client().table(_CATEGORIES_TABLE).select("*").eq("user_id", owner_id).order("name"),
        action="get categories",
    )
    return [row_to_category(row) for row in rows]


def insert_category(owner_id: str, name: str) -> Category:
    payload = {"id": str(uuid4()), "user_id": owner_id, "name": name}
    rows = execute(get_client().table(_CATEGORIES_TABLE).insert(payload), action="create category")
    return row_to_category(rows[0] if rows else payload)


def update_category(owner_id: str, category_id: str, name: str) -> Optional[Category]:
    rows = execute(
        get_client()
        .table(_CATEGORIES_TABLE)
        .update({"name": name})
        .eq("id", category_id)
        .eq("user_id", owner_id),
        action="update category",
    )
    return row_to_category(rows[0]) if rows else None


def delete_category(owner_id: str, category_id: str) -> bool:
    rows = execute(
        get_client().table(_CATEGORIES_TABLE).delete().eq("id", category_id).eq("user_id", owner_id),
        action="delete category",
    )
    return bool(rows)


# ---------------------------------------------------------------------------
# Suppliers
# ---------------------------------------------------------------------------


def list_suppliers(owner_id: str) -> List[Supplier]:
    rows = execute(
        get_client().table(_SUPPLIERS_TABLE).select("*").eq("user_id", owner_id).order("name"),
        action="get suppliers",
    )
    return [row_to_supplier(row) for row in rows]


def insert_supplier(owner_id: str, fields: Mapping[str, Any]) -> Supplier:
    payload = _serialize(fields)
    payload["id"] = str(uuid4())
    payload["user_id"] = owner_id
    rows = execute(get_client().table(_SUPPLIERS_TABLE).insert(payload), action="create supplier")
    return row_to_supplier(rows[0] if rows else payload)


def update_supplier(owner_id: str, supplier_id: str, fields: Mapping[str, Any]) -> Optional[Supplier]:
    rows = execute(
        get_client()
        .table(_SUPPLIERS_TABLE)
        .update(_serialize(fields))
        .eq("id", supplier_id)
        .eq("user_id", owner_id),
        action="update supplier",
    )
    return row_to_supplier(rows[0]) if rows else None


def delete_supplier(owner_id: str, supplier_id: str) -> bool:
    rows = execute(
        get_client().table(_SUPPLIERS_TABLE).delete().eq("id", supplier_id).eq("user_id", owner_id),
        action="delete supplier",
    )
    return bool(rows)


__all__ = [
    "PRODUCT_COLUMNS",
    "row_to_product",
    "list_products",
    "get_product",
    "insert_product",
    "update_product",
    "delete_product",
    "list_categories",
    "insert_category",
    "update_category",
    "delete_category",
    "list_suppliers",
    "insert_supplier",
    "update_supplier",
    "delete_supplier",
]
