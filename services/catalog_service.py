"""
Catalog service: products, categories and suppliers.

Every read and write is scoped to the tenant of the acting user (a cashier
works on its owner's catalog). Writes are gated by the capability set:

- create product / category / import  -> canAddProduct / canImportProduct
- edit product / category             -> canEditProduct
- delete product / category / supplier -> canDeleteProduct
- create / edit supplier               -> canAddSupplier
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, List, Mapping, Optional

from domain.catalog import Category, Product, Supplier
from domain.errors import NotFoundError, ValidationError
from domain.money import to_money
from domain.permissions import require
from domain.user import UserProfile
from repositories import catalog_repository

logger = logging.getLogger(__name__)

_PRODUCT_FIELDS = ("name", "barcode", "price", "cost", "stock", "category_id", "supplier_id")
_SUPPLIER_FIELDS = ("name", "phone", "address")


def _clean_product_fields(fields: Mapping[str, Any], *, partial: bool) -> dict[str, Any]:
    cleaned = {key: fields[key] for key in _PRODUCT_FIELDS if key in fields}

    if not partial or "name" in cleaned:
        name = str(cleaned.get("name") or "").strip()
        if not name:
            raise ValidationError("Product name is required", rule="product_name_required")
        cleaned["name"] = name

    for key in ("price", "cost"):
        if key in cleaned and cleaned[key] is not None:
            amount = to_money(cleaned[key])
            if amount < 0:
                raise ValidationError(f"Product {key} cannot be negative", rule=f"negative_{key}")
            cleaned[key] = amount
    if not partial and "price" not in cleaned:
        cleaned["price"] = Decimal("0")

    if "stock" in cleaned and cleaned["stock"] is not None:
        try:
            stock = int(cleaned["stock"])
        except (TypeError, ValueError) as exc:
            raise ValidationError("Stock must be a whole number", rule="invalid_stock") from exc
        if stock < 0:
            raise ValidationError("Stock cannot be negative", rule="negative_stock")
        cleaned["stock"] = stock

    if cleaned.get("barcode") is not None:
        cleaned["barcode"] = str(cleaned["barcode"]).strip() or None
    return cleaned


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


def list_products(user: UserProfile) -> List[Product]:
    return catalog_repository.list_products(user.owner_id)


def get_product(user: UserProfile, product_id: str) -> Product:
    product = catalog_repository.get_product(user.owner_id, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


def create_product(user: UserProfile, fields: Mapping[str, Any]) -> Product:
    require(user.capabilities, "canAddProduct")
    product = catalog_repository.insert_product(user.owner_id, _clean_product_fields(fields, partial=False))
    logger.info("Product created", extra={"product_id": product.id, "owner_id": user.owner_id})
    return product


def update_product(user: UserProfile, product_id: str, fields: Mapping[str, Any]) -> Product:
    require(user.capabilities, "canEditProduct")
    product = catalog_repository.update_product(
        user.owner_id, product_id, _clean_product_fields(fields, partial=True)
    )
    if product is None:
        raise NotFoundError("Product not found")
    return product


def delete_product(user: UserProfile, product_id: str) -> None:
    require(user.capabilities, "canDeleteProduct")
    if not catalog_repository.delete_product(user.owner_id, product_id):
        raise NotFoundError("Product not found")
    logger.info("Product deleted", extra={"product_id": product_id, "owner_id": user.owner_id})


def import_products(user: UserProfile, rows: List[Mapping[str, Any]]) -> List[Product]:
    """
    Create products from already-parsed rows.

    Every row is validated before anything is written, so an invalid row
    rejects the whole batch.
    """

    require(user.capabilities, "canImportProduct")
    cleaned: List[dict[str, Any]] = []
    for index, row in enumerate(rows, start=1):
        try:
            cleaned.append(_clean_product_fields(row, partial=False))
        except ValidationError as exc:
            raise ValidationError(f"Row {index}: {exc.message}", rule=exc.rule) from exc

    created = [catalog_repository.insert_product(user.owner_id, fields) for fields in cleaned]
    logger.info("Products imported", extra={"count": len(created), "owner_id": user.owner_id})
    return created


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


def _category_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Category name is required", rule="category_name_required")
    return cleaned


def list_categories(user: UserProfile) -> List[Category]:
    return catalog_repository.list_categories(user.owner_id)


def create_category(user: UserProfile, name: str) -> Category:
    require(user.capabilities, "canAddProduct")
    return catalog_repository.insert_category(user.owner_id, _category_name(name))


def update_category(user: UserProfile, category_id: str, name: str) -> Category:
    require(user.capabilities, "canEditProduct")
    category = catalog_repository.update_category(user.owner_id, category_id, _category_name(name))
    if category is None:
        raise NotFoundError("Category not found")
    return category


def delete_category(user: UserProfile, category_id: str) -> None:
    require(user.capabilities, "canDeleteProduct")
    if not catalog_repository.delete_category(user.owner_id, category_id):
        raise NotFoundError("Category not found")


# ---------------------------------------------------------------------------
# Suppliers
# ---------------------------------------------------------------------------


def _clean_supplier_fields(fields: Mapping[str, Any], *, partial: bool) -> dict[str, Any]:
    cleaned = {key: fields[key] for key in _SUPPLIER_FIELDS if key in fields}
    if not partial or "name" in cleaned:
        name = str(cleaned.get("name") or "").strip()
        if not name:
            raise ValidationError("Supplier name is required", rule="supplier_name_required")
        cleaned["name"] = name
    return cleaned


def list_suppliers(user: UserProfile) -> List[Supplier]:
    return catalog_repository.list_suppliers(user.owner_id)


def create_supplier(user: UserProfile, fields: Mapping[str, Any]) -> Supplier:
    require(user.capabilities, "canAddSupplier")
    return catalog_repository.insert_supplier(user.owner_id, _clean_supplier_fields(fields, partial=False))


def update_supplier(user: UserProfile, supplier_id: str, fields: Mapping[str, Any]) -> Supplier:
    require(user.capabilities, "canAddSupplier")
    supplier = catalog_repository.update_supplier(
        user.owner_id, supplier_id, _clean_supplier_fields(fields, partial=True)
    )
    if supplier is None:
        raise NotFoundError("Supplier not found")
    return supplier


def delete_supplier(user: UserProfile, supplier_id: str) -> None:
    require(user.capabilities, "canDeleteProduct")
    if not catalog_repository.delete_supplier(user.owner_id, supplier_id):
        raise NotFoundError("Supplier not found")


__all__ = [
    "list_products",
    "get_product",
    "create_product",
    "update_product",
    "delete_product",
    "import_products",
    "list_categories",
    "create_category",
    "update_category",
    "delete_category",
    "list_suppliers",
    "create_supplier",
    "update_supplier",
    "delete_supplier",
]
