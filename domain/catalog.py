"""
Domain: catalog and customer records.

All of these belong to exactly one tenant, identified by `owner_id` (the
`user_id` column of each table).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True, slots=True)
class Category:
    id: str
    owner_id: str
    name: str


@dataclass(frozen=True, slots=True)
class Supplier:
    id: str
    owner_id: str
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Product:
    """
    Product with its category/supplier names flattened in.

    `price` is the current selling price; a sale line keeps its own copy of the
    price at the time of sale. `stock` is the last-known quantity on hand and
    is only ever used for an optimistic pre-check.
    """

    id: str
    owner_id: str
    name: str
    price: Decimal
    cost: Optional[Decimal] = None
    stock: Optional[int] = None
    barcode: Optional[str] = None
    category_id: Optional[str] = None
    supplier_id: Optional[str] = None
    category_name: Optional[str] = None
    supplier_name: Optional[str] = None
    supplier_phone: Optional[str] = None
    supplier_address: Optional[str] = None

    @property
    def cost_price(self) -> Optional[Decimal]:
        return self.cost


@dataclass(frozen=True, slots=True)
class Customer:
    id: str
    owner_id: str
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None


__all__ = ["Category", "Supplier", "Product", "Customer"]
