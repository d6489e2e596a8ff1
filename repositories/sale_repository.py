"""
Sale repository (persistence).

This module provides *only* persistence operations for sale headers
(`sales`) and their lines (`sale_items`). It does not validate carts or
compute totals; it inserts, fetches and deletes records.

Ordering contract:
- create: header first, then its lines
- delete: lines first, then the header (no cascading delete is assumed)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Sequence
from uuid import uuid4

from domain.errors import PosError
from domain.money import to_money
from domain.sale import SaleHeader, SaleLine, resolve_customer_name
from domain.time import parse_utc_datetime, require_utc_timestamp, utc_now
from repositories.base import execute, fetch_optional
from repositories.client import get_client

logger = logging.getLogger(__name__)

_SALES_TABLE: str = "sales"
_SALE_ITEMS_TABLE: str = "sale_items"

SALE_COLUMNS: str = (
    "*, "
    "user:users!sales_user_id_fkey(name, email), "
    "customer:customers!sales_customer_id_fkey(name, email, phone, address), "
    "sale_items(*, product:products!sale_items_product_id_fkey("
    "name, barcode, price, cost, supplier:suppliers!products_supplier_id_fkey(name)))"
)


def _to_iso_utc(dt: datetime, *, name: str) -> str:
    """Serialize a UTC datetime to ISO-8601 (timezone-aware, offset 0)."""

    require_utc_timestamp(name, dt)
    return dt.astimezone(timezone.utc).isoformat()


def _row_to_line(row: Mapping[str, Any], sale_id: str) -> SaleLine:
    product = row.get("product") or {}
    supplier = product.get("supplier") or {}
    cost = product.get("cost")
    return SaleLine(
        id=str(row.get("id") or ""),
        sale_id=str(row.get("sale_id") or sale_id),
        product_id=row.get("product_id"),
        quantity=int(row.get("quantity") or 0),
        unit_price=to_money(row.get("price")),
        product_name=product.get("name"),
        barcode=product.get("barcode"),
        product_cost=None if cost is None else to_money(cost),
        supplier_name=supplier.get("name"),
    )


def row_to_sale(row: Mapping[str, Any]) -> SaleHeader:
    """Convert a `sales` row (with its joins) into a SaleHeader."""

    sale_id = str(row["id"])
    customer = row.get("customer") or {}
    user = row.get("user") or {}
    customer_id = row.get("customer_id")
    return SaleHeader(
        id=sale_id,
        cashier_user_id=str(row.get("user_id") or ""),
        created_at=parse_utc_datetime(row["created_at"]),
        discount_percent=to_money(row.get("discount")),
        tax_percent=to_money(row.get("tax")),
        payment_amount=to_money(row.get("payment_amount")),
        change_amount=to_money(row.get("change_amount")),
        total_amount=to_money(row.get("total_amount")),
        customer_id=str(customer_id) if customer_id is not None else None,
        cashier_name=user.get("name"),
        customer_name=resolve_customer_name(customer_id, customer),
        customer_email=customer.get("email"),
        customer_phone=customer.get("phone"),
        customer_address=customer.get("address"),
        lines=tuple(_row_to_line(item, sale_id) for item in row.get("sale_items") or []),
    )


def list_sales(user_ids: Sequence[str]) -> List[SaleHeader]:
    """Sales made by any of `user_ids`, newest first."""

    if not user_ids:
        return []
    rows = execute(
        get_client()
        .table(_SALES_TABLE)
        .select(SALE_COLUMNS)
        .in_("user_id", list(user_ids))
        .order("created_at", desc=True),
        action="get sales",
    )
    return [row_to_sale(row) for row in rows]


def get_sale(sale_id: str, user_ids: Sequence[str]) -> Optional[SaleHeader]:
    query = get_client().table(_SALES_TABLE).select(SALE_COLUMNS).eq("id", sale_id).in_("user_id", list(user_ids))
    row = fetch_optional(query, action="get sale")
    return row_to_sale(row) if row else None


def insert_sale(
    *,
    user_id: str,
    customer_id: Optional[str],
    discount_percent: Decimal,
    tax_percent: Decimal,
    total_amount: Decimal,
    payment_amount: Decimal,
    change_amount: Decimal,
    lines: Iterable[Mapping[str, Any]],
    created_at: Optional[datetime] = None,
) -> str:
    """
    Insert a sale header and then its lines.

    `lines` are mappings with `product_id`, `quantity` and `price`. When the
    lines cannot be written the header is removed again and the original
    error propagates.

    Returns:
        The new sale id.
    """

    sale_id = str(uuid4())
    created = created_at or utc_now()

    header: dict[str, Any] = {
        "id": sale_id,
        "user_id": user_id,
        "customer_id": customer_id,
        "discount": str(discount_percent),
        "tax": str(tax_percent),
        "total_amount": str(total_amount),
        "payment_amount": str(payment_amount),
        "change_amount": str(change_amount),
        "created_at": _to_iso_utc(created, name="created_at"),
    }
    items = [
        {
            "id": str(uuid4()),
            "sale_id": sale_id,
            "product_id": line["product_id"],
            "quantity": int(line["quantity"]),
            "price": str(line["price"]),
        }
        for line in lines
    ]

    execute(get_client().table(_SALES_TABLE).insert(header), action="create sale")
    try:
        execute(get_client().table(_SALE_ITEMS_TABLE).insert(items), action="create sale items")
    except PosError:
        logger.error("Sale items rejected, removing sale header", extra={"sale_id": sale_id})
        try:
            execute(get_client().table(_SALES_TABLE).delete().eq("id", sale_id), action="remove incomplete sale")
        except PosError:
            # the items failure is what the caller needs to see
            logger.exception("Incomplete sale could not be removed", extra={"sale_id": sale_id})
        raise

    return sale_id


def delete_sale(sale_id: str, user_ids: Sequence[str]) -> bool:
    """Delete a sale's lines and then the sale itself. Returns False when no sale was visible."""

    visible = fetch_optional(
        get_client().table(_SALES_TABLE).select("id").eq("id", sale_id).in_("user_id", list(user_ids)),
        action="get sale",
    )
    if visible is None:
        return False

    execute(get_client().table(_SALE_ITEMS_TABLE).delete().eq("sale_id", sale_id), action="delete sale items")
    execute(get_client().table(_SALES_TABLE).delete().eq("id", sale_id), action="delete sale")
    return True


__all__ = [
    "SALE_COLUMNS",
    "row_to_sale",
    "list_sales",
    "get_sale",
    "insert_sale",
    "delete_sale",
]
