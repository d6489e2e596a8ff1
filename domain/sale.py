"""
Domain: persisted sales.

Contract excerpts relevant here:
- A sale header stores the discount and tax as PERCENTAGES; nominal amounts
  are re-derived from the lines every time they are shown.
- `total_amount` was fixed at creation time as the rounded breakdown total.
- Sale lines are immutable. There is no line-level edit; a correction means
  deleting and recreating the whole sale.
- A sale is deleted together with its lines, lines first.

This module captures sale records. Creation and deletion live in the checkout
and report services.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional, Tuple

from .money import MonetaryBreakdown, compute_breakdown, line_subtotal
from .time import require_utc_timestamp

# Placeholder shown for a sale that has no customer attached.
WALK_IN_CUSTOMER = "Umum"
# Shown when the sale references a customer row that no longer exists.
UNKNOWN_CUSTOMER = "Unknown Customer"


@dataclass(frozen=True, slots=True)
class SaleLine:
    """
    One product line of a sale.

    `product_id` is None (or the product fields are missing) when the product
    was deleted after the sale; `unit_price` is the price at the time of sale.
    """

    id: str
    sale_id: str
    product_id: Optional[str]
    quantity: int
    unit_price: Decimal
    product_name: Optional[str] = None
    barcode: Optional[str] = None
    product_cost: Optional[Decimal] = None
    supplier_name: Optional[str] = None

    @property
    def item_subtotal(self) -> Decimal:
        return line_subtotal(self)

    @property
    def is_unknown_product(self) -> bool:
        return self.product_id is None or self.product_name is None


@dataclass(frozen=True, slots=True)
class SaleHeader:
    id: str
    cashier_user_id: str
    created_at: datetime
    discount_percent: Decimal
    tax_percent: Decimal
    payment_amount: Decimal
    change_amount: Decimal
    total_amount: Decimal
    customer_id: Optional[str] = None
    cashier_name: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    lines: Tuple[SaleLine, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)

    @property
    def is_walk_in(self) -> bool:
        return self.customer_id is None

    @property
    def has_unknown_customer(self) -> bool:
        return self.customer_id is not None and self.customer_name is None

    @property
    def display_customer_name(self) -> str:
        if self.customer_name:
            return self.customer_name
        return UNKNOWN_CUSTOMER if self.customer_id is not None else WALK_IN_CUSTOMER

    def breakdown(self) -> MonetaryBreakdown:
        """Re-derive the money for this sale from its lines and percentages."""

        return compute_breakdown(self.lines, self.discount_percent, self.tax_percent)


def resolve_customer_name(
    customer_id: Optional[str],
    customer_row: Optional[Mapping[str, Any]],
) -> Optional[str]:
    """
    Display name of a sale's customer.

    - no customer id        -> "Umum" (walk-in customer)
    - customer row present  -> the customer's name
    - id set, row missing   -> None (customer was deleted; shown as unknown)
    """

    if customer_id is None:
        return WALK_IN_CUSTOMER
    if customer_row and customer_row.get("name"):
        return str(customer_row["name"])
    return None


__all__ = ["WALK_IN_CUSTOMER", "UNKNOWN_CUSTOMER", "SaleLine", "SaleHeader", "resolve_customer_name"]
