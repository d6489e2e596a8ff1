"""
Domain: sale money model and proportional allocation (pure).

Every surface that shows money for a sale (cart summary, thermal receipt, A4
invoice, report row, export row) derives its numbers here, from the same three
inputs: the line items, the discount percentage and the tax percentage.
Nominal discount/tax amounts are never stored; they are re-derived each time.

Rules implemented here:
- subtotal        = sum(unit_price * quantity)
- discount_amount = subtotal * discount_percent / 100
- taxable_amount  = subtotal - discount_amount
- tax_amount      = taxable_amount * tax_percent / 100
- total           = taxable_amount + tax_amount

Discount is always applied before tax. The calculator does not clamp its
inputs and does not round; validation belongs to the checkout flow and
rounding to the display layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Optional, Protocol

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


class PricedLine(Protocol):
    unit_price: Any
    quantity: Any


def to_money(value: Any) -> Decimal:
    """
    Coerce an arbitrary numeric-ish value into a finite Decimal.

    None, empty strings, non-numeric text, NaN and infinities all become 0 so
    that a missing field never propagates into a total.
    """

    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return ZERO
    if not amount.is_finite():
        return ZERO
    return amount


def round_currency(amount: Any) -> Decimal:
    """Round half-up to two decimal places (the persisted precision)."""

    return to_money(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def line_subtotal(line: PricedLine) -> Decimal:
    return to_money(getattr(line, "unit_price", None)) * to_money(getattr(line, "quantity", None))


@dataclass(frozen=True, slots=True)
class LineItem:
    """A priced product line, independent of whether it is in a cart or a sale."""

    product_id: Optional[str]
    name: Optional[str]
    unit_price: Decimal
    quantity: int
    barcode: Optional[str] = None

    @property
    def item_subtotal(self) -> Decimal:
        return line_subtotal(self)


@dataclass(frozen=True, slots=True)
class MonetaryBreakdown:
    """Derived {subtotal, discount, tax, total} for a set of lines."""

    subtotal: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    tax_percent: Decimal
    tax_amount: Decimal
    total: Decimal

    @classmethod
    def zero(cls, discount_percent: Any = 0, tax_percent: Any = 0) -> "MonetaryBreakdown":
        return compute_breakdown([], discount_percent, tax_percent)


@dataclass(frozen=True, slots=True)
class PerLineAllocation:
    """
    A sale-level discount and tax distributed onto one line by subtotal ratio.

    These figures are allocated, not authoritative: discount and tax exist only
    at sale level, so a per-line discount, tax or profit is a reporting view of
    the sale and not an independently recorded fact.
    """

    item_subtotal: Decimal
    line_ratio: Decimal
    line_discount: Decimal
    line_tax: Decimal
    line_total: Decimal


def compute_breakdown(
    lines: Iterable[PricedLine],
    discount_percent: Any,
    tax_percent: Any,
) -> MonetaryBreakdown:
    """
    Compute the monetary breakdown for `lines`.

    An empty line set yields a breakdown of all zeros. Never raises.

    Example:
        lines = [LineItem("p1", "Kopi", Decimal("10000"), 2),
                 LineItem("p2", "Teh", Decimal("5000"), 1)]
        compute_breakdown(lines, 10, 5).total
        # Decimal('23625.000')
    """

    discount = to_money(discount_percent)
    tax = to_money(tax_percent)

    subtotal = sum((line_subtotal(line) for line in lines), ZERO)
    discount_amount = subtotal * (discount / HUNDRED)
    taxable_amount = subtotal - discount_amount
    tax_amount = taxable_amount * (tax / HUNDRED)

    return MonetaryBreakdown(
        subtotal=subtotal,
        discount_percent=discount,
        discount_amount=discount_amount,
        taxable_amount=taxable_amount,
        tax_percent=tax,
        tax_amount=tax_amount,
        total=taxable_amount + tax_amount,
    )


def compute_line_allocation(line: PricedLine, sale: MonetaryBreakdown) -> PerLineAllocation:
    """
    Allocate the sale's discount and tax onto a single line.

    When the sale subtotal is zero the ratio is zero and the line total equals
    the line subtotal.
    """

    item_subtotal = line_subtotal(line)
    if sale.subtotal == ZERO:
        ratio = ZERO
    else:
        ratio = item_subtotal / sale.subtotal

    line_discount = sale.discount_amount * ratio
    line_tax = sale.tax_amount * ratio

    return PerLineAllocation(
        item_subtotal=item_subtotal,
        line_ratio=ratio,
        line_discount=line_discount,
        line_tax=line_tax,
        line_total=item_subtotal - line_discount + line_tax,
    )


__all__ = [
    "ZERO",
    "HUNDRED",
    "LineItem",
    "MonetaryBreakdown",
    "PerLineAllocation",
    "compute_breakdown",
    "compute_line_allocation",
    "line_subtotal",
    "round_currency",
    "to_money",
]
