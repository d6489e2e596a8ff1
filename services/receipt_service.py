"""
Receipt and invoice view models.

Transforms a committed checkout or a persisted sale into print-ready data.
Every amount is recomputed from the lines and the stored percentages; the
nominal discount and tax are never read from storage. The `formatted` mapping
of each view renders the same numbers with the caller's precision toggle.

Paper sizes:
- 58mm / 80mm  thermal receipts (lines as "qty x price")
- A4           receipt laid out as a table
- invoice-a4   the A4 invoice (see InvoiceView)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from domain.catalog import Product
from domain.errors import ValidationError
from domain.formatting import format_currency, format_datetime_id, format_long_date_id
from domain.money import MonetaryBreakdown
from domain.sale import WALK_IN_CUSTOMER, SaleHeader
from services.checkout_service import CheckoutResult
from services.preferences import ReceiptSettings

RECEIPT_PAPER_SIZES = ("58mm", "80mm", "A4")
INVOICE_PAPER_SIZE = "invoice-a4"
PAPER_SIZES = RECEIPT_PAPER_SIZES + (INVOICE_PAPER_SIZE,)

UNKNOWN_PRODUCT = "Unknown Product"
NO_BARCODE = "-"

# Customer names that mean "no particular customer" on an invoice
_GENERAL_CUSTOMER_NAMES = {WALK_IN_CUSTOMER, "Pelanggan Umum", "Default Customer"}


@dataclass(frozen=True, slots=True)
class ReceiptLine:
    name: str
    barcode: str
    unit_price: Decimal
    quantity: int
    subtotal: Decimal


@dataclass(frozen=True, slots=True)
class ReceiptView:
    lines: Tuple[ReceiptLine, ...]
    breakdown: MonetaryBreakdown
    total_amount: Decimal
    payment_amount: Decimal
    change_amount: Decimal
    customer_name: str
    invoice_number: str
    cashier_name: str
    created_at: datetime
    settings: ReceiptSettings
    paper_size: str
    use_two_decimals: bool = True
    formatted: Dict[str, str] = field(default_factory=dict)

    @property
    def shows_discount(self) -> bool:
        return self.breakdown.discount_amount > 0

    @property
    def shows_tax(self) -> bool:
        return self.breakdown.tax_amount > 0


@dataclass(frozen=True, slots=True)
class InvoiceItem:
    product_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


@dataclass(frozen=True, slots=True)
class InvoiceView:
    invoice_number: str
    invoice_date: str
    company_name: str
    company_address: str
    company_phone: str
    company_logo: str
    items: Tuple[InvoiceItem, ...]
    breakdown: MonetaryBreakdown
    total_amount: Decimal
    customer_name: str
    customer_address: Optional[str] = None
    customer_phone: Optional[str] = None
    show_customer: bool = False
    use_two_decimals: bool = True
    formatted: Dict[str, str] = field(default_factory=dict)


def invoice_number(created_at: datetime) -> str:
    return f"INV/{int(created_at.timestamp() * 1000)}"


def require_receipt_paper(paper_size: str) -> None:
    if paper_size not in RECEIPT_PAPER_SIZES:
        raise ValidationError(
            f"Unsupported paper size: {paper_size}. Use one of {', '.join(RECEIPT_PAPER_SIZES)}",
            rule="paper_size",
        )


def _formatted(
    breakdown: MonetaryBreakdown,
    total: Decimal,
    payment: Decimal,
    change: Decimal,
    use_two_decimals: bool,
) -> Dict[str, str]:
    return {
        "subtotal": format_currency(breakdown.subtotal, use_two_decimals),
        "discount_amount": format_currency(breakdown.discount_amount, use_two_decimals),
        "tax_amount": format_currency(breakdown.tax_amount, use_two_decimals),
        "total": format_currency(total, use_two_decimals),
        "payment_amount": format_currency(payment, use_two_decimals),
        "change_amount": format_currency(change, use_two_decimals),
    }


def receipt_from_checkout(
    result: CheckoutResult,
    settings: ReceiptSettings,
    *,
    paper_size: str = "80mm",
    use_two_decimals: bool = True,
) -> ReceiptView:
    require_receipt_paper(paper_size)
    lines = tuple(
        ReceiptLine(
            name=line.name,
            barcode=line.barcode or NO_BARCODE,
            unit_price=line.unit_price,
            quantity=line.quantity,
            subtotal=line.item_subtotal,
        )
        for line in result.lines
    )
    return ReceiptView(
        lines=lines,
        breakdown=result.breakdown,
        total_amount=result.total_amount,
        payment_amount=result.payment_amount,
        change_amount=result.change_amount,
        customer_name=result.customer_name or WALK_IN_CUSTOMER,
        invoice_number=invoice_number(result.created_at),
        cashier_name=result.cashier_name or "",
        created_at=result.created_at,
        settings=settings,
        paper_size=paper_size,
        use_two_decimals=use_two_decimals,
        formatted=_formatted(
            result.breakdown, result.total_amount, result.payment_amount, result.change_amount, use_two_decimals
        ),
    )


def receipt_from_sale(
    sale: SaleHeader,
    settings: ReceiptSettings,
    *,
    paper_size: str = "80mm",
    use_two_decimals: bool = True,
    products: Sequence[Product] = (),
) -> ReceiptView:
    """Reprint a persisted sale; barcodes fall back to the product list, then "-"."""

    require_receipt_paper(paper_size)
    barcodes = {p.id: p.barcode for p in products if p.barcode}
    lines = tuple(
        ReceiptLine(
            name=line.product_name or UNKNOWN_PRODUCT,
            barcode=line.barcode or barcodes.get(line.product_id or "", "") or NO_BARCODE,
            unit_price=line.unit_price,
            quantity=line.quantity,
            subtotal=line.item_subtotal,
        )
        for line in sale.lines
    )
    breakdown = sale.breakdown()
    return ReceiptView(
        lines=lines,
        breakdown=breakdown,
        total_amount=sale.total_amount,
        payment_amount=sale.payment_amount,
        change_amount=sale.change_amount,
        customer_name=sale.display_customer_name,
        invoice_number=invoice_number(sale.created_at),
        cashier_name=sale.cashier_name or "",
        created_at=sale.created_at,
        settings=settings,
        paper_size=paper_size,
        use_two_decimals=use_two_decimals,
        formatted=_formatted(
            breakdown, sale.total_amount, sale.payment_amount, sale.change_amount, use_two_decimals
        ),
    )


def invoice_from_sale(
    sale: SaleHeader,
    settings: ReceiptSettings,
    *,
    use_two_decimals: bool = True,
) -> InvoiceView:
    items = tuple(
        InvoiceItem(
            product_name=line.product_name or UNKNOWN_PRODUCT,
            quantity=line.quantity,
            unit_price=line.unit_price,
            subtotal=line.item_subtotal,
        )
        for line in sale.lines
    )
    breakdown = sale.breakdown()
    customer_name = sale.display_customer_name
    formatted = _formatted(breakdown, sale.total_amount, sale.payment_amount, sale.change_amount, use_two_decimals)
    formatted.update(
        {f"item_{i}_subtotal": format_currency(item.subtotal, use_two_decimals) for i, item in enumerate(items)}
    )
    formatted["created_at"] = format_datetime_id(sale.created_at)

    return InvoiceView(
        invoice_number=invoice_number(sale.created_at),
        invoice_date=format_long_date_id(sale.created_at),
        company_name=settings.display_name,
        company_address=settings.address,
        company_phone=settings.phone,
        company_logo=settings.logo,
        items=items,
        breakdown=breakdown,
        total_amount=sale.total_amount,
        customer_name=customer_name,
        customer_address=sale.customer_address,
        customer_phone=sale.customer_phone,
        show_customer=customer_name not in _GENERAL_CUSTOMER_NAMES,
        use_two_decimals=use_two_decimals,
        formatted=formatted,
    )


def receipt_lines_text(view: ReceiptView) -> List[str]:
    """Plain-text rendering of a thermal receipt, one entry per printed line."""

    settings = view.settings
    two = view.use_two_decimals
    out: List[str] = [settings.display_name]
    if settings.show_header and settings.header_text:
        out.append(settings.header_text)
    if settings.show_address and settings.address:
        out.append(settings.address)
    if settings.show_phone and settings.phone:
        out.append(settings.phone)
    out.append("-" * 32)
    out.append(f"No: {view.invoice_number}")
    out.append(f"Kasir: {view.cashier_name}")
    out.append(f"Pelanggan: {view.customer_name}")
    out.append(f"Tanggal: {format_datetime_id(view.created_at)}")
    out.append("-" * 32)
    for line in view.lines:
        out.append(line.name)
        out.append(f"  {line.quantity} x {format_currency(line.unit_price, two)} = {format_currency(line.subtotal, two)}")
    out.append("-" * 32)
    out.append(f"Subtotal: {view.formatted['subtotal']}")
    if view.shows_discount:
        out.append(f"Diskon ({view.breakdown.discount_percent}%): -{view.formatted['discount_amount']}")
    if view.shows_tax:
        out.append(f"Pajak ({view.breakdown.tax_percent}%): {view.formatted['tax_amount']}")
    out.append(f"Total: {view.formatted['total']}")
    if view.payment_amount > 0:
        out.append(f"Bayar: {view.formatted['payment_amount']}")
    if view.change_amount > 0:
        out.append(f"Kembali: {view.formatted['change_amount']}")
    if settings.show_footer and settings.footer_text:
        out.append(settings.footer_text)
    return out


__all__ = [
    "PAPER_SIZES",
    "RECEIPT_PAPER_SIZES",
    "INVOICE_PAPER_SIZE",
    "ReceiptLine",
    "ReceiptView",
    "InvoiceItem",
    "InvoiceView",
    "invoice_number",
    "require_receipt_paper",
    "receipt_from_checkout",
    "receipt_from_sale",
    "invoice_from_sale",
    "receipt_lines_text",
]
