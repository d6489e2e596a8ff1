"""
Tests for `services/receipt_service.py`.

Covers contract rules:
- Receipt and invoice amounts are recomputed from lines and percentages.
- Barcodes fall back to the product list, then "-".
- The invoice shows customer details only for a named customer.
- Only the supported paper sizes are accepted.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from domain.catalog import Product
from domain.errors import ValidationError
from repositories.sale_repository import row_to_sale
from services.preferences import ReceiptSettings
from services.receipt_service import (
    invoice_from_sale,
    invoice_number,
    receipt_from_sale,
    receipt_lines_text,
    require_receipt_paper,
)
from tests.fakes import sale_row

SETTINGS = ReceiptSettings(name="Toko Maju", address="Jl. Merdeka 1", phone="0211234", header_text="Selamat datang")


def _sale(**kwargs):
    return row_to_sale(
        sale_row(
            "s1",
            [("p1", "Kopi Susu", 2, 10000), ("p2", None, 1, 5000)],
            discount="10",
            tax="5",
            total="23625.00",
            payment="30000",
            change="6375.00",
            **kwargs,
        )
    )


def test_invoice_number_from_timestamp() -> None:
    """Verify INV/<epoch milliseconds>."""

    assert invoice_number(datetime(2025, 1, 1, tzinfo=timezone.utc)) == "INV/1735689600000"


def test_receipt_from_sale_recomputes_money() -> None:
    """Verify the reprinted receipt derives discount and tax."""

    products = [Product(id="p1", owner_id="owner-1", name="Kopi Susu", price=Decimal("10000"), barcode="8991001")]
    view = receipt_from_sale(_sale(), SETTINGS, products=products)

    assert [line.barcode for line in view.lines] == ["8991001", "-"]
    assert view.lines[1].name == "Unknown Product"
    assert view.breakdown.discount_amount == Decimal("2500")
    assert view.formatted["tax_amount"] == "1.125,00"
    assert view.formatted["total"] == "23.625,00"
    assert view.customer_name == "Umum"
    assert view.shows_discount and view.shows_tax


def test_receipt_precision_toggle() -> None:
    """Verify the whole-rupiah rendering."""

    view = receipt_from_sale(_sale(), SETTINGS, paper_size="58mm", use_two_decimals=False)

    assert view.formatted["change_amount"] == "6.375"
    text = receipt_lines_text(view)
    assert text[0] == "Toko Maju"
    assert "Selamat datang" in text
    assert "  2 x 10.000 = 20.000" in text
    assert "Diskon (10%): -2.500" in text
    assert "Kembali: 6.375" in text


def test_unsupported_paper_size() -> None:
    """Verify paper sizes outside 58mm, 80mm and A4 are rejected."""

    require_receipt_paper("A4")
    with pytest.raises(ValidationError) as exc_info:
        receipt_from_sale(_sale(), SETTINGS, paper_size="letter")
    assert exc_info.value.rule == "paper_size"


def test_invoice_hides_walk_in_customer() -> None:
    """Verify customer details are shown only for a named customer."""

    walk_in = invoice_from_sale(_sale(), SETTINGS)
    named = invoice_from_sale(
        _sale(customer_id="c1", customer={"name": "Ani", "phone": "0812", "address": "Bandung", "email": None}),
        SETTINGS,
    )

    assert not walk_in.show_customer
    assert named.show_customer
    assert named.customer_phone == "0812"
    assert named.invoice_date == "15 Januari 2025"
    assert named.company_name == "Toko Maju"
    assert named.formatted["item_0_subtotal"] == "20.000,00"
    assert [item.product_name for item in named.items] == ["Kopi Susu", "Unknown Product"]


def test_invoice_default_store_name() -> None:
    """Verify an unnamed store prints the default name."""

    assert invoice_from_sale(_sale(), ReceiptSettings()).company_name == "Toko"
