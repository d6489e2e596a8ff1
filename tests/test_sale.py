"""
Tests for `domain/sale.py`.

Covers contract rules:
- SaleHeader.created_at is required and must be a UTC timestamp.
- SaleHeader is immutable (frozen).
- Money is re-derived from the lines and the stored percentages.
- A sale without a customer shows "Umum"; a deleted customer shows as unknown.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from domain.sale import UNKNOWN_CUSTOMER, WALK_IN_CUSTOMER, SaleHeader, SaleLine, resolve_customer_name


def _header(**overrides) -> SaleHeader:
    fields = dict(
        id="s1",
        cashier_user_id="owner-1",
        created_at=datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone.utc),
        discount_percent=Decimal("10"),
        tax_percent=Decimal("5"),
        payment_amount=Decimal("30000"),
        change_amount=Decimal("6375"),
        total_amount=Decimal("23625"),
        lines=(
            SaleLine(id="l1", sale_id="s1", product_id="p1", quantity=2, unit_price=Decimal("10000"), product_name="Kopi"),
            SaleLine(id="l2", sale_id="s1", product_id=None, quantity=1, unit_price=Decimal("5000")),
        ),
    )
    fields.update(overrides)
    return SaleHeader(**fields)


def test_sale_created_at_must_be_utc() -> None:
    """Verify created_at enforces a UTC timezone-aware timestamp."""

    with pytest.raises(ValueError):
        _header(created_at=datetime(2025, 1, 1, 0, 0, 0))

    with pytest.raises(ValueError):
        _header(created_at=datetime(2025, 1, 1, 7, 0, 0, tzinfo=timezone(timedelta(hours=7))))


def test_sale_is_immutable() -> None:
    """Verify SaleHeader cannot be mutated after creation (frozen entity)."""

    sale = _header()

    with pytest.raises(FrozenInstanceError):
        sale.total_amount = Decimal("0")  # type: ignore[misc]


def test_sale_breakdown_from_percentages() -> None:
    """Verify the nominal discount and tax are derived, not stored."""

    b = _header().breakdown()

    assert b.subtotal == Decimal("25000")
    assert b.discount_amount == Decimal("2500")
    assert b.tax_amount == Decimal("1125")
    assert b.total == Decimal("23625")


def test_deleted_product_line_is_unknown() -> None:
    """Verify a line without a product still carries its price."""

    lines = _header().lines

    assert not lines[0].is_unknown_product
    assert lines[1].is_unknown_product
    assert lines[1].item_subtotal == Decimal("5000")


def test_resolve_customer_name() -> None:
    """Verify walk-in, known and deleted customers."""

    assert resolve_customer_name(None, None) == WALK_IN_CUSTOMER
    assert resolve_customer_name("c1", {"name": "Ani"}) == "Ani"
    assert resolve_customer_name("c1", None) is None
    assert resolve_customer_name("c1", {"name": ""}) is None


def test_display_customer_name() -> None:
    """Verify the shown name distinguishes walk-in from unknown."""

    assert _header().display_customer_name == "Umum"
    assert _header().is_walk_in
    assert _header(customer_id="c1").display_customer_name == UNKNOWN_CUSTOMER
    assert _header(customer_id="c1").has_unknown_customer
    assert _header(customer_id="c1", customer_name="Ani").display_customer_name == "Ani"
