"""
Tests for `domain/money.py`.

Covers contract rules:
- Discount is applied before tax; total = subtotal - discount + tax.
- An empty line set yields an all-zero breakdown.
- Per-line allocations sum back to the sale total.
- A zero subtotal allocates nothing.
- Unparseable amounts read as zero.
"""

from __future__ import annotations

from decimal import Decimal

from domain.money import (
    LineItem,
    MonetaryBreakdown,
    compute_breakdown,
    compute_line_allocation,
    round_currency,
    to_money,
)


def _lines():
    return [
        LineItem("p1", "Kopi Susu", Decimal("10000"), 2),
        LineItem("p2", "Teh Manis", Decimal("5000"), 1),
    ]


def test_breakdown_applies_discount_before_tax() -> None:
    """Verify the worked example: 25000 less 10% plus 5% tax is 23625."""

    b = compute_breakdown(_lines(), 10, 5)

    assert b.subtotal == Decimal("25000")
    assert b.discount_amount == Decimal("2500")
    assert b.taxable_amount == Decimal("22500")
    assert b.tax_amount == Decimal("1125")
    assert b.total == Decimal("23625")


def test_breakdown_total_identity() -> None:
    """Verify total == subtotal - discount + tax for awkward percentages."""

    b = compute_breakdown(_lines(), "12.5", "11")

    assert b.total == b.subtotal - b.discount_amount + b.tax_amount
    assert b.taxable_amount == b.subtotal - b.discount_amount


def test_breakdown_full_discount_is_zero_total() -> None:
    """Verify a 100% discount leaves nothing to tax."""

    b = compute_breakdown(_lines(), 100, 11)

    assert b.total == Decimal("0")
    assert b.tax_amount == Decimal("0")


def test_empty_breakdown_is_all_zero() -> None:
    """Verify no lines produce zeros everywhere."""

    b = compute_breakdown([], 10, 5)

    assert b.subtotal == b.discount_amount == b.tax_amount == b.total == Decimal("0")
    assert MonetaryBreakdown.zero().total == Decimal("0")


def test_breakdown_does_not_round() -> None:
    """Verify the calculator keeps full precision; rounding is a separate step."""

    lines = [LineItem("p1", "Gula", Decimal("3333"), 1)]
    b = compute_breakdown(lines, 0, "11")

    assert b.tax_amount == Decimal("366.63")
    assert compute_breakdown(lines, "0.5", 0).discount_amount == Decimal("16.665")
    assert round_currency(Decimal("16.665")) == Decimal("16.67")


def test_allocations_sum_to_sale_total() -> None:
    """Verify per-line totals add back up to the sale total within a cent."""

    lines = [
        LineItem("p1", "Beras", Decimal("12345"), 3),
        LineItem("p2", "Minyak", Decimal("17999"), 1),
        LineItem("p3", "Garam", Decimal("2500"), 7),
    ]
    sale = compute_breakdown(lines, "7.5", "11")
    allocations = [compute_line_allocation(line, sale) for line in lines]

    assert abs(sum(a.line_total for a in allocations) - sale.total) <= Decimal("0.01")
    assert abs(sum(a.line_discount for a in allocations) - sale.discount_amount) <= Decimal("0.01")
    assert abs(sum(a.line_ratio for a in allocations) - 1) <= Decimal("0.0001")


def test_zero_subtotal_allocates_nothing() -> None:
    """Verify a free line gets ratio 0 and its own subtotal as total."""

    lines = [LineItem("p1", "Bonus", Decimal("0"), 2)]
    sale = compute_breakdown(lines, 10, 10)
    allocation = compute_line_allocation(lines[0], sale)

    assert allocation.line_ratio == Decimal("0")
    assert allocation.line_discount == Decimal("0")
    assert allocation.line_total == allocation.item_subtotal == Decimal("0")


def test_to_money_treats_garbage_as_zero() -> None:
    """Verify None, text, NaN, infinity and booleans coerce to zero."""

    for value in (None, "", "abc", "NaN", float("inf"), True):
        assert to_money(value) == Decimal("0")

    assert to_money("12.50") == Decimal("12.5")
    assert to_money(" 7 ") == Decimal("7")
    assert to_money(3) == Decimal("3")


def test_round_currency_is_half_up() -> None:
    """Verify two-place half-up rounding."""

    assert round_currency("0.005") == Decimal("0.01")
    assert round_currency("2.675") == Decimal("2.68")
    assert round_currency("23625.000") == Decimal("23625.00")
    assert round_currency(None) == Decimal("0.00")
