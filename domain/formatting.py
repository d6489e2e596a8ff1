"""
Display formatting for Indonesian Rupiah amounts and dates.

Indonesian convention: `.` groups thousands, `,` separates decimals.
Formatting is presentation only and never feeds back into computed values.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Union

from .money import to_money

_MONTHS_ID = (
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
)

_SWAP_SEPARATORS = str.maketrans({",": ".", ".": ","})


def format_currency(amount: Any, use_two_decimals: bool = True) -> str:
    """
    Format an amount with Indonesian grouping.

    Examples:
        format_currency(1234567.891)        -> "1.234.567,89"
        format_currency(1234567.891, False) -> "1.234.568"
        format_currency(None)               -> "0,00"
        format_currency("abc", False)       -> "0"
    """

    value = to_money(amount)
    exponent = Decimal("0.01") if use_two_decimals else Decimal("1")
    value = value.quantize(exponent, rounding=ROUND_HALF_UP)
    if value == 0:
        # avoid rendering "-0"
        value = abs(value)

    pattern = ",.2f" if use_two_decimals else ",.0f"
    return format(value, pattern).translate(_SWAP_SEPARATORS)


def format_rupiah(amount: Any, use_two_decimals: bool = True) -> str:
    return f"Rp {format_currency(amount, use_two_decimals)}"


def format_date_id(value: Union[date, datetime]) -> str:
    """dd/mm/yyyy"""
    return value.strftime("%d/%m/%Y")


def format_datetime_id(value: datetime) -> str:
    """dd/mm/yyyy HH.MM.SS"""
    return value.strftime("%d/%m/%Y %H.%M.%S")


def format_long_date_id(value: Union[date, datetime]) -> str:
    """Invoice style date, e.g. `05 Januari 2025`."""
    return f"{value.day:02d} {_MONTHS_ID[value.month - 1]} {value.year}"


__all__ = [
    "format_currency",
    "format_rupiah",
    "format_date_id",
    "format_datetime_id",
    "format_long_date_id",
]
