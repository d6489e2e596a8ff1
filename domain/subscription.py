"""
Domain: subscription periods (pure).

Rules:
- A subscription is active while `end_date >= today` (dates, not timestamps).
- A missing end date is never active.
- Extending an active subscription continues from its current end date;
  extending an expired (or absent) one starts from the given start date.
- Adding months clamps to the last day of the target month
  (31 January + 1 month -> 28/29 February).
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Tuple

# The demo account is never asked to pay.
DEMO_SUBSCRIPTION_END = date(2099, 12, 31)


class SubscriptionStatus(str, Enum):
    NONE = "none"
    ACTIVE = "active"
    EXPIRED = "expired"


@dataclass(frozen=True, slots=True)
class Subscription:
    user_id: str
    start_date: Optional[date]
    end_date: Optional[date]
    id: Optional[str] = None

    def is_active(self, today: date) -> bool:
        return is_subscription_active(self.end_date, today)

    def status(self, today: date) -> SubscriptionStatus:
        return SubscriptionStatus.ACTIVE if self.is_active(today) else SubscriptionStatus.EXPIRED


def is_subscription_active(end_date: Optional[date], today: date) -> bool:
    if end_date is None:
        return False
    return end_date >= today


def add_months(value: date, months: int) -> date:
    """
    Move `value` by whole calendar months.

    A day that does not exist in the target month is clamped to that month's
    last day (Jan 31 + 1 month is Feb 28 or 29), so a subscription never
    spills into the month after the one that was paid for.
    """

    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def calculate_subscription_end_date(
    start_date: date,
    current_end_date: Optional[date],
    months: int,
    *,
    today: date,
) -> Tuple[date, date]:
    """
    Compute the (start_date, end_date) of an extended subscription.

    Example:
        calculate_subscription_end_date(date(2025, 3, 1), date(2025, 3, 20), 1, today=date(2025, 3, 1))
        # (date(2025, 3, 20), date(2025, 4, 20))
    """

    if months <= 0:
        raise ValueError("months must be a positive integer")

    if current_end_date is not None and is_subscription_active(current_end_date, today):
        start = current_end_date
    else:
        start = start_date
    return start, add_months(start, months)


__all__ = [
    "DEMO_SUBSCRIPTION_END",
    "SubscriptionStatus",
    "Subscription",
    "is_subscription_active",
    "add_months",
    "calculate_subscription_end_date",
]
