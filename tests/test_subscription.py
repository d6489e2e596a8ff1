"""
Tests for `domain/subscription.py`.

Covers contract rules:
- A subscription is active while end_date >= today.
- Extending an active subscription continues from its end date.
- Extending an expired one starts from the given start date.
- Adding months clamps to the end of the month.
"""

from __future__ import annotations

from datetime import date

import pytest

from domain.subscription import (
    Subscription,
    SubscriptionStatus,
    add_months,
    calculate_subscription_end_date,
    is_subscription_active,
)

TODAY = date(2025, 3, 1)


def test_active_until_end_date_inclusive() -> None:
    """Verify the end date itself still counts as active."""

    assert is_subscription_active(date(2025, 3, 1), TODAY)
    assert not is_subscription_active(date(2025, 2, 28), TODAY)
    assert not is_subscription_active(None, TODAY)


def test_status() -> None:
    """Verify active and expired statuses."""

    active = Subscription(user_id="u1", start_date=date(2025, 1, 1), end_date=date(2025, 6, 1))
    expired = Subscription(user_id="u1", start_date=date(2024, 1, 1), end_date=date(2024, 6, 1))

    assert active.status(TODAY) is SubscriptionStatus.ACTIVE
    assert expired.status(TODAY) is SubscriptionStatus.EXPIRED


def test_extension_continues_from_active_end_date() -> None:
    """Verify no paid day is lost when extending early."""

    start, end = calculate_subscription_end_date(TODAY, date(2025, 3, 20), 1, today=TODAY)

    assert start == date(2025, 3, 20)
    assert end == date(2025, 4, 20)


def test_extension_of_expired_starts_from_start_date() -> None:
    """Verify an expired or missing subscription restarts at the start date."""

    assert calculate_subscription_end_date(TODAY, date(2025, 1, 31), 3, today=TODAY) == (TODAY, date(2025, 6, 1))
    assert calculate_subscription_end_date(TODAY, None, 12, today=TODAY) == (TODAY, date(2026, 3, 1))


def test_add_months_clamps_to_month_end() -> None:
    """Verify 31 January + 1 month lands on the last day of February."""

    assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert calculate_subscription_end_date(
        date(2025, 1, 10), date(2025, 1, 31), 1, today=date(2025, 1, 10)
    ) == (date(2025, 1, 31), date(2025, 2, 28))
    assert add_months(date(2025, 11, 30), 3) == date(2026, 2, 28)


@pytest.mark.parametrize("months", [0, -1])
def test_non_positive_months_rejected(months) -> None:
    """Verify months must be positive."""

    with pytest.raises(ValueError):
        calculate_subscription_end_date(TODAY, None, months, today=TODAY)
