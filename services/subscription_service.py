"""
Subscription service.

Reads the caller's subscription status and extends subscriptions through the
privileged `subscriptions-update-user` edge function.

Status rules:
- the demo account is always active until 2099-12-31
- no subscription row -> status "none"
- otherwise active while end_date >= today, else expired
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, List, Optional

from domain.errors import ValidationError
from domain.subscription import (
    DEMO_SUBSCRIPTION_END,
    SubscriptionStatus,
    calculate_subscription_end_date,
)
from domain.user import UserProfile
from repositories import subscription_repository
from repositories.functions_repository import invoke_function
from services.auth_service import is_demo_account

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SubscriptionView:
    status: SubscriptionStatus
    start_date: Optional[date]
    end_date: Optional[date]

    @property
    def is_active(self) -> bool:
        return self.status is SubscriptionStatus.ACTIVE


def current_status(user: UserProfile, *, today: Optional[date] = None) -> SubscriptionView:
    today = today or date.today()
    if is_demo_account(user):
        return SubscriptionView(status=SubscriptionStatus.ACTIVE, start_date=today, end_date=DEMO_SUBSCRIPTION_END)

    subscription = subscription_repository.get_subscription(user.owner_id)
    if subscription is None:
        return SubscriptionView(status=SubscriptionStatus.NONE, start_date=None, end_date=None)
    return SubscriptionView(
        status=subscription.status(today),
        start_date=subscription.start_date,
        end_date=subscription.end_date,
    )


def extend_subscription(token: str, user_id: str, months: int, *, today: Optional[date] = None) -> SubscriptionView:
    """
    Extend `user_id`'s subscription by `months` months.

    The new period is computed locally (continuing an active subscription,
    restarting an expired one) and sent to the edge function, which is the
    one allowed to write it.
    """

    if not isinstance(months, int) or months <= 0:
        raise ValidationError("Months must be a positive whole number", rule="invalid_months")

    today = today or date.today()
    current = subscription_repository.get_subscription(user_id)
    start, end = calculate_subscription_end_date(
        today, current.end_date if current else None, months, today=today
    )
    invoke_function(
        "subscriptions-update-user",
        token=token,
        body={
            "userId": user_id,
            "months": months,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
        },
    )
    logger.info("Subscription extended", extra={"user_id": user_id, "months": months, "end_date": end.isoformat()})
    return SubscriptionView(status=SubscriptionStatus.ACTIVE, start_date=start, end_date=end)


def list_all_subscriptions(token: str) -> List[Any]:
    """Every user with their subscription (developer tooling)."""

    data = invoke_function("subscriptions-get-all-users", token=token)
    if isinstance(data, dict):
        return list(data.get("users") or data.get("data") or [])
    return list(data or [])


__all__ = ["SubscriptionView", "current_status", "extend_subscription", "list_all_subscriptions"]
