"""
Subscription repository (persistence).

Reads the caller's own subscription row. Extensions are privileged and go
through the `subscriptions-update-user` edge function instead.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from domain.subscription import Subscription
from domain.time import parse_date
from repositories.base import fetch_optional
from repositories.client import get_client

_SUBSCRIPTIONS_TABLE: str = "subscriptions"


def row_to_subscription(row: Mapping[str, Any]) -> Subscription:
    return Subscription(
        id=str(row["id"]) if row.get("id") else None,
        user_id=str(row.get("user_id") or ""),
        start_date=parse_date(row.get("start_date")),
        end_date=parse_date(row.get("end_date")),
    )


def get_subscription(user_id: str) -> Optional[Subscription]:
    """Return the user's subscription, or None when there is no row."""

    query = get_client().table(_SUBSCRIPTIONS_TABLE).select("*").eq("user_id", user_id)
    row = fetch_optional(query, action="get subscription")
    return row_to_subscription(row) if row else None


__all__ = ["row_to_subscription", "get_subscription"]
