"""
Tests for `services/user_service.py`, `services/subscription_service.py`
and `services/dashboard_service.py`.

Covers contract rules:
- Only the store owner manages cashiers; cashiers belong to the owner's tenant.
- Identity changes go through edge functions with the caller's token.
- Subscription status is "none" without a row, and the demo account is always active.
- Extensions continue an active subscription from its end date.
- Dashboard sections fail independently, except for an expired session.
"""

from __future__ import annotations

from datetime import date

import pytest

from domain.errors import AuthenticationError, BackendError, NotFoundError, PermissionDeniedError, ValidationError
from domain.subscription import SubscriptionStatus
from domain.user import UserProfile
from services import dashboard_service, subscription_service, user_service
from tests.fakes import CASHIER_ID, OWNER_ID, FakeFunctionsError

TODAY = date(2025, 3, 1)


def _seed_users(fake_db) -> None:
    fake_db.seed(
        "users",
        {"id": OWNER_ID, "email": "owner@tokomaju.id", "name": "Budi", "role": "owner", "tenant_id": OWNER_ID},
        {"id": CASHIER_ID, "email": "kasir@tokomaju.id", "name": "Sari", "role": "cashier", "tenant_id": OWNER_ID,
         "permissions": {"sales": True}},
    )


def test_list_users_excludes_owner(fake_db, owner, cashier) -> None:
    """Verify the owner sees their cashiers and a cashier sees nothing."""

    _seed_users(fake_db)

    users = user_service.list_users(owner)
    assert [u.id for u in users] == [CASHIER_ID]
    assert users[0].has_stored_permissions

    with pytest.raises(PermissionDeniedError):
        user_service.list_users(cashier)


def test_create_cashier_calls_edge_function(fake_db, owner) -> None:
    """Verify the registration body and the forwarded token."""

    fake_db.functions.handlers["auth-register"] = lambda body: {"user": {"id": "c-new", "email": body["email"]}}

    created = user_service.create_cashier(
        owner, "token-owner", name=" Dewi ", email="Dewi@TokoMaju.id", password="rahasia",
        permissions={"sales": True, "canApplyTax": "yes"},
    )

    assert created == {"id": "c-new", "email": "dewi@tokomaju.id"}
    name, options = fake_db.functions.calls[0]
    assert name == "auth-register"
    assert options["headers"]["Authorization"] == "Bearer token-owner"
    body = options["body"]
    assert body["role"] == "cashier"
    assert body["tenant_id"] == OWNER_ID
    assert body["name"] == "Dewi"
    assert body["permissions"]["sales"] is True
    assert body["permissions"]["canApplyTax"] is False


def test_create_cashier_validation(fake_db, owner) -> None:
    """Verify required fields and password length."""

    with pytest.raises(ValidationError) as exc_info:
        user_service.create_cashier(owner, "t", name="", email="a@b.id", password="rahasia")
    assert exc_info.value.rule == "user_fields_required"

    with pytest.raises(ValidationError) as exc_info:
        user_service.create_cashier(owner, "t", name="Dewi", email="a@b.id", password="123")
    assert exc_info.value.rule == "password_too_short"
    assert fake_db.functions.calls == []


def test_update_and_delete_cashier(fake_db, owner) -> None:
    """Verify only the owner's cashiers can be changed."""

    _seed_users(fake_db)
    fake_db.functions.handlers[f"users-update?id={CASHIER_ID}"] = lambda body: {"ok": True, **body}
    fake_db.functions.handlers[f"users-delete?id={CASHIER_ID}"] = lambda body: {"ok": True}

    result = user_service.update_cashier(owner, "t", CASHIER_ID, {"email": " Sari@TokoMaju.id", "name": None})
    assert result == {"ok": True, "email": "sari@tokomaju.id"}

    with pytest.raises(ValidationError):
        user_service.update_cashier(owner, "t", CASHIER_ID, {})
    with pytest.raises(NotFoundError):
        user_service.update_cashier(owner, "t", OWNER_ID, {"name": "Budi"})
    with pytest.raises(NotFoundError):
        user_service.delete_cashier(owner, "t", "someone-else")

    user_service.delete_cashier(owner, "t", CASHIER_ID)
    assert fake_db.functions.calls[-1][0] == f"users-delete?id={CASHIER_ID}"


def test_edge_function_errors(fake_db, owner) -> None:
    """Verify function failures map onto the error taxonomy."""

    def rejected(body):
        raise FakeFunctionsError('{"error": "Email already registered"}', 400)

    fake_db.functions.handlers["auth-register"] = rejected
    with pytest.raises(BackendError) as exc_info:
        user_service.create_cashier(owner, "t", name="Dewi", email="a@b.id", password="rahasia")
    assert "Email already registered" in exc_info.value.message

    def expired(body):
        raise FakeFunctionsError("unauthorized", 401)

    fake_db.functions.handlers["auth-register"] = expired
    with pytest.raises(AuthenticationError):
        user_service.create_cashier(owner, "t", name="Dewi", email="a@b.id", password="rahasia")


def test_subscription_status(fake_db, owner, monkeypatch) -> None:
    """Verify none, active and expired statuses."""

    monkeypatch.delenv("DEMO_ACCOUNT_EMAIL", raising=False)

    assert subscription_service.current_status(owner, today=TODAY).status is SubscriptionStatus.NONE

    fake_db.seed("subscriptions", {"id": "sub1", "user_id": OWNER_ID, "start_date": "2025-01-01", "end_date": "2025-03-01"})
    view = subscription_service.current_status(owner, today=TODAY)
    assert view.is_active
    assert view.end_date == date(2025, 3, 1)

    assert subscription_service.current_status(owner, today=date(2025, 3, 2)).status is SubscriptionStatus.EXPIRED


def test_demo_subscription_always_active(fake_db, monkeypatch) -> None:
    """Verify the demo account never needs a subscription row."""

    monkeypatch.delenv("DEMO_ACCOUNT_EMAIL", raising=False)
    demo = UserProfile(id="demo-1", email="demo@gmail.com", role="owner")

    view = subscription_service.current_status(demo, today=TODAY)

    assert view.is_active
    assert view.end_date == date(2099, 12, 31)
    assert fake_db.calls == []


def test_extend_subscription(fake_db) -> None:
    """Verify the new period is computed locally and sent to the function."""

    fake_db.seed("subscriptions", {"id": "sub1", "user_id": OWNER_ID, "start_date": "2025-01-01", "end_date": "2025-03-20"})
    fake_db.functions.handlers["subscriptions-update-user"] = lambda body: {"success": True}

    view = subscription_service.extend_subscription("t", OWNER_ID, 1, today=TODAY)

    assert (view.start_date, view.end_date) == (date(2025, 3, 20), date(2025, 4, 20))
    body = fake_db.functions.calls[0][1]["body"]
    assert body == {"userId": OWNER_ID, "months": 1, "start_date": "2025-03-20", "end_date": "2025-04-20"}

    with pytest.raises(ValidationError):
        subscription_service.extend_subscription("t", OWNER_ID, 0, today=TODAY)


def test_list_all_subscriptions(fake_db) -> None:
    """Verify both response shapes of the listing function."""

    fake_db.functions.handlers["subscriptions-get-all-users"] = lambda body: {"users": [{"id": "u1"}]}
    assert subscription_service.list_all_subscriptions("t") == [{"id": "u1"}]

    fake_db.functions.handlers["subscriptions-get-all-users"] = lambda body: [{"id": "u2"}]
    assert subscription_service.list_all_subscriptions("t") == [{"id": "u2"}]


def test_dashboard_sections_fail_independently(fake_db) -> None:
    """Verify one failed section does not hide the others."""

    fake_db.functions.handlers["dashboard-stats"] = lambda body: {"totalSales": 3}
    fake_db.functions.handlers["dashboard-top-products"] = lambda body: [{"name": "Kopi Susu"}]

    result = dashboard_service.get_dashboard("t")

    assert result["stats"] == {"totalSales": 3}
    assert result["top_products"] == [{"name": "Kopi Susu"}]
    assert result["recent_transactions"] is None
    assert "not found" in result["errors"]["recent_transactions"]

    with pytest.raises(KeyError):
        dashboard_service.get_section("t", "weather")


def test_dashboard_expired_session_fails_everything(fake_db) -> None:
    """Verify an expired session is not swallowed."""

    def expired(body):
        raise FakeFunctionsError("unauthorized", 401)

    fake_db.functions.handlers["dashboard-stats"] = expired

    with pytest.raises(AuthenticationError):
        dashboard_service.get_dashboard("t")
