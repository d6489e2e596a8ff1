"""
Tests for the HTTP API (`api/`).

Covers contract rules:
- Application errors are rendered as {error, detail, status_code[, rule]}.
- A missing or rejected token is an expired session (401).
- Checkout rebuilds the cart from the catalog, records the sale and returns the receipt.
- A rejected checkout writes nothing.
- Only users with the settings page may save settings.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from api.deps import get_checkout_service, get_preference_store
from api.main import app
from services.checkout_service import CheckoutService
from services.preferences import InMemoryPreferenceStore
from tests.fakes import CASHIER_ID, OWNER_ID, product_row, sale_row


@pytest.fixture
def client(fake_db):
    fake_db.seed(
        "users",
        {"id": OWNER_ID, "email": "owner@tokomaju.id", "name": "Budi", "role": "owner", "tenant_id": OWNER_ID},
        {"id": CASHIER_ID, "email": "kasir@tokomaju.id", "name": "Sari", "role": "kasir", "tenant_id": OWNER_ID,
         "permissions": {"sales": True, "canApplyDiscount": True}},
    )
    fake_db.seed(
        "products",
        product_row("p1", "Kopi Susu", 10000, stock=5, barcode="8991001"),
        product_row("p2", "Teh Manis", 5000, stock=3, barcode="8991002"),
    )
    fake_db.auth.add_account("owner@tokomaju.id", "rahasia", uid="auth-owner")
    fake_db.auth.add_account("kasir@tokomaju.id", "rahasia", uid="auth-kasir")

    store = InMemoryPreferenceStore()
    service = CheckoutService()
    app.dependency_overrides[get_preference_store] = lambda: store
    app.dependency_overrides[get_checkout_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def _auth(fake_db, email: str) -> dict:
    return {"Authorization": f"Bearer {fake_db.auth.issue_token(email)}"}


def test_health(client) -> None:
    """Verify the health endpoint."""

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["service"] == "idcashier-api"


def test_missing_token_is_session_expired(client) -> None:
    """Verify the error body for an unauthenticated request."""

    response = client.get("/api/v1/me")

    assert response.status_code == 401
    assert response.json() == {
        "error": "Authentication error",
        "detail": "Session expired, please log in again",
        "status_code": 401,
    }

    response = client.get("/api/v1/me", headers={"Authorization": "Bearer token-forged"})
    assert response.status_code == 401


def test_login(client) -> None:
    """Verify a login returns a token and a wrong password a 401."""

    response = client.post("/api/v1/auth/login", json={"email": " OWNER@tokomaju.id", "password": "rahasia"})
    assert response.status_code == 200
    body = response.json()
    assert body["token"] == "token-auth-owner"
    assert body["user"]["role"] == "owner"

    response = client.post("/api/v1/auth/login", json={"email": "owner@tokomaju.id", "password": "salah"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Email atau password salah"


def test_me_for_cashier(client, fake_db) -> None:
    """Verify capabilities and pages of a cashier."""

    response = client.get("/api/v1/me", headers=_auth(fake_db, "kasir@tokomaju.id"))

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["role"] == "cashier"
    assert body["pages"] == ["dashboard", "sales"]
    assert body["capabilities"]["canApplyDiscount"] is True
    assert body["capabilities"]["canApplyTax"] is False


def test_checkout_end_to_end(client, fake_db) -> None:
    """Verify checkout records the sale and prints the saved store name."""

    headers = _auth(fake_db, "owner@tokomaju.id")
    client.put("/api/v1/settings/store", json={"name": "Toko Maju"}, headers=headers)

    response = client.post(
        "/api/v1/sales/checkout",
        json={
            "items": [{"product_id": "p1", "quantity": 2}, {"barcode": "8991002"}],
            "discount_percent": "10",
            "tax_percent": "5",
            "payment_amount": "30000",
            "use_two_decimals": False,
        },
        headers=headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert Decimal(body["total_amount"]) == Decimal("23625")
    assert Decimal(body["change_amount"]) == Decimal("6375")
    receipt = body["receipt"]
    assert receipt["store_name"] == "Toko Maju"
    assert receipt["customer_name"] == "Umum"
    assert receipt["formatted"]["total"] == "23.625"
    assert [line["barcode"] for line in receipt["lines"]] == ["8991001", "8991002"]

    assert [row["id"] for row in fake_db.tables["sales"]] == [body["sale_id"]]
    assert len(fake_db.tables["sale_items"]) == 2


def test_checkout_validation_error(client, fake_db) -> None:
    """Verify a rejected checkout carries its rule and writes nothing."""

    response = client.post(
        "/api/v1/sales/checkout",
        json={"items": [{"product_id": "p1"}], "payment_amount": "5000"},
        headers=_auth(fake_db, "owner@tokomaju.id"),
    )

    assert response.status_code == 400
    assert response.json()["rule"] == "insufficient_payment"
    assert response.json()["error"] == "Invalid input"
    assert "sales" not in fake_db.tables


def test_checkout_rejects_paper_size_before_writing(client, fake_db) -> None:
    """Verify an unsupported paper size never leaves a sale without a receipt."""

    response = client.post(
        "/api/v1/sales/checkout",
        json={"items": [{"product_id": "p1"}], "payment_amount": "10000", "paper_size": "letter"},
        headers=_auth(fake_db, "owner@tokomaju.id"),
    )

    assert response.status_code == 400
    assert response.json()["rule"] == "paper_size"
    assert "sales" not in fake_db.tables


def test_checkout_stock_error(client, fake_db) -> None:
    """Verify the stock pre-check answers 409."""

    response = client.post(
        "/api/v1/sales/checkout",
        json={"items": [{"product_id": "p2", "quantity": 4}], "payment_amount": "20000"},
        headers=_auth(fake_db, "kasir@tokomaju.id"),
    )

    assert response.status_code == 409
    assert response.json()["detail"] == "Stok tidak mencukupi untuk Teh Manis. Tersedia: 3, Diminta: 4"


def test_preview_clamps_with_warning(client, fake_db) -> None:
    """Verify preview clamps instead of failing."""

    response = client.post(
        "/api/v1/sales/preview",
        json={"items": [{"product_id": "p1"}], "discount_percent": "150"},
        headers=_auth(fake_db, "kasir@tokomaju.id"),
    )

    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["total_amount"]) == Decimal("0")
    assert body["warnings"] == ["Discount cannot exceed 100%; it was set to 100%"]


def test_sale_receipt_and_invoice(client, fake_db) -> None:
    """Verify a stored sale can be fetched, reprinted and invoiced."""

    fake_db.seed("sales", sale_row("s1", [("p1", "Kopi Susu", 1, 10000)], total="10000", payment="10000"))
    headers = _auth(fake_db, "owner@tokomaju.id")

    sale = client.get("/api/v1/sales/s1", headers=headers).json()
    assert sale["customer_name"] == "Umum"

    receipt = client.get("/api/v1/sales/s1/receipt?paper_size=58mm", headers=headers).json()
    assert receipt["lines"][0]["barcode"] == "8991001"

    invoice = client.get("/api/v1/sales/s1/invoice", headers=headers).json()
    assert invoice["invoice_date"] == "15 Januari 2025"
    assert invoice["show_customer"] is False

    missing = client.get("/api/v1/sales/nope", headers=headers)
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Transaction not found"


def test_cashier_cannot_save_settings(client, fake_db) -> None:
    """Verify the settings write is limited to the owner."""

    response = client.put(
        "/api/v1/settings/receipt",
        json={"headerText": "Halo"},
        headers=_auth(fake_db, "kasir@tokomaju.id"),
    )

    assert response.status_code == 403


def test_cashier_cannot_export(client, fake_db) -> None:
    """Verify exports need the export capability."""

    response = client.get("/api/v1/reports/export/transactions", headers=_auth(fake_db, "kasir@tokomaju.id"))

    assert response.status_code == 403
    assert response.json()["error"] == "Permission denied"


def test_report_endpoint(client, fake_db) -> None:
    """Verify report rows and summary."""

    fake_db.seed("sales", sale_row("s1", [("p1", "Kopi Susu", 2, 10000)], total="20000", payment="20000"))

    response = client.get("/api/v1/reports", headers=_auth(fake_db, "owner@tokomaju.id"))

    assert response.status_code == 200
    body = response.json()
    assert len(body["rows"]) == 1
    assert body["summary"]["transaction_count"] == 1
    assert Decimal(body["summary"]["total_revenue"]) == Decimal("20000")
    assert body["error"] is None


def test_unknown_dashboard_section(client, fake_db) -> None:
    """Verify unknown sections answer 404."""

    response = client.get("/api/v1/dashboard/weather", headers=_auth(fake_db, "owner@tokomaju.id"))

    assert response.status_code == 404
