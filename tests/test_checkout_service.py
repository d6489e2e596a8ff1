"""
Tests for `services/checkout_service.py`.

Covers contract rules:
- Discount is clamped to [0, 100] and tax to >= 0 with a warning.
- Validation runs in a fixed order before permissions are checked and before
  anything is written.
- The stock pre-check rejects quantities above last-known stock.
- A user cannot submit a second payment while one is processing.
- The header is written before its lines and removed if the lines fail.
- The cart is cleared only after a successful commit.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from postgrest.exceptions import APIError

from domain.cart import Cart, CartLine
from domain.errors import BackendError, InsufficientStockError, PermissionDeniedError, ValidationError
from repositories.catalog_repository import row_to_product
from services.checkout_service import (
    CheckoutService,
    cart_from_items,
    check_stock,
    clamp_discount,
    clamp_tax,
    preview,
    validate_checkout,
)
from tests.fakes import OWNER_ID, product_row

KOPI = product_row("p1", "Kopi Susu", 10000, stock=5, barcode="8991001")
TEH = product_row("p2", "Teh Manis", 5000, stock=1, barcode="8991002")


def _products():
    return [row_to_product(KOPI), row_to_product(TEH)]


def _cart() -> Cart:
    return Cart(
        [
            CartLine(product_id="p1", name="Kopi Susu", unit_price=Decimal("10000"), quantity=2),
            CartLine(product_id="p2", name="Teh Manis", unit_price=Decimal("5000"), quantity=1),
        ]
    )


def _api_error(message: str) -> APIError:
    return APIError({"code": "P0001", "message": message, "details": None, "hint": None})


def test_clamping_warns_instead_of_failing() -> None:
    """Verify out-of-range percentages are clamped with a warning."""

    assert clamp_discount(150) == (Decimal("100"), "Discount cannot exceed 100%; it was set to 100%")
    assert clamp_discount(-5)[0] == Decimal("0")
    assert clamp_discount("12.5") == (Decimal("12.5"), None)
    assert clamp_tax(-1)[0] == Decimal("0")
    assert clamp_tax(11) == (Decimal("11"), None)

    summary = preview(_cart(), 150, -3, 0)
    assert summary.total_amount == Decimal("0.00")
    assert len(summary.warnings) == 2


def test_preview_computes_change() -> None:
    """Verify the cart summary before payment."""

    summary = preview(_cart(), 10, 5, 30000)

    assert summary.total_amount == Decimal("23625.00")
    assert summary.change_amount == Decimal("6375.00")
    assert summary.is_payment_sufficient


@pytest.mark.parametrize(
    "cart, discount, tax, payment, rule",
    [
        (Cart(), 0, 0, 0, "empty_cart"),
        (None, 101, -1, 0, "discount_out_of_range"),
        (None, 10, -1, 0, "negative_tax"),
        (None, 10, 5, 20000, "insufficient_payment"),
        (None, 100, 0, 0, "non_positive_total"),
    ],
)
def test_validation_order(cart, discount, tax, payment, rule) -> None:
    """Verify the first violated rule is the one reported."""

    with pytest.raises(ValidationError) as exc_info:
        validate_checkout(cart if cart is not None else _cart(), discount, tax, payment)

    assert exc_info.value.rule == rule
    assert exc_info.value.to_dict()["rule"] == rule


def test_validation_rejects_bad_quantity_and_customer() -> None:
    """Verify the line and customer rules."""

    cart = Cart([CartLine(product_id="p1", name="Kopi Susu", unit_price=Decimal("10000"), quantity=-1),
                 CartLine(product_id="p2", name="Teh Manis", unit_price=Decimal("50000"), quantity=1)])
    with pytest.raises(ValidationError) as exc_info:
        validate_checkout(cart, 0, 0, 100000)
    assert exc_info.value.rule == "invalid_quantity"

    with pytest.raises(ValidationError) as exc_info:
        validate_checkout(_cart(), 0, 0, 25000, customer_id="c9", customers=[])
    assert exc_info.value.rule == "invalid_customer"


def test_stock_precheck() -> None:
    """Verify the pre-check message names the product and both quantities."""

    cart = _cart()
    cart.update_quantity("p2", 3)

    with pytest.raises(InsufficientStockError) as exc_info:
        check_stock(cart, _products())

    assert exc_info.value.message == "Stok tidak mencukupi untuk Teh Manis. Tersedia: 1, Diminta: 3"


def test_cart_from_items_uses_catalog_prices() -> None:
    """Verify items resolve by id or barcode and default to one unit."""

    cart = cart_from_items(_products(), [{"product_id": "p1", "quantity": 2}, {"barcode": "8991002"}])

    assert [(line.product_id, line.quantity, line.unit_price) for line in cart.lines] == [
        ("p1", 2, Decimal("10000")),
        ("p2", 1, Decimal("5000")),
    ]

    with pytest.raises(ValidationError) as exc_info:
        cart_from_items(_products(), [{"product_id": "p9"}])
    assert exc_info.value.rule == "unknown_product"

    with pytest.raises(ValidationError) as exc_info:
        cart_from_items(_products(), [{"product_id": "p1"}, {"barcode": "8991001"}])
    assert exc_info.value.rule == "duplicate_product"


def test_process_payment_persists_header_then_lines(fake_db, owner) -> None:
    """Verify a committed sale and a cleared cart."""

    fake_db.seed("products", KOPI, TEH)
    cart = _cart()

    result = CheckoutService().process_payment(
        owner, cart, payment_amount=30000, discount_percent=10, tax_percent=5
    )

    assert cart.is_empty
    assert result.total_amount == Decimal("23625.00")
    assert result.change_amount == Decimal("6375.00")
    assert result.customer_name == "Umum"

    writes = [call for call in fake_db.calls if call[1] == "insert"]
    assert writes == [("sales", "insert"), ("sale_items", "insert")]

    header = fake_db.tables["sales"][0]
    assert header["id"] == result.sale_id
    assert header["user_id"] == OWNER_ID
    assert Decimal(header["discount"]) == Decimal("10")
    assert Decimal(header["total_amount"]) == Decimal("23625")
    items = fake_db.tables["sale_items"]
    assert [(i["product_id"], i["quantity"], Decimal(i["price"])) for i in items] == [
        ("p1", 2, Decimal("10000")),
        ("p2", 1, Decimal("5000")),
    ]


def test_process_payment_records_customer(fake_db, owner) -> None:
    """Verify the customer is looked up in the tenant."""

    fake_db.seed("products", KOPI, TEH)
    fake_db.seed("customers", {"id": "c1", "user_id": OWNER_ID, "name": "Ani", "phone": "0812", "address": None})

    result = CheckoutService().process_payment(owner, _cart(), payment_amount=25000, customer_id="c1")

    assert result.customer_name == "Ani"
    assert fake_db.tables["sales"][0]["customer_id"] == "c1"

    with pytest.raises(ValidationError) as exc_info:
        CheckoutService().process_payment(owner, _cart(), payment_amount=25000, customer_id="c404")
    assert exc_info.value.rule == "invalid_customer"


def test_cashier_without_tax_capability_is_denied(fake_db, cashier) -> None:
    """Verify discount and tax require their capabilities."""

    fake_db.seed("products", KOPI, TEH)
    service = CheckoutService()

    with pytest.raises(PermissionDeniedError):
        service.process_payment(cashier, _cart(), payment_amount=30000, tax_percent=11)

    result = service.process_payment(cashier, _cart(), payment_amount=30000, discount_percent=10)
    assert result.total_amount == Decimal("22500.00")
    assert fake_db.tables["sales"][0]["user_id"] == cashier.id


def test_nothing_written_when_validation_fails(fake_db, owner) -> None:
    """Verify a rejected checkout leaves the cart and the tables untouched."""

    fake_db.seed("products", KOPI, TEH)
    cart = _cart()

    with pytest.raises(ValidationError):
        CheckoutService().process_payment(owner, cart, payment_amount=1000)

    assert len(cart) == 2
    assert "sales" not in fake_db.tables


def test_failed_lines_remove_the_header(fake_db, owner) -> None:
    """Verify the compensating delete when sale_items cannot be written."""

    fake_db.seed("products", KOPI, TEH)
    fake_db.fail("sale_items", "insert", _api_error("connection lost"))
    cart = _cart()

    with pytest.raises(BackendError):
        CheckoutService().process_payment(owner, cart, payment_amount=25000)

    assert fake_db.tables["sales"] == []
    assert ("sales", "delete") in fake_db.calls
    assert len(cart) == 2


def test_backend_stock_failure_is_insufficient_stock(fake_db, owner) -> None:
    """Verify a stock error reported at commit time keeps its meaning."""

    fake_db.seed("products", KOPI, TEH)
    fake_db.fail("sale_items", "insert", _api_error("Stok tidak mencukupi untuk Teh Manis"))

    with pytest.raises(InsufficientStockError):
        CheckoutService().process_payment(owner, _cart(), payment_amount=25000)


def test_stock_failure_survives_failed_cleanup(fake_db, owner) -> None:
    """Verify the sale_items error is reported even when removing the header also fails."""

    fake_db.seed("products", KOPI, TEH)
    fake_db.fail("sale_items", "insert", _api_error("Stok tidak mencukupi untuk Teh Manis"))
    fake_db.fail("sales", "delete", _api_error("connection lost"))

    with pytest.raises(InsufficientStockError) as exc_info:
        CheckoutService().process_payment(owner, _cart(), payment_amount=25000)

    assert "Teh Manis" in exc_info.value.message
    assert ("sales", "delete") in fake_db.calls


def test_cashier_empty_cart_reports_validation_first(fake_db, cashier) -> None:
    """Verify an invalid cart is reported before a missing tax capability."""

    with pytest.raises(ValidationError) as exc_info:
        CheckoutService().process_payment(cashier, Cart(), payment_amount=0, tax_percent=11)

    assert exc_info.value.rule == "empty_cart"
    assert fake_db.calls == []


def test_processing_guard(fake_db, owner) -> None:
    """Verify double submission is rejected and the guard is released after failure."""

    fake_db.seed("products", KOPI, TEH)
    service = CheckoutService()

    service._enter(owner.id)
    assert service.is_processing(owner.id)
    with pytest.raises(ValidationError) as exc_info:
        service.process_payment(owner, _cart(), payment_amount=25000)
    assert exc_info.value.rule == "checkout_in_progress"
    service._leave(owner.id)

    with pytest.raises(ValidationError):
        service.process_payment(owner, Cart(), payment_amount=0)
    assert not service.is_processing(owner.id)

    service.process_payment(owner, _cart(), payment_amount=25000)
    assert not service.is_processing(owner.id)
