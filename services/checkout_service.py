"""
Checkout service: turning a cart into a persisted sale.

Handles:
- clamping discount (to [0, 100]) and tax (to >= 0) with a warning, never an error
- validating the cart before any write, in a fixed order
- an optimistic stock pre-check against last-known stock
- a per-user processing guard against double submission
- creating the sale header and then its lines

Validation order (the first failing rule wins):
1. empty cart
2. discount outside [0, 100]
3. negative tax
4. payment below the total
5. total not above zero
6. a line with a non-positive quantity
7. a customer that does not exist in the tenant

The stock pre-check can be stale; the backend remains the authority and a
stock failure it reports is surfaced as InsufficientStockError as well.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from domain.cart import Cart, CartLine
from domain.catalog import Customer, Product
from domain.errors import BackendError, InsufficientStockError, ValidationError
from domain.money import HUNDRED, ZERO, MonetaryBreakdown, round_currency, to_money
from domain.permissions import require
from domain.sale import WALK_IN_CUSTOMER
from domain.time import utc_now
from domain.user import UserProfile
from repositories import catalog_repository, customer_repository, sale_repository

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CartSummary:
    """What the cashier sees before paying."""

    breakdown: MonetaryBreakdown
    total_amount: Decimal
    payment_amount: Decimal
    change_amount: Decimal
    warnings: Tuple[str, ...] = ()

    @property
    def is_payment_sufficient(self) -> bool:
        return self.payment_amount >= self.total_amount


@dataclass(frozen=True, slots=True)
class CheckoutResult:
    sale_id: str
    lines: Tuple[CartLine, ...]
    breakdown: MonetaryBreakdown
    total_amount: Decimal
    payment_amount: Decimal
    change_amount: Decimal
    created_at: datetime
    cashier_name: Optional[str] = None
    customer_id: Optional[str] = None
    customer_name: str = WALK_IN_CUSTOMER
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    warnings: Tuple[str, ...] = field(default_factory=tuple)


def clamp_discount(value: Any) -> Tuple[Decimal, Optional[str]]:
    discount = to_money(value)
    if discount > HUNDRED:
        return HUNDRED, "Discount cannot exceed 100%; it was set to 100%"
    if discount < ZERO:
        return ZERO, "Discount cannot be negative; it was set to 0%"
    return discount, None


def clamp_tax(value: Any) -> Tuple[Decimal, Optional[str]]:
    tax = to_money(value)
    if tax < ZERO:
        return ZERO, "Tax cannot be negative; it was set to 0%"
    return tax, None


def validate_checkout(
    cart: Cart,
    discount_percent: Any,
    tax_percent: Any,
    payment_amount: Any,
    customer_id: Optional[str] = None,
    customers: Optional[Iterable[Customer]] = None,
) -> MonetaryBreakdown:
    """
    Validate a checkout and return its breakdown.

    The customer rule is only checked when `customers` is given.

    Raises:
        ValidationError: naming the first violated rule
    """

    if cart.is_empty:
        raise ValidationError("Cart is empty", rule="empty_cart")

    discount = to_money(discount_percent)
    if discount < ZERO or discount > HUNDRED:
        raise ValidationError("Discount must be between 0% and 100%", rule="discount_out_of_range")

    tax = to_money(tax_percent)
    if tax < ZERO:
        raise ValidationError("Tax cannot be negative", rule="negative_tax")

    breakdown = cart.breakdown(discount, tax)
    total = round_currency(breakdown.total)
    if to_money(payment_amount) < total:
        raise ValidationError("Payment amount is less than the total", rule="insufficient_payment")

    if total <= ZERO:
        raise ValidationError("Total must be greater than zero", rule="non_positive_total")

    for line in cart.lines:
        if not isinstance(line.quantity, int) or line.quantity <= 0:
            raise ValidationError(f"Invalid quantity for {line.name}", rule="invalid_quantity")

    if customer_id is not None and customers is not None:
        if customer_id not in {c.id for c in customers}:
            raise ValidationError("Selected customer does not exist", rule="invalid_customer")

    return breakdown


def cart_from_items(products: Sequence[Product], items: Iterable[Mapping[str, Any]]) -> Cart:
    """
    Rebuild a cart from `{product_id | barcode, quantity}` items.

    Prices always come from the product list, never from the caller.
    Quantities are kept as given so that validation can reject them.
    """

    by_id = {p.id: p for p in products}
    by_barcode = {p.barcode: p for p in products if p.barcode}
    lines: List[CartLine] = []
    seen: Set[str] = set()
    for item in items:
        product = by_id.get(item.get("product_id") or "") or by_barcode.get(item.get("barcode") or "")
        if product is None:
            raise ValidationError("Product not found", rule="unknown_product")
        if product.id in seen:
            raise ValidationError(f"{product.name} appears more than once", rule="duplicate_product")
        seen.add(product.id)
        lines.append(
            CartLine(
                product_id=product.id,
                name=product.name,
                unit_price=product.price,
                quantity=item.get("quantity", 1),
                barcode=product.barcode,
            )
        )
    return Cart(lines)


def check_stock(cart: Cart, products: Sequence[Product]) -> None:
    """Compare requested quantities with last-known stock (unknown stock is not checked)."""

    by_id = {p.id: p for p in products}
    for line in cart.lines:
        product = by_id.get(line.product_id)
        if product is None or product.stock is None:
            continue
        if line.quantity > product.stock:
            raise InsufficientStockError.for_product(product.name, product.stock, line.quantity)


def preview(
    cart: Cart,
    discount_percent: Any = 0,
    tax_percent: Any = 0,
    payment_amount: Any = 0,
) -> CartSummary:
    discount, discount_warning = clamp_discount(discount_percent)
    tax, tax_warning = clamp_tax(tax_percent)
    warnings = tuple(w for w in (discount_warning, tax_warning) if w)

    breakdown = cart.breakdown(discount, tax)
    total = round_currency(breakdown.total)
    payment = to_money(payment_amount)
    return CartSummary(
        breakdown=breakdown,
        total_amount=total,
        payment_amount=payment,
        change_amount=payment - total,
        warnings=warnings,
    )


def _is_stock_failure(message: str) -> bool:
    lowered = message.lower()
    return "stok" in lowered or "stock" in lowered


class CheckoutService:
    """
    Commits carts as sales.

    One instance is shared by every request; the processing guard is keyed by
    user id so a user cannot submit a second payment while one is in flight.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._processing: Set[str] = set()

    def is_processing(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._processing

    def _enter(self, user_id: str) -> None:
        with self._lock:
            if user_id in self._processing:
                raise ValidationError("A payment is already being processed", rule="checkout_in_progress")
            self._processing.add(user_id)

    def _leave(self, user_id: str) -> None:
        with self._lock:
            self._processing.discard(user_id)

    def process_payment(
        self,
        user: UserProfile,
        cart: Cart,
        *,
        payment_amount: Any,
        discount_percent: Any = 0,
        tax_percent: Any = 0,
        customer_id: Optional[str] = None,
    ) -> CheckoutResult:
        """
        Validate and persist the cart as a sale, then clear the cart.

        Raises:
            ValidationError: a checkout rule was violated (nothing was written)
            PermissionDeniedError: discount or tax applied without the capability
            InsufficientStockError: pre-check or backend stock failure
        """

        self._enter(user.id)
        try:
            discount, discount_warning = clamp_discount(discount_percent)
            tax, tax_warning = clamp_tax(tax_percent)
            warnings: List[str] = [w for w in (discount_warning, tax_warning) if w]
            for warning in warnings:
                logger.warning(warning, extra={"user_id": user.id})

            breakdown = validate_checkout(cart, discount, tax, payment_amount, customer_id)

            capabilities = user.capabilities
            if discount != ZERO:
                require(capabilities, "canApplyDiscount")
            if tax != ZERO:
                require(capabilities, "canApplyTax")

            customer: Optional[Customer] = None
            if customer_id is not None:
                customer = customer_repository.get_customer(user.owner_id, customer_id)
                if customer is None:
                    raise ValidationError("Selected customer does not exist", rule="invalid_customer")

            check_stock(cart, catalog_repository.list_products(user.owner_id))

            total = round_currency(breakdown.total)
            payment = to_money(payment_amount)
            change = payment - total
            created_at = utc_now()
            lines = tuple(cart.lines)

            try:
                sale_id = sale_repository.insert_sale(
                    user_id=user.id,
                    customer_id=customer_id,
                    discount_percent=discount,
                    tax_percent=tax,
                    total_amount=total,
                    payment_amount=payment,
                    change_amount=change,
                    lines=[
                        {"product_id": line.product_id, "quantity": line.quantity, "price": line.unit_price}
                        for line in lines
                    ],
                    created_at=created_at,
                )
            except BackendError as exc:
                if _is_stock_failure(exc.message):
                    raise InsufficientStockError(exc.message) from exc
                raise

            cart.clear()
            logger.info("Sale created", extra={"sale_id": sale_id, "user_id": user.id, "total": str(total)})

            return CheckoutResult(
                sale_id=sale_id,
                lines=lines,
                breakdown=breakdown,
                total_amount=total,
                payment_amount=payment,
                change_amount=change,
                created_at=created_at,
                cashier_name=user.name,
                customer_id=customer_id,
                customer_name=customer.name if customer else WALK_IN_CUSTOMER,
                customer_phone=customer.phone if customer else None,
                customer_address=customer.address if customer else None,
                warnings=tuple(warnings),
            )
        finally:
            self._leave(user.id)


__all__ = [
    "CartSummary",
    "CheckoutResult",
    "CheckoutService",
    "clamp_discount",
    "clamp_tax",
    "validate_checkout",
    "cart_from_items",
    "check_stock",
    "preview",
]
