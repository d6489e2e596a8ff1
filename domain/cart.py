"""
Domain: in-progress sale (cart).

Lifecycle of a cart line:
- created with quantity 1 when a product is added or scanned
- quantity changed by +/- actions; reaching zero removes the line
- removed explicitly, or all lines dropped when the cart is cleared
- discarded once the sale is committed

Cart lines carry the price of the product at the moment it was added. Money
for the cart always comes from `compute_breakdown`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Iterable, List, Optional, Sequence

from .catalog import Product
from .errors import NotFoundError
from .money import MonetaryBreakdown, compute_breakdown, line_subtotal


@dataclass(frozen=True, slots=True)
class CartLine:
    product_id: str
    name: str
    unit_price: Decimal
    quantity: int
    barcode: Optional[str] = None

    @property
    def item_subtotal(self) -> Decimal:
        return line_subtotal(self)


class Cart:
    """Ordered collection of cart lines, at most one line per product."""

    def __init__(self, lines: Iterable[CartLine] = ()) -> None:
        self._lines: List[CartLine] = list(lines)

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def __len__(self) -> int:
        return len(self._lines)

    def _index(self, product_id: str) -> Optional[int]:
        for i, line in enumerate(self._lines):
            if line.product_id == product_id:
                return i
        return None

    def get(self, product_id: str) -> Optional[CartLine]:
        i = self._index(product_id)
        return None if i is None else self._lines[i]

    def add(self, product: Product) -> CartLine:
        """Add one unit of `product`, creating the line if needed."""

        i = self._index(product.id)
        if i is None:
            line = CartLine(
                product_id=product.id,
                name=product.name,
                unit_price=product.price,
                quantity=1,
                barcode=product.barcode,
            )
            self._lines.append(line)
            return line

        line = replace(self._lines[i], quantity=self._lines[i].quantity + 1)
        self._lines[i] = line
        return line

    def scan(self, barcode: str, products: Sequence[Product]) -> CartLine:
        """Add the product whose barcode matches exactly."""

        code = (barcode or "").strip()
        for product in products:
            if code and product.barcode == code:
                return self.add(product)
        raise NotFoundError("Product not found")

    def update_quantity(self, product_id: str, quantity: int) -> Optional[CartLine]:
        """Set a line's quantity; zero or less removes the line and returns None."""

        i = self._index(product_id)
        if i is None:
            raise NotFoundError("Product not in cart")
        if quantity <= 0:
            del self._lines[i]
            return None
        line = replace(self._lines[i], quantity=int(quantity))
        self._lines[i] = line
        return line

    def remove(self, product_id: str) -> None:
        self._lines = [line for line in self._lines if line.product_id != product_id]

    def clear(self) -> None:
        self._lines = []

    def breakdown(self, discount_percent: Any = 0, tax_percent: Any = 0) -> MonetaryBreakdown:
        return compute_breakdown(self._lines, discount_percent, tax_percent)


def search_products(products: Iterable[Product], term: str) -> List[Product]:
    """Case-insensitive name match, or barcode substring match."""

    needle = (term or "").strip().lower()
    if not needle:
        return list(products)
    return [
        p
        for p in products
        if needle in p.name.lower() or (p.barcode is not None and needle in p.barcode.lower())
    ]


__all__ = ["Cart", "CartLine", "search_products"]
