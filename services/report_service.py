"""
Report service: sales report rows, analytics and export rows.

A report row is one sale line seen together with its sale. Sale-level money
(subtotal, nominal discount and tax, total) is re-derived from the lines and
the stored percentages; per-line discount, tax and total are ALLOCATIONS of
the sale-level figures by subtotal ratio and are not independently recorded
facts.

Loading:
- products, then suppliers, then sales are fetched and turned into rows
- the whole fetch is retried with backoff (1 initial attempt + 3 retries)
- when every attempt fails the result is an empty, well-formed ReportData
  together with a notification naming the number of attempts
- authentication and permission failures are not retried
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from domain.catalog import Product
from domain.errors import AuthenticationError, NotFoundError, PermissionDeniedError, ValidationError
from domain.formatting import format_datetime_id, format_rupiah
from domain.money import ZERO, MonetaryBreakdown, PerLineAllocation, compute_line_allocation, round_currency
from domain.permissions import require
from domain.sale import UNKNOWN_CUSTOMER, SaleHeader
from domain.user import UserProfile
from repositories import catalog_repository, sale_repository, user_repository
from services.retry import DEFAULT_MAX_RETRIES, RetryExhaustedError, retry_with_backoff

logger = logging.getLogger(__name__)

NO_ITEMS = "No items"
UNKNOWN_PRODUCT = "Unknown Product"
UNKNOWN_SUPPLIER = "Unknown Supplier"
UNKNOWN_CASHIER = "Unknown Cashier"

EXPORT_TRANSACTIONS = "transactions"
EXPORT_PROFIT_LOSS = "profitloss"
EXPORT_SALES_SUMMARY = "summary"


@dataclass(frozen=True, slots=True)
class ReportRow:
    row_id: str
    sale_id: str
    created_at: datetime
    product: str
    product_id: Optional[str]
    customer: str
    supplier: str
    cashier: str
    quantity: int
    unit_price: Decimal
    item_subtotal: Decimal
    sale: MonetaryBreakdown
    total: Decimal  # the sale's persisted total_amount
    payment_amount: Decimal
    change_amount: Decimal
    cost: Decimal  # unit cost from the current product list
    is_first_item_in_sale: bool
    item_count: int
    has_unknown_product: bool
    has_unknown_customer: bool
    has_unknown_supplier: bool
    has_negative_total: bool

    @property
    def date(self) -> date:
        return self.created_at.date()

    @property
    def subtotal(self) -> Decimal:
        return self.sale.subtotal

    @property
    def discount_amount(self) -> Decimal:
        return self.sale.discount_amount

    @property
    def tax_amount(self) -> Decimal:
        return self.sale.tax_amount

    @property
    def total_cost(self) -> Decimal:
        return self.cost * self.quantity

    def allocation(self) -> PerLineAllocation:
        return compute_line_allocation(self, self.sale)


@dataclass(frozen=True, slots=True)
class ReportData:
    rows: List[ReportRow] = field(default_factory=list)
    products: List[str] = field(default_factory=list)
    customers: List[str] = field(default_factory=list)
    suppliers: List[str] = field(default_factory=list)
    products_map: Dict[str, Product] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "ReportData":
        return cls()


@dataclass(frozen=True, slots=True)
class ReportLoadResult:
    data: ReportData
    attempts: int
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class ReportFilters:
    """None means "all" for every field."""

    date_from: Optional[date] = None
    date_to: Optional[date] = None
    product: Optional[str] = None
    customer: Optional[str] = None
    supplier: Optional[str] = None
    hide_corrupt: bool = False


@dataclass(frozen=True, slots=True)
class DailyProfitLoss:
    day: date
    label: str
    revenue: Decimal
    cost: Decimal
    profit: Decimal


@dataclass(frozen=True, slots=True)
class ReportSummary:
    total_revenue: Decimal
    total_cost: Decimal
    total_profit: Decimal
    transaction_count: int
    incomplete_row_count: int

    @property
    def average_transaction(self) -> Decimal:
        if self.transaction_count == 0:
            return ZERO
        return round_currency(self.total_revenue / self.transaction_count)


# ---------------------------------------------------------------------------
# Row building
# ---------------------------------------------------------------------------


def build_report_rows(sales: Iterable[SaleHeader], products_map: Mapping[str, Product]) -> List[ReportRow]:
    """
    One row per sale line; a sale without lines yields a single "no items" row.

    Cost and supplier come from the CURRENT product list (`products_map`),
    so a deleted product reports zero cost and an unknown supplier.
    """

    rows: List[ReportRow] = []
    for sale in sales:
        breakdown = sale.breakdown()
        customer = sale.customer_name or UNKNOWN_CUSTOMER
        cashier = sale.cashier_name or UNKNOWN_CASHIER
        common = dict(
            sale_id=sale.id,
            created_at=sale.created_at,
            customer=customer,
            cashier=cashier,
            sale=breakdown,
            total=sale.total_amount,
            payment_amount=sale.payment_amount,
            change_amount=sale.change_amount,
            has_unknown_customer=sale.customer_name is None,
            has_negative_total=sale.total_amount < ZERO,
        )

        if not sale.lines:
            rows.append(
                ReportRow(
                    row_id=f"{sale.id}-0",
                    product=NO_ITEMS,
                    product_id=None,
                    supplier=UNKNOWN_SUPPLIER,
                    quantity=0,
                    unit_price=ZERO,
                    item_subtotal=ZERO,
                    cost=ZERO,
                    is_first_item_in_sale=True,
                    item_count=0,
                    has_unknown_product=True,
                    has_unknown_supplier=True,
                    **common,
                )
            )
            continue

        for index, line in enumerate(sale.lines):
            product = products_map.get(line.product_id or "")
            supplier = (product.supplier_name if product else None) or UNKNOWN_SUPPLIER
            rows.append(
                ReportRow(
                    row_id=f"{sale.id}-{index}",
                    product=line.product_name or UNKNOWN_PRODUCT,
                    product_id=line.product_id,
                    supplier=supplier,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    item_subtotal=line.item_subtotal,
                    cost=(product.cost if product and product.cost is not None else ZERO),
                    is_first_item_in_sale=index == 0,
                    item_count=len(sale.lines),
                    has_unknown_product=line.is_unknown_product,
                    has_unknown_supplier=supplier == UNKNOWN_SUPPLIER,
                    **common,
                )
            )
    return rows


def _unique(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))


def assemble_report(
    sales: Sequence[SaleHeader],
    products: Sequence[Product],
    supplier_names: Sequence[str],
) -> ReportData:
    products_map = {p.id: p for p in products}
    rows = build_report_rows(sales, products_map)
    return ReportData(
        rows=rows,
        products=_unique(r.product for r in rows if not r.has_unknown_product),
        customers=_unique(r.customer for r in rows if not r.has_unknown_customer),
        suppliers=_unique(name for name in supplier_names if name),
        products_map=products_map,
    )


def load_report_data(
    user: UserProfile,
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    sleep: Callable[[float], None] = time.sleep,
) -> ReportLoadResult:
    """Fetch and assemble the report for the user's tenant, retrying on failure."""

    attempts = 0

    def fetch() -> ReportData:
        nonlocal attempts
        attempts += 1
        products = catalog_repository.list_products(user.owner_id)
        suppliers = catalog_repository.list_suppliers(user.owner_id)
        user_ids = user_repository.list_tenant_user_ids(user.owner_id)
        sales = sale_repository.list_sales(user_ids)
        return assemble_report(sales, products, [s.name for s in suppliers])

    try:
        data = retry_with_backoff(
            fetch,
            max_retries=max_retries,
            sleep=sleep,
            give_up_on=(AuthenticationError, PermissionDeniedError),
        )
    except RetryExhaustedError as exc:
        message = f"Failed to load data after {exc.attempts} attempts. Please try again."
        logger.error(message, extra={"user_id": user.id, "error": str(exc.last_error)})
        return ReportLoadResult(data=ReportData.empty(), attempts=exc.attempts, error=message)

    return ReportLoadResult(data=data, attempts=attempts)


# ---------------------------------------------------------------------------
# Filtering and analytics
# ---------------------------------------------------------------------------


def filter_rows(rows: Iterable[ReportRow], filters: ReportFilters) -> List[ReportRow]:
    out: List[ReportRow] = []
    for row in rows:
        if filters.date_from is not None and row.date < filters.date_from:
            continue
        if filters.date_to is not None and row.date > filters.date_to:
            continue
        if filters.product is not None and row.product != filters.product:
            continue
        if filters.customer is not None and row.customer != filters.customer:
            continue
        if filters.supplier is not None and row.supplier != filters.supplier:
            continue
        if filters.hide_corrupt and row.has_negative_total:
            continue
        out.append(row)
    return out


def profit_loss_by_day(rows: Iterable[ReportRow]) -> List[DailyProfitLoss]:
    """
    Revenue, cost and profit per day over rows with a known product.

    Revenue is the allocated line total, so a sale's total is counted once
    across its lines rather than once per line.
    """

    days: Dict[date, List[Decimal]] = {}
    for row in rows:
        if row.has_unknown_product:
            continue
        revenue, cost = days.setdefault(row.date, [ZERO, ZERO])
        days[row.date] = [revenue + row.allocation().line_total, cost + row.total_cost]

    return [
        DailyProfitLoss(
            day=day,
            label=day.strftime("%a"),
            revenue=revenue,
            cost=cost,
            profit=revenue - cost,
        )
        for day, (revenue, cost) in sorted(days.items())
    ]


def _row_revenue(row: ReportRow) -> Decimal:
    if row.item_count == 0:
        return row.total
    return row.allocation().line_total


def summarize(rows: Sequence[ReportRow]) -> ReportSummary:
    """
    Totals over the given rows.

    Revenue is each line's allocated total, so a filtered report keeps the
    share of every sale whose lines survive the filter. Over all of a sale's
    lines the allocations add back up to the sale total.
    """

    revenue = sum((_row_revenue(r) for r in rows), ZERO)
    cost = sum((r.total_cost for r in rows if not r.has_unknown_product), ZERO)
    return ReportSummary(
        total_revenue=revenue,
        total_cost=cost,
        total_profit=revenue - cost,
        transaction_count=len({r.sale_id for r in rows}),
        incomplete_row_count=sum(1 for r in rows if r.has_unknown_product or r.has_unknown_customer),
    )


# ---------------------------------------------------------------------------
# Export rows
# ---------------------------------------------------------------------------


def _rupiah_whole(amount: Decimal) -> str:
    return format_rupiah(amount, use_two_decimals=False)


def transaction_export_rows(rows: Iterable[ReportRow]) -> List[Dict[str, object]]:
    """Per-line export; discount, tax and total are allocated and rounded to whole rupiah."""

    out: List[Dict[str, object]] = []
    for row in rows:
        allocation = row.allocation()
        out.append(
            {
                "Tanggal": format_datetime_id(row.created_at),
                "Produk": row.product,
                "Pelanggan": row.customer,
                "Supplier": row.supplier,
                "Kasir": row.cashier,
                "Jumlah": row.quantity,
                "Harga": _rupiah_whole(row.unit_price),
                "Subtotal Item": _rupiah_whole(allocation.item_subtotal),
                "Diskon": _rupiah_whole(allocation.line_discount),
                "Pajak": _rupiah_whole(allocation.line_tax),
                "Total": _rupiah_whole(allocation.line_total),
            }
        )
    return out


def profit_loss_export_rows(rows: Iterable[ReportRow]) -> List[Dict[str, object]]:
    out: List[Dict[str, object]] = []
    for row in rows:
        if row.has_unknown_product:
            continue
        out.append(
            {
                "Tanggal": format_datetime_id(row.created_at),
                "Produk": row.product,
                "Pelanggan": row.customer,
                "Supplier": row.supplier,
                "Kasir": row.cashier,
                "Jumlah": row.quantity,
                "Total": _rupiah_whole(row.item_subtotal),
                "Biaya": _rupiah_whole(row.total_cost),
                "Laba": _rupiah_whole(row.item_subtotal - row.total_cost),
            }
        )
    return out


def sales_summary_export_rows(rows: Iterable[ReportRow]) -> List[Dict[str, object]]:
    """One row per sale, taken from the first of its rows that is present."""

    first_rows: Dict[str, ReportRow] = {}
    for row in rows:
        first_rows.setdefault(row.sale_id, row)

    return [
        {
            "ID Transaksi": row.sale_id,
            "Tanggal": format_datetime_id(row.created_at),
            "Kasir": row.cashier,
            "Total": _rupiah_whole(row.total),
            "Pembayaran": _rupiah_whole(row.payment_amount),
            "Kembalian": _rupiah_whole(row.change_amount),
        }
        for row in first_rows.values()
    ]


_EXPORTERS = {
    EXPORT_TRANSACTIONS: transaction_export_rows,
    EXPORT_PROFIT_LOSS: profit_loss_export_rows,
    EXPORT_SALES_SUMMARY: sales_summary_export_rows,
}


def export_rows(user: UserProfile, rows: Iterable[ReportRow], kind: str) -> List[Dict[str, object]]:
    require(user.capabilities, "canExportReports")
    exporter = _EXPORTERS.get(kind)
    if exporter is None:
        raise ValidationError(
            f"Unknown export type: {kind}. Use one of {', '.join(_EXPORTERS)}",
            rule="export_type",
        )
    return exporter(rows)


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


def list_sales(user: UserProfile) -> List[SaleHeader]:
    """Sales of every user in the caller's store, newest first."""

    return sale_repository.list_sales(user_repository.list_tenant_user_ids(user.owner_id))


def get_sale(user: UserProfile, sale_id: str) -> SaleHeader:
    sale = sale_repository.get_sale(sale_id, user_repository.list_tenant_user_ids(user.owner_id))
    if sale is None:
        raise NotFoundError("Transaction not found")
    return sale


def delete_transactions(user: UserProfile, sale_ids: Sequence[str]) -> int:
    """
    Delete the given sales (lines first, then header, per sale).

    Raises:
        NotFoundError: none of the ids belonged to a visible sale
    """

    require(user.capabilities, "canDeleteTransaction")
    if not sale_ids:
        raise ValidationError("No transactions selected", rule="empty_selection")

    user_ids = user_repository.list_tenant_user_ids(user.owner_id)
    deleted = 0
    for sale_id in _unique(sale_ids):
        if sale_repository.delete_sale(sale_id, user_ids):
            deleted += 1
        else:
            logger.warning("Sale not found for deletion", extra={"sale_id": sale_id})

    if deleted == 0:
        raise NotFoundError("Transaction not found")
    logger.info("Transactions deleted", extra={"count": deleted, "user_id": user.id})
    return deleted


__all__ = [
    "EXPORT_TRANSACTIONS",
    "EXPORT_PROFIT_LOSS",
    "EXPORT_SALES_SUMMARY",
    "ReportRow",
    "ReportData",
    "ReportLoadResult",
    "ReportFilters",
    "DailyProfitLoss",
    "ReportSummary",
    "build_report_rows",
    "assemble_report",
    "load_report_data",
    "filter_rows",
    "profit_loss_by_day",
    "summarize",
    "transaction_export_rows",
    "profit_loss_export_rows",
    "sales_summary_export_rows",
    "export_rows",
    "list_sales",
    "get_sale",
    "delete_transactions",
]
