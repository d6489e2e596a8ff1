"""
Reports API Endpoints.

Sales report rows with summary, daily profit and loss, and export rows.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_current_user
from api.models import (
    DailyProfitLossResponse,
    ExportResponse,
    ReportResponse,
    ReportRowResponse,
    ReportSummaryResponse,
)
from domain.errors import PosError
from domain.permissions import require
from domain.user import UserProfile
from services import report_service
from services.report_service import ReportFilters, ReportRow

router = APIRouter()


def _filters(
    date_from: Optional[date] = Query(None, description="First day included (YYYY-MM-DD)"),
    date_to: Optional[date] = Query(None, description="Last day included (YYYY-MM-DD)"),
    product: Optional[str] = Query(None, description="Product name"),
    customer: Optional[str] = Query(None, description="Customer name"),
    supplier: Optional[str] = Query(None, description="Supplier name"),
    hide_corrupt: bool = Query(False, description="Hide transactions with a negative total"),
) -> ReportFilters:
    return ReportFilters(
        date_from=date_from,
        date_to=date_to,
        product=product,
        customer=customer,
        supplier=supplier,
        hide_corrupt=hide_corrupt,
    )


def _row_response(row: ReportRow) -> ReportRowResponse:
    return ReportRowResponse(
        row_id=row.row_id,
        sale_id=row.sale_id,
        created_at=row.created_at,
        product=row.product,
        customer=row.customer,
        supplier=row.supplier,
        cashier=row.cashier,
        quantity=row.quantity,
        unit_price=row.unit_price,
        item_subtotal=row.item_subtotal,
        subtotal=row.subtotal,
        discount_amount=row.discount_amount,
        tax_amount=row.tax_amount,
        total=row.total,
        cost=row.cost,
        is_first_item_in_sale=row.is_first_item_in_sale,
        item_count=row.item_count,
        has_unknown_product=row.has_unknown_product,
        has_unknown_customer=row.has_unknown_customer,
        has_unknown_supplier=row.has_unknown_supplier,
        has_negative_total=row.has_negative_total,
    )


@router.get(
    "/reports",
    response_model=ReportResponse,
    summary="Sales Report",
    description="Report rows (one per sale line) with totals. Loading is retried with backoff."
)
def get_report(
    filters: ReportFilters = Depends(_filters),
    user: UserProfile = Depends(get_current_user),
):
    """
    Load the sales report for the caller's store.

    When every load attempt fails the response is an empty report with
    `error` naming the number of attempts, not an error status.

    **Example usage:**
    - All rows: `GET /api/v1/reports`
    - One week: `GET /api/v1/reports?date_from=2025-01-01&date_to=2025-01-07`
    - By supplier: `GET /api/v1/reports?supplier=CV%20Sumber%20Rejeki`
    """
    try:
        result = report_service.load_report_data(user)
        rows = report_service.filter_rows(result.data.rows, filters)
        summary = report_service.summarize(rows)
        return ReportResponse(
            rows=[_row_response(r) for r in rows],
            summary=ReportSummaryResponse(
                total_revenue=summary.total_revenue,
                total_cost=summary.total_cost,
                total_profit=summary.total_profit,
                transaction_count=summary.transaction_count,
                average_transaction=summary.average_transaction,
                incomplete_row_count=summary.incomplete_row_count,
            ),
            products=result.data.products,
            customers=result.data.customers,
            suppliers=result.data.suppliers,
            attempts=result.attempts,
            error=result.error,
        )
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to load report: {str(e)}")


@router.get("/reports/profit-loss", response_model=List[DailyProfitLossResponse], summary="Daily Profit and Loss")
def get_profit_loss(
    filters: ReportFilters = Depends(_filters),
    user: UserProfile = Depends(get_current_user),
):
    try:
        result = report_service.load_report_data(user)
        days = report_service.profit_loss_by_day(report_service.filter_rows(result.data.rows, filters))
        return [
            DailyProfitLossResponse(day=d.day, label=d.label, revenue=d.revenue, cost=d.cost, profit=d.profit)
            for d in days
        ]
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to load profit and loss: {str(e)}")


@router.get(
    "/reports/export/{kind}",
    response_model=ExportResponse,
    summary="Export Rows",
    description="Rows for a spreadsheet export: transactions, profitloss or summary."
)
def export_report(
    kind: str,
    filters: ReportFilters = Depends(_filters),
    user: UserProfile = Depends(get_current_user),
):
    try:
        require(user.capabilities, "canExportReports")
        result = report_service.load_report_data(user)
        rows = report_service.filter_rows(result.data.rows, filters)
        return ExportResponse(kind=kind, rows=report_service.export_rows(user, rows, kind))
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to export report: {str(e)}")
