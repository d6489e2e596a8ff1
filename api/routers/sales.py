"""
Sales API Endpoints.

Cart pricing, checkout, transaction history, receipts and invoices.
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_checkout_service, get_current_user, get_preference_store
from api.models import (
    BreakdownResponse,
    BulkDeleteRequest,
    BulkDeleteResponse,
    CartLineResponse,
    CartPreviewRequest,
    CartPreviewResponse,
    CheckoutRequest,
    CheckoutResponse,
    InvoiceItemResponse,
    InvoiceResponse,
    ReceiptLineResponse,
    ReceiptResponse,
    SaleListResponse,
    SaleResponse,
)
from domain.errors import PosError
from domain.user import UserProfile
from services import catalog_service, report_service
from services.checkout_service import CheckoutService, cart_from_items, preview
from services.preferences import PreferenceStore, load_receipt_settings
from services.receipt_service import (
    ReceiptView,
    invoice_from_sale,
    receipt_from_checkout,
    receipt_from_sale,
    receipt_lines_text,
    require_receipt_paper,
)

router = APIRouter()


def _receipt_response(view: ReceiptView) -> ReceiptResponse:
    return ReceiptResponse(
        invoice_number=view.invoice_number,
        paper_size=view.paper_size,
        store_name=view.settings.display_name,
        cashier_name=view.cashier_name,
        customer_name=view.customer_name,
        created_at=view.created_at,
        lines=[
            ReceiptLineResponse(
                name=line.name,
                barcode=line.barcode,
                unit_price=line.unit_price,
                quantity=line.quantity,
                subtotal=line.subtotal,
            )
            for line in view.lines
        ],
        breakdown=BreakdownResponse.from_breakdown(view.breakdown),
        total_amount=view.total_amount,
        payment_amount=view.payment_amount,
        change_amount=view.change_amount,
        shows_discount=view.shows_discount,
        shows_tax=view.shows_tax,
        formatted=view.formatted,
        text=receipt_lines_text(view),
    )


@router.post(
    "/sales/preview",
    response_model=CartPreviewResponse,
    summary="Price Cart",
    description="Price a cart with discount and tax without committing it. Out-of-range values are clamped with a warning."
)
def preview_cart(request: CartPreviewRequest, user: UserProfile = Depends(get_current_user)):
    try:
        products = catalog_service.list_products(user)
        cart = cart_from_items(products, [item.model_dump() for item in request.items])
        summary = preview(cart, request.discount_percent, request.tax_percent, request.payment_amount)
        return CartPreviewResponse(
            lines=[
                CartLineResponse(
                    product_id=line.product_id,
                    name=line.name,
                    barcode=line.barcode,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    item_subtotal=line.item_subtotal,
                )
                for line in cart.lines
            ],
            breakdown=BreakdownResponse.from_breakdown(summary.breakdown),
            total_amount=summary.total_amount,
            payment_amount=summary.payment_amount,
            change_amount=summary.change_amount,
            is_payment_sufficient=summary.is_payment_sufficient,
            warnings=list(summary.warnings),
        )
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to price cart: {str(e)}")


@router.post(
    "/sales/checkout",
    response_model=CheckoutResponse,
    status_code=201,
    summary="Checkout",
    description="Validate the cart, record the sale and return its receipt."
)
def checkout(
    request: CheckoutRequest,
    user: UserProfile = Depends(get_current_user),
    service: CheckoutService = Depends(get_checkout_service),
    store: PreferenceStore = Depends(get_preference_store),
):
    """
    Commit a cart as a sale.

    **Process:**
    1. Rebuilds the cart from product ids or barcodes (prices come from the catalog)
    2. Clamps discount to [0, 100] and tax to >= 0, reporting a warning
    3. Validates the cart (empty cart, payment, quantities, customer)
    4. Pre-checks stock against the last-known stock
    5. Records the sale header, then its lines

    A second checkout by the same user while one is in flight is rejected
    with rule `checkout_in_progress`.
    """
    try:
        require_receipt_paper(request.paper_size)
        products = catalog_service.list_products(user) if request.items else []
        cart = cart_from_items(products, [item.model_dump() for item in request.items])
        result = service.process_payment(
            user,
            cart,
            payment_amount=request.payment_amount,
            discount_percent=request.discount_percent,
            tax_percent=request.tax_percent,
            customer_id=request.customer_id,
        )
        view = receipt_from_checkout(
            result,
            load_receipt_settings(store, user),
            paper_size=request.paper_size,
            use_two_decimals=request.use_two_decimals,
        )
        return CheckoutResponse(
            sale_id=result.sale_id,
            total_amount=result.total_amount,
            payment_amount=result.payment_amount,
            change_amount=result.change_amount,
            warnings=list(result.warnings),
            receipt=_receipt_response(view),
        )
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to process checkout: {str(e)}")


@router.get("/sales", response_model=SaleListResponse, summary="List Transactions")
def list_sales(user: UserProfile = Depends(get_current_user)):
    try:
        sales = report_service.list_sales(user)
        return SaleListResponse(items=[SaleResponse.from_sale(s) for s in sales], total_count=len(sales))
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to list transactions: {str(e)}")


@router.post(
    "/sales/bulk-delete",
    response_model=BulkDeleteResponse,
    summary="Delete Transactions",
    description="Delete the selected transactions, lines before headers."
)
def delete_sales(request: BulkDeleteRequest, user: UserProfile = Depends(get_current_user)):
    try:
        return BulkDeleteResponse(deleted=report_service.delete_transactions(user, request.sale_ids))
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to delete transactions: {str(e)}")


@router.get("/sales/{sale_id}", response_model=SaleResponse, summary="Get Transaction")
def get_sale(sale_id: str, user: UserProfile = Depends(get_current_user)):
    try:
        return SaleResponse.from_sale(report_service.get_sale(user, sale_id))
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to get transaction: {str(e)}")


@router.get("/sales/{sale_id}/receipt", response_model=ReceiptResponse, summary="Reprint Receipt")
def get_receipt(
    sale_id: str,
    paper_size: str = Query("80mm", description="58mm, 80mm or A4"),
    use_two_decimals: bool = Query(True, description="Render amounts with two decimals"),
    user: UserProfile = Depends(get_current_user),
    store: PreferenceStore = Depends(get_preference_store),
):
    try:
        require_receipt_paper(paper_size)
        sale = report_service.get_sale(user, sale_id)
        view = receipt_from_sale(
            sale,
            load_receipt_settings(store, user),
            paper_size=paper_size,
            use_two_decimals=use_two_decimals,
            products=catalog_service.list_products(user),
        )
        return _receipt_response(view)
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to build receipt: {str(e)}")


@router.get("/sales/{sale_id}/invoice", response_model=InvoiceResponse, summary="A4 Invoice")
def get_invoice(
    sale_id: str,
    use_two_decimals: bool = Query(True, description="Render amounts with two decimals"),
    user: UserProfile = Depends(get_current_user),
    store: PreferenceStore = Depends(get_preference_store),
):
    try:
        sale = report_service.get_sale(user, sale_id)
        view = invoice_from_sale(sale, load_receipt_settings(store, user), use_two_decimals=use_two_decimals)
        return InvoiceResponse(
            invoice_number=view.invoice_number,
            invoice_date=view.invoice_date,
            company_name=view.company_name,
            company_address=view.company_address,
            company_phone=view.company_phone,
            company_logo=view.company_logo,
            items=[
                InvoiceItemResponse(
                    product_name=item.product_name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    subtotal=item.subtotal,
                )
                for item in view.items
            ],
            breakdown=BreakdownResponse.from_breakdown(view.breakdown),
            total_amount=view.total_amount,
            customer_name=view.customer_name,
            customer_address=view.customer_address,
            customer_phone=view.customer_phone,
            show_customer=view.show_customer,
            formatted=view.formatted,
        )
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to build invoice: {str(e)}")
