"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
Amounts are Decimals and serialize as strings.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from domain.catalog import Category, Customer, Product, Supplier
from domain.money import MonetaryBreakdown
from domain.sale import SaleHeader
from domain.user import UserProfile


# ============================================================================
# Auth Models
# ============================================================================

class LoginRequest(BaseModel):
    """Email and password login."""
    email: str
    password: str

    class Config:
        json_schema_extra = {
            "example": {
                "email": "owner@tokomaju.id",
                "password": "rahasia123"
            }
        }


class RegisterRequest(BaseModel):
    """Register a new store owner."""
    name: str
    email: str
    password: str

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Budi Santoso",
                "email": "budi@tokomaju.id",
                "password": "rahasia123"
            }
        }


class PasswordResetRequest(BaseModel):
    """Request a password reset email."""
    email: str


class PasswordUpdateRequest(BaseModel):
    """Set a new password for the signed-in user."""
    password: str


class UserResponse(BaseModel):
    """User profile."""
    id: str
    email: str
    name: Optional[str] = None
    role: str  # resolved role: "owner" or "cashier"
    tenant_id: Optional[str] = None
    permissions: Dict[str, bool]

    @classmethod
    def from_profile(cls, user: UserProfile) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.resolved_role.value,
            tenant_id=user.tenant_id,
            permissions=user.permissions.to_stored(),
        )

    class Config:
        json_schema_extra = {
            "example": {
                "id": "7d0c2c8e-5b43-4c1e-9f1a-2f1a8c2d3e4f",
                "email": "kasir@tokomaju.id",
                "name": "Sari",
                "role": "cashier",
                "tenant_id": "0b6f1c0e-1f2a-4d8e-a3b4-5c6d7e8f9a0b",
                "permissions": {"sales": True, "canApplyDiscount": True}
            }
        }


class LoginResponse(BaseModel):
    """Session token and the signed-in user."""
    token: str
    user: UserResponse


class MeResponse(BaseModel):
    """Current user with resolved capabilities and navigable pages."""
    user: UserResponse
    capabilities: Dict[str, bool]
    pages: List[str]


# ============================================================================
# Catalog Models
# ============================================================================

class ProductCreate(BaseModel):
    """Create a product."""
    name: str
    barcode: Optional[str] = None
    price: Decimal
    cost: Optional[Decimal] = None
    stock: Optional[int] = None
    category_id: Optional[str] = None
    supplier_id: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Kopi Susu 250ml",
                "barcode": "8991234567890",
                "price": "15000",
                "cost": "9000",
                "stock": 24
            }
        }


class ProductUpdate(BaseModel):
    """Partial product update; omitted fields are left unchanged."""
    name: Optional[str] = None
    barcode: Optional[str] = None
    price: Optional[Decimal] = None
    cost: Optional[Decimal] = None
    stock: Optional[int] = None
    category_id: Optional[str] = None
    supplier_id: Optional[str] = None


class ProductImportRequest(BaseModel):
    """Rows of an already-parsed product spreadsheet."""
    rows: List[Dict[str, Any]] = Field(..., min_length=1)


class ProductResponse(BaseModel):
    """Product with its category and supplier flattened."""
    id: str
    name: str
    barcode: Optional[str] = None
    price: Decimal
    cost: Optional[Decimal] = None
    cost_price: Optional[Decimal] = None
    stock: Optional[int] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    supplier_id: Optional[str] = None
    supplier_name: Optional[str] = None

    @classmethod
    def from_product(cls, product: Product) -> "ProductResponse":
        return cls(
            id=product.id,
            name=product.name,
            barcode=product.barcode,
            price=product.price,
            cost=product.cost,
            cost_price=product.cost_price,
            stock=product.stock,
            category_id=product.category_id,
            category_name=product.category_name,
            supplier_id=product.supplier_id,
            supplier_name=product.supplier_name,
        )


class CategoryRequest(BaseModel):
    """Create or rename a category."""
    name: str


class CategoryResponse(BaseModel):
    id: str
    name: str

    @classmethod
    def from_category(cls, category: Category) -> "CategoryResponse":
        return cls(id=category.id, name=category.name)


class SupplierCreate(BaseModel):
    """Create a supplier."""
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None


class SupplierUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class SupplierResponse(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None

    @classmethod
    def from_supplier(cls, supplier: Supplier) -> "SupplierResponse":
        return cls(id=supplier.id, name=supplier.name, phone=supplier.phone, address=supplier.address)


# ============================================================================
# Customer Models
# ============================================================================

class CustomerCreate(BaseModel):
    """Create a customer; name and phone are required."""
    name: str
    phone: str
    email: Optional[str] = None
    address: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Andi Wijaya",
                "phone": "081234567890",
                "email": "andi@example.com",
                "address": "Jl. Merdeka No. 10, Bandung"
            }
        }


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None


class CustomerResponse(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None

    @classmethod
    def from_customer(cls, customer: Customer) -> "CustomerResponse":
        return cls(
            id=customer.id,
            name=customer.name,
            phone=customer.phone,
            email=customer.email,
            address=customer.address,
        )


# ============================================================================
# Sale Models
# ============================================================================

class CartItemRequest(BaseModel):
    """One cart line, identified by product id or barcode."""
    product_id: Optional[str] = None
    barcode: Optional[str] = None
    quantity: int = 1


class CartPreviewRequest(BaseModel):
    """Cart to price without committing it."""
    items: List[CartItemRequest]
    discount_percent: Decimal = Decimal("0")
    tax_percent: Decimal = Decimal("0")
    payment_amount: Decimal = Decimal("0")


class CheckoutRequest(BaseModel):
    """Commit a cart as a sale."""
    items: List[CartItemRequest]
    discount_percent: Decimal = Decimal("0")
    tax_percent: Decimal = Decimal("0")
    payment_amount: Decimal
    customer_id: Optional[str] = None
    paper_size: str = "80mm"
    use_two_decimals: bool = True

    class Config:
        json_schema_extra = {
            "example": {
                "items": [
                    {"barcode": "8991234567890", "quantity": 2},
                    {"product_id": "5a1b2c3d-4e5f-6071-8293-a4b5c6d7e8f9", "quantity": 1}
                ],
                "discount_percent": "10",
                "tax_percent": "11",
                "payment_amount": "50000",
                "customer_id": None,
                "paper_size": "80mm",
                "use_two_decimals": True
            }
        }


class BreakdownResponse(BaseModel):
    """Sale money derived from lines and percentages."""
    subtotal: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    tax_percent: Decimal
    tax_amount: Decimal
    total: Decimal

    @classmethod
    def from_breakdown(cls, breakdown: MonetaryBreakdown) -> "BreakdownResponse":
        return cls(
            subtotal=breakdown.subtotal,
            discount_percent=breakdown.discount_percent,
            discount_amount=breakdown.discount_amount,
            taxable_amount=breakdown.taxable_amount,
            tax_percent=breakdown.tax_percent,
            tax_amount=breakdown.tax_amount,
            total=breakdown.total,
        )


class CartLineResponse(BaseModel):
    product_id: str
    name: str
    barcode: Optional[str] = None
    unit_price: Decimal
    quantity: int
    item_subtotal: Decimal


class CartPreviewResponse(BaseModel):
    """Cart summary shown before payment."""
    lines: List[CartLineResponse]
    breakdown: BreakdownResponse
    total_amount: Decimal
    payment_amount: Decimal
    change_amount: Decimal
    is_payment_sufficient: bool
    warnings: List[str]


class ReceiptLineResponse(BaseModel):
    name: str
    barcode: str
    unit_price: Decimal
    quantity: int
    subtotal: Decimal


class ReceiptResponse(BaseModel):
    """Print-ready receipt."""
    invoice_number: str
    paper_size: str
    store_name: str
    cashier_name: str
    customer_name: str
    created_at: datetime
    lines: List[ReceiptLineResponse]
    breakdown: BreakdownResponse
    total_amount: Decimal
    payment_amount: Decimal
    change_amount: Decimal
    shows_discount: bool
    shows_tax: bool
    formatted: Dict[str, str]
    text: List[str]


class CheckoutResponse(BaseModel):
    """Result of a committed sale."""
    sale_id: str
    total_amount: Decimal
    payment_amount: Decimal
    change_amount: Decimal
    warnings: List[str]
    receipt: ReceiptResponse

    class Config:
        json_schema_extra = {
            "example": {
                "sale_id": "c1d2e3f4-a5b6-4c7d-8e9f-0a1b2c3d4e5f",
                "total_amount": "29970.00",
                "payment_amount": "50000",
                "change_amount": "20030.00",
                "warnings": [],
                "receipt": {}
            }
        }


class SaleLineResponse(BaseModel):
    id: str
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    barcode: Optional[str] = None
    quantity: int
    unit_price: Decimal
    item_subtotal: Decimal


class SaleResponse(BaseModel):
    """Persisted sale with its lines."""
    id: str
    created_at: datetime
    cashier_user_id: str
    cashier_name: Optional[str] = None
    customer_id: Optional[str] = None
    customer_name: str
    discount_percent: Decimal
    tax_percent: Decimal
    total_amount: Decimal
    payment_amount: Decimal
    change_amount: Decimal
    breakdown: BreakdownResponse
    lines: List[SaleLineResponse]

    @classmethod
    def from_sale(cls, sale: SaleHeader) -> "SaleResponse":
        return cls(
            id=sale.id,
            created_at=sale.created_at,
            cashier_user_id=sale.cashier_user_id,
            cashier_name=sale.cashier_name,
            customer_id=sale.customer_id,
            customer_name=sale.display_customer_name,
            discount_percent=sale.discount_percent,
            tax_percent=sale.tax_percent,
            total_amount=sale.total_amount,
            payment_amount=sale.payment_amount,
            change_amount=sale.change_amount,
            breakdown=BreakdownResponse.from_breakdown(sale.breakdown()),
            lines=[
                SaleLineResponse(
                    id=line.id,
                    product_id=line.product_id,
                    product_name=line.product_name,
                    barcode=line.barcode,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    item_subtotal=line.item_subtotal,
                )
                for line in sale.lines
            ],
        )


class SaleListResponse(BaseModel):
    items: List[SaleResponse]
    total_count: int


class InvoiceItemResponse(BaseModel):
    product_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class InvoiceResponse(BaseModel):
    """A4 invoice."""
    invoice_number: str
    invoice_date: str
    company_name: str
    company_address: str
    company_phone: str
    company_logo: str
    items: List[InvoiceItemResponse]
    breakdown: BreakdownResponse
    total_amount: Decimal
    customer_name: str
    customer_address: Optional[str] = None
    customer_phone: Optional[str] = None
    show_customer: bool
    formatted: Dict[str, str]


class BulkDeleteRequest(BaseModel):
    """Sales to delete."""
    sale_ids: List[str]


class BulkDeleteResponse(BaseModel):
    deleted: int


# ============================================================================
# Report Models
# ============================================================================

class ReportRowResponse(BaseModel):
    """One sale line with its sale-level money."""
    row_id: str
    sale_id: str
    created_at: datetime
    product: str
    customer: str
    supplier: str
    cashier: str
    quantity: int
    unit_price: Decimal
    item_subtotal: Decimal
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total: Decimal
    cost: Decimal
    is_first_item_in_sale: bool
    item_count: int
    has_unknown_product: bool
    has_unknown_customer: bool
    has_unknown_supplier: bool
    has_negative_total: bool


class ReportSummaryResponse(BaseModel):
    total_revenue: Decimal
    total_cost: Decimal
    total_profit: Decimal
    transaction_count: int
    average_transaction: Decimal
    incomplete_row_count: int


class ReportResponse(BaseModel):
    """Report rows, their summary and the filter choices."""
    rows: List[ReportRowResponse]
    summary: ReportSummaryResponse
    products: List[str]
    customers: List[str]
    suppliers: List[str]
    attempts: int
    error: Optional[str] = None


class DailyProfitLossResponse(BaseModel):
    day: date
    label: str
    revenue: Decimal
    cost: Decimal
    profit: Decimal


class ExportResponse(BaseModel):
    """Rows ready to be written to a spreadsheet."""
    kind: str
    rows: List[Dict[str, Any]]


# ============================================================================
# Subscription Models
# ============================================================================

class SubscriptionResponse(BaseModel):
    status: str  # "none", "active" or "expired"
    is_active: bool
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    class Config:
        json_schema_extra = {
            "example": {
                "status": "active",
                "is_active": True,
                "start_date": "2025-01-15",
                "end_date": "2025-07-15"
            }
        }


class SubscriptionExtendRequest(BaseModel):
    user_id: str
    months: int


# ============================================================================
# User Management Models
# ============================================================================

class CashierCreateRequest(BaseModel):
    """Create a cashier in the owner's store."""
    name: str
    email: str
    password: str
    permissions: Optional[Dict[str, Any]] = None

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Sari",
                "email": "sari@tokomaju.id",
                "password": "kasir123",
                "permissions": {"sales": True, "products": True, "canApplyDiscount": True}
            }
        }


class CashierUpdateRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    permissions: Optional[Dict[str, Any]] = None


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    status_code: int
    rule: Optional[str] = None  # set for validation errors

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Validation error",
                "detail": "Payment amount is less than the total",
                "status_code": 400,
                "rule": "insufficient_payment"
            }
        }
