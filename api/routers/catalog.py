"""
Catalog API Endpoints.

Products, categories and suppliers of the caller's store.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_current_user
from api.models import (
    CategoryRequest,
    CategoryResponse,
    ProductCreate,
    ProductImportRequest,
    ProductResponse,
    ProductUpdate,
    SupplierCreate,
    SupplierResponse,
    SupplierUpdate,
)
from domain.cart import search_products
from domain.errors import PosError
from domain.user import UserProfile
from services import catalog_service

router = APIRouter()


# ============================================================================
# Products
# ============================================================================

@router.get(
    "/products",
    response_model=List[ProductResponse],
    summary="List Products",
    description="Products of the caller's store, optionally filtered by name or barcode."
)
def list_products(
    search: Optional[str] = Query(None, description="Case-insensitive name or barcode fragment"),
    user: UserProfile = Depends(get_current_user),
):
    """
    List products with their category and supplier names.

    **Example usage:**
    - All products: `GET /api/v1/products`
    - Search: `GET /api/v1/products?search=kopi`
    """
    try:
        products = catalog_service.list_products(user)
        if search:
            products = search_products(products, search)
        return [ProductResponse.from_product(p) for p in products]
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to list products: {str(e)}"
        )


@router.get("/products/{product_id}", response_model=ProductResponse, summary="Get Product")
def get_product(product_id: str, user: UserProfile = Depends(get_current_user)):
    try:
        return ProductResponse.from_product(catalog_service.get_product(user, product_id))
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to get product: {str(e)}")


@router.post("/products", response_model=ProductResponse, status_code=201, summary="Create Product")
def create_product(request: ProductCreate, user: UserProfile = Depends(get_current_user)):
    try:
        product = catalog_service.create_product(user, request.model_dump(exclude_none=True))
        return ProductResponse.from_product(product)
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to create product: {str(e)}")


@router.put("/products/{product_id}", response_model=ProductResponse, summary="Update Product")
def update_product(product_id: str, request: ProductUpdate, user: UserProfile = Depends(get_current_user)):
    try:
        product = catalog_service.update_product(user, product_id, request.model_dump(exclude_unset=True))
        return ProductResponse.from_product(product)
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to update product: {str(e)}")


@router.delete("/products/{product_id}", status_code=204, summary="Delete Product")
def delete_product(product_id: str, user: UserProfile = Depends(get_current_user)):
    try:
        catalog_service.delete_product(user, product_id)
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to delete product: {str(e)}")


@router.post(
    "/products/import",
    response_model=List[ProductResponse],
    status_code=201,
    summary="Import Products",
    description="Create products from parsed spreadsheet rows. One invalid row rejects the batch."
)
def import_products(request: ProductImportRequest, user: UserProfile = Depends(get_current_user)):
    try:
        products = catalog_service.import_products(user, request.rows)
        return [ProductResponse.from_product(p) for p in products]
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to import products: {str(e)}")


# ============================================================================
# Categories
# ============================================================================

@router.get("/categories", response_model=List[CategoryResponse], summary="List Categories")
def list_categories(user: UserProfile = Depends(get_current_user)):
    try:
        return [CategoryResponse.from_category(c) for c in catalog_service.list_categories(user)]
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to list categories: {str(e)}")


@router.post("/categories", response_model=CategoryResponse, status_code=201, summary="Create Category")
def create_category(request: CategoryRequest, user: UserProfile = Depends(get_current_user)):
    try:
        return CategoryResponse.from_category(catalog_service.create_category(user, request.name))
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to create category: {str(e)}")


@router.put("/categories/{category_id}", response_model=CategoryResponse, summary="Rename Category")
def update_category(category_id: str, request: CategoryRequest, user: UserProfile = Depends(get_current_user)):
    try:
        return CategoryResponse.from_category(catalog_service.update_category(user, category_id, request.name))
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to update category: {str(e)}")


@router.delete("/categories/{category_id}", status_code=204, summary="Delete Category")
def delete_category(category_id: str, user: UserProfile = Depends(get_current_user)):
    try:
        catalog_service.delete_category(user, category_id)
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to delete category: {str(e)}")


# ============================================================================
# Suppliers
# ============================================================================

@router.get("/suppliers", response_model=List[SupplierResponse], summary="List Suppliers")
def list_suppliers(user: UserProfile = Depends(get_current_user)):
    try:
        return [SupplierResponse.from_supplier(s) for s in catalog_service.list_suppliers(user)]
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to list suppliers: {str(e)}")


@router.post("/suppliers", response_model=SupplierResponse, status_code=201, summary="Create Supplier")
def create_supplier(request: SupplierCreate, user: UserProfile = Depends(get_current_user)):
    try:
        supplier = catalog_service.create_supplier(user, request.model_dump(exclude_none=True))
        return SupplierResponse.from_supplier(supplier)
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to create supplier: {str(e)}")


@router.put("/suppliers/{supplier_id}", response_model=SupplierResponse, summary="Update Supplier")
def update_supplier(supplier_id: str, request: SupplierUpdate, user: UserProfile = Depends(get_current_user)):
    try:
        supplier = catalog_service.update_supplier(user, supplier_id, request.model_dump(exclude_unset=True))
        return SupplierResponse.from_supplier(supplier)
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to update supplier: {str(e)}")


@router.delete("/suppliers/{supplier_id}", status_code=204, summary="Delete Supplier")
def delete_supplier(supplier_id: str, user: UserProfile = Depends(get_current_user)):
    try:
        catalog_service.delete_supplier(user, supplier_id)
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to delete supplier: {str(e)}")
