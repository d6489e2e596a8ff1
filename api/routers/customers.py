"""
Customers API Endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_current_user
from api.models import CustomerCreate, CustomerResponse, CustomerUpdate
from domain.errors import PosError
from domain.user import UserProfile
from services import customer_service

router = APIRouter()


@router.get("/customers", response_model=List[CustomerResponse], summary="List Customers")
def list_customers(user: UserProfile = Depends(get_current_user)):
    try:
        return [CustomerResponse.from_customer(c) for c in customer_service.list_customers(user)]
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to list customers: {str(e)}")


@router.get("/customers/{customer_id}", response_model=CustomerResponse, summary="Get Customer")
def get_customer(customer_id: str, user: UserProfile = Depends(get_current_user)):
    try:
        return CustomerResponse.from_customer(customer_service.get_customer(user, customer_id))
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to get customer: {str(e)}")


@router.post(
    "/customers",
    response_model=CustomerResponse,
    status_code=201,
    summary="Create Customer",
    description="Create a customer in the caller's store. Name and phone are required."
)
def create_customer(request: CustomerCreate, user: UserProfile = Depends(get_current_user)):
    try:
        customer = customer_service.create_customer(user, request.model_dump(exclude_none=True))
        return CustomerResponse.from_customer(customer)
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to create customer: {str(e)}")


@router.put("/customers/{customer_id}", response_model=CustomerResponse, summary="Update Customer")
def update_customer(customer_id: str, request: CustomerUpdate, user: UserProfile = Depends(get_current_user)):
    try:
        customer = customer_service.update_customer(user, customer_id, request.model_dump(exclude_unset=True))
        return CustomerResponse.from_customer(customer)
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to update customer: {str(e)}")


@router.delete("/customers/{customer_id}", status_code=204, summary="Delete Customer")
def delete_customer(customer_id: str, user: UserProfile = Depends(get_current_user)):
    try:
        customer_service.delete_customer(user, customer_id)
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to delete customer: {str(e)}")
