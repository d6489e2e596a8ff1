"""
Users API Endpoints.

Cashier accounts of the caller's store (owner only).
"""

from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_current_user, get_token
from api.models import CashierCreateRequest, CashierUpdateRequest, UserResponse
from domain.errors import PosError
from domain.user import UserProfile
from services import user_service

router = APIRouter()


@router.get("/users", response_model=List[UserResponse], summary="List Cashiers")
def list_users(user: UserProfile = Depends(get_current_user)):
    try:
        return [UserResponse.from_profile(u) for u in user_service.list_users(user)]
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to list users: {str(e)}")


@router.post("/users", status_code=201, summary="Create Cashier")
def create_user(
    request: CashierCreateRequest,
    user: UserProfile = Depends(get_current_user),
    token: str = Depends(get_token),
) -> Any:
    try:
        return user_service.create_cashier(
            user,
            token,
            name=request.name,
            email=request.email,
            password=request.password,
            permissions=request.permissions,
        )
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to create user: {str(e)}")


@router.put("/users/{user_id}", summary="Update Cashier")
def update_user(
    user_id: str,
    request: CashierUpdateRequest,
    user: UserProfile = Depends(get_current_user),
    token: str = Depends(get_token),
) -> Any:
    try:
        return user_service.update_cashier(user, token, user_id, request.model_dump(exclude_unset=True))
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to update user: {str(e)}")


@router.delete("/users/{user_id}", status_code=204, summary="Delete Cashier")
def delete_user(
    user_id: str,
    user: UserProfile = Depends(get_current_user),
    token: str = Depends(get_token),
):
    try:
        user_service.delete_cashier(user, token, user_id)
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to delete user: {str(e)}")
