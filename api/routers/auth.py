"""
Auth API Endpoints.

Login, owner registration, password reset and the current user.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_current_user, get_token
from api.models import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    PasswordResetRequest,
    PasswordUpdateRequest,
    RegisterRequest,
    UserResponse,
)
from domain.errors import PosError
from domain.permissions import visible_pages
from domain.user import UserProfile
from services import auth_service

router = APIRouter()


@router.post(
    "/auth/login",
    response_model=LoginResponse,
    summary="Log In",
    description="Exchange email and password for a session token."
)
def login(request: LoginRequest):
    """
    Log in with email and password.

    The email is trimmed and lower-cased before it is checked. Wrong
    credentials answer 401 with "Email atau password salah".
    """
    try:
        result = auth_service.login(request.email, request.password)
        return LoginResponse(token=result.token, user=UserResponse.from_profile(result.user))
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to log in: {str(e)}"
        )


@router.post(
    "/auth/register",
    response_model=UserResponse,
    status_code=201,
    summary="Register Store Owner",
)
def register(request: RegisterRequest):
    """Register a new store owner; the owner's tenant is their own account."""
    try:
        profile = auth_service.register_owner(request.name, request.email, request.password)
        return UserResponse.from_profile(profile)
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to register: {str(e)}"
        )


@router.post("/auth/reset-password", status_code=202, summary="Request Password Reset")
def reset_password(request: PasswordResetRequest):
    try:
        auth_service.request_password_reset(request.email)
        return {"success": True}
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to request password reset: {str(e)}"
        )


@router.put("/auth/password", summary="Change Password")
def update_password(request: PasswordUpdateRequest, token: str = Depends(get_token)):
    try:
        auth_service.update_password(token, request.password)
        return {"success": True}
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to update password: {str(e)}"
        )


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Current User",
    description="The signed-in user with resolved capabilities and the pages they may open."
)
def me(user: UserProfile = Depends(get_current_user)):
    return MeResponse(
        user=UserResponse.from_profile(user),
        capabilities=user.capabilities.as_dict(),
        pages=visible_pages(user),
    )
