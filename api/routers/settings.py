"""
Settings API Endpoints.

Store identity and receipt layout, saved per store owner. Reading is open
to every user of the store; saving needs access to the settings page.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException

from api.deps import get_current_user, get_preference_store
from domain.errors import PermissionDeniedError, PosError
from domain.permissions import visible_pages
from domain.user import UserProfile
from services.preferences import (
    PreferenceStore,
    load_receipt_settings,
    save_receipt_settings,
    save_store_settings,
)

router = APIRouter()


def _require_settings_page(user: UserProfile) -> None:
    if "settings" not in visible_pages(user):
        raise PermissionDeniedError("Only the store owner can change settings")


@router.get(
    "/settings/receipt",
    summary="Receipt Settings",
    description="Defaults, overlaid by the store settings, overlaid by the receipt settings."
)
def get_receipt_settings(
    user: UserProfile = Depends(get_current_user),
    store: PreferenceStore = Depends(get_preference_store),
) -> Dict[str, Any]:
    return load_receipt_settings(store, user).to_stored()


@router.put("/settings/store", summary="Save Store Settings")
def put_store_settings(
    settings: Dict[str, Any] = Body(..., examples=[{"name": "Toko Maju", "address": "Jl. Asia Afrika 8", "phone": "022-123456"}]),
    user: UserProfile = Depends(get_current_user),
    store: PreferenceStore = Depends(get_preference_store),
) -> Dict[str, Any]:
    try:
        _require_settings_page(user)
        return save_store_settings(store, user, settings)
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to save store settings: {str(e)}")


@router.put("/settings/receipt", summary="Save Receipt Settings")
def put_receipt_settings(
    settings: Dict[str, Any] = Body(..., examples=[{"headerText": "Selamat datang", "showPhone": False}]),
    user: UserProfile = Depends(get_current_user),
    store: PreferenceStore = Depends(get_preference_store),
) -> Dict[str, Any]:
    try:
        _require_settings_page(user)
        return save_receipt_settings(store, user, settings)
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to save receipt settings: {str(e)}")
