"""
Subscription API Endpoints.
"""

from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_current_user, get_token
from api.models import SubscriptionExtendRequest, SubscriptionResponse
from domain.errors import PosError
from domain.user import UserProfile
from services import subscription_service
from services.subscription_service import SubscriptionView

router = APIRouter()


def _view_response(view: SubscriptionView) -> SubscriptionResponse:
    return SubscriptionResponse(
        status=view.status.value,
        is_active=view.is_active,
        start_date=view.start_date,
        end_date=view.end_date,
    )


@router.get(
    "/subscription",
    response_model=SubscriptionResponse,
    summary="Subscription Status",
    description="Status of the store's subscription: none, active or expired."
)
def get_subscription(user: UserProfile = Depends(get_current_user)):
    try:
        return _view_response(subscription_service.current_status(user))
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to get subscription: {str(e)}")


@router.post(
    "/subscription/extend",
    response_model=SubscriptionResponse,
    summary="Extend Subscription",
    description="Extend a user's subscription by whole months. The edge function decides who may do this."
)
def extend_subscription(request: SubscriptionExtendRequest, token: str = Depends(get_token)):
    try:
        return _view_response(subscription_service.extend_subscription(token, request.user_id, request.months))
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to extend subscription: {str(e)}")


@router.get("/subscription/all", summary="All Subscriptions")
def list_subscriptions(token: str = Depends(get_token)) -> List[Any]:
    try:
        return subscription_service.list_all_subscriptions(token)
    except (HTTPException, PosError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to list subscriptions: {str(e)}")
