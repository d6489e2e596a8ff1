"""
Request dependencies shared by the routers.

The bearer token is resolved to a profile on every request; the checkout
service and the preference store are process-wide so the processing guard
and the saved settings are shared across requests.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from domain.errors import AuthenticationError
from domain.user import UserProfile
from services import auth_service
from services.checkout_service import CheckoutService
from services.preferences import PreferenceStore, default_store

_bearer = HTTPBearer(auto_error=False)
_checkout_service = CheckoutService()


def get_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer)) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError.session_expired()
    return credentials.credentials


def get_current_user(token: str = Depends(get_token)) -> UserProfile:
    return auth_service.current_user(token)


def get_checkout_service() -> CheckoutService:
    return _checkout_service


@lru_cache(maxsize=1)
def get_preference_store() -> PreferenceStore:
    return default_store()
