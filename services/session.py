"""
Session state container.

Holds the authenticated user and token for one client. The state is passed
around explicitly rather than living in module globals; listeners subscribe
to be told about every transition, and persistence happens only through the
injected PreferenceStore.

Transitions:
- sign_in      -> credentials checked, then login
- login        -> token stored, current page cleared
- update_user  -> fields merged into the current profile
- logout       -> token and current page cleared, user dropped
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

from domain.errors import PosError
from domain.permissions import CapabilitySet, resolve_permissions, visible_pages
from domain.user import UserProfile
from services import auth_service
from services.preferences import CURRENT_PAGE_KEY, NAVIGATION_PARAMS_KEY, TOKEN_KEY, PreferenceStore

logger = logging.getLogger(__name__)

Listener = Callable[["SessionState"], None]


class SessionState:
    def __init__(self, store: PreferenceStore) -> None:
        self._store = store
        self._user: Optional[UserProfile] = None
        self._listeners: List[Listener] = []

    @property
    def user(self) -> Optional[UserProfile]:
        return self._user

    @property
    def token(self) -> Optional[str]:
        return self._store.get(TOKEN_KEY)

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None and bool(self.token)

    @property
    def capabilities(self) -> CapabilitySet:
        return resolve_permissions(self._user)

    @property
    def pages(self) -> List[str]:
        return visible_pages(self._user)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register `listener`; the returned callable unsubscribes it."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def login(self, user: UserProfile, token: str) -> None:
        self._store.set(TOKEN_KEY, token)
        self._store.remove(CURRENT_PAGE_KEY)
        self._user = user
        self._notify()

    def sign_in(self, email: str, password: str) -> UserProfile:
        """Authenticate with email and password, then start the session."""

        result = auth_service.login(email, password)
        self.login(result.user, result.token)
        return result.user

    def restore(self, load_user: Callable[[str], UserProfile]) -> Optional[UserProfile]:
        """Rebuild the user from a persisted token; an unusable token is discarded."""

        token = self.token
        if not token:
            return None
        try:
            self._user = load_user(token)
        except PosError:
            logger.warning("Stored session could not be restored, logging out")
            self.logout()
            return None
        self._notify()
        return self._user

    def update_user(self, **changes: Any) -> UserProfile:
        if self._user is None:
            raise RuntimeError("No user is logged in")
        self._user = self._user.with_updates(**changes)
        self._notify()
        return self._user

    def logout(self) -> None:
        self._store.remove(TOKEN_KEY)
        self._store.remove(CURRENT_PAGE_KEY)
        self._user = None
        self._notify()

    def navigate(self, page: str, params: Optional[dict] = None) -> None:
        if page not in self.pages:
            raise ValueError(f"Page not available: {page}")
        self._store.set(CURRENT_PAGE_KEY, page)
        if params is None:
            self._store.remove(NAVIGATION_PARAMS_KEY)
        else:
            self._store.set(NAVIGATION_PARAMS_KEY, params)
        self._notify()

    @property
    def current_page(self) -> str:
        page = self._store.get(CURRENT_PAGE_KEY)
        return page if page in self.pages else "dashboard"


__all__ = ["SessionState"]
