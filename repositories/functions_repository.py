"""
Edge function access.

Privileged operations (managing users and subscriptions, dashboard
aggregates) run as Supabase Edge Functions because they touch the identity
provider or aggregate across tables. The caller's session token is forwarded
so the function can authorize the request itself.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

import httpx
from supabase import FunctionsError

from domain.errors import AuthenticationError, BackendError, BackendUnavailableError, PermissionDeniedError
from repositories.client import get_client

logger = logging.getLogger(__name__)


def _error_detail(exc: FunctionsError) -> str:
    message = getattr(exc, "message", None) or str(exc)
    try:
        body = json.loads(message)
    except (TypeError, ValueError):
        return message
    if isinstance(body, Mapping):
        return str(body.get("error") or body.get("message") or message)
    return message


def invoke_function(
    name: str,
    *,
    token: str,
    body: Optional[Mapping[str, Any]] = None,
) -> Any:
    """
    Invoke edge function `name` and return its decoded JSON body.

    Raises:
        AuthenticationError: the function rejected the session (401)
        PermissionDeniedError: the function refused the caller (403)
        BackendUnavailableError: no response, or a body that is not JSON
        BackendError: any other reported failure
    """

    options: dict[str, Any] = {
        "headers": {"Authorization": f"Bearer {token}"},
        "responseType": "json",
    }
    if body is not None:
        options["body"] = dict(body)

    try:
        data = get_client().functions.invoke(name, invoke_options=options)
    except FunctionsError as exc:
        status = getattr(exc, "status", None)
        detail = _error_detail(exc)
        logger.error("Edge function failed", extra={"function": name, "status": status})
        if status == 401:
            raise AuthenticationError.session_expired() from exc
        if status == 403:
            raise PermissionDeniedError(detail) from exc
        raise BackendError(f"{name} failed: {detail}") from exc
    except (httpx.HTTPError, ValueError) as exc:
        # ValueError covers a body that could not be decoded as JSON
        logger.error("Edge function unreachable", extra={"function": name, "error": str(exc)})
        raise BackendUnavailableError() from exc

    if data is None:
        raise BackendUnavailableError()
    if isinstance(data, Mapping) and data.get("error"):
        raise BackendError(f"{name} failed: {data['error']}")
    return data


__all__ = ["invoke_function"]
