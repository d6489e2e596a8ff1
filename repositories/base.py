"""
Shared query execution for the table repositories.

Every table query goes through `execute()` (many rows) or `fetch_one()`
(exactly one row) so that Supabase errors are translated into the
application's error taxonomy in a single place:

- expired/invalid JWT                     -> AuthenticationError (session expired)
- row-level security / privilege denial   -> PermissionDeniedError
- non-JSON or empty body, transport error -> BackendUnavailableError
- anything else reported by PostgREST     -> BackendError

`fetch_one()` implements the single-row fallback: when `.single()` fails with
PGRST116 (zero or several rows) the query is re-run without the single-row
expectation and disambiguated by row count.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

import httpx
from postgrest.exceptions import APIError

from domain.errors import (
    AuthenticationError,
    BackendError,
    BackendUnavailableError,
    DataInconsistencyError,
    NotFoundError,
    PermissionDeniedError,
    PosError,
)

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

# PostgREST: "JSON object requested, multiple (or no) rows returned"
SINGLE_ROW_MISMATCH = "PGRST116"
_JWT_CODES = {"PGRST301", "PGRST302"}
_PRIVILEGE_CODES = {"42501"}


def translate_api_error(exc: APIError, action: str) -> PosError:
    code = str(getattr(exc, "code", "") or "")
    message = str(getattr(exc, "message", "") or exc)

    if code in _JWT_CODES or "jwt expired" in message.lower():
        return AuthenticationError.session_expired()
    if code in _PRIVILEGE_CODES:
        return PermissionDeniedError(f"Not allowed to {action}")
    if "JSON could not be generated" in message:
        return BackendUnavailableError()
    return BackendError(f"Failed to {action}: {message}")


def _run(query: Any, action: str) -> Any:
    try:
        response = query.execute()
    except APIError as exc:
        raise translate_api_error(exc, action) from exc
    except httpx.HTTPError as exc:
        logger.error("Supabase request failed", extra={"action": action, "error": str(exc)})
        raise BackendUnavailableError() from exc

    error = getattr(response, "error", None)
    if error:
        raise BackendError(f"Failed to {action}: {error}")
    return response


def execute(query: Any, *, action: str) -> List[Row]:
    """Run a query and return its rows (possibly empty)."""

    response = _run(query, action)
    data = getattr(response, "data", None) or []
    if isinstance(data, dict):
        return [data]
    return list(data)


def fetch_one(
    build_query: Callable[[], Any],
    *,
    action: str,
    not_found: str = "Resource not found",
) -> Row:
    """
    Fetch exactly one row.

    `build_query` must return a fresh query builder on each call because the
    fallback path runs the query twice.

    Raises:
        NotFoundError: zero rows are visible
        DataInconsistencyError: more than one row is visible
    """

    try:
        response = build_query().single().execute()
    except APIError as exc:
        if str(getattr(exc, "code", "")) != SINGLE_ROW_MISMATCH:
            raise translate_api_error(exc, action) from exc

        logger.warning("Single-row query mismatch, retrying without .single()", extra={"action": action})
        rows = execute(build_query(), action=action)
        if not rows:
            raise NotFoundError(not_found) from exc
        if len(rows) > 1:
            raise DataInconsistencyError(
                f"Multiple records found while trying to {action}. Please contact support."
            ) from exc
        return rows[0]
    except httpx.HTTPError as exc:
        raise BackendUnavailableError() from exc

    error = getattr(response, "error", None)
    if error:
        raise BackendError(f"Failed to {action}: {error}")

    data = getattr(response, "data", None)
    if not data:
        raise NotFoundError(not_found)
    return data


def fetch_optional(query: Any, *, action: str) -> Optional[Row]:
    """Return the first row of `query`, or None."""

    rows = execute(query.limit(1), action=action)
    return rows[0] if rows else None


__all__ = ["Row", "SINGLE_ROW_MISMATCH", "execute", "fetch_one", "fetch_optional", "translate_api_error"]
