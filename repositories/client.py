"""
Supabase client initialization.

This module contains *only* the connection setup. Other repository modules
call `get_client()` for table and edge-function access and
`get_auth_client()` for user-facing Auth calls.

Environment variables:
- SUPABASE_URL: Supabase project URL (required)
- SUPABASE_KEY: server-side API key used for table access (required)
- SUPABASE_ANON_KEY: public key used for Auth calls (defaults to SUPABASE_KEY)

The data client is created on first use and cached. Auth calls get a fresh
client each time so that one user's session never leaks into the shared
data client. `use_client()` replaces both, which is how tests and tools
inject their own client.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from supabase import Client, create_client

# Load environment variables from the project's .env file
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

_lock = threading.Lock()
_client: Optional[Any] = None
_override: Optional[Any] = None


def _require_env(name: str, hint: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing environment variable: {name}. {hint}")
    return value


def _supabase_url() -> str:
    return _require_env("SUPABASE_URL", "Set SUPABASE_URL to your Supabase project URL.")


def _supabase_key() -> str:
    return _require_env("SUPABASE_KEY", "Set SUPABASE_KEY to your Supabase API key.")


def get_client() -> Client:
    """Return the shared data client, creating it on first use."""

    global _client

    if _override is not None:
        return _override
    with _lock:
        if _client is None:
            _client = create_client(_supabase_url(), _supabase_key())
        return _client


def get_auth_client() -> Client:
    """Return a client dedicated to one Auth call."""

    if _override is not None:
        return _override
    anon_key = os.getenv("SUPABASE_ANON_KEY") or _supabase_key()
    return create_client(_supabase_url(), anon_key)


def use_client(client: Optional[Any]) -> None:
    """Route every repository call to `client` (None restores the real client)."""

    global _override
    _override = client


__all__ = ["get_client", "get_auth_client", "use_client"]
