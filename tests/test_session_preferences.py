"""
Tests for `services/session.py` and `services/preferences.py`.

Covers contract rules:
- Login stores the token and clears the current page; logout clears both.
- Signing in checks the credentials before the session starts.
- An unusable stored token is discarded on restore.
- Receipt settings are defaults overlaid by store settings, then receipt settings.
- Settings are keyed by the tenant owner, so a cashier sees the owner's settings.
"""

from __future__ import annotations

import pytest

from domain.errors import AuthenticationError
from services.preferences import (
    CURRENT_PAGE_KEY,
    TOKEN_KEY,
    InMemoryPreferenceStore,
    JsonFilePreferenceStore,
    PreferenceStore,
    ReceiptSettings,
    load_receipt_settings,
    receipt_settings_key,
    save_receipt_settings,
    save_store_settings,
    store_settings_key,
)
from services.session import SessionState
from tests.fakes import OWNER_ID


def test_login_and_logout(owner) -> None:
    """Verify the token and page keys across the session lifecycle."""

    store = InMemoryPreferenceStore({CURRENT_PAGE_KEY: "reports"})
    session = SessionState(store)
    seen = []
    unsubscribe = session.subscribe(lambda s: seen.append(s.is_authenticated))

    session.login(owner, "token-1")
    assert store.get(TOKEN_KEY) == "token-1"
    assert store.get(CURRENT_PAGE_KEY) is None
    assert session.is_authenticated

    session.navigate("reports", {"saleId": "s1"})
    assert session.current_page == "reports"

    session.logout()
    assert session.token is None
    assert session.user is None
    assert session.current_page == "dashboard"

    unsubscribe()
    session.login(owner, "token-2")
    assert seen == [True, True, False]


def test_navigate_rejects_hidden_page(cashier) -> None:
    """Verify a cashier cannot navigate to settings."""

    session = SessionState(InMemoryPreferenceStore())
    session.login(cashier, "token-1")

    with pytest.raises(ValueError):
        session.navigate("settings")


def test_restore_discards_bad_token(owner) -> None:
    """Verify a failed restore logs out."""

    store = InMemoryPreferenceStore({TOKEN_KEY: "stale"})
    session = SessionState(store)

    def load_user(token):
        raise AuthenticationError.session_expired()

    assert session.restore(load_user) is None
    assert store.get(TOKEN_KEY) is None

    store.set(TOKEN_KEY, "fresh")
    assert session.restore(lambda token: owner) == owner


def test_update_user_merges_fields(owner) -> None:
    """Verify profile updates replace the user."""

    session = SessionState(InMemoryPreferenceStore())
    with pytest.raises(RuntimeError):
        session.update_user(name="Andi")

    session.login(owner, "token-1")
    assert session.update_user(name="Andi").name == "Andi"
    assert session.user.email == owner.email


def test_settings_keys() -> None:
    """Verify owner-suffixed keys and the un-suffixed fallback."""

    assert store_settings_key("u1") == "idcashier_store_settings_u1"
    assert receipt_settings_key(None) == "idcashier_receipt_settings"


def test_receipt_settings_merge(owner, cashier) -> None:
    """Verify precedence and that cashiers read their owner's settings."""

    store = InMemoryPreferenceStore()
    save_store_settings(store, owner, {"name": "Toko Maju", "address": "Jl. Merdeka 1"})
    save_receipt_settings(store, owner, {"address": "Jl. Sudirman 5", "showPhone": False, "margin": "0"})

    settings = load_receipt_settings(store, cashier)

    assert settings.name == "Toko Maju"
    assert settings.address == "Jl. Sudirman 5"
    assert settings.show_phone is False
    assert settings.margin == 10
    assert settings.footer_text == "Terima kasih atas kunjungan Anda!"
    assert store.get(store_settings_key(OWNER_ID))["name"] == "Toko Maju"
    assert load_receipt_settings(store, None) == ReceiptSettings()


def test_json_file_store(tmp_path) -> None:
    """Verify values survive a new store instance on the same file."""

    path = tmp_path / "prefs.json"
    JsonFilePreferenceStore(path).set(TOKEN_KEY, "token-1")

    reopened = JsonFilePreferenceStore(path)
    assert reopened.get(TOKEN_KEY) == "token-1"
    reopened.remove(TOKEN_KEY)
    assert reopened.get(TOKEN_KEY, "none") == "none"

    path.write_text("not json", encoding="utf-8")
    assert JsonFilePreferenceStore(path).get(TOKEN_KEY) is None


def test_sign_in_starts_session(fake_db) -> None:
    """Verify signing in checks the credentials and stores the token."""

    fake_db.auth.add_account("owner@tokomaju.id", "rahasia", uid="auth-1")
    fake_db.seed(
        "users",
        {"id": OWNER_ID, "email": "owner@tokomaju.id", "name": "Budi", "role": "owner", "tenant_id": OWNER_ID},
    )
    store = InMemoryPreferenceStore({CURRENT_PAGE_KEY: "reports"})
    session = SessionState(store)

    user = session.sign_in(" Owner@TokoMaju.id ", "rahasia")

    assert user.id == OWNER_ID
    assert session.is_authenticated
    assert store.get(TOKEN_KEY) == "token-auth-1"
    assert store.get(CURRENT_PAGE_KEY) is None

    with pytest.raises(AuthenticationError):
        SessionState(InMemoryPreferenceStore()).sign_in("owner@tokomaju.id", "salah")


def test_preference_store_requires_every_method() -> None:
    """Verify an adapter missing a method cannot be built."""

    class ReadOnlyStore(PreferenceStore):
        def get(self, key, default=None):
            return default

    with pytest.raises(TypeError):
        ReadOnlyStore()
