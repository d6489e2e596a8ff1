"""
Persisted client preferences.

Preferences are JSON values stored under stable string keys. The store is an
explicit adapter: nothing else in the application reads or writes the
underlying file, and every read-modify-write goes through `get`/`set`.

Keys:
- idcashier_token                          session token
- idcashier_current_page                   last active page
- navigationParams                         parameters of the last navigation
- idcashier_language / idcashier_theme     UI preferences
- idcashier_store_settings_<owner_id>      store identity (name, address, ...)
- idcashier_receipt_settings_<owner_id>    receipt layout

The un-suffixed settings keys are used when no owner is known.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from domain.user import UserProfile

logger = logging.getLogger(__name__)

TOKEN_KEY = "idcashier_token"
CURRENT_PAGE_KEY = "idcashier_current_page"
NAVIGATION_PARAMS_KEY = "navigationParams"
LANGUAGE_KEY = "idcashier_language"
THEME_KEY = "idcashier_theme"
STORE_SETTINGS_PREFIX = "idcashier_store_settings"
RECEIPT_SETTINGS_PREFIX = "idcashier_receipt_settings"

DEFAULT_PREFERENCES_PATH = ".idcashier_preferences.json"
DEFAULT_RECEIPT_FOOTER = "Terima kasih atas kunjungan Anda!"
DEFAULT_STORE_NAME = "Toko"


def store_settings_key(owner_id: Optional[str]) -> str:
    return f"{STORE_SETTINGS_PREFIX}_{owner_id}" if owner_id else STORE_SETTINGS_PREFIX


def receipt_settings_key(owner_id: Optional[str]) -> str:
    return f"{RECEIPT_SETTINGS_PREFIX}_{owner_id}" if owner_id else RECEIPT_SETTINGS_PREFIX


class PreferenceStore(ABC):
    """Key/value store of JSON-serializable preferences."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...


class InMemoryPreferenceStore(PreferenceStore):
    def __init__(self, initial: Optional[Mapping[str, Any]] = None) -> None:
        self._values: Dict[str, Any] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._values:
            return default
        return json.loads(self._values[key])

    def set(self, key: str, value: Any) -> None:
        # stored serialized so callers never share mutable state with the store
        self._values[key] = json.dumps(value)

    def remove(self, key: str) -> None:
        self._values.pop(key, None)


class JsonFilePreferenceStore(PreferenceStore):
    """Preferences kept in a single JSON object on disk."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, Any]:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except ValueError:
            logger.warning("Preference file is not valid JSON, starting empty", extra={"path": str(self.path)})
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Mapping[str, Any]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)
        os.replace(tmp_path, self.path)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)


def default_store() -> JsonFilePreferenceStore:
    return JsonFilePreferenceStore(os.getenv("PREFERENCES_PATH", DEFAULT_PREFERENCES_PATH))


@dataclass(frozen=True, slots=True)
class ReceiptSettings:
    """Store identity and receipt layout, merged from the two settings keys."""

    logo: str = ""
    name: str = ""
    address: str = ""
    phone: str = ""
    header_text: str = ""
    footer_text: str = DEFAULT_RECEIPT_FOOTER
    show_address: bool = True
    show_phone: bool = True
    show_header: bool = True
    show_footer: bool = True
    margin: int = 10

    @property
    def display_name(self) -> str:
        return self.name or DEFAULT_STORE_NAME

    def to_stored(self) -> Dict[str, Any]:
        return {_STORED_NAMES.get(k, k): v for k, v in asdict(self).items()}

    @classmethod
    def from_stored(cls, stored: Mapping[str, Any]) -> "ReceiptSettings":
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in stored.items():
            name = _ATTRIBUTE_NAMES.get(key, key)
            if name in known and value is not None:
                values[name] = value
        if "margin" in values:
            try:
                values["margin"] = int(values["margin"]) or 10
            except (TypeError, ValueError):
                values["margin"] = 10
        return cls(**values)


# attribute name -> camelCase key used in the stored settings objects
_STORED_NAMES = {
    "header_text": "headerText",
    "footer_text": "footerText",
    "show_address": "showAddress",
    "show_phone": "showPhone",
    "show_header": "showHeader",
    "show_footer": "showFooter",
}
_ATTRIBUTE_NAMES = {camel: snake for snake, camel in _STORED_NAMES.items()}


def settings_owner_id(user: Optional[UserProfile]) -> Optional[str]:
    return user.owner_id if user is not None else None


def load_receipt_settings(store: PreferenceStore, user: Optional[UserProfile]) -> ReceiptSettings:
    """Defaults, overlaid by the store settings, overlaid by the receipt settings."""

    owner_id = settings_owner_id(user)
    merged: Dict[str, Any] = ReceiptSettings().to_stored()
    for key in (store_settings_key(owner_id), receipt_settings_key(owner_id)):
        saved = store.get(key)
        if isinstance(saved, Mapping):
            merged.update(saved)
    return ReceiptSettings.from_stored(merged)


def save_store_settings(store: PreferenceStore, user: UserProfile, settings: Mapping[str, Any]) -> Dict[str, Any]:
    key = store_settings_key(settings_owner_id(user))
    current = store.get(key) or {}
    updated = {**current, **dict(settings)}
    store.set(key, updated)
    return updated


def save_receipt_settings(store: PreferenceStore, user: UserProfile, settings: Mapping[str, Any]) -> Dict[str, Any]:
    key = receipt_settings_key(settings_owner_id(user))
    current = store.get(key) or {}
    updated = {**current, **dict(settings)}
    store.set(key, updated)
    return updated


__all__ = [
    "TOKEN_KEY",
    "CURRENT_PAGE_KEY",
    "NAVIGATION_PARAMS_KEY",
    "LANGUAGE_KEY",
    "THEME_KEY",
    "PreferenceStore",
    "InMemoryPreferenceStore",
    "JsonFilePreferenceStore",
    "ReceiptSettings",
    "default_store",
    "store_settings_key",
    "receipt_settings_key",
    "load_receipt_settings",
    "save_store_settings",
    "save_receipt_settings",
]
