"""Application configuration helpers for SheetTables."""
from __future__ import annotations

import getpass
import json
import logging
import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from core import app_paths
from core.errors import DEFAULT_WORKSHEET_TITLE


logger = logging.getLogger(__name__)


DEFAULT_SETTINGS_PATH = str(app_paths.data_path("settings.json"))
DEFAULT_DATABASE_PATH = str(app_paths.data_path("sheettables.db"))
DEFAULT_CREDENTIALS_PATH = str(app_paths.credentials_path("service_account.json"))
DEFAULT_REQUEST_TIMEOUT = 30
MIN_REQUEST_TIMEOUT = 5
MAX_REQUEST_TIMEOUT = 300

ENV_OVERRIDES: Mapping[str, str] = {
    "database_path": "SHEETTABLES_DB_PATH",
    "credential_path": "SHEETTABLES_CREDENTIALS_PATH",
    "worksheet_title": "SHEETTABLES_WORKSHEET",
}


@dataclass
class AppSettings:
    database_path: str = DEFAULT_DATABASE_PATH
    credential_path: str = DEFAULT_CREDENTIALS_PATH
    worksheet_title: str = DEFAULT_WORKSHEET_TITLE
    request_timeout_seconds: int = DEFAULT_REQUEST_TIMEOUT

    def to_json(self) -> Dict[str, object]:
        return {
            "database_path": self.database_path,
            "credential_path": self.credential_path,
            "worksheet_title": self.worksheet_title,
            "request_timeout_seconds": self.request_timeout_seconds,
        }


def _default_settings() -> Dict[str, object]:
    return AppSettings().to_json()


def _ensure_settings(path: str) -> Dict[str, object]:
    default_settings = _default_settings()
    if not os.path.exists(path):
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8") as handle:
            json.dump(default_settings, handle, indent=2)
        return default_settings

    with open(path, "r", encoding="utf-8") as handle:
        try:
            data = json.load(handle)
        except json.JSONDecodeError:
            logger.warning("Settings file %s is not valid JSON; using defaults", path)
            return default_settings

    merged: Dict[str, object] = dict(default_settings)
    if not isinstance(data, Mapping):
        return merged
    for key, value in data.items():
        if key not in default_settings:
            continue
        if key == "request_timeout_seconds":
            try:
                merged[key] = max(MIN_REQUEST_TIMEOUT, min(MAX_REQUEST_TIMEOUT, int(value)))
            except (TypeError, ValueError):
                merged[key] = default_settings[key]
        elif isinstance(value, str) and value.strip():
            merged[key] = value.strip()
    return merged


def _apply_environment(data: Dict[str, object], environ: Mapping[str, str]) -> Dict[str, object]:
    for key, env_var in ENV_OVERRIDES.items():
        value = (environ.get(env_var) or "").strip()
        if value:
            data[key] = value
    return data


def load_settings(
    path: str = DEFAULT_SETTINGS_PATH, environ: Optional[Mapping[str, str]] = None
) -> AppSettings:
    data = _ensure_settings(path)
    data = _apply_environment(data, os.environ if environ is None else environ)
    return AppSettings(
        database_path=str(data["database_path"]),
        credential_path=str(data["credential_path"]),
        worksheet_title=str(data["worksheet_title"]),
        request_timeout_seconds=int(data["request_timeout_seconds"]),  # type: ignore[arg-type]
    )


def save_settings(settings: AppSettings, path: str = DEFAULT_SETTINGS_PATH) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(path, "w", encoding="utf-8") as handle:
        json.dump(settings.to_json(), handle, indent=2)


def default_owner(environ: Optional[Mapping[str, str]] = None) -> str:
    """Return the owner used when the caller does not name one."""

    source = os.environ if environ is None else environ
    for env_var in ("SHEETTABLES_USER", "USERNAME", "USER"):
        value = (source.get(env_var) or "").strip()
        if value:
            return value
    try:
        return getpass.getuser()
    except (KeyError, OSError):  # pragma: no cover - platform dependent fallback
        return "operator"


__all__ = [
    "AppSettings",
    "DEFAULT_CREDENTIALS_PATH",
    "DEFAULT_DATABASE_PATH",
    "DEFAULT_SETTINGS_PATH",
    "DEFAULT_WORKSHEET_TITLE",
    "default_owner",
    "load_settings",
    "save_settings",
]
