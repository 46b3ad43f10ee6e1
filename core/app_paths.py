"""Centralised helpers for managing SheetTables application directories."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

_APP_ENV_VARS: Iterable[str] = ("LOCALAPPDATA", "APPDATA")


def _detect_base_directory() -> Path:
    override = os.environ.get("SHEETTABLES_HOME")
    if override:
        return Path(override).expanduser().resolve()
    for env_var in _APP_ENV_VARS:
        value = os.environ.get(env_var)
        if value:
            return Path(value).expanduser().resolve() / "SheetTables"
    return Path.home().resolve() / ".sheettables"


APP_DIR: Path = _detect_base_directory()
LOG_DIR: Path = APP_DIR / "logs"
CREDENTIALS_DIR: Path = APP_DIR / "credentials"


def ensure_directory(path: Path) -> Path:
    """Ensure that ``path`` exists, returning the :class:`~pathlib.Path`."""

    path.mkdir(parents=True, exist_ok=True)
    return path


def data_path(*parts: str) -> Path:
    """Return a path rooted inside :data:`APP_DIR` without creating it."""

    return APP_DIR.joinpath(*parts)


def logs_path(*parts: str) -> Path:
    """Return a path inside :data:`LOG_DIR`, creating the directory."""

    ensure_directory(LOG_DIR)
    return LOG_DIR.joinpath(*parts)


def credentials_path(*parts: str) -> Path:
    """Return a path inside :data:`CREDENTIALS_DIR` without creating it."""

    return CREDENTIALS_DIR.joinpath(*parts)


__all__ = [
    "APP_DIR",
    "CREDENTIALS_DIR",
    "LOG_DIR",
    "credentials_path",
    "data_path",
    "ensure_directory",
    "logs_path",
]
