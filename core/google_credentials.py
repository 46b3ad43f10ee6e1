"""Helpers for loading and validating Google service account credentials."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

__all__ = [
    "CredentialsFileInvalidError",
    "ENV_FIELD_MAP",
    "REQUIRED_FIELDS",
    "load_service_account_data",
    "load_service_account_env",
    "resolve_service_account_data",
]


class CredentialsFileInvalidError(Exception):
    """Raised when service account data is missing required fields."""


REQUIRED_FIELDS: Iterable[str] = (
    "type",
    "project_id",
    "private_key_id",
    "private_key",
    "client_email",
    "client_id",
    "token_uri",
    "auth_uri",
    "auth_provider_x509_cert_url",
    "client_x509_cert_url",
)

ENV_FIELD_MAP: Mapping[str, str] = {
    "project_id": "GOOGLE_PROJECT_ID",
    "private_key_id": "GOOGLE_PRIVATE_KEY_ID",
    "private_key": "GOOGLE_PRIVATE_KEY",
    "client_email": "GOOGLE_CLIENT_EMAIL",
    "client_id": "GOOGLE_CLIENT_ID",
    "client_x509_cert_url": "GOOGLE_CLIENT_CERT_URL",
}

_GOOGLE_ENDPOINTS: Mapping[str, str] = {
    "auth_uri": "https://accounts.google.com/o/oauth2/auth",
    "token_uri": "https://oauth2.googleapis.com/token",
    "auth_provider_x509_cert_url": "https://www.googleapis.com/oauth2/v1/certs",
    "universe_domain": "googleapis.com",
}


def _normalise_private_key(key: str) -> str:
    key = key.replace("\r\n", "\n").replace("\r", "\n")
    key = key.replace("\\n", "\n")
    if not key.endswith("\n"):
        key += "\n"
    return key


def _load_json(path: Path) -> Mapping[str, object]:
    try:
        with path.open("r", encoding="utf-8-sig") as handle:
            raw = handle.read()
    except OSError as exc:
        raise CredentialsFileInvalidError(f"Could not read JSON file: {exc}") from exc

    payload_text = raw.lstrip("\ufeff").strip()
    if not payload_text:
        raise CredentialsFileInvalidError("Service account JSON is empty.")

    try:
        payload = json.loads(payload_text)
    except json.JSONDecodeError as exc:
        raise CredentialsFileInvalidError(f"JSON parse error: {exc.msg}") from exc
    if not isinstance(payload, Mapping):
        raise CredentialsFileInvalidError("Service account JSON must be an object.")
    return payload


def _validate_payload(payload: Mapping[str, object]) -> Dict[str, object]:
    data: Dict[str, object] = dict(payload)
    missing: list[str] = []

    for field in REQUIRED_FIELDS:
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            missing.append(field)

    if data.get("type") != "service_account":
        missing.append("type")

    if missing:
        ordered = ", ".join(sorted(dict.fromkeys(missing)))
        raise CredentialsFileInvalidError(f"JSON missing fields: {ordered}")

    data["private_key"] = _normalise_private_key(str(data["private_key"]))
    return data


def load_service_account_data(path: Path) -> Dict[str, object]:
    """Return validated service account data read from ``path``."""

    return _validate_payload(_load_json(path))


def load_service_account_env(environ: Optional[Mapping[str, str]] = None) -> Dict[str, object]:
    """Build service account data from ``GOOGLE_*`` environment variables."""

    source = os.environ if environ is None else environ
    payload: Dict[str, object] = {"type": "service_account", **_GOOGLE_ENDPOINTS}
    for field, env_var in ENV_FIELD_MAP.items():
        payload[field] = source.get(env_var, "")
    return _validate_payload(payload)


def resolve_service_account_data(
    path: Optional[Path], environ: Optional[Mapping[str, str]] = None
) -> Dict[str, object]:
    """Prefer the JSON file at ``path`` and fall back to the environment."""

    if path is not None and path.exists():
        return load_service_account_data(path)
    return load_service_account_env(environ)
