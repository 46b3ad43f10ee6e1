"""Google Sheets client used to fetch the raw grid behind a table.

This module centralises every direct interaction with the Google Sheets API.
The rest of the application only relies on :meth:`GoogleSheetsClient.fetch_grid`,
which returns the worksheet as a list of rows of strings.  The implementation
focuses on two goals:

* Quoting worksheet titles according to A1 notation so that titles with spaces
  or apostrophes never trigger "Unable to parse range" errors.
* Providing a clean failure surface.  Provider failures are translated into the
  table error taxonomy from :mod:`core.errors` so callers can tell "check the
  URL" apart from "check the sheet structure" and "try again later".

No retry is attempted here; a failed fetch is reported to the caller once.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

import google_auth_httplib2
import httplib2
from google.auth.exceptions import RefreshError, TransportError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from core.errors import (
    DEFAULT_WORKSHEET_TITLE,
    RangeUnavailable,
    SourceFetchError,
    SourceNotFound,
    TransientProviderError,
)
from core.google_credentials import CredentialsFileInvalidError, resolve_service_account_data

logger = logging.getLogger(__name__)

SCOPES: Sequence[str] = ("https://www.googleapis.com/auth/spreadsheets.readonly",)
DEFAULT_TIMEOUT = 30

_NOT_FOUND_STATUSES = {403, 404}
_THROTTLED_STATUSES = {408, 429}


class SheetsClientError(RuntimeError):
    """Base error raised when the Sheets client cannot be set up."""


class SheetsCredentialsError(SheetsClientError):
    """Raised when the service account credentials are invalid or missing."""


def _normalise_title(title: str) -> str:
    """Return a worksheet title quoted according to A1 notation rules."""

    safe = (title or "").strip()
    if not safe:
        raise SheetsClientError("Worksheet title must be configured in settings.")
    safe = safe.replace("'", "''")
    return f"'{safe}'"


def _is_transient_status(status: Optional[int]) -> bool:
    if status is None:
        return False
    return status in _THROTTLED_STATUSES or 500 <= status < 600


def translate_http_error(exc: HttpError, *, worksheet_title: str = DEFAULT_WORKSHEET_TITLE) -> SourceFetchError:
    """Map an ``HttpError`` from the Sheets API onto the table error taxonomy."""

    status = getattr(exc.resp, "status", None)
    text = str(exc)
    if status in _NOT_FOUND_STATUSES or "Requested entity was not found" in text:
        return SourceNotFound()
    if "Unable to parse range" in text:
        return RangeUnavailable(worksheet_title=worksheet_title)
    if _is_transient_status(status):
        return TransientProviderError()
    return SourceFetchError(f"Error fetching sheet data: {getattr(exc, 'reason', '') or text}")


def _rows_from_response(response: object) -> List[List[str]]:
    values = response.get("values", []) if isinstance(response, dict) else []
    return [["" if cell is None else str(cell) for cell in row] for row in values]


class GoogleSheetsClient:
    """Fetch worksheet values from Google Sheets using the REST API."""

    def __init__(self, service, *, worksheet_title: str = DEFAULT_WORKSHEET_TITLE) -> None:
        self._service = service
        self._worksheet_title = worksheet_title
        self._range = _normalise_title(worksheet_title)

    @property
    def worksheet_title(self) -> str:
        return self._worksheet_title

    def fetch_grid(self, sheet_id: str) -> List[List[str]]:
        """Return every row of the configured worksheet of ``sheet_id``.

        An empty worksheet yields an empty list; the Sheets API omits the
        ``values`` key in that case.
        """

        logger.debug("Fetching %s from spreadsheet %s", self._range, sheet_id)
        try:
            response = (
                self._service.spreadsheets()
                .values()
                .get(spreadsheetId=sheet_id, range=self._range, majorDimension="ROWS")
                .execute()
            )
        except HttpError as exc:
            error = translate_http_error(exc, worksheet_title=self._worksheet_title)
            logger.warning(
                "Sheets request for %s failed (status %s): %s",
                sheet_id,
                getattr(exc.resp, "status", "?"),
                type(error).__name__,
            )
            raise error from exc
        except (httplib2.HttpLib2Error, TransportError, OSError) as exc:
            logger.warning("Sheets request for %s failed: %s", sheet_id, exc)
            raise TransientProviderError() from exc
        except RefreshError as exc:
            logger.error("Service account token for %s could not be refreshed: %s", sheet_id, exc)
            raise SheetsCredentialsError(str(exc)) from exc

        rows = _rows_from_response(response)
        logger.debug("Fetched %d rows from spreadsheet %s", len(rows), sheet_id)
        return rows


def _load_credentials(credential_path: Optional[Path]):
    try:
        payload = resolve_service_account_data(credential_path)
    except CredentialsFileInvalidError as exc:
        raise SheetsCredentialsError(str(exc)) from exc

    try:
        return service_account.Credentials.from_service_account_info(payload, scopes=list(SCOPES))
    except ValueError as exc:
        raise SheetsCredentialsError(str(exc)) from exc


def build_service(credentials, *, timeout: int = DEFAULT_TIMEOUT):
    """Construct a Sheets v4 service whose HTTP transport times out after ``timeout`` seconds."""

    http = google_auth_httplib2.AuthorizedHttp(credentials, http=httplib2.Http(timeout=timeout))
    return build("sheets", "v4", http=http, cache_discovery=False)


def build_client(
    credential_path: Optional[Path],
    *,
    worksheet_title: str = DEFAULT_WORKSHEET_TITLE,
    timeout: int = DEFAULT_TIMEOUT,
) -> GoogleSheetsClient:
    """Factory helper used by higher level modules to construct a client."""

    credentials = _load_credentials(credential_path)
    service = build_service(credentials, timeout=timeout)
    return GoogleSheetsClient(service, worksheet_title=worksheet_title)


__all__ = [
    "GoogleSheetsClient",
    "SCOPES",
    "SheetsClientError",
    "SheetsCredentialsError",
    "build_client",
    "build_service",
    "translate_http_error",
]
