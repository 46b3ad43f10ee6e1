from __future__ import annotations

import json
import socket
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List

import httplib2
import pytest
from google.auth.exceptions import RefreshError
from googleapiclient.errors import HttpError

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from core import sheets_client
from core.errors import (
    RangeUnavailable,
    SourceFetchError,
    SourceNotFound,
    TransientProviderError,
)


class _FakeRequest:
    def __init__(self, callback: Callable[[], Dict[str, Any]]):
        self._callback = callback

    def execute(self) -> Dict[str, Any]:
        return self._callback()


class _FakeValues:
    def __init__(self, service: "_FakeService") -> None:
        self._service = service

    def get(self, spreadsheetId: str, range: str, majorDimension: str = "ROWS"):  # noqa: N803 - API compatibility
        self._service.requests.append({"spreadsheetId": spreadsheetId, "range": range, "majorDimension": majorDimension})
        return _FakeRequest(self._service._handle_get)


class _FakeSpreadsheets:
    def __init__(self, service: "_FakeService") -> None:
        self._service = service

    def values(self) -> _FakeValues:  # noqa: D401 - API compatibility
        return _FakeValues(self._service)


class _FakeService:
    def __init__(self, response: Dict[str, Any] | None = None, error: Exception | None = None) -> None:
        self.response = response if response is not None else {}
        self.error = error
        self.requests: List[Dict[str, Any]] = []

    def spreadsheets(self) -> _FakeSpreadsheets:  # noqa: D401 - API compatibility
        return _FakeSpreadsheets(self)

    def _handle_get(self) -> Dict[str, Any]:
        if self.error is not None:
            raise self.error
        return self.response


def _http_error(status: int, message: str) -> HttpError:
    content = json.dumps({"error": {"code": status, "message": message}}).encode("utf-8")
    return HttpError(httplib2.Response({"status": status}), content)


def test_fetch_grid_returns_rows_as_strings() -> None:
    service = _FakeService({"range": "Sheet1!A1:C3", "values": [["Name", "Age"], ["Alice", 30], []]})
    client = sheets_client.GoogleSheetsClient(service)

    grid = client.fetch_grid("ABC123")

    assert grid == [["Name", "Age"], ["Alice", "30"], []]
    assert service.requests == [{"spreadsheetId": "ABC123", "range": "'Sheet1'", "majorDimension": "ROWS"}]


def test_fetch_grid_returns_empty_list_for_empty_sheet() -> None:
    client = sheets_client.GoogleSheetsClient(_FakeService({"range": "Sheet1!A1:Z1000"}))

    assert client.fetch_grid("ABC123") == []


def test_worksheet_title_is_quoted() -> None:
    service = _FakeService({"values": []})
    client = sheets_client.GoogleSheetsClient(service, worksheet_title="Bob's data")

    client.fetch_grid("ABC123")

    assert service.requests[0]["range"] == "'Bob''s data'"


def test_blank_worksheet_title_is_rejected() -> None:
    with pytest.raises(sheets_client.SheetsClientError):
        sheets_client.GoogleSheetsClient(_FakeService(), worksheet_title="  ")


@pytest.mark.parametrize(
    ("status", "message", "expected"),
    [
        (404, "Requested entity was not found.", SourceNotFound),
        (403, "The caller does not have permission", SourceNotFound),
        (400, "Unable to parse range: Sheet1", RangeUnavailable),
        (429, "Quota exceeded", TransientProviderError),
        (503, "The service is currently unavailable.", TransientProviderError),
        (501, "Not implemented", TransientProviderError),
        (505, "HTTP version not supported", TransientProviderError),
        (408, "Request timeout", TransientProviderError),
    ],
)
def test_fetch_grid_translates_http_errors(status: int, message: str, expected: type) -> None:
    client = sheets_client.GoogleSheetsClient(_FakeService(error=_http_error(status, message)))

    with pytest.raises(expected) as excinfo:
        client.fetch_grid("ABC123")

    assert isinstance(excinfo.value.__cause__, HttpError)


def test_range_error_names_the_worksheet() -> None:
    service = _FakeService(error=_http_error(400, "Unable to parse range: Data"))
    client = sheets_client.GoogleSheetsClient(service, worksheet_title="Data")

    with pytest.raises(RangeUnavailable) as excinfo:
        client.fetch_grid("ABC123")

    assert str(excinfo.value) == "Invalid sheet range. Please make sure the sheet has data in Data."


def test_not_found_message_points_at_the_url() -> None:
    client = sheets_client.GoogleSheetsClient(_FakeService(error=_http_error(404, "Requested entity was not found.")))

    with pytest.raises(SourceNotFound, match="Please check the URL"):
        client.fetch_grid("missing")


def test_unclassified_http_error_keeps_provider_message() -> None:
    client = sheets_client.GoogleSheetsClient(_FakeService(error=_http_error(400, "Bad request payload")))

    with pytest.raises(SourceFetchError) as excinfo:
        client.fetch_grid("ABC123")

    assert type(excinfo.value) is SourceFetchError
    assert "Bad request payload" in str(excinfo.value)
    assert excinfo.value.retryable is False


@pytest.mark.parametrize("error", [socket.timeout("timed out"), httplib2.ServerNotFoundError("no host")])
def test_network_failures_are_transient(error: Exception) -> None:
    client = sheets_client.GoogleSheetsClient(_FakeService(error=error))

    with pytest.raises(TransientProviderError) as excinfo:
        client.fetch_grid("ABC123")

    assert excinfo.value.retryable is True


def test_build_client_reports_invalid_credentials(tmp_path: Path) -> None:
    path = tmp_path / "service_account.json"
    path.write_text(json.dumps({"type": "service_account"}), encoding="utf-8")

    with pytest.raises(sheets_client.SheetsCredentialsError, match="JSON missing fields"):
        sheets_client.build_client(path)


def test_token_refresh_failure_is_a_credentials_error() -> None:
    error = RefreshError("invalid_grant: Invalid JWT Signature.")
    client = sheets_client.GoogleSheetsClient(_FakeService(error=error))

    with pytest.raises(sheets_client.SheetsCredentialsError, match="invalid_grant") as excinfo:
        client.fetch_grid("ABC123")

    assert excinfo.value.__cause__ is error
