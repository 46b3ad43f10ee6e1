"""Error taxonomy shared by the table operations.

Every failure raised while creating, syncing or deleting a table derives from
:class:`TableError`.  The message of each error is meant to be shown to the
user as-is, so callers such as the command line tool only need ``str(exc)``.
"""

from __future__ import annotations

from typing import Optional

DEFAULT_WORKSHEET_TITLE = "Sheet1"


class TableError(Exception):
    """Base error raised when a table operation cannot be completed."""

    default_message = "Table operation failed"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)


class ValidationError(TableError):
    """Raised when a required input field is missing or malformed."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class InvalidSourceUrl(TableError):
    """Raised when no spreadsheet id can be found in a source URL."""

    default_message = "Invalid Google Sheets URL"


class SourceFetchError(TableError):
    """Base error for failures reported by the spreadsheet provider."""

    default_message = "Error fetching sheet data"
    retryable = False


class SourceNotFound(SourceFetchError):
    """The spreadsheet does not exist or is not shared with the service account."""

    default_message = "Sheet not found. Please check the URL and make sure the sheet is accessible."


class RangeUnavailable(SourceFetchError):
    """The expected worksheet range is missing from the spreadsheet."""

    def __init__(self, message: Optional[str] = None, *, worksheet_title: str = DEFAULT_WORKSHEET_TITLE) -> None:
        super().__init__(
            message
            or f"Invalid sheet range. Please make sure the sheet has data in {worksheet_title}."
        )
        self.worksheet_title = worksheet_title


class TransientProviderError(SourceFetchError):
    """Rate limiting or network trouble; the user may retry later."""

    default_message = "Google Sheets is temporarily unavailable. Please try again in a moment."
    retryable = True


class EmptySource(TableError):
    """The fetched grid contained no rows at all."""

    default_message = "No data found in sheet"


class NotFound(TableError):
    """No table matches the requested id for the requesting owner."""

    default_message = "Table not found"


__all__ = [
    "DEFAULT_WORKSHEET_TITLE",
    "EmptySource",
    "InvalidSourceUrl",
    "NotFound",
    "RangeUnavailable",
    "SourceFetchError",
    "SourceNotFound",
    "TableError",
    "TransientProviderError",
    "ValidationError",
]
