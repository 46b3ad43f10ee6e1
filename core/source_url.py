"""Helpers for recognising Google Sheets URLs and extracting their ids."""

from __future__ import annotations

import logging
import re

from core.errors import InvalidSourceUrl

logger = logging.getLogger(__name__)

SHEET_URL_MARKER = "docs.google.com/spreadsheets/d/"
_SHEET_ID_PATTERN = re.compile(r"/spreadsheets/d/([A-Za-z0-9_-]+)")


def looks_like_sheet_url(url: str) -> bool:
    """Return ``True`` when ``url`` has the shape of a Google Sheets link."""

    return SHEET_URL_MARKER in (url or "")


def extract_sheet_id(url: str) -> str:
    """Return the spreadsheet id embedded in ``url``.

    The id is the path segment directly after ``/spreadsheets/d/``.  No
    network access is performed, so this check runs before any fetch.
    """

    match = _SHEET_ID_PATTERN.search(url or "")
    if not match:
        logger.debug("No spreadsheet id found in %r", url)
        raise InvalidSourceUrl()
    return match.group(1)


__all__ = ["SHEET_URL_MARKER", "extract_sheet_id", "looks_like_sheet_url"]
