"""
Fetching (Google Sheets -> raw grid).

Reads one named range of the events spreadsheet through the Sheets v4
REST API and returns it as a list of rows of strings, header first.

Authentication uses Google Application Default Credentials, so the usual
GOOGLE_APPLICATION_CREDENTIALS service-account file just works.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional
from urllib.parse import quote

import google.auth
import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession

from sheetcal.config import DEFAULT_RANGE
from sheetcal.errors import FetchFailure

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# URLs & scopes
# ---------------------------------------------------------------------------

SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"
READONLY_SCOPE = "https://www.googleapis.com/auth/spreadsheets.readonly"

TIMEOUT_SECONDS = 30


# ---------------------------------------------------------------------------
# Core logic
# ---------------------------------------------------------------------------


def _default_session() -> AuthorizedSession:
    """
    Build a requests session that signs every request with the default
    Google credentials (read-only scope).
    """
    try:
        credentials, _project = google.auth.default(scopes=[READONLY_SCOPE])
    except GoogleAuthError as exc:
        raise FetchFailure(f"Could not load Google credentials: {exc}") from exc
    return AuthorizedSession(credentials)


def values_url(spreadsheet_id: str, range_name: str) -> str:
    return f"{SHEETS_API_URL}/{quote(spreadsheet_id, safe='')}/values/{quote(range_name, safe='')}"


def _to_grid(values: Any) -> List[List[str]]:
    if not isinstance(values, list):
        raise FetchFailure("Unexpected response: 'values' is not a list")
    grid: List[List[str]] = []
    for row in values:
        if not isinstance(row, list):
            raise FetchFailure("Unexpected response: row is not a list")
        grid.append(["" if cell is None else str(cell) for cell in row])
    return grid


def fetch_spreadsheet(
    spreadsheet_id: str,
    range_name: str = DEFAULT_RANGE,
    session: Optional[requests.Session] = None,
) -> List[List[str]]:
    """
    Download the given range of the spreadsheet.

    Returns:
        Rows of cell strings, e.g. [["Date", "End Date", ...], ["2023-09-01", ...]]
        An empty sheet gives [].

    Raises FetchFailure on any auth, network or HTTP error. There is
    exactly one attempt.
    """
    if not spreadsheet_id:
        raise FetchFailure("No spreadsheet id given")

    # a caller-supplied session stays open, ours is closed when done
    if session is not None:
        return _get_grid(session, spreadsheet_id, range_name)
    with _default_session() as sess:
        return _get_grid(sess, spreadsheet_id, range_name)


def _get_grid(sess: requests.Session, spreadsheet_id: str, range_name: str) -> List[List[str]]:
    url = values_url(spreadsheet_id, range_name)

    logger.info("Fetching range %r of spreadsheet %s", range_name, spreadsheet_id)
    try:
        resp = sess.get(url, timeout=TIMEOUT_SECONDS)
        resp.raise_for_status()
        data = resp.json()
    except requests.HTTPError as exc:
        raise FetchFailure(f"Sheets API returned an error: {exc}") from exc
    except ValueError as exc:
        # body was not JSON
        raise FetchFailure(f"Sheets API returned an invalid response: {exc}") from exc
    except (requests.RequestException, GoogleAuthError) as exc:
        raise FetchFailure(f"Could not reach the Sheets API: {exc}") from exc

    if not isinstance(data, dict):
        raise FetchFailure("Unexpected response: not a JSON object")

    grid = _to_grid(data.get("values") or [])
    logger.info("Fetched %d rows", len(grid))
    return grid
