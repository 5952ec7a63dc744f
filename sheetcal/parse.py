"""
Parsing (spreadsheet rows -> Event records).

- Checks that the header row matches EXPECTED_COLUMNS
- Maps EACH data row to exactly ONE Event
- Filters events down to the ones that may be published

Important rules (DO NOT CHANGE):
- 1 row = 1 Event, no recurrence logic
- Dates/times in the sheet are wall-clock times in the source timezone;
  Event.start / Event.end are stored in UTC
- One bad row aborts everything (no partial calendar)
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sheetcal.config import SOURCE_TIMEZONE
from sheetcal.errors import ConfigError, InvalidTimeFormat, MalformedRow, SchemaMismatch
from sheetcal.model import COLUMN_INDEX, EXPECTED_COLUMNS, Event

logger = logging.getLogger(__name__)

# "2:30 PM", "12:05 AM"
_TIME12_RE = re.compile(r"^([0-9]{1,2}):([0-9]{2}) (AM|PM)$")

# "2023-09-01", zero-padded
_DATE_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def to_24hour(time12: str) -> str:
    """
    Convert a 12-hour clock string to 24-hour form.

        to_24hour("1:05 PM")  -> "13:05"
        to_24hour("12:00 AM") -> "00:00"

    Raises InvalidTimeFormat for anything that is not "<h>:<mm> <AM|PM>"
    with an hour between 1 and 12.
    """
    m = _TIME12_RE.match(str(time12).strip())
    if not m:
        raise InvalidTimeFormat(f"Invalid time format: {time12!r}")

    hour = int(m.group(1))
    minute = m.group(2)
    period = m.group(3)
    if not (1 <= hour <= 12) or int(minute) > 59:
        raise InvalidTimeFormat(f"Invalid time value: {time12!r}")

    if period == "PM" and hour < 12:
        hour += 12
    elif period == "AM" and hour == 12:
        hour = 0

    return f"{hour:02d}:{minute}"


def _zone(tz: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz)
    # a zone directory such as "America" raises IsADirectoryError
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        raise ConfigError(f"Unknown timezone: {tz!r}") from exc


def _cell(row: Sequence[Any], column: str) -> str:
    """
    Read one cell by column name.

    The Sheets API drops trailing empty cells, so a short row simply
    means the remaining columns are empty.
    """
    i = COLUMN_INDEX[column]
    if i >= len(row) or row[i] is None:
        return ""
    return str(row[i])


def _parse_date(value: str) -> date:
    text = value.strip()
    if not _DATE_RE.match(text):
        raise ValueError(f"Invalid date format: {value!r}")
    return datetime.strptime(text, "%Y-%m-%d").date()


def _to_utc(day: date, time24: str, zone: ZoneInfo) -> datetime:
    hh, mm = time24.split(":")
    # fold=0: ambiguous/nonexistent local times resolve to the earlier offset
    local = datetime(day.year, day.month, day.day, int(hh), int(mm), tzinfo=zone)
    return local.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# Header check
# ---------------------------------------------------------------------------


def validate_header(header: Sequence[Any]) -> None:
    """
    Make sure the header row is exactly EXPECTED_COLUMNS (same length,
    same names, same order). Raises SchemaMismatch otherwise.
    """
    actual = [str(x) for x in header]
    if actual != list(EXPECTED_COLUMNS):
        raise SchemaMismatch(f"Unexpected header, aborting: {actual}")


# ---------------------------------------------------------------------------
# Row mapping (CORE LOGIC)
# ---------------------------------------------------------------------------


def row_to_event(row: Sequence[Any], tz: str = SOURCE_TIMEZONE, row_number: int = 0) -> Event:
    """
    Map exactly one spreadsheet row to exactly one Event.

    Date + Start Time become `start`, End Date + End Time become `end`.
    Both are read as wall-clock time in `tz` and converted to UTC, so the
    output does not depend on the timezone of the machine running this.

    `row_number` is only used in error messages (1-based sheet row).
    """
    zone = _zone(tz)

    try:
        start = _to_utc(_parse_date(_cell(row, "Date")), to_24hour(_cell(row, "Start Time")), zone)
        end = _to_utc(_parse_date(_cell(row, "End Date")), to_24hour(_cell(row, "End Time")), zone)
    except ValueError as exc:
        # InvalidTimeFormat is a ValueError too
        raise MalformedRow(row_number, str(exc)) from exc

    return Event(
        start=start,
        end=end,
        name=_cell(row, "Name"),
        description=_cell(row, "Description"),
        # exact match only: "true", "FALSE", "" are all private
        public=_cell(row, "Public") == "TRUE",
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def sheet_to_events(grid: Sequence[Sequence[Any]], tz: str = SOURCE_TIMEZONE) -> List[Event]:
    """
    Convert the raw spreadsheet grid (header first) to a list of Events.

    The header is validated before any row is touched. The first row that
    fails to map aborts the whole conversion.
    """
    if not grid:
        raise SchemaMismatch("Unexpected header, aborting: spreadsheet is empty")

    validate_header(grid[0])

    # header is sheet row 1, so data starts at row 2
    events = [row_to_event(row, tz, row_number=n) for n, row in enumerate(grid[1:], start=2)]
    logger.info("Mapped %d rows to events", len(events))
    return events


def filter_events(events: Iterable[Event], include_private: bool = False) -> List[Event]:
    """
    Keep only public events unless include_private is set.
    Relative order is preserved.
    """
    if include_private:
        return list(events)
    return [e for e in events if e.public]
