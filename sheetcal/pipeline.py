"""
Pipeline glue: raw grid -> events -> filtered events -> .ics text.

`run` is the single error boundary below the CLI: it never raises a
SheetCalError, it reports it in the returned PipelineResult instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

from sheetcal.config import DEFAULT_CALENDAR_NAME, SOURCE_TIMEZONE
from sheetcal.errors import SheetCalError
from sheetcal.export_ics import events_to_ics
from sheetcal.parse import filter_events, sheet_to_events

logger = logging.getLogger(__name__)

Grid = List[List[str]]


@dataclass
class PipelineResult:
    ok: bool
    document: Optional[str] = None
    error: Optional[SheetCalError] = None
    event_count: int = 0


def build_calendar(
    grid: Sequence[Sequence[Any]],
    include_private: bool = False,
    tz: str = SOURCE_TIMEZONE,
    calendar_name: str = DEFAULT_CALENDAR_NAME,
) -> str:
    """
    Convert a raw spreadsheet grid to an iCalendar document.
    Raises on the first problem; see sheetcal.errors.
    """
    return _build(grid, include_private, tz, calendar_name)[0]


def _build(
    grid: Sequence[Sequence[Any]],
    include_private: bool,
    tz: str,
    calendar_name: str,
) -> tuple[str, int]:
    events = sheet_to_events(grid, tz=tz)
    included = filter_events(events, include_private=include_private)
    logger.info("Publishing %d of %d events", len(included), len(events))
    return events_to_ics(included, calendar_name=calendar_name), len(included)


def run(
    fetch: Callable[[], Grid],
    include_private: bool = False,
    tz: str = SOURCE_TIMEZONE,
    calendar_name: str = DEFAULT_CALENDAR_NAME,
) -> PipelineResult:
    """
    Fetch the grid and build the calendar.

    Any SheetCalError (fetch, header, row, serialization) ends the run and
    is returned as a failed result. Other exceptions are bugs and propagate.
    """
    try:
        grid = fetch()
        document, count = _build(grid, include_private, tz, calendar_name)
    except SheetCalError as exc:
        logger.debug("Pipeline failed", exc_info=True)
        return PipelineResult(ok=False, error=exc)
    return PipelineResult(ok=True, document=document, event_count=count)
