"""
iCalendar (.ics) export.

We convert events into a calendar document that can be subscribed to from:
- Google Calendar
- Outlook
- Apple Calendar

All times are written in UTC ('...Z'). If we wrote floating local times,
every client would read them in its own timezone, which is only right
for readers who happen to sit in the source timezone.
"""

from __future__ import annotations

import hashlib
from collections import Counter
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from sheetcal.config import DEFAULT_CALENDAR_NAME
from sheetcal.errors import SerializationError
from sheetcal.model import Event

PRODID = "-//sheetcal//EN"

# RFC 5545: content lines SHOULD NOT be longer than 75 octets
_MAX_LINE_OCTETS = 75


def _ics_escape(text: str) -> str:
    """
    Escape text for ICS TEXT values.
    """
    return (
        text.replace("\\", "\\\\").replace("\r\n", "\\n").replace("\n", "\\n").replace(";", "\\;").replace(",", "\\,")
    )


def _fold(line: str) -> List[str]:
    """
    Split one content line into 75-octet pieces, continuation lines start
    with a single space. Never splits inside a UTF-8 character.
    """
    if len(line.encode("utf-8")) <= _MAX_LINE_OCTETS:
        return [line]

    out: List[str] = []
    current = ""
    size = 0
    limit = _MAX_LINE_OCTETS
    for ch in line:
        n = len(ch.encode("utf-8"))
        if size + n > limit:
            out.append(current)
            current = " "
            size = 1
        current += ch
        size += n
    out.append(current)
    return out


def _dt_utc(dt: datetime) -> str:
    """
    Format an aware datetime as ICS UTC time 'YYYYMMDDTHHMMSSZ'.
    """
    return dt.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def _uid(ev: Event, occurrence: int) -> str:
    # content only, so hiding or showing other rows never changes it;
    # occurrence tells identical events apart
    key = f"{occurrence}|{_dt_utc(ev.start)}|{_dt_utc(ev.end)}|{ev.name}"
    return hashlib.sha1(key.encode("utf-8")).hexdigest() + "@sheetcal"


def _check_event(index: int, ev: Event) -> Optional[str]:
    """
    Return a description of what is wrong with one entry, or None.
    """
    if not isinstance(ev, Event):
        return f"entry {index}: not an Event ({type(ev).__name__})"
    if not isinstance(ev.name, str) or not ev.name.strip():
        return f"entry {index}: title is empty"
    if not isinstance(ev.description, str):
        return f"entry {index} ({ev.name!r}): description is not text"
    for field in ("start", "end"):
        value = getattr(ev, field)
        if not isinstance(value, datetime):
            return f"entry {index} ({ev.name!r}): {field} is not a datetime"
        if value.tzinfo is None or value.utcoffset() is None:
            return f"entry {index} ({ev.name!r}): {field} has no timezone"
    return None


def events_to_ics(
    events: Sequence[Event],
    calendar_name: str = DEFAULT_CALENDAR_NAME,
    now: datetime | None = None,
) -> str:
    """
    Serialize events into one iCalendar document (CRLF line endings).

    Every entry is checked first; if any entry is invalid a
    SerializationError is raised and no document is produced.
    `now` fixes DTSTAMP (mainly for tests).
    """
    problems = [p for p in (_check_event(i, ev) for i, ev in enumerate(events)) if p]
    if problems:
        raise SerializationError("Cannot encode calendar", cause="; ".join(problems))

    stamp = now if now is not None else datetime.now(timezone.utc)
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    dtstamp = _dt_utc(stamp)

    lines: List[str] = []
    lines.append("BEGIN:VCALENDAR")
    lines.append("VERSION:2.0")
    lines.append(f"PRODID:{PRODID}")
    lines.append("CALSCALE:GREGORIAN")
    lines.append("METHOD:PUBLISH")
    lines.append(f"X-WR-CALNAME:{_ics_escape(calendar_name)}")

    seen: Counter[Tuple[datetime, datetime, str]] = Counter()
    for ev in events:
        key = (ev.start, ev.end, ev.name)
        occurrence = seen[key]
        seen[key] += 1

        lines.append("BEGIN:VEVENT")
        lines.append(f"UID:{_uid(ev, occurrence)}")
        lines.append(f"DTSTAMP:{dtstamp}")
        lines.append(f"DTSTART:{_dt_utc(ev.start)}")
        lines.append(f"DTEND:{_dt_utc(ev.end)}")
        lines.append(f"SUMMARY:{_ics_escape(ev.name)}")
        if ev.description:
            lines.append(f"DESCRIPTION:{_ics_escape(ev.description)}")
        lines.append("END:VEVENT")

    lines.append("END:VCALENDAR")

    folded: List[str] = []
    for line in lines:
        folded.extend(_fold(line))

    # ICS standard uses CRLF
    return "\r\n".join(folded) + "\r\n"
