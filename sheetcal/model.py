"""
Central data model definitions used across the project.

This module defines:
- the fixed column layout of the events spreadsheet
- the Event record every row is mapped to

The column layout is a contract with the people editing the sheet:
if somebody inserts, renames or moves a column, the header check in
sheetcal.parse refuses to run instead of silently shifting dates.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Tuple


# The first row of the spreadsheet must be exactly this.
EXPECTED_COLUMNS: Tuple[str, ...] = (
    "Date",
    "End Date",
    "Day of Week",
    "Start Time",
    "End Time",
    "Name",
    "Description",
    "Location",
    "Division",
    "Collaborators",
    "Public",
)

# column name -> position, built once so rows are never scanned by name
COLUMN_INDEX: Dict[str, int] = {name: i for i, name in enumerate(EXPECTED_COLUMNS)}


@dataclass
class Event:
    """
    Represents one calendar entry (exactly one spreadsheet row).

    start and end are timezone-aware and always in UTC.
    Only the columns needed for the calendar are kept; Location, Division
    and Collaborators are validated as part of the header but not used.
    """

    start: datetime
    end: datetime
    name: str
    description: str
    public: bool
