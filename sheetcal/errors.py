"""
Error types.

Every failure the pipeline can hit is a SheetCalError subclass, so the CLI
has exactly one thing to catch. Nothing here recovers: a bad header, a bad
row or a failed fetch aborts the whole run.
"""

from __future__ import annotations


class SheetCalError(Exception):
    """Base class for all sheetcal failures."""


class ConfigError(SheetCalError):
    """Required configuration (e.g. the spreadsheet id) is missing or invalid."""


class FetchFailure(SheetCalError):
    """The spreadsheet could not be fetched."""


class SchemaMismatch(SheetCalError):
    """The header row is not the expected column sequence."""


class InvalidTimeFormat(SheetCalError, ValueError):
    """A time cell is not of the form 'h:mm AM' / 'hh:mm PM'."""


class MalformedRow(SheetCalError):
    """A data row has a date or time cell that cannot be parsed."""

    def __init__(self, row_number: int, message: str) -> None:
        super().__init__(f"Row {row_number}: {message}")
        self.row_number = row_number


class SerializationError(SheetCalError):
    """The assembled events could not be encoded as a calendar document."""

    def __init__(self, message: str, cause: object = None) -> None:
        super().__init__(message if cause is None else f"{message}: {cause}")
        self.cause = cause
