"""
Application configuration.

All settings come from environment variables. The CLI can override each of
them with an option; see sheetcal.cli.

Google credentials are not handled here: google-auth resolves them itself
(GOOGLE_APPLICATION_CREDENTIALS, gcloud user credentials, metadata server).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from sheetcal.errors import ConfigError


# Every date/time cell in the sheet is wall-clock time in this zone.
SOURCE_TIMEZONE = "America/Chicago"

DEFAULT_RANGE = "Events"
DEFAULT_CALENDAR_NAME = "ACM Events"
DEFAULT_LOG_LEVEL = "WARNING"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Resolved runtime settings."""

    spreadsheet_id: Optional[str] = None
    range_name: str = DEFAULT_RANGE
    timezone: str = SOURCE_TIMEZONE
    calendar_name: str = DEFAULT_CALENDAR_NAME
    include_private: bool = False
    log_level: str = DEFAULT_LOG_LEVEL

    def require_spreadsheet_id(self) -> str:
        if not self.spreadsheet_id:
            raise ConfigError(
                "No spreadsheet id configured. Set EVENT_SPREADSHEET_ID or pass --sheet-id."
            )
        return self.spreadsheet_id


def _env_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in _TRUTHY


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """
    Build Settings from the environment.

    Empty variables count as unset. Passing a mapping instead of reading
    os.environ keeps tests independent of the real environment.
    """
    env = os.environ if environ is None else environ

    def get(name: str, default: str) -> str:
        value = (env.get(name) or "").strip()
        return value or default

    return Settings(
        spreadsheet_id=(env.get("EVENT_SPREADSHEET_ID") or "").strip() or None,
        range_name=get("EVENT_SPREADSHEET_RANGE", DEFAULT_RANGE),
        timezone=get("EVENT_SOURCE_TIMEZONE", SOURCE_TIMEZONE),
        calendar_name=get("EVENT_CALENDAR_NAME", DEFAULT_CALENDAR_NAME),
        include_private=_env_flag(env.get("EVENT_INCLUDE_PRIVATE")),
        log_level=get("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
    )
