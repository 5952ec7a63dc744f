"""
CLI (Command Line Interface).

    sheetcal publish [--include-private] [--out FILE]
    sheetcal fetch [--out grid.json]
    sheetcal convert <grid.json> [--include-private] [--out FILE]

`publish` is what the scheduled job runs: it reads the spreadsheet and
prints the calendar to stdout. `fetch` and `convert` split that in two,
which is handy for looking at what the sheet actually contains.

Every option falls back to an environment variable (see sheetcal.config).

Note:
- stdout carries only the calendar (or the JSON grid); log messages and
  errors go to stderr
- any failure exits with status 1 and an "Error: ..." line
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Callable, List

from sheetcal.config import Settings, load_settings
from sheetcal.errors import FetchFailure, SheetCalError
from sheetcal.pipeline import PipelineResult, run
from sheetcal.sheets import fetch_spreadsheet

logger = logging.getLogger(__name__)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _error(exc: BaseException) -> int:
    print(f"Error: {exc}", file=sys.stderr)
    return 1


def _emit(text: str, out: str | None) -> None:
    """
    Write text to the --out file, or to stdout when no file is given.
    """
    if not out:
        sys.stdout.write(text)
        sys.stdout.flush()
        return
    path = Path(out)
    path.parent.mkdir(parents=True, exist_ok=True)
    # newline="" keeps the CRLFs of the calendar as they are
    with path.open("w", encoding="utf-8", newline="") as fh:
        fh.write(text)


def _apply_overrides(args: argparse.Namespace, settings: Settings) -> Settings:
    """
    Command-line options win over environment values.
    """
    if getattr(args, "sheet_id", None):
        settings.spreadsheet_id = args.sheet_id
    if getattr(args, "range", None):
        settings.range_name = args.range
    if getattr(args, "timezone", None):
        settings.timezone = args.timezone
    if getattr(args, "calendar_name", None):
        settings.calendar_name = args.calendar_name
    if getattr(args, "include_private", False):
        settings.include_private = True
    return settings


def _load_grid(path: Path) -> List[List[str]]:
    """
    Load a grid saved by `sheetcal fetch`.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise FetchFailure(f"Could not read grid file {str(path)!r}: {exc}") from exc

    if not isinstance(data, list) or not all(isinstance(row, list) for row in data):
        raise FetchFailure(f"Grid file {str(path)!r} is not a list of rows")
    return [["" if cell is None else str(cell) for cell in row] for row in data]


def _finish(result: PipelineResult, out: str | None) -> int:
    if not result.ok:
        assert result.error is not None
        return _error(result.error)
    assert result.document is not None
    try:
        _emit(result.document, out)
    except OSError as exc:
        return _error(exc)
    logger.info("Wrote calendar with %d events", result.event_count)
    return 0


def _convert(fetch: Callable[[], List[List[str]]], settings: Settings, out: str | None) -> int:
    result = run(
        fetch,
        include_private=settings.include_private,
        tz=settings.timezone,
        calendar_name=settings.calendar_name,
    )
    return _finish(result, out)


def _cmd_publish(args: argparse.Namespace, settings: Settings) -> int:
    """
    Fetch the spreadsheet and write the calendar.
    """
    try:
        sheet_id = settings.require_spreadsheet_id()
    except SheetCalError as exc:
        return _error(exc)

    def fetch() -> List[List[str]]:
        return fetch_spreadsheet(sheet_id, settings.range_name)

    return _convert(fetch, settings, args.out)


def _cmd_fetch(args: argparse.Namespace, settings: Settings) -> int:
    """
    Dump the raw spreadsheet grid as JSON.
    """
    try:
        grid = fetch_spreadsheet(settings.require_spreadsheet_id(), settings.range_name)
    except SheetCalError as exc:
        return _error(exc)

    try:
        _emit(json.dumps(grid, ensure_ascii=False, indent=2) + "\n", args.out)
    except OSError as exc:
        return _error(exc)
    return 0


def _cmd_convert(args: argparse.Namespace, settings: Settings) -> int:
    """
    Convert a grid saved by `fetch` without touching the network.
    """
    grid_path = Path(args.grid)
    return _convert(lambda: _load_grid(grid_path), settings, args.out)


def _add_source_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--sheet-id", type=str, help="Spreadsheet ID (default: $EVENT_SPREADSHEET_ID)")
    p.add_argument("--range", type=str, help="Sheet range to read (default: $EVENT_SPREADSHEET_RANGE or 'Events')")


def _add_calendar_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--include-private", action="store_true", help="Also publish events not marked Public")
    p.add_argument("--timezone", type=str, help="Timezone of the sheet's dates/times (default: America/Chicago)")
    p.add_argument("--calendar-name", type=str, help="Calendar name shown by clients (default: 'ACM Events')")


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="sheetcal", description="Publish a spreadsheet of events as iCalendar")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    p_publish = sub.add_parser("publish", help="Fetch the spreadsheet and print the calendar")
    _add_source_options(p_publish)
    _add_calendar_options(p_publish)
    p_publish.add_argument("--out", type=str, help="Write to this file instead of stdout")

    p_fetch = sub.add_parser("fetch", help="Print the raw spreadsheet grid as JSON")
    _add_source_options(p_fetch)
    p_fetch.add_argument("--out", type=str, help="Write to this file instead of stdout")

    p_convert = sub.add_parser("convert", help="Convert a saved grid (from 'fetch') to a calendar")
    p_convert.add_argument("grid", type=str, help="Path to grid JSON file")
    _add_calendar_options(p_convert)
    p_convert.add_argument("--out", type=str, help="Write to this file instead of stdout")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = _apply_overrides(args, load_settings())
    _setup_logging("INFO" if args.verbose else settings.log_level)

    handlers: dict[str, Callable[[argparse.Namespace, Settings], int]] = {
        "publish": _cmd_publish,
        "fetch": _cmd_fetch,
        "convert": _cmd_convert,
    }
    raise SystemExit(handlers[args.command](args, settings))
