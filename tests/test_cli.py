"""
Tests for CLI entry points.

These tests focus on:
- exit codes (0 on success, 1 on any pipeline error, 2 on usage errors)
- stdout carrying only the document, errors going to stderr
- `convert` working on a saved grid file in a temporary directory
"""

from __future__ import annotations

import io
import json
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

from sheetcal.cli import main
from sheetcal.config import Settings
from sheetcal.errors import FetchFailure
from sheetcal.model import EXPECTED_COLUMNS

HEADER = list(EXPECTED_COLUMNS)
MEETING = ["2023-09-01", "2023-09-01", "Friday", "2:00 PM", "3:00 PM", "Meeting", "Weekly sync", "", "", "", "TRUE"]
PRIVATE = ["2023-09-02", "2023-09-02", "Saturday", "10:00 AM", "11:00 AM", "Board", "", "", "", "", "FALSE"]


def _run(argv: list, settings: Settings | None = None) -> tuple:
    """
    Run main() with fixed settings, return (exit_code, stdout, stderr).
    """
    out, err = io.StringIO(), io.StringIO()
    with mock.patch("sheetcal.cli.load_settings", return_value=settings or Settings()):
        with redirect_stdout(out), redirect_stderr(err):
            try:
                main(argv)
            except SystemExit as exc:
                code = exc.code
            else:
                raise AssertionError("main() did not exit")
    return code, out.getvalue(), err.getvalue()


class TestCLI(unittest.TestCase):
    def test_command_is_required(self) -> None:
        code, _, _ = _run([])
        self.assertEqual(code, 2)

    def test_publish_without_sheet_id_fails(self) -> None:
        code, out, err = _run(["publish"])
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("Error:", err)
        self.assertIn("EVENT_SPREADSHEET_ID", err)

    def test_publish_prints_calendar(self) -> None:
        with mock.patch("sheetcal.cli.fetch_spreadsheet", return_value=[HEADER, MEETING, PRIVATE]) as fetch:
            code, out, err = _run(["publish", "--sheet-id", "abc123"])
        self.assertEqual(code, 0)
        fetch.assert_called_once_with("abc123", "Events")
        self.assertIn("BEGIN:VCALENDAR", out)
        self.assertIn("SUMMARY:Meeting", out)
        self.assertNotIn("SUMMARY:Board", out)

    def test_publish_include_private(self) -> None:
        with mock.patch("sheetcal.cli.fetch_spreadsheet", return_value=[HEADER, MEETING, PRIVATE]):
            code, out, _ = _run(["publish", "--include-private"], Settings(spreadsheet_id="abc123"))
        self.assertEqual(code, 0)
        self.assertIn("SUMMARY:Board", out)

    def test_publish_fetch_failure(self) -> None:
        with mock.patch("sheetcal.cli.fetch_spreadsheet", side_effect=FetchFailure("Sheets API returned an error")):
            code, out, err = _run(["publish"], Settings(spreadsheet_id="abc123"))
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("Error: Sheets API returned an error", err)

    def test_fetch_dumps_grid_as_json(self) -> None:
        with mock.patch("sheetcal.cli.fetch_spreadsheet", return_value=[HEADER, MEETING]):
            code, out, _ = _run(["fetch", "--range", "Sheet2"], Settings(spreadsheet_id="abc123"))
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out), [HEADER, MEETING])

    def test_convert_roundtrip_with_files(self) -> None:
        # Use a temporary directory so no real files are touched.
        with tempfile.TemporaryDirectory() as d:
            grid_path = Path(d) / "grid.json"
            grid_path.write_text(json.dumps([HEADER, MEETING]), encoding="utf-8")
            out_path = Path(d) / "events.ics"

            code, out, _ = _run(["convert", str(grid_path), "--out", str(out_path)])
            self.assertEqual(code, 0)
            self.assertEqual(out, "")
            raw = out_path.read_bytes()
            self.assertIn(b"SUMMARY:Meeting\r\n", raw)
            self.assertIn(b"DTSTART:20230901T190000Z", raw)

    def test_convert_bad_header_fails_without_output(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            grid_path = Path(d) / "grid.json"
            grid_path.write_text(json.dumps([HEADER[::-1], MEETING]), encoding="utf-8")
            code, out, err = _run(["convert", str(grid_path)])
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("Unexpected header", err)

    def test_convert_missing_file(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            code, out, err = _run(["convert", str(Path(d) / "missing.json")])
        self.assertEqual(code, 1)
        self.assertIn("Error:", err)

    def test_unknown_timezone_fails(self) -> None:
        # "America" is a directory in the zone database, not a zone
        for tz in ["Mars/Olympus", "America"]:
            with self.subTest(tz=tz):
                with tempfile.TemporaryDirectory() as d:
                    grid_path = Path(d) / "grid.json"
                    grid_path.write_text(json.dumps([HEADER, MEETING]), encoding="utf-8")
                    code, out, err = _run(["convert", str(grid_path), "--timezone", tz])
                self.assertEqual(code, 1)
                self.assertEqual(out, "")
                self.assertIn("Error: Unknown timezone", err)

    def test_untitled_public_event_fails_without_output(self) -> None:
        untitled = MEETING.copy()
        untitled[5] = ""
        with tempfile.TemporaryDirectory() as d:
            grid_path = Path(d) / "grid.json"
            grid_path.write_text(json.dumps([HEADER, MEETING, untitled]), encoding="utf-8")
            out_path = Path(d) / "events.ics"
            code, out, err = _run(["convert", str(grid_path), "--out", str(out_path)])
            self.assertFalse(out_path.exists())
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("Error: Cannot encode calendar", err)


if __name__ == "__main__":
    unittest.main()
