"""Tests for the fetch_timetable CLI argument parsing and table output."""
from datetime import date

import pytest

from scripts.fetch_timetable import _format_table, _parse_args


class TestParseArgs:
    def test_lessons(self):
        args = _parse_args(["--table", "lessons", "0100L", "--year", "2", "--week", "2026-10-21"])
        assert args.table
        assert args.command == "lessons"
        assert args.course_id == "0100L"
        assert args.year == 2
        assert args.academic_year == 0
        assert args.week == date(2026, 10, 21)

    @pytest.mark.parametrize(
        "argv",
        [
            ["--table", "lessons", "0100L"],
            ["lessons", "0100L", "--table"],
            ["buildings", "--table"],
            ["rooms", "--free-only", "--table"],
        ],
    )
    def test_table_before_or_after_command(self, argv):
        assert _parse_args(argv).table

    def test_table_defaults_off(self):
        assert not _parse_args(["courses"]).table

    def test_rooms(self):
        args = _parse_args(["rooms", "--building", "12", "--free-only"])
        assert args.date is None
        assert args.building == "12"
        assert args.free_only

    def test_bad_date(self):
        with pytest.raises(SystemExit):
            _parse_args(["rooms", "--date", "21/10/2026"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            _parse_args([])


class TestFormatTable:
    def test_aligned(self):
        table = _format_table(["Id", "Name"], [["1", "Borgo Roma"], ["12", "Ca' Vignal"]])
        assert table.splitlines() == [
            "Id | Name      ",
            "---+-----------",
            "1  | Borgo Roma",
            "12 | Ca' Vignal",
        ]

    def test_empty(self):
        assert _format_table(["Id"], []) == "(no results)"
