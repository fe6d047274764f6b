"""Tests for dates.py – academic calendar helpers."""
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from src.orari.dates import (
    academic_year_label,
    academic_year_week_bounds,
    current_academic_year,
    default_week_start,
    format_api_date,
    monday,
    to_day,
)

ROME = ZoneInfo("Europe/Rome")


class TestCurrentAcademicYear:
    @pytest.mark.parametrize(
        "reference, expected",
        [
            (date(2025, 7, 31), 2024),
            (date(2025, 8, 1), 2025),
            (date(2025, 12, 31), 2025),
            (date(2026, 1, 15), 2025),
        ],
    )
    def test_starts_in_august(self, reference, expected):
        assert current_academic_year(reference) == expected


class TestLabelsAndWeeks:
    def test_label(self):
        assert academic_year_label(2025) == "2025/26"
        assert academic_year_label(2099) == "2099/00"

    def test_monday(self):
        assert monday(date(2025, 10, 15)) == date(2025, 10, 13)
        assert monday(date(2025, 10, 13)) == date(2025, 10, 13)
        assert monday(date(2025, 10, 19)) == date(2025, 10, 13)

    def test_week_bounds(self):
        # 1 August 2025 and 31 July 2026 are both Fridays
        assert academic_year_week_bounds(2025) == (date(2025, 7, 28), date(2026, 7, 27))

    def test_default_week_inside_year(self):
        assert default_week_start(2025, date(2025, 10, 15)) == date(2025, 10, 13)

    def test_default_week_outside_year(self):
        assert default_week_start(2025, date(2027, 3, 1)) == date(2025, 7, 28)


class TestApiDate:
    def test_date(self):
        assert format_api_date(date(2025, 3, 5)) == "2025-03-05"

    def test_aware_datetime_uses_local_day(self):
        late_utc = datetime(2025, 10, 12, 23, 30, tzinfo=timezone.utc)
        assert to_day(late_utc, ROME) == date(2025, 10, 13)

    def test_naive_datetime_kept(self):
        assert to_day(datetime(2025, 10, 12, 23, 30)) == date(2025, 10, 12)
