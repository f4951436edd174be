"""Tests for stats reporting periods and duration formatting."""

import pytest
from datetime import datetime, timedelta

from screenblock.stats.periods import StatsPeriod, add_months, format_countdown, format_duration
from conftest import at, MONDAY, WEDNESDAY


class TestDateRange:
    def test_day_range_is_half_open_midnight_to_midnight(self):
        start, end = StatsPeriod.DAY.date_range(at(WEDNESDAY, 15, 30))
        assert start == at(WEDNESDAY, 0)
        assert end == at(WEDNESDAY + timedelta(days=1), 0)

    def test_negative_offset_steps_back(self):
        start, end = StatsPeriod.DAY.date_range(at(WEDNESDAY, 15, 30), offset=-2)
        assert start == at(MONDAY, 0)
        assert end == at(MONDAY + timedelta(days=1), 0)

    def test_week_starting_monday(self):
        start, end = StatsPeriod.WEEK.date_range(at(WEDNESDAY, 9), week_start=0)
        assert start == at(MONDAY, 0)
        assert end == at(MONDAY + timedelta(days=7), 0)

    def test_week_starting_sunday(self):
        start, end = StatsPeriod.WEEK.date_range(at(WEDNESDAY, 9), week_start=6)
        assert start == at(MONDAY - timedelta(days=1), 0)
        assert end - start == timedelta(days=7)

    def test_week_start_from_environment(self, monkeypatch):
        monkeypatch.setenv("SCREENBLOCK_FIRST_WEEKDAY", "6")
        start, _ = StatsPeriod.WEEK.date_range(at(WEDNESDAY, 9))
        assert start.weekday() == 6

    def test_previous_month_crosses_year(self):
        start, end = StatsPeriod.MONTH.date_range(at(WEDNESDAY, 9), offset=-1)
        assert start == datetime(2023, 12, 1)
        assert end == datetime(2024, 1, 1)

    def test_year_range(self):
        start, end = StatsPeriod.YEAR.date_range(at(WEDNESDAY, 9), offset=-1)
        assert start == datetime(2023, 1, 1)
        assert end == datetime(2024, 1, 1)


class TestLabels:
    @pytest.mark.parametrize(
        "period,offset,expected",
        [
            (StatsPeriod.DAY, 0, "Today"),
            (StatsPeriod.DAY, -1, "Yesterday"),
            (StatsPeriod.DAY, -2, "Jan 1, 2024"),
            (StatsPeriod.WEEK, 0, "This Week"),
            (StatsPeriod.WEEK, -1, "Dec 25 - Dec 31"),
            (StatsPeriod.MONTH, 0, "This Month"),
            (StatsPeriod.MONTH, -1, "December 2023"),
            (StatsPeriod.YEAR, 0, "This Year"),
            (StatsPeriod.YEAR, -1, "2023"),
        ],
    )
    def test_format_label(self, period, offset, expected):
        assert period.format_label(at(WEDNESDAY, 9), offset, week_start=0) == expected


class TestHelpers:
    def test_add_months_clamps_day(self):
        assert add_months(datetime(2024, 1, 31), 1) == datetime(2024, 2, 29)
        assert add_months(datetime(2024, 3, 31), -1) == datetime(2024, 2, 29)
        assert add_months(datetime(2024, 1, 15), -13) == datetime(2022, 12, 15)

    def test_format_duration(self):
        assert format_duration(0) == "0m"
        assert format_duration(59) == "0m"
        assert format_duration(5 * 60) == "5m"
        assert format_duration(3600 + 5 * 60) == "1h 5m"

    def test_format_countdown(self):
        now = at(WEDNESDAY, 11, 0)
        assert format_countdown(at(WEDNESDAY, 13, 5), now) == "2h 5m"
        assert format_countdown(at(WEDNESDAY, 11, 0), now) is None
        assert format_countdown(None, now) is None
