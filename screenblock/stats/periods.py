"""Reporting periods and duration formatting for block stats.

Periods are half-open [start, end) intervals in local wall-clock time. Offset 0 is
the period containing the reference date; negative offsets step backwards.
"""

import calendar
import os
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Tuple


def first_weekday() -> int:
    """First day of the week (0 = Monday ... 6 = Sunday).

    `SCREENBLOCK_FIRST_WEEKDAY` overrides the process calendar setting.
    """
    value = os.getenv("SCREENBLOCK_FIRST_WEEKDAY")
    if value is not None and value.strip().isdigit() and 0 <= int(value) <= 6:
        return int(value)
    return calendar.firstweekday()


def add_months(dt: datetime, months: int) -> datetime:
    """Shift by whole months, clamping the day to the target month's length."""
    index = dt.year * 12 + (dt.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


class StatsPeriod(str, Enum):
    """Stats reporting period."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    def date_range(
        self,
        reference: datetime,
        offset: int = 0,
        week_start: Optional[int] = None,
    ) -> Tuple[datetime, datetime]:
        """Return the [start, end) interval of this period, `offset` periods away from `reference`."""
        if self == StatsPeriod.DAY:
            start = start_of_day(reference) + timedelta(days=offset)
            return start, start + timedelta(days=1)

        if self == StatsPeriod.WEEK:
            if week_start is None:
                week_start = first_weekday()
            target = start_of_day(reference) + timedelta(weeks=offset)
            start = target - timedelta(days=(target.weekday() - week_start) % 7)
            return start, start + timedelta(days=7)

        if self == StatsPeriod.MONTH:
            first = start_of_day(reference).replace(day=1)
            start = add_months(first, offset)
            return start, add_months(start, 1)

        start = start_of_day(reference).replace(year=reference.year + offset, month=1, day=1)
        return start, start.replace(year=start.year + 1)

    def format_label(self, reference: datetime, offset: int = 0, week_start: Optional[int] = None) -> str:
        """Human-readable label for the period, e.g. 'Today' or 'March 2025'."""
        start, end = self.date_range(reference, offset, week_start)

        if self == StatsPeriod.DAY:
            if offset == 0:
                return "Today"
            if offset == -1:
                return "Yesterday"
            return f"{start:%b} {start.day}, {start.year}"

        if self == StatsPeriod.WEEK:
            if offset == 0:
                return "This Week"
            last = end - timedelta(days=1)
            return f"{start:%b} {start.day} - {last:%b} {last.day}"

        if self == StatsPeriod.MONTH:
            if offset == 0:
                return "This Month"
            return f"{start:%B %Y}"

        if offset == 0:
            return "This Year"
        return str(start.year)


def format_duration(seconds: float) -> str:
    """Format a duration as '1h 5m' or '5m'."""
    total_minutes = int(seconds) // 60
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_countdown(target: Optional[datetime], now: datetime) -> Optional[str]:
    """Countdown label until `target`, or None when it is not in the future."""
    if target is None:
        return None
    interval = (target - now).total_seconds()
    if interval <= 0:
        return None
    return format_duration(interval)
