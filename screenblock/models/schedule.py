"""Schedule data model for screenblock."""

import uuid
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from screenblock.models.constants import DEFAULT_BLOCK_DURATION_MINUTES, NEXT_START_SEARCH_DAYS


class Weekday(int, Enum):
    """Weekday enumeration (Sunday=1 ... Saturday=7)."""
    SUNDAY = 1
    MONDAY = 2
    TUESDAY = 3
    WEDNESDAY = 4
    THURSDAY = 5
    FRIDAY = 6
    SATURDAY = 7

    @classmethod
    def from_date(cls, d: date) -> "Weekday":
        # isoweekday: Monday=1 ... Sunday=7
        return cls(d.isoweekday() % 7 + 1)


ALL_WEEKDAYS = list(Weekday)
WORKDAYS = [Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY, Weekday.THURSDAY, Weekday.FRIDAY]


class Schedule(BaseModel):
    """Schedule represents one recurring screen block window."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique schedule identifier")
    name: str = Field("New Block", description="Display name")
    message: str = Field("", description="Optional message shown while blocking")
    start_hour: int = Field(9, ge=0, le=23)
    start_minute: int = Field(0, ge=0, le=59)
    end_hour: int = Field(9, ge=0, le=23)
    end_minute: int = Field(30, ge=0, le=59)
    enabled_days: List[Weekday] = Field(
        default_factory=lambda: list(ALL_WEEKDAYS),
        description="Weekdays on which the block starts (may be empty)",
    )
    is_enabled: bool = Field(True, description="Whether the schedule is enabled")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True

    @field_validator("message", mode="before")
    @classmethod
    def _validate_message(cls, v):
        # Older stored data has no message.
        return "" if v is None else v

    @field_validator("enabled_days")
    @classmethod
    def _validate_enabled_days(cls, v):
        # Deduplicate but preserve order
        seen = set()
        out: List[Weekday] = []
        for day in v:
            if day not in seen:
                seen.add(day)
                out.append(day)
        return out

    @property
    def start_minutes(self) -> int:
        return self.start_hour * 60 + self.start_minute

    @property
    def end_minutes(self) -> int:
        return self.end_hour * 60 + self.end_minute

    @property
    def is_overnight(self) -> bool:
        """True when the window wraps past midnight (end <= start)."""
        return self.end_minutes <= self.start_minutes

    @property
    def duration_minutes(self) -> int:
        if self.end_minutes > self.start_minutes:
            return self.end_minutes - self.start_minutes
        if self.end_minutes < self.start_minutes:
            return (24 * 60 - self.start_minutes) + self.end_minutes
        return DEFAULT_BLOCK_DURATION_MINUTES

    @property
    def start_time_string(self) -> str:
        return f"{self.start_hour}:{self.start_minute:02d}"

    @property
    def end_time_string(self) -> str:
        return f"{self.end_hour}:{self.end_minute:02d}"

    def is_enabled_on(self, d: date) -> bool:
        return Weekday.from_date(d) in self.enabled_days

    def start_on(self, d: date) -> datetime:
        return datetime.combine(d, time(self.start_hour, self.start_minute))

    def is_active(self, at: Optional[datetime] = None) -> bool:
        """Check if the schedule is active at the given time.

        Overnight windows (end <= start) have two regions: the part after the start,
        gated on today's weekday, and the part before the end, gated on yesterday's
        weekday. A 22:00-02:00 block enabled on Monday therefore stays active after
        midnight into Tuesday even when Tuesday itself is disabled.
        """
        if not self.is_enabled:
            return False
        if at is None:
            at = datetime.now()

        current = at.hour * 60 + at.minute

        if self.is_overnight:
            if current >= self.start_minutes:
                return self.is_enabled_on(at.date())
            if current < self.end_minutes:
                return self.is_enabled_on(at.date() - timedelta(days=1))
            return False

        if not self.is_enabled_on(at.date()):
            return False
        return self.start_minutes <= current < self.end_minutes

    def occurrence_start(self, at: datetime) -> datetime:
        """Start of the occurrence covering `at` (yesterday's start after midnight for overnight windows)."""
        current = at.hour * 60 + at.minute
        if self.is_overnight and current < self.start_minutes:
            return self.start_on(at.date() - timedelta(days=1))
        return self.start_on(at.date())

    def natural_end(self, at: datetime) -> datetime:
        """End of the occurrence covering `at`, before any snooze extension."""
        return self.occurrence_start(at) + timedelta(minutes=self.duration_minutes)

    def next_start(self, after: Optional[datetime] = None) -> Optional[datetime]:
        """Return the next start of this schedule strictly after `after`.

        Returns None for disabled schedules, or when no enabled day exists within
        the search horizon.
        """
        if not self.is_enabled:
            return None
        if after is None:
            after = datetime.now()

        today = after.date()
        if self.is_enabled_on(today):
            today_start = self.start_on(today)
            if today_start > after:
                return today_start

        for offset in range(1, NEXT_START_SEARCH_DAYS + 1):
            day = today + timedelta(days=offset)
            if self.is_enabled_on(day):
                return self.start_on(day)
        return None
