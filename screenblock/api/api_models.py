"""Request/response models for the screenblock API."""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from screenblock.models.block_session import BlockSession, BlockTotals
from screenblock.models.constants import DEFAULT_SNOOZE_MINUTES
from screenblock.models.schedule import Weekday


class SnoozeRequest(BaseModel):
    minutes: int = Field(DEFAULT_SNOOZE_MINUTES, ge=1, le=24 * 60, description="Snooze length in minutes")


class ManualBlockRequest(BaseModel):
    schedule_id: str = Field(..., description="Schedule to block for")


class ScheduleInput(BaseModel):
    """Editable schedule fields (id is assigned by the server on create)."""
    name: str = Field("New Block", min_length=1)
    message: str = ""
    start_hour: int = Field(9, ge=0, le=23)
    start_minute: int = Field(0, ge=0, le=59)
    end_hour: int = Field(9, ge=0, le=23)
    end_minute: int = Field(30, ge=0, le=59)
    enabled_days: List[Weekday] = Field(default_factory=lambda: list(Weekday))
    is_enabled: bool = True


class NotificationLeadTime(BaseModel):
    minutes: int = Field(..., ge=0, le=24 * 60)


class TotalsResponse(BaseModel):
    period: str
    offset: int
    label: str
    start: datetime
    end: datetime
    active: float
    snoozed: float
    sleeping: float
    total: float
    active_display: str
    total_display: str

    @classmethod
    def from_totals(cls, totals: BlockTotals, **kwargs) -> "TotalsResponse":
        from screenblock.stats.periods import format_duration
        return cls(
            active=totals.active,
            snoozed=totals.snoozed,
            sleeping=totals.sleeping,
            total=totals.total,
            active_display=format_duration(totals.active),
            total_display=format_duration(totals.total),
            **kwargs,
        )


class SessionSummary(BaseModel):
    session: BlockSession
    active_seconds: float
    end_reason: Optional[str] = None


class SessionsResponse(BaseModel):
    period: str
    offset: int
    label: str
    sessions: List[SessionSummary]
