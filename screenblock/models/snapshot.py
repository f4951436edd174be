"""Snapshot of the blocking state for status displays."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from screenblock.models.schedule import Schedule


class BlockingSnapshot(BaseModel):
    """Read-only view of the blocking state machine."""

    is_blocking: bool = Field(False, description="Blocking visuals should be shown")
    is_snoozed: bool = Field(False, description="A snooze grant is running")
    is_manual: bool = Field(False, description="The current block was started manually")
    active_schedule: Optional[Schedule] = None
    block_started_at: Optional[datetime] = None
    block_ends_at: Optional[datetime] = None
    snooze_ends_at: Optional[datetime] = None
    next_block_start: Optional[datetime] = None
    next_schedule: Optional[Schedule] = None
    time_until_next_block: Optional[str] = Field(None, description="Countdown label such as '2h 5m'")
