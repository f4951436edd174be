"""Reminder data model for screenblock."""

from datetime import datetime
from pydantic import BaseModel, Field


class Reminder(BaseModel):
    """A pending "block starting soon" notification request."""

    identifier: str = Field(..., description="Stable identifier (one pending reminder per schedule)")
    schedule_id: str = Field(..., description="Schedule this reminder announces")
    fire_at: datetime = Field(..., description="When the notification should be delivered")
    block_start: datetime = Field(..., description="Start of the announced block")
    title: str
    body: str
