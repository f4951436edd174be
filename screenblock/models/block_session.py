"""BlockSession data model for screenblock.

A session is an append-only sequence of state events for one blocking occurrence.
The JSON field names are camelCase so the month files stay readable by other tools.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class BlockState(str, Enum):
    """Block state enumeration."""
    ACTIVE = "active"      # Overlay shown, user blocked
    SNOOZED = "snoozed"    # User postponed, overlay hidden temporarily
    SLEEPING = "sleeping"  # System asleep during the block
    ENDED = "ended"        # Session closed


class EndReason(str, Enum):
    """Why a session ended."""
    COMPLETED = "completed"  # Natural end of block
    EXITED = "exited"        # User exited early
    CANCELLED = "cancelled"  # Schedule deleted or disabled mid-block
    ERROR = "error"          # Recovered after abnormal termination


class BlockEvent(BaseModel):
    """One state transition inside a session."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=datetime.now)
    state: BlockState
    end_reason: Optional[EndReason] = Field(None, description="Only meaningful when state == ended")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
        alias_generator = to_camel
        populate_by_name = True


class BlockSession(BaseModel):
    """BlockSession records how one block was spent."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    schedule_name: str = Field(..., description="Schedule name at the time the block started")
    schedule_id: Optional[str] = Field(None, description="Originating schedule (null if since deleted)")
    created_at: datetime = Field(default_factory=datetime.now)
    last_updated_at: datetime = Field(default_factory=datetime.now)
    events: List[BlockEvent] = Field(default_factory=list)

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
        alias_generator = to_camel
        populate_by_name = True

    @classmethod
    def open(cls, schedule_name: str, schedule_id: Optional[str], at: datetime) -> "BlockSession":
        """Create a session whose first event is active."""
        return cls(
            schedule_name=schedule_name,
            schedule_id=schedule_id,
            created_at=at,
            last_updated_at=at,
            events=[BlockEvent(timestamp=at, state=BlockState.ACTIVE)],
        )

    @property
    def current_state(self) -> BlockState:
        if not self.events:
            return BlockState.ENDED
        return BlockState(self.events[-1].state)

    @property
    def is_open(self) -> bool:
        return self.current_state != BlockState.ENDED

    @property
    def end_reason(self) -> Optional[EndReason]:
        for event in reversed(self.events):
            if event.state == BlockState.ENDED:
                return EndReason(event.end_reason) if event.end_reason else None
        return None

    @property
    def ended_at(self) -> Optional[datetime]:
        if self.events and self.events[-1].state == BlockState.ENDED:
            return self.events[-1].timestamp
        return None

    @property
    def last_timestamp(self) -> datetime:
        return self.events[-1].timestamp if self.events else self.created_at

    def append_event(self, state: BlockState, at: datetime, end_reason: Optional[EndReason] = None) -> BlockEvent:
        """Append an event, never moving the timeline backwards."""
        timestamp = max(at, self.last_timestamp)
        event = BlockEvent(timestamp=timestamp, state=state, end_reason=end_reason)
        self.events.append(event)
        self.last_updated_at = timestamp
        return event


class BlockTotals(BaseModel):
    """Time spent per state over a reporting period, in seconds."""

    active: float = 0.0
    snoozed: float = 0.0
    sleeping: float = 0.0

    @property
    def total(self) -> float:
        return self.active + self.snoozed + self.sleeping

    def add(self, other: "BlockTotals") -> None:
        self.active += other.active
        self.snoozed += other.snoozed
        self.sleeping += other.sleeping
