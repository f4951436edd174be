"""SQLAlchemy database models for screenblock."""

from datetime import datetime
import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime, JSON

from screenblock.database.database import Base


class ScheduleDB(Base):
    """Database model for Schedule."""

    __tablename__ = "schedules"

    # Primary key
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # Display
    name = Column(String, nullable=False)
    message = Column(String, nullable=True)

    # Window (local wall-clock time; may span midnight if end <= start)
    start_hour = Column(Integer, nullable=False)
    start_minute = Column(Integer, nullable=False)
    end_hour = Column(Integer, nullable=False)
    end_minute = Column(Integer, nullable=False)

    # Weekday numbers, Sunday=1 ... Saturday=7
    enabled_days = Column(JSON, nullable=False, default=list)
    is_enabled = Column(Boolean, nullable=False, default=True)

    # Ordering
    position = Column(Integer, nullable=False, default=0, index=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from screenblock.models.schedule import Schedule
        return Schedule(
            id=self.id,
            name=self.name,
            message=self.message or "",
            start_hour=self.start_hour,
            start_minute=self.start_minute,
            end_hour=self.end_hour,
            end_minute=self.end_minute,
            enabled_days=list(self.enabled_days or []),
            is_enabled=self.is_enabled,
        )

    @classmethod
    def from_pydantic(cls, schedule, position: int = 0):
        """Create database model from Pydantic model."""
        return cls(
            id=schedule.id,
            name=schedule.name,
            message=schedule.message,
            start_hour=schedule.start_hour,
            start_minute=schedule.start_minute,
            end_hour=schedule.end_hour,
            end_minute=schedule.end_minute,
            enabled_days=[int(day) for day in schedule.enabled_days],
            is_enabled=schedule.is_enabled,
            position=position,
        )

    def apply(self, schedule) -> None:
        """Copy editable fields from a Pydantic schedule."""
        self.name = schedule.name
        self.message = schedule.message
        self.start_hour = schedule.start_hour
        self.start_minute = schedule.start_minute
        self.end_hour = schedule.end_hour
        self.end_minute = schedule.end_minute
        self.enabled_days = [int(day) for day in schedule.enabled_days]
        self.is_enabled = schedule.is_enabled


class AppSettingDB(Base):
    """Key/value application settings."""

    __tablename__ = "app_settings"

    key = Column(String, primary_key=True)
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
