"""Repository for Schedule database operations."""

import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from screenblock.database.models import ScheduleDB
from screenblock.models.schedule import Schedule, WORKDAYS

logger = logging.getLogger(__name__)


def default_schedules() -> List[Schedule]:
    """Schedules seeded on first run."""
    return [
        Schedule(
            name="Morning Break",
            start_hour=10,
            start_minute=30,
            end_hour=10,
            end_minute=45,
            enabled_days=list(WORKDAYS),
        ),
        Schedule(
            name="Lunch",
            start_hour=13,
            start_minute=0,
            end_hour=14,
            end_minute=0,
            enabled_days=list(WORKDAYS),
        ),
    ]


class ScheduleRepository:
    """Repository for Schedule database operations."""

    def __init__(self, db: Session):
        self.db = db

    def list_all(self) -> List[Schedule]:
        """All schedules in display order."""
        rows = self.db.query(ScheduleDB).order_by(ScheduleDB.position, ScheduleDB.created_at).all()
        return [row.to_pydantic() for row in rows]

    def get(self, schedule_id: str) -> Optional[Schedule]:
        row = self.db.query(ScheduleDB).filter(ScheduleDB.id == schedule_id).first()
        return row.to_pydantic() if row else None

    def create(self, schedule: Schedule) -> Schedule:
        """Append a schedule at the end of the list."""
        max_position = self.db.query(func.max(ScheduleDB.position)).scalar()
        position = 0 if max_position is None else max_position + 1
        try:
            row = ScheduleDB.from_pydantic(schedule, position=position)
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Created schedule {schedule.id}: {schedule.name[:50]}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create schedule {schedule.id}: {type(e).__name__}: {str(e)}")
            raise

    def update(self, schedule: Schedule) -> Optional[Schedule]:
        """Replace a schedule in place. Returns None if it does not exist."""
        row = self.db.query(ScheduleDB).filter(ScheduleDB.id == schedule.id).first()
        if row is None:
            return None
        row.apply(schedule)
        try:
            self.db.commit()
            self.db.refresh(row)
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update schedule {schedule.id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, schedule_id: str) -> bool:
        row = self.db.query(ScheduleDB).filter(ScheduleDB.id == schedule_id).first()
        if row is None:
            return False
        try:
            self.db.delete(row)
            self.db.commit()
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete schedule {schedule_id}: {type(e).__name__}: {str(e)}")
            raise

    def seed_defaults(self) -> List[Schedule]:
        """Create the default schedules if the table is empty. Returns all schedules."""
        if self.db.query(ScheduleDB).count() == 0:
            for schedule in default_schedules():
                self.create(schedule)
            logger.info("Seeded default schedules")
        return self.list_all()
