"""Repository for application settings."""

import logging
from typing import Any

from sqlalchemy.orm import Session

from screenblock.database.models import AppSettingDB
from screenblock.models.constants import DEFAULT_NOTIFICATION_LEAD_MINUTES

logger = logging.getLogger(__name__)

NOTIFICATION_LEAD_TIME_KEY = "notification_lead_minutes"


class SettingsRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str, default: Any = None) -> Any:
        row = self.db.query(AppSettingDB).filter(AppSettingDB.key == key).first()
        if row is None or row.value is None:
            return default
        return row.value

    def set(self, key: str, value: Any) -> None:
        row = self.db.query(AppSettingDB).filter(AppSettingDB.key == key).first()
        if row is None:
            row = AppSettingDB(key=key, value=value)
            self.db.add(row)
        else:
            row.value = value
        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to save setting {key}: {type(e).__name__}: {str(e)}")
            raise

    def get_notification_lead_minutes(self) -> int:
        value = self.get(NOTIFICATION_LEAD_TIME_KEY, DEFAULT_NOTIFICATION_LEAD_MINUTES)
        try:
            return max(0, int(value))
        except (TypeError, ValueError):
            return DEFAULT_NOTIFICATION_LEAD_MINUTES

    def set_notification_lead_minutes(self, minutes: int) -> None:
        self.set(NOTIFICATION_LEAD_TIME_KEY, max(0, int(minutes)))
