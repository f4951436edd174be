"""Reminder notification collaborators."""

import logging
from typing import List, Protocol

from screenblock.models.reminder import Reminder

logger = logging.getLogger(__name__)


class ReminderNotifier(Protocol):
    def replace_pending(self, reminders: List[Reminder]) -> None:
        """Drop all pending reminders and schedule `reminders` instead."""
        ...


class LoggingNotifier:
    """Keeps the pending set in memory and logs it."""

    def __init__(self):
        self.pending: List[Reminder] = []

    def replace_pending(self, reminders: List[Reminder]) -> None:
        self.pending = list(reminders)
        for reminder in self.pending:
            logger.info(f"Reminder '{reminder.body}' at {reminder.fire_at:%H:%M}")
