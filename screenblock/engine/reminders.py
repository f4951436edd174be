"""Reminder planning: "block starting soon" notifications for the next 24 hours."""

from datetime import datetime, timedelta
from typing import Iterable, List

from screenblock.models.constants import REMINDER_HORIZON_HOURS
from screenblock.models.reminder import Reminder
from screenblock.models.schedule import Schedule


def reminder_identifier(schedule: Schedule) -> str:
    return f"block-{schedule.id}"


def plan_reminders(schedules: Iterable[Schedule], now: datetime, lead_minutes: int) -> List[Reminder]:
    """Plan one reminder per enabled schedule starting within the horizon.

    A reminder is planned only if its delivery time (start minus lead) is still in the
    future. A lead of zero disables reminders entirely.

    Args:
        schedules: Current schedule working set
        now: Planning time
        lead_minutes: How long before the block starts to notify

    Returns:
        Reminders ordered by delivery time
    """
    if lead_minutes <= 0:
        return []

    horizon = timedelta(hours=REMINDER_HORIZON_HOURS)
    lead = timedelta(minutes=lead_minutes)
    reminders: List[Reminder] = []

    for schedule in schedules:
        if not schedule.is_enabled:
            continue
        next_start = schedule.next_start(now)
        if next_start is None:
            continue
        fire_at = next_start - lead
        if fire_at <= now or next_start - now >= horizon:
            continue
        reminders.append(
            Reminder(
                identifier=reminder_identifier(schedule),
                schedule_id=schedule.id,
                fire_at=fire_at,
                block_start=next_start,
                title="Screen Block Starting Soon",
                body=f"{schedule.name} begins in {lead_minutes} minutes",
            )
        )

    reminders.sort(key=lambda r: (r.fire_at, r.identifier))
    return reminders
