"""Tests for reminder planning."""

from datetime import timedelta

from screenblock.engine.reminders import plan_reminders
from conftest import at, WEDNESDAY


class TestPlanReminders:
    def test_reminder_before_upcoming_block(self, lunch):
        reminders = plan_reminders([lunch], at(WEDNESDAY, 12, 0), lead_minutes=5)

        assert len(reminders) == 1
        reminder = reminders[0]
        assert reminder.identifier == "block-lunch"
        assert reminder.schedule_id == "lunch"
        assert reminder.fire_at == at(WEDNESDAY, 12, 55)
        assert reminder.block_start == at(WEDNESDAY, 13, 0)
        assert reminder.body == "Lunch begins in 5 minutes"

    def test_no_reminder_once_delivery_time_passed(self, lunch):
        assert plan_reminders([lunch], at(WEDNESDAY, 12, 56), lead_minutes=5) == []

    def test_zero_lead_disables_reminders(self, lunch):
        assert plan_reminders([lunch], at(WEDNESDAY, 12, 0), lead_minutes=0) == []

    def test_disabled_schedules_are_skipped(self, lunch):
        disabled = lunch.model_copy(update={"is_enabled": False})
        assert plan_reminders([disabled], at(WEDNESDAY, 12, 0), lead_minutes=5) == []

    def test_blocks_beyond_a_day_are_not_planned(self, lunch):
        friday = WEDNESDAY + timedelta(days=2)
        assert plan_reminders([lunch], at(friday, 14, 0), lead_minutes=5) == []

    def test_ordered_by_delivery_time(self, lunch, evening):
        reminders = plan_reminders([evening, lunch], at(WEDNESDAY, 12, 0), lead_minutes=10)
        assert [r.schedule_id for r in reminders] == ["lunch", "evening"]
