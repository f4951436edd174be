"""Tests for the schedule and settings repositories."""

import pytest

from screenblock.database.schedule_repository import ScheduleRepository, default_schedules
from screenblock.database.settings_repository import SettingsRepository
from screenblock.models.schedule import Schedule, Weekday


class TestScheduleRepository:
    """Test ScheduleRepository operations."""

    def test_create_and_get(self, db_session, lunch):
        repo = ScheduleRepository(db_session)
        created = repo.create(lunch)

        assert created == lunch
        assert repo.get("lunch") == lunch
        assert repo.get("missing") is None

    def test_list_preserves_creation_order(self, db_session, lunch, evening, night):
        repo = ScheduleRepository(db_session)
        for schedule in (evening, night, lunch):
            repo.create(schedule)

        assert [s.id for s in repo.list_all()] == ["evening", "night", "lunch"]

    def test_enabled_days_round_trip(self, db_session, night):
        repo = ScheduleRepository(db_session)
        repo.create(night)

        stored = repo.get("night")
        assert stored.enabled_days == [Weekday.MONDAY]
        assert stored.is_overnight

    def test_update(self, db_session, lunch):
        repo = ScheduleRepository(db_session)
        repo.create(lunch)

        changed = lunch.model_copy(update={"name": "Long Lunch", "end_hour": 15})
        updated = repo.update(changed)

        assert updated.name == "Long Lunch"
        assert repo.get("lunch").end_hour == 15

    def test_update_missing(self, db_session, lunch):
        assert ScheduleRepository(db_session).update(lunch) is None

    def test_delete(self, db_session, lunch):
        repo = ScheduleRepository(db_session)
        repo.create(lunch)

        assert repo.delete("lunch")
        assert not repo.delete("lunch")
        assert repo.list_all() == []

    def test_duplicate_id_rolls_back(self, db_session, lunch):
        repo = ScheduleRepository(db_session)
        repo.create(lunch)

        with pytest.raises(Exception):
            repo.create(lunch)
        assert len(repo.list_all()) == 1

    def test_seed_defaults_only_once(self, db_session, lunch):
        repo = ScheduleRepository(db_session)
        seeded = repo.seed_defaults()
        assert [s.name for s in seeded] == [s.name for s in default_schedules()]

        repo.seed_defaults()
        assert len(repo.list_all()) == len(seeded)

    def test_seed_skips_non_empty_table(self, db_session):
        repo = ScheduleRepository(db_session)
        repo.create(Schedule(name="Custom"))
        assert [s.name for s in repo.seed_defaults()] == ["Custom"]


class TestSettingsRepository:
    def test_lead_time_default(self, db_session):
        assert SettingsRepository(db_session).get_notification_lead_minutes() == 5

    def test_lead_time_round_trip(self, db_session):
        repo = SettingsRepository(db_session)
        repo.set_notification_lead_minutes(15)
        assert repo.get_notification_lead_minutes() == 15

        repo.set_notification_lead_minutes(0)
        assert repo.get_notification_lead_minutes() == 0

    def test_negative_lead_time_clamped(self, db_session):
        repo = SettingsRepository(db_session)
        repo.set_notification_lead_minutes(-3)
        assert repo.get_notification_lead_minutes() == 0

    def test_unparseable_value_falls_back(self, db_session):
        repo = SettingsRepository(db_session)
        repo.set("notification_lead_minutes", "soon")
        assert repo.get_notification_lead_minutes() == 5

    def test_generic_values(self, db_session):
        repo = SettingsRepository(db_session)
        assert repo.get("theme", "light") == "light"
        repo.set("theme", {"mode": "dark"})
        assert repo.get("theme") == {"mode": "dark"}
