"""Pytest fixtures and configuration for screenblock tests."""

import pytest
from datetime import datetime, timedelta
from typing import List
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from screenblock.database.database import Base
from screenblock.engine.blocking import BlockingStateMachine
from screenblock.models.reminder import Reminder
from screenblock.models.schedule import Schedule, Weekday, WORKDAYS
from screenblock.stats.ledger import StatsLedger


# 2024-01-01 is a Monday.
MONDAY = datetime(2024, 1, 1)
WEDNESDAY = datetime(2024, 1, 3)
SATURDAY = datetime(2024, 1, 6)

TEST_DATABASE_URL = "sqlite:///:memory:"


def at(day: datetime, hour: int, minute: int = 0, second: int = 0) -> datetime:
    """Wall-clock time on `day`."""
    return day.replace(hour=hour, minute=minute, second=second, microsecond=0)


class FakeClock:
    """Settable clock for components that read the time themselves."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingRenderer:
    """Records show/hide directives in order."""

    def __init__(self):
        self.calls: List[str] = []

    def show(self) -> None:
        self.calls.append("show")

    def hide(self) -> None:
        self.calls.append("hide")


class RecordingNotifier:
    def __init__(self):
        self.batches: List[List[Reminder]] = []

    def replace_pending(self, reminders: List[Reminder]) -> None:
        self.batches.append(list(reminders))

    @property
    def pending(self) -> List[Reminder]:
        return self.batches[-1] if self.batches else []


@pytest.fixture
def clock():
    return FakeClock(at(WEDNESDAY, 12, 0))


@pytest.fixture
def stats_dir(tmp_path):
    return tmp_path / "stats"


@pytest.fixture
def ledger(stats_dir, clock):
    return StatsLedger(stats_dir, clock=clock)


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def lunch():
    """Lunch 13:00-14:00 on weekdays."""
    return Schedule(
        id="lunch",
        name="Lunch",
        start_hour=13,
        start_minute=0,
        end_hour=14,
        end_minute=0,
        enabled_days=list(WORKDAYS),
    )


@pytest.fixture
def evening():
    """Evening 18:00-20:00 every day."""
    return Schedule(id="evening", name="Evening", start_hour=18, end_hour=20, end_minute=0)


@pytest.fixture
def night():
    """Overnight 22:00-02:00, Mondays only."""
    return Schedule(
        id="night",
        name="Night",
        start_hour=22,
        start_minute=0,
        end_hour=2,
        end_minute=0,
        enabled_days=[Weekday.MONDAY],
    )


@pytest.fixture
def machine(ledger, renderer, notifier, lunch, clock):
    return BlockingStateMachine(
        ledger=ledger,
        renderer=renderer,
        notifier=notifier,
        schedules=[lunch],
        clock=clock,
    )


@pytest.fixture(scope="function")
def db_session():
    """In-memory SQLite session, created fresh for each test."""
    from screenblock.database import models  # noqa: F401

    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def test_client(db_session: Session, machine):
    """FastAPI test client with an in-memory database and a pre-built state machine."""
    from screenblock.api.app import create_app
    from screenblock.database.database import get_db
    from screenblock.database.schedule_repository import ScheduleRepository

    for schedule in machine.schedules:
        ScheduleRepository(db_session).create(schedule)

    app = create_app(machine=machine, run_ticker=False)

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
