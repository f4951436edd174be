"""FastAPI control and reporting API for screenblock.

Every endpoint is `async` so it runs on the same event loop as the tick loop; the
blocking state machine therefore only ever sees serial calls.
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session

from screenblock.api.api_models import (
    ManualBlockRequest,
    NotificationLeadTime,
    ScheduleInput,
    SessionSummary,
    SessionsResponse,
    SnoozeRequest,
    TotalsResponse,
)
from screenblock.database.database import SessionLocal, get_db, init_db
from screenblock.database.schedule_repository import ScheduleRepository
from screenblock.database.settings_repository import SettingsRepository
from screenblock.engine.blocking import BlockingStateMachine
from screenblock.engine.ticker import TickLoop
from screenblock.integrations.notifier import LoggingNotifier
from screenblock.integrations.overlay import build_overlay
from screenblock.models.constants import TICK_INTERVAL_SECONDS, WAKE_GAP_SECONDS
from screenblock.models.schedule import Schedule
from screenblock.models.snapshot import BlockingSnapshot
from screenblock.stats.ledger import StatsLedger, session_totals
from screenblock.stats.periods import StatsPeriod

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def build_state_machine() -> BlockingStateMachine:
    """Wire the state machine from the settings database and environment."""
    db = SessionLocal()
    try:
        schedules = ScheduleRepository(db).seed_defaults()
        lead_minutes = SettingsRepository(db).get_notification_lead_minutes()
    finally:
        db.close()

    ledger = StatsLedger()
    return BlockingStateMachine(
        ledger=ledger,
        renderer=build_overlay(),
        notifier=LoggingNotifier(),
        schedules=schedules,
        notification_lead_minutes=lead_minutes,
    )


def get_machine(request: Request) -> BlockingStateMachine:
    return request.app.state.machine


router = APIRouter()


@router.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": VERSION}


@router.get("/status", response_model=BlockingSnapshot)
async def get_status(machine: BlockingStateMachine = Depends(get_machine)):
    """Current blocking state."""
    return machine.snapshot()


# Blocking operations

@router.post("/snooze", response_model=BlockingSnapshot)
async def snooze(body: SnoozeRequest, machine: BlockingStateMachine = Depends(get_machine)):
    if not machine.snooze(body.minutes):
        raise HTTPException(status_code=409, detail="Nothing is blocking")
    return machine.snapshot()


@router.post("/manual-block", response_model=BlockingSnapshot)
async def start_manual_block(body: ManualBlockRequest, machine: BlockingStateMachine = Depends(get_machine)):
    schedule = next((s for s in machine.schedules if s.id == body.schedule_id), None)
    if schedule is None:
        raise HTTPException(status_code=404, detail="Schedule not found")
    machine.start_manual_block(schedule)
    return machine.snapshot()


@router.post("/manual-block/stop", response_model=BlockingSnapshot)
async def stop_manual_block(machine: BlockingStateMachine = Depends(get_machine)):
    if not machine.stop_manual_block():
        raise HTTPException(status_code=409, detail="No manual block is running")
    return machine.snapshot()


@router.post("/exit-early", response_model=BlockingSnapshot)
async def exit_block_early(machine: BlockingStateMachine = Depends(get_machine)):
    if not machine.exit_block_early():
        raise HTTPException(status_code=409, detail="No block in progress")
    return machine.snapshot()


@router.post("/power/sleep", status_code=status.HTTP_204_NO_CONTENT)
async def power_sleep(machine: BlockingStateMachine = Depends(get_machine)):
    """Signal from the OS: the system is about to sleep."""
    machine.on_system_will_sleep()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/power/wake", response_model=BlockingSnapshot)
async def power_wake(machine: BlockingStateMachine = Depends(get_machine)):
    """Signal from the OS: the system has resumed."""
    machine.on_system_did_wake()
    return machine.snapshot()


# Schedules

@router.get("/schedules", response_model=List[Schedule])
async def list_schedules(db: Session = Depends(get_db)):
    return ScheduleRepository(db).list_all()


@router.post("/schedules", response_model=Schedule, status_code=status.HTTP_201_CREATED)
async def create_schedule(
    body: ScheduleInput,
    db: Session = Depends(get_db),
    machine: BlockingStateMachine = Depends(get_machine),
):
    schedule = ScheduleRepository(db).create(Schedule(**body.model_dump()))
    machine.add_schedule(schedule)
    return schedule


@router.put("/schedules/{schedule_id}", response_model=Schedule)
async def update_schedule(
    schedule_id: str,
    body: ScheduleInput,
    db: Session = Depends(get_db),
    machine: BlockingStateMachine = Depends(get_machine),
):
    schedule = ScheduleRepository(db).update(Schedule(id=schedule_id, **body.model_dump()))
    if schedule is None:
        raise HTTPException(status_code=404, detail="Schedule not found")
    if not machine.update_schedule(schedule):
        machine.add_schedule(schedule)
    return schedule


@router.delete("/schedules/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_schedule(
    schedule_id: str,
    db: Session = Depends(get_db),
    machine: BlockingStateMachine = Depends(get_machine),
):
    if not ScheduleRepository(db).delete(schedule_id):
        raise HTTPException(status_code=404, detail="Schedule not found")
    machine.delete_schedule(schedule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Stats

@router.get("/stats/sessions", response_model=SessionsResponse)
async def list_sessions(
    period: StatsPeriod = Query(StatsPeriod.DAY),
    offset: int = Query(0, le=0),
    machine: BlockingStateMachine = Depends(get_machine),
):
    now = machine.ledger.clock()
    sessions = machine.ledger.sessions(period, offset, now=now)
    summaries = [
        SessionSummary(
            session=s,
            active_seconds=session_totals(s, now=now).active,
            end_reason=s.end_reason.value if s.end_reason else None,
        )
        for s in sessions
    ]
    return SessionsResponse(
        period=period.value,
        offset=offset,
        label=period.format_label(now, offset),
        sessions=summaries,
    )


@router.get("/stats/totals", response_model=TotalsResponse)
async def get_totals(
    period: StatsPeriod = Query(StatsPeriod.DAY),
    offset: int = Query(0, le=0),
    machine: BlockingStateMachine = Depends(get_machine),
):
    now = machine.ledger.clock()
    start, end = period.date_range(now, offset)
    totals = machine.ledger.totals(period, offset, now=now)
    return TotalsResponse.from_totals(
        totals,
        period=period.value,
        offset=offset,
        label=period.format_label(now, offset),
        start=start,
        end=end,
    )


# Settings

@router.get("/settings/notification-lead-time", response_model=NotificationLeadTime)
async def get_notification_lead_time(machine: BlockingStateMachine = Depends(get_machine)):
    return NotificationLeadTime(minutes=machine.notification_lead_minutes)


@router.put("/settings/notification-lead-time", response_model=NotificationLeadTime)
async def set_notification_lead_time(
    body: NotificationLeadTime,
    db: Session = Depends(get_db),
    machine: BlockingStateMachine = Depends(get_machine),
):
    SettingsRepository(db).set_notification_lead_minutes(body.minutes)
    machine.notification_lead_minutes = body.minutes
    return NotificationLeadTime(minutes=machine.notification_lead_minutes)


def create_app(machine: Optional[BlockingStateMachine] = None, run_ticker: bool = True) -> FastAPI:
    """Build the API.

    Args:
        machine: Pre-built state machine; built from the database and environment if None
        run_ticker: Start the tick loop for the lifetime of the app
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        state_machine = machine
        if state_machine is None:
            init_db()
            state_machine = build_state_machine()
        app.state.machine = state_machine

        ticker: Optional[TickLoop] = None
        task: Optional[asyncio.Task] = None
        if run_ticker:
            state_machine.start()
            ticker = TickLoop(
                state_machine,
                interval_seconds=float(os.getenv("SCREENBLOCK_TICK_INTERVAL_SEC", str(TICK_INTERVAL_SECONDS))),
                wake_gap_seconds=float(os.getenv("SCREENBLOCK_WAKE_GAP_SEC", str(WAKE_GAP_SECONDS))),
            )
            task = asyncio.create_task(ticker.run())
        try:
            yield
        finally:
            if ticker is not None:
                ticker.stop()
                await task

    app = FastAPI(
        title="screenblock API",
        description="Recurring screen block windows with session stats",
        version=VERSION,
        lifespan=lifespan,
    )
    app.include_router(router)
    return app


app = create_app()
