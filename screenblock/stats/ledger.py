"""Event-sourced stats ledger for block sessions.

Sessions are stored as JSON arrays, one file per calendar month of the session's
creation time (`YYYY-MM.json`). The ledger owns the currently open session in memory
and mirrors it to disk after every mutation. Storage failures are logged and never
interrupt blocking.
"""

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from pydantic import TypeAdapter

from screenblock.models.block_session import BlockSession, BlockState, BlockTotals, EndReason
from screenblock.stats.periods import StatsPeriod, add_months

logger = logging.getLogger(__name__)

_SESSIONS_ADAPTER = TypeAdapter(List[BlockSession])


def default_stats_directory() -> Path:
    """Stats directory from `SCREENBLOCK_STATS_DIR`, else `$XDG_DATA_HOME/screenblock/stats`."""
    configured = os.getenv("SCREENBLOCK_STATS_DIR")
    if configured:
        return Path(configured).expanduser()
    data_home = os.getenv("XDG_DATA_HOME") or os.path.join(os.path.expanduser("~"), ".local", "share")
    return Path(data_home) / "screenblock" / "stats"


def session_totals(
    session: BlockSession,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> BlockTotals:
    """Sum time spent per state for one session.

    Each event's state owns the interval up to the next event. A trailing event that
    is not `ended` runs until `now`. Intervals are clamped to [start, end) when given.
    """
    totals = BlockTotals()
    events = session.events
    if not events:
        return totals
    if now is None:
        now = datetime.now()

    for i, event in enumerate(events):
        if i + 1 < len(events):
            interval_end = events[i + 1].timestamp
        elif event.state != BlockState.ENDED:
            interval_end = now
        else:
            continue

        interval_start = event.timestamp
        if start is not None:
            interval_start = max(interval_start, start)
        if end is not None:
            interval_end = min(interval_end, end)

        duration = max(0.0, (interval_end - interval_start).total_seconds())

        if event.state == BlockState.ACTIVE:
            totals.active += duration
        elif event.state == BlockState.SNOOZED:
            totals.snoozed += duration
        elif event.state == BlockState.SLEEPING:
            totals.sleeping += duration

    return totals


class StatsLedger:
    """Append-only ledger of block sessions, sharded by month."""

    def __init__(
        self,
        directory: Optional[Path] = None,
        clock: Callable[[], datetime] = datetime.now,
        recover: bool = True,
    ):
        self.directory = Path(directory) if directory is not None else default_stats_directory()
        self.clock = clock
        self._current: Optional[BlockSession] = None
        self._state_before_sleep: Optional[BlockState] = None

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create stats directory {self.directory}: {type(e).__name__}: {str(e)}")

        if recover:
            self.recover_if_needed()

    # Session lifecycle

    def start_session(self, schedule_name: str, schedule_id: Optional[str], at: Optional[datetime] = None) -> str:
        """Start a new session, or return the id of the one already open."""
        if self._current is not None and self._current.is_open:
            return self._current.id

        session = BlockSession.open(schedule_name, schedule_id, at or self.clock())
        self._current = session
        self._state_before_sleep = None
        self._save_session(session)
        logger.info(f"Started block session {session.id} for '{schedule_name}'")
        return session.id

    def end_session(self, reason: EndReason, at: Optional[datetime] = None) -> None:
        """Close the open session with `reason`. No-op if none is open."""
        session = self._current
        if session is None or not session.is_open:
            return

        session.append_event(BlockState.ENDED, at or self.clock(), end_reason=reason)
        self._save_session(session)
        self._current = None
        self._state_before_sleep = None
        logger.info(f"Ended block session {session.id} ({EndReason(reason).value})")

    # State transitions

    def pause_for_snooze(self, at: Optional[datetime] = None) -> None:
        """Active -> snoozed."""
        self._transition(BlockState.SNOOZED, (BlockState.ACTIVE,), at)

    def resume_from_snooze(self, at: Optional[datetime] = None) -> None:
        """Snoozed -> active."""
        self._transition(BlockState.ACTIVE, (BlockState.SNOOZED,), at)

    def pause_for_sleep(self, at: Optional[datetime] = None) -> None:
        """Active or snoozed -> sleeping, remembering the state before sleep."""
        session = self._current
        if session is None or session.current_state not in (BlockState.ACTIVE, BlockState.SNOOZED):
            return
        self._state_before_sleep = session.current_state
        self._transition(BlockState.SLEEPING, (BlockState.ACTIVE, BlockState.SNOOZED), at)

    def resume_from_sleep(self, target_state: Optional[BlockState] = None, at: Optional[datetime] = None) -> None:
        """Sleeping -> `target_state`, defaulting to the state before sleep (else active)."""
        resume_state = target_state or self._state_before_sleep or BlockState.ACTIVE
        if self._transition(resume_state, (BlockState.SLEEPING,), at):
            self._state_before_sleep = None

    def _transition(self, state: BlockState, allowed_from, at: Optional[datetime]) -> bool:
        session = self._current
        if session is None or session.current_state not in allowed_from:
            logger.debug(f"Ignoring transition to {BlockState(state).value}: no session in an allowed state")
            return False
        session.append_event(state, at or self.clock())
        self._save_session(session)
        return True

    # Recovery

    def recover_if_needed(self, now: Optional[datetime] = None) -> int:
        """Close sessions left open by a process that did not shut down cleanly.

        Looks at the current and previous month files. Returns the number of sessions
        closed with reason `error`; their recorded end is the recovery time.
        """
        if now is None:
            now = self.clock()

        candidates: List[BlockSession] = []
        candidates.extend(self._load_sessions(self._file_for(now)))
        candidates.extend(self._load_sessions(self._file_for(add_months(now, -1))))

        recovered = 0
        for session in candidates:
            if self._current is not None and session.id == self._current.id:
                continue
            if not session.is_open:
                continue
            session.append_event(BlockState.ENDED, now, end_reason=EndReason.ERROR)
            self._save_session(session)
            recovered += 1
            logger.warning(f"Recovered orphaned block session {session.id} ('{session.schedule_name}')")
        return recovered

    # Persistence

    def _file_for(self, dt: datetime) -> Path:
        return self.directory / f"{dt:%Y-%m}.json"

    def _load_sessions(self, path: Path) -> List[BlockSession]:
        if not path.exists():
            return []
        try:
            return _SESSIONS_ADAPTER.validate_json(path.read_bytes())
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load sessions from {path.name}: {type(e).__name__}: {str(e)}")
            return []

    def _save_session(self, session: BlockSession) -> None:
        path = self._file_for(session.created_at)
        sessions = self._load_sessions(path)

        for index, existing in enumerate(sessions):
            if existing.id == session.id:
                sessions[index] = session
                break
        else:
            sessions.append(session)

        payload = json.dumps([s.model_dump(mode="json", by_alias=True) for s in sessions], indent=2)
        try:
            self._write_atomic(path, payload)
        except OSError as e:
            logger.error(f"Failed to save session {session.id}: {type(e).__name__}: {str(e)}")

    def _write_atomic(self, path: Path, payload: str) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.stem}-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    # Querying

    def sessions(self, period: StatsPeriod, offset: int = 0, now: Optional[datetime] = None) -> List[BlockSession]:
        """Sessions whose time range overlaps the period (not only those started in it)."""
        if now is None:
            now = self.clock()
        start, end = StatsPeriod(period).date_range(now, offset)
        return self.sessions_between(start, end, now=now)

    def sessions_between(self, start: datetime, end: datetime, now: Optional[datetime] = None) -> List[BlockSession]:
        if now is None:
            now = self.clock()

        # Include the month before `start` to catch sessions spanning the boundary.
        loaded: List[BlockSession] = []
        month = add_months(start.replace(day=1, hour=0, minute=0, second=0, microsecond=0), -1)
        while month < end:
            loaded.extend(self._load_sessions(self._file_for(month)))
            month = add_months(month, 1)

        result = []
        for session in loaded:
            session_end = now if session.is_open else session.last_timestamp
            if session_end > start and session.created_at < end:
                result.append(session)
        result.sort(key=lambda s: s.created_at)
        return result

    def totals(self, period: StatsPeriod, offset: int = 0, now: Optional[datetime] = None) -> BlockTotals:
        """Aggregate time per state over the period, clamped to its boundaries."""
        if now is None:
            now = self.clock()
        start, end = StatsPeriod(period).date_range(now, offset)
        totals = BlockTotals()
        for session in self.sessions_between(start, end, now=now):
            totals.add(session_totals(session, start, end, now=now))
        return totals

    # Helpers

    @property
    def current_session(self) -> Optional[BlockSession]:
        return self._current

    @property
    def has_active_session(self) -> bool:
        return self._current is not None and self._current.is_open

    @property
    def active_session_schedule_name(self) -> Optional[str]:
        return self._current.schedule_name if self._current is not None else None
