"""Blocking state machine for screenblock.

Evaluates the schedule working set against wall-clock time, decides whether the
blocking overlay should be shown, and records every block lifecycle transition in
the stats ledger exactly once.

All operations are synchronous and run on one logical thread (the tick loop's event
loop). There is no locking; callers marshal onto that thread.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Callable, Dict, Iterable, List, Optional

from screenblock.engine.reminders import plan_reminders
from screenblock.integrations.notifier import ReminderNotifier
from screenblock.integrations.overlay import OverlayRenderer
from screenblock.models.block_session import BlockState, EndReason
from screenblock.models.constants import (
    DEFAULT_NOTIFICATION_LEAD_MINUTES,
    DEFAULT_SNOOZE_MINUTES,
    MANUAL_BLOCK_MIN_REMAINING_MINUTES,
)
from screenblock.models.schedule import Schedule
from screenblock.models.snapshot import BlockingSnapshot
from screenblock.stats.ledger import StatsLedger
from screenblock.stats.periods import format_countdown

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[BlockingSnapshot], None]


@dataclass
class ManualBlock:
    """A block started explicitly instead of by schedule matching."""
    schedule: Schedule
    started_at: datetime
    ends_at: datetime


def manual_block_end(schedule: Schedule, now: datetime) -> datetime:
    """Today's end time if it is more than a minute away, otherwise tomorrow's."""
    end_today = datetime.combine(now.date(), time(schedule.end_hour, schedule.end_minute))
    if end_today - now > timedelta(minutes=MANUAL_BLOCK_MIN_REMAINING_MINUTES):
        return end_today
    return end_today + timedelta(days=1)


class BlockingStateMachine:
    """Authoritative blocking state, driven by `tick(now)` about once per second.

    States: idle -> blocking -> {idle, snoozed} -> blocking -> idle, with manual
    blocks as an overlay that is started and stopped explicitly. While a manual
    block runs, scheduled activation is not evaluated.
    """

    def __init__(
        self,
        ledger: StatsLedger,
        renderer: OverlayRenderer,
        notifier: Optional[ReminderNotifier] = None,
        schedules: Iterable[Schedule] = (),
        notification_lead_minutes: int = DEFAULT_NOTIFICATION_LEAD_MINUTES,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.ledger = ledger
        self.renderer = renderer
        self.notifier = notifier
        self.clock = clock
        self._schedules: List[Schedule] = list(schedules)
        self._notification_lead_minutes = notification_lead_minutes

        self._is_blocking = False
        self._visuals_shown = False
        self._snooze_until: Optional[datetime] = None
        self._block_started_at: Optional[datetime] = None
        self._block_end: Optional[datetime] = None
        self._snooze_extended_end: Optional[datetime] = None
        self._active_schedule: Optional[Schedule] = None
        self._manual: Optional[ManualBlock] = None
        self._suppressed: Dict[str, datetime] = {}

        self._next_block_start: Optional[datetime] = None
        self._next_schedule: Optional[Schedule] = None
        self._last_evaluated_at: Optional[datetime] = None

        self._subscribers: List[SnapshotCallback] = []
        self._last_published: Optional[dict] = None

    # Read access

    @property
    def schedules(self) -> List[Schedule]:
        return list(self._schedules)

    @property
    def is_blocking(self) -> bool:
        if self._manual is not None:
            return self._snooze_until is None
        return self._is_blocking

    @property
    def is_snoozed(self) -> bool:
        return self._snooze_until is not None

    @property
    def is_manual(self) -> bool:
        return self._manual is not None

    @property
    def active_schedule(self) -> Optional[Schedule]:
        if self._manual is not None:
            return self._manual.schedule
        return self._active_schedule

    @property
    def block_ends_at(self) -> Optional[datetime]:
        if self._manual is not None:
            return self._manual.ends_at
        return self._block_end

    @property
    def snooze_ends_at(self) -> Optional[datetime]:
        return self._snooze_until

    @property
    def next_block_start(self) -> Optional[datetime]:
        return self._next_block_start

    @property
    def next_schedule(self) -> Optional[Schedule]:
        return self._next_schedule

    @property
    def suppressed_until(self) -> Dict[str, datetime]:
        return dict(self._suppressed)

    @property
    def last_evaluated_at(self) -> Optional[datetime]:
        return self._last_evaluated_at

    @property
    def notification_lead_minutes(self) -> int:
        return self._notification_lead_minutes

    @notification_lead_minutes.setter
    def notification_lead_minutes(self, minutes: int) -> None:
        self._notification_lead_minutes = max(0, minutes)
        self._replan_reminders(self.clock())

    def snapshot(self, now: Optional[datetime] = None) -> BlockingSnapshot:
        if now is None:
            now = self.clock()
        return BlockingSnapshot(
            is_blocking=self.is_blocking,
            is_snoozed=self.is_snoozed,
            is_manual=self.is_manual,
            active_schedule=self.active_schedule,
            block_started_at=self._manual.started_at if self._manual is not None else self._block_started_at,
            block_ends_at=self.block_ends_at,
            snooze_ends_at=self._snooze_until,
            next_block_start=self._next_block_start,
            next_schedule=self._next_schedule,
            time_until_next_block=format_countdown(self._next_block_start, now),
        )

    def subscribe(self, callback: SnapshotCallback) -> Callable[[], None]:
        """Call `callback` with a fresh snapshot whenever the state changes.

        Returns a function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # Lifecycle

    def start(self, now: Optional[datetime] = None) -> None:
        """Initial evaluation at process start."""
        if now is None:
            now = self.clock()
        self.tick(now)
        self._replan_reminders(now)

    def tick(self, now: Optional[datetime] = None) -> None:
        """Periodic evaluation. Idempotent for a repeated `now`."""
        if now is None:
            now = self.clock()
        self._last_evaluated_at = now
        self._evaluate(now)
        self._update_next_block_time(now)
        self._publish(now)

    def _evaluate(self, now: datetime) -> None:
        # 1. Snooze
        if self._snooze_until is not None:
            if now < self._snooze_until:
                self._sync_visuals(False)
                return
            logger.info("Snooze ended")
            self._snooze_until = None
            self._block_started_at = None

        # 2. Manual block
        if self._manual is not None:
            if now < self._manual.ends_at:
                self._engage_ledger(self._manual.schedule, now)
                self._sync_visuals(True)
                return
            logger.info(f"Manual block '{self._manual.schedule.name}' completed")
            self.ledger.end_session(EndReason.COMPLETED, at=now)
            self._clear_block()

        # 3. Exit suppression pruning
        self._suppressed = {sid: until for sid, until in self._suppressed.items() if until > now}

        # 4. Scheduled activation
        matching = [s for s in self._schedules if s.id not in self._suppressed and s.is_active(now)]
        should_block = False
        active: Optional[Schedule] = None
        block_end: Optional[datetime] = None

        if matching:
            should_block = True
            active = matching[0]
            if self._active_schedule is not None:
                active = next((s for s in matching if s.id == self._active_schedule.id), active)
            block_end = max(s.natural_end(now) for s in matching)
        elif self._in_extended_tail(now):
            # Snooze grant carries the block past the schedule's own window.
            should_block = True
            active = self._find_schedule(self._active_schedule.id)
            block_end = self._snooze_extended_end

        # Only a snooze grant outlives the (possibly edited) schedule windows.
        if should_block and self._snooze_extended_end is not None and self._snooze_extended_end > block_end:
            block_end = self._snooze_extended_end

        # 5. Expiry
        if should_block and now >= block_end:
            should_block = False

        # 6. Transition
        if should_block:
            if not self._is_blocking:
                self._is_blocking = True
                self._block_started_at = now
                logger.info(f"Blocking started for '{active.name}' until {block_end:%H:%M}")
            self._active_schedule = active
            self._block_end = block_end
            self._engage_ledger(active, now)
        elif self._is_blocking or self._active_schedule is not None:
            name = self._active_schedule.name if self._active_schedule is not None else "block"
            logger.info(f"Blocking ended for '{name}'")
            self.ledger.end_session(EndReason.COMPLETED, at=now)
            self._clear_block()

        self._sync_visuals(self._is_blocking)

    def _in_extended_tail(self, now: datetime) -> bool:
        """True while a snooze-extended end is still ahead for the running block."""
        if self._active_schedule is None or self._snooze_extended_end is None:
            return False
        if now >= self._snooze_extended_end:
            return False
        if self._active_schedule.id in self._suppressed:
            return False
        schedule = self._find_schedule(self._active_schedule.id)
        return schedule is not None and schedule.is_enabled

    # Operations

    def snooze(self, minutes: int = DEFAULT_SNOOZE_MINUTES, now: Optional[datetime] = None) -> bool:
        """Postpone the current block by `minutes`; it resumes for its remaining time plus the grant.

        Returns False when nothing is blocking.
        """
        if now is None:
            now = self.clock()
        if minutes <= 0 or not self.is_blocking:
            logger.debug("Ignoring snooze: nothing is blocking")
            return False

        grant = timedelta(minutes=minutes)
        self._snooze_until = now + grant
        if self._manual is not None:
            self._manual.ends_at += grant
        elif self._block_end is not None:
            self._block_end += grant
            self._snooze_extended_end = self._block_end
        self._is_blocking = False

        name = self.active_schedule.name if self.active_schedule is not None else "block"
        logger.info(f"Snoozed '{name}' for {minutes} minutes")
        self.ledger.pause_for_snooze(at=now)
        self._sync_visuals(False)
        self._update_next_block_time(now)
        self._publish(now)
        return True

    def start_manual_block(self, schedule: Schedule, now: Optional[datetime] = None) -> None:
        """Force-start a block for `schedule` outside its scheduled window.

        Starting the schedule whose block is currently snoozed resumes it and keeps the
        extended end time.
        """
        if now is None:
            now = self.clock()

        current = self.active_schedule
        same_schedule = current is not None and current.id == schedule.id
        resuming = same_schedule and self._snooze_until is not None

        ends_at = manual_block_end(schedule, now)
        started_at = now
        if resuming:
            previous_end = self.block_ends_at
            if previous_end is not None:
                ends_at = previous_end
            if self._manual is not None:
                started_at = self._manual.started_at

        if current is not None and not same_schedule:
            logger.info(f"Cancelling '{current.name}' for manual block '{schedule.name}'")
            self.ledger.end_session(EndReason.CANCELLED, at=now)

        self._snooze_until = None
        self._is_blocking = False
        self._active_schedule = None
        self._block_end = None
        self._snooze_extended_end = None
        self._block_started_at = None
        self._manual = ManualBlock(schedule=schedule, started_at=started_at, ends_at=ends_at)

        logger.info(f"Manual block '{schedule.name}' until {ends_at:%H:%M}")
        self._engage_ledger(schedule, now)
        self._sync_visuals(True)
        self._update_next_block_time(now)
        self._publish(now)

    def stop_manual_block(self, now: Optional[datetime] = None) -> bool:
        """End a manual block early. Returns False when no manual block runs."""
        if now is None:
            now = self.clock()
        if self._manual is None:
            logger.debug("Ignoring stop: no manual block")
            return False

        logger.info(f"Manual block '{self._manual.schedule.name}' exited early")
        self.ledger.end_session(EndReason.EXITED, at=now)
        self._clear_block()
        self._sync_visuals(False)
        self._update_next_block_time(now)
        self._publish(now)
        return True

    def exit_block_early(self, now: Optional[datetime] = None) -> bool:
        """End the current block early without it re-triggering for this occurrence.

        Every schedule matching right now is suppressed until its natural end; later
        occurrences are unaffected. Returns False when there is no block to exit.
        """
        if now is None:
            now = self.clock()
        if self._manual is not None:
            return self.stop_manual_block(now)
        if self._active_schedule is None:
            logger.debug("Ignoring exit: no block in progress")
            return False

        for schedule in self._schedules:
            if schedule.id == self._active_schedule.id or schedule.is_active(now):
                self._suppressed[schedule.id] = schedule.natural_end(now)

        logger.info(f"Block '{self._active_schedule.name}' exited early")
        self.ledger.end_session(EndReason.EXITED, at=now)
        self._clear_block()
        self._sync_visuals(False)
        self._update_next_block_time(now)
        self._publish(now)
        return True

    # Power events

    def on_system_will_sleep(self, now: Optional[datetime] = None) -> None:
        """Mark the start of system sleep in the ledger. Blocking state is left as is."""
        if now is None:
            now = self.clock()
        logger.info("System will sleep")
        self.ledger.pause_for_sleep(at=now)

    def on_system_did_wake(self, now: Optional[datetime] = None) -> None:
        """Reconcile after sleep: ticks did not fire while suspended."""
        if now is None:
            now = self.clock()
        logger.info("System did wake")

        self._last_evaluated_at = now
        self._evaluate(now)

        if self.ledger.has_active_session:
            target = BlockState.SNOOZED if self._snooze_until is not None else BlockState.ACTIVE
            self.ledger.resume_from_sleep(target, at=now)

        if self.is_blocking:
            # The renderer may have lost its windows across sleep.
            self.renderer.show()
            self._visuals_shown = True

        self._update_next_block_time(now)
        self._replan_reminders(now)
        self._publish(now)

    # Schedule working set

    def replace_schedules(self, schedules: Iterable[Schedule], now: Optional[datetime] = None) -> None:
        self._schedules = list(schedules)
        self._schedules_changed(now)

    def add_schedule(self, schedule: Schedule, now: Optional[datetime] = None) -> None:
        self._schedules.append(schedule)
        self._schedules_changed(now)

    def update_schedule(self, schedule: Schedule, now: Optional[datetime] = None) -> bool:
        for index, existing in enumerate(self._schedules):
            if existing.id == schedule.id:
                self._schedules[index] = schedule
                self._schedules_changed(now)
                return True
        return False

    def delete_schedule(self, schedule_id: str, now: Optional[datetime] = None) -> bool:
        remaining = [s for s in self._schedules if s.id != schedule_id]
        if len(remaining) == len(self._schedules):
            return False
        self._schedules = remaining
        self._suppressed.pop(schedule_id, None)
        self._schedules_changed(now)
        return True

    def _find_schedule(self, schedule_id: str) -> Optional[Schedule]:
        return next((s for s in self._schedules if s.id == schedule_id), None)

    def _schedules_changed(self, now: Optional[datetime]) -> None:
        if now is None:
            now = self.clock()
        self._cancel_orphaned_block(now)
        self._update_next_block_time(now)
        self._replan_reminders(now)
        self._publish(now)

    def _cancel_orphaned_block(self, now: datetime) -> None:
        """Close a block whose schedule was deleted (or, for scheduled blocks, disabled)."""
        if self._manual is not None:
            if self._find_schedule(self._manual.schedule.id) is not None:
                return
            name = self._manual.schedule.name
        elif self._active_schedule is not None:
            schedule = self._find_schedule(self._active_schedule.id)
            if schedule is not None and schedule.is_enabled:
                return
            name = self._active_schedule.name
        else:
            return

        logger.info(f"Block '{name}' cancelled: schedule removed or disabled")
        self.ledger.end_session(EndReason.CANCELLED, at=now)
        self._clear_block()
        self._sync_visuals(False)

    # Internals

    def _engage_ledger(self, schedule: Schedule, now: datetime) -> None:
        """Make sure the ledger has an open, active session for the running block."""
        self.ledger.start_session(schedule.name, schedule.id, at=now)
        self.ledger.resume_from_snooze(at=now)

    def _clear_block(self) -> None:
        self._is_blocking = False
        self._snooze_until = None
        self._block_started_at = None
        self._block_end = None
        self._snooze_extended_end = None
        self._active_schedule = None
        self._manual = None

    def _sync_visuals(self, show: bool) -> None:
        if show == self._visuals_shown:
            return
        self._visuals_shown = show
        if show:
            self.renderer.show()
        else:
            self.renderer.hide()

    def _update_next_block_time(self, now: datetime) -> None:
        earliest: Optional[datetime] = None
        winner: Optional[Schedule] = None
        for schedule in self._schedules:
            next_start = schedule.next_start(now)
            if next_start is not None and (earliest is None or next_start < earliest):
                earliest = next_start
                winner = schedule

        changed = earliest != self._next_block_start
        self._next_block_start = earliest
        self._next_schedule = winner
        if changed:
            self._replan_reminders(now)

    def _replan_reminders(self, now: datetime) -> None:
        if self.notifier is None:
            return
        reminders = plan_reminders(self._schedules, now, self._notification_lead_minutes)
        try:
            self.notifier.replace_pending(reminders)
        except Exception as e:
            logger.error(f"Failed to schedule reminders: {type(e).__name__}: {str(e)}")

    def _publish(self, now: datetime) -> None:
        snapshot = self.snapshot(now)
        key = snapshot.model_dump(exclude={"time_until_next_block"})
        if key == self._last_published:
            return
        self._last_published = key
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception as e:
                logger.error(f"Snapshot subscriber failed: {type(e).__name__}: {str(e)}")
