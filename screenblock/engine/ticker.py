"""Tick loop: drives the blocking state machine on the event loop.

The loop also stands in for an OS power-event source. Ticks do not run while the
machine is suspended, so a wall-clock gap larger than `wake_gap_seconds` since the
last evaluation is reported as a sleep/wake cycle.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from screenblock.engine.blocking import BlockingStateMachine
from screenblock.models.constants import TICK_INTERVAL_SECONDS, WAKE_GAP_SECONDS

logger = logging.getLogger(__name__)


class TickLoop:
    """Calls `machine.tick(now)` every `interval_seconds`."""

    def __init__(
        self,
        machine: BlockingStateMachine,
        interval_seconds: float = TICK_INTERVAL_SECONDS,
        wake_gap_seconds: float = WAKE_GAP_SECONDS,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.machine = machine
        self.interval_seconds = interval_seconds
        self.wake_gap_seconds = wake_gap_seconds
        self.clock = clock
        self._stopped = asyncio.Event()

    def step(self, now: Optional[datetime] = None) -> None:
        """Run one evaluation, reconciling a missed sleep/wake cycle first if needed."""
        if now is None:
            now = self.clock()
        last = self.machine.last_evaluated_at
        try:
            if last is not None and (now - last).total_seconds() > self.wake_gap_seconds:
                logger.info(f"Clock jumped {int((now - last).total_seconds())}s since last tick; reconciling as wake")
                self.machine.on_system_will_sleep(last)
                self.machine.on_system_did_wake(now)
            else:
                self.machine.tick(now)
        except Exception as e:
            logger.error(f"Tick failed: {type(e).__name__}: {str(e)}")

    async def run(self) -> None:
        logger.info(f"Tick loop started (every {self.interval_seconds}s)")
        while not self._stopped.is_set():
            self.step()
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass
        logger.info("Tick loop stopped")

    def stop(self) -> None:
        self._stopped.set()
