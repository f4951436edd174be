"""Tests for the tick loop."""

import asyncio
from datetime import timedelta
from unittest.mock import MagicMock

from screenblock.engine.ticker import TickLoop
from conftest import at, WEDNESDAY


def make_machine(last_evaluated_at=None):
    machine = MagicMock()
    machine.last_evaluated_at = last_evaluated_at
    return machine


class TestStep:
    def test_first_step_ticks(self):
        machine = make_machine()
        loop = TickLoop(machine, wake_gap_seconds=30)

        loop.step(at(WEDNESDAY, 12, 0))

        machine.tick.assert_called_once_with(at(WEDNESDAY, 12, 0))
        machine.on_system_did_wake.assert_not_called()

    def test_regular_interval_ticks(self):
        last = at(WEDNESDAY, 12, 0)
        machine = make_machine(last)
        loop = TickLoop(machine, wake_gap_seconds=30)

        loop.step(last + timedelta(seconds=1))

        machine.tick.assert_called_once()
        machine.on_system_will_sleep.assert_not_called()

    def test_clock_gap_reconciles_as_sleep_and_wake(self):
        last = at(WEDNESDAY, 12, 0)
        now = at(WEDNESDAY, 13, 0)
        machine = make_machine(last)
        loop = TickLoop(machine, wake_gap_seconds=30)

        loop.step(now)

        machine.on_system_will_sleep.assert_called_once_with(last)
        machine.on_system_did_wake.assert_called_once_with(now)
        machine.tick.assert_not_called()

    def test_tick_errors_are_logged(self, caplog):
        machine = make_machine()
        machine.tick.side_effect = RuntimeError("boom")
        loop = TickLoop(machine)

        loop.step(at(WEDNESDAY, 12, 0))

        assert "Tick failed: RuntimeError: boom" in caplog.text

    def test_step_with_real_machine(self, machine, renderer):
        loop = TickLoop(machine, wake_gap_seconds=30)

        loop.step(at(WEDNESDAY, 13, 0, 1))
        loop.step(at(WEDNESDAY, 13, 0, 2))
        assert renderer.calls == ["show"]

        # A long gap while blocking re-asserts the overlay.
        loop.step(at(WEDNESDAY, 13, 30))
        assert renderer.calls == ["show", "show"]
        assert machine.is_blocking


class TestRun:
    def test_run_until_stopped(self, clock):
        machine = make_machine()
        loop = TickLoop(machine, interval_seconds=0.01, clock=clock)

        async def scenario():
            task = asyncio.create_task(loop.run())
            await asyncio.sleep(0.05)
            loop.stop()
            await asyncio.wait_for(task, timeout=1)

        asyncio.run(scenario())

        assert machine.tick.call_count >= 1
        machine.tick.assert_called_with(at(WEDNESDAY, 12, 0))
