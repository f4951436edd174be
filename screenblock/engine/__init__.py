"""Blocking engine for screenblock."""

from screenblock.engine.blocking import BlockingStateMachine, ManualBlock, manual_block_end
from screenblock.engine.reminders import plan_reminders
from screenblock.engine.ticker import TickLoop

__all__ = [
    "BlockingStateMachine",
    "ManualBlock",
    "manual_block_end",
    "plan_reminders",
    "TickLoop",
]
