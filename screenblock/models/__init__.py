"""Data models for screenblock."""

from screenblock.models.schedule import Schedule, Weekday
from screenblock.models.block_session import BlockSession, BlockEvent, BlockState, EndReason, BlockTotals
from screenblock.models.reminder import Reminder
from screenblock.models.snapshot import BlockingSnapshot

__all__ = [
    "Schedule",
    "Weekday",
    "BlockSession",
    "BlockEvent",
    "BlockState",
    "EndReason",
    "BlockTotals",
    "Reminder",
    "BlockingSnapshot",
]
