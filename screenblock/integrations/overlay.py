"""Render directive collaborators.

The blocking engine only issues `show()` / `hide()`; everything visual happens here.
Implementations must tolerate being asked for the state they are already in.
"""

import logging
import os
import shlex
import subprocess
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class OverlayRenderer(Protocol):
    def show(self) -> None: ...

    def hide(self) -> None: ...


class LoggingOverlay:
    """Renderer that only records directives in the log (headless installs)."""

    def show(self) -> None:
        logger.info("Blocking overlay requested")

    def hide(self) -> None:
        logger.info("Blocking overlay removed")


class CommandOverlay:
    """Renderer that runs external commands, e.g. a screen locker.

    Commands are started fire-and-forget; the tick loop never waits on them.
    """

    def __init__(self, show_command: Optional[str] = None, hide_command: Optional[str] = None):
        self.show_command = show_command if show_command is not None else os.getenv("SCREENBLOCK_SHOW_COMMAND", "")
        self.hide_command = hide_command if hide_command is not None else os.getenv("SCREENBLOCK_HIDE_COMMAND", "")

    def show(self) -> None:
        self._run(self.show_command, "show")

    def hide(self) -> None:
        self._run(self.hide_command, "hide")

    def _run(self, command: str, directive: str) -> None:
        if not command:
            logger.debug(f"No {directive} command configured")
            return
        try:
            subprocess.Popen(shlex.split(command), stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to run {directive} command: {type(e).__name__}: {str(e)}")


def build_overlay() -> OverlayRenderer:
    """CommandOverlay when commands are configured, else LoggingOverlay."""
    if os.getenv("SCREENBLOCK_SHOW_COMMAND") or os.getenv("SCREENBLOCK_HIDE_COMMAND"):
        return CommandOverlay()
    return LoggingOverlay()
