"""Tests for the overlay and notifier collaborators."""

import logging
from datetime import datetime

from screenblock.integrations import overlay
from screenblock.integrations.notifier import LoggingNotifier
from screenblock.integrations.overlay import CommandOverlay, LoggingOverlay, build_overlay
from screenblock.models.reminder import Reminder


class TestBuildOverlay:
    def test_logging_overlay_without_commands(self, monkeypatch):
        monkeypatch.delenv("SCREENBLOCK_SHOW_COMMAND", raising=False)
        monkeypatch.delenv("SCREENBLOCK_HIDE_COMMAND", raising=False)
        assert isinstance(build_overlay(), LoggingOverlay)

    def test_command_overlay_from_environment(self, monkeypatch):
        monkeypatch.setenv("SCREENBLOCK_SHOW_COMMAND", "xset dpms force off")
        renderer = build_overlay()
        assert isinstance(renderer, CommandOverlay)
        assert renderer.show_command == "xset dpms force off"


class TestCommandOverlay:
    def test_runs_configured_commands(self, monkeypatch):
        started = []
        monkeypatch.setattr(overlay.subprocess, "Popen", lambda args, **kwargs: started.append(args))

        renderer = CommandOverlay(show_command="lock-screen --now", hide_command="")
        renderer.show()
        renderer.hide()

        assert started == [["lock-screen", "--now"]]

    def test_missing_binary_is_logged(self, caplog):
        renderer = CommandOverlay(show_command="/nonexistent/screenblock-overlay", hide_command="")

        with caplog.at_level(logging.ERROR):
            renderer.show()

        assert "Failed to run show command: FileNotFoundError" in caplog.text


class TestLoggingNotifier:
    def test_replace_pending(self):
        notifier = LoggingNotifier()
        reminder = Reminder(
            identifier="block-lunch",
            schedule_id="lunch",
            fire_at=datetime(2024, 1, 3, 12, 55),
            block_start=datetime(2024, 1, 3, 13, 0),
            title="Screen Block Starting Soon",
            body="Lunch begins in 5 minutes",
        )

        notifier.replace_pending([reminder])
        assert notifier.pending == [reminder]

        notifier.replace_pending([])
        assert notifier.pending == []
