"""Tests for notifiers."""

import logging
from unittest.mock import MagicMock

import pytest

from nawartu.services.notifications import ConsoleNotifier, Notifier


class TestNotifier:
    """Tests for the base notifier."""

    def test_error_is_destructive_and_localized(self) -> None:
        """Test a localized error."""
        notifier = Notifier("ar")

        notification = notifier.error("availability.load_failed")

        assert notification.variant == "destructive"
        assert notification.title == "خطأ"
        assert notification.description == "فشل في تحميل بيانات التوفر"
        assert notifier.last is notification

    def test_success_with_params(self) -> None:
        """Test parameters are interpolated."""
        notifier = Notifier("en")

        notification = notifier.success("upload.complete", "upload.complete.title", count=3)

        assert notification.variant == "default"
        assert notification.title == "Upload Complete"
        assert notification.description == "Successfully uploaded 3 image(s)."

    def test_history(self) -> None:
        """Test every notification is kept in order."""
        notifier = Notifier()
        assert notifier.last is None

        notifier.notify("A", "first")
        notifier.notify("B", "second")

        assert [n.title for n in notifier.history] == ["A", "B"]

    def test_history_is_bounded(self) -> None:
        """Only the most recent notifications are kept."""
        notifier = Notifier(history_size=3)

        for i in range(5):
            notifier.notify(f"N{i}", "message")

        assert [n.title for n in notifier.history] == ["N2", "N3", "N4"]
        assert notifier.last.title == "N4"

    def test_default_history_size(self) -> None:
        """Test the default cap."""
        notifier = Notifier()

        for i in range(Notifier.HISTORY_SIZE + 10):
            notifier.notify("N", str(i))

        assert len(notifier.history) == Notifier.HISTORY_SIZE
        assert notifier.history[0].description == "10"

    def test_errors_are_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Destructive notifications are logged at ERROR."""
        with caplog.at_level(logging.INFO, logger="Nawartu"):
            Notifier().error("host.failed")

        assert any(r.levelno == logging.ERROR and "Failed to register as host" in r.message
                   for r in caplog.records)


class TestConsoleNotifier:
    """Tests for the rich console notifier."""

    def test_prints_notification(self) -> None:
        """Test the notification is printed."""
        console = MagicMock()
        notifier = ConsoleNotifier("en", console=console)

        notifier.error("host.failed")

        printed = console.print.call_args.args[0]
        assert "Failed to register as host" in printed
        assert "red" in printed

    def test_success_is_green(self) -> None:
        """Test success styling."""
        console = MagicMock()
        ConsoleNotifier("en", console=console).success("profile.updated")

        assert "green" in console.print.call_args.args[0]
