"""
Notifications - Transient user-facing messages.

Services report outcomes through a Notifier instead of printing. The base
Notifier keeps a bounded history and logs each message; ConsoleNotifier also prints
it with rich.
"""

import logging
from collections import deque
from typing import Any, Optional

from rich.console import Console

from nawartu.models import Notification
from nawartu.utils.i18n import t

logger = logging.getLogger('Nawartu')

DESTRUCTIVE = "destructive"


class Notifier:
    """Records notifications and logs them."""

    HISTORY_SIZE = 50

    def __init__(self, lang: str = "en", history_size: Optional[int] = None):
        self.lang = lang
        self.history: deque[Notification] = deque(maxlen=history_size or self.HISTORY_SIZE)

    def notify(self, title: str, description: str, variant: str = "default") -> Notification:
        notification = Notification(title=title, description=description, variant=variant)
        self.history.append(notification)

        if variant == DESTRUCTIVE:
            logger.error(f"{title}: {description}")
        else:
            logger.info(f"{title}: {description}")

        self.show(notification)
        return notification

    def error(self, key: str, title_key: str = "error", **params: Any) -> Notification:
        """Localized destructive notification."""
        return self.notify(t(title_key, self.lang), t(key, self.lang, **params), DESTRUCTIVE)

    def success(self, key: str, title_key: str = "success", **params: Any) -> Notification:
        """Localized success notification."""
        return self.notify(t(title_key, self.lang), t(key, self.lang, **params))

    @property
    def last(self) -> Optional[Notification]:
        return self.history[-1] if self.history else None

    def show(self, notification: Notification) -> None:
        """Display hook; the base notifier only logs."""


class ConsoleNotifier(Notifier):
    """Prints notifications to the terminal."""

    def __init__(self, lang: str = "en", console: Optional[Console] = None):
        super().__init__(lang)
        self.console = console or Console()

    def show(self, notification: Notification) -> None:
        style = "red" if notification.variant == DESTRUCTIVE else "green"
        self.console.print(
            f"[bold {style}]{notification.title}[/bold {style}] {notification.description}"
        )
