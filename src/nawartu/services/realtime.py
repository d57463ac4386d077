"""
Change Feed - In-process publish/subscribe for table change events.

Mirrors the hosted realtime contract the client relies on: named channels,
each listening to one or more tables with an optional ``column=eq.value``
filter. Observers added with ``add_observer`` (see ``RealtimeBridge``) are told
when channels are subscribed or removed, and push the server's change events
back in through ``publish``.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger('Nawartu')

ChangeCallback = Callable[[str, dict[str, Any]], None]


def parse_filter(expression: Optional[str]) -> Optional[tuple[str, str]]:
    """
    Parse ``column=eq.value`` into (column, value).

    Raises:
        ValueError: For any other operator
    """
    if not expression:
        return None
    column, _, condition = expression.partition("=")
    if not condition.startswith("eq."):
        raise ValueError(f"Unsupported change filter: {expression}")
    return column, condition[3:]


@dataclass
class _Binding:
    table: str
    filter: Optional[tuple[str, str]]
    callback: ChangeCallback

    @property
    def filter_expression(self) -> Optional[str]:
        if self.filter is None:
            return None
        column, value = self.filter
        return f"{column}=eq.{value}"

    def matches(self, table: str, record: dict[str, Any]) -> bool:
        if table != self.table:
            return False
        if self.filter is None:
            return True
        column, value = self.filter
        return str(record.get(column)) == value


class Channel:
    """A named set of table listeners, active once subscribed."""

    def __init__(self, feed: "ChangeFeed", name: str):
        self.feed = feed
        self.name = name
        self.subscribed = False
        self._bindings: list[_Binding] = []

    @property
    def bindings(self) -> list[tuple[str, Optional[str]]]:
        """(table, filter) pairs this channel listens to."""
        return [(b.table, b.filter_expression) for b in self._bindings]

    def on(self, table: str, filter: Optional[str], callback: ChangeCallback) -> "Channel":
        """Listen for changes to ``table``; chainable."""
        self._bindings.append(_Binding(table, parse_filter(filter), callback))
        return self

    def subscribe(self) -> "Channel":
        self.subscribed = True
        logger.debug(f"Channel {self.name} subscribed ({len(self._bindings)} listener(s))")
        self.feed.notify("channel_subscribed", self)
        return self

    def unsubscribe(self) -> None:
        self.feed.remove_channel(self)

    def deliver(self, table: str, record: dict[str, Any]) -> int:
        """Run matching callbacks; returns how many ran."""
        if not self.subscribed:
            return 0
        delivered = 0
        for binding in self._bindings:
            if not binding.matches(table, record):
                continue
            delivered += 1
            try:
                binding.callback(table, record)
            except Exception as e:
                logger.error(f"Change handler on {self.name} failed for {table}: {e}")
        return delivered


class ChangeFeed:
    """Registry of open channels."""

    def __init__(self):
        self._channels: dict[int, Channel] = {}
        self._observers: list[Any] = []
        self._lock = threading.Lock()

    def add_observer(self, observer: Any) -> None:
        """Register an object with ``channel_subscribed``/``channel_removed`` methods."""
        self._observers.append(observer)

    def notify(self, event: str, channel: Channel) -> None:
        for observer in list(self._observers):
            try:
                getattr(observer, event)(channel)
            except Exception as e:
                logger.error(f"Change feed observer failed on {event} for {channel.name}: {e}")

    def channel(self, name: str) -> Channel:
        channel = Channel(self, name)
        with self._lock:
            self._channels[id(channel)] = channel
        return channel

    def remove_channel(self, channel: Channel) -> None:
        channel.subscribed = False
        with self._lock:
            removed = self._channels.pop(id(channel), None)
        if removed is not None:
            logger.debug(f"Channel {channel.name} removed")
            self.notify("channel_removed", channel)

    def active_channels(self) -> list[Channel]:
        with self._lock:
            return list(self._channels.values())

    def publish(self, table: str, record: dict[str, Any]) -> int:
        """
        Deliver a change of ``record`` in ``table`` to matching listeners.

        Returns:
            Number of callbacks run
        """
        delivered = 0
        for channel in self.active_channels():
            delivered += channel.deliver(table, record)
        logger.debug(f"Change on {table} delivered to {delivered} listener(s)")
        return delivered
