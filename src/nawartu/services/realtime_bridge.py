"""
Realtime Bridge - Connects the change feed to the hosted realtime service.

Every subscribed feed channel is joined on the server as a
``postgres_changes`` channel with the same tables and ``column=eq.value``
filters. Change events coming back over the websocket are republished into
the feed, which runs the matching listeners (the availability gateway
refetches, for example). The websocket runs on its own event loop in a
background thread and reconnects after a delay when the connection drops.
"""

import asyncio
import itertools
import logging
import re
import threading
from typing import Any, Optional
from urllib.parse import urlencode

import aiohttp

from nawartu.services.realtime import ChangeFeed, Channel
from nawartu.utils import config

logger = logging.getLogger('Nawartu')

PROTOCOL_VERSION = "1.0.0"


class RealtimeBridge:
    """
    Mirrors feed channels onto the server and feeds server events back.

    Usage:
        feed = ChangeFeed()
        bridge = RealtimeBridge(feed)
        bridge.start()
        with AvailabilityGateway(backend, listing_id, feed=feed) as gateway:
            ...
        bridge.stop()
    """

    def __init__(
        self,
        feed: ChangeFeed,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        access_token: Optional[str] = None,
        heartbeat_interval: Optional[float] = None,
        reconnect_delay: Optional[float] = None
    ):
        self.feed = feed
        self.url = (url or config.backend_url).rstrip("/")
        self.api_key = api_key if api_key is not None else config.anon_key
        self.access_token = access_token
        self.heartbeat_interval = heartbeat_interval or config.realtime_heartbeat_interval
        self.reconnect_delay = reconnect_delay or config.realtime_reconnect_delay

        self._channels: dict[str, Channel] = {}
        self._lock = threading.Lock()
        self._refs = itertools.count(1)
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._outbox: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None
        self._thread: Optional[threading.Thread] = None
        self._stopping = threading.Event()

        for channel in feed.active_channels():
            if channel.subscribed:
                self.channel_subscribed(channel)
        feed.add_observer(self)

    # ------------------------------------------------------------------
    # Protocol messages
    # ------------------------------------------------------------------

    @property
    def websocket_url(self) -> str:
        base = re.sub(r'^http', 'ws', self.url)
        query = urlencode({"apikey": self.api_key, "vsn": PROTOCOL_VERSION})
        return f"{base}/realtime/v1/websocket?{query}"

    @staticmethod
    def topic(channel: Channel) -> str:
        return f"realtime:{channel.name}"

    def _message(self, topic: str, event: str, payload: dict[str, Any]) -> dict[str, Any]:
        return {"topic": topic, "event": event, "payload": payload, "ref": str(next(self._refs))}

    def join_message(self, channel: Channel) -> dict[str, Any]:
        changes = []
        for table, filter_expression in channel.bindings:
            change = {"event": "*", "schema": "public", "table": table}
            if filter_expression:
                change["filter"] = filter_expression
            changes.append(change)

        payload: dict[str, Any] = {
            "config": {
                "broadcast": {"self": False},
                "presence": {"key": ""},
                "postgres_changes": changes,
            },
        }
        if self.access_token:
            payload["access_token"] = self.access_token
        return self._message(self.topic(channel), "phx_join", payload)

    def leave_message(self, channel: Channel) -> dict[str, Any]:
        return self._message(self.topic(channel), "phx_leave", {})

    def heartbeat_message(self) -> dict[str, Any]:
        return self._message("phoenix", "heartbeat", {})

    def handle_message(self, message: dict[str, Any]) -> int:
        """
        Process one server message.

        Returns:
            Number of feed listeners run for a change event, else 0
        """
        event = message.get("event")
        payload = message.get("payload") or {}

        if event == "postgres_changes":
            data = payload.get("data") or {}
            table = data.get("table")
            if not table:
                return 0
            # Deletes only carry old_record
            record = {**(data.get("old_record") or {}), **(data.get("record") or {})}
            logger.debug(f"Realtime {data.get('type')} on {table}")
            return self.feed.publish(table, record)

        if event in ("phx_reply", "system") and payload.get("status") == "error":
            logger.error(f"Realtime error on {message.get('topic')}: {payload.get('response') or payload}")
        elif event == "phx_error":
            logger.warning(f"Realtime channel {message.get('topic')} errored")
        return 0

    # ------------------------------------------------------------------
    # Feed observer
    # ------------------------------------------------------------------

    def joined_channels(self) -> list[Channel]:
        with self._lock:
            return list(self._channels.values())

    def channel_subscribed(self, channel: Channel) -> None:
        with self._lock:
            self._channels[self.topic(channel)] = channel
        self._send(self.join_message(channel))

    def channel_removed(self, channel: Channel) -> None:
        with self._lock:
            removed = self._channels.pop(self.topic(channel), None)
        if removed is not None:
            self._send(self.leave_message(channel))

    def set_access_token(self, token: Optional[str]) -> None:
        """Use a signed-in user's token for row-level security on joined channels."""
        self.access_token = token
        for channel in self.joined_channels():
            self._send(self._message(self.topic(channel), "access_token", {"access_token": token}))

    def _send(self, message: dict[str, Any]) -> None:
        # Channels are (re)joined on connect, so nothing is queued while offline
        loop, outbox = self._loop, self._outbox
        if loop is None or outbox is None:
            return
        loop.call_soon_threadsafe(outbox.put_nowait, message)

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Connect in a background thread."""
        if self.running:
            return
        self._stopping.clear()
        self._thread = threading.Thread(target=self._thread_main, name="nawartu-realtime", daemon=True)
        self._thread.start()
        logger.info(f"Realtime bridge started for {self.url}")

    def stop(self, timeout: float = 5.0) -> None:
        """Disconnect and wait for the background thread."""
        self._stopping.set()
        loop, task = self._loop, self._task
        if loop is not None and task is not None:
            loop.call_soon_threadsafe(task.cancel)
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Realtime bridge stopped")

    def _thread_main(self) -> None:
        try:
            asyncio.run(self._run())
        except asyncio.CancelledError:
            logger.debug("Realtime loop cancelled")

    async def _run(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._task = asyncio.current_task()
        try:
            while not self._stopping.is_set():
                try:
                    await self._connect_once()
                except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                    logger.warning(f"Realtime connection failed: {e}")
                if self._stopping.is_set():
                    break
                logger.info(f"Reconnecting to realtime in {self.reconnect_delay:g}s")
                await asyncio.sleep(self.reconnect_delay)
        finally:
            self._loop = None
            self._task = None

    async def _connect_once(self) -> None:
        outbox: asyncio.Queue = asyncio.Queue()
        headers = {"User-Agent": config.user_agent}
        async with aiohttp.ClientSession(headers=headers) as session:
            async with session.ws_connect(self.websocket_url) as ws:
                logger.info("Connected to realtime")
                for channel in self.joined_channels():
                    outbox.put_nowait(self.join_message(channel))
                self._outbox = outbox
                pump = asyncio.create_task(self._pump(ws, outbox))
                try:
                    await self._consume(ws)
                finally:
                    self._outbox = None
                    pump.cancel()

    async def _pump(self, ws: Any, outbox: asyncio.Queue) -> None:
        """Send queued messages, and a heartbeat whenever the queue stays idle."""
        while True:
            try:
                message = await asyncio.wait_for(outbox.get(), timeout=self.heartbeat_interval)
            except asyncio.TimeoutError:
                message = self.heartbeat_message()
            await ws.send_json(message)

    async def _consume(self, ws: Any) -> None:
        async for msg in ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                self.handle_message(msg.json())
            elif msg.type == aiohttp.WSMsgType.ERROR:
                logger.warning(f"Realtime websocket error: {ws.exception()}")
                break
        logger.info("Realtime connection closed")
