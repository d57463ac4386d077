"""
Availability Gateway - Calendar snapshot and booking holds for one listing.

Wraps the hosted stored procedures:
- get_listing_availability(listing_id, start_date, end_date)
- check_availability(listing_id, check_in, check_out, guests)
- reserve_dates(listing_id, check_in, check_out, user_id, hold_duration_minutes)
- release_reservation(listing_id, check_in, check_out, user_id)
- confirm_booking(booking_id, listing_id, check_in, check_out)

The gateway keeps the latest snapshot of the bound listing and listens on
one change-feed channel for it. Any change to its availability or booking
rows triggers a full refetch. Remote failures are reported through the
notifier and never destroy the previous snapshot.
"""

import logging
import threading
from datetime import date, timedelta
from typing import Any, Callable, Optional, Union

from nawartu.models import AvailabilityCheck, AvailabilityDay, parse_date
from nawartu.services.backend import BackendClient, BackendError
from nawartu.services.notifications import Notifier
from nawartu.services.realtime import Channel, ChangeFeed
from nawartu.utils import config

logger = logging.getLogger('Nawartu')

DateInput = Union[date, str]

WATCHED_TABLES = ("property_availability", "bookings")


def _iso(value: DateInput) -> str:
    if isinstance(value, str):
        return value
    return value.isoformat()


def _first_row(data: Any) -> Any:
    """RPCs return either a row set or a scalar; unwrap single-row sets."""
    if isinstance(data, list):
        return data[0] if data else None
    return data


class AvailabilityGateway:
    """
    Client-side view of one listing's availability.

    Usage:
        with AvailabilityGateway(backend, listing_id, feed=feed) as gateway:
            gateway.fetch_availability()
            if gateway.reserve_dates(check_in, check_out, user_id):
                ...
    """

    def __init__(
        self,
        backend: BackendClient,
        listing_id: Optional[str] = None,
        feed: Optional[ChangeFeed] = None,
        notifier: Optional[Notifier] = None,
        start_date: Optional[DateInput] = None,
        end_date: Optional[DateInput] = None,
        today: Callable[[], date] = date.today,
        auto_fetch: bool = False
    ):
        """
        Initialize the gateway.

        Args:
            backend: Backend client for the RPCs
            listing_id: Listing to bind to (None = unbound, every call is a no-op)
            feed: Change feed to subscribe on (None = no live updates)
            notifier: Receives localized error notifications
            start_date: Window start (None = today)
            end_date: Window end (None = today + configured window)
            today: Clock for the default window
            auto_fetch: Fetch immediately after binding
        """
        self.backend = backend
        self.feed = feed
        self.notifier = notifier or Notifier()
        self.start_date = start_date
        self.end_date = end_date
        self._today = today

        self.availability: list[AvailabilityDay] = []
        self.loading = False
        self.error: Optional[str] = None

        self.listing_id: Optional[str] = None
        self._channel: Optional[Channel] = None
        self._epoch = 0
        self._lock = threading.Lock()

        if listing_id:
            self.set_listing(listing_id, fetch=auto_fetch)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # ------------------------------------------------------------------
    # Binding and subscription
    # ------------------------------------------------------------------

    def set_listing(self, listing_id: Optional[str], fetch: bool = True) -> None:
        """
        Bind to another listing.

        Releases the previous channel, drops the previous listing's snapshot,
        subscribes for the new listing and refetches. In-flight fetches for
        the old listing are discarded when they complete.
        """
        with self._lock:
            self._epoch += 1
            self.listing_id = listing_id
            self.availability = []
            self.error = None

        self._unsubscribe()
        if not listing_id:
            return

        self._subscribe(listing_id)
        if fetch:
            self.fetch_availability()

    def _subscribe(self, listing_id: str) -> None:
        if self.feed is None:
            return
        channel = self.feed.channel(f"availability-{listing_id}")
        for table in WATCHED_TABLES:
            channel.on(table, f"listing_id=eq.{listing_id}", self._on_change)
        self._channel = channel.subscribe()
        logger.debug(f"Listening for availability changes on listing {listing_id}")

    def _unsubscribe(self) -> None:
        if self._channel is not None and self.feed is not None:
            self.feed.remove_channel(self._channel)
        self._channel = None

    def _on_change(self, table: str, record: dict[str, Any]) -> None:
        logger.info(f"{table} changed for listing {self.listing_id}, refetching availability")
        self.refetch()

    def close(self) -> None:
        """Release the change-feed channel."""
        self._unsubscribe()
        with self._lock:
            self._epoch += 1

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def default_window(self) -> tuple[date, date]:
        """[today, today + availability window] unless the gateway was given bounds."""
        today = self._today()
        start = parse_date(self.start_date) if self.start_date else today
        end = (
            parse_date(self.end_date) if self.end_date
            else today + timedelta(days=config.availability_window_days)
        )
        return start, end

    def fetch_availability(
        self,
        start: Optional[DateInput] = None,
        end: Optional[DateInput] = None
    ) -> list[AvailabilityDay]:
        """
        Fetch the availability snapshot for the bound listing.

        On failure the previous snapshot stays, ``error`` is set and a
        notification is emitted. A response that arrives after the listing
        changed or a newer fetch started is discarded.

        Returns:
            The current snapshot
        """
        with self._lock:
            listing_id = self.listing_id
            if not listing_id:
                return []
            self._epoch += 1
            epoch = self._epoch
            self.loading = True
            self.error = None

        default_start, default_end = self.default_window()
        params = {
            "listing_id": listing_id,
            "start_date": _iso(start or default_start),
            "end_date": _iso(end or default_end),
        }

        try:
            rows = self.backend.rpc("get_listing_availability", params) or []
            days = [AvailabilityDay.from_row(row) for row in rows]
        except (BackendError, KeyError, TypeError, ValueError) as e:
            with self._lock:
                if epoch != self._epoch:
                    logger.debug(f"Discarding stale availability error for {listing_id}")
                    return list(self.availability)
                self.error = str(e)
                self.loading = False
            logger.error(f"Error fetching availability for {listing_id}: {e}")
            self.notifier.error("availability.load_failed")
            return list(self.availability)

        with self._lock:
            if epoch != self._epoch:
                logger.debug(f"Discarding stale availability response for {listing_id}")
                return list(self.availability)
            self.availability = days
            self.loading = False

        logger.info(f"Loaded {len(days)} availability day(s) for listing {listing_id}")
        return list(days)

    def refetch(self) -> list[AvailabilityDay]:
        return self.fetch_availability()

    def unavailable_dates(self, check_in: DateInput, check_out: DateInput) -> list[date]:
        """
        Nights in [check_in, check_out) that the snapshot marks unavailable.

        Used to cross-check a calendar selection before booking.
        """
        start, end = parse_date(check_in), parse_date(check_out)
        return [
            day.date for day in self.availability
            if start <= day.date < end and not day.is_available
        ]

    # ------------------------------------------------------------------
    # Holds and bookings
    # ------------------------------------------------------------------

    def check_availability(
        self,
        check_in: DateInput,
        check_out: DateInput,
        guests: int = 1
    ) -> Optional[AvailabilityCheck]:
        """
        Check a prospective stay without touching holds.

        Returns:
            AvailabilityCheck, or None if nothing came back or the call failed
        """
        if not self.listing_id:
            return None

        try:
            row = _first_row(self.backend.rpc("check_availability", {
                "listing_id": self.listing_id,
                "check_in": _iso(check_in),
                "check_out": _iso(check_out),
                "guests": guests,
            }))
        except BackendError as e:
            logger.error(f"Error checking availability: {e}")
            self.notifier.error("availability.check_failed")
            return None

        if not isinstance(row, dict):
            return None
        return AvailabilityCheck.from_row(row)

    def reserve_dates(
        self,
        check_in: DateInput,
        check_out: DateInput,
        user_id: str,
        hold_duration_minutes: Optional[int] = None
    ) -> bool:
        """
        Place a time-limited hold; expiry is enforced server-side.

        Returns:
            True if the hold was placed (the snapshot is then refetched once)
        """
        if not self.listing_id:
            return False

        hold = hold_duration_minutes
        if hold is None:
            hold = config.hold_duration_minutes
        try:
            placed = bool(_first_row(self.backend.rpc("reserve_dates", {
                "listing_id": self.listing_id,
                "check_in": _iso(check_in),
                "check_out": _iso(check_out),
                "user_id": user_id,
                "hold_duration_minutes": hold,
            })))
        except BackendError as e:
            logger.error(f"Error reserving dates: {e}")
            self.notifier.error("availability.reserve_failed")
            return False

        if placed:
            logger.info(f"Held {_iso(check_in)}..{_iso(check_out)} for {hold} minutes")
            self.refetch()
        return placed

    def release_reservation(
        self,
        check_in: DateInput,
        check_out: DateInput,
        user_id: Optional[str] = None
    ) -> None:
        """Release a hold. The snapshot is refetched even if no hold existed or the call failed."""
        if not self.listing_id:
            return

        try:
            self.backend.rpc("release_reservation", {
                "listing_id": self.listing_id,
                "check_in": _iso(check_in),
                "check_out": _iso(check_out),
                "user_id": user_id,
            })
        except BackendError as e:
            logger.error(f"Error releasing reservation: {e}")
            self.notifier.error("availability.release_failed")
        finally:
            self.refetch()

    def confirm_booking(
        self,
        booking_id: str,
        check_in: DateInput,
        check_out: DateInput
    ) -> bool:
        """
        Turn a hold into a confirmed booking.

        Returns:
            The procedure's verdict; the snapshot is refetched after it returns
        """
        if not self.listing_id:
            return False

        try:
            confirmed = bool(_first_row(self.backend.rpc("confirm_booking", {
                "booking_id": booking_id,
                "listing_id": self.listing_id,
                "check_in": _iso(check_in),
                "check_out": _iso(check_out),
            })))
        except BackendError as e:
            logger.error(f"Error confirming booking {booking_id}: {e}")
            self.notifier.error("availability.confirm_failed")
            return False

        self.refetch()
        return confirmed
