"""Tests for the availability gateway."""

from datetime import date, timedelta
from typing import Any, Callable, Optional
from unittest.mock import MagicMock

import pytest

from nawartu.models import AvailabilityStatus
from nawartu.services.availability import AvailabilityGateway
from nawartu.services.backend import BackendError
from nawartu.services.notifications import Notifier
from nawartu.services.realtime import ChangeFeed
from nawartu.utils import config
from nawartu.utils.i18n import t


def route_rpc(
    backend: MagicMock,
    rows: Any = None,
    **handlers: Any
) -> None:
    """Dispatch backend.rpc by procedure name; callables are invoked, other values returned."""
    def rpc(function: str, params: Optional[dict] = None) -> Any:
        if function == "get_listing_availability":
            handler = handlers.get(function, rows if rows is not None else [])
        else:
            handler = handlers.get(function)
        if isinstance(handler, Exception):
            raise handler
        if callable(handler):
            return handler(params)
        return handler

    backend.rpc.side_effect = rpc


def fetch_count(backend: MagicMock) -> int:
    return sum(1 for c in backend.rpc.call_args_list if c.args[0] == "get_listing_availability")


def rpc_params(backend: MagicMock, function: str) -> dict:
    calls = [c for c in backend.rpc.call_args_list if c.args[0] == function]
    assert calls, f"{function} was not called"
    return calls[-1].args[1]


@pytest.fixture
def make_gateway(
    backend: MagicMock,
    feed: ChangeFeed,
    notifier: Notifier,
    today: date
) -> Callable[..., AvailabilityGateway]:
    def factory(listing_id: Optional[str] = "listing-1", **kwargs: Any) -> AvailabilityGateway:
        return AvailabilityGateway(
            backend,
            listing_id,
            feed=feed,
            notifier=notifier,
            today=lambda: today,
            **kwargs,
        )
    return factory


class TestFetchAvailability:
    """Tests for loading the snapshot."""

    def test_fetch_parses_rows(
        self, backend: MagicMock, make_gateway: Callable, availability_rows: list
    ) -> None:
        """Test rows become AvailabilityDay objects."""
        route_rpc(backend, availability_rows)
        gateway = make_gateway()

        days = gateway.fetch_availability()

        assert [d.date for d in days] == [date(2024, 6, 10), date(2024, 6, 11), date(2024, 6, 12)]
        assert days[1].status == AvailabilityStatus.BOOKED
        assert days[2].price_modifier == 1.25
        assert gateway.loading is False
        assert gateway.error is None

    def test_default_window(self, backend: MagicMock, make_gateway: Callable, today: date) -> None:
        """The default window starts today."""
        route_rpc(backend, [])
        gateway = make_gateway()

        gateway.fetch_availability()

        params = rpc_params(backend, "get_listing_availability")
        expected_end = today + timedelta(days=config.availability_window_days)
        assert params == {
            "listing_id": "listing-1",
            "start_date": "2024-06-10",
            "end_date": expected_end.isoformat(),
        }

    def test_explicit_window(self, backend: MagicMock, make_gateway: Callable) -> None:
        """Test bounds given to the gateway and to the call."""
        route_rpc(backend, [])
        gateway = make_gateway(start_date="2024-07-01", end_date=date(2024, 7, 31))

        gateway.fetch_availability()
        assert rpc_params(backend, "get_listing_availability")["end_date"] == "2024-07-31"

        gateway.fetch_availability(date(2024, 8, 1), date(2024, 8, 2))
        params = rpc_params(backend, "get_listing_availability")
        assert params["start_date"] == "2024-08-01"
        assert params["end_date"] == "2024-08-02"

    def test_auto_fetch(self, backend: MagicMock, make_gateway: Callable, availability_rows: list) -> None:
        """Test fetching on construction."""
        route_rpc(backend, availability_rows)
        gateway = make_gateway(auto_fetch=True)

        assert len(gateway.availability) == 3
        assert fetch_count(backend) == 1

    def test_unbound_gateway_is_noop(self, backend: MagicMock, make_gateway: Callable) -> None:
        """Without a listing nothing is fetched."""
        gateway = make_gateway(None)

        assert gateway.fetch_availability() == []
        assert gateway.check_availability("2024-06-12", "2024-06-14") is None
        assert gateway.reserve_dates("2024-06-12", "2024-06-14", "user-1") is False
        backend.rpc.assert_not_called()

    def test_error_keeps_previous_snapshot(
        self,
        backend: MagicMock,
        make_gateway: Callable,
        notifier: Notifier,
        availability_rows: list
    ) -> None:
        """A failed fetch keeps the last good snapshot and notifies."""
        route_rpc(backend, availability_rows)
        gateway = make_gateway()
        gateway.fetch_availability()

        route_rpc(backend, get_listing_availability=BackendError("timeout", status=504))
        days = gateway.fetch_availability()

        assert len(days) == 3
        assert len(gateway.availability) == 3
        assert gateway.error == "timeout"
        assert gateway.loading is False
        assert notifier.last.variant == "destructive"
        assert notifier.last.description == t("availability.load_failed", "en")

    def test_malformed_row_is_an_error(self, backend: MagicMock, make_gateway: Callable) -> None:
        """Rows without a date are reported, not raised."""
        route_rpc(backend, [{"status": "available"}])
        gateway = make_gateway()

        assert gateway.fetch_availability() == []
        assert gateway.error is not None

    def test_response_for_old_listing_discarded(
        self, backend: MagicMock, make_gateway: Callable, availability_rows: list
    ) -> None:
        """A response that lands after the listing changed is dropped."""
        gateway = make_gateway()

        def switch_then_answer(params: dict) -> list:
            gateway.set_listing("listing-2", fetch=False)
            return availability_rows

        route_rpc(backend, get_listing_availability=switch_then_answer)
        gateway.fetch_availability()

        assert gateway.listing_id == "listing-2"
        assert gateway.availability == []

    def test_newer_fetch_wins(
        self, backend: MagicMock, make_gateway: Callable, availability_rows: list
    ) -> None:
        """An older response that completes last does not overwrite a newer one."""
        gateway = make_gateway()
        responses = iter([availability_rows[:1], availability_rows])

        def answer(params: dict) -> list:
            rows = next(responses)
            if len(rows) == 1:
                # The newer fetch starts and completes while this one is in flight
                gateway.fetch_availability()
            return rows

        route_rpc(backend, get_listing_availability=answer)
        gateway.fetch_availability()

        assert len(gateway.availability) == 3

    def test_stale_error_is_silent(
        self,
        backend: MagicMock,
        make_gateway: Callable,
        notifier: Notifier
    ) -> None:
        """Test errors from superseded fetches are not reported."""
        gateway = make_gateway()

        def switch_then_fail(params: dict) -> list:
            gateway.set_listing("listing-2", fetch=False)
            raise BackendError("late failure")

        route_rpc(backend, get_listing_availability=switch_then_fail)
        gateway.fetch_availability()

        assert gateway.error is None
        assert list(notifier.history) == []

    def test_unavailable_dates(
        self, backend: MagicMock, make_gateway: Callable, availability_rows: list
    ) -> None:
        """Only nights inside [check_in, check_out) count."""
        route_rpc(backend, availability_rows)
        gateway = make_gateway()
        gateway.fetch_availability()

        assert gateway.unavailable_dates("2024-06-10", "2024-06-13") == [date(2024, 6, 11)]
        assert gateway.unavailable_dates(date(2024, 6, 12), date(2024, 6, 14)) == []
        assert gateway.unavailable_dates("2024-06-10", "2024-06-11") == []


class TestLiveUpdates:
    """Tests for change-feed driven refetching."""

    def test_change_for_listing_triggers_refetch(
        self,
        backend: MagicMock,
        make_gateway: Callable,
        feed: ChangeFeed,
        availability_rows: list
    ) -> None:
        """Test changes to either watched table."""
        route_rpc(backend, availability_rows)
        make_gateway()

        feed.publish("bookings", {"listing_id": "listing-1", "status": "confirmed"})
        feed.publish("property_availability", {"listing_id": "listing-1"})

        assert fetch_count(backend) == 2

    def test_other_listing_ignored(self, backend: MagicMock, make_gateway: Callable, feed: ChangeFeed) -> None:
        """Test changes for another listing."""
        route_rpc(backend, [])
        make_gateway()

        assert feed.publish("bookings", {"listing_id": "listing-2"}) == 0
        assert feed.publish("reviews", {"listing_id": "listing-1"}) == 0
        assert fetch_count(backend) == 0

    def test_close_releases_channel(self, backend: MagicMock, make_gateway: Callable, feed: ChangeFeed) -> None:
        """No change triggers a refetch after close."""
        route_rpc(backend, [])
        gateway = make_gateway()
        assert len(feed.active_channels()) == 1

        gateway.close()
        feed.publish("bookings", {"listing_id": "listing-1"})

        assert feed.active_channels() == []
        assert fetch_count(backend) == 0

    def test_context_manager_closes(self, backend: MagicMock, make_gateway: Callable, feed: ChangeFeed) -> None:
        """Test the with-block releases the channel."""
        route_rpc(backend, [])
        with make_gateway():
            assert len(feed.active_channels()) == 1
        assert feed.active_channels() == []

    def test_set_listing_moves_channel(
        self,
        backend: MagicMock,
        make_gateway: Callable,
        feed: ChangeFeed,
        availability_rows: list
    ) -> None:
        """Switching listings drops the old snapshot and channel."""
        route_rpc(backend, availability_rows)
        gateway = make_gateway()
        gateway.fetch_availability()

        route_rpc(backend, [])
        gateway.set_listing("listing-2")

        channels = feed.active_channels()
        assert [c.name for c in channels] == ["availability-listing-2"]
        assert gateway.availability == []
        assert rpc_params(backend, "get_listing_availability")["listing_id"] == "listing-2"

        backend.rpc.reset_mock()
        feed.publish("bookings", {"listing_id": "listing-1"})
        assert fetch_count(backend) == 0

    def test_without_feed(self, backend: MagicMock, notifier: Notifier, today: date) -> None:
        """Test a gateway with no change feed."""
        route_rpc(backend, [])
        gateway = AvailabilityGateway(backend, "listing-1", notifier=notifier, today=lambda: today)

        gateway.close()
        assert gateway.fetch_availability() == []


class TestHolds:
    """Tests for check, reserve, release and confirm."""

    def test_check_availability(self, backend: MagicMock, make_gateway: Callable) -> None:
        """Test a single-row result set is unwrapped."""
        route_rpc(backend, check_availability=[{
            "is_available": True,
            "available_nights": 2,
            "total_nights": 2,
            "base_price": 40,
            "total_price": 90,
        }])
        gateway = make_gateway()

        check = gateway.check_availability(date(2024, 6, 12), date(2024, 6, 14), guests=3)

        assert check.is_available is True
        assert check.total_price == 90.0
        assert rpc_params(backend, "check_availability") == {
            "listing_id": "listing-1",
            "check_in": "2024-06-12",
            "check_out": "2024-06-14",
            "guests": 3,
        }

    def test_check_availability_failure(
        self, backend: MagicMock, make_gateway: Callable, notifier: Notifier
    ) -> None:
        """Test a failed check."""
        route_rpc(backend, check_availability=BackendError("boom"))
        gateway = make_gateway()

        assert gateway.check_availability("2024-06-12", "2024-06-14") is None
        assert notifier.last.description == t("availability.check_failed", "en")

    def test_check_availability_empty(self, backend: MagicMock, make_gateway: Callable) -> None:
        """Test an empty result."""
        route_rpc(backend, check_availability=[])
        gateway = make_gateway()

        assert gateway.check_availability("2024-06-12", "2024-06-14") is None

    def test_reserve_success_refetches_once(self, backend: MagicMock, make_gateway: Callable) -> None:
        """A placed hold refetches exactly once."""
        route_rpc(backend, [], reserve_dates=True)
        gateway = make_gateway()

        assert gateway.reserve_dates("2024-06-12", "2024-06-14", "user-1") is True
        assert fetch_count(backend) == 1
        params = rpc_params(backend, "reserve_dates")
        assert params["user_id"] == "user-1"
        assert params["hold_duration_minutes"] == config.hold_duration_minutes

    def test_reserve_custom_hold(self, backend: MagicMock, make_gateway: Callable) -> None:
        """Test an explicit hold duration."""
        route_rpc(backend, [], reserve_dates=[True])
        gateway = make_gateway()

        gateway.reserve_dates("2024-06-12", "2024-06-14", "user-1", hold_duration_minutes=30)

        assert rpc_params(backend, "reserve_dates")["hold_duration_minutes"] == 30

    def test_reserve_zero_hold_is_kept(self, backend: MagicMock, make_gateway: Callable) -> None:
        """An explicit zero-minute hold is sent as zero, not replaced by the default."""
        route_rpc(backend, [], reserve_dates=True)
        gateway = make_gateway()

        gateway.reserve_dates("2024-06-12", "2024-06-14", "user-1", hold_duration_minutes=0)

        assert rpc_params(backend, "reserve_dates")["hold_duration_minutes"] == 0

    def test_reserve_rejected_does_not_refetch(self, backend: MagicMock, make_gateway: Callable) -> None:
        """Test a hold the server refused."""
        route_rpc(backend, [], reserve_dates=False)
        gateway = make_gateway()

        assert gateway.reserve_dates("2024-06-12", "2024-06-14", "user-1") is False
        assert fetch_count(backend) == 0

    def test_reserve_error(self, backend: MagicMock, make_gateway: Callable, notifier: Notifier) -> None:
        """Test a failed hold."""
        route_rpc(backend, [], reserve_dates=BackendError("conflict", status=409))
        gateway = make_gateway()

        assert gateway.reserve_dates("2024-06-12", "2024-06-14", "user-1") is False
        assert fetch_count(backend) == 0
        assert notifier.last.description == t("availability.reserve_failed", "en")

    def test_release_refetches(self, backend: MagicMock, make_gateway: Callable) -> None:
        """Test a successful release."""
        route_rpc(backend, [], release_reservation=None)
        gateway = make_gateway()

        gateway.release_reservation("2024-06-12", "2024-06-14", "user-1")

        assert fetch_count(backend) == 1
        assert rpc_params(backend, "release_reservation")["user_id"] == "user-1"

    def test_release_refetches_even_on_error(
        self, backend: MagicMock, make_gateway: Callable, notifier: Notifier
    ) -> None:
        """The snapshot is refreshed even when the release fails."""
        route_rpc(backend, [], release_reservation=BackendError("gone"))
        gateway = make_gateway()

        gateway.release_reservation("2024-06-12", "2024-06-14")

        assert fetch_count(backend) == 1
        assert notifier.last.description == t("availability.release_failed", "en")

    def test_confirm_booking(self, backend: MagicMock, make_gateway: Callable) -> None:
        """Test confirming a booking."""
        route_rpc(backend, [], confirm_booking=True)
        gateway = make_gateway()

        assert gateway.confirm_booking("booking-1", "2024-06-12", "2024-06-14") is True
        assert fetch_count(backend) == 1
        assert rpc_params(backend, "confirm_booking") == {
            "booking_id": "booking-1",
            "listing_id": "listing-1",
            "check_in": "2024-06-12",
            "check_out": "2024-06-14",
        }

    def test_confirm_refused_still_refetches(self, backend: MagicMock, make_gateway: Callable) -> None:
        """Test a confirmation the server refused."""
        route_rpc(backend, [], confirm_booking=False)
        gateway = make_gateway()

        assert gateway.confirm_booking("booking-1", "2024-06-12", "2024-06-14") is False
        assert fetch_count(backend) == 1

    def test_confirm_error(self, backend: MagicMock, make_gateway: Callable, notifier: Notifier) -> None:
        """Test a failed confirmation."""
        route_rpc(backend, [], confirm_booking=BackendError("expired"))
        gateway = make_gateway()

        assert gateway.confirm_booking("booking-1", "2024-06-12", "2024-06-14") is False
        assert fetch_count(backend) == 0
        assert notifier.last.description == t("availability.confirm_failed", "en")
