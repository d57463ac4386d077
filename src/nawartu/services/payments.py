"""
Payments - Hosted checkout sessions for bookings.

The checkout function creates a hosted payment page and records the session
on the booking; the client only redirects the guest to the returned URL.
"""

import logging
from typing import Optional

from nawartu.models import CheckoutSession
from nawartu.services.backend import BackendClient, BackendError
from nawartu.utils import config
from nawartu.utils.errors import PaymentError, ValidationError

logger = logging.getLogger('Nawartu')


class PaymentService:
    """Creates checkout sessions through the hosted function."""

    def __init__(self, backend: BackendClient, function: Optional[str] = None):
        self.backend = backend
        self.function = function or config.checkout_function

    def create_checkout_session(
        self,
        booking_id: str,
        total_amount: float,
        listing_name: str,
        nights: int
    ) -> CheckoutSession:
        """
        Create a hosted checkout session for a booking.

        Args:
            booking_id: Booking being paid for
            total_amount: Total in the listing currency (must be > 0)
            listing_name: Shown on the payment page
            nights: Number of nights (must be >= 1)

        Returns:
            CheckoutSession with the redirect URL

        Raises:
            ValidationError: Invalid amount or nights; nothing is sent
            PaymentError: The function failed or returned no URL
        """
        if total_amount is None or total_amount <= 0:
            raise ValidationError("payment.invalid_amount")
        if nights is None or nights < 1:
            raise ValidationError("payment.invalid_nights")

        logger.info(f"Creating checkout session for booking {booking_id} ({nights} nights)")
        try:
            data = self.backend.invoke(self.function, {
                "bookingId": booking_id,
                "totalAmount": total_amount,
                "listingName": listing_name,
                "nights": nights,
            })
        except BackendError as e:
            logger.error(f"Checkout session failed for booking {booking_id}: {e}")
            raise PaymentError(e.message) from e

        if not isinstance(data, dict):
            raise PaymentError("Unexpected response from checkout function")
        if data.get("error"):
            logger.error(f"Checkout function error for booking {booking_id}: {data['error']}")
            raise PaymentError(str(data["error"]))
        if not data.get("url"):
            raise PaymentError("Checkout function returned no URL")

        return CheckoutSession(url=data["url"])
