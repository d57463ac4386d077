"""
Reviews - Guest reviews, host responses and average ratings.
"""

import logging
from typing import Optional

from nawartu.models import RatingSummary, Review
from nawartu.services.backend import BackendClient, BackendError
from nawartu.services.notifications import Notifier
from nawartu.utils.errors import ValidationError

logger = logging.getLogger('Nawartu')

MIN_RATING = 1
MAX_RATING = 5


def validate_review(rating: Optional[int], title: str, comment: str) -> None:
    """
    Reject a review before it is sent.

    Raises:
        ValidationError: Rating outside 1..5, or a blank title or comment
    """
    if not rating or not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError("review.rating_required", "review.rating_required.title")
    if not (title or "").strip() or not (comment or "").strip():
        raise ValidationError("review.incomplete", "review.incomplete.title")


class ReviewService:
    """Reads and writes the ``reviews`` table."""

    def __init__(self, backend: BackendClient, notifier: Optional[Notifier] = None):
        self.backend = backend
        self.notifier = notifier or Notifier()

    def submit_review(
        self,
        listing_id: str,
        guest_id: str,
        rating: Optional[int],
        title: str,
        comment: str,
        booking_id: Optional[str] = None
    ) -> Optional[Review]:
        """
        Validate and store a review.

        Returns:
            The stored review, or None if the insert failed

        Raises:
            ValidationError: See :func:`validate_review`; nothing is sent
        """
        validate_review(rating, title, comment)

        try:
            rows = self.backend.insert("reviews", {
                "booking_id": booking_id,
                "guest_id": guest_id,
                "listing_id": listing_id,
                "rating": rating,
                "title": title.strip(),
                "comment": comment.strip(),
            })
        except BackendError as e:
            logger.error(f"Failed to submit review for {listing_id}: {e}")
            self.notifier.error("review.failed")
            return None

        self.notifier.success("review.submitted", "review.submitted.title")
        if rows:
            return Review.from_row(rows[0])
        return Review(
            listing_id=listing_id, guest_id=guest_id, rating=rating,
            title=title.strip(), comment=comment.strip(), booking_id=booking_id,
        )

    def list_reviews(self, listing_id: str) -> list[Review]:
        """
        Reviews of a listing, newest first, with guest names filled in.

        Returns an empty list when there are none or the query fails.
        """
        try:
            rows = self.backend.select(
                "reviews",
                {"listing_id": listing_id},
                columns="id,listing_id,booking_id,rating,title,comment,host_response,created_at,guest_id",
                order="created_at.desc",
            ) or []
        except BackendError as e:
            logger.error(f"Error fetching reviews for {listing_id}: {e}")
            return []

        names: dict[str, Optional[str]] = {}
        reviews = []
        for row in rows:
            review = Review.from_row(row)
            if review.guest_id not in names:
                names[review.guest_id] = self._guest_name(review.guest_id)
            review.guest_name = names[review.guest_id]
            reviews.append(review)
        return reviews

    def _guest_name(self, profile_id: str) -> Optional[str]:
        if not profile_id:
            return None
        try:
            row = self.backend.select("profiles", {"id": profile_id}, columns="full_name", single=True)
        except BackendError:
            return None
        return (row or {}).get("full_name")

    def average_rating(self, listing_id: str) -> Optional[RatingSummary]:
        """
        Average rating via ``get_listing_average_rating``.

        Returns:
            RatingSummary, or None when the listing has no rating yet
        """
        try:
            rows = self.backend.rpc("get_listing_average_rating", {"listing_uuid": listing_id})
        except BackendError as e:
            logger.error(f"Error fetching average rating for {listing_id}: {e}")
            return None

        if not rows:
            return None
        row = rows[0] if isinstance(rows, list) else rows
        if not isinstance(row, dict) or row.get("average_rating") is None:
            return None
        return RatingSummary(
            average_rating=float(row["average_rating"]),
            review_count=int(row.get("review_count") or 0),
        )

    def respond(self, review_id: str, response: str) -> bool:
        """
        Store a host's public response to a review.

        Raises:
            ValidationError: Blank response
        """
        if not (response or "").strip():
            raise ValidationError("review.response_required", "review.response_required.title")

        try:
            self.backend.update("reviews", {"host_response": response.strip()}, {"id": review_id})
        except BackendError as e:
            logger.error(f"Failed to respond to review {review_id}: {e}")
            self.notifier.error("review.response_failed")
            return False

        self.notifier.success("review.response_submitted", "review.response_submitted.title")
        return True
