"""Tests for reviews and ratings."""

from unittest.mock import MagicMock

import pytest

from nawartu.models import RatingSummary
from nawartu.services.backend import BackendError, NotFoundError
from nawartu.services.notifications import Notifier
from nawartu.services.reviews import ReviewService, validate_review
from nawartu.utils.errors import ValidationError


@pytest.fixture
def reviews(backend: MagicMock, notifier: Notifier) -> ReviewService:
    return ReviewService(backend, notifier)


class TestValidateReview:
    """Tests for review validation."""

    @pytest.mark.parametrize("rating", [None, 0, 6])
    def test_rating_required(self, rating: int) -> None:
        """Test ratings outside 1..5."""
        with pytest.raises(ValidationError) as exc_info:
            validate_review(rating, "Great", "Lovely")
        assert exc_info.value.key == "review.rating_required"
        assert exc_info.value.title("en") == "Rating Required"

    def test_blank_text(self) -> None:
        """Test blank title or comment."""
        with pytest.raises(ValidationError) as exc_info:
            validate_review(4, "   ", "Lovely")
        assert exc_info.value.key == "review.incomplete"

        with pytest.raises(ValidationError):
            validate_review(4, "Great", "")

    def test_valid(self) -> None:
        """Test a valid review passes."""
        validate_review(5, "Great", "Lovely")


class TestSubmitReview:
    """Tests for submitting reviews."""

    def test_submit(self, reviews: ReviewService, backend: MagicMock, notifier: Notifier) -> None:
        """Test text is trimmed and the stored row is returned."""
        backend.insert.return_value = [{
            "id": "r1", "listing_id": "l1", "guest_id": "g1", "rating": 5,
            "title": "Great", "comment": "Lovely", "booking_id": "b1",
        }]

        review = reviews.submit_review("l1", "g1", 5, " Great ", "Lovely\n", booking_id="b1")

        backend.insert.assert_called_once_with("reviews", {
            "booking_id": "b1",
            "guest_id": "g1",
            "listing_id": "l1",
            "rating": 5,
            "title": "Great",
            "comment": "Lovely",
        })
        assert review.id == "r1"
        assert notifier.last.title == "Review Submitted"

    def test_invalid_review_not_sent(self, reviews: ReviewService, backend: MagicMock) -> None:
        """Test validation happens before any call."""
        with pytest.raises(ValidationError):
            reviews.submit_review("l1", "g1", 0, "Great", "Lovely")
        backend.insert.assert_not_called()

    def test_insert_failure(self, reviews: ReviewService, backend: MagicMock, notifier: Notifier) -> None:
        """Test a failed insert."""
        backend.insert.side_effect = BackendError("duplicate key")

        assert reviews.submit_review("l1", "g1", 5, "Great", "Lovely") is None
        assert notifier.last.variant == "destructive"


class TestListReviews:
    """Tests for listing reviews."""

    def test_guest_names_looked_up_once(self, reviews: ReviewService, backend: MagicMock) -> None:
        """Each guest's profile is read once."""
        rows = [
            {"id": "r1", "listing_id": "l1", "guest_id": "g1", "rating": 5},
            {"id": "r2", "listing_id": "l1", "guest_id": "g1", "rating": 4},
            {"id": "r3", "listing_id": "l1", "guest_id": "g2", "rating": 3},
        ]

        def select(table: str, filters: dict, **kwargs: object) -> object:
            if table == "reviews":
                return rows
            if filters["id"] == "g2":
                raise NotFoundError("no rows", code="PGRST116")
            return {"full_name": "Sami"}

        backend.select.side_effect = select

        result = reviews.list_reviews("l1")

        assert [r.guest_name for r in result] == ["Sami", "Sami", None]
        assert backend.select.call_count == 3
        assert backend.select.call_args_list[0].kwargs["order"] == "created_at.desc"

    def test_query_failure(self, reviews: ReviewService, backend: MagicMock) -> None:
        """Test a failed query gives an empty list."""
        backend.select.side_effect = BackendError("boom")
        assert reviews.list_reviews("l1") == []


class TestAverageRating:
    """Tests for average ratings."""

    def test_average(self, reviews: ReviewService, backend: MagicMock) -> None:
        """Test the summary is built from the first row."""
        backend.rpc.return_value = [{"average_rating": "4.5", "review_count": 12}]

        assert reviews.average_rating("l1") == RatingSummary(4.5, 12)
        backend.rpc.assert_called_once_with("get_listing_average_rating", {"listing_uuid": "l1"})

    def test_no_rating(self, reviews: ReviewService, backend: MagicMock) -> None:
        """Test listings without reviews."""
        backend.rpc.return_value = []
        assert reviews.average_rating("l1") is None

        backend.rpc.return_value = [{"average_rating": None, "review_count": 0}]
        assert reviews.average_rating("l1") is None

    @pytest.mark.parametrize("payload", [4.5, "4.5", [4.5], [None], True])
    def test_non_row_result(self, reviews: ReviewService, backend: MagicMock, payload: object) -> None:
        """Test scalar or non-dict results are treated as no rating."""
        backend.rpc.return_value = payload

        assert reviews.average_rating("l1") is None

    def test_failure(self, reviews: ReviewService, backend: MagicMock) -> None:
        """Test a failed RPC."""
        backend.rpc.side_effect = BackendError("boom")
        assert reviews.average_rating("l1") is None


class TestRespond:
    """Tests for host responses."""

    def test_respond(self, reviews: ReviewService, backend: MagicMock, notifier: Notifier) -> None:
        """Test storing a response."""
        assert reviews.respond("r1", " Thank you! ") is True
        backend.update.assert_called_once_with("reviews", {"host_response": "Thank you!"}, {"id": "r1"})
        assert notifier.last.title == "Response Submitted"

    def test_blank_response(self, reviews: ReviewService, backend: MagicMock) -> None:
        """Test a blank response is rejected."""
        with pytest.raises(ValidationError):
            reviews.respond("r1", "  ")
        backend.update.assert_not_called()

    def test_failure(self, reviews: ReviewService, backend: MagicMock, notifier: Notifier) -> None:
        """Test a failed update."""
        backend.update.side_effect = BackendError("denied")
        assert reviews.respond("r1", "Thanks") is False
        assert notifier.last.variant == "destructive"
