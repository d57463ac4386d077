"""Tests for retry, messages and errors."""

from unittest.mock import MagicMock

import pytest

from nawartu.utils.errors import ValidationError
from nawartu.utils.i18n import MESSAGES, normalize_language, other_language, t
from nawartu.utils.retry import call_with_retry, retry_on_failure


class TestCallWithRetry:
    """Tests for call_with_retry."""

    def test_success_first_try(self) -> None:
        """Test no retry on success."""
        func = MagicMock(return_value="ok")
        sleep = MagicMock()

        assert call_with_retry(func, 1, key="v", max_retries=3, delay=1.0, sleep=sleep) == "ok"
        func.assert_called_once_with(1, key="v")
        sleep.assert_not_called()

    def test_exponential_backoff(self) -> None:
        """Test delays grow by the backoff factor."""
        func = MagicMock(side_effect=[ValueError("a"), ValueError("b"), "ok"])
        sleep = MagicMock()

        assert call_with_retry(func, max_retries=3, delay=1.0, backoff=2.0, sleep=sleep) == "ok"
        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0]

    def test_raises_after_last_attempt(self) -> None:
        """Test the last exception propagates."""
        func = MagicMock(side_effect=ValueError("nope"))
        sleep = MagicMock()

        with pytest.raises(ValueError, match="nope"):
            call_with_retry(func, max_retries=2, delay=0.5, sleep=sleep)
        assert func.call_count == 3
        assert sleep.call_count == 2

    def test_only_listed_exceptions_retried(self) -> None:
        """Test other exceptions propagate immediately."""
        func = MagicMock(side_effect=KeyError("k"))
        sleep = MagicMock()

        with pytest.raises(KeyError):
            call_with_retry(func, max_retries=3, delay=1.0, exceptions=(ValueError,), sleep=sleep)
        assert func.call_count == 1


class TestRetryOnFailure:
    """Tests for the decorator form."""

    def test_decorator_retries(self) -> None:
        """Test the decorated function is retried."""
        calls = []

        @retry_on_failure(max_retries=2, delay=0)
        def flaky() -> str:
            calls.append(1)
            if len(calls) < 2:
                raise ConnectionError("down")
            return "up"

        assert flaky() == "up"
        assert len(calls) == 2
        assert flaky.__name__ == "flaky"

    def test_decorator_gives_up(self) -> None:
        """Test the decorated function raises once retries run out."""
        @retry_on_failure(max_retries=1, delay=0, exceptions=(ConnectionError,))
        def down() -> None:
            raise ConnectionError("down")

        with pytest.raises(ConnectionError):
            down()


class TestMessages:
    """Tests for localized messages."""

    def test_every_message_has_both_languages(self) -> None:
        """Arabic and English stay in step."""
        for key, entry in MESSAGES.items():
            assert set(entry) == {"ar", "en"}, key

    def test_lookup_and_params(self) -> None:
        """Test interpolation in both languages."""
        assert t("upload.complete", "en", count=2) == "Successfully uploaded 2 image(s)."
        assert t("upload.complete", "ar", count=2) == "تم رفع 2 صورة بنجاح."

    def test_unknown_key(self) -> None:
        """Test unknown keys come back unchanged."""
        assert t("no.such.key") == "no.such.key"

    def test_language_helpers(self) -> None:
        """Test normalize_language and other_language."""
        assert normalize_language("AR") == "ar"
        assert normalize_language("fr") == "en"
        assert normalize_language(None, "ar") == "ar"
        assert other_language("ar") == "en"
        assert other_language("en") == "ar"


class TestValidationError:
    """Tests for ValidationError."""

    def test_localized_message_and_title(self) -> None:
        """Test message and title in both languages."""
        error = ValidationError("upload.too_large", "upload.too_large.title", name="a.jpg", limit=5)

        assert str(error) == "a.jpg is larger than 5MB."
        assert error.message("ar") == "a.jpg أكبر من 5 ميغابايت."
        assert error.title("en") == "File Too Large"

    def test_default_title(self) -> None:
        """Test the generic error title."""
        assert ValidationError("payment.invalid_nights").title("ar") == "خطأ"
