"""
Pytest configuration and shared fixtures.
"""

from datetime import date
from unittest.mock import MagicMock

import pytest

from nawartu.models import TranslationResult
from nawartu.services.backend import BackendClient
from nawartu.services.notifications import Notifier
from nawartu.services.realtime import ChangeFeed

TODAY = date(2024, 6, 10)


@pytest.fixture
def today() -> date:
    """Fixed current day for calendar and availability tests."""
    return TODAY


@pytest.fixture
def backend() -> MagicMock:
    """Backend client double with a fixed project URL."""
    mock = MagicMock(spec=BackendClient)
    mock.url = "https://test.supabase.co"
    return mock


@pytest.fixture
def feed() -> ChangeFeed:
    """Fresh in-process change feed."""
    return ChangeFeed()


@pytest.fixture
def notifier() -> Notifier:
    """Notifier that only records and logs."""
    return Notifier(lang="en")


@pytest.fixture
def availability_rows() -> list[dict]:
    """Rows as returned by get_listing_availability."""
    return [
        {
            "date": "2024-06-10",
            "status": "available",
            "price_modifier": 1.0,
            "min_stay_nights": 2,
            "is_available": True,
        },
        {
            "date": "2024-06-11",
            "status": "booked",
            "price_modifier": 1.0,
            "min_stay_nights": 2,
            "is_available": False,
        },
        {
            "date": "2024-06-12",
            "status": "available",
            "price_modifier": 1.25,
            "min_stay_nights": 2,
            "is_available": True,
        },
    ]


@pytest.fixture
def sample_listing() -> dict:
    """Listing row with English fields only."""
    return {
        "id": "listing-1",
        "name_en": "Modern apartment",
        "description_en": "Spacious apartment near the old city",
        "location_en": "Damascus",
    }


@pytest.fixture
def translator() -> MagicMock:
    """Translator double that appends the target language to the text."""
    mock = MagicMock()
    mock.translate_detailed.side_effect = lambda text, target, source="auto": TranslationResult(
        text=f"{text} [{target}]", translated=True
    )
    return mock
