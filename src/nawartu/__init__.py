"""
Nawartu Client.

Python client for the Nawartu Syrian hospitality platform: governorate
lookup, bilingual listing text, stay date selection and the availability
and booking gateway.
"""

__version__ = "1.2.0"
__author__ = "Nawartu Team"

from nawartu.app_state import AppState
from nawartu.models import AvailabilityCheck, AvailabilityDay, DateRange, Governorate, ResolvedContent
from nawartu.services import (
    AvailabilityGateway,
    BackendClient,
    BilingualContentResolver,
    DateRangeSelector,
    GovernorateService,
)

__all__ = [
    "AppState",
    "AvailabilityGateway",
    "BackendClient",
    "BilingualContentResolver",
    "DateRangeSelector",
    "GovernorateService",
    "Governorate",
    "DateRange",
    "AvailabilityDay",
    "AvailabilityCheck",
    "ResolvedContent",
    "__version__",
]
