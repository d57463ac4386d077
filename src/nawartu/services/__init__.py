"""
Services for the Nawartu client.
"""

from .availability import AvailabilityGateway
from .backend import BackendClient, BackendError, NotFoundError
from .calendar import DateRangeSelector, DayCell, SelectionState, month_grid
from .content import BilingualContentResolver
from .emails import EmailMessage, EmailService
from .governorate import SYRIAN_GOVERNORATES, GovernorateService
from .host import request_host_upgrade
from .notifications import ConsoleNotifier, Notifier
from .payments import PaymentService
from .profiles import ProfileService
from .realtime import ChangeFeed, Channel
from .realtime_bridge import RealtimeBridge
from .reviews import ReviewService
from .storage import StorageService, get_public_image_url
from .translation import (
    DirectTranslator,
    GlossaryTranslator,
    TranslationClient,
    create_translator,
    detect_script,
)

__all__ = [
    "AvailabilityGateway",
    "BackendClient",
    "BackendError",
    "NotFoundError",
    "DateRangeSelector",
    "DayCell",
    "SelectionState",
    "month_grid",
    "BilingualContentResolver",
    "EmailMessage",
    "EmailService",
    "SYRIAN_GOVERNORATES",
    "GovernorateService",
    "request_host_upgrade",
    "ConsoleNotifier",
    "Notifier",
    "PaymentService",
    "ProfileService",
    "ChangeFeed",
    "Channel",
    "RealtimeBridge",
    "ReviewService",
    "StorageService",
    "get_public_image_url",
    "DirectTranslator",
    "GlossaryTranslator",
    "TranslationClient",
    "create_translator",
    "detect_script",
]
