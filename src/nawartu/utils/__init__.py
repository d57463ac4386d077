"""
Utility modules for the Nawartu client.
"""

from .config import Config, config
from .errors import NawartuError, PaymentError, ValidationError
from .i18n import t
from .retry import call_with_retry, retry_on_failure

__all__ = [
    "config",
    "Config",
    "NawartuError",
    "PaymentError",
    "ValidationError",
    "t",
    "call_with_retry",
    "retry_on_failure",
]
