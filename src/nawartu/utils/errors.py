"""
Exception types shared across Nawartu services.
"""

from .i18n import t


class NawartuError(Exception):
    """Base class for all Nawartu errors."""


class ValidationError(NawartuError):
    """
    Input rejected before any remote call.

    Carries a message key so the caller can render it in either language.
    """

    def __init__(self, key: str, title_key: str | None = None, **params: object):
        self.key = key
        self.title_key = title_key or "error"
        self.params = params
        super().__init__(t(key, "en", **params))

    def message(self, lang: str = "en") -> str:
        """Localized description."""
        return t(self.key, lang, **self.params)

    def title(self, lang: str = "en") -> str:
        """Localized title."""
        return t(self.title_key, lang)


class PaymentError(NawartuError):
    """The payment session could not be created."""
