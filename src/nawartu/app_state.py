"""
Application State - Language preference and signed-in session.

Built once at startup and passed explicitly to the CLI and services. The
language preference is persisted to a small JSON file between runs; the
session (user, token, profile) lives only in memory.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from nawartu.models import Profile
from nawartu.services.host import is_host as has_host_role
from nawartu.utils import config
from nawartu.utils.i18n import SUPPORTED_LANGUAGES, normalize_language

logger = logging.getLogger('Nawartu')


@dataclass
class AppState:
    """Current language and authentication state."""

    language: str = "en"
    user_id: Optional[str] = None
    access_token: Optional[str] = None
    profile: Optional[Profile] = None
    state_file: Optional[Path] = None

    @classmethod
    def load(cls, state_file: Optional[Path] = None) -> "AppState":
        """
        Build the state, reading the saved language if there is one.

        A missing or unreadable file falls back to the configured default.
        """
        path = Path(state_file) if state_file else config.state_file
        language = normalize_language(config.default_language)

        if path.exists():
            try:
                with open(path, encoding="utf-8") as f:
                    data = json.load(f)
                saved = data.get("language")
                if saved in SUPPORTED_LANGUAGES:
                    language = saved
                logger.debug(f"Loaded language preference '{language}' from {path}")
            except (json.JSONDecodeError, OSError, AttributeError) as e:
                logger.warning(f"Could not load state file {path}: {e}")

        return cls(language=language, state_file=path)

    def save(self) -> None:
        """Persist the language preference."""
        if self.state_file is None:
            return
        try:
            os.makedirs(self.state_file.parent, exist_ok=True)
            with open(self.state_file, "w", encoding="utf-8") as f:
                json.dump({"language": self.language}, f, indent=2)
            logger.debug(f"State saved to {self.state_file}")
        except OSError as e:
            logger.warning(f"Could not save state file {self.state_file}: {e}")

    def set_language(self, lang: str) -> None:
        """
        Switch the display language and persist it.

        Raises:
            ValueError: Unsupported language
        """
        if lang not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {lang}")
        self.language = lang
        self.save()

    @property
    def direction(self) -> str:
        """Text direction for the current language."""
        return "rtl" if self.language == "ar" else "ltr"

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_host(self) -> bool:
        return self.profile is not None and has_host_role(self.profile.role)

    def sign_in(self, user_id: str, access_token: str, profile: Optional[Profile] = None) -> None:
        self.user_id = user_id
        self.access_token = access_token
        self.profile = profile
        if profile and profile.preferred_language in SUPPORTED_LANGUAGES:
            self.language = profile.preferred_language

    def sign_out(self) -> None:
        self.user_id = None
        self.access_token = None
        self.profile = None
