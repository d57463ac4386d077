"""
Configuration loader for the Nawartu client.

Loads settings from config.yaml and provides typed access to configuration values.
A few secrets can be overridden from the environment.
"""

import os
from pathlib import Path
from typing import Any, cast

import yaml


class Config:
    """
    Singleton configuration loader.

    Loads config.yaml once and provides access to all settings.
    """

    _instance: "Config | None" = None
    _config: dict[str, Any] | None = None

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load_config()
        return cls._instance

    def _load_config(self) -> None:
        """Load configuration from config.yaml."""
        config_path = self._find_project_root() / "config.yaml"
        if not config_path.exists():
            # Installed without the project tree: every property has a default
            self._config = {}
            return
        with open(config_path, encoding="utf-8") as f:
            self._config = yaml.safe_load(f) or {}

    @staticmethod
    def _find_project_root() -> Path:
        """Find project root by searching for pyproject.toml."""
        current = Path(__file__).resolve().parent
        for _ in range(10):  # Prevent infinite loop
            if (current / "pyproject.toml").exists():
                return current
            if current.parent == current:
                break
            current = current.parent
        # Fallback: assume standard src layout (4 levels up from utils/config.py)
        return Path(__file__).resolve().parent.parent.parent.parent

    def get(self, *keys: str, default: Any = None) -> Any:
        """
        Get a nested configuration value.

        Args:
            *keys: Path to the config value (e.g., 'backend', 'url')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self._config
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    # Backend
    @property
    def backend_url(self) -> str:
        result = os.environ.get("NAWARTU_SUPABASE_URL") or self.get(
            "backend", "url", default="https://nawartu.supabase.co"
        )
        return cast(str, result).rstrip("/")

    @property
    def anon_key(self) -> str:
        result = os.environ.get("NAWARTU_SUPABASE_ANON_KEY") or self.get(
            "backend", "anon_key", default=""
        )
        return cast(str, result)

    @property
    def user_agent(self) -> str:
        result = self.get(
            "backend", "user_agent", default="NawartuClient/1.2 (+https://nawartu.com)"
        )
        return cast(str, result)

    # Timing
    @property
    def http_timeout(self) -> int:
        result = self.get("timing", "http_timeout", default=15)
        return cast(int, result)

    @property
    def retry_attempts(self) -> int:
        result = self.get("timing", "retry_attempts", default=3)
        return cast(int, result)

    @property
    def retry_delay(self) -> float:
        result = self.get("timing", "retry_delay", default=1.0)
        return cast(float, result)

    # Translation
    @property
    def translation_mode(self) -> str:
        result = self.get("translation", "mode", default="remote")
        return cast(str, result)

    @property
    def translation_function(self) -> str:
        result = self.get("translation", "function", default="translate-text")
        return cast(str, result)

    @property
    def translation_max_length(self) -> int:
        result = self.get("translation", "max_length", default=5000)
        return cast(int, result)

    @property
    def translation_max_concurrency(self) -> int:
        result = self.get("translation", "max_concurrency", default=8)
        return cast(int, result)

    # Availability
    @property
    def availability_window_days(self) -> int:
        result = self.get("availability", "window_days", default=180)
        return cast(int, result)

    @property
    def hold_duration_minutes(self) -> int:
        result = self.get("availability", "hold_duration_minutes", default=15)
        return cast(int, result)

    # Realtime
    @property
    def realtime_heartbeat_interval(self) -> float:
        result = self.get("realtime", "heartbeat_interval", default=25.0)
        return cast(float, result)

    @property
    def realtime_reconnect_delay(self) -> float:
        result = self.get("realtime", "reconnect_delay", default=5.0)
        return cast(float, result)

    # Storage
    @property
    def listing_bucket(self) -> str:
        result = self.get("storage", "listing_bucket", default="listing-images")
        return cast(str, result)

    @property
    def avatar_bucket(self) -> str:
        result = self.get("storage", "avatar_bucket", default="profile-avatars")
        return cast(str, result)

    @property
    def avatar_max_bytes(self) -> int:
        result = self.get("storage", "avatar_max_bytes", default=2 * 1024 * 1024)
        return cast(int, result)

    @property
    def listing_image_max_bytes(self) -> int:
        result = self.get("storage", "listing_image_max_bytes", default=5 * 1024 * 1024)
        return cast(int, result)

    @property
    def max_listing_images(self) -> int:
        result = self.get("storage", "max_listing_images", default=10)
        return cast(int, result)

    # Payments
    @property
    def checkout_function(self) -> str:
        result = self.get("payments", "function", default="create-stripe-checkout")
        return cast(str, result)

    # E-mail
    @property
    def email_api_url(self) -> str:
        result = self.get("email", "api_url", default="https://api.resend.com/emails")
        return cast(str, result)

    @property
    def email_api_key(self) -> str:
        result = os.environ.get("NAWARTU_EMAIL_API_KEY") or self.get(
            "email", "api_key", default=""
        )
        return cast(str, result)

    @property
    def email_sender(self) -> str:
        result = self.get("email", "sender", default="Nawartu <info@nawartu.com>")
        return cast(str, result)

    @property
    def site_url(self) -> str:
        result = self.get("email", "site_url", default="https://nawartu.com")
        return cast(str, result).rstrip("/")

    # Application state
    @property
    def default_language(self) -> str:
        result = self.get("app", "default_language", default="en")
        return cast(str, result)

    @property
    def state_file(self) -> Path:
        result = self.get("app", "state_file", default="~/.nawartu/state.json")
        return Path(cast(str, result)).expanduser()


# Global config instance
config = Config()
