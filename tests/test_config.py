"""Tests for configuration loading."""

from pathlib import Path

import pytest

from nawartu.utils.config import Config, config


class TestConfig:
    """Tests for Config singleton."""

    def test_singleton_pattern(self) -> None:
        """Test that Config follows singleton pattern."""
        config1 = Config()
        config2 = Config()
        assert config1 is config2

    def test_global_config_instance(self) -> None:
        """Test that global config instance is available."""
        assert config is not None
        assert isinstance(config, Config)

    def test_nested_get(self) -> None:
        """Test get walks nested keys."""
        assert config.get("translation", "function") == "translate-text"
        assert config.get("translation", "missing", default="x") == "x"
        assert config.get("nope", "nothing") is None

    def test_backend_url_property(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test backend_url returns an http URL without a trailing slash."""
        monkeypatch.delenv("NAWARTU_SUPABASE_URL", raising=False)
        url = config.backend_url
        assert url.startswith("http")
        assert not url.endswith("/")

    def test_backend_url_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the environment wins over config.yaml."""
        monkeypatch.setenv("NAWARTU_SUPABASE_URL", "https://other.supabase.co/")
        assert config.backend_url == "https://other.supabase.co"

    def test_anon_key_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test anon key override."""
        monkeypatch.setenv("NAWARTU_SUPABASE_ANON_KEY", "secret")
        assert config.anon_key == "secret"

    def test_email_api_key_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test e-mail key override."""
        monkeypatch.setenv("NAWARTU_EMAIL_API_KEY", "re_123")
        assert config.email_api_key == "re_123"

    def test_translation_properties(self) -> None:
        """Test translation settings."""
        assert config.translation_mode in ("remote", "direct", "glossary")
        assert config.translation_max_length == 5000
        assert config.translation_max_concurrency > 0

    def test_availability_properties(self) -> None:
        """Test availability settings."""
        assert config.availability_window_days == 180
        assert config.hold_duration_minutes == 15

    def test_storage_properties(self) -> None:
        """Test storage settings."""
        assert isinstance(config.listing_bucket, str)
        assert isinstance(config.avatar_bucket, str)
        assert config.avatar_max_bytes < config.listing_image_max_bytes
        assert config.max_listing_images > 0

    def test_timing_properties(self) -> None:
        """Test timing settings."""
        assert isinstance(config.http_timeout, int)
        assert config.retry_attempts >= 0
        assert isinstance(config.retry_delay, (int, float))

    def test_app_properties(self) -> None:
        """Test application settings."""
        assert config.default_language in ("ar", "en")
        assert isinstance(config.state_file, Path)
        assert "~" not in str(config.state_file)
        assert not config.site_url.endswith("/")

    def test_find_project_root(self) -> None:
        """Test the project root holds pyproject.toml."""
        root = Config._find_project_root()
        assert (root / "pyproject.toml").exists()
