"""Tests for settings and logging configuration."""

import logging

import pytest
import structlog
from pydantic import ValidationError

from financeos.config import Settings, configure_logging, get_settings


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.db_path.endswith("financeos.db")
        assert settings.log_level == "WARNING"
        assert settings.redis_url is None
        assert settings.google_api_key is None
        assert settings.timeline_ttl == 3600
        assert settings.simulation_ttl == 604800
        assert settings.lookback_months == 6

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("FINANCEOS_DB_PATH", "/tmp/books.db")
        monkeypatch.setenv("FINANCEOS_LOOKBACK_MONTHS", "12")
        monkeypatch.setenv("GOOGLE_API_KEY", "secret-key")

        settings = Settings(_env_file=None)

        assert settings.db_path == "/tmp/books.db"
        assert settings.lookback_months == 12
        assert settings.google_api_key.get_secret_value() == "secret-key"
        assert "secret-key" not in repr(settings)

    def test_invalid_lookback(self, monkeypatch):
        monkeypatch.setenv("FINANCEOS_LOOKBACK_MONTHS", "0")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestConfigureLogging:
    def test_sets_root_level(self):
        configure_logging(level="DEBUG", format="json")

        assert logging.getLogger().level == logging.DEBUG

    def test_defaults_to_settings(self):
        configure_logging()

        assert logging.getLogger().level == logging.WARNING
        assert structlog.is_configured()
