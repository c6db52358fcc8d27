"""Tests for configuration settings and logging."""

import logging

import pytest
import structlog
from pydantic import ValidationError

from sesync.config.logging import OperationTimer, configure_logging
from sesync.config.settings import Settings, get_settings


class TestSettings:
    """Test Settings class."""

    def test_settings_default_values(self, monkeypatch):
        """Test default values are set correctly."""
        monkeypatch.delenv("SESYNC_PROVIDER", raising=False)
        monkeypatch.delenv("SESYNC_MAX_RETRIES", raising=False)

        settings = Settings(_env_file=None)

        assert settings.provider == "glowmarkt"
        assert settings.n3rgy_base_url == "https://consumer-api.data.n3rgy.com"
        assert settings.glowmarkt_base_url == "https://api.glowmarkt.com/api/v0-1"
        assert settings.max_retries == 3
        assert settings.default_start_months_back == 1
        assert settings.log_file is None

    def test_settings_from_environment(self, monkeypatch):
        """Test SESYNC_ environment variables override defaults."""
        monkeypatch.setenv("SESYNC_PROVIDER", "n3rgy")
        monkeypatch.setenv("SESYNC_DATABASE_URL", "sqlite:///:memory:")
        monkeypatch.setenv("SESYNC_API_TIMEOUT", "5")

        settings = Settings(_env_file=None)

        assert settings.provider == "n3rgy"
        assert settings.database_url == "sqlite:///:memory:"
        assert settings.api_timeout == 5

    def test_settings_from_env_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SESYNC_LOG_LEVEL", raising=False)
        env_file = tmp_path / "sesync.env"
        env_file.write_text("SESYNC_LOG_LEVEL=WARNING\n")

        settings = Settings(_env_file=env_file)

        assert settings.log_level == "WARNING"

    def test_invalid_provider(self):
        with pytest.raises(ValidationError):
            Settings(provider="octopus", _env_file=None)

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="VERBOSE", _env_file=None)

    def test_negative_months_back(self):
        with pytest.raises(ValidationError):
            Settings(default_start_months_back=-1, _env_file=None)

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


class TestLogging:
    """Test logging configuration."""

    def test_configure_logging_with_file(self, tmp_path):
        log_file = tmp_path / "logs" / "sesync.log"
        settings = Settings(log_level="INFO", log_file=str(log_file), _env_file=None)

        configure_logging(settings)
        structlog.get_logger("sesync.test").info("Hello from the test", answer=42)
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = log_file.read_text()
        assert "Hello from the test" in content
        assert "42" in content

    def test_operation_timer(self):
        with OperationTimer("unit of work") as timer:
            pass
        assert timer.duration >= 0
        assert timer.end_time >= timer.start_time

    def test_operation_timer_logs_failure(self):
        with pytest.raises(ValueError):
            with OperationTimer("failing work"):
                raise ValueError("bad")
