"""
Configuration Tests

Validates environment-driven settings and logging setup.
"""

import logging

import pytest
from pydantic import ValidationError

from vitals.config import Settings, configure_logging, get_settings


class TestSettings:
    """Tests for Settings loading and validation."""

    def test_defaults(self):
        settings = Settings()

        assert settings.monitoring_enabled is True
        assert settings.failure_threshold == 5
        assert settings.recovery_timeout_seconds == 300.0
        assert settings.max_recent_metrics == 1000
        assert settings.dashboard_window_hours == 24.0
        assert settings.cost_alert_threshold_usd == 10.0

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("FAILURE_THRESHOLD", "3")
        monkeypatch.setenv("MONITORING_ENABLED", "false")
        monkeypatch.setenv("RECOVERY_TIMEOUT_SECONDS", "60")

        settings = Settings()

        assert settings.failure_threshold == 3
        assert settings.monitoring_enabled is False
        assert settings.recovery_timeout_seconds == 60.0

    @pytest.mark.parametrize(
        "field,value",
        [
            ("failure_threshold", 0),
            ("recovery_timeout_seconds", 0),
            ("max_recent_metrics", 0),
            ("dashboard_window_hours", -1),
            ("log_level", "VERBOSE"),
            ("openai_chat_model", "   "),
        ],
    )
    def test_invalid_values_rejected(self, field, value):
        with pytest.raises(ValidationError):
            Settings(**{field: value})

    def test_model_names_stripped(self):
        settings = Settings(openai_embedding_model="  text-embedding-3-large ")

        assert settings.openai_embedding_model == "text-embedding-3-large"

    def test_api_key_is_secret(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test-secret")

        settings = Settings()

        assert "sk-test-secret" not in repr(settings)
        assert settings.openai_api_key.get_secret_value() == "sk-test-secret"

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_quiets_http_libraries(self):
        configure_logging(Settings(log_level="DEBUG"))

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("openai").level == logging.WARNING
