"""
Vitals Configuration Module

This module manages monitoring settings and environment variables using
pydantic-settings for type-safe configuration management.

Environment variables are loaded from .env file or system environment.
The optional provider key uses SecretStr to prevent accidental logging.
"""

from functools import lru_cache
from typing import Literal
import logging
import sys

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Monitoring settings loaded from environment variables.

    Pydantic Settings automatically reads from:
    1. Environment variables
    2. .env file in working directory
    3. Default values defined here
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown env vars
    )

    monitoring_enabled: bool = Field(
        default=True, description="Start with monitoring switched on"
    )

    failure_threshold: int = Field(
        default=5,
        ge=1,
        description="Consecutive failures that open a service's circuit breaker",
    )

    recovery_timeout_seconds: float = Field(
        default=300.0,
        gt=0.0,
        description="Seconds after the last failure before an open breaker re-permits calls",
    )

    max_recent_metrics: int = Field(
        default=1000,
        ge=1,
        description="Capacity of the recent-metrics window (FIFO eviction)",
    )

    slow_operation_threshold_ms: float = Field(
        default=5000.0,
        ge=0.0,
        description="Operations slower than this are logged as slow",
    )

    dashboard_window_hours: float = Field(
        default=24.0,
        gt=0.0,
        description="Time window for dashboard totals",
    )

    cost_alert_threshold_usd: float = Field(
        default=10.0,
        ge=0.0,
        description="Accumulated cost above which the health check raises cost_alert",
    )

    cost_degraded_threshold_usd: float = Field(
        default=50.0,
        ge=0.0,
        description="Accumulated cost above which the performance component is degraded",
    )

    openai_api_key: SecretStr | None = Field(
        default=None, description="OpenAI API key for the instrumented gateway (optional)"
    )

    openai_chat_model: str = Field(
        default="gpt-4o-mini", description="Chat completion model used by the gateway"
    )

    openai_embedding_model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model used by the gateway",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Application log level"
    )

    host: str = Field(default="0.0.0.0", description="Server bind host")

    port: int = Field(default=8000, description="Server bind port")

    debug: bool = Field(default=False, description="Enable debug mode")

    @field_validator("openai_chat_model", "openai_embedding_model")
    @classmethod
    def validate_model_name(cls, v: str) -> str:
        """Reject blank model names."""
        if not v.strip():
            raise ValueError("model name cannot be empty")
        return v.strip()


@lru_cache
def get_settings() -> Settings:
    """
    Returns cached settings instance.

    Using lru_cache ensures settings are loaded once and reused,
    avoiding repeated file reads and environment parsing.

    Returns:
        Settings: The application settings singleton.
    """
    return Settings()


def configure_logging(settings: Settings) -> None:
    """
    Configure application logging based on settings.

    Sets up structured logging with timestamps and reduces noise
    from third-party HTTP libraries.

    Args:
        settings: The application settings instance.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
