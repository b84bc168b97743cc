"""
CalmCompanion Application Settings

Configuration management using Pydantic Settings.
All values are loaded from environment variables with the CALM_ prefix.

SECURITY: Never log or expose settings containing secrets.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class TimingSettings(BaseSettings):
    """Timer configuration for guided exercises."""

    model_config = SettingsConfigDict(env_prefix="CALM_TIMING_")

    phase_tick_seconds: float = Field(
        default=0.1,
        gt=0.0,
        le=1.0,
        description="Interval of the phase progress tick",
    )
    exercise_duration_seconds: int = Field(
        default=120,
        ge=10,
        le=3600,
        description="Total duration of a breathing exercise",
    )


class NarrationSettings(BaseSettings):
    """Voice guidance configuration."""

    model_config = SettingsConfigDict(env_prefix="CALM_NARRATION_")

    enabled: bool = Field(default=True, description="Whether a narrator is attached at all")
    voice_guidance: bool = Field(
        default=True,
        description="Narrate exercise phases and escalation steps",
    )
    words_per_minute: int = Field(
        default=150,
        ge=60,
        le=400,
        description="Speaking pace used to estimate utterance duration",
    )


class EscalationSettings(BaseSettings):
    """Emergency contact escalation configuration."""

    model_config = SettingsConfigDict(env_prefix="CALM_ESCALATION_")

    notifier: Literal["log", "webhook"] = Field(
        default="log",
        description="Notifier backend used to dispatch alerts",
    )
    webhook_url: str = Field(default="", description="Alert webhook endpoint")
    webhook_token: SecretStr = Field(default=SecretStr(""), description="Bearer token for the webhook")
    timeout_seconds: float = Field(default=5.0, gt=0.0, le=60.0)
    max_attempts: int = Field(default=3, ge=1, le=10)
    contacts_file: Optional[Path] = Field(
        default=None,
        description="JSON file holding the emergency contact list",
    )
    default_location_hint: Optional[str] = Field(
        default=None,
        description="Location hint attached to alerts when the client sends none",
    )
    country_code: str = Field(default="US", description="Jurisdiction for crisis resources")
    crisis_resources_file: Optional[Path] = Field(
        default=None,
        description="JSON file extending the built-in crisis resources",
    )


class Settings(BaseSettings):
    """
    Main application settings.

    All configuration is loaded from environment variables with CALM_ prefix.
    Sensitive values use SecretStr to prevent accidental logging.

    Usage:
        settings = get_settings()
        interval = settings.timing.phase_tick_seconds
    """

    model_config = SettingsConfigDict(
        env_prefix="CALM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode - NEVER enable in production")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )
    api_version: str = Field(default="v1", description="API version prefix")
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )
    session_idle_timeout_seconds: int = Field(
        default=1800,
        ge=0,
        description="Close help sessions untouched for this long; 0 keeps them until deleted",
    )

    # Nested settings
    timing: TimingSettings = Field(default_factory=TimingSettings)
    narration: NarrationSettings = Field(default_factory=NarrationSettings)
    escalation: EscalationSettings = Field(default_factory=EscalationSettings)

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.
    For testing, construct Settings directly and inject it.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
