"""
Configuration Management for Life Assistant

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Components still accept explicit values in their constructors, so tests
never depend on the environment.
"""

from functools import lru_cache
from typing import Any, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class InsightSettings(BaseSettings):
    """Insight engine and analysis cache configuration."""

    model_config = SettingsConfigDict(
        env_prefix="INSIGHT_",
        extra="ignore"
    )

    cache_ttl_hours: float = Field(
        default=6.0,
        gt=0,
        description="Age after which a cached analysis is stale"
    )
    rolling_window_days: int = Field(
        default=7,
        ge=1,
        le=90,
        description="Window length for todo, habit, diary and savings analysis"
    )
    stale_purge_days: int = Field(
        default=30,
        ge=1,
        description="Analyses older than this are purged"
    )
    scheduled_min_interval_hours: float = Field(
        default=6.0,
        ge=0,
        description="Minimum gap between two scheduled refresh-all runs"
    )


class CommandSettings(BaseSettings):
    """Command parsing configuration."""

    model_config = SettingsConfigDict(
        env_prefix="COMMAND_",
        extra="ignore"
    )

    max_amount: float = Field(
        default=1000000.0,
        gt=0,
        description="Largest amount accepted without asking again"
    )
    default_query_period: str = Field(
        default="this month",
        description="Period used when a summary query names none"
    )


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration (intent classification)."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=512,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    debug_mode: bool = Field(
        default=False,
        description="Log at DEBUG regardless of log_level"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for the structured log"
    )

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug_mode else self.log_level.upper()


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily so that a missing Gemini key
    # does not prevent the insight engine from starting.

    @property
    def insights(self) -> InsightSettings:
        return InsightSettings()

    @property
    def commands(self) -> CommandSettings:
        return CommandSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings(settings: Optional[Settings] = None) -> dict[str, Any]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with a
    "<name>_error" entry for every failing section.
    """
    results: dict[str, Any] = {}
    settings = settings or get_settings()

    for name in ("insights", "commands", "gemini", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
