"""Configuration loading for the Herald notification dispatcher.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings

User-editable settings (destinations, exclusions, check delay, provider
config) live in the settings store, not here; this module only covers
how the process itself is wired.
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from herald.core.models import DEFAULT_CHECK_DELAY_MS, MIN_CHECK_DELAY_MS


class Settings(BaseSettings):
    """Application configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support. Variables are prefixed with ``HERALD_``.
    """

    model_config = SettingsConfigDict(
        env_prefix="HERALD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Finding source configuration
    graphql_url: str = Field(
        default="http://localhost:8080/graphql",
        description="GraphQL endpoint of the security testing tool",
    )
    graphql_token: str = Field(
        default="",
        description="Bearer token for the GraphQL endpoint",
    )
    graphql_timeout_seconds: float = Field(
        default=30.0,
        description="HTTP timeout for finding queries",
    )

    # Settings store configuration
    store_sqlite_path: str = Field(
        default="./data/herald.db",
        description="SQLite database file path",
    )

    # Notifier configuration
    notify_command: str = Field(
        default="notify",
        description="Command used to run ProjectDiscovery notify",
    )
    config_dir: str = Field(
        default="~/.config/herald",
        description="Directory for the provider config file handed to notify",
    )
    default_provider_config_path: str = Field(
        default="~/.config/notify/provider-config.yaml",
        description="notify's own provider config, imported when custom config is off",
    )
    dispatch_timeout_seconds: float = Field(
        default=30.0,
        description="Seconds before a running notify invocation is treated as done",
    )

    # Check cycle configuration
    initial_check_delay_ms: int = Field(
        default=DEFAULT_CHECK_DELAY_MS,
        description="Check delay used until one is saved in the settings store",
    )

    # Event configuration
    event_sink: Literal["log", "stdout"] = Field(
        default="log",
        description="Where findings-sent events are published",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    # Run mode
    run_mode: Literal["daemon", "cli", "check"] = Field(
        default="daemon",
        description="Run mode",
    )

    @field_validator("dispatch_timeout_seconds", "graphql_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Ensure timeouts are positive."""
        if v <= 0:
            raise ValueError("timeouts must be positive")
        return v

    @field_validator("initial_check_delay_ms")
    @classmethod
    def validate_check_delay(cls, v: int) -> int:
        """Ensure the check delay respects the one second minimum."""
        if v < MIN_CHECK_DELAY_MS:
            raise ValueError(
                f"initial_check_delay_ms must be at least {MIN_CHECK_DELAY_MS}"
            )
        return v

    @field_validator("notify_command")
    @classmethod
    def validate_notify_command(cls, v: str) -> str:
        """Ensure a notify command is configured."""
        if not v.strip():
            raise ValueError("notify_command must not be empty")
        return v


def load_settings(env_file: str | None = None) -> Settings:
    """Load application settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()


__all__ = ["Settings", "load_settings"]
