"""
Configuration management for the Telegram poller.

``PollerConfig`` is the validated, immutable configuration of a single
poller. ``Settings`` loads process configuration from environment
variables (and an optional ``.env`` file) using Pydantic Settings.
"""

from typing import Any

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .backoff import ExponentialBackoff
from .update_types import (
    DEFAULT_BASE_URL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_QUEUE_SIZE,
    DEFAULT_TIMEOUT,
    MAX_TIMEOUT,
    AllowedUpdateType,
    parse_allowed_updates,
)


def _parse_update_list(v: Any) -> Any:
    if v is None:
        return ()
    if isinstance(v, str):
        return tuple(parse_allowed_updates(v))
    return v


class PollerConfig(BaseModel):
    """
    Validated poller configuration.

    Unset or out-of-range values are replaced by defaults during
    validation; only a missing token is rejected.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    token: str = Field(..., description="Bot API token", repr=False)
    base_url: str = Field(
        default=DEFAULT_BASE_URL, validate_default=True, description="API base URL"
    )
    poll_interval: float = Field(
        default=DEFAULT_POLL_INTERVAL,
        description="Minimum spacing between fetch calls in seconds",
    )
    timeout: float = Field(
        default=DEFAULT_TIMEOUT,
        description="Long-poll timeout in seconds, at most 50",
    )
    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES,
        description="Maximum consecutive failed fetches before stopping",
    )
    backoff: Any = Field(
        default=None, validate_default=True, description="Retry backoff strategy"
    )
    allowed_updates: tuple[AllowedUpdateType, ...] = Field(
        default=(), description="Update categories to receive (empty = all)"
    )
    queue_size: int = Field(
        default=DEFAULT_QUEUE_SIZE, description="Outbound update queue capacity"
    )
    http_client: httpx.AsyncClient | None = Field(
        default=None, description="HTTP transport; built on demand when unset"
    )
    logger: Any = Field(
        default=None, validate_default=True, description="structlog-style logger"
    )

    @field_validator("token", mode="before")
    @classmethod
    def validate_token(cls, v: Any) -> str:
        """Reject a missing bot token."""
        if v is None or not str(v).strip():
            raise ValueError("telegram: bot token is required")
        return str(v)

    @field_validator("base_url", mode="before")
    @classmethod
    def default_base_url(cls, v: Any) -> str:
        if not v:
            return DEFAULT_BASE_URL
        return str(v).rstrip("/")

    @field_validator("poll_interval", mode="before")
    @classmethod
    def default_poll_interval(cls, v: Any) -> float:
        if v is None or float(v) <= 0:
            return DEFAULT_POLL_INTERVAL
        return float(v)

    @field_validator("timeout", mode="before")
    @classmethod
    def clamp_timeout(cls, v: Any) -> float:
        """Apply the default and the Bot API upper bound of 50 seconds."""
        if v is None or float(v) <= 0:
            return DEFAULT_TIMEOUT
        return min(float(v), MAX_TIMEOUT)

    @field_validator("max_retries", mode="before")
    @classmethod
    def default_max_retries(cls, v: Any) -> int:
        # 0 is a valid setting: give up on the first failure
        if v is None or int(v) < 0:
            return DEFAULT_MAX_RETRIES
        return int(v)

    @field_validator("backoff", mode="before")
    @classmethod
    def validate_backoff(cls, v: Any) -> Any:
        if v is None:
            return ExponentialBackoff()
        if not callable(getattr(v, "next_backoff", None)) or not callable(
            getattr(v, "reset", None)
        ):
            raise ValueError("backoff must provide next_backoff() and reset()")
        return v

    @field_validator("allowed_updates", mode="before")
    @classmethod
    def parse_allowed_updates_field(cls, v: Any) -> Any:
        return _parse_update_list(v)

    @field_validator("queue_size", mode="before")
    @classmethod
    def default_queue_size(cls, v: Any) -> int:
        if v is None or int(v) <= 0:
            return DEFAULT_QUEUE_SIZE
        return int(v)

    @field_validator("logger", mode="before")
    @classmethod
    def default_logger(cls, v: Any) -> Any:
        if v is None:
            return structlog.get_logger("telegram_poller.poller")
        return v

    @property
    def long_poll_seconds(self) -> int:
        """Timeout as sent in the ``timeout`` query parameter."""
        return int(self.timeout)


class Settings(BaseSettings):
    """Process settings for the ``telegram-poller`` command."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    telegram_bot_token: str = Field(..., description="Bot token from BotFather")
    telegram_base_url: str = Field(
        default=DEFAULT_BASE_URL, description="Bot API base URL"
    )

    # Logging configuration
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="console", description="Log format")

    # Polling configuration
    poll_interval: float = Field(
        default=1.0, description="Minimum time between polling requests in seconds"
    )
    timeout: float = Field(default=30.0, description="Long-polling timeout in seconds")
    max_retries: int = Field(
        default=3, description="Maximum retry attempts for transient failures"
    )
    allowed_updates: str | list[str] = Field(
        default="",
        description="Update types to receive (comma-separated, empty for all)",
    )

    @field_validator("allowed_updates", mode="before")
    @classmethod
    def parse_allowed_updates_setting(cls, v: Any) -> list[str]:
        """Parse allowed updates from comma-separated string or list."""
        if isinstance(v, str):
            return [u.value for u in parse_allowed_updates(v)]
        elif isinstance(v, list):
            return [AllowedUpdateType(u).value for u in v]
        else:
            error_msg = f"allowed_updates must be a string or list, got {type(v)}"
            raise ValueError(error_msg)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v.lower() not in {"json", "console"}:
            raise ValueError(f"Invalid log format: {v}")
        return v.lower()

    def poller_config(self, **overrides: Any) -> PollerConfig:
        """Build the poller configuration described by these settings."""
        values: dict[str, Any] = {
            "token": self.telegram_bot_token,
            "base_url": self.telegram_base_url,
            "poll_interval": self.poll_interval,
            "timeout": self.timeout,
            "max_retries": self.max_retries,
            "allowed_updates": self.allowed_updates,
        }
        values.update(overrides)
        return PollerConfig(**values)


# Global settings instance - initialized lazily to avoid import-time errors
_settings_instance = None


def get_settings() -> Settings:
    """Get the global settings instance, creating it if necessary."""
    global _settings_instance
    if _settings_instance is None:
        try:
            _settings_instance = Settings()  # type: ignore[call-arg,unused-ignore]
        except ValueError as e:
            if "telegram_bot_token" in str(e):
                raise ValueError(
                    "TELEGRAM_BOT_TOKEN environment variable is required. "
                    "Set it in the environment or in a .env file."
                ) from e
            raise
    return _settings_instance
