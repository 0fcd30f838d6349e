"""Configuration management for taskhook."""

import logging
from typing import Any, Literal
from urllib.parse import urlparse

import httpx
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.core.errors import ConfigError
from src.domain.events import WEBHOOK_EVENTS, WebhookEventType


logger = logging.getLogger(__name__)


def _int_or_default(value: Any, *, default: int, minimum: int) -> int:
    """Coerce an env value to int, falling back to the default when invalid or below minimum."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return default if parsed < minimum else parsed


class WebhookConfig(BaseModel):
    """Validated webhook delivery and polling configuration."""

    enabled: bool = False
    url: str = ""
    secret: str = ""
    poll_interval: int = 30
    poll_interval_week: int = 300
    poll_interval_past: int = 900
    poll_interval_future: int = 600
    poll_weeks_past: int = 1
    poll_extra_days_past: int = 0
    poll_weeks_ahead: int = 1
    poll_extra_days_ahead: int = 0
    events: list[WebhookEventType] = Field(default_factory=list, description="Allow-list; empty means all")
    timeout_seconds: float = 30.0


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Webhook Configuration
    webhook_enabled: bool = Field(default=False, description="Enable the webhook watcher")
    webhook_url: str = Field(default="", description="Target URL for webhook POSTs")
    webhook_secret: str = Field(default="", description="HMAC signing secret")
    webhook_events: str = Field(default="", description="Comma-separated event allow-list (empty = all)")
    webhook_timeout_seconds: float = Field(default=30.0, description="Per-delivery timeout in seconds")

    # Tiered polling intervals (seconds)
    webhook_poll_interval: int = Field(default=30, description="Today + backlog poll interval")
    webhook_poll_interval_week: int = Field(default=300, description="This-week poll interval")
    webhook_poll_interval_past: int = Field(default=900, description="Past weeks poll interval")
    webhook_poll_interval_future: int = Field(default=600, description="Future weeks poll interval")

    # Calendar-based week range
    webhook_poll_weeks_past: int = Field(default=1, description="Number of past weeks to poll")
    webhook_poll_extra_days_past: int = Field(default=0, description="Extra days before the past weeks")
    webhook_poll_weeks_ahead: int = Field(default=1, description="Number of future weeks to poll")
    webhook_poll_extra_days_ahead: int = Field(default=0, description="Extra days after the future weeks")

    # State store
    state_backend: Literal["redis", "memory"] = Field(default="redis", description="Subscriber state backend")
    redis_url: str | None = Field(default=None, description="Redis connection URL (e.g., redis://localhost:6379)")
    redis_host: str | None = Field(default=None, description="Redis host (used when REDIS_URL is not set)")
    redis_port: int = Field(default=6379, description="Redis port")
    redis_password: str | None = Field(default=None, description="Redis password")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    @field_validator("webhook_poll_interval", mode="before")
    @classmethod
    def _clamp_poll_interval(cls, value: Any) -> int:
        return _int_or_default(value, default=30, minimum=5)

    @field_validator("webhook_poll_interval_week", mode="before")
    @classmethod
    def _clamp_poll_interval_week(cls, value: Any) -> int:
        return _int_or_default(value, default=300, minimum=30)

    @field_validator("webhook_poll_interval_past", mode="before")
    @classmethod
    def _clamp_poll_interval_past(cls, value: Any) -> int:
        return _int_or_default(value, default=900, minimum=60)

    @field_validator("webhook_poll_interval_future", mode="before")
    @classmethod
    def _clamp_poll_interval_future(cls, value: Any) -> int:
        return _int_or_default(value, default=600, minimum=60)

    @field_validator("webhook_poll_weeks_past", "webhook_poll_weeks_ahead", mode="before")
    @classmethod
    def _clamp_week_count(cls, value: Any) -> int:
        return _int_or_default(value, default=1, minimum=0)

    @field_validator("webhook_poll_extra_days_past", "webhook_poll_extra_days_ahead", mode="before")
    @classmethod
    def _clamp_extra_days(cls, value: Any) -> int:
        return _int_or_default(value, default=0, minimum=0)

    @field_validator("redis_port", mode="before")
    @classmethod
    def _parse_redis_port(cls, value: Any) -> int:
        return _int_or_default(value, default=6379, minimum=1)

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ConfigError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ConfigError(
                f"{service_name} not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value

    @property
    def event_filter(self) -> list[WebhookEventType]:
        """Parse the comma-separated event allow-list, dropping unknown names."""
        if not self.webhook_events:
            return []
        names = [name.strip() for name in self.webhook_events.split(",")]
        unknown = [name for name in names if name and name not in WEBHOOK_EVENTS]
        if unknown:
            logger.warning("Ignoring unknown webhook event types: %s", ", ".join(unknown))
        return [WebhookEventType(name) for name in names if name in WEBHOOK_EVENTS]

    def webhook_config(self) -> WebhookConfig:
        """Build the webhook configuration consumed by the watcher and dispatcher."""
        return WebhookConfig(
            enabled=self.webhook_enabled,
            url=self.webhook_url,
            secret=self.webhook_secret,
            poll_interval=self.webhook_poll_interval,
            poll_interval_week=self.webhook_poll_interval_week,
            poll_interval_past=self.webhook_poll_interval_past,
            poll_interval_future=self.webhook_poll_interval_future,
            poll_weeks_past=self.webhook_poll_weeks_past,
            poll_extra_days_past=self.webhook_poll_extra_days_past,
            poll_weeks_ahead=self.webhook_poll_weeks_ahead,
            poll_extra_days_ahead=self.webhook_poll_extra_days_ahead,
            events=self.event_filter,
            timeout_seconds=self.webhook_timeout_seconds,
        )


def validate_webhook_settings(settings: Settings) -> None:
    """Fail fast on webhook misconfiguration.

    Raises:
        ConfigError: If webhooks are enabled but URL, secret or store coordinates are missing,
            or the URL cannot be parsed
    """
    if not settings.webhook_enabled:
        return

    settings.require_credential("webhook_url", "Webhook URL")
    settings.require_credential("webhook_secret", "Webhook signing secret")

    parsed = urlparse(settings.webhook_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Invalid WEBHOOK_URL: {settings.webhook_url}")
    try:
        httpx.URL(settings.webhook_url)
    except httpx.InvalidURL as e:
        raise ConfigError(f"Invalid WEBHOOK_URL: {settings.webhook_url} ({e})") from e

    if settings.state_backend == "redis" and not (settings.redis_url or settings.redis_host):
        raise ConfigError("Redis is required when webhooks are enabled. Set REDIS_URL or REDIS_HOST.")


def mask_key(key: str) -> str:
    """Mask a subscriber key for logging."""
    return f"{key[:4]}...{key[-4:]}" if len(key) > 8 else "****"  # noqa: PLR2004


# Application Constants
class Constants:
    """Application-wide constants."""

    # Subscriber state
    STATE_KEY_PREFIX: str = "webhook_state"
    STATE_TTL_SECONDS: int = 86400 * 7  # 7 days

    # Self-origin markers
    SELF_ORIGIN_KEY_PREFIX: str = "api_change"
    SELF_ORIGIN_TTL_SECONDS: int = 90

    # Task source rate limiting
    FETCH_BATCH_SIZE: int = 5
    FETCH_BATCH_DELAY_SECONDS: float = 0.1

    # Watcher
    INITIAL_POLL_DELAY_SECONDS: int = 5

    # Webhook delivery
    WEBHOOK_USER_AGENT: str = "taskhook-webhook/1.0"
    WEBHOOK_LOG_ERROR_MAX_CHARS: int = 200
    WEBHOOK_RESULT_ERROR_MAX_CHARS: int = 500

    # Receiver-side verification
    WEBHOOK_MAX_AGE_SECONDS: int = 300  # 5 minutes
    WEBHOOK_CLOCK_SKEW_SECONDS: int = 30

    # Redis Configuration
    REDIS_MAX_CONNECTIONS: int = 10
    REDIS_SOCKET_TIMEOUT_SECONDS: float = 5.0


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
