"""Application settings loaded from environment variables.

Environment Configuration:
    VIDEOINDEX_ENV: Deployment environment (local | test | staging | prod)
    DATABASE_URL: PostgreSQL connection string (required)
    LOG_JSON: Emit JSON logs (default true); false renders console-friendly logs

Video Service Configuration:
    VIDEO_SERVICE_BASE_URL: Base URL of the upstream video service (required)
    VIDEO_SERVICE_TIMEOUT_S: Total request timeout in seconds (default 10)
    VIDEO_SERVICE_CONNECT_TIMEOUT_S: Connect timeout in seconds (default 5)

Redis / Celery Configuration:
    REDIS_URL: Redis connection string (required for worker)
    CELERY_BROKER_URL: Celery broker URL (defaults to REDIS_URL)
    CELERY_RESULT_BACKEND: Celery result backend URL (defaults to REDIS_URL)
    MODERATION_EVENTS_QUEUE: Queue carrying moderation events
    MODERATION_DEAD_LETTER_QUEUE: Queue receiving events that failed terminally
    MODERATION_MAX_RETRIES: Redeliveries before an event is dead-lettered
    MODERATION_RETRY_BACKOFF_S: Base backoff, doubled on every retry
"""

from enum import Enum
from functools import lru_cache
from typing import Annotated

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Environment(str, Enum):
    """Valid deployment environments."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


class Settings(BaseSettings):
    """Application configuration.

    Settings are loaded from environment variables.
    Validation rules:
    - DATABASE_URL and VIDEO_SERVICE_BASE_URL are always required
    - VIDEO_SERVICE_BASE_URL must be an http(s) URL
    - Timeouts and retry backoff must be positive
    """

    videoindex_env: Environment = Field(default=Environment.LOCAL, alias="VIDEOINDEX_ENV")
    database_url: Annotated[str, Field(alias="DATABASE_URL")]
    log_json: bool = Field(default=True, alias="LOG_JSON")

    # Upstream video service
    video_service_base_url: Annotated[str, Field(alias="VIDEO_SERVICE_BASE_URL")]
    video_service_timeout_s: float = Field(default=10.0, alias="VIDEO_SERVICE_TIMEOUT_S")
    video_service_connect_timeout_s: float = Field(
        default=5.0, alias="VIDEO_SERVICE_CONNECT_TIMEOUT_S"
    )

    # Redis / Celery settings
    redis_url: str | None = Field(default=None, alias="REDIS_URL")
    celery_broker_url: str | None = Field(default=None, alias="CELERY_BROKER_URL")
    celery_result_backend: str | None = Field(default=None, alias="CELERY_RESULT_BACKEND")

    # Moderation event consumption
    moderation_events_queue: str = Field(
        default="moderation-events", alias="MODERATION_EVENTS_QUEUE"
    )
    moderation_dead_letter_queue: str = Field(
        default="moderation-events-dlq", alias="MODERATION_DEAD_LETTER_QUEUE"
    )
    moderation_max_retries: int = Field(default=5, ge=0, alias="MODERATION_MAX_RETRIES")
    moderation_retry_backoff_s: float = Field(default=2.0, alias="MODERATION_RETRY_BACKOFF_S")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def validate_required_settings(self) -> "Settings":
        """Reject settings that would make the service misbehave at runtime."""
        if not self.video_service_base_url.startswith(("http://", "https://")):
            raise ValueError(
                "VIDEO_SERVICE_BASE_URL must start with http:// or https:// "
                f"(got {self.video_service_base_url!r})"
            )

        non_positive = [
            name
            for name, value in (
                ("VIDEO_SERVICE_TIMEOUT_S", self.video_service_timeout_s),
                ("VIDEO_SERVICE_CONNECT_TIMEOUT_S", self.video_service_connect_timeout_s),
                ("MODERATION_RETRY_BACKOFF_S", self.moderation_retry_backoff_s),
            )
            if value <= 0
        ]
        if non_positive:
            raise ValueError(f"Settings must be positive: {', '.join(non_positive)}")

        return self

    @property
    def normalized_video_service_base_url(self) -> str:
        """Return the video service base URL with trailing slash stripped."""
        return self.video_service_base_url.rstrip("/")

    @property
    def effective_celery_broker_url(self) -> str | None:
        """Return Celery broker URL, falling back to REDIS_URL if not set."""
        return self.celery_broker_url or self.redis_url

    @property
    def effective_celery_result_backend(self) -> str | None:
        """Return Celery result backend URL, falling back to REDIS_URL if not set."""
        return self.celery_result_backend or self.redis_url


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If required settings are missing or invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
