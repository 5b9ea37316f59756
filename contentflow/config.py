"""
Configuration for the contentflow summarization pipeline.

Provides environment-based configuration with Pydantic settings. Every
setting accepts a flat env name (``SANITY_DATASET``) and a nested one
(``SANITY__DATASET``).
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Annotated, Optional

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class _SettingsSection(BaseSettings):
    """Nested settings group that also reads its own flat env names."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


class SanitySettings(_SettingsSection):
    """Content store (Sanity CMS) connection settings."""

    project_id: str = Field(
        default="",
        validation_alias=AliasChoices("SANITY_PROJECT_ID", "SANITY__PROJECT_ID"),
    )
    dataset: str = Field(
        default="production",
        validation_alias=AliasChoices("SANITY_DATASET", "SANITY__DATASET"),
    )
    api_version: str = Field(
        default="2024-01-01",
        validation_alias=AliasChoices("SANITY_API_VERSION", "SANITY__API_VERSION"),
    )
    api_token: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("SANITY_API_TOKEN", "SANITY__API_TOKEN"),
        description="Write token; reads are anonymous when empty",
    )
    use_cdn: bool = Field(
        default=False,
        validation_alias=AliasChoices("SANITY_USE_CDN", "SANITY__USE_CDN"),
    )
    timeout: float = Field(
        default=30.0,
        validation_alias=AliasChoices("SANITY_TIMEOUT", "SANITY__TIMEOUT"),
    )

    def is_configured(self) -> bool:
        """Check if a project is set."""
        return bool(self.project_id)

    def base_url(self, *, cdn: Optional[bool] = None) -> str:
        """Build the API base URL for the project."""
        use_cdn = self.use_cdn if cdn is None else cdn
        host = "apicdn.sanity.io" if use_cdn else "api.sanity.io"
        return f"https://{self.project_id}.{host}/v{self.api_version}"


class RedisSettings(_SettingsSection):
    """Redis connection settings."""

    host: str = Field(
        default="localhost",
        validation_alias=AliasChoices("REDIS_HOST", "REDIS__HOST"),
    )
    port: int = Field(
        default=6379,
        validation_alias=AliasChoices("REDIS_PORT", "REDIS__PORT"),
    )
    db: int = Field(
        default=0,
        validation_alias=AliasChoices("REDIS_DB", "REDIS__DB"),
    )
    password: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("REDIS_PASSWORD", "REDIS__PASSWORD"),
    )

    def url(self) -> str:
        """Build Redis URL."""
        if self.password:
            return f"redis://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"


class SummarizationSettings(_SettingsSection):
    """LLM summarization settings."""

    providers: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["openai"],
        validation_alias=AliasChoices("SUMMARY_PROVIDERS", "SUMMARIZATION__PROVIDERS"),
    )
    api_base: str = Field(
        default="https://api.openai.com",
        validation_alias=AliasChoices(
            "SUMMARIZATION_API_BASE", "SUMMARIZATION__API_BASE"
        ),
    )
    api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "SUMMARIZATION_API_KEY", "SUMMARIZATION__API_KEY"
        ),
    )
    model: str = Field(
        default="gpt-4o-mini",
        validation_alias=AliasChoices("SUMMARIZATION_MODEL", "SUMMARIZATION__MODEL"),
    )
    huggingface_api_base: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "HUGGINGFACE_API_BASE", "SUMMARIZATION__HUGGINGFACE_API_BASE"
        ),
    )
    temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=0.3,
        validation_alias=AliasChoices(
            "SUMMARY_TEMPERATURE", "SUMMARIZATION__TEMPERATURE"
        ),
    )
    max_tokens: int = Field(
        default=1000,
        gt=0,
        validation_alias=AliasChoices("SUMMARY_MAX_TOKENS", "SUMMARIZATION__MAX_TOKENS"),
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        validation_alias=AliasChoices(
            "SUMMARY_MAX_ATTEMPTS", "SUMMARIZATION__MAX_ATTEMPTS"
        ),
    )
    timeout: float = Field(
        default=60.0,
        validation_alias=AliasChoices("SUMMARY_TIMEOUT", "SUMMARIZATION__TIMEOUT"),
    )

    @field_validator("providers", mode="before")
    @classmethod
    def parse_providers(cls, v):
        if isinstance(v, str):
            return [p.strip() for p in v.split(",") if p.strip()]
        return v or ["openai"]


class RetrySettings(_SettingsSection):
    """Bounded retry policy applied to each workflow step."""

    max_attempts: int = Field(
        default=3,
        ge=1,
        validation_alias=AliasChoices("STEP_MAX_ATTEMPTS", "RETRY__MAX_ATTEMPTS"),
    )
    backoff_base: float = Field(
        default=1.0,
        ge=0.0,
        validation_alias=AliasChoices("STEP_BACKOFF_BASE", "RETRY__BACKOFF_BASE"),
    )
    backoff_max: float = Field(
        default=30.0,
        ge=0.0,
        validation_alias=AliasChoices("STEP_BACKOFF_MAX", "RETRY__BACKOFF_MAX"),
    )


class PipelineSettings(BaseSettings):
    """Configuration for the summarization pipeline and its workers."""

    service_name: str = Field(
        default="contentflow",
        validation_alias=AliasChoices("SERVICE_NAME"),
    )
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("ENVIRONMENT", "ENV"),
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL"),
    )
    log_format: str = Field(
        default="json",
        validation_alias=AliasChoices("LOG_FORMAT"),
        description="Log format: 'json' or 'text'",
    )

    # Nested settings
    sanity: SanitySettings = Field(default_factory=SanitySettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    summarization: SummarizationSettings = Field(default_factory=SummarizationSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)

    # Step checkpoints
    enable_checkpoints: bool = Field(
        default=True,
        validation_alias=AliasChoices("ENABLE_CHECKPOINTS", "CHECKPOINTS__ENABLED"),
    )
    checkpoint_ttl_seconds: int = Field(
        default=86400,
        gt=0,
        validation_alias=AliasChoices("CHECKPOINT_TTL_SECONDS", "CHECKPOINTS__TTL_SECONDS"),
    )

    # Celery configuration
    celery_broker_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CELERY_BROKER_URL"),
    )
    celery_result_backend: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CELERY_RESULT_BACKEND"),
    )
    celery_concurrency: int = Field(
        default=4,
        ge=1,
        validation_alias=AliasChoices("CELERY_CONCURRENCY"),
    )

    @property
    def effective_celery_broker_url(self) -> str:
        """Get Celery broker URL, defaulting to Redis."""
        return self.celery_broker_url or self.redis.url()

    @property
    def effective_celery_result_backend(self) -> str:
        """Get Celery result backend URL, defaulting to Redis."""
        return self.celery_result_backend or self.redis.url()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )


@lru_cache
def get_settings() -> PipelineSettings:
    """Get cached settings instance."""
    return PipelineSettings()


class JSONFormatter(logging.Formatter):
    """One JSON object per record, carrying any ``extra`` fields."""

    _RESERVED = frozenset(
        logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
    ) | {"message", "asctime"}

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        import json

        log_record = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }
        for key, value in record.__dict__.items():
            if key not in self._RESERVED and not key.startswith("_"):
                log_record[key] = value
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record, default=str)


def configure_logging(settings: Optional[PipelineSettings] = None) -> None:
    """Configure logging based on settings.

    Args:
        settings: Optional settings instance, uses cached settings if not provided
    """
    import sys

    if settings is None:
        settings = get_settings()

    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    if settings.log_format == "json":
        handler.setFormatter(JSONFormatter(settings.service_name))
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    root_logger.addHandler(handler)

    # Third-party HTTP clients log every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
