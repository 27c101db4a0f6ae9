"""Configuration settings for the resume pipeline."""

from enum import Enum
from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class QueueBackend(str, Enum):
    """Transport used by the upload job queue."""

    MEMORY = "memory"
    REDIS = "redis"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings have sensible defaults and can be overridden via
    environment variables or a .env file. The optimisation engine has its
    own ``OPTIMIZER_``-prefixed configuration (see ``optimizer.config``).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    database_path: Path = Field(
        default=Path("./data/resumes.db"),
        description="Path to the SQLite database holding users and resumes",
    )
    object_store_root: Path = Field(
        default=Path("./data/objects"),
        description="Root directory of the local object store (one folder per bucket)",
    )
    upload_bucket: str = Field(
        default="resume-uploads",
        description="Bucket that receives raw resume uploads",
    )

    # Presigned uploads
    presign_secret: str = Field(
        default="change-me",
        description="HMAC secret used to sign presigned upload URLs",
    )
    presign_base_url: str = Field(
        default="http://localhost:8000/objects",
        description="Public base URL that presigned PUT requests are sent to",
    )
    presign_expires_seconds: Annotated[int, Field(gt=0)] = Field(
        default=300,
        description="Lifetime of a presigned upload URL in seconds",
    )

    # Queue
    queue_backend: QueueBackend = Field(
        default=QueueBackend.MEMORY,
        description="Job queue transport: 'memory' (single process) or 'redis' (durable)",
    )
    redis_url: str = Field(
        default="redis://127.0.0.1:6379",
        description="Redis connection URL for the durable queue",
    )
    queue_key: str = Field(
        default="upload_jobs_v1",
        description="Redis list key holding queued upload jobs",
    )

    # Worker
    worker_poll_timeout: Annotated[float, Field(gt=0)] = Field(
        default=10.0,
        description="Seconds a worker waits on an empty queue before polling again",
    )
    worker_concurrency: Annotated[int, Field(gt=0)] = Field(
        default=1,
        description="Number of worker loops consuming the queue in one process",
    )

    # Upload policy
    upload_rate_limit: Annotated[int, Field(gt=0)] = Field(
        default=10,
        description="Maximum direct uploads per user within the rate window",
    )
    upload_rate_window_seconds: Annotated[int, Field(gt=0)] = Field(
        default=3600,
        description="Length of the upload rate-limit window in seconds",
    )
    rate_limit_storage_uri: str = Field(
        default="memory://",
        description="limits storage URI for upload counters (memory:// or redis://...)",
    )
    min_text_length: Annotated[int, Field(ge=1)] = Field(
        default=1,
        description="Minimum number of characters of extracted text for a valid resume",
    )
    default_credits: Annotated[int, Field(ge=0)] = Field(
        default=0,
        description="Credits granted to newly created users",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR",
    )

    @field_validator("queue_backend", mode="before")
    @classmethod
    def validate_queue_backend(cls, v: str | QueueBackend) -> QueueBackend:
        """Convert a string backend name to the QueueBackend enum."""
        if isinstance(v, QueueBackend):
            return v
        if isinstance(v, str):
            value = v.lower().strip()
            if value == "memory":
                return QueueBackend.MEMORY
            elif value == "redis":
                return QueueBackend.REDIS
            else:
                raise ValueError(
                    f"Invalid queue backend: {v}. Must be 'memory' or 'redis'"
                )
        raise ValueError(f"Invalid queue backend type: {type(v)}")

    @field_validator("upload_bucket", "queue_key", mode="before")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject blank bucket and queue names."""
        if not isinstance(v, str) or not v.strip():
            raise ValueError("value must be a non-empty string")
        return v.strip()

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a known level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


# Process-wide instance for the CLI; components receive settings explicitly
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the application settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset the settings singleton (useful for testing)."""
    global _settings
    _settings = None
