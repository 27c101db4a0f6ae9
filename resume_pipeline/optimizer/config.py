"""Configuration settings for the optimisation engine.

Provides settings for the LLM provider and the limits applied to each
optimisation run.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class OptimizerConfig(BaseSettings):
    """Configuration for the optimisation engine.

    Settings can be overridden via environment variables prefixed with
    OPTIMIZER_.

    Example: OPTIMIZER_LLM_PROVIDER=anthropic
    """

    model_config = SettingsConfigDict(
        env_prefix="OPTIMIZER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # LLM settings
    llm_provider: str = Field(
        default="openai",
        description="LLM provider (openai, anthropic, azure, etc.)",
    )
    llm_model: str = Field(
        default="gpt-4o-mini",
        description="LLM model name",
    )
    llm_api_key: str | None = Field(
        default=None,
        description="API key for LLM provider",
    )
    llm_base_url: str | None = Field(
        default=None,
        description="Base URL for OpenAI-compatible endpoints",
    )
    llm_max_retries: Annotated[int, Field(ge=0)] = Field(
        default=1,
        description="Maximum retry attempts for LLM calls",
    )
    llm_timeout: Annotated[float, Field(gt=0)] = Field(
        default=60.0,
        description="Timeout in seconds for a single LLM request",
    )

    # Engine limits
    engine_timeout: Annotated[float, Field(gt=0)] = Field(
        default=120.0,
        description="Upper bound in seconds for a whole optimisation run",
    )
    rewrite_max_chars: Annotated[int, Field(gt=0)] = Field(
        default=3000,
        description="Resume characters sent to the rewrite prompt",
    )
    score_max_chars: Annotated[int, Field(gt=0)] = Field(
        default=1500,
        description="Resume characters sent to the scoring prompt",
    )
    rewrite_max_tokens: Annotated[int, Field(gt=0)] = Field(
        default=2500,
        description="Completion token limit for the rewrite call",
    )
    score_max_tokens: Annotated[int, Field(gt=0)] = Field(
        default=600,
        description="Completion token limit for the scoring call",
    )

    @field_validator("llm_provider", mode="before")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        """Lower-case the provider name."""
        if not isinstance(v, str) or not v.strip():
            raise ValueError("llm_provider must be a non-empty string")
        return v.strip().lower()


# Singleton instance for easy import
_optimizer_config: OptimizerConfig | None = None


def get_optimizer_config() -> OptimizerConfig:
    """Get the optimizer configuration singleton."""
    global _optimizer_config
    if _optimizer_config is None:
        _optimizer_config = OptimizerConfig()
    return _optimizer_config


def reset_optimizer_config() -> None:
    """Reset the optimizer configuration singleton (useful for testing)."""
    global _optimizer_config
    _optimizer_config = None
