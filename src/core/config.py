"""Configuration models and YAML loader for the career content engine."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

ALLOWED_PROVIDERS = {"anthropic", "openai", "gemini", "ollama"}


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/career.db"


class LLMConfig(BaseModel):
    """Text-generation provider selection."""

    provider: str = "gemini"
    model: str | None = None
    max_tokens: int = Field(default=4096, ge=1)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    timeout_seconds: float = Field(default=60.0, gt=0.0)

    def provider_options(self) -> dict[str, Any]:
        return {
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "timeout_seconds": self.timeout_seconds,
        }

    @field_validator("provider")
    @classmethod
    def provider_known(cls, v: str) -> str:
        v = v.lower().strip()
        if v not in ALLOWED_PROVIDERS:
            msg = f"provider must be one of {sorted(ALLOWED_PROVIDERS)}, got '{v}'"
            raise ValueError(msg)
        return v


class RetryConfig(BaseModel):
    """Retry bound and backoff for interactive generation."""

    max_retries: int = Field(default=2, ge=0)
    base_delay_seconds: float = Field(default=1.0, ge=0.0)


class QuotaConfig(BaseModel):
    """Trailing-window quota for one artifact type."""

    max_count: int = Field(ge=1)
    window_seconds: int = Field(ge=1)


def _default_quotas() -> dict[str, QuotaConfig]:
    return {
        "cover_letter": QuotaConfig(max_count=10, window_seconds=86_400),
        "quiz": QuotaConfig(max_count=5, window_seconds=86_400),
        "resume_improvement": QuotaConfig(max_count=20, window_seconds=3_600),
    }


class InsightsConfig(BaseModel):
    """Industry insight caching and batch refresh settings."""

    cache_days: int = Field(default=7, ge=1)
    batch_delay_seconds: float = Field(default=2.0, ge=0.0)
    batch_max_retries: int = Field(default=2, ge=0)
    retry_base_delay_seconds: float = Field(default=2.0, ge=0.0)


class ScheduleConfig(BaseModel):
    """Weekly trigger for the batch refresh (default: Sunday midnight)."""

    weekday: int = Field(default=6, ge=0, le=6)
    hour: int = Field(default=0, ge=0, le=23)
    journal_weeks: int = Field(default=4, ge=1)


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    quotas: dict[str, QuotaConfig] = Field(default_factory=_default_quotas)
    insights: InsightsConfig = Field(default_factory=InsightsConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)

    @field_validator("quotas")
    @classmethod
    def merge_default_quotas(cls, v: dict[str, QuotaConfig]) -> dict[str, QuotaConfig]:
        merged = _default_quotas()
        merged.update(v)
        return merged

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
