"""Configuration settings for insightdash."""

from __future__ import annotations

import logging
import threading

from pydantic import Field
from pydantic_settings import BaseSettings

from insightdash.tools.chunking import DEFAULT_CHUNK_SIZE


class InsightSettings(BaseSettings):
    """Deployment-wide settings, read from ``INSIGHTDASH_*`` environment variables.

    Profiling:
    - chunk_size: rows per chunk once a dataset is too large to profile at once
    - mine_full_dataset: mine relationships over every row instead of the
      head+tail sample of chunked datasets

    LLM:
    - llm_provider / llm_model: chat model used to answer questions
    - temperature / max_tokens: generation parameters

    API keys are not settings; providers read their own environment
    variables or receive keys per request.
    """

    chunk_size: int = Field(
        default=DEFAULT_CHUNK_SIZE, gt=0, description="Maximum rows per profiling chunk"
    )
    mine_full_dataset: bool = Field(
        default=True,
        description="Mine relationships over all rows rather than the head+tail sample",
    )

    llm_provider: str = Field(default="openai", description="LLM provider name")
    llm_model: str | None = Field(
        default=None, description="Model override (provider default when unset)"
    )
    temperature: float = Field(default=0.2, description="Sampling temperature")
    max_tokens: int = Field(default=2000, description="Maximum tokens per answer")

    log_level: str = Field(default="INFO", description="Root logging level")

    model_config = {"env_prefix": "INSIGHTDASH_", "case_sensitive": False}


_settings: InsightSettings | None = None
_lock = threading.Lock()


def get_settings() -> InsightSettings:
    """Create or get the global settings instance."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        with _lock:
            if _settings is None:
                _settings = InsightSettings()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance."""
    global _settings  # noqa: PLW0603
    with _lock:
        _settings = None


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the CLI and the API."""
    level = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger().setLevel(level)
