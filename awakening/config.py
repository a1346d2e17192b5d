"""
Neuropul Awakening: Application Configuration

Loads all configuration from environment variables (and an optional .env file)
using Pydantic Settings.  A cached ``get_settings()`` helper is provided so that
FastAPI dependency-injection (and any other call-site) always receives the same
validated instance without re-parsing the environment on every request.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the awakening service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------ #
    # Gemini text generator
    # ------------------------------------------------------------------ #
    GEMINI_API_KEY: str = ""  # empty -> remote path unavailable, local fallback only
    GEMINI_MODEL_PRIMARY: str = "gemini-2.5-flash"
    GEMINI_MODEL_FALLBACK: str = "gemini-2.0-flash"
    GENERATION_TEMPERATURE: float = 0.7
    GENERATION_MAX_OUTPUT_TOKENS: int = 500
    PROMPT_MAX_CHARS: int = 2000

    # ------------------------------------------------------------------ #
    # Resolution policy
    # ------------------------------------------------------------------ #
    ARCHETYPE_TIMEOUT_SECONDS: float = 15.0
    PROPHECY_TIMEOUT_SECONDS: float = 15.0
    RETRY_DELAY_SECONDS: float = 2.0
    MAX_REMOTE_ATTEMPTS: int = 2  # initial call + one retry

    # ------------------------------------------------------------------ #
    # Sessions
    # ------------------------------------------------------------------ #
    SESSION_TTL_SECONDS: int = 3600

    # ------------------------------------------------------------------ #
    # Runtime environment
    # ------------------------------------------------------------------ #
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    REQUEST_TIMEOUT_SECONDS: float = 45.0

    # ------------------------------------------------------------------ #
    # CORS
    # ------------------------------------------------------------------ #
    ALLOWED_ORIGINS: str = "*"

    # ------------------------------------------------------------------ #
    # Derived helpers
    # ------------------------------------------------------------------ #
    @property
    def allowed_origins_list(self) -> list[str]:
        """Return ALLOWED_ORIGINS as a list split on commas."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def gemini_model_chain(self) -> list[str]:
        chain = [self.GEMINI_MODEL_PRIMARY]
        if self.GEMINI_MODEL_FALLBACK and self.GEMINI_MODEL_FALLBACK not in chain:
            chain.append(self.GEMINI_MODEL_FALLBACK)
        return chain

    @field_validator("MAX_REMOTE_ATTEMPTS")
    @classmethod
    def _attempts_must_be_small(cls, v: int) -> int:
        if not 1 <= v <= 2:
            raise ValueError(f"MAX_REMOTE_ATTEMPTS must be 1 or 2 (at most one retry), got {v}")
        return v

    @field_validator(
        "ARCHETYPE_TIMEOUT_SECONDS",
        "PROPHECY_TIMEOUT_SECONDS",
        "REQUEST_TIMEOUT_SECONDS",
    )
    @classmethod
    def _timeout_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Timeout must be positive, got {v}")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached, validated ``Settings`` instance.

    Using ``@lru_cache`` guarantees the .env file is read and validated
    exactly once per process lifetime::

        from awakening.config import get_settings
        settings = get_settings()
    """
    return Settings()
