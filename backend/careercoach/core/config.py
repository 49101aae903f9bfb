"""
Application settings loaded from environment variables.

Uses pydantic-settings so that every config value is validated at startup.
AI credentials stay in .env on the server, never in frontend code.

Besides plain attribute access, Settings doubles as the configuration
provider used across the service:
  • get(key)            — typed lookup by setting name
  • has_ai_provider()   — feature flag: is any AI backend configured?
  • get_ai_provider()   — which backend would be primary
"""

from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration. Every key has a default except credentials."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── App ─────────────────────────────────────────────────
    APP_NAME: str = "AI Career Coach"
    DEBUG: bool = False
    ENVIRONMENT: Literal["development", "production", "test"] = "development"
    LOG_LEVEL: Literal["debug", "info", "warn", "error"] = "info"

    # ── AI providers ────────────────────────────────────────
    # Keys stay server-side, never exposed to clients.
    GEMINI_API_KEY: str | None = None
    GEMINI_MODEL: str = "gemini-2.5-flash"
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4-turbo-preview"

    # ── AI request policy ───────────────────────────────────
    AI_TIMEOUT_MS: int = Field(default=30_000, gt=0)
    AI_MAX_RETRIES: int = Field(default=3, ge=1)
    AI_FALLBACK_ENABLED: bool = True

    # ── Rate limiting ───────────────────────────────────────
    RATE_LIMIT_WINDOW_MS: int = Field(default=60_000, gt=0)
    RATE_LIMIT_MAX_REQUESTS: int = Field(default=10, gt=0)
    AI_RATE_LIMIT_MAX_REQUESTS: int = Field(default=5, gt=0)

    # ── Caching / housekeeping ──────────────────────────────
    SUGGESTIONS_CACHE_TTL_SECONDS: float = Field(default=300.0, gt=0)
    SWEEP_INTERVAL_SECONDS: float = Field(default=60.0, gt=0)

    # ── Features ────────────────────────────────────────────
    ENABLE_API_METRICS: bool = True

    # ── Lookups ─────────────────────────────────────────────
    def get(self, key: str) -> Any:
        """Return a single setting by name. Raises KeyError for unknown keys."""
        if key not in type(self).model_fields:
            raise KeyError(key)
        return getattr(self, key)

    # ── Feature predicates ──────────────────────────────────
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    def has_ai_provider(self) -> bool:
        return self.get_ai_provider() is not None

    def get_ai_provider(self) -> Literal["gemini", "openai"] | None:
        if self.GEMINI_API_KEY and self.GEMINI_API_KEY.strip():
            return "gemini"
        if self.OPENAI_API_KEY and self.OPENAI_API_KEY.strip():
            return "openai"
        return None

    # ── Derived values ──────────────────────────────────────
    @property
    def ai_timeout_seconds(self) -> float:
        return self.AI_TIMEOUT_MS / 1000

    @property
    def rate_limit_window_seconds(self) -> float:
        return self.RATE_LIMIT_WINDOW_MS / 1000
