"""
Process-wide service container.

Everything with state that outlives a request (limiters, AI providers,
suggestion cache) is constructed here once and hung off app.state by
create_app(). Nothing lives in module globals, so tests build a fresh
container per test and never share counters or cache entries.
"""

from __future__ import annotations

from dataclasses import dataclass

from careercoach.core.config import Settings
from careercoach.services.ai_service import AIService
from careercoach.services.backoff import RateLimitBackoff
from careercoach.services.rate_limiter import RateLimiter
from careercoach.services.suggestion_cache import SuggestionCache


@dataclass
class ServiceContainer:
    settings: Settings
    general_limiter: RateLimiter
    ai_limiter: RateLimiter
    ai_service: AIService
    suggestion_cache: SuggestionCache
    backoff: RateLimitBackoff

    def sweepables(self) -> list[RateLimiter | SuggestionCache]:
        return [self.general_limiter, self.ai_limiter, self.suggestion_cache]


def build_container(settings: Settings, ai_service: AIService | None = None) -> ServiceContainer:
    """Wire every long-lived service from settings."""
    return ServiceContainer(
        settings=settings,
        general_limiter=RateLimiter(
            settings.RATE_LIMIT_WINDOW_MS,
            settings.RATE_LIMIT_MAX_REQUESTS,
            name="general",
        ),
        ai_limiter=RateLimiter(
            settings.RATE_LIMIT_WINDOW_MS,
            settings.AI_RATE_LIMIT_MAX_REQUESTS,
            name="ai",
        ),
        ai_service=ai_service or AIService.from_settings(settings),
        suggestion_cache=SuggestionCache(settings.SUGGESTIONS_CACHE_TTL_SECONDS),
        backoff=RateLimitBackoff(),
    )
