"""
AI orchestration across providers.

Policy for one generate_response() call:
  1. No provider configured → AIConfigurationError immediately (never retried).
  2. Primary provider (first available) — up to max_retries attempts.
  3. Fallback enabled and more providers configured → each remaining
     provider once, in configured order. First success wins.
  4. Everything failed → AllProvidersFailedError carrying every error.

Providers are tried one at a time, never in parallel, so a request never
pays for redundant generations.

There is deliberately no circuit breaker: nothing is remembered between
calls, and every call re-runs the full chain from the top. A known-down
primary therefore costs max_retries attempts per request. Switching to a
stateful breaker is a behavior change and needs a product decision.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from careercoach.core.config import Settings
from careercoach.core.errors import (
    AIConfigurationError,
    AllProvidersFailedError,
    ProviderError,
)
from careercoach.services.ai_providers import AIProvider, AIResponse, build_providers

logger = logging.getLogger(__name__)


class AIService:
    """Prioritized provider list with bounded retry and ordered fallback."""

    def __init__(
        self,
        providers: Sequence[AIProvider],
        *,
        max_retries: int = 3,
        fallback_enabled: bool = True,
    ) -> None:
        if max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {max_retries}")

        self.providers = [p for p in providers if p.is_available()]
        self.max_retries = max_retries
        self.fallback_enabled = fallback_enabled

        if not self.providers:
            logger.warning("No AI providers available")
        else:
            logger.info(
                "AI service initialized primary=%s available=%s",
                self.providers[0].get_name(),
                self.get_available_providers(),
            )

    @classmethod
    def from_settings(cls, settings: Settings) -> AIService:
        return cls(
            build_providers(settings),
            max_retries=settings.AI_MAX_RETRIES,
            fallback_enabled=settings.AI_FALLBACK_ENABLED,
        )

    @property
    def primary_provider(self) -> AIProvider | None:
        return self.providers[0] if self.providers else None

    def is_available(self) -> bool:
        return bool(self.providers)

    def get_available_providers(self) -> list[str]:
        return [p.get_name() for p in self.providers]

    async def generate_response(self, prompt: str, context: str | None = None) -> AIResponse:
        if not self.providers:
            raise AIConfigurationError(
                "No AI providers available. Please configure GEMINI_API_KEY or OPENAI_API_KEY."
            )

        errors: list[Exception] = []

        primary = self.providers[0]
        try:
            return await self._with_retries(primary, prompt, context, errors)
        except AllProvidersFailedError:
            logger.error(
                "All retries exhausted for primary provider provider=%s attempts=%d",
                primary.get_name(),
                self.max_retries,
            )

        if self.fallback_enabled and len(self.providers) > 1:
            response = await self._with_fallbacks(prompt, context, errors)
            if response is not None:
                return response

        logger.error("All AI providers failed errors=%d", len(errors))
        raise AllProvidersFailedError(errors)

    # ── Policies ────────────────────────────────────────────
    @staticmethod
    async def _call(provider: AIProvider, prompt: str, context: str | None) -> AIResponse:
        response = await provider.generate_response(prompt, context)
        if not response.content:
            raise ProviderError(
                f"{provider.get_name()} returned an empty response",
                provider=provider.get_name(),
            )
        return response

    async def _with_retries(
        self,
        provider: AIProvider,
        prompt: str,
        context: str | None,
        errors: list[Exception],
    ) -> AIResponse:
        """Bounded retry against a single provider."""
        for attempt in range(1, self.max_retries + 1):
            logger.debug(
                "Attempting AI request provider=%s attempt=%d",
                provider.get_name(),
                attempt,
            )
            try:
                return await self._call(provider, prompt, context)
            except Exception as exc:
                errors.append(exc)
                logger.warning(
                    "AI request failed provider=%s attempt=%d error=%s",
                    provider.get_name(),
                    attempt,
                    exc,
                )
        raise AllProvidersFailedError(errors)

    async def _with_fallbacks(
        self,
        prompt: str,
        context: str | None,
        errors: list[Exception],
    ) -> AIResponse | None:
        """One attempt per remaining provider, in configured order."""
        logger.info("Attempting fallback providers count=%d", len(self.providers) - 1)

        for provider in self.providers[1:]:
            logger.debug("Attempting fallback provider provider=%s", provider.get_name())
            try:
                response = await self._call(provider, prompt, context)
            except Exception as exc:
                errors.append(exc)
                logger.warning(
                    "Fallback provider failed provider=%s error=%s",
                    provider.get_name(),
                    exc,
                )
                continue

            logger.info("Fallback provider succeeded provider=%s", provider.get_name())
            return response
        return None
