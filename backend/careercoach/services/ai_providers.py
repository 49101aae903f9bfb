"""
AI provider implementations.

Every provider exposes the same three operations:
  • is_available()       — credentials present?
  • get_name()           — stable provider name ("gemini", "openai")
  • generate_response()  — prompt (+ optional resume context) → AIResponse

Providers with several access paths (official SDK, direct REST, fallback
models) are expressed as an ordered list of attempt strategies. Each
strategy is a zero-argument coroutine factory returning an AIResponse or
None for an empty answer. AttemptChainProvider tries them strictly in
order, logs and swallows each failure, and only raises ProviderError
once the whole chain is exhausted.

Gemini chain:
  1. google-genai SDK, configured model
  2. REST generateContent for [configured model] + fallback models,
     each against API versions v1 then v1beta

OpenAI chain:
  1. openai SDK chat completions, configured model
  2. REST /chat/completions for [configured model] + fallback models

Each attempt is bounded by AI_TIMEOUT_MS; httpx aborts the in-flight
call when the timeout is exceeded.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, NamedTuple

import httpx
from google import genai
from google.genai import errors as genai_errors
from openai import APIStatusError, AsyncOpenAI

from careercoach.core.config import Settings
from careercoach.core.errors import ProviderError
from careercoach.services.prompts import build_full_prompt, build_system_prompt

logger = logging.getLogger(__name__)

_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com"
_GEMINI_API_VERSIONS = ("v1", "v1beta")
GEMINI_FALLBACK_MODELS = (
    "gemini-2.5-flash",
    "gemini-2.0-flash",
    "gemini-2.0-flash-001",
    "gemini-1.5-flash",
)

_OPENAI_BASE_URL = "https://api.openai.com/v1"
OPENAI_FALLBACK_MODELS = (
    "gpt-4.1-mini",
    "gpt-4o-mini",
)

# Upstream error bodies are truncated before they reach logs/messages.
_ERROR_BODY_LIMIT = 500


# ── Value objects ───────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class AIResponse:
    """Generated text plus where it came from. Never mutated after creation."""

    content: str
    provider: str
    model: str
    tokens_used: int | None = None


class AttemptStrategy(NamedTuple):
    label: str
    run: Callable[[], Awaitable[AIResponse | None]]


def model_chain(primary: str, fallbacks: Sequence[str]) -> list[str]:
    """[primary] + fallbacks in declared order, duplicates dropped."""
    chain: list[str] = []
    for model in (primary, *fallbacks):
        if model and model not in chain:
            chain.append(model)
    return chain


# ── Interface ───────────────────────────────────────────────
class AIProvider(ABC):
    """Capability set shared by every AI backend."""

    @abstractmethod
    def is_available(self) -> bool: ...

    @abstractmethod
    def get_name(self) -> str: ...

    @abstractmethod
    async def generate_response(self, prompt: str, context: str | None = None) -> AIResponse: ...


class AttemptChainProvider(AIProvider):
    """Provider whose request is an ordered chain of attempt strategies."""

    name: str = "provider"

    def __init__(
        self,
        api_key: str | None,
        model: str,
        timeout_seconds: float,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key.strip() if api_key else None
        self.model = model
        self.timeout_seconds = timeout_seconds
        self._http_client = http_client

    def get_name(self) -> str:
        return self.name

    @abstractmethod
    def attempts(self, prompt: str, context: str | None) -> list[AttemptStrategy]:
        """Ordered attempt strategies for one request."""

    async def generate_response(self, prompt: str, context: str | None = None) -> AIResponse:
        if not self.is_available():
            raise ProviderError(f"{self.name} client not initialized", provider=self.name)

        errors: list[Exception] = []
        for attempt in self.attempts(prompt, context):
            logger.debug("Attempting %s request provider=%s", attempt.label, self.name)
            try:
                response = await attempt.run()
            except Exception as exc:
                errors.append(exc)
                logger.warning(
                    "%s attempt failed provider=%s error=%s",
                    attempt.label,
                    self.name,
                    exc,
                )
                continue

            if response is None or not response.content:
                logger.debug("%s returned empty text provider=%s", attempt.label, self.name)
                continue

            logger.info(
                "%s request successful provider=%s model=%s length=%d",
                attempt.label,
                self.name,
                response.model,
                len(response.content),
            )
            return response

        raise ProviderError(f"All {self.name} attempts failed", provider=self.name, errors=errors)

    # ── Shared REST plumbing ────────────────────────────────
    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
        else:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                yield client

    async def _post_json(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str],
        label: str,
    ) -> dict[str, Any]:
        """POST payload and return the decoded body; non-200 raises ProviderError."""
        async with self._client() as client:
            response = await client.post(
                url,
                json=payload,
                headers=headers,
                timeout=self.timeout_seconds,
            )

        if response.status_code != 200:
            raise ProviderError(
                f"{label} error: {response.status_code} - {response.text[:_ERROR_BODY_LIMIT]}",
                provider=self.name,
                status_code=response.status_code,
            )
        return response.json()


# ── Gemini ──────────────────────────────────────────────────
class GeminiProvider(AttemptChainProvider):
    """Google Gemini via the google-genai SDK, with a REST fallback chain."""

    name = "gemini"

    def __init__(
        self,
        api_key: str | None,
        model: str = "gemini-2.5-flash",
        timeout_seconds: float = 30.0,
        *,
        fallback_models: Sequence[str] = GEMINI_FALLBACK_MODELS,
        sdk_client: Any = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(api_key, model, timeout_seconds, http_client=http_client)
        self.fallback_models = tuple(fallback_models)
        self._sdk = sdk_client
        if self._sdk is None and self.api_key:
            self._sdk = genai.Client(api_key=self.api_key)
        if self.api_key:
            logger.info("Gemini provider initialized model=%s", self.model)

    def is_available(self) -> bool:
        return bool(self.api_key and self._sdk is not None)

    def attempts(self, prompt: str, context: str | None) -> list[AttemptStrategy]:
        full_prompt = build_full_prompt(prompt, context)

        strategies = [AttemptStrategy("Gemini SDK", lambda: self._call_sdk(full_prompt))]
        for model in model_chain(self.model, self.fallback_models):
            for api_version in _GEMINI_API_VERSIONS:
                strategies.append(
                    AttemptStrategy(
                        f"Gemini REST {api_version} {model}",
                        lambda m=model, v=api_version: self._call_rest(m, v, full_prompt),
                    )
                )
        return strategies

    async def _call_sdk(self, full_prompt: str) -> AIResponse | None:
        try:
            result = await asyncio.wait_for(
                self._sdk.aio.models.generate_content(model=self.model, contents=full_prompt),
                timeout=self.timeout_seconds,
            )
        except genai_errors.APIError as exc:
            raise ProviderError(
                f"Gemini SDK error: {exc.code} - {exc}",
                provider=self.name,
                status_code=exc.code,
            ) from exc

        text = result.text
        if not text:
            return None

        usage = getattr(result, "usage_metadata", None)
        return AIResponse(
            content=text,
            provider=self.name,
            model=self.model,
            tokens_used=getattr(usage, "total_token_count", None),
        )

    async def _call_rest(self, model: str, api_version: str, full_prompt: str) -> AIResponse | None:
        data = await self._post_json(
            f"{_GEMINI_BASE_URL}/{api_version}/models/{model}:generateContent",
            {"contents": [{"role": "user", "parts": [{"text": full_prompt}]}]},
            {"Content-Type": "application/json", "x-goog-api-key": self.api_key or ""},
            label=f"REST {api_version}",
        )

        candidates = data.get("candidates") or [{}]
        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "\n".join(part["text"] for part in parts if part.get("text"))
        if not text:
            return None

        return AIResponse(
            content=text,
            provider=self.name,
            model=model,
            tokens_used=(data.get("usageMetadata") or {}).get("totalTokenCount"),
        )


# ── OpenAI ──────────────────────────────────────────────────
class OpenAIProvider(AttemptChainProvider):
    """OpenAI chat completions via the openai SDK, with a REST fallback chain."""

    name = "openai"

    def __init__(
        self,
        api_key: str | None,
        model: str = "gpt-4-turbo-preview",
        timeout_seconds: float = 30.0,
        *,
        fallback_models: Sequence[str] = OPENAI_FALLBACK_MODELS,
        sdk_client: Any = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(api_key, model, timeout_seconds, http_client=http_client)
        self.fallback_models = tuple(fallback_models)
        self._sdk = sdk_client
        if self._sdk is None and self.api_key:
            # SDK-level retries disabled; retry policy lives in AIService.
            self._sdk = AsyncOpenAI(api_key=self.api_key, timeout=timeout_seconds, max_retries=0)
        if self.api_key:
            logger.info("OpenAI provider initialized model=%s", self.model)

    def is_available(self) -> bool:
        return bool(self.api_key and self._sdk is not None)

    def attempts(self, prompt: str, context: str | None) -> list[AttemptStrategy]:
        messages = [
            {"role": "system", "content": build_system_prompt(context)},
            {"role": "user", "content": prompt},
        ]

        strategies = [AttemptStrategy("OpenAI SDK", lambda: self._call_sdk(messages))]
        for model in model_chain(self.model, self.fallback_models):
            strategies.append(
                AttemptStrategy(
                    f"OpenAI REST {model}",
                    lambda m=model: self._call_rest(m, messages),
                )
            )
        return strategies

    async def _call_sdk(self, messages: list[dict[str, str]]) -> AIResponse | None:
        try:
            completion = await self._sdk.chat.completions.create(
                model=self.model,
                messages=messages,
            )
        except APIStatusError as exc:
            raise ProviderError(
                f"OpenAI SDK error: {exc.status_code} - {exc.message}",
                provider=self.name,
                status_code=exc.status_code,
            ) from exc

        if not completion.choices:
            return None
        text = completion.choices[0].message.content
        if not text:
            return None

        usage = getattr(completion, "usage", None)
        return AIResponse(
            content=text,
            provider=self.name,
            model=self.model,
            tokens_used=getattr(usage, "total_tokens", None),
        )

    async def _call_rest(self, model: str, messages: list[dict[str, str]]) -> AIResponse | None:
        data = await self._post_json(
            f"{_OPENAI_BASE_URL}/chat/completions",
            {"model": model, "messages": messages},
            {
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            label="REST chat/completions",
        )

        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError(
                "Could not parse OpenAI REST response",
                provider=self.name,
            ) from exc
        if not text:
            return None

        return AIResponse(
            content=text,
            provider=self.name,
            model=model,
            tokens_used=(data.get("usage") or {}).get("total_tokens"),
        )


# ── Factory ─────────────────────────────────────────────────
def build_providers(settings: Settings) -> list[AIProvider]:
    """All known providers in priority order (unavailable ones included)."""
    timeout = settings.ai_timeout_seconds
    return [
        GeminiProvider(settings.GEMINI_API_KEY, settings.GEMINI_MODEL, timeout),
        OpenAIProvider(settings.OPENAI_API_KEY, settings.OPENAI_MODEL, timeout),
    ]
