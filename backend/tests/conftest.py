"""
Shared fixtures.

Every test gets fresh services: the app is built through create_app()
with an injected container, so limiter counters and cache entries never
leak between tests. AI providers are replaced by scripted fakes.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from careercoach.core.config import Settings
from careercoach.core.container import ServiceContainer, build_container
from careercoach.main import create_app
from careercoach.services.ai_providers import AIProvider, AIResponse
from careercoach.services.ai_service import AIService
from careercoach.services.backoff import RateLimitBackoff


class FakeProvider(AIProvider):
    """Scripted provider: pops one outcome per call, then repeats the default."""

    def __init__(
        self,
        name: str = "fake",
        outcomes: list[str | Exception] | None = None,
        *,
        default: str | Exception = "Fake answer",
        available: bool = True,
    ) -> None:
        self.name = name
        self.outcomes = list(outcomes or [])
        self.default = default
        self.available = available
        self.calls: list[tuple[str, str | None]] = []

    def is_available(self) -> bool:
        return self.available

    def get_name(self) -> str:
        return self.name

    async def generate_response(self, prompt: str, context: str | None = None) -> AIResponse:
        self.calls.append((prompt, context))
        outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if isinstance(outcome, Exception):
            raise outcome
        return AIResponse(content=outcome, provider=self.name, model=f"{self.name}-model", tokens_used=12)


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_provider_cls() -> type[FakeProvider]:
    return FakeProvider


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(1_700_000_000.0)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Settings isolated from the developer's .env and shell."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    return Settings(_env_file=None, ENVIRONMENT="test")


@pytest.fixture
def make_container(
    settings: Settings,
    recording_sleep: RecordingSleep,
) -> Callable[..., ServiceContainer]:
    def _make(*providers: AIProvider, **overrides: object) -> ServiceContainer:
        app_settings = settings.model_copy(update=overrides)
        ai_service = AIService(
            providers,
            max_retries=app_settings.AI_MAX_RETRIES,
            fallback_enabled=app_settings.AI_FALLBACK_ENABLED,
        )
        container = build_container(app_settings, ai_service=ai_service)
        container.backoff = RateLimitBackoff(sleep=recording_sleep)
        return container

    return _make


@pytest.fixture
def make_client(
    make_container: Callable[..., ServiceContainer],
) -> Iterator[Callable[..., TestClient]]:
    clients: list[TestClient] = []

    def _make(*providers: AIProvider, **overrides: object) -> TestClient:
        container = make_container(*providers, **overrides)
        client = TestClient(create_app(container=container))
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)
