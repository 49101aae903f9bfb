"""
Error taxonomy.

Two families:
  • APIError and subclasses — already mapped to an HTTP status and a JSON
    body. Raised by routers/dependencies, rendered by the handler in main.
  • AIServiceError and subclasses — raised by the AI layer. Routers decide
    how each one surfaces (503, 500, or a silent fallback payload).

Internal retry/fallback machinery catches and logs intermediate failures;
only the final, aggregate error crosses a component boundary.
"""

from __future__ import annotations

from typing import Any


# ── HTTP-facing errors ──────────────────────────────────────
class APIError(Exception):
    """An error with a ready-made HTTP status and JSON body."""

    status_code: int = 500

    def __init__(
        self,
        error: str,
        message: str | None = None,
        *,
        status_code: int | None = None,
        headers: dict[str, str] | None = None,
        **extra: Any,
    ) -> None:
        super().__init__(message or error)
        if status_code is not None:
            self.status_code = status_code
        self.error = error
        self.message = message
        self.headers = headers or {}
        self.extra = extra

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error}
        if self.message is not None:
            body["message"] = self.message
        body.update(self.extra)
        return body


class RateLimitExceeded(APIError):
    """Raised by the rate-limit guard when a client is over budget."""

    status_code = 429

    def __init__(self, retry_after: int, headers: dict[str, str]) -> None:
        super().__init__(
            "Too many requests",
            "Rate limit exceeded. Please try again later.",
            headers={**headers, "Retry-After": str(retry_after)},
            retryAfter=retry_after,
        )
        self.retry_after = retry_after


# ── AI layer errors ─────────────────────────────────────────
class AIServiceError(Exception):
    """Base class for every failure raised by the AI layer."""


class AIConfigurationError(AIServiceError):
    """No AI provider has credentials. Fatal for the request, never retried."""


class ProviderError(AIServiceError):
    """A single provider (or one of its attempts) failed.

    status_code is the upstream HTTP status when one was observed, so the
    caller-side backoff can recognise upstream rate limiting.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        status_code: int | None = None,
        errors: list[Exception] | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.errors = errors or []


class AllProvidersFailedError(AIServiceError):
    """Every provider/attempt combination failed for one request."""

    def __init__(self, errors: list[Exception]) -> None:
        self.errors = errors
        message = "All AI providers failed"
        if errors:
            message += f" (last error: {errors[-1]})"
        super().__init__(message)
