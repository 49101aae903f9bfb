"""
Caller-side retry with exponential backoff for upstream rate limiting.

Distinct from AIService's own retries: this layer wraps a whole
orchestrator call and only reacts to upstream 429 / "Too Many Requests"
signals. Anything else is re-raised immediately (fail fast).

Delay before retry n (1-based) is base_seconds * 2**n: 2s, 4s, 8s with
the defaults.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RATE_LIMIT_MARKERS = ("429", "too many requests")


def is_rate_limit_error(exc: BaseException) -> bool:
    """True if exc, a nested aggregate error, or its cause signals HTTP 429."""
    seen: set[int] = set()
    pending: list[BaseException] = [exc]

    while pending:
        current = pending.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))

        if getattr(current, "status_code", None) == 429:
            return True
        message = str(current).lower()
        if any(marker in message for marker in _RATE_LIMIT_MARKERS):
            return True

        pending.extend(getattr(current, "errors", None) or [])
        if current.__cause__ is not None:
            pending.append(current.__cause__)

    return False


class RateLimitBackoff:
    """Retry an async operation while it fails with a rate-limit error."""

    def __init__(
        self,
        max_retries: int = 3,
        base_seconds: float = 1.0,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        self.max_retries = max_retries
        self.base_seconds = base_seconds
        self._sleep = sleep

    def delay_for(self, retry: int) -> float:
        return self.base_seconds * (2 ** retry)

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        retry = 0
        while True:
            try:
                return await operation()
            except Exception as exc:
                if not is_rate_limit_error(exc):
                    raise

                retry += 1
                if retry > self.max_retries:
                    logger.error(
                        "Rate limited, giving up retries=%d error=%s",
                        self.max_retries,
                        exc,
                    )
                    raise

                delay = self.delay_for(retry)
                logger.warning(
                    "Rate limited, retrying delay=%.1fs attempt=%d/%d",
                    delay,
                    retry,
                    self.max_retries,
                )
                await self._sleep(delay)
