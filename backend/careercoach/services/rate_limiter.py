"""
In-memory, fixed-window rate limiter.

Each client identity gets one record {count, reset_at}. The first request
opens a window; requests inside the window increment the counter until
the limit is hit; once reset_at has passed the next request opens a
fresh window.

Design decisions:
  • Fixed window, hard cliff at the boundary — a burst at the end of one
    window followed by a burst at the start of the next is tolerated.
  • Blocked checks are read-only — hammering while blocked never extends
    the window or inflates the counter.
  • Process-local — state lives in a dict shared by every request in the
    process. check() never awaits, so its read-modify-write is atomic
    under the event loop.
  • Memory is bounded by sweep(), which the app runs on a fixed interval
    independent of request traffic.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_KEY_PREFIX = "rate_limit:"


@dataclass(slots=True)
class RateLimitRecord:
    """Per-identity window state."""

    count: int
    reset_at: float  # epoch seconds


@dataclass(frozen=True, slots=True)
class RateLimitResult:
    """Outcome of a single check() call."""

    allowed: bool
    limit: int
    remaining: int
    reset_at: float

    def retry_after(self, now: float) -> int:
        """Whole seconds until the window closes (never negative)."""
        return max(0, math.ceil(self.reset_at - now))


class RateLimiter:
    """Fixed-window request counter keyed by client identity."""

    def __init__(
        self,
        window_ms: int,
        max_requests: int,
        *,
        name: str = "default",
        clock: Callable[[], float] = time.time,
    ) -> None:
        if window_ms <= 0:
            raise ValueError(f"window_ms must be positive, got {window_ms}")
        if max_requests <= 0:
            raise ValueError(f"max_requests must be positive, got {max_requests}")

        self.window_seconds = window_ms / 1000
        self.max_requests = max_requests
        self.name = name
        self._clock = clock
        self._store: dict[str, RateLimitRecord] = {}

    def __len__(self) -> int:
        return len(self._store)

    def now(self) -> float:
        return self._clock()

    @staticmethod
    def _key(identity: str) -> str:
        return f"{_KEY_PREFIX}{identity}"

    def check(self, identity: str) -> RateLimitResult:
        """Count one request for identity and report whether it is allowed."""
        key = self._key(identity)
        now = self._clock()
        record = self._store.get(key)

        # ── New window ──────────────────────────────────────
        if record is None or record.reset_at < now:
            record = RateLimitRecord(count=1, reset_at=now + self.window_seconds)
            self._store[key] = record
            return RateLimitResult(
                allowed=True,
                limit=self.max_requests,
                remaining=self.max_requests - 1,
                reset_at=record.reset_at,
            )

        # ── Over budget: record left untouched ──────────────
        if record.count >= self.max_requests:
            return RateLimitResult(
                allowed=False,
                limit=self.max_requests,
                remaining=0,
                reset_at=record.reset_at,
            )

        # ── Within window ───────────────────────────────────
        record.count += 1
        return RateLimitResult(
            allowed=True,
            limit=self.max_requests,
            remaining=self.max_requests - record.count,
            reset_at=record.reset_at,
        )

    def reset(self, identity: str) -> None:
        """Drop an identity's record immediately (administrative override)."""
        self._store.pop(self._key(identity), None)

    def sweep(self) -> int:
        """Remove every record whose window has closed. Returns the count removed."""
        now = self._clock()
        expired = [key for key, record in self._store.items() if record.reset_at < now]
        for key in expired:
            del self._store[key]

        if expired:
            logger.debug(
                "Cleaned %d expired rate limit entries limiter=%s",
                len(expired),
                self.name,
            )
        return len(expired)
