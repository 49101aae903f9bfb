"""
Content-addressed memoization cache for resume suggestions.

Keyed by a hash of the canonicalized request payload, so identical
resumes submitted within the TTL reuse the previous AI result.

Caveats (accepted):
  • No size bound and no LRU eviction — growth is bounded only by
    TTL × number of distinct inputs. sweep() runs on a fixed interval.
  • Check-then-set is not atomic across the AI call: two identical
    requests in flight may both miss, both generate, and both store.
    Last write wins; nothing is corrupted, the work is just duplicated.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

# Hex chars of the sha256 digest kept as the cache key.
_KEY_LENGTH = 16


def payload_hash(payload: Any) -> str:
    """Deterministic key for a JSON-serializable payload."""
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:_KEY_LENGTH]


@dataclass(frozen=True, slots=True)
class CacheEntry:
    suggestions: list[dict[str, Any]]
    provider: str
    timestamp: float


class SuggestionCache:
    """TTL cache of generated suggestion sets."""

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> CacheEntry | None:
        """Return the live entry for key, or None on miss/expiry."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.timestamp < self.ttl_seconds:
            return entry
        return None

    def put(self, key: str, suggestions: list[dict[str, Any]], provider: str) -> CacheEntry:
        """Store (or overwrite) the entry for key."""
        entry = CacheEntry(suggestions=suggestions, provider=provider, timestamp=self._clock())
        self._entries[key] = entry
        return entry

    def sweep(self) -> int:
        """Drop expired entries. Returns the count removed."""
        now = self._clock()
        expired = [
            key for key, entry in self._entries.items()
            if now - entry.timestamp > self.ttl_seconds
        ]
        for key in expired:
            del self._entries[key]

        if expired:
            logger.debug("Evicted %d expired suggestion cache entries", len(expired))
        return len(expired)
