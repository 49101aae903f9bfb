"""
Periodic sweeps of process-local state.

The rate limiters and the suggestion cache only shed expired records when
sweep() is called. The app lifespan runs run_periodic_sweeps() as a
background task so memory stays bounded regardless of request traffic.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Protocol

logger = logging.getLogger(__name__)


class Sweepable(Protocol):
    def sweep(self) -> int: ...


def sweep_all(targets: Sequence[Sweepable]) -> int:
    """Sweep every target once. A failing target does not stop the others."""
    removed = 0
    for target in targets:
        try:
            removed += target.sweep()
        except Exception:
            logger.exception("Sweep failed target=%s", type(target).__name__)
    return removed


async def run_periodic_sweeps(targets: Sequence[Sweepable], interval_seconds: float) -> None:
    """Sweep targets every interval_seconds until cancelled."""
    logger.debug("Periodic sweeps started interval=%.1fs targets=%d", interval_seconds, len(targets))
    while True:
        await asyncio.sleep(interval_seconds)
        sweep_all(targets)
