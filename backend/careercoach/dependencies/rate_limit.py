"""
FastAPI dependencies for rate limit enforcement.

Two dependencies:
  • enforce_rate_limit     — general endpoints (RATE_LIMIT_MAX_REQUESTS)
  • enforce_ai_rate_limit  — AI-heavy endpoints (AI_RATE_LIMIT_MAX_REQUESTS)

Both key on the client address and run before the router logic. Every
response from a rate-limited route carries X-RateLimit-Limit,
X-RateLimit-Remaining and X-RateLimit-Reset, success or failure. The
check result is parked on request.state.rate_limit so exception handlers
can attach the same headers to error responses.

On limit exceeded: 429 with retryAfter (seconds) in the body and a
Retry-After header.
"""

from __future__ import annotations

import datetime
import logging

from fastapi import Depends, Request, Response

from careercoach.core.container import ServiceContainer
from careercoach.core.errors import RateLimitExceeded
from careercoach.dependencies.services import get_container
from careercoach.services.rate_limiter import RateLimiter, RateLimitResult

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


def get_client_identifier(request: Request) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then a sentinel."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    return UNKNOWN_CLIENT


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    reset = datetime.datetime.fromtimestamp(result.reset_at, tz=datetime.timezone.utc)
    reset_iso = reset.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": reset_iso,
    }


def _enforce(limiter: RateLimiter, request: Request, response: Response) -> RateLimitResult:
    identifier = get_client_identifier(request)
    result = limiter.check(identifier)
    headers = rate_limit_headers(result)
    request.state.rate_limit = result

    if not result.allowed:
        logger.warning(
            "Rate limit exceeded identifier=%s path=%s limiter=%s",
            identifier,
            request.url.path,
            limiter.name,
        )
        raise RateLimitExceeded(result.retry_after(limiter.now()), headers)

    response.headers.update(headers)
    return result


async def enforce_rate_limit(
    request: Request,
    response: Response,
    container: ServiceContainer = Depends(get_container),
) -> RateLimitResult:
    """Enforce the general request budget."""
    return _enforce(container.general_limiter, request, response)


async def enforce_ai_rate_limit(
    request: Request,
    response: Response,
    container: ServiceContainer = Depends(get_container),
) -> RateLimitResult:
    """Enforce the stricter budget for AI generation endpoints."""
    return _enforce(container.ai_limiter, request, response)
