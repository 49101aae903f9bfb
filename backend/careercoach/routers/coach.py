"""
Coach chat router — career advice generated by the AI service.

Requires the AI-specific rate limit (stricter than the general budget).

POST /api/coach
  1. Enforce rate limit (429 on exceed), before the body is read.
  2. Refuse with 503 if no AI provider is configured.
  3. Validate the payload (400 on invalid input).
  4. Generate the answer (500 with retryable=true on failure).
  5. Attach follow-up suggestions and timing metadata.
"""

import logging
import time
from typing import Annotated

from fastapi import APIRouter, Depends, Response

from careercoach.core.config import Settings
from careercoach.core.errors import AIConfigurationError, AIServiceError, APIError
from careercoach.dependencies.body import body_schema, json_body
from careercoach.dependencies.rate_limit import enforce_ai_rate_limit
from careercoach.dependencies.services import get_settings, require_ai_service
from careercoach.schemas.coach import CoachMetadata, CoachRequest, CoachResponse
from careercoach.services.ai_service import AIService
from careercoach.services.coach import build_coach_prompt, generate_follow_up_suggestions
from careercoach.services.rate_limiter import RateLimitResult

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Coach"])

# Resolved in declaration order: rate limit, provider availability, body.
RateLimit = Annotated[RateLimitResult, Depends(enforce_ai_rate_limit)]
AI = Annotated[AIService, Depends(require_ai_service)]
AppSettings = Annotated[Settings, Depends(get_settings)]
Payload = Annotated[CoachRequest, Depends(json_body(CoachRequest))]


@router.post(
    "",
    response_model=CoachResponse,
    openapi_extra=body_schema(CoachRequest),
    summary="Ask the AI career coach",
    description=(
        "Sends the message (plus optional resume context and recent "
        "conversation) to the configured AI providers with retry and "
        "fallback. Rate limited by the AI budget."
    ),
)
async def coach_chat(
    response: Response,
    _rate_limit: RateLimit,
    ai: AI,
    payload: Payload,
    settings: AppSettings,
) -> CoachResponse:
    start = time.perf_counter()

    logger.info(
        "Processing coach request message_length=%d has_context=%s history_turns=%d",
        len(payload.message),
        bool(payload.resume_context),
        len(payload.conversation_history or []),
    )

    # ── 1. Generate ─────────────────────────────────────────
    prompt = build_coach_prompt(payload.message, payload.conversation_history)
    try:
        ai_response = await ai.generate_response(prompt, payload.resume_context)
    except AIConfigurationError as exc:
        raise APIError("AI service unavailable", str(exc), status_code=503) from exc
    except AIServiceError as exc:
        logger.error("AI generation failed error=%s", exc)
        raise APIError(
            "AI generation failed",
            "Failed to generate response. Please try again.",
            status_code=500,
            retryable=True,
        ) from exc

    # ── 2. Follow-ups + metadata ────────────────────────────
    suggestions = generate_follow_up_suggestions(payload.message, ai_response.content)
    duration_ms = int((time.perf_counter() - start) * 1000)

    logger.info(
        "Coach request completed duration_ms=%d provider=%s model=%s response_length=%d",
        duration_ms,
        ai_response.provider,
        ai_response.model,
        len(ai_response.content),
    )

    if settings.ENABLE_API_METRICS:
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        response.headers["X-AI-Provider"] = ai_response.provider

    return CoachResponse(
        response=ai_response.content,
        suggestions=suggestions,
        metadata=CoachMetadata(
            provider=ai_response.provider,
            model=ai_response.model,
            tokens_used=ai_response.tokens_used,
            processing_time=duration_ms,
        ),
    )
