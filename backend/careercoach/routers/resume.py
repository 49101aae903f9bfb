"""
Resume router — AI suggestions for improving a resume.

POST /api/resume/suggestions
  Rate limited by the general budget (checked before the body is read).
  Never fails with a 5xx because of the AI layer: when generation fails
  the response is still 200, with rule-based suggestions and fallback=true.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from careercoach.core.container import ServiceContainer
from careercoach.core.errors import APIError
from careercoach.dependencies.body import body_schema, json_body
from careercoach.dependencies.rate_limit import enforce_rate_limit
from careercoach.dependencies.services import get_container
from careercoach.schemas.resume import SuggestionRequest, SuggestionsResponse
from careercoach.services.rate_limiter import RateLimitResult
from careercoach.services.resume_suggestions import generate_resume_suggestions

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Resume"])

RateLimit = Annotated[RateLimitResult, Depends(enforce_rate_limit)]
Container = Annotated[ServiceContainer, Depends(get_container)]
Payload = Annotated[SuggestionRequest, Depends(json_body(SuggestionRequest))]


@router.post(
    "/suggestions",
    response_model=SuggestionsResponse,
    response_model_exclude_none=True,
    openapi_extra=body_schema(SuggestionRequest),
    summary="AI suggestions for a resume",
    description=(
        "Returns 5-8 improvement suggestions for the submitted resume. "
        "Identical resumes are served from a short-lived cache; if AI is "
        "unavailable a deterministic rule-based list is returned instead."
    ),
)
async def resume_suggestions(
    _rate_limit: RateLimit,
    payload: Payload,
    container: Container,
) -> SuggestionsResponse:
    if payload.resume is None:
        raise APIError("Resume data is required", status_code=400)

    return await generate_resume_suggestions(
        payload.resume,
        container.ai_service,
        container.suggestion_cache,
        container.backoff,
    )
