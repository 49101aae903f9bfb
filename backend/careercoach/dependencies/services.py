"""
FastAPI dependencies that hand out the process-wide services.

Usage in routers:
    AI = Annotated[AIService, Depends(require_ai_service)]
"""

from __future__ import annotations

import logging

from fastapi import Depends, Request

from careercoach.core.config import Settings
from careercoach.core.container import ServiceContainer
from careercoach.core.errors import APIError
from careercoach.services.ai_service import AIService

logger = logging.getLogger(__name__)


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_settings(container: ServiceContainer = Depends(get_container)) -> Settings:
    return container.settings


def get_ai_service(container: ServiceContainer = Depends(get_container)) -> AIService:
    return container.ai_service


def require_ai_service(ai_service: AIService = Depends(get_ai_service)) -> AIService:
    """
    Like get_ai_service, but fails with 503 when no provider is configured.

    Routes declare it ahead of their json_body() payload, so a server with
    no provider answers 503 even for an invalid or malformed payload.
    """
    if not ai_service.is_available():
        logger.error("AI service not available")
        raise APIError(
            "AI service unavailable",
            "No AI providers are configured. Please set GEMINI_API_KEY or OPENAI_API_KEY.",
            status_code=503,
            availableProviders=ai_service.get_available_providers(),
        )
    return ai_service
