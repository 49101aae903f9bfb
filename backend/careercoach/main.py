"""
FastAPI application entrypoint.

Lifespan:
  • On startup: report AI provider status, start periodic sweeps of the
    rate limiters and the suggestion cache.
  • On shutdown: cancel the sweep task.

Routers:
  • /api/coach              — AI career coach chat
  • /api/resume/suggestions — AI resume suggestions (with fallback)
  • /health                 — shallow liveness probe

Run with:
    uvicorn careercoach.main:app
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from careercoach.core.config import Settings
from careercoach.core.container import ServiceContainer, build_container
from careercoach.core.errors import APIError
from careercoach.dependencies.rate_limit import rate_limit_headers
from careercoach.routers.coach import router as coach_router
from careercoach.routers.resume import router as resume_router
from careercoach.services.housekeeping import run_periodic_sweeps

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else _LOG_LEVELS[settings.LOG_LEVEL],
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def _error_headers(request: Request, extra: dict[str, str] | None = None) -> dict[str, str]:
    """Rate-limit headers for this request (if it was limited) plus extras."""
    headers: dict[str, str] = {}
    result = getattr(request.state, "rate_limit", None)
    if result is not None:
        headers.update(rate_limit_headers(result))
    if extra:
        headers.update(extra)
    return headers


# ── Exception handlers ──────────────────────────────────────
async def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_body(),
        headers=_error_headers(request, exc.headers),
    )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if any(err.get("type") == "json_invalid" for err in errors):
        logger.warning("Invalid JSON in request body path=%s", request.url.path)
        body = {"error": "Invalid JSON", "message": "Request body must be valid JSON"}
    else:
        logger.warning("Request validation failed path=%s errors=%d", request.url.path, len(errors))
        body = {
            "error": "Validation failed",
            "message": "Invalid request parameters",
            "details": [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
                for err in errors
            ],
        }
    return JSONResponse(status_code=400, content=body, headers=_error_headers(request))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error path=%s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please try again.",
        },
        headers=_error_headers(request),
    )


# ── App factory ─────────────────────────────────────────────
def create_app(
    settings: Settings | None = None,
    container: ServiceContainer | None = None,
) -> FastAPI:
    """Composition root: build settings + services and mount routers."""
    if container is None:
        container = build_container(settings or Settings())
    settings = container.settings
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Startup / shutdown lifecycle."""
        ai_service = app.state.container.ai_service
        if ai_service.is_available():
            logger.info("AI providers ready providers=%s", ai_service.get_available_providers())
        else:
            logger.warning(
                "No AI provider configured. Coach requests will return 503 and "
                "resume suggestions will use the rule-based fallback."
            )

        sweeper = asyncio.create_task(
            run_periodic_sweeps(app.state.container.sweepables(), settings.SWEEP_INTERVAL_SECONDS)
        )

        yield  # ← application runs here

        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
        logger.info("Periodic sweeps stopped ✓")

    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        description="AI career coach and resume suggestion API.",
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_exception_handler(APIError, handle_api_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    # Mount routers
    app.include_router(coach_router, prefix="/api/coach")
    app.include_router(resume_router, prefix="/api/resume")

    # ── Health check ────────────────────────────────────────
    @app.get(
        "/health",
        tags=["System"],
        summary="Liveness probe",
    )
    async def health_check(request: Request) -> dict[str, object]:
        """Shallow health check: process is alive and which providers are configured."""
        ai_service = request.app.state.container.ai_service
        return {
            "status": "healthy",
            "aiAvailable": ai_service.is_available(),
            "providers": ai_service.get_available_providers(),
        }

    return app


app = create_app()
