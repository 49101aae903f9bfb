"""
JSON request bodies parsed as a dependency.

FastAPI decodes declared body parameters before it resolves any
dependency, so a malformed body would be rejected without ever touching
the rate limiter. Routes that are rate limited read their payload through
json_body() instead, declared after the limiter dependency:

    Payload = Annotated[CoachRequest, Depends(json_body(CoachRequest))]

Parse failures are re-raised as RequestValidationError, so the handler in
main renders them exactly like FastAPI's own ("Invalid JSON" for
undecodable bodies, "Validation failed" for schema errors).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

M = TypeVar("M", bound=BaseModel)


def json_body(model: type[M]) -> Callable[[Request], Awaitable[M]]:
    """Dependency factory: validate the raw request body as model."""

    async def parse_body(request: Request) -> M:
        raw = await request.body()
        try:
            return model.model_validate_json(raw)
        except ValidationError as exc:
            raise RequestValidationError(
                [{**err, "loc": ("body", *err["loc"])} for err in exc.errors(include_url=False)]
            ) from exc

    return parse_body


def body_schema(model: type[BaseModel]) -> dict[str, Any]:
    """openapi_extra documenting a body that json_body() reads by hand."""
    return {
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {"schema": model.model_json_schema(by_alias=True)},
            },
        },
    }
