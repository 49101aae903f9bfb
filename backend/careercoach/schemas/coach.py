"""
Pydantic v2 schemas for the coach chat endpoint.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from careercoach.schemas.common import CamelModel


# ── Request ─────────────────────────────────────────────────
class ConversationTurn(CamelModel):
    role: Literal["user", "ai"]
    content: str


class CoachRequest(CamelModel):
    """Payload accepted by POST /api/coach."""

    message: str = Field(
        ...,
        min_length=1,
        max_length=2000,
        examples=["How should I prepare for a system design interview?"],
        description="The user's question for the coach.",
    )
    resume_context: str | None = Field(
        default=None,
        description="Optional plain-text summary of the user's resume.",
    )
    conversation_history: list[ConversationTurn] | None = Field(
        default=None,
        description="Earlier turns of this conversation, oldest first.",
    )


# ── Response ────────────────────────────────────────────────
class CoachMetadata(CamelModel):
    provider: str
    model: str
    tokens_used: int | None = None
    processing_time: int = Field(..., description="Server-side handling time in ms.")


class CoachResponse(CamelModel):
    response: str
    suggestions: list[str] = Field(
        default_factory=list,
        description="Follow-up prompts the UI can offer as quick replies.",
    )
    metadata: CoachMetadata
