"""
Pydantic v2 schemas for the resume suggestions endpoint.

The Resume model mirrors the editor's document shape. Every section is
optional with an empty default: drafts are analysed as-is, and missing
sections are exactly what the rule-based suggestions look for.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator

from careercoach.schemas.common import CamelModel


# ── Resume document ─────────────────────────────────────────
class PersonalInfo(CamelModel):
    full_name: str = ""
    email: str = ""
    phone: str = ""
    title: str = ""
    location: str = ""
    linkedin: str | None = None
    website: str | None = None


class Experience(CamelModel):
    id: str | None = None
    company: str = ""
    position: str = ""
    start_date: str = ""
    end_date: str = ""
    description: str = ""
    achievements: list[str] = Field(default_factory=list)
    current: bool = False


class Education(CamelModel):
    id: str | None = None
    school: str = ""
    degree: str = ""
    field: str = ""
    start_date: str = ""
    end_date: str = ""
    gpa: str | None = None


class Project(CamelModel):
    id: str | None = None
    name: str = ""
    description: str = ""
    technologies: list[str] = Field(default_factory=list)
    url: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    highlights: list[str] = Field(default_factory=list)


class Certification(CamelModel):
    id: str | None = None
    name: str = ""
    issuer: str = ""
    date: str = ""
    credential_id: str | None = None
    verification_url: str | None = None


class Language(CamelModel):
    id: str | None = None
    language: str = ""
    proficiency: str = ""


class Link(CamelModel):
    id: str | None = None
    platform: str = ""
    url: str = ""


class Resume(CamelModel):
    id: str | None = None
    name: str | None = None
    template: str | None = None
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    summary: str = ""
    experience: list[Experience] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    projects: list[Project] | None = None
    certifications: list[Certification] | None = None
    languages: list[Language] | None = None
    links: list[Link] | None = None


class SuggestionRequest(CamelModel):
    """Payload accepted by POST /api/resume/suggestions."""

    resume: Resume | None = None


# ── Suggestions ─────────────────────────────────────────────
SuggestionType = Literal["improvement", "keyword", "format", "content"]
Impact = Literal["high", "medium", "low"]


class Suggestion(CamelModel):
    type: SuggestionType
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    impact: Impact
    keywords: list[str] | None = None

    @field_validator("type", "impact", mode="before")
    @classmethod
    def _normalize_enum(cls, value: object) -> object:
        # Models are inconsistent about casing ("High", " keyword").
        return value.strip().lower() if isinstance(value, str) else value


class SuggestionsResponse(CamelModel):
    suggestions: list[Suggestion]
    provider: str | None = None
    model: str | None = None
    cached: bool | None = None
    fallback: bool | None = None
    error: str | None = None
