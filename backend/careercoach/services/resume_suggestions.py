"""
AI-powered resume suggestions with caching and a rule-based fallback.

Flow for one resume:
  1. Hash the canonical resume payload → cache lookup (hit returns early).
  2. Render the resume as plain-text context and ask the AI for a JSON
     array of suggestions, wrapped in the rate-limit backoff policy.
  3. Parse + validate the array; cache it on success.

Failure policy (the endpoint stays responsive even when AI is down):
  • AI call fails (after every retry/fallback) → rule-based suggestions,
    fallback=True, the error message attached.
  • AI answers but the output is not a valid suggestion array →
    rule-based suggestions, fallback=True, nothing cached.
"""

from __future__ import annotations

import json
import logging
import re

from pydantic import TypeAdapter

from careercoach.schemas.resume import Resume, Suggestion, SuggestionsResponse
from careercoach.services.ai_service import AIService
from careercoach.services.backoff import RateLimitBackoff
from careercoach.services.prompts import build_suggestions_prompt
from careercoach.services.suggestion_cache import SuggestionCache, payload_hash

logger = logging.getLogger(__name__)

_MAX_GENERIC_SUGGESTIONS = 6
_MIN_SUMMARY_LENGTH = 60
_MIN_SKILLS = 8

_CODE_FENCE = re.compile(r"```(?:json)?\n?([\s\S]*?)\n?```")
_QUANTIFIED = re.compile(r"\d+%|\d+\s?(people|users|customers|sales)|\b\d+\b")

_SUGGESTION_LIST = TypeAdapter(list[Suggestion])


def resume_cache_key(resume: Resume) -> str:
    return payload_hash(resume.model_dump(mode="json", by_alias=True))


# ── Prompt context ──────────────────────────────────────────
def build_resume_context(resume: Resume) -> str:
    """Plain-text rendering of every resume section for the AI prompt."""
    info = resume.personal_info
    sections = [
        "**Personal Information:**\n"
        f"- Name: {info.full_name}\n"
        f"- Title: {info.title or 'Not specified'}\n"
        f"- Contact: {info.email}, {info.phone}\n"
        f"- Location: {info.location or 'Not specified'}\n"
        f"- LinkedIn: {info.linkedin or 'Not provided'}\n"
        f"- Website: {info.website or 'Not provided'}",
        f"\n**Professional Summary:**\n{resume.summary or 'No summary provided'}",
        f"\n**Skills ({len(resume.skills)}):**\n{', '.join(resume.skills) or 'No skills listed'}",
        f"\n**Work Experience ({len(resume.experience)} roles):**",
    ]

    for idx, exp in enumerate(resume.experience, start=1):
        sections.append(
            f"{idx}. {exp.position} at {exp.company} "
            f"({exp.start_date} - {exp.end_date or 'Present'})\n"
            f"   - Description: {exp.description}\n"
            f"   - Achievements ({len(exp.achievements)}): "
            f"{'; '.join(exp.achievements) or 'None listed'}"
        )

    sections.append(f"\n**Education ({len(resume.education)}):**")
    for idx, edu in enumerate(resume.education, start=1):
        sections.append(
            f"{idx}. {edu.degree} in {edu.field} from {edu.school} "
            f"({edu.start_date} - {edu.end_date})\n"
            f"   - GPA: {edu.gpa or 'Not specified'}"
        )

    if resume.projects:
        sections.append(f"\n**Projects ({len(resume.projects)}):**")
        for idx, proj in enumerate(resume.projects, start=1):
            sections.append(
                f"{idx}. {proj.name}\n"
                f"   - Technologies: {', '.join(proj.technologies)}\n"
                f"   - Description: {proj.description}\n"
                f"   - Highlights: {'; '.join(proj.highlights)}"
            )
    else:
        sections.append("\n**Projects:** None listed")

    if resume.certifications:
        lines = "\n".join(
            f"- {cert.name} from {cert.issuer} ({cert.date})" for cert in resume.certifications
        )
        sections.append(f"\n**Certifications ({len(resume.certifications)}):**\n{lines}")
    else:
        sections.append("\n**Certifications:** None listed")

    if resume.languages:
        lines = "\n".join(f"- {lang.language} ({lang.proficiency})" for lang in resume.languages)
        sections.append(f"\n**Languages ({len(resume.languages)}):**\n{lines}")
    else:
        sections.append("\n**Languages:** None listed")

    if resume.links:
        lines = "\n".join(f"- {link.platform}: {link.url}" for link in resume.links)
        sections.append(f"\n**Professional Links ({len(resume.links)}):**\n{lines}")
    else:
        sections.append("\n**Professional Links:** None provided")

    return "\n".join(sections)


# ── AI output parsing ───────────────────────────────────────
def parse_ai_suggestions(content: str) -> list[Suggestion]:
    """
    Extract a suggestion list from raw model output.

    Accepts a bare JSON array, an array inside a ``` / ```json fence, or a
    single object (wrapped into a list).

    Raises:
        ValueError: unparseable JSON, schema mismatch, or an empty list.
    """
    match = _CODE_FENCE.search(content)
    raw = (match.group(1) if match else content).strip()

    data = json.loads(raw)
    if not isinstance(data, list):
        data = [data]

    suggestions = _SUGGESTION_LIST.validate_python(data)
    if not suggestions:
        raise ValueError("AI returned no suggestions")
    return suggestions


# ── Rule-based fallback ─────────────────────────────────────
def get_generic_suggestions(resume: Resume) -> list[Suggestion]:
    """Deterministic suggestions from simple completeness checks. Never empty."""
    suggestions: list[Suggestion] = []

    if len(resume.summary) < _MIN_SUMMARY_LENGTH:
        suggestions.append(Suggestion(
            type="content",
            title="Strengthen your professional summary",
            description=(
                "Write a compelling 2-3 sentence summary highlighting your expertise, "
                "years of experience, and unique value proposition. "
                "Aim for 100-150 characters."
            ),
            impact="high",
        ))

    has_quantified = any(
        _QUANTIFIED.search(achievement)
        for exp in resume.experience
        for achievement in exp.achievements
    )
    if not has_quantified:
        suggestions.append(Suggestion(
            type="improvement",
            title="Add quantifiable achievements",
            description=(
                "Include numbers, percentages, or metrics to demonstrate measurable impact "
                '(e.g., "Increased team efficiency by 40%", "Managed team of 12 engineers")'
            ),
            impact="high",
        ))

    if len(resume.skills) < _MIN_SKILLS:
        suggestions.append(Suggestion(
            type="keyword",
            title="Expand technical skills section",
            description=(
                "Add more relevant skills including frameworks, tools, and methodologies. "
                "Aim for 10-15 skills to improve ATS matching."
            ),
            impact="medium",
            keywords=["React", "TypeScript", "Node.js", "AWS", "Docker"],
        ))

    if not resume.projects:
        suggestions.append(Suggestion(
            type="content",
            title="Showcase your key projects",
            description=(
                "Add 2-3 significant projects that demonstrate your technical abilities and "
                "problem-solving skills. Include technologies used and measurable outcomes."
            ),
            impact="medium",
        ))

    if not resume.links:
        suggestions.append(Suggestion(
            type="improvement",
            title="Add professional profile links",
            description=(
                "Include your LinkedIn profile and GitHub portfolio to provide recruiters "
                "with additional context about your work and professional network."
            ),
            impact="medium",
        ))

    if not resume.certifications:
        suggestions.append(Suggestion(
            type="improvement",
            title="Consider adding certifications",
            description=(
                "Professional certifications from AWS, Google Cloud, Microsoft, or relevant "
                "industry bodies can significantly boost your credibility."
            ),
            impact="low",
        ))

    if not suggestions:
        suggestions.append(Suggestion(
            type="format",
            title="Tailor your resume to each role",
            description=(
                "Your resume covers the essentials. Mirror the wording of each job "
                "description in your summary and skills to improve ATS matching."
            ),
            impact="low",
        ))

    return suggestions[:_MAX_GENERIC_SUGGESTIONS]


# ── Orchestration ───────────────────────────────────────────
async def generate_resume_suggestions(
    resume: Resume,
    ai_service: AIService,
    cache: SuggestionCache,
    backoff: RateLimitBackoff,
) -> SuggestionsResponse:
    """Cached AI suggestions, degrading to the rule-based list on any failure."""
    key = resume_cache_key(resume)

    # ── 1. Cache ────────────────────────────────────────────
    entry = cache.get(key)
    if entry is not None:
        logger.info("Suggestion cache hit key=%s provider=%s", key, entry.provider)
        return SuggestionsResponse(
            suggestions=entry.suggestions,
            provider=entry.provider,
            cached=True,
        )

    # ── 2. AI generation ────────────────────────────────────
    prompt = build_suggestions_prompt(build_resume_context(resume))
    try:
        ai_response = await backoff.run(lambda: ai_service.generate_response(prompt))
    except Exception as exc:
        logger.exception("AI suggestion generation failed, using rule-based fallback")
        return SuggestionsResponse(
            suggestions=get_generic_suggestions(resume),
            fallback=True,
            error=str(exc),
        )

    # ── 3. Parse ────────────────────────────────────────────
    try:
        suggestions = parse_ai_suggestions(ai_response.content)
    except ValueError as exc:
        logger.warning(
            "Failed to parse AI suggestions provider=%s error=%s",
            ai_response.provider,
            exc,
        )
        return SuggestionsResponse(
            suggestions=get_generic_suggestions(resume),
            provider=ai_response.provider,
            fallback=True,
        )

    cache.put(key, [s.model_dump(exclude_none=True) for s in suggestions], ai_response.provider)
    return SuggestionsResponse(
        suggestions=suggestions,
        provider=ai_response.provider,
        model=ai_response.model,
        cached=False,
    )
