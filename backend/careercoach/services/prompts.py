"""
Prompt templates shared by every AI provider and endpoint.

Providers never hard-code persona text; they call build_system_prompt()
so the coach behaves the same regardless of which backend answers.
"""

from __future__ import annotations

# ── Coach persona ───────────────────────────────────────────
COACH_PERSONA = """\
You are an expert AI Career Coach with deep knowledge of:
- Software engineering career paths and transitions
- Technical skill development and learning strategies
- Interview preparation (technical, behavioral, system design)
- Salary negotiation and compensation analysis
- Resume optimization and ATS best practices
- Portfolio development and personal branding
- Industry trends and emerging technologies\
"""

COACH_GUIDELINES = """\
Guidelines:
- Be encouraging but honest
- Provide specific, actionable recommendations
- Use examples and frameworks when helpful
- Keep responses concise but thorough (250-400 words)
- Format with markdown for readability\
"""


def build_system_prompt(context: str | None = None) -> str:
    """Merge the fixed persona with optional caller-supplied resume context."""
    sections = [COACH_PERSONA]
    if context:
        sections.append(
            "User's Resume Context:\n"
            f"{context}\n\n"
            "Use this information to provide personalized, actionable advice "
            "tailored to their specific background and goals."
        )
    sections.append(COACH_GUIDELINES)
    return "\n\n".join(sections)


def build_full_prompt(prompt: str, context: str | None = None) -> str:
    """Single-string prompt for backends without a separate system role."""
    return f"{build_system_prompt(context)}\n\nUser Question: {prompt}"


# ── Resume analysis ─────────────────────────────────────────
SUGGESTIONS_PROMPT = """\
Analyze this resume and provide 5-8 specific, actionable suggestions for improvement. Focus on:

1. **ATS Optimization**: Keywords, formatting, section structure
2. **Content Quality**: Achievement quantification, impact statements, clarity
3. **Completeness**: Missing sections, incomplete information
4. **Professional Branding**: Summary strength, skill positioning, links

For each suggestion, provide:
- A clear, actionable title (5-7 words)
- A detailed description with specific examples or guidance
- Impact level (high/medium/low) based on potential improvement to ATS score and recruiter appeal
- Type (improvement/keyword/format/content)

Format your response as a JSON array of suggestion objects. Each suggestion must have:
{{
  "type": "improvement" | "keyword" | "format" | "content",
  "title": "Clear actionable title",
  "description": "Detailed guidance with examples",
  "impact": "high" | "medium" | "low",
  "keywords": ["optional", "array", "of", "keywords"]
}}
Only include "keywords" for suggestions of type "keyword".

Resume Context:
{resume_context}\
"""


def build_suggestions_prompt(resume_context: str) -> str:
    return SUGGESTIONS_PROMPT.format(resume_context=resume_context)
