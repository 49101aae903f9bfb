"""
Coach chat helpers: prompt assembly and follow-up suggestions.

Follow-ups are deterministic: the first topic of a keyword map (in map order)
mentioned in either the user's message or the AI's answer. No extra AI call
is spent on them.
"""

from __future__ import annotations

from collections.abc import Sequence

from careercoach.schemas.coach import ConversationTurn

# Number of most recent history turns folded into the prompt.
_HISTORY_TURNS = 6

FOLLOW_UP_SUGGESTIONS: dict[str, list[str]] = {
    "interview": [
        "What are common technical interview questions?",
        "How to prepare for system design interviews?",
        "Practice behavioral interview questions",
    ],
    "salary": [
        "Research market salary rates",
        "Create a negotiation script",
        "Evaluate total compensation package",
    ],
    "transition": [
        "Create a transition roadmap",
        "Identify transferable skills",
        "Build portfolio projects",
    ],
    "resume": [
        "Optimize resume for ATS",
        "Add quantifiable achievements",
        "Improve resume structure",
    ],
    "skill": [
        "Create a learning plan",
        "Find online courses",
        "Build practice projects",
    ],
}

DEFAULT_FOLLOW_UPS = [
    "How can I improve my resume?",
    "Plan my career progression",
    "Prepare for interviews",
]


def generate_follow_up_suggestions(user_message: str, ai_response: str) -> list[str]:
    """Pick follow-up prompts for the first topic found in the exchange."""
    message = user_message.lower()
    response = ai_response.lower()

    for keyword, suggestions in FOLLOW_UP_SUGGESTIONS.items():
        if keyword in message or keyword in response:
            return list(suggestions)
    return list(DEFAULT_FOLLOW_UPS)


def build_coach_prompt(
    message: str,
    history: Sequence[ConversationTurn] | None = None,
) -> str:
    """The user's message, preceded by the tail of the conversation if any."""
    if not history:
        return message

    lines = []
    for turn in history[-_HISTORY_TURNS:]:
        speaker = "User" if turn.role == "user" else "Coach"
        lines.append(f"{speaker}: {turn.content}")

    return "Conversation so far:\n" + "\n".join(lines) + f"\n\nNew question: {message}"
