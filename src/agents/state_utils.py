from __future__ import annotations

from collections.abc import Iterable

from agents.schemas import ConversationTurn
from prompts.loader import render_prompt

SYSTEM_PROMPT_FILE = "agent_system.txt"


def role_for_speaker(speaker: str) -> str:
    if speaker == "agent":
        return "assistant"
    return "user"


def build_system_prompt(*, caller_name: str, persona: str, greeting: str) -> str:
    return render_prompt(
        SYSTEM_PROMPT_FILE,
        caller_name=caller_name,
        persona=persona,
        greeting=greeting,
    )


def build_llm_history(
    system_prompt: str,
    transcript: Iterable[ConversationTurn],
    *,
    reminder_nudge: str | None = None,
) -> list[dict[str, str]]:
    """Translate a platform transcript into chat-completion messages.

    The nudge for a silent caller always goes after the transcript.
    """

    history: list[dict[str, str]] = [{"role": "system", "content": system_prompt}]
    for turn in transcript:
        history.append({"role": role_for_speaker(turn.role), "content": turn.content})
    if reminder_nudge:
        history.append({"role": "user", "content": reminder_nudge})
    return history
