from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from agents.schemas import ConversationTurn, ResponseId

if TYPE_CHECKING:  # pragma: no cover
    from session.connection import FrameConnection
    from session.heartbeat import HeartbeatScheduler


class SessionState(str, Enum):
    ADMITTING = "admitting"
    ACTIVE = "active"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass(eq=False)
class Session:
    """Live binding of one call id to one open connection."""

    call_id: str
    conversation_id: str
    connection: FrameConnection
    conversation: list[ConversationTurn] = field(default_factory=list)
    greeting: str = ""
    system_prompt: str = ""
    interrupt_seq: int = 0
    heartbeat: HeartbeatScheduler | None = None
    greeting_task: asyncio.Task | None = None
    answered: set[str] = field(default_factory=set)

    def next_interrupt_id(self) -> int:
        interrupt_id = self.interrupt_seq
        self.interrupt_seq += 1
        return interrupt_id

    def claim_response(self, response_id: ResponseId) -> bool:
        """Reserve the terminal frame for ``response_id``; False if already sent."""

        if response_id is None:
            return True
        key = json.dumps(response_id, sort_keys=True)
        if key in self.answered:
            return False
        self.answered.add(key)
        return True

    def record_exchange(self, user_content: str, agent_content: str) -> None:
        self.conversation.append(ConversationTurn(role="user", content=user_content))
        self.conversation.append(ConversationTurn(role="agent", content=agent_content))
