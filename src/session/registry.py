"""In-memory registry of live call sessions."""

from __future__ import annotations

import asyncio
import logging

from agents.schemas import ConversationTurn
from session.state import Session

LOGGER = logging.getLogger(__name__)


class SessionRegistry:
    """Admits at most one session per call id.

    Note: This is a single-process registry. For multi-worker deployments the
    duplicate check needs a shared store.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._sessions: dict[str, Session] = {}
        self._conversations: dict[str, list[ConversationTurn]] = {}

    async def admit(self, call_id: str, session: Session) -> bool:
        async with self._lock:
            if call_id in self._sessions:
                return False
            self._sessions[call_id] = session
            session.conversation = self._conversations.setdefault(session.conversation_id, [])
        LOGGER.info(
            "Admitted call %s (conversation %s, %d live)",
            call_id,
            session.conversation_id,
            len(self._sessions),
        )
        return True

    async def release(self, call_id: str, session: Session | None = None) -> None:
        """Forget ``call_id``. Releasing twice, or on behalf of a rejected duplicate, is a no-op."""

        async with self._lock:
            current = self._sessions.get(call_id)
            if current is None or (session is not None and current is not session):
                return
            del self._sessions[call_id]
            if not any(
                live.conversation_id == current.conversation_id for live in self._sessions.values()
            ):
                self._conversations.pop(current.conversation_id, None)
        LOGGER.info("Released call %s (%d live)", call_id, len(self._sessions))

    def get(self, call_id: str) -> Session | None:
        return self._sessions.get(call_id)

    def is_active(self, call_id: str) -> bool:
        return call_id in self._sessions

    def conversation(self, conversation_id: str) -> list[ConversationTurn]:
        return list(self._conversations.get(conversation_id, []))

    def __len__(self) -> int:
        return len(self._sessions)
