"""Streams model replies for one call turn back onto the websocket."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

from agents.errors import ToolArgumentParseError
from agents.schemas import (
    EndCallDirective,
    InboundFrame,
    InteractionKind,
    ResponseFrame,
    ResponseId,
    parse_end_call_arguments,
)
from agents.state_utils import build_llm_history
from config.settings import Settings
from llm.base import BaseLLMClient, ToolCallDelta
from session.state import Session

LOGGER = logging.getLogger(__name__)

END_CALL_TOOL_NAME = "end_call"

END_CALL_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": END_CALL_TOOL_NAME,
        "description": "End the call when the user clearly indicates they are done.",
        "parameters": {
            "type": "object",
            "properties": {
                "message": {
                    "type": "string",
                    "description": "Goodbye message to say before ending the call.",
                }
            },
            "required": ["message"],
        },
    },
}

RelayMode = Literal["buffered", "incremental"]


class TurnStatus(str, Enum):
    SKIPPED = "skipped"
    REPLIED = "replied"
    ENDED = "ended"
    FAILED = "failed"


@dataclass(slots=True)
class TurnOutcome:
    status: TurnStatus
    content: str = ""

    @property
    def end_call(self) -> bool:
        return self.status is TurnStatus.ENDED


@dataclass(slots=True)
class ToolCallAccumulator:
    """Reassembles one tool call whose arguments arrive in fragments."""

    name: str | None = None
    call_id: str | None = None
    arguments: str = ""

    def feed(self, delta: ToolCallDelta) -> None:
        if self.name is None and delta.name:
            self.name = delta.name
            self.call_id = delta.id
        self.arguments += delta.arguments


class ResponseSynthesizer:
    """Drives one streaming completion per user turn."""

    def __init__(
        self,
        llm_client: BaseLLMClient,
        *,
        relay_mode: RelayMode = "buffered",
        temperature: float = 0.7,
        max_tokens: int = 100,
        apology_message: str = "Sorry, I lost you for a second. Could you say that again?",
        reminder_nudge: str = "(User silent, nudge them:)",
    ) -> None:
        self._llm = llm_client
        self._relay_mode = relay_mode
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._apology_message = apology_message
        self._reminder_nudge = reminder_nudge

    @classmethod
    def from_settings(cls, llm_client: BaseLLMClient, settings: Settings) -> ResponseSynthesizer:
        return cls(
            llm_client,
            relay_mode=settings.response_relay_mode,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            apology_message=settings.apology_message.format(caller_name=settings.caller_name),
            reminder_nudge=settings.reminder_nudge,
        )

    async def draft(self, frame: InboundFrame, session: Session) -> TurnOutcome:
        if not frame.needs_reply:
            return TurnOutcome(TurnStatus.SKIPPED)
        if not session.claim_response(frame.response_id):
            LOGGER.warning(
                "Ignoring repeated response_id %s on call %s", frame.response_id, session.call_id
            )
            return TurnOutcome(TurnStatus.SKIPPED)

        nudge = self._reminder_nudge if frame.kind is InteractionKind.REMINDER_REQUIRED else None
        messages = build_llm_history(session.system_prompt, frame.transcript, reminder_nudge=nudge)

        parts: list[str] = []
        tool_calls: dict[int, ToolCallAccumulator] = {}
        try:
            async for delta in self._llm.stream_chat(
                messages,
                tools=[END_CALL_TOOL],
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            ):
                for call in delta.tool_calls:
                    tool_calls.setdefault(call.index, ToolCallAccumulator()).feed(call)
                if delta.content:
                    parts.append(delta.content)
                    if self._relay_mode == "incremental":
                        await self._send(session, frame.response_id, delta.content, complete=False)
        except Exception as exc:
            LOGGER.exception(
                "Response %s for call %s failed: %s", frame.response_id, session.call_id, exc
            )
            await self._send(session, frame.response_id, self._apology_message, complete=True)
            return TurnOutcome(TurnStatus.FAILED, content=self._apology_message)

        directive = self._end_call_directive(tool_calls, session)
        if directive is not None:
            await self._send(
                session,
                frame.response_id,
                directive.farewell_message,
                complete=True,
                end_call=True,
            )
            return TurnOutcome(TurnStatus.ENDED, content=directive.farewell_message)

        content = "".join(parts)
        terminal = content if self._relay_mode == "buffered" else ""
        session.record_exchange(frame.last_user_content(), content)
        await self._send(session, frame.response_id, terminal, complete=True)
        return TurnOutcome(TurnStatus.REPLIED, content=content)

    def _end_call_directive(
        self, tool_calls: dict[int, ToolCallAccumulator], session: Session
    ) -> EndCallDirective | None:
        for call in tool_calls.values():
            if call.name != END_CALL_TOOL_NAME:
                LOGGER.debug("Ignoring unknown tool %s on call %s", call.name, session.call_id)
                continue
            try:
                return parse_end_call_arguments(call.arguments)
            except ToolArgumentParseError as exc:
                LOGGER.warning(
                    "Treating end_call on call %s as a plain reply: %s", session.call_id, exc.detail
                )
                return None
        return None

    @staticmethod
    async def _send(
        session: Session,
        response_id: ResponseId,
        content: str,
        *,
        complete: bool,
        end_call: bool = False,
    ) -> None:
        await session.connection.send_frame(
            ResponseFrame(
                response_id=response_id,
                content=content,
                content_complete=complete,
                end_call=end_call,
            )
        )
