"""Pydantic schemas for the LLM websocket protocol."""

from __future__ import annotations

import json
from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field, JsonValue, ValidationError, field_validator

from agents.errors import MalformedPayloadError, ToolArgumentParseError

# Echoed back verbatim, whatever JSON value the platform chose.
ResponseId = JsonValue


class InteractionKind(str, Enum):
    PING = "ping_pong"
    CALL_DETAILS = "call_details"
    UPDATE_ONLY = "update_only"
    REMINDER_REQUIRED = "reminder_required"
    USER_TURN = "response_required"


class ConversationTurn(BaseModel):
    """One utterance of the call transcript."""

    model_config = ConfigDict(extra="ignore")

    role: str
    content: str = ""


class InboundFrame(BaseModel):
    """Frame sent by the voice platform."""

    model_config = ConfigDict(extra="ignore")

    interaction_type: str
    response_id: ResponseId = None
    transcript: list[ConversationTurn] = Field(default_factory=list)

    @field_validator("transcript", mode="before")
    @classmethod
    def transcript_may_be_null(cls, value):
        return [] if value is None else value

    @property
    def kind(self) -> InteractionKind:
        try:
            return InteractionKind(self.interaction_type)
        except ValueError:
            # Anything the platform invents later is still a request for a reply.
            return InteractionKind.USER_TURN

    @property
    def needs_reply(self) -> bool:
        return self.kind in {InteractionKind.USER_TURN, InteractionKind.REMINDER_REQUIRED}

    def last_user_content(self) -> str:
        for turn in reversed(self.transcript):
            if turn.role != "agent":
                return turn.content
        return ""


def parse_inbound_frame(text: str) -> InboundFrame:
    """Decode a websocket text message, raising MalformedPayloadError on any defect."""

    try:
        return InboundFrame.model_validate_json(text)
    except ValidationError as exc:
        raise MalformedPayloadError(f"Inbound frame rejected: {exc.error_count()} error(s)") from exc


class ConfigOptions(BaseModel):
    auto_reconnect: bool
    call_details: bool


class ConfigFrame(BaseModel):
    response_type: Literal["config"] = "config"
    config: ConfigOptions


class AgentInterruptFrame(BaseModel):
    response_type: Literal["agent_interrupt"] = "agent_interrupt"
    interrupt_id: int
    content: str
    content_complete: bool = True
    no_interruption_allowed: bool = True
    end_call: bool = False


class ResponseFrame(BaseModel):
    response_type: Literal["response"] = "response"
    response_id: ResponseId
    content: str
    content_complete: bool
    end_call: bool = False


class PingPongFrame(BaseModel):
    type: Literal["ping_pong"] = "ping_pong"
    timestamp: int


class KeepAliveFrame(BaseModel):
    type: Literal["keep_alive"] = "keep_alive"
    timestamp: int


OutboundFrame = Union[
    ConfigFrame,
    AgentInterruptFrame,
    ResponseFrame,
    PingPongFrame,
    KeepAliveFrame,
]


class EndCallDirective(BaseModel):
    """Arguments of the model's ``end_call`` tool invocation."""

    farewell_message: str = Field(alias="message")

    @field_validator("farewell_message")
    @classmethod
    def farewell_not_empty(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("Farewell message may not be empty.")
        return text


def parse_end_call_arguments(arguments: str) -> EndCallDirective:
    """Parse accumulated ``end_call`` argument fragments."""

    try:
        payload = json.loads(arguments)
    except json.JSONDecodeError as exc:
        raise ToolArgumentParseError(f"end_call arguments are not JSON: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise ToolArgumentParseError("end_call arguments must be a JSON object.")
    try:
        return EndCallDirective.model_validate(payload)
    except ValidationError as exc:
        raise ToolArgumentParseError("end_call arguments do not match the tool schema.") from exc
