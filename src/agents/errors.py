"""Domain-specific exceptions for relay operations.

These exceptions are safe to import from API layers without pulling in LLM clients.
"""

from __future__ import annotations


class AssistantError(Exception):
    status_code: int = 500
    default_detail: str = "Assistant error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class SessionRejectedError(AssistantError):
    """Errors that terminate a websocket session with a close code."""

    close_code: int = 1011
    close_reason: str = "Internal error"


class DuplicateConnectionError(SessionRejectedError):
    status_code = 409
    default_detail = "A session for this call is already active."
    close_code = 1008
    close_reason = "Duplicate connection"


class MalformedPayloadError(SessionRejectedError):
    status_code = 400
    default_detail = "Inbound payload is not a valid frame."
    close_code = 1002
    close_reason = "Invalid payload"


class LLMFailedError(AssistantError):
    status_code = 503
    default_detail = "LLM request failed."


class ToolArgumentParseError(AssistantError):
    status_code = 422
    default_detail = "Tool call arguments could not be parsed."


class ProvisioningFailedError(AssistantError):
    status_code = 500
    default_detail = "Failed to create call"
