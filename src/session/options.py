from __future__ import annotations

from dataclasses import dataclass

from config.settings import Settings


@dataclass(frozen=True, slots=True)
class SessionOptions:
    """Per-connection knobs, resolved once from Settings."""

    caller_name: str = "Todd"
    persona: str = ""
    greeting_timezone: str = "America/Mexico_City"
    greeting_delay: float = 4.0
    heartbeat_interval: float = 5.0
    keepalive_interval: float = 10.0
    auto_reconnect: bool = True
    report_call_details: bool = True
    fallback_message: str = "Static? Try again, Todd!"

    @classmethod
    def from_settings(cls, settings: Settings) -> SessionOptions:
        return cls(
            caller_name=settings.caller_name,
            persona=settings.agent_persona,
            greeting_timezone=settings.greeting_timezone,
            greeting_delay=settings.greeting_delay_seconds,
            heartbeat_interval=settings.heartbeat_interval_seconds,
            keepalive_interval=settings.keepalive_interval_seconds,
            auto_reconnect=settings.auto_reconnect,
            report_call_details=settings.report_call_details,
            fallback_message=settings.fallback_message.format(caller_name=settings.caller_name),
        )
