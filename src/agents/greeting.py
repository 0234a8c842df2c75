"""Time-of-day greeting spoken when a call opens."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo


def part_of_day(hour: int) -> str:
    if hour < 12:
        return "Morning"
    if hour < 17:
        return "Afternoon"
    return "Evening"


def render_greeting(caller_name: str, timezone: str, now: datetime | None = None) -> str:
    """Return e.g. ``"Good Morning, Todd!"`` for the wall clock in ``timezone``."""

    zone = ZoneInfo(timezone)
    local = now.astimezone(zone) if now is not None else datetime.now(zone)
    return f"Good {part_of_day(local.hour)}, {caller_name}!"
