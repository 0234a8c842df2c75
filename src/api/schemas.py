"""API-facing Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel


class CreateCallResponse(BaseModel):
    call_id: str
    access_token: str
