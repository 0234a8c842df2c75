"""Shared FastAPI dependencies.

Separated to avoid circular imports between route modules.
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

from fastapi import WebSocket

from config.settings import get_settings
from session.options import SessionOptions
from session.registry import SessionRegistry

if TYPE_CHECKING:  # pragma: no cover
    from agents.responder import ResponseSynthesizer


@lru_cache(maxsize=1)
def _responder_factory() -> ResponseSynthesizer:
    # Lazy import so the app starts without LLM credentials.
    from agents.responder import ResponseSynthesizer
    from llm.factory import build_llm_client

    return ResponseSynthesizer.from_settings(build_llm_client(), get_settings())


def get_responder() -> ResponseSynthesizer:
    return _responder_factory()


def get_session_options() -> SessionOptions:
    return SessionOptions.from_settings(get_settings())


def get_registry(websocket: WebSocket) -> SessionRegistry:
    return websocket.app.state.session_registry
