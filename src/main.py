"""Entry point for the voice call LLM relay service."""

from __future__ import annotations

import logging

from fastapi import FastAPI

from api.routes import router as api_router
from api.websocket_routes import router as websocket_router
from config.settings import get_settings
from session.registry import SessionRegistry

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("openai").setLevel(logging.WARNING)

app = FastAPI(
    title="Voice LLM Relay",
    description="Streams language-model replies into live voice calls over websockets.",
)
app.state.session_registry = SessionRegistry()
app.include_router(api_router)
app.include_router(websocket_router)
