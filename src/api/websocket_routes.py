"""LLM websocket endpoint the voice platform connects to once per call."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, WebSocket

from agents.responder import ResponseSynthesizer
from api.dependencies import get_registry, get_responder, get_session_options
from session.connection import WebSocketConnection
from session.controller import SessionController
from session.options import SessionOptions
from session.registry import SessionRegistry

LOGGER = logging.getLogger(__name__)

router = APIRouter(tags=["llm-websocket"])


@router.websocket("/llm-websocket/{call_id}")
async def llm_websocket(
    websocket: WebSocket,
    call_id: str,
    registry: SessionRegistry = Depends(get_registry),
    responder: ResponseSynthesizer = Depends(get_responder),
    options: SessionOptions = Depends(get_session_options),
) -> None:
    await websocket.accept()
    controller = SessionController(
        WebSocketConnection(websocket),
        registry=registry,
        responder=responder,
        options=options,
    )
    # session_id lets several call legs share one transcript.
    await controller.run(call_id, conversation_id=websocket.query_params.get("session_id"))
