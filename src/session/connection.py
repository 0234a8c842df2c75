"""Transport adapter between the session engine and a Starlette websocket."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from agents.schemas import OutboundFrame

LOGGER = logging.getLogger(__name__)


class FrameConnection(Protocol):
    """What the session engine needs from a transport."""

    @property
    def writable(self) -> bool:  # pragma: no cover - protocol stub
        ...

    async def send_frame(self, frame: OutboundFrame) -> bool:  # pragma: no cover - protocol stub
        ...

    async def receive_text(self) -> str | None:  # pragma: no cover - protocol stub
        ...

    async def close(self, code: int, reason: str) -> None:  # pragma: no cover - protocol stub
        ...


class WebSocketConnection:
    """Best-effort, at-most-once frame delivery over an accepted websocket."""

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        self._send_lock = asyncio.Lock()
        self._closing = False

    @property
    def writable(self) -> bool:
        return (
            not self._closing
            and self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_frame(self, frame: OutboundFrame) -> bool:
        """Serialize and send one frame. Returns False if it could not be written."""

        if not self.writable:
            return False
        async with self._send_lock:
            try:
                await self._websocket.send_text(frame.model_dump_json())
            except (RuntimeError, WebSocketDisconnect) as exc:
                LOGGER.debug("Dropping %s frame: %s", type(frame).__name__, exc)
                return False
        return True

    async def receive_text(self) -> str | None:
        """Return the next text message, None for binary messages.

        Raises WebSocketDisconnect once the peer has gone away.
        """

        message = await self._websocket.receive()
        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(code=message.get("code", 1000), reason=message.get("reason"))
        return message.get("text")

    async def close(self, code: int, reason: str) -> None:
        if self._closing:
            return
        self._closing = True
        if (
            self._websocket.client_state != WebSocketState.CONNECTED
            or self._websocket.application_state != WebSocketState.CONNECTED
        ):
            return
        async with self._send_lock:
            try:
                await self._websocket.close(code=code, reason=reason)
            except RuntimeError as exc:
                LOGGER.debug("Websocket already closed: %s", exc)
