"""Lifecycle of one LLM websocket connection."""

from __future__ import annotations

import asyncio
import logging

from fastapi import WebSocketDisconnect

from agents.errors import DuplicateConnectionError, MalformedPayloadError
from agents.greeting import render_greeting
from agents.responder import ResponseSynthesizer
from agents.schemas import (
    AgentInterruptFrame,
    ConfigFrame,
    ConfigOptions,
    InboundFrame,
    InteractionKind,
    ResponseFrame,
    parse_inbound_frame,
)
from agents.state_utils import build_system_prompt
from session.connection import FrameConnection
from session.heartbeat import HeartbeatScheduler
from session.options import SessionOptions
from session.registry import SessionRegistry
from session.state import Session, SessionState

LOGGER = logging.getLogger(__name__)

NORMAL_CLOSURE = 1000
INTERNAL_ERROR = 1011


class SessionController:
    """Owns admission, greeting, inbound dispatch, heartbeats and teardown.

    Inbound frames are read by one task. Pings are answered right away by the
    reader, turns are queued and drafted one at a time by a second task, so a
    slow model stream never delays liveness replies.
    """

    def __init__(
        self,
        connection: FrameConnection,
        *,
        registry: SessionRegistry,
        responder: ResponseSynthesizer,
        options: SessionOptions,
    ) -> None:
        self._connection = connection
        self._registry = registry
        self._responder = responder
        self._options = options
        self.state = SessionState.ADMITTING
        self.session: Session | None = None
        self._turns: asyncio.Queue[InboundFrame] = asyncio.Queue()
        self._reader: asyncio.Task | None = None
        self._worker: asyncio.Task | None = None
        self._closed = asyncio.Event()

    async def run(self, call_id: str, conversation_id: str | None = None) -> None:
        """Serve the connection until either side closes it."""

        if not await self.admit(call_id, conversation_id):
            return

        close_code = NORMAL_CLOSURE
        try:
            await self.activate()
            self._worker = asyncio.create_task(self._drain_turns(), name=f"turns:{call_id}")
            self._reader = asyncio.create_task(self._read_frames(), name=f"reader:{call_id}")
            done, _ = await asyncio.wait(
                {self._reader, self._worker}, return_when=asyncio.FIRST_COMPLETED
            )
            for task in done:
                if not task.cancelled() and task.exception() is not None:
                    LOGGER.error(
                        "Task %s for call %s crashed",
                        task.get_name(),
                        call_id,
                        exc_info=task.exception(),
                    )
                    close_code = INTERNAL_ERROR
        finally:
            await self.close(close_code)

    async def admit(self, call_id: str, conversation_id: str | None = None) -> bool:
        session = Session(
            call_id=call_id,
            conversation_id=conversation_id or call_id,
            connection=self._connection,
        )
        if await self._registry.admit(call_id, session):
            self.session = session
            self.state = SessionState.ACTIVE
            return True

        error = DuplicateConnectionError()
        LOGGER.warning("Rejecting connection for call %s: %s", call_id, error.detail)
        self.state = SessionState.CLOSING
        await self._connection.close(error.close_code, error.close_reason)
        self.state = SessionState.CLOSED
        self._closed.set()
        return False

    async def activate(self) -> None:
        """Send the config frame, schedule the greeting and start liveness timers."""

        session = self._require_session()
        opts = self._options
        session.greeting = render_greeting(opts.caller_name, opts.greeting_timezone)
        session.system_prompt = build_system_prompt(
            caller_name=opts.caller_name,
            persona=opts.persona,
            greeting=session.greeting,
        )

        await self._connection.send_frame(
            ConfigFrame(
                config=ConfigOptions(
                    auto_reconnect=opts.auto_reconnect,
                    call_details=opts.report_call_details,
                )
            )
        )
        session.greeting_task = asyncio.create_task(
            self._greet_after_delay(session), name=f"greeting:{session.call_id}"
        )
        session.heartbeat = HeartbeatScheduler(
            self._connection,
            heartbeat_interval=opts.heartbeat_interval,
            keepalive_interval=opts.keepalive_interval,
            label=session.call_id,
        )
        session.heartbeat.start()

    async def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None:
        """Tear the session down. Safe to call from any task, any number of times."""

        if self.state is SessionState.CLOSED:
            return
        if self.state is SessionState.CLOSING:
            await self._closed.wait()
            return

        self.state = SessionState.CLOSING
        session = self.session
        current = asyncio.current_task()
        pending = [
            task
            for task in (
                self._reader,
                self._worker,
                session.greeting_task if session else None,
            )
            if task is not None and task is not current and not task.done()
        ]
        for task in pending:
            task.cancel()

        # Release before the first real suspension: teardown may itself be cancelled.
        try:
            if session is not None:
                await self._registry.release(session.call_id, session)
            if session is not None and session.heartbeat is not None:
                await session.heartbeat.stop()
            await asyncio.gather(*pending, return_exceptions=True)
            await self._connection.close(code, reason)
        finally:
            self.session = None
            self.state = SessionState.CLOSED
            self._closed.set()

        if session is not None:
            LOGGER.info("Closed call %s (code=%s)", session.call_id, code)

    async def _greet_after_delay(self, session: Session) -> None:
        await asyncio.sleep(self._options.greeting_delay)
        if not self._connection.writable:
            return
        frame = AgentInterruptFrame(
            interrupt_id=session.next_interrupt_id(),
            content=session.greeting,
        )
        if await self._connection.send_frame(frame):
            LOGGER.info("Greeted call %s (interrupt %s)", session.call_id, frame.interrupt_id)

    async def _read_frames(self) -> None:
        while True:
            try:
                text = await self._connection.receive_text()
            except WebSocketDisconnect as exc:
                LOGGER.info("Peer disconnected from call %s (code=%s)", self._call_id, exc.code)
                return
            if text is None:
                continue

            try:
                frame = parse_inbound_frame(text)
            except MalformedPayloadError as exc:
                await self._reject_payload(exc)
                return
            await self._dispatch(frame)

    async def _dispatch(self, frame: InboundFrame) -> None:
        kind = frame.kind
        if kind is InteractionKind.PING:
            session = self._require_session()
            if session.heartbeat is not None:
                await session.heartbeat.send_ping()
        elif kind in {InteractionKind.CALL_DETAILS, InteractionKind.UPDATE_ONLY}:
            LOGGER.debug("No reply needed for %s on call %s", frame.interaction_type, self._call_id)
        else:
            self._turns.put_nowait(frame)

    async def _drain_turns(self) -> None:
        while True:
            frame = await self._turns.get()
            outcome = await self._responder.draft(frame, self._require_session())
            if outcome.end_call:
                LOGGER.info("Model ended call %s", self._call_id)
                await self.close(NORMAL_CLOSURE, "Call ended")
                return

    async def _reject_payload(self, exc: MalformedPayloadError) -> None:
        LOGGER.warning("Malformed payload on call %s: %s", self._call_id, exc.detail)
        await self._connection.send_frame(
            ResponseFrame(
                response_id=0,
                content=self._options.fallback_message,
                content_complete=True,
                end_call=False,
            )
        )
        await self.close(exc.close_code, exc.close_reason)

    @property
    def _call_id(self) -> str:
        return self.session.call_id if self.session else "<closed>"

    def _require_session(self) -> Session:
        if self.session is None:
            raise RuntimeError("Session is not active.")
        return self.session
