from __future__ import annotations

import sys
from collections.abc import AsyncIterator, Iterable
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from agents.errors import LLMFailedError  # noqa: E402
from llm.base import BaseLLMClient, CompletionDelta, ToolCallDelta  # noqa: E402


class ScriptedLLM(BaseLLMClient):
    """Replays canned delta sequences, one script per call."""

    def __init__(self, *scripts: list[CompletionDelta | Exception]) -> None:
        self._scripts = list(scripts)
        self.requests: list[dict[str, Any]] = []

    async def stream_chat(
        self,
        messages: Iterable[dict[str, str]],
        *,
        tools: list[dict[str, Any]] | None = None,
        temperature: float = 0.7,
        max_tokens: int = 100,
    ) -> AsyncIterator[CompletionDelta]:
        self.requests.append(
            {
                "messages": list(messages),
                "tools": tools,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        script = self._scripts.pop(0) if self._scripts else []
        for step in script:
            if isinstance(step, Exception):
                raise step
            yield step


def text(*chunks: str) -> list[CompletionDelta]:
    return [CompletionDelta(content=chunk) for chunk in chunks]


def end_call(*argument_fragments: str, call_id: str = "call_1") -> list[CompletionDelta]:
    deltas = [
        CompletionDelta(tool_calls=[ToolCallDelta(index=0, id=call_id, name="end_call", arguments="")])
    ]
    deltas.extend(
        CompletionDelta(tool_calls=[ToolCallDelta(index=0, arguments=fragment)])
        for fragment in argument_fragments
    )
    return deltas


def backend_failure(after: list[CompletionDelta] | None = None) -> list[CompletionDelta | Exception]:
    return [*(after or []), LLMFailedError("connection reset by peer")]


class RecordingConnection:
    """In-memory FrameConnection used by unit tests."""

    def __init__(self, *, writable: bool = True) -> None:
        self.frames: list[dict[str, Any]] = []
        self.closed_with: tuple[int, str] | None = None
        self._writable = writable

    @property
    def writable(self) -> bool:
        return self._writable and self.closed_with is None

    def set_writable(self, value: bool) -> None:
        self._writable = value

    async def send_frame(self, frame) -> bool:
        if not self.writable:
            return False
        self.frames.append(frame.model_dump())
        return True

    async def receive_text(self) -> str | None:  # pragma: no cover - not used by unit tests
        raise NotImplementedError

    async def close(self, code: int, reason: str) -> None:
        if self.closed_with is None:
            self.closed_with = (code, reason)


@pytest.fixture(scope="session")
def app():
    import importlib

    main = importlib.import_module("main")
    return main.app


@pytest.fixture()
def fast_options():
    from session.options import SessionOptions

    return SessionOptions(
        caller_name="Todd",
        persona="Be concise.",
        greeting_timezone="UTC",
        greeting_delay=60.0,
        heartbeat_interval=60.0,
        keepalive_interval=60.0,
        fallback_message="Static? Try again, Todd!",
    )


@pytest.fixture()
def wire(app, fast_options):
    """Install fakes for the websocket dependencies; returns a configurator."""

    import api.dependencies as deps
    from agents.responder import ResponseSynthesizer

    def configure(llm: BaseLLMClient | None = None, options=None, **responder_kwargs):
        responder = ResponseSynthesizer(
            llm or ScriptedLLM(),
            apology_message="Sorry Todd, I lost you for a second.",
            **responder_kwargs,
        )
        app.dependency_overrides[deps.get_responder] = lambda: responder
        app.dependency_overrides[deps.get_session_options] = lambda: options or fast_options
        return responder

    configure()
    yield configure
    app.dependency_overrides.clear()


@pytest.fixture()
def client(app, wire):
    with TestClient(app) as test_client:
        yield test_client
