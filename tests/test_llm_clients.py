from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace

import httpx
import pytest

from agents.errors import LLMFailedError
from config.settings import get_settings
from llm.base import CompletionDelta, ToolCallDelta
from llm.openai_client import delta_from_chunk
from llm.vllm_client import VLLMClient, delta_from_payload, sse_data


def _chunk(content=None, tool_calls=None):
    delta = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta)])


def _tool_call(index=0, call_id=None, name=None, arguments=None):
    return SimpleNamespace(
        index=index,
        id=call_id,
        function=SimpleNamespace(name=name, arguments=arguments),
    )


def test_openai_chunk_with_content():
    assert delta_from_chunk(_chunk(content="Hi")) == CompletionDelta(content="Hi")


def test_openai_chunk_with_tool_call_fragment():
    delta = delta_from_chunk(
        _chunk(tool_calls=[_tool_call(call_id="call_1", name="end_call", arguments='{"mes')])
    )
    assert delta == CompletionDelta(
        tool_calls=[ToolCallDelta(index=0, id="call_1", name="end_call", arguments='{"mes')]
    )


def test_openai_chunk_without_payload_is_dropped():
    assert delta_from_chunk(_chunk()) is None
    assert delta_from_chunk(_chunk(content="")) is None
    assert delta_from_chunk(SimpleNamespace(choices=[])) is None


def test_sse_data_extracts_payload_lines_only():
    assert sse_data('data: {"a": 1}') == '{"a": 1}'
    assert sse_data("data:[DONE]") == "[DONE]"
    assert sse_data(": keep-alive comment") is None
    assert sse_data("") is None


def test_delta_from_payload_reads_content_and_tool_calls():
    payload = {
        "choices": [
            {
                "delta": {
                    "content": None,
                    "tool_calls": [
                        {"index": 0, "id": "c1", "function": {"name": "end_call", "arguments": ""}}
                    ],
                }
            }
        ]
    }
    assert delta_from_payload(payload) == CompletionDelta(
        tool_calls=[ToolCallDelta(index=0, id="c1", name="end_call", arguments="")]
    )
    assert delta_from_payload({"choices": [{"delta": {"role": "assistant"}}]}) is None
    assert delta_from_payload({"choices": []}) is None


@pytest.fixture()
def vllm_settings(monkeypatch):
    monkeypatch.setenv("LLM_ENDPOINT", "http://inference.test/")
    monkeypatch.setenv("LLM_MODEL", "test-model")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _sse(*payloads) -> bytes:
    lines = [f"data: {json.dumps(p) if not isinstance(p, str) else p}\n\n" for p in payloads]
    return "".join(lines).encode()


def _collect(client: VLLMClient) -> list[CompletionDelta]:
    async def scenario():
        return [
            delta
            async for delta in client.stream_chat(
                [{"role": "user", "content": "hi"}],
                tools=[{"type": "function", "function": {"name": "end_call"}}],
                temperature=0.5,
                max_tokens=50,
            )
        ]

    return asyncio.run(scenario())


def test_vllm_client_streams_deltas_until_done(vllm_settings):
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.read())
        body = _sse(
            {"choices": [{"delta": {"role": "assistant"}}]},
            {"choices": [{"delta": {"content": "Hi"}}]},
            {"choices": [{"delta": {"content": " there"}}]},
            "[DONE]",
            {"choices": [{"delta": {"content": "ignored"}}]},
        )
        return httpx.Response(200, content=body, headers={"content-type": "text/event-stream"})

    deltas = _collect(VLLMClient(transport=httpx.MockTransport(handler)))

    assert [delta.content for delta in deltas] == ["Hi", " there"]
    assert seen["url"] == "http://inference.test/v1/chat/completions"
    assert seen["body"]["stream"] is True
    assert seen["body"]["model"] == "test-model"
    assert seen["body"]["max_tokens"] == 50
    assert seen["body"]["tools"][0]["function"]["name"] == "end_call"


def test_vllm_client_maps_http_errors(vllm_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="overloaded")

    with pytest.raises(LLMFailedError):
        _collect(VLLMClient(transport=httpx.MockTransport(handler)))


def test_vllm_client_maps_malformed_chunks(vllm_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b'data: {"choices": [\n\n')

    with pytest.raises(LLMFailedError):
        _collect(VLLMClient(transport=httpx.MockTransport(handler)))


def test_vllm_client_requires_endpoint(monkeypatch):
    monkeypatch.delenv("LLM_ENDPOINT", raising=False)
    get_settings.cache_clear()
    try:
        with pytest.raises(ValueError):
            VLLMClient()
    finally:
        get_settings.cache_clear()
