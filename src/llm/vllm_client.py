"""Client for self-hosted vLLM or TGI compatible inference endpoints."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Iterable
from typing import Any

import httpx

from agents.errors import LLMFailedError
from config.settings import get_settings
from llm.base import BaseLLMClient, CompletionDelta, ToolCallDelta

LOGGER = logging.getLogger(__name__)

SSE_DONE = "[DONE]"


def sse_data(line: str) -> str | None:
    """Return the payload of an SSE ``data:`` line, or None for other lines."""

    line = line.strip()
    if not line.startswith("data:"):
        return None
    return line[len("data:") :].strip()


def delta_from_payload(payload: dict[str, Any]) -> CompletionDelta | None:
    choices = payload.get("choices") or []
    if not choices:
        return None
    delta = choices[0].get("delta") or {}

    tool_calls: list[ToolCallDelta] = []
    for call in delta.get("tool_calls") or []:
        function = call.get("function") or {}
        tool_calls.append(
            ToolCallDelta(
                index=int(call.get("index") or 0),
                id=call.get("id"),
                name=function.get("name"),
                arguments=function.get("arguments") or "",
            )
        )

    content = delta.get("content") or None
    if content is None and not tool_calls:
        return None
    return CompletionDelta(content=content, tool_calls=tool_calls)


class VLLMClient(BaseLLMClient):
    """Minimal streaming client for a self-hosted inference server."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        settings = get_settings()
        if not settings.llm_endpoint:
            raise ValueError("Self-hosted LLM endpoint must be configured.")

        self._endpoint = settings.llm_endpoint.rstrip("/")
        self._model = settings.llm_model
        self._api_key = settings.llm_api_key
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "text/event-stream"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def stream_chat(
        self,
        messages: Iterable[dict[str, str]],
        *,
        tools: list[dict[str, Any]] | None = None,
        temperature: float = 0.7,
        max_tokens: int = 100,
    ) -> AsyncIterator[CompletionDelta]:
        payload: dict[str, Any] = {
            "model": self._model,
            "messages": list(messages),
            "temperature": temperature,
            "max_tokens": max_tokens,
            "stream": True,
        }
        if tools:
            payload["tools"] = tools

        try:
            async with httpx.AsyncClient(timeout=90, transport=self._transport) as client:
                async with client.stream(
                    "POST",
                    f"{self._endpoint}/v1/chat/completions",
                    json=payload,
                    headers=self._headers(),
                ) as response:
                    response.raise_for_status()
                    async for line in response.aiter_lines():
                        data = sse_data(line)
                        if not data:
                            continue
                        if data == SSE_DONE:
                            break
                        chunk = json.loads(data)
                        if not isinstance(chunk, dict):
                            raise LLMFailedError("Malformed stream chunk: expected an object")
                        delta = delta_from_payload(chunk)
                        if delta is not None:
                            yield delta
        except httpx.HTTPError as exc:
            LOGGER.warning("Inference server request failed: %s", exc)
            raise LLMFailedError(str(exc)) from exc
        except json.JSONDecodeError as exc:
            raise LLMFailedError(f"Malformed stream chunk: {exc.msg}") from exc
