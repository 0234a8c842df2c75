"""OpenAI/Azure OpenAI client wrapper."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterable
from typing import Any

from openai import AsyncOpenAI, OpenAIError

from agents.errors import LLMFailedError
from config.settings import get_settings
from llm.base import BaseLLMClient, CompletionDelta, ToolCallDelta

LOGGER = logging.getLogger(__name__)


def delta_from_chunk(chunk: Any) -> CompletionDelta | None:
    """Convert an SDK ``ChatCompletionChunk`` into a CompletionDelta."""

    if not chunk.choices:
        return None
    delta = chunk.choices[0].delta
    if delta is None:
        return None

    tool_calls = [
        ToolCallDelta(
            index=call.index or 0,
            id=call.id,
            name=call.function.name if call.function else None,
            arguments=(call.function.arguments or "") if call.function else "",
        )
        for call in (delta.tool_calls or [])
    ]
    content = delta.content or None
    if content is None and not tool_calls:
        return None
    return CompletionDelta(content=content, tool_calls=tool_calls)


class OpenAIClient(BaseLLMClient):
    """Wrapper for OpenAI or Azure OpenAI Chat Completion API."""

    def __init__(self) -> None:
        settings = get_settings()
        if not settings.llm_api_key:
            raise ValueError("LLM API key must be configured for OpenAI client.")

        self._client = AsyncOpenAI(
            api_key=settings.llm_api_key,
            base_url=settings.llm_endpoint or None,
        )
        self._model = settings.llm_model

    async def stream_chat(
        self,
        messages: Iterable[dict[str, str]],
        *,
        tools: list[dict[str, Any]] | None = None,
        temperature: float = 0.7,
        max_tokens: int = 100,
    ) -> AsyncIterator[CompletionDelta]:
        kwargs: dict[str, Any] = {}
        if tools:
            kwargs["tools"] = tools

        try:
            stream = await self._client.chat.completions.create(
                model=self._model,
                messages=list(messages),
                temperature=temperature,
                max_tokens=max_tokens,
                stream=True,
                **kwargs,
            )
            async for chunk in stream:
                delta = delta_from_chunk(chunk)
                if delta is not None:
                    yield delta
        except OpenAIError as exc:
            LOGGER.warning("OpenAI stream failed: %s", exc)
            raise LLMFailedError(str(exc)) from exc
