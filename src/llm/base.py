"""Shared abstractions for language model clients."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class ToolCallDelta:
    """Fragment of a streamed tool invocation."""

    index: int = 0
    id: str | None = None
    name: str | None = None
    arguments: str = ""


@dataclass(slots=True)
class CompletionDelta:
    """One increment of a streamed chat completion."""

    content: str | None = None
    tool_calls: list[ToolCallDelta] = field(default_factory=list)


class BaseLLMClient(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    def stream_chat(
        self,
        messages: Iterable[dict[str, str]],
        *,
        tools: list[dict[str, Any]] | None = None,
        temperature: float = 0.7,
        max_tokens: int = 100,
    ) -> AsyncIterator[CompletionDelta]:
        """Yield completion deltas as they arrive.

        Implementations raise ``LLMFailedError`` for transport or stream defects.
        """
