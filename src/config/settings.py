"""Application-wide configuration loading and validation."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    log_level: str = Field(default="INFO")

    # LLM connectivity
    llm_provider: Literal["openai", "self_hosted_vllm"] = Field(default="openai")
    llm_endpoint: str | None = Field(
        default=None,
        description="Base URL of the inference server (OpenAI-compatible).",
    )
    llm_api_key: str | None = Field(default=None)
    llm_model: str = Field(default="gpt-4o")
    llm_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    llm_max_tokens: int = Field(default=100, gt=0)

    # Response streaming
    response_relay_mode: Literal["buffered", "incremental"] = Field(
        default="buffered",
        description=(
            "buffered: one terminal frame with the full reply. "
            "incremental: relay each delta, terminal frame carries no text."
        ),
    )

    # Persona
    caller_name: str = Field(default="Todd")
    agent_persona: str = Field(
        default=(
            "As Todd's voice assistant, manage daily life and business. "
            "Be concise, friendly, proactive."
        ),
    )
    greeting_timezone: str = Field(default="America/Mexico_City")

    # Session timing (seconds)
    greeting_delay_seconds: float = Field(default=4.0, ge=0.0)
    heartbeat_interval_seconds: float = Field(default=5.0, gt=0.0)
    keepalive_interval_seconds: float = Field(default=10.0, gt=0.0)

    # Capabilities advertised in the config frame
    auto_reconnect: bool = Field(default=True)
    report_call_details: bool = Field(default=True)

    # Canned utterances
    fallback_message: str = Field(
        default="Static? Try again, {caller_name}!",
        description="Spoken when an inbound payload cannot be parsed.",
    )
    apology_message: str = Field(
        default="Sorry {caller_name}, I lost you for a second. Could you say that again?",
        description="Spoken when the model backend fails mid-turn.",
    )
    reminder_nudge: str = Field(default="(User silent, nudge them:)")

    # Retell (voice platform) web call provisioning
    retell_api_key: str | None = Field(default=None)
    retell_base_url: str = Field(default="https://api.retellai.com")
    retell_agent_id: str | None = Field(default=None)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
