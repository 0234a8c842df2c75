"""Web call provisioning against the Retell voice platform."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from agents.errors import ProvisioningFailedError
from config.settings import get_settings

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetellConfig:
    api_key: str | None
    agent_id: str | None
    base_url: str = "https://api.retellai.com"


@dataclass(frozen=True)
class WebCall:
    call_id: str
    access_token: str


def get_retell_config() -> RetellConfig:
    settings = get_settings()
    return RetellConfig(
        api_key=settings.retell_api_key,
        agent_id=settings.retell_agent_id,
        base_url=settings.retell_base_url.rstrip("/"),
    )


class RetellClient:
    """Thin HTTP client for the Retell call API."""

    def __init__(
        self,
        config: RetellConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    async def create_web_call(self) -> WebCall:
        if not self._config.api_key or not self._config.agent_id:
            raise ProvisioningFailedError("Retell API key or agent id is not configured.")

        headers = {
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=30, transport=self._transport) as client:
                response = await client.post(
                    f"{self._config.base_url}/v2/create-web-call",
                    json={"agent_id": self._config.agent_id},
                    headers=headers,
                )
            response.raise_for_status()
            data = response.json()
            return WebCall(call_id=str(data["call_id"]), access_token=str(data["access_token"]))
        except httpx.HTTPError as exc:
            LOGGER.error("Retell web call creation failed: %s", exc)
            raise ProvisioningFailedError(str(exc)) from exc
        except (KeyError, TypeError, ValueError) as exc:
            LOGGER.error("Retell returned an unexpected body: %s", exc)
            raise ProvisioningFailedError("Unexpected response from Retell.") from exc


def build_retell_client() -> RetellClient:
    return RetellClient(get_retell_config())
