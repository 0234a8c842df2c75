"""HTTP routes: liveness and outbound web call provisioning."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from agents.errors import ProvisioningFailedError
from api.schemas import CreateCallResponse
from integrations.retell_client import RetellClient, build_retell_client

LOGGER = logging.getLogger(__name__)

router = APIRouter()


def get_retell_client() -> RetellClient:
    return build_retell_client()


@router.get("/", response_class=PlainTextResponse)
async def index() -> str:
    return "LLM WebSocket Server Running"


@router.get("/create-call", response_model=CreateCallResponse)
async def create_call(
    retell_client: RetellClient = Depends(get_retell_client),
) -> CreateCallResponse:
    try:
        call = await retell_client.create_web_call()
    except ProvisioningFailedError as exc:
        LOGGER.error("Web call creation failed: %s", exc.detail)
        raise HTTPException(status_code=exc.status_code, detail=exc.default_detail) from exc

    return CreateCallResponse(call_id=call.call_id, access_token=call.access_token)
