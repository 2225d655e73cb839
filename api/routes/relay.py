"""
Backend relay endpoints.

POST /api/v1/relay/update          validate and echo a record update
POST /api/v1/relay/whatsapp-send   forward one text message to the provider

These keep the historical wire format used by the browser UI and by any
deployment that points UPDATE_RELAY_URL / MESSAGING_PROXY_URL at another
instance of this service. Bodies are read raw so that malformed JSON is
answered in the relay's own envelope instead of FastAPI's 422.
"""

import json
import logging

import requests
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from api.deps import get_config, get_session
from api.models import UpdateRelayIn, WhatsAppSendIn, WhatsAppSendOut
from utils.config import AppConfig
from voters.relay import forward_message, handle_update

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/relay", tags=["relay"])


async def _read_body(request: Request):
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


@router.post(
    "/update",
    summary="Update relay",
    openapi_extra={"requestBody": {"content": {"application/json": {
        "schema": UpdateRelayIn.model_json_schema()}}}},
    responses={400: {"description": "Invalid JSON, missing epic_id or bad mobile number"}},
)
async def relay_update(request: Request) -> JSONResponse:
    """Validate an update request and echo it back; nothing is persisted."""
    reply = handle_update(await _read_body(request))
    return JSONResponse(status_code=reply.status_code, content=reply.body)


@router.post(
    "/whatsapp-send",
    summary="Messaging proxy",
    response_model=WhatsAppSendOut,
    openapi_extra={"requestBody": {"content": {"application/json": {
        "schema": WhatsAppSendIn.model_json_schema()}}}},
    responses={
        400: {"description": "Missing fields, or the provider rejected the message"},
        500: {"description": "The provider could not be reached"},
    },
)
async def relay_whatsapp_send(
    request: Request,
    session: requests.Session = Depends(get_session),
    cfg: AppConfig = Depends(get_config),
) -> JSONResponse:
    """Forward ``{phone_number, message, phone_number_id, api_key}`` to the provider."""
    data = await _read_body(request)
    reply = await run_in_threadpool(
        forward_message, data, session, cfg.whatsapp_api_base, cfg.provider_timeout,
    )
    return JSONResponse(status_code=reply.status_code, content=reply.body)
