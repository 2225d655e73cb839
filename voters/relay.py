"""
Backend relays: record update and messaging proxy.

Both relays are thin. The update relay validates the request and echoes it
back; no data store is connected, so nothing is persisted. The messaging
proxy attaches the provider credentials' API key header, forwards one text
message to the provider and translates the provider's answer into
``{success, message_id?, error?}``.

Each handler returns a ``RelayReply`` (HTTP status + JSON body) so the same
logic serves the HTTP endpoints and the in-process clients.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import requests

from utils.http import read_json
from utils.patterns import TEN_DIGITS
from utils.strings import as_text

logger = logging.getLogger(__name__)

SEND_FIELDS = ("phone_number", "message", "phone_number_id", "api_key")


@dataclass
class RelayReply:
    status_code: int
    body: dict[str, Any]

    @property
    def ok(self) -> bool:
        return self.status_code < 400


# ── Update relay ──────────────────────────────────────────────────────────────

def _update_error(status_code: int, message: str) -> RelayReply:
    return RelayReply(status_code, {"status": "error", "message": message})


def handle_update(data: Any) -> RelayReply:
    """Validate an update request and echo it back.

    Expected body: ``{voter_id, epic_id, mobile, address, house_number,
    serial_no}``; only ``epic_id`` is required. When ``address`` is absent
    the house number is used instead.
    """
    if not isinstance(data, dict) or not data:
        return _update_error(400, "Invalid JSON input")

    epic_id = as_text(data.get("epic_id"))
    if not epic_id:
        return _update_error(400, "Missing required field: epic_id")

    mobile = as_text(data.get("mobile"))
    if data.get("address") is not None:
        address = as_text(data.get("address"))
    else:
        address = as_text(data.get("house_number"))

    if mobile and not TEN_DIGITS.match(mobile):
        return _update_error(400, "Invalid mobile number format. Must be 10 digits or empty.")

    logger.info("update relay: epic_id=%s serial_no=%s (not persisted)",
                epic_id, as_text(data.get("serial_no")) or "-")
    return RelayReply(200, {
        "status": "success",
        "message": "Voter data update simulated (database not configured)",
        "data": {
            "epic_id": epic_id,
            "mobile": mobile,
            "address": address,
            "updated_at": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            "note": "No data store is connected; the update was not persisted",
        },
    })


# ── Messaging proxy ───────────────────────────────────────────────────────────

def provider_url(base_url: str, phone_number_id: str) -> str:
    return f"{base_url.rstrip('/')}/v3/{phone_number_id}/messages"


def _provider_error_text(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    err = data.get("error")
    if isinstance(err, dict):
        return err.get("message") or err.get("error_user_msg") or "WhatsApp API error"
    if err:
        return str(err)
    return None


def forward_message(
    data: Any,
    session: requests.Session,
    base_url: str,
    timeout: float = 120,
) -> RelayReply:
    """Forward one text message to the provider.

    Args:
        data: Request body ``{phone_number, message, phone_number_id, api_key}``.
        session: HTTP session used to reach the provider.
        base_url: Provider base URL.
        timeout: Seconds to wait for the provider.
    """
    if not isinstance(data, dict) or any(not as_text(data.get(k)) for k in SEND_FIELDS):
        return RelayReply(400, {
            "success": False,
            "error": "Missing required fields: " + ", ".join(SEND_FIELDS),
        })

    to = as_text(data["phone_number"])
    payload = {
        "messaging_product": "whatsapp",
        "to": to,
        "type": "text",
        "text": {"body": data["message"]},
    }
    url = provider_url(base_url, as_text(data["phone_number_id"]))

    try:
        resp = session.post(
            url,
            json=payload,
            headers={"Content-Type": "application/json", "apikey": as_text(data["api_key"])},
            timeout=timeout,
        )
        body = read_json(resp)
    except (requests.RequestException, ValueError) as exc:
        logger.warning("messaging proxy: provider call failed for %s: %s", to, exc)
        return RelayReply(500, {
            "success": False,
            "error": str(exc) or "Internal server error",
            "message": "Failed to send WhatsApp message",
        })

    error_text = _provider_error_text(body)
    if resp.status_code >= 400 or error_text:
        status = resp.status_code if resp.status_code >= 400 else 400
        error_text = error_text or "WhatsApp API error"
        logger.warning("messaging proxy: provider rejected message to %s (%d): %s",
                       to, resp.status_code, error_text)
        return RelayReply(status, {
            "success": False,
            "error": error_text,
            "message": error_text,
        })

    message_id = None
    messages = body.get("messages") if isinstance(body, dict) else None
    if isinstance(messages, list) and messages and isinstance(messages[0], dict):
        message_id = messages[0].get("id")

    logger.info("messaging proxy: sent to %s message_id=%s", to, message_id)
    return RelayReply(200, {
        "success": True,
        "message_id": message_id,
        "phone_number": to,
        "data": body,
    })
