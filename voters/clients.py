"""
Outbound clients for the update relay and the messaging proxy.

The edit controller and the bulk notifier only see the ``UpdateClient`` and
``MessagingClient`` protocols. Two implementations exist for each: an HTTP
one that calls a relay deployed elsewhere, and a local one that runs the
relay logic in-process (the default, since this service hosts both relays).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import requests

from utils.config import AppConfig
from utils.http import read_json
from voters import messages
from voters.exceptions import (
    ConfigurationError,
    MalformedResponse,
    RelayUnavailable,
    UpdateRejected,
)
from voters.records import VoterRecord
from voters.relay import forward_message, handle_update

logger = logging.getLogger(__name__)


# ── Update relay ──────────────────────────────────────────────────────────────

class UpdateClient(Protocol):
    def update(self, record: VoterRecord, mobile: str, address: str) -> dict[str, Any]:
        """Submit mobile and address for *record*; return the relay's data on success."""
        ...


def build_update_payload(record: VoterRecord, mobile: str, address: str) -> dict[str, Any]:
    """Wire format of an update request. Mobile and address always travel together."""
    return {
        "voter_id": record.id,
        "epic_id": record.voter_card_id,
        "mobile": mobile,
        "address": address,
        "house_number": address,
        "serial_no": record.serial_number,
    }


def _accept_update_body(body: Any) -> dict[str, Any]:
    if not isinstance(body, dict) or body.get("status") not in ("success", "error"):
        raise MalformedResponse("update relay returned an unexpected body",
                                messages.UPDATE_BAD_RESPONSE)
    if body["status"] != "success":
        detail = str(body.get("message") or "unknown error")
        raise UpdateRejected(f"update rejected: {detail}", messages.update_rejected(detail))
    return body.get("data") or {}


class HttpUpdateClient:
    """Posts updates to an update relay over HTTP."""

    def __init__(self, url: str, session: requests.Session, timeout: float = 15) -> None:
        self.url = url
        self.session = session
        self.timeout = timeout

    def update(self, record: VoterRecord, mobile: str, address: str) -> dict[str, Any]:
        payload = build_update_payload(record, mobile, address)
        try:
            resp = self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.Timeout as exc:
            raise RelayUnavailable(f"update relay timed out: {exc}",
                                   messages.UPDATE_TIMEOUT) from exc
        except requests.RequestException as exc:
            raise RelayUnavailable(f"update relay unreachable: {exc}",
                                   messages.UPDATE_NETWORK) from exc
        try:
            body = read_json(resp)
        except ValueError as exc:
            raise MalformedResponse(
                f"update relay returned HTTP {resp.status_code} with a non-JSON body: {exc}",
                messages.UPDATE_BAD_RESPONSE,
            ) from exc
        return _accept_update_body(body)


class LocalUpdateClient:
    """Runs the update relay in-process."""

    def update(self, record: VoterRecord, mobile: str, address: str) -> dict[str, Any]:
        reply = handle_update(build_update_payload(record, mobile, address))
        return _accept_update_body(reply.body)


# ── Messaging proxy ───────────────────────────────────────────────────────────

@dataclass
class SendResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


def interpret_send_response(data: Any) -> SendResult:
    """Decide whether a proxy answer means the message went out.

    An explicit ``success: true`` counts. Without an explicit flag, the
    provider's own markers (a non-empty ``contacts`` or ``messages`` list)
    also count. Everything else is a failure.
    """
    if not isinstance(data, dict):
        return SendResult(False, error="unexpected response from messaging proxy")

    if "success" in data:
        if data["success"] is True:
            return SendResult(True, message_id=data.get("message_id"))
        err = data.get("error") or data.get("message") or "send failed"
        if isinstance(err, dict):
            err = err.get("message") or "send failed"
        return SendResult(False, error=str(err))

    msgs = data.get("messages")
    contacts = data.get("contacts")
    if (isinstance(msgs, list) and msgs) or (isinstance(contacts, list) and contacts):
        message_id = None
        if isinstance(msgs, list) and msgs and isinstance(msgs[0], dict):
            message_id = msgs[0].get("id")
        return SendResult(True, message_id=message_id)

    err = data.get("error")
    if isinstance(err, dict):
        err = err.get("message")
    return SendResult(False, error=str(err) if err else "unexpected response schema")


class MessagingClient(Protocol):
    def send(self, phone_number: str, message: str) -> SendResult:
        ...


class HttpMessagingClient:
    """Sends through a messaging proxy deployed elsewhere."""

    def __init__(self, url: str, session: requests.Session, phone_number_id: str,
                 api_key: str, timeout: float = 30) -> None:
        self.url = url
        self.session = session
        self.phone_number_id = phone_number_id
        self.api_key = api_key
        self.timeout = timeout

    def send(self, phone_number: str, message: str) -> SendResult:
        payload = {
            "phone_number": phone_number,
            "message": message,
            "phone_number_id": self.phone_number_id,
            "api_key": self.api_key,
        }
        try:
            resp = self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RelayUnavailable(f"messaging proxy unreachable: {exc}") from exc
        try:
            body = read_json(resp)
        except ValueError as exc:
            raise MalformedResponse(
                f"messaging proxy returned HTTP {resp.status_code} with a non-JSON body: {exc}"
            ) from exc
        return interpret_send_response(body)


class LocalMessagingClient:
    """Runs the messaging proxy in-process."""

    def __init__(self, session: requests.Session, base_url: str, phone_number_id: str,
                 api_key: str, timeout: float = 120) -> None:
        self.session = session
        self.base_url = base_url
        self.phone_number_id = phone_number_id
        self.api_key = api_key
        self.timeout = timeout

    def send(self, phone_number: str, message: str) -> SendResult:
        reply = forward_message(
            {
                "phone_number": phone_number,
                "message": message,
                "phone_number_id": self.phone_number_id,
                "api_key": self.api_key,
            },
            session=self.session,
            base_url=self.base_url,
            timeout=self.timeout,
        )
        return interpret_send_response(reply.body)


# ── Factories ─────────────────────────────────────────────────────────────────

def build_update_client(cfg: AppConfig, session: requests.Session) -> UpdateClient:
    if cfg.update_relay_url:
        logger.info("using update relay at %s", cfg.update_relay_url)
        return HttpUpdateClient(cfg.update_relay_url, session, cfg.update_timeout)
    return LocalUpdateClient()


def build_messaging_client(cfg: AppConfig, session: requests.Session) -> MessagingClient:
    """Build the messaging client from configuration.

    Raises:
        ConfigurationError: if the provider line id or API key is missing.
    """
    if not cfg.has_provider_credentials:
        raise ConfigurationError(
            "WHATSAPP_PHONE_NUMBER_ID and WHATSAPP_API_KEY must be set to send messages",
            messages.SEND_NOT_CONFIGURED,
        )
    if cfg.messaging_proxy_url:
        return HttpMessagingClient(
            cfg.messaging_proxy_url, session,
            cfg.whatsapp_phone_number_id, cfg.whatsapp_api_key,
            timeout=cfg.messaging_timeout,
        )
    return LocalMessagingClient(
        session, cfg.whatsapp_api_base,
        cfg.whatsapp_phone_number_id, cfg.whatsapp_api_key,
        timeout=cfg.provider_timeout,
    )
