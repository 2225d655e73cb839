"""
Tests for voters/relay.py and the /api/v1/relay endpoints — update relay
validation and the messaging proxy's provider translation.
"""
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from voters.relay import forward_message, handle_update, provider_url

SEND_BODY = {
    "phone_number": "919090385555",
    "message": "नमस्कार",
    "phone_number_id": "line-1",
    "api_key": "key-1",
}


def _provider(text, status_code=200, error=None):
    session = MagicMock()
    if error is not None:
        session.post.side_effect = error
    else:
        resp = MagicMock()
        resp.text = text
        resp.status_code = status_code
        session.post.return_value = resp
    return session


class TestHandleUpdate:
    @pytest.mark.parametrize("data", [None, {}, [], "x"])
    def test_invalid_input(self, data):
        reply = handle_update(data)
        assert reply.status_code == 400
        assert reply.body == {"status": "error", "message": "Invalid JSON input"}

    def test_missing_epic_id(self):
        reply = handle_update({"voter_id": 1, "mobile": "9876543210"})
        assert reply.status_code == 400
        assert reply.body["message"] == "Missing required field: epic_id"

    @pytest.mark.parametrize("mobile", ["12345", "98765432101", "98765-4321"])
    def test_bad_mobile(self, mobile):
        reply = handle_update({"epic_id": "ABC1", "mobile": mobile})
        assert reply.status_code == 400
        assert reply.body["status"] == "error"

    def test_success_echo(self):
        reply = handle_update({"epic_id": "ABC1", "mobile": "9876543210", "address": "12/B"})
        assert reply.ok
        assert reply.body["status"] == "success"
        assert reply.body["message"] == "Voter data update simulated (database not configured)"
        data = reply.body["data"]
        assert data["epic_id"] == "ABC1"
        assert data["mobile"] == "9876543210"
        assert data["address"] == "12/B"
        assert data["updated_at"]
        assert data["note"]

    def test_address_falls_back_to_house_number(self):
        reply = handle_update({"epic_id": "ABC1", "house_number": "45A"})
        assert reply.body["data"]["address"] == "45A"

    def test_empty_mobile_allowed(self):
        assert handle_update({"epic_id": "ABC1", "mobile": ""}).ok


class TestForwardMessage:
    def test_provider_url(self):
        assert provider_url("https://p.test/", "line-1") == "https://p.test/v3/line-1/messages"

    @pytest.mark.parametrize("missing", ["phone_number", "message", "phone_number_id", "api_key"])
    def test_missing_field(self, missing):
        body = dict(SEND_BODY, **{missing: ""})
        session = _provider("{}")
        reply = forward_message(body, session, "https://p.test")
        assert reply.status_code == 400
        assert reply.body == {
            "success": False,
            "error": "Missing required fields: phone_number, message, phone_number_id, api_key",
        }
        session.post.assert_not_called()

    def test_provider_payload_and_header(self):
        session = _provider('{"messages": [{"id": "wamid.1"}]}')
        forward_message(SEND_BODY, session, "https://p.test", timeout=120)
        args, kwargs = session.post.call_args
        assert args[0] == "https://p.test/v3/line-1/messages"
        assert kwargs["json"] == {
            "messaging_product": "whatsapp",
            "to": "919090385555",
            "type": "text",
            "text": {"body": "नमस्कार"},
        }
        assert kwargs["headers"]["apikey"] == "key-1"
        assert kwargs["timeout"] == 120

    def test_success(self):
        session = _provider('{"messages": [{"id": "wamid.1"}]}')
        reply = forward_message(SEND_BODY, session, "https://p.test")
        assert reply.status_code == 200
        assert reply.body["success"] is True
        assert reply.body["message_id"] == "wamid.1"
        assert reply.body["phone_number"] == "919090385555"

    def test_success_without_message_id(self):
        reply = forward_message(SEND_BODY, _provider('{"contacts": []}'), "https://p.test")
        assert reply.status_code == 200
        assert reply.body["message_id"] is None

    def test_provider_http_error(self):
        session = _provider('{"error": {"message": "Invalid API key"}}', 401)
        reply = forward_message(SEND_BODY, session, "https://p.test")
        assert reply.status_code == 401
        assert reply.body == {"success": False, "error": "Invalid API key",
                              "message": "Invalid API key"}

    def test_error_in_200_body(self):
        reply = forward_message(SEND_BODY, _provider('{"error": "rate limited"}'), "https://p.test")
        assert reply.status_code == 400
        assert reply.body["error"] == "rate limited"

    def test_transport_failure(self):
        session = _provider(None, error=requests.ConnectionError("refused"))
        reply = forward_message(SEND_BODY, session, "https://p.test")
        assert reply.status_code == 500
        assert reply.body["success"] is False
        assert reply.body["message"] == "Failed to send WhatsApp message"

    def test_non_json_body(self):
        reply = forward_message(SEND_BODY, _provider("<html>gateway</html>", 502), "https://p.test")
        assert reply.status_code == 500


class TestRelayEndpoints:
    def test_update_invalid_json(self, client):
        resp = client.post("/api/v1/relay/update", content=b"{not json",
                           headers={"Content-Type": "application/json"})
        assert resp.status_code == 400
        assert resp.json() == {"status": "error", "message": "Invalid JSON input"}

    def test_update_success(self, client):
        resp = client.post("/api/v1/relay/update",
                           json={"voter_id": 1, "epic_id": "ABC1234567", "mobile": "9876543210",
                                 "address": "12/B", "house_number": "12/B", "serial_no": 1})
        assert resp.status_code == 200
        assert resp.json()["status"] == "success"

    def test_update_get_not_allowed(self, client):
        assert client.get("/api/v1/relay/update").status_code == 405

    def test_send_missing_fields(self, client):
        resp = client.post("/api/v1/relay/whatsapp-send", json={"phone_number": "91"})
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_send_invalid_json(self, client):
        resp = client.post("/api/v1/relay/whatsapp-send", content=b"oops",
                           headers={"Content-Type": "application/json"})
        assert resp.status_code == 400

    def test_send_forwards_with_shared_session(self, app, client):
        from api.deps import get_session
        session = _provider('{"messages": [{"id": "wamid.3"}]}')
        app.dependency_overrides[get_session] = lambda: session
        try:
            resp = client.post("/api/v1/relay/whatsapp-send", json=SEND_BODY)
        finally:
            app.dependency_overrides.clear()
        assert resp.status_code == 200
        assert resp.json()["message_id"] == "wamid.3"
        assert session.post.call_args[0][0] == "https://waba.xtendonline.com/v3/line-1/messages"
