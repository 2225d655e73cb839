"""
Pytest fixtures for the voter lookup tests.

Provides a small record set in the production export shape (Marathi column
labels), fake update / messaging clients that record their calls, a
VoterStore wired to them, and a TestClient over create_app() with that
store injected. Nothing here touches the network.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.config import AppConfig  # noqa: E402
from voters.clients import SendResult  # noqa: E402
from voters.editing import EditController  # noqa: E402
from voters.notifier import BulkNotifier, NotifyRunner  # noqa: E402
from voters.records import normalize_payload  # noqa: E402
from voters.store import VoterStore  # noqa: E402

# Every env var AppConfig reads; cleared so the host environment cannot leak in.
CONFIG_ENV_VARS = (
    "APP_HOST", "APP_PORT", "APP_LOG_FORMAT", "APP_CORS_ORIGINS",
    "VOTER_DATA_URL", "VOTER_FETCH_TIMEOUT", "VOTER_LOAD_ON_STARTUP",
    "UPDATE_RELAY_URL", "UPDATE_TIMEOUT", "MESSAGING_PROXY_URL", "MESSAGING_TIMEOUT",
    "WHATSAPP_API_BASE", "WHATSAPP_PHONE_NUMBER_ID", "WHATSAPP_API_KEY",
    "PROVIDER_TIMEOUT", "NOTIFY_PAUSE_SECONDS", "NOTIFY_MAX_BATCH", "APP_AUTO_NOTIFY",
    "NOTIFY_AUTO_DELAY_SECONDS",
)


def _row(serial, house, name_mr, name_en, gender_mr, gender_en, age, epic, mobile):
    return {
        "अनु क्र.": serial,
        "घर क्र.": house,
        "नाव (मराठी)": name_mr,
        "नाव (इंग्रजी)": name_en,
        "लिंग (मराठी)": gender_mr,
        "लिंग (इंग्रजी)": gender_en,
        "वय": age,
        "मतदान कार्ड क्र.": epic,
        "मोबाईल नं.": mobile,
    }


# Header row echoed back as data, as the spreadsheet export does.
HEADER_ROW = _row("अनु क्र.", "घर क्र.", "नाव (मराठी)", "नाव (इंग्रजी)",
                  "लिंग (मराठी)", "लिंग (इंग्रजी)", "वय", "मतदान कार्ड क्र.", "मोबाईल नं.")

SAMPLE_ROWS = [
    HEADER_ROW,
    _row(1, "12/B", "रवि कुमार", "Ravi Kumar", "पुरुष", "Male", 42, "ABC1234567", "9090385555"),
    _row(2, "12/B", "सीता पाटील", "Sita Patil", "स्त्री", "Female", 38, "ABC7654321", ""),
    _row(3, "7", "अमोल देशमुख", "Amol Deshmukh", "पुरुष", "Male", 29.0, "XYZ0000001", 8888777766),
    _row(4, "45A", "सुनीता कुमार", "Sunita Kumar", "स्त्री", "Female", 51, "XYZ0000002", "12345"),
    _row(5, "45A", "रवि पवार", "Ravi Pawar", "पुरुष", "Male", 67, None, "7000011111"),
]


class FakeUpdateClient:
    """Records update calls; raises ``error`` when set."""

    def __init__(self):
        self.calls = []
        self.error = None

    def update(self, record, mobile, address):
        self.calls.append({"id": record.id, "mobile": mobile, "address": address})
        if self.error is not None:
            raise self.error
        return {"epic_id": record.voter_card_id, "mobile": mobile, "address": address}


class FakeMessagingClient:
    """Records sends; answers from ``results`` keyed by phone, else success."""

    def __init__(self):
        self.sent = []
        self.results = {}

    def send(self, phone_number, message):
        self.sent.append((phone_number, message))
        result = self.results.get(phone_number)
        if isinstance(result, Exception):
            raise result
        if result is None:
            return SendResult(True, message_id=f"wamid.{len(self.sent)}")
        return result


@pytest.fixture()
def sample_payload():
    return {"success": True, "count": len(SAMPLE_ROWS), "data": [dict(r) for r in SAMPLE_ROWS]}


@pytest.fixture()
def records(sample_payload):
    return normalize_payload(sample_payload)


@pytest.fixture()
def update_client():
    return FakeUpdateClient()


@pytest.fixture()
def messaging_client():
    return FakeMessagingClient()


@pytest.fixture()
def sleeper():
    """Stands in for time.sleep in the notifier; records requested waits."""
    return MagicMock()


@pytest.fixture()
def store(records, update_client, messaging_client, sleeper):
    """A loaded VoterStore whose source, relay and proxy are all fakes."""
    source = MagicMock()
    source.fetch.return_value = records
    s = VoterStore(
        source=source,
        edits=EditController(update_client),
        notify=NotifyRunner(lambda: BulkNotifier(messaging_client, pause_seconds=0,
                                                 sleep=sleeper)),
    )
    s.replace(records)
    return s


@pytest.fixture()
def app_config(monkeypatch):
    for var in CONFIG_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("VOTER_LOAD_ON_STARTUP", "0")
    return AppConfig.from_env()


@pytest.fixture()
def app(store, app_config):
    from api.app import create_app
    return create_app(store=store, config=app_config)


@pytest.fixture()
def client(app):
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c
