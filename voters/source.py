"""Fetches the voter record set from the remote voter-data API."""

from __future__ import annotations

import logging
import time

import requests

from utils.http import read_json
from voters import messages
from voters.exceptions import FetchError, MalformedResponse
from voters.records import VoterRecord, normalize_payload

logger = logging.getLogger(__name__)


class RecordSource:
    """GETs the full record set and normalizes it.

    Every failure is raised as a ``FetchError`` whose ``kind`` tells the UI
    which localized message to show: ``timeout``, ``http`` (non-2xx),
    ``network`` (no connection), ``malformed`` (HTML page, invalid JSON or
    an unexpected envelope).
    """

    def __init__(self, url: str, session: requests.Session, timeout: float = 90) -> None:
        self.url = url
        self.session = session
        self.timeout = timeout

    def fetch(self) -> list[VoterRecord]:
        start = time.monotonic()
        try:
            resp = self.session.get(
                self.url,
                timeout=self.timeout,
                headers={"Accept": "application/json", "Content-Type": "application/json"},
            )
        except requests.Timeout as exc:
            raise FetchError("timeout", f"voter API timed out after {self.timeout:.0f}s",
                             messages.FETCH_TIMEOUT) from exc
        except requests.ConnectionError as exc:
            raise FetchError("network", f"voter API unreachable: {exc}",
                             messages.FETCH_NETWORK) from exc
        except requests.RequestException as exc:
            raise FetchError("other", f"voter API request failed: {exc}",
                             messages.fetch_other_error(str(exc))) from exc

        if not 200 <= resp.status_code < 300:
            raise FetchError("http", f"voter API returned HTTP {resp.status_code}",
                             messages.fetch_http_error(resp.status_code),
                             status_code=resp.status_code)

        try:
            records = normalize_payload(read_json(resp))
        except (ValueError, MalformedResponse) as exc:
            raise FetchError("malformed", f"voter API returned unusable data: {exc}",
                             messages.FETCH_BAD_DATA, status_code=resp.status_code) from exc

        logger.info("fetched %d voter records from %s in %.1fs",
                    len(records), self.url, time.monotonic() - start)
        return records
