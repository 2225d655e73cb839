"""
In-memory voter store.

Holds the record set for the lifetime of the process together with the
fetch state machine::

    idle -> loading -> loaded
                    -> failed   (previous records, if any, stay available)

The record list is only ever replaced wholesale by ``load()``; individual
records are patched in place by the edit controller after a confirmed save.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from voters.editing import EditController
from voters.exceptions import FetchError, RecordNotFound
from voters.notifier import NotifyRunner
from voters.records import VoterRecord, gender_stats
from voters.search import SearchHistory, filter_records
from voters.source import RecordSource

logger = logging.getLogger(__name__)


class FetchState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class VoterStore:
    """Record set, fetch state, search history, edit slots and notify runner."""

    def __init__(self, source: Optional[RecordSource], edits: EditController,
                 notify: NotifyRunner) -> None:
        self.source = source
        self.edits = edits
        self.notify = notify
        self.history = SearchHistory()
        self.state = FetchState.IDLE
        self.error: Optional[str] = None
        self.error_kind: Optional[str] = None
        self.loaded_at: Optional[str] = None
        self._records: list[VoterRecord] = []
        self._by_id: dict[str, VoterRecord] = {}
        self._lock = threading.Lock()

    # ── loading ───────────────────────────────────────────────────────────

    def replace(self, records: list[VoterRecord]) -> None:
        """Install a new record set, discarding the previous one."""
        with self._lock:
            self._records = list(records)
            self._by_id = {r.id: r for r in self._records}
            self.state = FetchState.LOADED
            self.error = None
            self.error_kind = None
            self.loaded_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
        self.edits.reset()
        self.notify.forget_automatic()

    def load(self) -> int:
        """Fetch the record set from the source and install it.

        Returns:
            Number of records loaded.

        Raises:
            FetchError: the fetch failed; state becomes ``failed``.
        """
        if self.source is None:
            raise FetchError("other", "no record source configured")
        with self._lock:
            self.state = FetchState.LOADING
        try:
            records = self.source.fetch()
        except FetchError as exc:
            with self._lock:
                self.state = FetchState.FAILED
                self.error = exc.user_message
                self.error_kind = exc.kind
            logger.error("voter load failed (%s): %s", exc.kind, exc)
            raise
        self.replace(records)
        return len(records)

    # ── access ────────────────────────────────────────────────────────────

    @property
    def records(self) -> list[VoterRecord]:
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def get(self, record_id: str) -> VoterRecord:
        try:
            return self._by_id[str(record_id)]
        except KeyError:
            raise RecordNotFound(f"voter {record_id} not found") from None

    def search(self, query: str, remember: bool = True) -> list[VoterRecord]:
        if remember:
            self.history.add(query)
        return filter_records(self._records, query)

    def stats(self) -> dict[str, int]:
        return gender_stats(self._records)

    def status(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "records": len(self._records),
            "error": self.error,
            "error_kind": self.error_kind,
            "loaded_at": self.loaded_at,
        }
