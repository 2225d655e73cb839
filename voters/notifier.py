"""
Bulk notifier: send one voter-detail message per matching record.

Candidates are the search matches whose mobile number is exactly 10 digits,
in result order, capped at ``max_batch``. Messages go out strictly one at a
time with a fixed pause between sends so the provider's rate limit is
respected; message N+1 is never dispatched before message N's answer (or
its timeout) has been observed. Failures are counted and the batch carries
on. Counters live in memory only.

Counter semantics:
    attempted  candidates processed so far (== succeeded + failed)
    succeeded  the proxy confirmed the send
    failed     every other outcome, skips included
    skipped    the number did not normalize; nothing was sent
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from voters import messages
from voters.clients import MessagingClient
from voters.exceptions import NotifierBusy, VoterLookupError
from voters.messages import compose_voter_message
from voters.phone import has_local_mobile, to_international
from voters.records import VoterRecord
from voters.search import split_query

logger = logging.getLogger(__name__)

MAX_BATCH = 20
DEFAULT_PAUSE_SECONDS = 3.0


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    FINISHED = "finished"


@dataclass
class NotifyOutcome:
    """Result of one notification."""

    record_id: str
    status: str                     # sent | failed | skipped
    phone_number: Optional[str] = None
    message_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "record_id": self.record_id,
            "status": self.status,
            "phone_number": self.phone_number,
            "message_id": self.message_id,
            "error": self.error,
        }


@dataclass
class NotifyProgress:
    """Running counters for one bulk run."""

    state: RunState = RunState.IDLE
    query: str = ""
    total: int = 0
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    started_at: Optional[str] = None
    finished_at: Optional[str] = None
    results: list[NotifyOutcome] = field(default_factory=list)

    def record(self, outcome: NotifyOutcome) -> None:
        self.results.append(outcome)
        self.attempted += 1
        if outcome.status == "sent":
            self.succeeded += 1
        else:
            self.failed += 1
            if outcome.status == "skipped":
                self.skipped += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "query": self.query,
            "total": self.total,
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "results": [r.to_dict() for r in self.results],
        }


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def select_candidates(matches: list[VoterRecord], limit: int = MAX_BATCH) -> list[VoterRecord]:
    """Records with a 10-digit mobile number, in result order, at most *limit*."""
    return [r for r in matches if has_local_mobile(r)][:limit]


class BulkNotifier:
    """Sends voter-detail messages sequentially through a messaging client."""

    def __init__(
        self,
        client: MessagingClient,
        pause_seconds: float = DEFAULT_PAUSE_SECONDS,
        max_batch: int = MAX_BATCH,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.pause_seconds = pause_seconds
        self.max_batch = max_batch
        self._sleep = sleep

    def notify_one(self, record: VoterRecord) -> NotifyOutcome:
        """Send the message for a single record; never raises for send failures."""
        phone = to_international(record.mobile_number)
        if phone is None:
            logger.info("notify: skipping record %s, mobile %r does not normalize",
                        record.id, record.mobile_number)
            return NotifyOutcome(record.id, "skipped", error=messages.SEND_NO_NUMBER)

        try:
            result = self.client.send(phone, compose_voter_message(record))
        except VoterLookupError as exc:
            logger.warning("notify: send to %s failed: %s", phone, exc)
            return NotifyOutcome(record.id, "failed", phone_number=phone, error=str(exc))

        if result.success:
            logger.info("notify: sent to %s message_id=%s", phone, result.message_id)
            return NotifyOutcome(record.id, "sent", phone_number=phone,
                                 message_id=result.message_id)
        logger.warning("notify: provider refused message to %s: %s", phone, result.error)
        return NotifyOutcome(record.id, "failed", phone_number=phone, error=result.error)

    def run(self, matches: list[VoterRecord],
            progress: Optional[NotifyProgress] = None,
            delay: float = 0.0) -> NotifyProgress:
        """Notify every candidate in *matches*, one at a time.

        *delay* seconds pass before the first send (debounce for runs
        started by a search).
        """
        candidates = select_candidates(matches, self.max_batch)
        if progress is None:
            progress = NotifyProgress()
        progress.state = RunState.RUNNING
        progress.total = len(candidates)
        progress.started_at = progress.started_at or _now()
        if delay > 0 and candidates:
            self._sleep(delay)
        logger.info("notify: bulk run started, %d candidates (of %d matches)",
                    len(candidates), len(matches))

        for i, record in enumerate(candidates):
            outcome = self.notify_one(record)
            progress.record(outcome)
            dispatched = outcome.status != "skipped"
            if dispatched and i < len(candidates) - 1 and self.pause_seconds > 0:
                self._sleep(self.pause_seconds)

        progress.state = RunState.FINISHED
        progress.finished_at = _now()
        logger.info("notify: bulk run finished, %d sent, %d failed (%d skipped)",
                    progress.succeeded, progress.failed, progress.skipped)
        return progress


def result_set_key(query: str) -> str:
    """Normalized form of *query*; equal keys select the same result set."""
    return " ".join(split_query(query or ""))


class NotifyRunner:
    """Owns the service's single bulk-send state machine.

    ``prepare()`` claims the runner and returns the progress object the UI
    polls; ``execute()`` does the sending and is meant to run in the
    background. Runs are not cancellable.

    Runs started by a search go through ``prepare_automatic()``, which
    claims the runner at most once per result set: paging through or
    re-rendering the same query does not notify its voters again.
    """

    def __init__(self, notifier_factory: Callable[[], BulkNotifier]) -> None:
        self._factory = notifier_factory
        self._lock = threading.Lock()
        self._last_automatic: Optional[str] = None
        self.progress = NotifyProgress()

    @property
    def running(self) -> bool:
        return self.progress.state is RunState.RUNNING

    def notifier(self) -> BulkNotifier:
        return self._factory()

    def prepare(self, query: str = "") -> tuple[BulkNotifier, NotifyProgress]:
        """Claim the runner for a new bulk run.

        Raises:
            NotifierBusy: a run is already in progress.
            ConfigurationError: messaging is not configured.
        """
        notifier = self._factory()
        with self._lock:
            return notifier, self._claim(query)

    def prepare_automatic(self, query: str) -> Optional[tuple[BulkNotifier, NotifyProgress]]:
        """Claim the runner for a search-triggered run.

        Returns None when *query* selects the result set that was last
        notified automatically. Raises like ``prepare()``.
        """
        key = result_set_key(query)
        notifier = self._factory()
        with self._lock:
            if key == self._last_automatic:
                return None
            progress = self._claim(query)
            self._last_automatic = key
            return notifier, progress

    def forget_automatic(self) -> None:
        """Allow the next search to notify again (the record set changed)."""
        with self._lock:
            self._last_automatic = None

    def _claim(self, query: str) -> NotifyProgress:
        if self.running:
            raise NotifierBusy("a bulk notification run is already in progress",
                               messages.SEND_IN_PROGRESS)
        self.progress = NotifyProgress(state=RunState.RUNNING, query=query,
                                       started_at=_now())
        return self.progress

    def execute(self, notifier: BulkNotifier, progress: NotifyProgress,
                matches: list[VoterRecord], delay: float = 0.0) -> NotifyProgress:
        try:
            return notifier.run(matches, progress, delay=delay)
        finally:
            if progress.state is not RunState.FINISHED:
                progress.state = RunState.FINISHED
                progress.finished_at = _now()
