"""
Notification endpoints.

POST /api/v1/notify/bulk        start a bulk run over a query's matches
GET  /api/v1/notify/status      counters of the current (or last) run
POST /api/v1/notify/voters/{id} send one record's details right away

Bulk runs execute after the response is sent (FastAPI background task) and
cannot be cancelled; the UI polls /status for progress.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status

from api.deps import get_store
from api.models import NotifyOutcomeOut, NotifyProgressOut
from voters.exceptions import ConfigurationError, NotifierBusy
from voters.notifier import NotifyProgress
from voters.records import VoterRecord
from voters.store import VoterStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notify", tags=["notify"])


def schedule_bulk_run(
    store: VoterStore,
    matches: list[VoterRecord],
    query: str,
    background: BackgroundTasks,
    automatic: bool = False,
    delay: float = 0.0,
) -> NotifyProgress | None:
    """Claim the notify runner and queue the run as a background task.

    Automatic runs (triggered by a search) start once per result set, wait
    *delay* seconds before the first send, and are logged and skipped when
    they cannot start; manual runs propagate NotifierBusy /
    ConfigurationError.
    """
    try:
        if automatic:
            claimed = store.notify.prepare_automatic(query)
            if claimed is None:
                logger.debug("automatic bulk notify skipped: q=%r already notified", query)
                return None
            notifier, progress = claimed
        else:
            notifier, progress = store.notify.prepare(query)
    except (NotifierBusy, ConfigurationError) as exc:
        if automatic:
            logger.info("automatic bulk notify not started: %s", exc)
            return None
        raise
    background.add_task(store.notify.execute, notifier, progress, list(matches), delay)
    logger.info("bulk notify queued for q=%r (%d matches, automatic=%s)",
                query, len(matches), automatic)
    return progress


@router.post(
    "/bulk",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=NotifyProgressOut,
    summary="Start a bulk notification run",
    responses={
        400: {"description": "Query has no matches"},
        409: {"description": "A run is already in progress"},
        503: {"description": "Messaging is not configured"},
    },
)
def start_bulk(
    background: BackgroundTasks,
    q: str = Query(..., description="Query whose matches are notified"),
    store: VoterStore = Depends(get_store),
) -> NotifyProgressOut:
    """Notify up to 20 matches of *q* that have a 10-digit mobile number."""
    matches = store.search(q, remember=False)
    if not matches:
        raise ValueError(f"no records match {q!r}")
    progress = schedule_bulk_run(store, matches, q, background)
    return NotifyProgressOut(**progress.to_dict())


@router.get("/status", response_model=NotifyProgressOut, summary="Bulk run progress")
def bulk_status(store: VoterStore = Depends(get_store)) -> NotifyProgressOut:
    return NotifyProgressOut(**store.notify.progress.to_dict())


@router.post(
    "/voters/{voter_id}",
    response_model=NotifyOutcomeOut,
    summary="Send one voter's details",
    responses={
        400: {"description": "The record has no usable mobile number"},
        502: {"description": "The messaging proxy or provider refused the message"},
    },
)
def notify_voter(voter_id: str, store: VoterStore = Depends(get_store)) -> NotifyOutcomeOut:
    record = store.get(voter_id)
    outcome = store.notify.notifier().notify_one(record)
    if outcome.status == "skipped":
        raise HTTPException(status_code=400, detail=outcome.error)
    if outcome.status == "failed":
        raise HTTPException(status_code=502, detail=outcome.error or "send failed")
    return NotifyOutcomeOut(**outcome.to_dict())
