"""
/api/v1/voters endpoints: record set status, reload, stats, single record
lookup and the inline edit actions.

Edit actions map one-to-one onto the edit controller transitions::

    POST /voters/{id}/{field}/edit     idle|editing -> editing
    PUT  /voters/{id}/{field}/draft    editing -> editing (new draft)
    POST /voters/{id}/{field}/cancel   editing -> idle
    POST /voters/{id}/{field}/save     editing -> saving -> idle | editing

``field`` is ``mobile`` or ``address``. Domain errors are turned into HTTP
responses by the handlers registered in create_app().
"""

import logging

from fastapi import APIRouter, Body, Depends

from api.deps import get_store
from api.models import (
    DraftIn,
    EditResult,
    EditSlotOut,
    FetchStatusOut,
    GenderStatsOut,
    SaveIn,
    VoterOut,
)
from voters.editing import EditField, EditSlot
from voters.records import VoterRecord
from voters.store import VoterStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/voters", tags=["voters"])


def _edit_result(slot: EditSlot, record: VoterRecord) -> EditResult:
    return EditResult(slot=EditSlotOut(**slot.to_dict()), voter=VoterOut(**record.to_dict()))


@router.get("/status", response_model=FetchStatusOut, summary="Record set load status")
def fetch_status(store: VoterStore = Depends(get_store)) -> FetchStatusOut:
    return FetchStatusOut(**store.status())


@router.post(
    "/reload",
    response_model=FetchStatusOut,
    summary="Reload the record set from the voter API",
    responses={502: {"description": "The voter API could not be read"}},
)
def reload(store: VoterStore = Depends(get_store)) -> FetchStatusOut:
    """Fetch the whole record set again and replace the one in memory."""
    count = store.load()
    logger.info("record set reloaded: %d records", count)
    return FetchStatusOut(**store.status())


@router.get("/stats", response_model=GenderStatsOut, summary="Gender counts")
def stats(store: VoterStore = Depends(get_store)) -> GenderStatsOut:
    return GenderStatsOut(**store.stats())


@router.get("/edits", response_model=list[EditSlotOut], summary="Edit slot states")
def edits(store: VoterStore = Depends(get_store)) -> list[EditSlotOut]:
    return [EditSlotOut(**s.to_dict()) for s in store.edits.slots()]


@router.get("/{voter_id}", response_model=VoterOut, summary="One voter record")
def get_voter(voter_id: str, store: VoterStore = Depends(get_store)) -> VoterOut:
    return VoterOut(**store.get(voter_id).to_dict())


@router.post("/{voter_id}/{field}/edit", response_model=EditResult, summary="Start editing a field")
def begin_edit(voter_id: str, field: EditField,
               store: VoterStore = Depends(get_store)) -> EditResult:
    record = store.get(voter_id)
    slot = store.edits.begin(record, field)
    return _edit_result(slot, record)


@router.put("/{voter_id}/{field}/draft", response_model=EditResult, summary="Update the draft")
def update_draft(voter_id: str, field: EditField, body: DraftIn,
                 store: VoterStore = Depends(get_store)) -> EditResult:
    record = store.get(voter_id)
    slot = store.edits.update_draft(record.id, field, body.value)
    return _edit_result(slot, record)


@router.post("/{voter_id}/{field}/cancel", response_model=EditResult, summary="Discard the draft")
def cancel_edit(voter_id: str, field: EditField,
                store: VoterStore = Depends(get_store)) -> EditResult:
    record = store.get(voter_id)
    slot = store.edits.cancel(record.id, field)
    return _edit_result(slot, record)


@router.post(
    "/{voter_id}/{field}/save",
    response_model=EditResult,
    summary="Validate and save the draft",
    responses={
        400: {"description": "Invalid mobile number; nothing was sent"},
        409: {"description": "Not editing this record, or a save is already in flight"},
        502: {"description": "The update relay failed; the draft is kept"},
    },
)
def save_edit(voter_id: str, field: EditField,
              body: SaveIn | None = Body(None),
              store: VoterStore = Depends(get_store)) -> EditResult:
    record = store.get(voter_id)
    slot = store.edits.save(record, field, body.value if body else None)
    return _edit_result(slot, record)
