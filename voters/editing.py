"""
Inline edit controller for the mobile and address fields.

There is one edit slot per field kind for the whole record set, so at most
one record can have its mobile number (and at most one its address) open
for editing at a time. Each slot moves through::

    idle -> editing -> saving -> idle      (relay confirmed the update)
                              -> editing   (validation passed, relay failed)

The local record is only changed after the relay reports success. A failed
save leaves the user's draft in place.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from voters import messages
from voters.clients import UpdateClient
from voters.exceptions import EditConflict, InvalidMobileNumber
from voters.phone import is_valid_mobile
from voters.records import VoterRecord

logger = logging.getLogger(__name__)


class EditField(str, Enum):
    MOBILE = "mobile"
    ADDRESS = "address"

    @property
    def attribute(self) -> str:
        return "mobile_number" if self is EditField.MOBILE else "house_number"

    @property
    def sibling(self) -> "EditField":
        return EditField.ADDRESS if self is EditField.MOBILE else EditField.MOBILE


class EditState(str, Enum):
    IDLE = "idle"
    EDITING = "editing"
    SAVING = "saving"


@dataclass
class EditSlot:
    field: EditField
    state: EditState = EditState.IDLE
    record_id: Optional[str] = None
    draft: str = ""
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "field": self.field.value,
            "state": self.state.value,
            "record_id": self.record_id,
            "draft": self.draft,
            "error": self.error,
        }


def validate_draft(field: EditField, value: str) -> str:
    """Return the cleaned value to submit, or raise InvalidMobileNumber."""
    cleaned = (value or "").strip()
    if field is EditField.MOBILE and not is_valid_mobile(cleaned):
        raise InvalidMobileNumber(f"invalid mobile number: {cleaned!r}", messages.INVALID_MOBILE)
    return cleaned


class EditController:
    """Drives the two edit slots and submits confirmed edits to the relay."""

    def __init__(self, client: UpdateClient) -> None:
        self.client = client
        self._slots = {f: EditSlot(field=f) for f in EditField}
        self._lock = threading.Lock()

    def slot(self, field: EditField) -> EditSlot:
        return self._slots[EditField(field)]

    def slots(self) -> list[EditSlot]:
        return [self._slots[f] for f in EditField]

    def begin(self, record: VoterRecord, field: EditField) -> EditSlot:
        """Open *field* of *record* for editing, pre-filled with its current value.

        Opening another record's field of the same kind discards that draft.
        """
        field = EditField(field)
        with self._lock:
            slot = self._slots[field]
            if slot.state is EditState.SAVING:
                raise EditConflict(f"a {field.value} save is already in progress",
                                   messages.EDIT_CONFLICT)
            slot.state = EditState.EDITING
            slot.record_id = record.id
            slot.draft = getattr(record, field.attribute)
            slot.error = None
            return slot

    def update_draft(self, record_id: str, field: EditField, value: str) -> EditSlot:
        field = EditField(field)
        with self._lock:
            slot = self._require_editing(record_id, field)
            slot.draft = value
            return slot

    def cancel(self, record_id: str, field: EditField) -> EditSlot:
        """Discard the draft. Cancelling a slot that is not editing is a no-op."""
        field = EditField(field)
        with self._lock:
            slot = self._slots[field]
            if slot.state is EditState.SAVING:
                raise EditConflict(f"cannot cancel: {field.value} save in progress",
                                   messages.EDIT_CONFLICT)
            if slot.state is EditState.EDITING and slot.record_id == record_id:
                self._reset(slot)
            return slot

    def save(self, record: VoterRecord, field: EditField, value: Optional[str] = None) -> EditSlot:
        """Validate and submit the draft for *record*.

        Args:
            record: The record being edited (must own the slot).
            field: Which field to save.
            value: Optional final draft value; replaces the stored draft.

        Raises:
            EditConflict: the slot is not editing this record, or a save of
                this field kind is already in flight.
            InvalidMobileNumber: local validation failed; nothing was sent.
            VoterLookupError: the relay failed; the slot is back to editing.
        """
        field = EditField(field)
        with self._lock:
            slot = self._require_editing(record.id, field)
            if value is not None:
                slot.draft = value
            try:
                cleaned = validate_draft(field, slot.draft)
            except InvalidMobileNumber as exc:
                slot.error = exc.user_message
                raise
            slot.state = EditState.SAVING
            slot.error = None

        sibling_value = getattr(record, field.sibling.attribute)
        if field is EditField.MOBILE:
            mobile, address = cleaned, sibling_value
        else:
            mobile, address = sibling_value, cleaned

        try:
            self.client.update(record, mobile=mobile, address=address)
        except Exception as exc:
            with self._lock:
                slot.state = EditState.EDITING
                slot.error = getattr(exc, "user_message", None) or str(exc)
            logger.warning("save %s for record %s failed: %s", field.value, record.id, exc)
            raise

        with self._lock:
            setattr(record, field.attribute, cleaned)
            self._reset(slot)
        logger.info("saved %s for record %s", field.value, record.id)
        return slot

    def reset(self) -> None:
        """Drop open drafts after the record set was replaced.

        A save already in flight is left to finish on its own.
        """
        with self._lock:
            for slot in self._slots.values():
                if slot.state is EditState.EDITING:
                    self._reset(slot)

    def _require_editing(self, record_id: str, field: EditField) -> EditSlot:
        slot = self._slots[field]
        if slot.state is EditState.SAVING:
            raise EditConflict(f"a {field.value} save is already in progress",
                               messages.EDIT_CONFLICT)
        if slot.state is not EditState.EDITING or slot.record_id != record_id:
            raise EditConflict(f"record {record_id} is not being edited ({field.value})",
                               messages.EDIT_CONFLICT)
        return slot

    @staticmethod
    def _reset(slot: EditSlot) -> None:
        slot.state = EditState.IDLE
        slot.record_id = None
        slot.draft = ""
        slot.error = None
