"""
Tests for voters/editing.py — the inline edit state machine.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from voters import messages
from voters.editing import EditController, EditField, EditState, validate_draft
from voters.exceptions import EditConflict, InvalidMobileNumber, RelayUnavailable


@pytest.fixture()
def controller(update_client):
    return EditController(update_client)


class TestValidateDraft:
    @pytest.mark.parametrize("value", ["9876543210", "", "  ", " 6000000000 "])
    def test_mobile_accepted(self, value):
        assert validate_draft(EditField.MOBILE, value) == value.strip()

    @pytest.mark.parametrize("value", ["987654321", "1234567890", "98765432101", "abc"])
    def test_mobile_rejected(self, value):
        with pytest.raises(InvalidMobileNumber) as exc_info:
            validate_draft(EditField.MOBILE, value)
        assert exc_info.value.user_message == messages.INVALID_MOBILE

    def test_address_free_text(self):
        assert validate_draft(EditField.ADDRESS, "  Flat 3, Lane 2 ") == "Flat 3, Lane 2"


class TestBeginAndCancel:
    def test_begin_prefills_current_value(self, controller, records):
        slot = controller.begin(records[0], EditField.MOBILE)
        assert slot.state is EditState.EDITING
        assert slot.record_id == "1"
        assert slot.draft == "9090385555"

    def test_begin_on_other_record_replaces_draft(self, controller, records):
        controller.begin(records[0], EditField.MOBILE)
        controller.update_draft("1", EditField.MOBILE, "9999999999")
        slot = controller.begin(records[1], EditField.MOBILE)
        assert slot.record_id == "2"
        assert slot.draft == ""

    def test_fields_are_independent(self, controller, records):
        controller.begin(records[0], EditField.MOBILE)
        controller.begin(records[1], EditField.ADDRESS)
        assert controller.slot(EditField.MOBILE).record_id == "1"
        assert controller.slot(EditField.ADDRESS).record_id == "2"

    def test_cancel_discards_draft(self, controller, records):
        controller.begin(records[0], EditField.ADDRESS)
        controller.update_draft("1", EditField.ADDRESS, "new")
        slot = controller.cancel("1", EditField.ADDRESS)
        assert slot.state is EditState.IDLE
        assert slot.draft == ""
        assert records[0].house_number == "12/B"

    def test_cancel_when_idle_is_noop(self, controller):
        assert controller.cancel("1", EditField.MOBILE).state is EditState.IDLE

    def test_update_draft_requires_editing(self, controller):
        with pytest.raises(EditConflict):
            controller.update_draft("1", EditField.MOBILE, "9876543210")

    def test_accepts_plain_string_field(self, controller, records):
        slot = controller.begin(records[0], "address")
        assert slot.field is EditField.ADDRESS


class TestSave:
    def test_success_patches_record_and_resets(self, controller, update_client, records):
        controller.begin(records[0], EditField.MOBILE)
        slot = controller.save(records[0], EditField.MOBILE, " 9876543210 ")
        assert slot.state is EditState.IDLE
        assert records[0].mobile_number == "9876543210"
        assert update_client.calls == [{"id": "1", "mobile": "9876543210", "address": "12/B"}]

    def test_address_save_sends_current_mobile(self, controller, update_client, records):
        controller.begin(records[0], EditField.ADDRESS)
        controller.save(records[0], EditField.ADDRESS, "14/C")
        assert update_client.calls == [{"id": "1", "mobile": "9090385555", "address": "14/C"}]
        assert records[0].house_number == "14/C"

    def test_saves_stored_draft_when_no_value(self, controller, records):
        controller.begin(records[2], EditField.MOBILE)
        controller.update_draft("3", EditField.MOBILE, "7000000000")
        controller.save(records[2], EditField.MOBILE)
        assert records[2].mobile_number == "7000000000"

    def test_empty_mobile_clears(self, controller, records):
        controller.begin(records[0], EditField.MOBILE)
        controller.save(records[0], EditField.MOBILE, "")
        assert records[0].mobile_number == ""

    def test_invalid_mobile_never_reaches_relay(self, controller, update_client, records):
        controller.begin(records[0], EditField.MOBILE)
        with pytest.raises(InvalidMobileNumber):
            controller.save(records[0], EditField.MOBILE, "1234567890")
        assert update_client.calls == []
        slot = controller.slot(EditField.MOBILE)
        assert slot.state is EditState.EDITING
        assert slot.draft == "1234567890"
        assert slot.error == messages.INVALID_MOBILE
        assert records[0].mobile_number == "9090385555"

    def test_relay_failure_keeps_draft(self, controller, update_client, records):
        update_client.error = RelayUnavailable("down", messages.UPDATE_NETWORK)
        controller.begin(records[0], EditField.MOBILE)
        with pytest.raises(RelayUnavailable):
            controller.save(records[0], EditField.MOBILE, "9876543210")
        slot = controller.slot(EditField.MOBILE)
        assert slot.state is EditState.EDITING
        assert slot.draft == "9876543210"
        assert slot.error == messages.UPDATE_NETWORK
        assert records[0].mobile_number == "9090385555"

    def test_retry_after_failure(self, controller, update_client, records):
        update_client.error = RelayUnavailable("down")
        controller.begin(records[0], EditField.MOBILE)
        with pytest.raises(RelayUnavailable):
            controller.save(records[0], EditField.MOBILE, "9876543210")
        update_client.error = None
        controller.save(records[0], EditField.MOBILE)
        assert records[0].mobile_number == "9876543210"

    def test_save_for_other_record_conflicts(self, controller, records):
        controller.begin(records[0], EditField.MOBILE)
        with pytest.raises(EditConflict) as exc_info:
            controller.save(records[1], EditField.MOBILE, "9876543210")
        assert exc_info.value.user_message == messages.EDIT_CONFLICT

    def test_begin_while_saving_conflicts(self, controller, records):
        controller.begin(records[0], EditField.MOBILE)
        controller.slot(EditField.MOBILE).state = EditState.SAVING
        with pytest.raises(EditConflict):
            controller.begin(records[1], EditField.MOBILE)
        with pytest.raises(EditConflict):
            controller.cancel("1", EditField.MOBILE)


class TestReset:
    def test_reset_drops_open_drafts(self, controller, records):
        controller.begin(records[0], EditField.MOBILE)
        controller.begin(records[1], EditField.ADDRESS)
        controller.reset()
        assert all(s.state is EditState.IDLE for s in controller.slots())

    def test_slot_to_dict(self, controller, records):
        controller.begin(records[0], EditField.ADDRESS)
        assert controller.slot(EditField.ADDRESS).to_dict() == {
            "field": "address", "state": "editing", "record_id": "1",
            "draft": "12/B", "error": None,
        }
