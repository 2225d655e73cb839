"""
Tests for voters/records.py — payload normalization and gender counts.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from voters.exceptions import MalformedResponse
from voters.records import VoterRecord, gender_stats, normalize_payload, normalize_row


class TestNormalizePayload:
    def test_header_row_dropped(self, sample_payload):
        records = normalize_payload(sample_payload)
        assert len(records) == 5
        assert all(r.name_latin != "नाव (इंग्रजी)" for r in records)

    def test_ids_follow_retained_position(self, sample_payload):
        records = normalize_payload(sample_payload)
        assert [r.id for r in records] == ["1", "2", "3", "4", "5"]

    def test_marathi_labels_mapped(self, sample_payload):
        ravi = normalize_payload(sample_payload)[0]
        assert ravi.name_local == "रवि कुमार"
        assert ravi.name_latin == "Ravi Kumar"
        assert ravi.house_number == "12/B"
        assert ravi.voter_card_id == "ABC1234567"
        assert ravi.mobile_number == "9090385555"
        assert ravi.gender == "male"

    def test_numbers_coerced_to_text(self, sample_payload):
        amol = normalize_payload(sample_payload)[2]
        assert amol.age == "29"
        assert amol.mobile_number == "8888777766"
        assert amol.serial_number == "3"

    def test_null_becomes_empty(self, sample_payload):
        pawar = normalize_payload(sample_payload)[4]
        assert pawar.voter_card_id == ""

    def test_english_keys_accepted(self):
        payload = {
            "status": "success",
            "data": [{
                "id": 901, "serial_no": "11", "house_number": "3", "name_en": "Asha Rao",
                "gender_en": "Female", "age": "30", "epic_id": "QQQ1", "mobile": "9876543210",
            }],
        }
        (rec,) = normalize_payload(payload)
        assert rec.id == "901"
        assert rec.name_latin == "Asha Rao"
        assert rec.voter_card_id == "QQQ1"
        assert rec.gender == "female"

    def test_rows_without_any_name_dropped(self):
        payload = {"success": True, "data": [{"age": 40}, {"name_en": "A B"}, "junk"]}
        records = normalize_payload(payload)
        assert len(records) == 1
        assert records[0].id == "1"

    def test_count_mismatch_is_tolerated(self, caplog):
        payload = {"success": True, "count": 99, "data": [{"name_en": "A B"}]}
        assert len(normalize_payload(payload)) == 1
        assert "count=99" in caplog.text

    @pytest.mark.parametrize("payload", [
        [],
        "not json",
        {"success": False, "message": "db down"},
        {"success": True},
        {"success": True, "data": {"rows": []}},
    ])
    def test_bad_envelope_raises(self, payload):
        with pytest.raises(MalformedResponse):
            normalize_payload(payload)


class TestNormalizeRow:
    def test_explicit_voter_id_wins(self):
        rec = normalize_row({"voter_id": "v-7", "name_en": "X Y"}, 3)
        assert rec.id == "v-7"

    def test_empty_alias_does_not_hide_later_one(self):
        rec = normalize_row({"मोबाईल नं.": "", "mobile": "9876543210", "name_en": "A B",
                             "घर क्र.": None, "address": "Lane 4"}, 1)
        assert rec.mobile_number == "9876543210"
        assert rec.house_number == "Lane 4"

    def test_local_name_only_is_kept(self):
        rec = normalize_row({"नाव (मराठी)": "गणेश"}, 1)
        assert rec is not None
        assert rec.name_local == "गणेश"
        assert rec.name_latin == ""


class TestGenderStats:
    def test_counts(self, records):
        assert gender_stats(records) == {"males": 3, "females": 2, "total": 5}

    def test_unknown_gender_not_counted(self):
        recs = [VoterRecord(id="1", name_latin="A", gender_latin="Other")]
        assert gender_stats(recs) == {"males": 0, "females": 0, "total": 1}

    def test_local_label_alone_classifies(self):
        rec = VoterRecord(id="1", gender_local="स्त्री")
        assert rec.gender == "female"
