"""
Tests for voters/phone.py and voters/messages.py — mobile validation,
international normalization and the voter detail message.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from voters.messages import compose_voter_message
from voters.phone import has_local_mobile, is_valid_mobile, to_international
from voters.records import VoterRecord


class TestIsValidMobile:
    @pytest.mark.parametrize("value,expected", [
        ("9876543210", True),
        ("6000000000", True),
        ("  7123456789 ", True),
        ("", True),
        ("   ", True),
        (None, True),
        ("987654321", False),
        ("98765432100", False),
        ("1234567890", False),
        ("5876543210", False),
        ("98765-43210", False),
        ("+919876543210", False),
    ])
    def test_table(self, value, expected):
        assert is_valid_mobile(value) is expected


class TestToInternational:
    @pytest.mark.parametrize("raw,expected", [
        ("919090385555", "919090385555"),
        ("9090385555", "919090385555"),
        ("+91 90903 85555", "919090385555"),
        ("90903-85555", "919090385555"),
        ("09090385555", None),
        ("12345", None),
        ("", None),
        (None, None),
        ("9191909038555", None),
    ])
    def test_table(self, raw, expected):
        assert to_international(raw) == expected

    def test_ten_digits_starting_with_91_not_stripped(self):
        assert to_international("9112345678") == "919112345678"


class TestHasLocalMobile:
    @pytest.mark.parametrize("mobile,expected", [
        ("9090385555", True),
        ("1234567890", True),
        ("12345", False),
        ("", False),
        ("919090385555", False),
    ])
    def test_table(self, mobile, expected):
        assert has_local_mobile(VoterRecord(id="1", mobile_number=mobile)) is expected


class TestComposeVoterMessage:
    def test_full_record(self, records):
        msg = compose_voter_message(records[0])
        lines = msg.split("\n")
        assert lines[0] == "🗳️ मतदार माहिती"
        assert "अनु क्र.: 1" in lines
        assert "घर क्र.: 12/B" in lines
        assert "नाव (मराठी): रवि कुमार" in lines
        assert "नाव (इंग्रजी): Ravi Kumar" in lines
        assert "लिंग: पुरुष" in lines
        assert "वय: 42" in lines
        assert "मतदान कार्ड क्र.: ABC1234567" in lines
        assert "मोबाईल नं.: 9090385555" in lines

    def test_missing_values_shown_as_dash(self):
        msg = compose_voter_message(VoterRecord(id="9", name_latin="Only Name"))
        assert "मोबाईल नं.: -" in msg
        assert "वय: -" in msg
        assert "नाव (मराठी): -" in msg

    def test_latin_gender_used_when_local_missing(self):
        msg = compose_voter_message(VoterRecord(id="9", gender_latin="Female"))
        assert "लिंग: Female" in msg
