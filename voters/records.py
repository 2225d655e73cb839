"""
Voter record model and payload normalizer.

The remote voter-data API has shipped two row shapes over time: the original
spreadsheet export keyed by Marathi column labels, and a later English-keyed
JSON shape. ``normalize_payload()`` maps either one into ``VoterRecord``.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

from utils.config import KnownValues
from utils.strings import as_text
from voters.exceptions import MalformedResponse

logger = logging.getLogger(__name__)


@dataclass
class VoterRecord:
    """One voter as held in memory for the lifetime of a load."""

    id: str
    serial_number: str = ""
    house_number: str = ""
    name_local: str = ""
    name_latin: str = ""
    gender_local: str = ""
    gender_latin: str = ""
    age: str = ""
    voter_card_id: str = ""
    mobile_number: str = ""

    @property
    def gender(self) -> str | None:
        return KnownValues.gender_class(self.gender_latin, self.gender_local)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# Column aliases per internal field; the first non-empty one in a row wins.
# Marathi labels come first since they are what the production export uses.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "serial_number": ("अनु क्र.", "serial_no", "serialNumber", "serial_number"),
    "house_number":  ("घर क्र.", "house_number", "houseNumber", "address"),
    "name_local":    ("नाव (मराठी)", "name_mr", "nameLocal", "name_local"),
    "name_latin":    ("नाव (इंग्रजी)", "name_en", "nameLatin", "name_latin"),
    "gender_local":  ("लिंग (मराठी)", "gender_mr", "genderLocal", "gender_local"),
    "gender_latin":  ("लिंग (इंग्रजी)", "gender_en", "genderLatin", "gender_latin"),
    "age":           ("वय", "age"),
    "voter_card_id": ("मतदान कार्ड क्र.", "epic_id", "voterCardId", "voter_card_id"),
    "mobile_number": ("मोबाईल नं.", "mobile", "mobileNumber", "mobile_number"),
}

_ID_KEYS = ("id", "voter_id")


def _pick(row: dict[str, Any], keys: tuple[str, ...]) -> str:
    for key in keys:
        value = as_text(row.get(key))
        if value:
            return value
    return ""


def _is_header_row(fields: dict[str, str]) -> bool:
    """True for the spreadsheet header echoed back as a data row."""
    return (
        fields["name_latin"] in FIELD_ALIASES["name_latin"]
        or fields["name_local"] in FIELD_ALIASES["name_local"]
    )


def _unwrap(payload: Any) -> list[Any]:
    """Return the row list from either supported envelope."""
    if not isinstance(payload, dict):
        raise MalformedResponse("voter payload is not a JSON object")
    ok = payload.get("success") is True or payload.get("status") == "success"
    if not ok:
        detail = payload.get("message") or payload.get("error") or "missing success flag"
        raise MalformedResponse(f"voter API reported failure: {detail}")
    rows = payload.get("data")
    if not isinstance(rows, list):
        raise MalformedResponse("voter payload has no 'data' array")
    return rows


def normalize_row(row: dict[str, Any], position: int) -> VoterRecord | None:
    """Map one payload row to a VoterRecord, or None if it must be dropped.

    Args:
        row: Raw row from the payload.
        position: 1-based position among retained rows, used as the id
            when the payload does not supply one.
    """
    fields = {name: _pick(row, keys) for name, keys in FIELD_ALIASES.items()}
    if not fields["name_latin"] and not fields["name_local"]:
        return None
    if _is_header_row(fields):
        return None
    record_id = _pick(row, _ID_KEYS) or str(position)
    return VoterRecord(id=record_id, **fields)


def normalize_payload(payload: Any) -> list[VoterRecord]:
    """Build the full record set from a voter API response body.

    Raises:
        MalformedResponse: if the envelope is not a success envelope
            carrying a ``data`` array.
    """
    rows = _unwrap(payload)
    records: list[VoterRecord] = []
    dropped = 0
    for row in rows:
        if not isinstance(row, dict):
            dropped += 1
            continue
        record = normalize_row(row, len(records) + 1)
        if record is None:
            dropped += 1
            continue
        records.append(record)

    declared = payload.get("count")
    if declared is not None and as_text(declared) != str(len(rows)):
        logger.warning("voter payload count=%s but data has %d rows", declared, len(rows))
    logger.info("normalized %d voter records (%d rows dropped)", len(records), dropped)
    return records


def gender_stats(records: list[VoterRecord]) -> dict[str, int]:
    """Count males and females over the full record set."""
    males = females = 0
    for record in records:
        g = record.gender
        if g == "male":
            males += 1
        elif g == "female":
            females += 1
    return {"males": males, "females": females, "total": len(records)}
