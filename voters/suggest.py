"""Autocomplete suggestions for the search box."""

from __future__ import annotations

from dataclasses import asdict, dataclass

from voters.records import VoterRecord

MIN_INPUT_LENGTH = 2
MAX_SUGGESTIONS = 10


@dataclass
class Suggestion:
    name_latin: str
    name_local: str
    voter_card_id: str
    mobile_number: str
    search_text: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def suggest(records: list[VoterRecord], partial: str | None,
            limit: int = MAX_SUGGESTIONS) -> list[Suggestion]:
    """Return up to *limit* suggestions for the partial search input.

    Inputs shorter than two characters (after trimming) return nothing,
    which also tells the UI to hide any open suggestion list. Candidates are
    de-duplicated on the first non-empty of Latin name, local name, voter
    card id and mobile number, and keep record-set order.
    """
    needle = (partial or "").strip().lower()
    if len(needle) < MIN_INPUT_LENGTH:
        return []

    out: list[Suggestion] = []
    seen: set[str] = set()
    for r in records:
        values = (r.name_latin, r.name_local, r.voter_card_id, r.mobile_number)
        lowered = [v.lower() for v in values]
        if not any(needle in v for v in lowered):
            continue
        key = next((v for v in lowered if v), "")
        if key in seen:
            continue
        seen.add(key)
        out.append(Suggestion(
            name_latin=r.name_latin,
            name_local=r.name_local,
            voter_card_id=r.voter_card_id,
            mobile_number=r.mobile_number,
            search_text=next((v for v in values if v), ""),
        ))
        if len(out) >= limit:
            break
    return out
