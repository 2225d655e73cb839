"""
Free-text record filtering.

Single-term queries match any searchable field by substring. Multi-term
queries ("first last" in any order) must match every term inside one of the
two name fields, or match the whole query inside one of the identifier
fields. There is no ranking: results keep the order of the record set.
"""

from __future__ import annotations

from collections import deque

from utils.strings import as_text, normalize_whitespace
from voters.records import VoterRecord

# Fields searched as a whole for multi-term queries (besides the names)
_ID_FIELDS = ("voter_card_id", "mobile_number", "serial_number", "house_number", "age")

HISTORY_SIZE = 5


def split_query(query: str) -> list[str]:
    """Lowercase, trim and split *query* into terms."""
    return query.lower().split()


def _field(record: VoterRecord, name: str) -> str:
    return as_text(getattr(record, name, "")).lower()


def matches(record: VoterRecord, query: str) -> bool:
    """True if *record* matches the free-text *query*."""
    needle = query.lower().strip()
    terms = split_query(query)
    if not terms:
        return False

    name_latin = _field(record, "name_latin")
    name_local = _field(record, "name_local")
    ids = [_field(record, name) for name in _ID_FIELDS]

    if len(terms) == 1:
        term = terms[0]
        return term in name_latin or term in name_local or any(term in v for v in ids)

    full_latin = normalize_whitespace(name_latin)
    full_local = normalize_whitespace(name_local)
    if all(t in full_latin for t in terms):
        return True
    if all(t in full_local for t in terms):
        return True
    return any(needle in v for v in ids)


def filter_records(records: list[VoterRecord], query: str | None) -> list[VoterRecord]:
    """Return the records matching *query*, in record-set order.

    An empty or whitespace-only query returns no records: nothing is shown
    until the user searches.
    """
    if not query or not query.strip():
        return []
    return [r for r in records if matches(r, query)]


class SearchHistory:
    """The most recent distinct queries, newest first."""

    def __init__(self, size: int = HISTORY_SIZE) -> None:
        self._items: deque[str] = deque(maxlen=size)

    def add(self, query: str) -> None:
        q = query.strip()
        if not q or q in self._items:
            return
        self._items.appendleft(q)

    def items(self) -> list[str]:
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()
