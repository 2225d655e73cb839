"""
Voters package -- record model and lookup engines.

Re-exports key entry points so callers can do::

    from voters import filter_records, paginate, suggest
"""

from voters.records import VoterRecord, normalize_payload
from voters.search import filter_records
from voters.pagination import paginate, ResultView
from voters.suggest import suggest

__all__ = [
    "VoterRecord",
    "normalize_payload",
    "filter_records",
    "paginate",
    "ResultView",
    "suggest",
]
