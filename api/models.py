"""
Pydantic request/response models for the API.

Optional fields default to None so that partially filled records and
relay answers still validate. The two relay endpoints keep their historical
wire format (snake_case keys such as ``epic_id`` and ``phone_number_id``).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


# ── Record models ─────────────────────────────────────────────────────────────

class VoterOut(BaseModel):
    """One voter record."""
    id: str = Field(..., description="Record id (external id when supplied, else load position)", examples=["17"])
    serial_number: str = Field("", description="Display-only ordinal", examples=["17"])
    house_number: str = Field("", description="House number / address", examples=["12/B"])
    name_local: str = Field("", description="Name in Marathi", examples=["रवि कुमार"])
    name_latin: str = Field("", description="Name in Latin script", examples=["Ravi Kumar"])
    gender_local: str = Field("", description="Gender label in Marathi", examples=["पुरुष"])
    gender_latin: str = Field("", description="Gender label in English", examples=["Male"])
    age: str = Field("", description="Age", examples=["42"])
    voter_card_id: str = Field("", description="EPIC voter card number (update key)", examples=["ABC1234567"])
    mobile_number: str = Field("", description="10-digit mobile number, or empty", examples=["9090385555"])


class FetchStatusOut(BaseModel):
    """State of the record set load."""
    state: str = Field(..., description="idle | loading | loaded | failed", examples=["loaded"])
    records: int = Field(..., description="Number of records held in memory", examples=[1520])
    error: str | None = Field(None, description="Localized error message of the last failed load")
    error_kind: str | None = Field(None, description="timeout | http | network | malformed | other")
    loaded_at: str | None = Field(None, description="UTC time of the last successful load")


class GenderStatsOut(BaseModel):
    """Gender counts over the full record set."""
    males: int = Field(..., examples=[780])
    females: int = Field(..., examples=[740])
    total: int = Field(..., examples=[1520])


# ── Search models ─────────────────────────────────────────────────────────────

class SearchResponse(BaseModel):
    """Response body for GET /api/v1/search."""
    query: str = Field(..., description="The search query as received", examples=["ravi kumar"])
    total: int = Field(..., description="Total number of matching records", examples=[3])
    page: int = Field(..., description="1-based page actually served", examples=[1])
    page_size: int = Field(..., description="Records per page", examples=[100])
    total_pages: int = Field(..., description="0 when nothing matched", examples=[1])
    items: list[VoterOut] = Field(..., description="Records on this page")


class SuggestionOut(BaseModel):
    """One autocomplete suggestion."""
    name_latin: str = ""
    name_local: str = ""
    voter_card_id: str = ""
    mobile_number: str = ""
    search_text: str = Field(..., description="Value to search for when the suggestion is picked")


# ── Edit models ───────────────────────────────────────────────────────────────

class DraftIn(BaseModel):
    """New draft value for an open edit."""
    value: str = Field("", description="Draft value", examples=["9876543210"])


class SaveIn(BaseModel):
    """Save request; ``value`` replaces the stored draft when given."""
    value: str | None = Field(None, description="Final value to save", examples=["9876543210"])


class EditSlotOut(BaseModel):
    """State of one edit slot."""
    field: str = Field(..., examples=["mobile"])
    state: str = Field(..., description="idle | editing | saving", examples=["editing"])
    record_id: str | None = None
    draft: str = ""
    error: str | None = None


class EditResult(BaseModel):
    """Slot state plus the record after the transition."""
    slot: EditSlotOut
    voter: VoterOut


# ── Notification models ───────────────────────────────────────────────────────

class NotifyOutcomeOut(BaseModel):
    record_id: str
    status: str = Field(..., description="sent | failed | skipped")
    phone_number: str | None = None
    message_id: str | None = None
    error: str | None = None


class NotifyProgressOut(BaseModel):
    """Counters of the current (or last) bulk run."""
    state: str = Field(..., description="idle | running | finished", examples=["running"])
    query: str = ""
    total: int = Field(0, description="Candidates selected for this run", examples=[20])
    attempted: int = 0
    succeeded: int = 0
    failed: int = Field(0, description="All unsuccessful candidates, skips included")
    skipped: int = Field(0, description="Candidates whose number did not normalize")
    started_at: str | None = None
    finished_at: str | None = None
    results: list[NotifyOutcomeOut] = Field(default_factory=list)


# ── Relay wire models ─────────────────────────────────────────────────────────

class UpdateRelayIn(BaseModel):
    """Body accepted by POST /api/v1/relay/update (documentation only)."""
    voter_id: str | int | None = None
    epic_id: str = Field(..., examples=["ABC1234567"])
    mobile: str | None = Field(None, examples=["9876543210"])
    address: str | None = None
    house_number: str | None = None
    serial_no: str | int | None = None


class WhatsAppSendIn(BaseModel):
    """Body accepted by POST /api/v1/relay/whatsapp-send (documentation only)."""
    phone_number: str = Field(..., examples=["919090385555"])
    message: str
    phone_number_id: str
    api_key: str


class WhatsAppSendOut(BaseModel):
    success: bool
    message_id: str | None = None
    phone_number: str | None = None
    error: str | None = None
    message: str | None = None
    data: dict[str, Any] | None = None


# ── Error model ───────────────────────────────────────────────────────────────

class ErrorResponse(BaseModel):
    """Standard error response body."""
    error: str = Field(..., description="Short error category", examples=["Bad request"])
    detail: str | None = Field(None, description="Extended error detail (localized when user-facing)")
    status_code: int = Field(..., ge=400, le=599, description="HTTP status code", examples=[400])
