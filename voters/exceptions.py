"""Exceptions raised by the voter lookup engines and clients."""

from typing import Optional


class VoterLookupError(Exception):
    """Base class for all voter lookup errors."""

    def __init__(self, message: str, user_message: Optional[str] = None):
        super().__init__(message)
        # Localized text suitable for showing to the end user
        self.user_message = user_message or message


class FetchError(VoterLookupError):
    """The record set could not be loaded from the remote voter-data API.

    ``kind`` is one of "timeout", "http", "network", "malformed" or "other".
    """

    def __init__(self, kind: str, message: str, user_message: Optional[str] = None,
                 status_code: Optional[int] = None):
        super().__init__(message, user_message)
        self.kind = kind
        self.status_code = status_code


class MalformedResponse(VoterLookupError):
    """A relay or provider answered with something that is not the expected JSON."""


class RelayUnavailable(VoterLookupError):
    """Transport failure talking to a relay (timeout, refused, DNS)."""


class UpdateRejected(VoterLookupError):
    """The update relay answered with status "error"."""


class InvalidMobileNumber(VoterLookupError, ValueError):
    """A mobile number failed local validation; never sent over the network."""


class EditConflict(VoterLookupError):
    """An edit transition is not allowed from the slot's current state."""


class RecordNotFound(VoterLookupError, KeyError):
    """No record with the requested id is loaded."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "record not found"


class NotifierBusy(VoterLookupError):
    """A bulk notification run is already in progress."""


class ConfigurationError(VoterLookupError):
    """Required configuration (such as provider credentials) is missing."""
