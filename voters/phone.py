"""Mobile number validation and normalization."""

from __future__ import annotations

from utils.config import KnownValues
from utils.patterns import LOCAL_MOBILE, NON_DIGITS, TEN_DIGITS
from utils.strings import as_text

COUNTRY_CODE = KnownValues.COUNTRY_CODE


def is_valid_mobile(value: str | None) -> bool:
    """Validate a mobile number entered in the edit form.

    The empty string is valid and means "clear the number". Anything else
    must be exactly 10 digits starting with 6, 7, 8 or 9.
    """
    v = (value or "").strip()
    return v == "" or bool(LOCAL_MOBILE.match(v))


def has_local_mobile(record) -> bool:
    """True if the record's mobile number is exactly 10 digits."""
    return bool(TEN_DIGITS.match(as_text(record.mobile_number)))


def to_international(raw: str | None) -> str | None:
    """Normalize a phone number to ``<country code><10 digits>``.

    Non-digits are stripped. A leading country code on a 12-digit number is
    removed once and then re-applied, so the prefix never doubles up.
    Returns None when the remaining local part is not exactly 10 digits.

    Examples:
        "919090385555"    -> "919090385555"
        "9090385555"      -> "919090385555"
        "+91 90903 85555" -> "919090385555"
        "09090385555"     -> None
    """
    digits = NON_DIGITS.sub("", raw or "")
    if len(digits) == 10 + len(COUNTRY_CODE) and digits.startswith(COUNTRY_CODE):
        digits = digits[len(COUNTRY_CODE):]
    if not TEN_DIGITS.match(digits):
        return None
    return COUNTRY_CODE + digits
