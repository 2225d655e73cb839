"""String processing utilities for the voter lookup service.

Remote payloads mix strings, numbers and nulls in the same column, so every
field goes through ``as_text()`` before it is searched or displayed.
"""

from utils.patterns import WHITESPACE


def as_text(val) -> str:
    """Coerce a payload value to a trimmed string.

    Handles:
    - None -> ""
    - Numeric types -> str (integral floats lose the trailing ".0")
    - Everything else -> str(val).strip()

    Example:
        as_text(42.0) -> "42"
        as_text("  MH123 ") -> "MH123"
    """
    if val is None:
        return ""
    if isinstance(val, bool):
        return str(val).lower()
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    return str(val).strip()


def normalize_whitespace(s: str) -> str:
    """Normalize multiple whitespace characters to single spaces.

    Example:
        "Ravi   Kumar\\n Patil" -> "Ravi Kumar Patil"
    """
    return WHITESPACE.sub(' ', s).strip()


def or_dash(val) -> str:
    """Return the trimmed text of *val*, or "-" when it is empty."""
    text = as_text(val)
    return text if text else "-"
