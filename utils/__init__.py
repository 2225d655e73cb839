"""Shared utilities for the voter lookup service."""

# Pattern definitions
from utils.patterns import (
    TEN_DIGITS,
    LOCAL_MOBILE,
    NON_DIGITS,
    WHITESPACE,
    HTML_BODY,
)

# String utilities
from utils.strings import as_text, normalize_whitespace, or_dash

# HTTP utilities
from utils.http import (
    RetryStrategy,
    SessionManager,
    looks_like_html,
    read_json,
)

# Configuration
from utils.config import (
    Config,
    AppConfig,
    KnownValues,
)

__all__ = [
    # Patterns
    "TEN_DIGITS",
    "LOCAL_MOBILE",
    "NON_DIGITS",
    "WHITESPACE",
    "HTML_BODY",
    # Strings
    "as_text",
    "normalize_whitespace",
    "or_dash",
    # HTTP
    "RetryStrategy",
    "SessionManager",
    "looks_like_html",
    "read_json",
    # Config
    "Config",
    "AppConfig",
    "KnownValues",
]
