"""Pre-compiled regex patterns for the voter lookup service.

All patterns are compiled once at module import.

Usage:
    from utils.patterns import LOCAL_MOBILE, NON_DIGITS

    if LOCAL_MOBILE.match(value):
        ...
"""

import re

# Exactly ten decimal digits, nothing else
TEN_DIGITS = re.compile(r'^\d{10}$')

# Ten digits starting with a valid local mobile prefix (6, 7, 8 or 9)
LOCAL_MOBILE = re.compile(r'^[6-9]\d{9}$')

# Everything that is not a digit (phone normalization)
NON_DIGITS = re.compile(r'\D+')

# Whitespace normalization: multiple spaces/tabs/newlines
WHITESPACE = re.compile(r'\s+')

# A body that starts like an HTML document or error page
HTML_BODY = re.compile(r'^\s*<(!doctype|html|head|body|\?xml|br|b>)', re.IGNORECASE)
