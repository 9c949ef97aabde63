"""
Message normalization for pattern detection.

Collapses the variable parts of a log message (ids, timestamps, IPs, numbers)
into fixed placeholders so that structurally identical messages share one key.
"""

import re

# Key lengths per caller. Short keys group aggressively, long keys keep
# enough text to stay readable in prompts and group names.
PATTERN_KEY_LENGTH = 50
ERROR_KEY_LENGTH = 60
GROUP_KEY_LENGTH = 100
PROMPT_KEY_LENGTH = 100

ID_PLACEHOLDER = "[ID]"
TIMESTAMP_PLACEHOLDER = "[TIMESTAMP]"
IP_PLACEHOLDER = "[IP]"
NUMBER_PLACEHOLDER = "[N]"

_HEX_RUN = re.compile(r"[0-9a-f]{8,}", re.IGNORECASE)
_TIMESTAMP = re.compile(
    r"\d{4}-\d{2}-\d{2}"
    r"(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?)?"
)
_IPV4 = re.compile(r"\b\d{1,3}(?:\.\d{1,3}){3}\b")
# Tokens mixing letters and digits, e.g. "abc123" or "x9y8"
_MIXED_TOKEN = re.compile(r"\b(?=[A-Za-z]*\d)(?=\d*[A-Za-z])[A-Za-z0-9]+\b")
_DIGITS = re.compile(r"\d+")


def normalize(message: str, max_length: int) -> str:
    """
    Rewrite a message into its pattern key.

    Order matters: hex runs are replaced before timestamps and IPs, and bare
    digit runs are replaced last.

    Args:
        message: Raw log message
        max_length: Maximum length of the returned key

    Returns:
        Normalized pattern, truncated to max_length
    """
    pattern = _HEX_RUN.sub(ID_PLACEHOLDER, message or "")
    pattern = _TIMESTAMP.sub(TIMESTAMP_PLACEHOLDER, pattern)
    pattern = _IPV4.sub(IP_PLACEHOLDER, pattern)
    pattern = _MIXED_TOKEN.sub(ID_PLACEHOLDER, pattern)
    pattern = _DIGITS.sub(NUMBER_PLACEHOLDER, pattern)
    return pattern[:max_length]


def first_words(text: str, count: int) -> str:
    """Return the first `count` space-separated words of text."""
    return " ".join(text.split(" ")[:count])
