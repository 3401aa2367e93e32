"""
PRTG Adapter - Secure Logging Utilities.

Request URLs carry credentials in the query string; anything that logs a URL
goes through ``mask_url`` first.
"""

from urllib.parse import parse_qsl, urlsplit, urlunsplit


# Query parameters that should be masked
SENSITIVE_PARAMS = {
    "passhash",
    "password",
    "apitoken",
}


def mask_value(value: str, show_chars: int = 2) -> str:
    """
    Mask a sensitive value, showing only first few chars.

    Args:
        value: Value to mask
        show_chars: Number of chars to show at start

    Returns:
        Masked value
    """
    if not value or len(value) <= show_chars:
        return "***"
    return f"{value[:show_chars]}...***"


def mask_url(url: str) -> str:
    """Return ``url`` with sensitive query values masked."""
    parts = urlsplit(url)
    if not parts.query:
        return url

    pairs = []
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        if key.lower() in SENSITIVE_PARAMS:
            value = mask_value(value)
        pairs.append(f"{key}={value}")
    return urlunsplit(parts._replace(query="&".join(pairs)))
