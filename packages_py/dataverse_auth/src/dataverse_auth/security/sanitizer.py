"""
Redaction helpers for anything that may end up in a log, console line or
error payload.

    from dataverse_auth.security import sanitize, sanitize_url

    sanitize("Bearer eyJ0eXAiOiJKV1Qi...")  # "Bearer [REDACTED]"
    sanitize_url("https://org.crm.dynamics.com/api/data?access_token=x")
    # "https://org.crm.dynamics.com"
"""
import re
from typing import Any, Optional
from urllib.parse import urlsplit

REDACTED_TOKEN = "[REDACTED-TOKEN]"
REDACTED = "[REDACTED]"
INVALID_URL = "[INVALID-URL]"
UNKNOWN_ERROR = "Unknown error"

# Long base64/JWT-ish runs. 100 chars is well under a real access token and
# well above any identifier that shows up in a URL or error message.
_LONG_TOKEN_PATTERN = re.compile(r"[A-Za-z0-9+/_\-.=]{100,}")
_BEARER_PATTERN = re.compile(r"Bearer\s+[A-Za-z0-9+/=._\-~]+", re.IGNORECASE)
_ACCESS_TOKEN_PATTERN = re.compile(
    r"(access_token|refresh_token|id_token)([\"']?\s*[=:]\s*[\"']?)[A-Za-z0-9+/=._\-~]+",
    re.IGNORECASE,
)


def sanitize(text: Any) -> str:
    """
    Replace token-shaped substrings with redaction markers.

    Accepts an exception, a string, or anything with a useful ``str()``.

    Args:
        text: Error or message to clean

    Returns:
        str: Message safe to log or return to a caller
    """
    if text is None or text == "":
        return UNKNOWN_ERROR

    message = str(text)
    if isinstance(text, BaseException) and not message:
        message = type(text).__name__

    message = _LONG_TOKEN_PATTERN.sub(REDACTED_TOKEN, message)
    message = _BEARER_PATTERN.sub(f"Bearer {REDACTED}", message)
    message = _ACCESS_TOKEN_PATTERN.sub(lambda m: f"{m.group(1)}={REDACTED}", message)
    return message


def sanitize_url(url: Optional[str]) -> str:
    """Reduce a URL to ``scheme://host`` for logging."""
    if not url:
        return INVALID_URL
    try:
        parts = urlsplit(str(url))
    except ValueError:
        return INVALID_URL
    if not parts.scheme or not parts.hostname:
        return INVALID_URL
    return f"{parts.scheme}://{parts.hostname}"


def mask_sensitive(value: Optional[str], show_chars: int = 4) -> str:
    """
    Mask a secret for debug output, keeping a short prefix.

    Short values are masked entirely so a prefix never reveals most of a value.
    """
    if not value:
        return "<none>"
    if len(value) <= show_chars * 2:
        return "*" * len(value)
    return value[:show_chars] + "***"
