"""
URL validation for the credential boundary and the request boundary.

Two checks live here:

- ``is_valid_dataverse_url``: a resource URL handed to the credential layer
  must be an absolute HTTPS URL on a known Dataverse host (or a caller
  supplied custom domain) with no shell/template metacharacters.
- ``is_safe_request_url``: any URL passing through the interceptor, relative
  or absolute, must parse, use HTTPS when absolute, and carry none of the
  script/file scheme prefixes or control characters on the denylist.
"""
import logging
import re
from typing import Iterable, Optional
from urllib.parse import urlsplit

from .sanitizer import sanitize_url

logger = logging.getLogger(__name__)

SECURE_SCHEME = "https"

# One pattern per sovereign cloud the service is deployed to.
STANDARD_DATAVERSE_DOMAINS = (
    re.compile(r"^[\w-]+\.crm\d*\.dynamics\.com$"),
    re.compile(r"^[\w-]+\.crm\d*\.microsoftdynamics\.com$"),
    re.compile(r"^[\w-]+\.crm\d*\.microsoftdynamics\.us$"),
    re.compile(r"^[\w-]+\.crm\d*\.microsoftdynamics\.de$"),
    re.compile(r"^[\w-]+\.crm\d*\.microsoftdynamics\.cn$"),
)

# Shell and template metacharacters. Never legitimate in a resource URL.
RESOURCE_SUSPICIOUS_CHARS = re.compile(r"[`${}\\;|&<>]")

# Request URLs carry OData queries ($select, $filter with quotes, &), so the
# denylist there is narrower: scheme prefixes anywhere in the string plus
# characters that only show up in markup or header injection attempts.
REQUEST_SUSPICIOUS_PATTERNS = (
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"vbscript:", re.IGNORECASE),
    re.compile(r"data:", re.IGNORECASE),
    re.compile(r"file:", re.IGNORECASE),
    re.compile(r"ftp:", re.IGNORECASE),
    re.compile(r"[<>`\\]"),
    re.compile(r"\$\{"),
    re.compile(r"[\x00-\x1f\x7f]"),
)

# Base used to parse relative request URLs.
_RELATIVE_BASE = "https://relative.invalid"


def _matches_allowed_domain(hostname: str, allowed_domains: Optional[Iterable[str]]) -> bool:
    if not allowed_domains:
        return False
    for domain in allowed_domains:
        domain = domain.strip().lower().lstrip(".")
        if not domain:
            continue
        if hostname == domain or hostname.endswith(f".{domain}"):
            return True
    return False


def is_valid_dataverse_url(
    url: str,
    allowed_domains: Optional[Iterable[str]] = None,
) -> bool:
    """
    Check a resource URL against the allow-list.

    Args:
        url: Absolute URL of the Dataverse environment
        allowed_domains: Extra host names; subdomains of each are accepted too

    Returns:
        bool: True only for an HTTPS URL on an allowed host with no
        suspicious characters
    """
    if not url or not isinstance(url, str):
        return False

    try:
        parts = urlsplit(url)
        hostname = parts.hostname
        # Accessing .port validates it.
        parts.port
    except ValueError:
        return False

    if parts.scheme != SECURE_SCHEME or not hostname:
        return False
    if parts.username or parts.password:
        return False

    hostname = hostname.lower()
    is_standard = any(pattern.match(hostname) for pattern in STANDARD_DATAVERSE_DOMAINS)
    if not is_standard and not _matches_allowed_domain(hostname, allowed_domains):
        logger.debug(f"is_valid_dataverse_url: host not allowed for {sanitize_url(url)}")
        return False

    if RESOURCE_SUSPICIOUS_CHARS.search(url):
        logger.debug(f"is_valid_dataverse_url: suspicious characters in {sanitize_url(url)}")
        return False

    return True


def is_absolute_url(url: str) -> bool:
    """True when the URL carries its own scheme and host."""
    parts = urlsplit(url)
    return bool(parts.scheme) and bool(parts.netloc)


def is_safe_request_url(url: str) -> bool:
    """
    Check a request URL before it is routed or forwarded.

    Relative URLs (with or without a leading slash) are parsed against a
    placeholder HTTPS origin. Absolute URLs must use HTTPS.
    """
    if not url or not isinstance(url, str):
        return False

    if any(pattern.search(url) for pattern in REQUEST_SUSPICIOUS_PATTERNS):
        return False

    try:
        parts = urlsplit(url)
        if parts.scheme:
            if parts.scheme.lower() != SECURE_SCHEME or not parts.hostname:
                return False
            parts.port
        else:
            candidate = url if url.startswith("/") else f"/{url}"
            if candidate.startswith("//"):
                # Protocol-relative URL; would jump to another host.
                return False
            urlsplit(f"{_RELATIVE_BASE}{candidate}").port
    except ValueError:
        return False

    return True
