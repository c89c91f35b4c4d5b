"""
Request classification: is this URL a Dataverse Web API call, and where
should it actually go?
"""
import logging
from typing import Optional, Tuple
from urllib.parse import urlsplit

from .config import DEFAULT_PATH_PREFIX
from .errors import UrlValidationError
from .security.sanitizer import sanitize_url
from .security.validation import is_safe_request_url
from .types import ClassificationResult

logger = logging.getLogger(__name__)


def normalize_path_prefix(path_prefix: str) -> str:
    """``api/data/`` -> ``/api/data``"""
    prefix = "/" + path_prefix.strip().strip("/")
    return prefix


def matches_path_prefix(path: str, path_prefix: str = DEFAULT_PATH_PREFIX) -> bool:
    """
    Slash-insensitive prefix match on a relative path.

    ``/api/data/v9.1/accounts`` and ``api/data/v9.1/accounts`` both match
    ``/api/data``.
    """
    candidate = path if path.startswith("/") else f"/{path}"
    return candidate.startswith(normalize_path_prefix(path_prefix))


_DEFAULT_PORTS = {"http": 80, "https": 443}


def _host_and_port(url: str) -> Tuple[str, Optional[int]]:
    """Lower-cased host and explicit non-default port (None for the scheme default)."""
    parts = urlsplit(url)
    port = parts.port
    if port is not None and port == _DEFAULT_PORTS.get(parts.scheme.lower()):
        port = None
    return (parts.hostname or "").lower(), port


def _is_same_host(url: str, dataverse_url: str) -> bool:
    return _host_and_port(url) == _host_and_port(dataverse_url)


def _target(url: str, dataverse_url: str, prefix: str) -> Tuple[bool, str]:
    """(targeted, url to use). Does not validate."""
    try:
        parts = urlsplit(url)
        if parts.netloc:
            # Absolute or protocol-relative: must be the Dataverse host.
            path = parts.path or "/"
            return _is_same_host(url, dataverse_url) and path.startswith(prefix), url
    except ValueError as e:
        raise UrlValidationError(f"Invalid URL pattern detected: {sanitize_url(url)}") from e

    if matches_path_prefix(url, prefix):
        relative = url if url.startswith("/") else f"/{url}"
        return True, f"{dataverse_url.rstrip('/')}{relative}"
    return False, url


def classify_request(
    url: str,
    dataverse_url: str,
    path_prefix: str = DEFAULT_PATH_PREFIX,
) -> ClassificationResult:
    """
    Decide whether ``url`` targets the protected API and build the URL to use.

    Targeted:
    - relative URLs whose path starts with the prefix (leading slash optional),
      rewritten to ``dataverse_url + path``
    - absolute URLs on the Dataverse host whose *path* starts with the prefix,
      used as-is

    Everything else, including plain-http local services, passes through
    unchanged and unvalidated.

    Raises:
        UrlValidationError: If a targeted URL, or the URL it was rewritten
            to, fails validation. A rewritten URL failing after the input
            passed is still an error, never a silent pass-through.
    """
    prefix = normalize_path_prefix(path_prefix)
    targeted, rewritten = _target(url, dataverse_url, prefix)

    if not targeted:
        logger.debug("classify_request: not targeted, passing through")
        return ClassificationResult(is_target_api=False, rewritten_url=url)

    if not is_safe_request_url(url):
        raise UrlValidationError(f"Invalid URL pattern detected: {sanitize_url(url)}")
    if not is_safe_request_url(rewritten):
        raise UrlValidationError(f"Invalid final URL: {sanitize_url(rewritten)}")

    logger.debug(f"classify_request: targeted, url={sanitize_url(rewritten)}")
    return ClassificationResult(is_target_api=True, rewritten_url=rewritten)
