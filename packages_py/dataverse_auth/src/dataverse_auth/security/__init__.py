"""
Security helpers for dataverse_auth: redaction, URL validation and the
environment gate.
"""
from .sanitizer import (
    INVALID_URL,
    REDACTED,
    REDACTED_TOKEN,
    mask_sensitive,
    sanitize,
    sanitize_url,
)
from .validation import (
    STANDARD_DATAVERSE_DOMAINS,
    is_absolute_url,
    is_safe_request_url,
    is_valid_dataverse_url,
)
from .environment import (
    ENVIRONMENT_VARIABLES,
    PRODUCTION_MARKER,
    assert_non_production,
    is_production_environment,
)

__all__ = [
    # Sanitizer
    "INVALID_URL",
    "REDACTED",
    "REDACTED_TOKEN",
    "mask_sensitive",
    "sanitize",
    "sanitize_url",
    # Validation
    "STANDARD_DATAVERSE_DOMAINS",
    "is_absolute_url",
    "is_safe_request_url",
    "is_valid_dataverse_url",
    # Environment
    "ENVIRONMENT_VARIABLES",
    "PRODUCTION_MARKER",
    "assert_non_production",
    "is_production_environment",
]
