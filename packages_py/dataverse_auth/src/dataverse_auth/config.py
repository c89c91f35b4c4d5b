"""
Configuration for dataverse_auth.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .errors import ConfigurationError
from .security.sanitizer import mask_sensitive, sanitize_url
from .security.validation import is_valid_dataverse_url

logger = logging.getLogger(__name__)

# Request routing
DEFAULT_PATH_PREFIX = "/api/data"
TOKEN_ENDPOINT_PATH = "/__dataverse_token__"

# Token lifecycle. Access tokens live ~60 minutes; cache for 55 so a refresh
# always happens before the provider's own expiry.
TOKEN_CACHE_LIFETIME_SECONDS = 55 * 60
DEFAULT_TOKEN_REFRESH_INTERVAL_MS = 50 * 60 * 1000
MIN_TOKEN_REFRESH_INTERVAL_MS = 60_000
MAX_TOKEN_REFRESH_INTERVAL_MS = 3_600_000

# Credential sanity checks
PROVIDER_TIMEOUT_SECONDS = 30.0
MIN_TOKEN_LENGTH = 50
MIN_MOCK_TOKEN_LENGTH = 10
MOCK_TOKEN_PREFIX = "mock-"

# camelCase keys accepted from dict-style options
_OPTION_ALIASES = {
    "dataverseUrl": "dataverse_url",
    "tokenRefreshInterval": "token_refresh_interval_ms",
    "token_refresh_interval": "token_refresh_interval_ms",
    "enableConsoleLogging": "enable_console_logging",
    "mockToken": "mock_token",
    "allowedDomains": "allowed_domains",
    "pathPrefix": "path_prefix",
}


@dataclass
class DataverseSetupOptions:
    """Options accepted by setup_dataverse()."""

    dataverse_url: str
    token_refresh_interval_ms: int = DEFAULT_TOKEN_REFRESH_INTERVAL_MS
    enable_console_logging: bool = True
    mock_token: Optional[str] = None
    allowed_domains: Optional[List[str]] = None
    path_prefix: str = DEFAULT_PATH_PREFIX

    def __repr__(self) -> str:
        """Safe repr that masks the mock token."""
        return (
            f"DataverseSetupOptions(dataverse_url={sanitize_url(self.dataverse_url)!r}, "
            f"token_refresh_interval_ms={self.token_refresh_interval_ms!r}, "
            f"enable_console_logging={self.enable_console_logging!r}, "
            f"mock_token={mask_sensitive(self.mock_token)!r}, "
            f"allowed_domains={self.allowed_domains!r}, "
            f"path_prefix={self.path_prefix!r})"
        )


@dataclass(frozen=True)
class ResolvedSetupConfig:
    """Validated, immutable setup configuration."""

    dataverse_url: str
    token_refresh_interval_ms: int
    enable_console_logging: bool
    mock_token: Optional[str] = field(default=None, repr=False)
    allowed_domains: Tuple[str, ...] = ()
    path_prefix: str = DEFAULT_PATH_PREFIX

    @property
    def token_refresh_interval_seconds(self) -> float:
        return self.token_refresh_interval_ms / 1000.0


def options_from_mapping(options: Mapping[str, Any]) -> DataverseSetupOptions:
    """Build options from a dict using snake_case or camelCase keys."""
    kwargs: Dict[str, Any] = {}
    for key, value in options.items():
        name = _OPTION_ALIASES.get(key, key)
        if name not in DataverseSetupOptions.__dataclass_fields__:
            raise ConfigurationError(f"Unknown setup option: {key}")
        if value is None and name != "dataverse_url":
            continue
        kwargs[name] = value
    if "dataverse_url" not in kwargs:
        raise ConfigurationError("dataverse_url is required and must be a string")
    return DataverseSetupOptions(**kwargs)


def validate_setup_options(options: DataverseSetupOptions) -> None:
    """
    Validate setup options.

    Raises:
        ConfigurationError: On any shape violation
    """
    if not isinstance(options, DataverseSetupOptions):
        raise ConfigurationError("setup_dataverse() requires an options object")

    if not options.dataverse_url or not isinstance(options.dataverse_url, str):
        raise ConfigurationError("dataverse_url is required and must be a string")

    interval = options.token_refresh_interval_ms
    if (
        isinstance(interval, bool)
        or not isinstance(interval, (int, float))
        or interval < MIN_TOKEN_REFRESH_INTERVAL_MS
        or interval > MAX_TOKEN_REFRESH_INTERVAL_MS
    ):
        raise ConfigurationError(
            "token_refresh_interval_ms must be a number between 60000ms (1 minute) "
            "and 3600000ms (1 hour)"
        )

    if not isinstance(options.enable_console_logging, bool):
        raise ConfigurationError("enable_console_logging must be a boolean")

    if options.mock_token is not None:
        if (
            not isinstance(options.mock_token, str)
            or len(options.mock_token) < MIN_MOCK_TOKEN_LENGTH
        ):
            raise ConfigurationError("mock_token must be a string with at least 10 characters")

    if options.allowed_domains is not None:
        if isinstance(options.allowed_domains, str) or not all(
            isinstance(domain, str) and domain for domain in options.allowed_domains
        ):
            raise ConfigurationError("allowed_domains must be a list of non-empty strings")

    if not isinstance(options.path_prefix, str) or not options.path_prefix.startswith("/"):
        raise ConfigurationError("path_prefix must be a string starting with '/'")

    if not is_valid_dataverse_url(options.dataverse_url, options.allowed_domains):
        raise ConfigurationError(
            f"Invalid dataverse URL: {sanitize_url(options.dataverse_url)}. "
            "Must be a valid HTTPS dataverse domain."
        )


def resolve_setup_options(
    options: Union[DataverseSetupOptions, Mapping[str, Any]],
) -> ResolvedSetupConfig:
    """Validate options and freeze them."""
    if isinstance(options, Mapping):
        options = options_from_mapping(options)
    validate_setup_options(options)
    logger.debug(f"resolve_setup_options: {options!r}")

    return ResolvedSetupConfig(
        dataverse_url=options.dataverse_url.rstrip("/"),
        token_refresh_interval_ms=int(options.token_refresh_interval_ms),
        enable_console_logging=options.enable_console_logging,
        mock_token=options.mock_token,
        allowed_domains=tuple(options.allowed_domains or ()),
        path_prefix="/" + options.path_prefix.strip("/"),
    )
