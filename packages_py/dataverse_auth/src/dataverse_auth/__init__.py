"""
Development-only Dataverse authentication core.

Classifies outgoing requests, resolves and caches Azure access tokens, and
keeps credentials out of logs and error messages. Refuses to run when the
process environment is marked as production.
"""
from .errors import (
    ConfigurationError,
    DataverseAuthError,
    ProductionEnvironmentError,
    SetupError,
    UrlValidationError,
)
from .types import ClassificationResult, ProviderResult
from .config import (
    DEFAULT_PATH_PREFIX,
    DEFAULT_TOKEN_REFRESH_INTERVAL_MS,
    MAX_TOKEN_REFRESH_INTERVAL_MS,
    MIN_TOKEN_REFRESH_INTERVAL_MS,
    MOCK_TOKEN_PREFIX,
    TOKEN_CACHE_LIFETIME_SECONDS,
    TOKEN_ENDPOINT_PATH,
    DataverseSetupOptions,
    ResolvedSetupConfig,
    resolve_setup_options,
    validate_setup_options,
)
from .classifier import classify_request, matches_path_prefix, normalize_path_prefix
from .console import ConsoleReporter
from .security import (
    assert_non_production,
    is_production_environment,
    is_safe_request_url,
    is_valid_dataverse_url,
    mask_sensitive,
    sanitize,
    sanitize_url,
)
from .auth import (
    AzureCliProvider,
    CredentialProvider,
    CredentialResolver,
    DefaultCredentialProvider,
    ManagedIdentityProvider,
    TokenCache,
    clear_token_cache,
    get_azure_token,
    has_cached_token,
    token_cache,
)

__all__ = [
    # Errors
    "ConfigurationError",
    "DataverseAuthError",
    "ProductionEnvironmentError",
    "SetupError",
    "UrlValidationError",
    # Types
    "ClassificationResult",
    "ProviderResult",
    # Config
    "DEFAULT_PATH_PREFIX",
    "DEFAULT_TOKEN_REFRESH_INTERVAL_MS",
    "MAX_TOKEN_REFRESH_INTERVAL_MS",
    "MIN_TOKEN_REFRESH_INTERVAL_MS",
    "MOCK_TOKEN_PREFIX",
    "TOKEN_CACHE_LIFETIME_SECONDS",
    "TOKEN_ENDPOINT_PATH",
    "DataverseSetupOptions",
    "ResolvedSetupConfig",
    "resolve_setup_options",
    "validate_setup_options",
    # Classifier
    "classify_request",
    "matches_path_prefix",
    "normalize_path_prefix",
    # Console
    "ConsoleReporter",
    # Security
    "assert_non_production",
    "is_production_environment",
    "is_safe_request_url",
    "is_valid_dataverse_url",
    "mask_sensitive",
    "sanitize",
    "sanitize_url",
    # Auth
    "AzureCliProvider",
    "CredentialProvider",
    "CredentialResolver",
    "DefaultCredentialProvider",
    "ManagedIdentityProvider",
    "TokenCache",
    "clear_token_cache",
    "get_azure_token",
    "has_cached_token",
    "token_cache",
]

__version__ = "0.1.0"
