"""
Credential resolution and caching for dataverse_auth.
"""
from .token_cache import CacheEntry, TokenCache, token_cache
from .providers import (
    AzureCliProvider,
    AzureIdentityProvider,
    CredentialProvider,
    DefaultCredentialProvider,
    ManagedIdentityProvider,
    default_providers,
    scope_for_resource,
)
from .resolver import (
    CredentialResolver,
    clear_token_cache,
    get_azure_token,
    get_default_resolver,
    has_cached_token,
    is_plausible_token,
    validate_resource_url,
)

__all__ = [
    # Cache
    "CacheEntry",
    "TokenCache",
    "token_cache",
    # Providers
    "AzureCliProvider",
    "AzureIdentityProvider",
    "CredentialProvider",
    "DefaultCredentialProvider",
    "ManagedIdentityProvider",
    "default_providers",
    "scope_for_resource",
    # Resolver
    "CredentialResolver",
    "clear_token_cache",
    "get_azure_token",
    "get_default_resolver",
    "has_cached_token",
    "is_plausible_token",
    "validate_resource_url",
]
