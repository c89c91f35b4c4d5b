"""
Credential resolution for a Dataverse resource URL.

Resolution order:
1. Primary providers, in list order (default: Azure CLI, then managed identity)
2. The fallback provider, once, if every primary provider failed
   (default: DefaultAzureCredential)

Ordinary failure never raises: ``resolve()`` returns None and reports a
sanitized diagnostic. Only malformed input (a resource URL that is not an
allow-listed HTTPS Dataverse host) raises.
"""
import logging
from typing import Iterable, List, Optional, Sequence

from ..config import MIN_TOKEN_LENGTH, PROVIDER_TIMEOUT_SECONDS
from ..console import ConsoleReporter
from ..errors import ConfigurationError, UrlValidationError
from ..security.sanitizer import sanitize_url
from ..security.validation import is_valid_dataverse_url
from ..types import ProviderResult
from .providers import (
    CredentialProvider,
    DefaultCredentialProvider,
    default_providers,
    scope_for_resource,
)
from .token_cache import token_cache

logger = logging.getLogger(__name__)


def is_plausible_token(token: Optional[str]) -> bool:
    """Minimum length and no embedded whitespace."""
    if not token or not isinstance(token, str):
        return False
    if len(token) < MIN_TOKEN_LENGTH:
        return False
    return not any(ch.isspace() for ch in token)


def validate_resource_url(
    resource_url: str,
    allowed_domains: Optional[Iterable[str]] = None,
) -> None:
    """
    Raises:
        ConfigurationError: If resource_url is missing or not a string
        UrlValidationError: If resource_url is not an allowed HTTPS Dataverse URL
    """
    if not resource_url or not isinstance(resource_url, str):
        raise ConfigurationError("resource_url is required and must be a string")
    if not is_valid_dataverse_url(resource_url, allowed_domains):
        raise UrlValidationError(
            f"Invalid dataverse URL: {sanitize_url(resource_url)}. "
            "Must be a valid HTTPS dataverse domain."
        )


class CredentialResolver:
    """
    Resolve a bearer token by walking an ordered list of providers.

    Example:
        resolver = CredentialResolver()
        token = await resolver.resolve("https://org.crm.dynamics.com")

        # Inspect what happened
        [(a.provider, a.ok) for a in resolver.attempts]
    """

    def __init__(
        self,
        providers: Optional[Sequence[CredentialProvider]] = None,
        fallback: Optional[CredentialProvider] = None,
        timeout: float = PROVIDER_TIMEOUT_SECONDS,
        use_fallback: bool = True,
    ) -> None:
        self._providers: List[CredentialProvider] = (
            list(providers) if providers is not None else default_providers(timeout)
        )
        if use_fallback:
            self._fallback = fallback if fallback is not None else DefaultCredentialProvider(timeout)
        else:
            self._fallback = None
        self._attempts: List[ProviderResult] = []

    @property
    def providers(self) -> List[CredentialProvider]:
        return list(self._providers)

    @property
    def fallback(self) -> Optional[CredentialProvider]:
        return self._fallback

    @property
    def attempts(self) -> List[ProviderResult]:
        """Results from the most recent ``resolve()`` call, in order tried."""
        return list(self._attempts)

    async def resolve(
        self,
        resource_url: str,
        allowed_domains: Optional[Iterable[str]] = None,
    ) -> Optional[str]:
        """
        Resolve a token for ``resource_url``.

        Returns:
            The token, or None if no provider produced a plausible one
        """
        validate_resource_url(resource_url, allowed_domains)

        scope = scope_for_resource(resource_url)
        attempts: List[ProviderResult] = []
        self._attempts = attempts

        token = await self._try_chain(self._providers, scope, attempts)
        if token is None and self._fallback is not None:
            logger.debug("CredentialResolver.resolve: primary chain failed, trying fallback")
            token = await self._try_chain([self._fallback], scope, attempts)

        if token is None:
            summary = "; ".join(f"{a.provider}: {a.error}" for a in attempts) or "no providers"
            logger.warning(f"CredentialResolver.resolve: no credential succeeded ({summary})")
        return token

    async def _try_chain(
        self,
        providers: Sequence[CredentialProvider],
        scope: str,
        attempts: List[ProviderResult],
    ) -> Optional[str]:
        for provider in providers:
            result = await provider.acquire(scope)
            if result.ok and not is_plausible_token(result.token):
                result = ProviderResult(
                    provider=result.provider,
                    error="Invalid token format received",
                )
            attempts.append(result)
            logger.debug(f"CredentialResolver._try_chain: {result!r}")
            if result.ok:
                return result.token
        return None


_default_resolver: Optional[CredentialResolver] = None


def get_default_resolver() -> CredentialResolver:
    """Lazily built resolver with the default provider chain."""
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = CredentialResolver()
    return _default_resolver


async def get_azure_token(
    resource_url: str,
    enable_logging: bool = True,
    allowed_domains: Optional[Iterable[str]] = None,
    resolver: Optional[CredentialResolver] = None,
) -> Optional[str]:
    """
    Get an access token for ``resource_url``, using the shared cache.

    Usable on its own, without setup_dataverse().

    Raises:
        ConfigurationError, UrlValidationError: For malformed input only
    """
    validate_resource_url(resource_url, allowed_domains)
    reporter = ConsoleReporter(logger, enabled=enable_logging)

    cached = token_cache.get()
    if cached:
        return cached

    reporter.info("Getting fresh Azure access token...")
    reporter.info(f"   Resource URL: {sanitize_url(resource_url)}")

    resolver = resolver or get_default_resolver()
    token = await resolver.resolve(resource_url, allowed_domains)
    if token is None:
        reporter.error("Failed to get token from Azure Identity")
        reporter.error("Make sure you are authenticated (az login) or have managed identity configured")
        return None

    token_cache.set(token)
    reporter.success("Token acquired successfully")
    return token


def clear_token_cache() -> None:
    """Overwrite and drop the shared cached token."""
    token_cache.clear()


def has_cached_token() -> bool:
    """True if the shared cache holds an unexpired token."""
    return token_cache.has_valid_token()
