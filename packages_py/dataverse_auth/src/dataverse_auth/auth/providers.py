"""
Credential provider strategies.

Each provider wraps one ``azure.identity.aio`` credential and turns it into a
result value instead of an exception:

    provider = AzureCliProvider()
    result = await provider.acquire("https://org.crm.dynamics.com/.default")
    if result.ok:
        ...

Provider order is owned by the resolver, not by azure-identity's own chaining,
so each step can be inspected and tested on its own.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

from azure.identity.aio import (
    AzureCliCredential,
    DefaultAzureCredential,
    ManagedIdentityCredential,
)

from ..config import PROVIDER_TIMEOUT_SECONDS
from ..security.sanitizer import sanitize
from ..types import ProviderResult

logger = logging.getLogger(__name__)

CredentialFactory = Callable[[], Any]


def scope_for_resource(resource_url: str) -> str:
    """``https://org.crm.dynamics.com`` -> ``https://org.crm.dynamics.com/.default``"""
    return f"{resource_url.rstrip('/')}/.default"


class CredentialProvider(ABC):
    """Credential provider interface."""

    name: str = "provider"

    @abstractmethod
    async def acquire(self, scope: str) -> ProviderResult:
        """Try to obtain a token for ``scope``. Must not raise."""
        ...


class AzureIdentityProvider(CredentialProvider):
    """
    Provider backed by an async azure-identity credential.

    A fresh credential is built per attempt and always closed afterwards.
    The call is bounded by ``timeout`` seconds.
    """

    def __init__(
        self,
        name: str,
        credential_factory: CredentialFactory,
        timeout: float = PROVIDER_TIMEOUT_SECONDS,
    ) -> None:
        self.name = name
        self._credential_factory = credential_factory
        self._timeout = timeout

    async def acquire(self, scope: str) -> ProviderResult:
        credential = None
        try:
            credential = self._credential_factory()
            access_token = await asyncio.wait_for(
                credential.get_token(scope), timeout=self._timeout
            )
            logger.debug(f"{self.name}.acquire: token acquired")
            return ProviderResult(provider=self.name, token=access_token.token)
        except asyncio.TimeoutError:
            message = f"timed out after {self._timeout}s"
            logger.debug(f"{self.name}.acquire: {message}")
            return ProviderResult(provider=self.name, error=message)
        except Exception as e:
            message = sanitize(e)
            logger.debug(f"{self.name}.acquire: failed: {message}")
            return ProviderResult(provider=self.name, error=message)
        finally:
            if credential is not None:
                await _close_quietly(self.name, credential)


async def _close_quietly(name: str, credential: Any) -> None:
    close = getattr(credential, "close", None)
    if close is None:
        return
    try:
        await close()
    except Exception as e:
        logger.debug(f"{name}: credential close failed: {sanitize(e)}")


class AzureCliProvider(AzureIdentityProvider):
    """Local developer session (``az login``)."""

    def __init__(self, timeout: float = PROVIDER_TIMEOUT_SECONDS) -> None:
        super().__init__(
            "azure_cli",
            lambda: AzureCliCredential(process_timeout=int(timeout)),
            timeout,
        )


class ManagedIdentityProvider(AzureIdentityProvider):
    """Host identity (VM, App Service, container)."""

    def __init__(
        self,
        client_id: Optional[str] = None,
        timeout: float = PROVIDER_TIMEOUT_SECONDS,
    ) -> None:
        if client_id:
            factory = lambda: ManagedIdentityCredential(client_id=client_id)
        else:
            factory = ManagedIdentityCredential
        super().__init__("managed_identity", factory, timeout)


class DefaultCredentialProvider(AzureIdentityProvider):
    """Catch-all fallback: environment, workload identity, shared cache, etc."""

    def __init__(self, timeout: float = PROVIDER_TIMEOUT_SECONDS) -> None:
        super().__init__("default_azure", DefaultAzureCredential, timeout)


def default_providers(timeout: float = PROVIDER_TIMEOUT_SECONDS) -> List[CredentialProvider]:
    """Primary chain in priority order: developer session, then host identity."""
    return [AzureCliProvider(timeout), ManagedIdentityProvider(timeout=timeout)]
