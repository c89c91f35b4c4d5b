"""
Token source shared by the request handler and the refresh loop.
"""
import asyncio
import logging
from typing import Any, Iterable, Optional

from dataverse_auth import MOCK_TOKEN_PREFIX, TokenCache, token_cache
from dataverse_auth.auth import get_default_resolver

logger = logging.getLogger(__name__)


class TokenSource:
    """
    Where the handler gets its bearer token.

    A static mock token, when set, always wins and never touches the cache.
    Otherwise tokens come from the shared cache, filled by ``refresh()``.

    ``invalidate()`` bumps a generation counter; a resolution that started
    before the bump is discarded instead of being written to the cache.
    After ``close()`` the source yields no token and never resolves, so a
    client kept past its session cannot touch the shared cache.
    """

    def __init__(
        self,
        dataverse_url: str,
        *,
        resolver: Optional[Any] = None,
        mock_token: Optional[str] = None,
        allowed_domains: Optional[Iterable[str]] = None,
        cache: Optional[TokenCache] = None,
    ) -> None:
        self._dataverse_url = dataverse_url
        self._resolver = resolver
        self._mock_token = mock_token
        self._allowed_domains = list(allowed_domains) if allowed_domains else None
        self._cache = cache if cache is not None else token_cache
        self._generation = 0
        self._closed = False
        self._lock = asyncio.Lock()

    @property
    def dataverse_url(self) -> str:
        return self._dataverse_url

    @property
    def uses_mock_token(self) -> bool:
        return self._mock_token is not None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def generation(self) -> int:
        return self._generation

    def is_mock(self, token: str) -> bool:
        """Mock tokens are never forwarded upstream."""
        if self._mock_token is not None and token == self._mock_token:
            return True
        return token.startswith(MOCK_TOKEN_PREFIX)

    def peek(self) -> Optional[str]:
        """Non-blocking snapshot: mock token or cached token, else None."""
        if self._closed:
            return None
        if self._mock_token is not None:
            return self._mock_token
        return self._cache.get()

    async def get(self) -> Optional[str]:
        """Snapshot, or resolve on demand when the cache is empty."""
        token = self.peek()
        if token:
            return token
        async with self._lock:
            # Another caller may have filled the cache while we waited.
            token = self.peek()
            if token:
                return token
            return await self.refresh()

    async def refresh(self) -> Optional[str]:
        """Resolve a fresh token and cache it. Returns None on failure."""
        if self._closed:
            logger.debug("TokenSource.refresh: source is closed")
            return None
        if self._mock_token is not None:
            return self._mock_token

        generation = self._generation
        resolver = self._resolver or get_default_resolver()
        token = await resolver.resolve(self._dataverse_url, self._allowed_domains)
        if not token:
            return None
        if generation != self._generation:
            logger.debug("TokenSource.refresh: discarding token resolved before invalidate()")
            return None
        self._cache.set(token)
        return token

    def invalidate(self) -> None:
        """Drop the cached token and orphan any in-flight resolution."""
        self._generation += 1
        self._cache.clear()

    def close(self) -> None:
        """Invalidate and stop serving tokens for good."""
        self._closed = True
        self.invalidate()
