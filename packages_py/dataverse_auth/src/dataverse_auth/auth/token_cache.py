"""
Single-slot, in-memory token cache.

The process holds at most one cached token. The token bytes live in a
``bytearray`` so ``clear()`` can overwrite them in place before the
reference is dropped; ``get()`` hands out a fresh ``str`` each time.
"""
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from ..config import TOKEN_CACHE_LIFETIME_SECONDS

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

_FILLER = ord("0")


@dataclass
class CacheEntry:
    """The one cached token and its expiry (clock seconds)."""

    token: bytearray
    expires_at: float

    def __repr__(self) -> str:
        return f"CacheEntry(token=<{len(self.token)} bytes>, expires_at={self.expires_at!r})"


class TokenCache:
    """
    Single-slot token cache with a fixed lifetime.

    Example:
        cache = TokenCache()
        cache.set(token)
        cache.get()    # token, until the lifetime passes
        cache.clear()  # overwrites, then drops the slot
    """

    def __init__(
        self,
        lifetime_seconds: float = TOKEN_CACHE_LIFETIME_SECONDS,
        clock: Clock = time.monotonic,
    ) -> None:
        self._lifetime = lifetime_seconds
        self._clock = clock
        self._entry: Optional[CacheEntry] = None

    @property
    def lifetime_seconds(self) -> float:
        return self._lifetime

    def get(self) -> Optional[str]:
        """Return the token if it has not expired, else None."""
        entry = self._entry
        if entry is None or self._clock() >= entry.expires_at:
            return None
        return entry.token.decode("utf-8")

    def set(self, token: str) -> None:
        """Store ``token`` for the cache lifetime, replacing any previous entry."""
        if not token:
            raise ValueError("token must be a non-empty string")
        new_entry = CacheEntry(
            token=bytearray(token.encode("utf-8")),
            expires_at=self._clock() + self._lifetime,
        )
        previous, self._entry = self._entry, new_entry
        if previous is not None:
            _wipe(previous)
        logger.debug(f"TokenCache.set: cached token (length={len(token)})")

    def has_valid_token(self) -> bool:
        entry = self._entry
        return entry is not None and self._clock() < entry.expires_at

    def expires_in(self) -> Optional[float]:
        """Seconds until expiry, or None when empty."""
        entry = self._entry
        if entry is None:
            return None
        return max(0.0, entry.expires_at - self._clock())

    def clear(self) -> None:
        """Overwrite the cached token bytes, then empty the slot."""
        entry, self._entry = self._entry, None
        if entry is not None:
            _wipe(entry)
            logger.debug("TokenCache.clear: token overwritten and dropped")


def _wipe(entry: CacheEntry) -> None:
    for index in range(len(entry.token)):
        entry.token[index] = _FILLER
    entry.expires_at = 0.0


# Process-wide slot shared by the resolver accessor, sessions and the dev server.
token_cache = TokenCache()
