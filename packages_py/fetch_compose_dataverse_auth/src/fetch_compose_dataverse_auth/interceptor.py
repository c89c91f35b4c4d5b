"""
Global interceptor for code that builds its own httpx clients.

Patches the network-facing methods of ``httpx.AsyncHTTPTransport`` and
``httpx.HTTPTransport`` so every client in the process goes through the
request handler. The saved originals do the real sending and are put back
by ``uninstall()``.

Prefer ``DataverseAuthTransport`` for code you control.
"""
import functools
import logging
from typing import Optional

import httpx

from .handler import DataverseRequestHandler

logger = logging.getLogger(__name__)

# At most one interceptor is installed per process.
_installed: Optional["GlobalFetchInterceptor"] = None


class GlobalFetchInterceptor:
    """
    Install/uninstall the process-wide httpx patch.

    Example:
        interceptor = GlobalFetchInterceptor(session.handler)
        interceptor.install()
        async with httpx.AsyncClient() as client:
            await client.get("https://org.crm.dynamics.com/api/data/v9.2/accounts")
        interceptor.uninstall()
    """

    def __init__(self, handler: DataverseRequestHandler) -> None:
        self._handler = handler
        self._original_async = None
        self._original_sync = None
        self._patched_async = None
        self._patched_sync = None

    @property
    def installed(self) -> bool:
        return _installed is self

    def install(self) -> None:
        """
        Raises:
            RuntimeError: If a different interceptor is already installed
        """
        global _installed
        if _installed is self:
            return
        if _installed is not None:
            raise RuntimeError("Another GlobalFetchInterceptor is already installed")

        handler = self._handler
        original_async = httpx.AsyncHTTPTransport.handle_async_request
        original_sync = httpx.HTTPTransport.handle_request

        @functools.wraps(original_async)
        async def handle_async_request(transport, request):
            return await handler.handle_async(
                request, lambda r: original_async(transport, r)
            )

        @functools.wraps(original_sync)
        def handle_request(transport, request):
            return handler.handle_sync(request, lambda r: original_sync(transport, r))

        self._original_async = original_async
        self._original_sync = original_sync
        self._patched_async = handle_async_request
        self._patched_sync = handle_request

        httpx.AsyncHTTPTransport.handle_async_request = handle_async_request
        httpx.HTTPTransport.handle_request = handle_request
        _installed = self
        logger.debug("GlobalFetchInterceptor.install: httpx transports patched")

    def uninstall(self) -> None:
        """Restore the original transport methods. Safe to call twice."""
        global _installed
        if _installed is not self:
            return

        if httpx.AsyncHTTPTransport.handle_async_request is not self._patched_async:
            logger.warning(
                "GlobalFetchInterceptor.uninstall: AsyncHTTPTransport was re-patched "
                "after install; restoring the original anyway"
            )
        if httpx.HTTPTransport.handle_request is not self._patched_sync:
            logger.warning(
                "GlobalFetchInterceptor.uninstall: HTTPTransport was re-patched "
                "after install; restoring the original anyway"
            )

        httpx.AsyncHTTPTransport.handle_async_request = self._original_async
        httpx.HTTPTransport.handle_request = self._original_sync
        self._original_async = self._original_sync = None
        self._patched_async = self._patched_sync = None
        _installed = None
        logger.debug("GlobalFetchInterceptor.uninstall: httpx transports restored")


def get_installed_interceptor() -> Optional[GlobalFetchInterceptor]:
    return _installed
