"""
setup_dataverse() and the session handle it returns.

The session owns everything setup creates: the token source, the refresh
task, the request handler, the optional global interceptor, and the exit
and signal hooks. ``close()`` releases all of them. It is the same cleanup
whether it runs from ``async with``, from ``reset_dataverse_setup()``, at
interpreter exit, or on SIGINT/SIGTERM.

    async with await setup_dataverse({"dataverseUrl": url}) as session:
        response = await session.fetch("/api/data/v9.2/accounts")
"""
import asyncio
import atexit
import logging
import signal
import threading
from typing import Any, Dict, Mapping, Optional, Union

import httpx

from dataverse_auth import (
    ConsoleReporter,
    DataverseSetupOptions,
    ResolvedSetupConfig,
    SetupError,
    assert_non_production,
    resolve_setup_options,
    sanitize,
    token_cache,
)

from .factory import create_dataverse_client, create_dataverse_sync_client
from .fetch import fetch, fetch_sync
from .handler import DataverseRequestHandler
from .interceptor import GlobalFetchInterceptor
from .registry import clear_active_session, get_active_session, set_active_session
from .token_source import TokenSource
from .transport import DataverseAuthTransport, SyncDataverseAuthTransport

logger = logging.getLogger(__name__)

DUPLICATE_SETUP_WARNING = "setup_dataverse() has already been called. Skipping duplicate setup."

HOOKED_SIGNALS = ("SIGINT", "SIGTERM")


class DataverseSession:
    """Handle returned by setup_dataverse(). Release with close()."""

    def __init__(
        self,
        config: ResolvedSetupConfig,
        token_source: TokenSource,
        handler: DataverseRequestHandler,
        reporter: ConsoleReporter,
        interceptor: Optional[GlobalFetchInterceptor] = None,
    ) -> None:
        self._config = config
        self._tokens = token_source
        self._handler = handler
        self._reporter = reporter
        self._interceptor = interceptor
        self._refresh_task: Optional[asyncio.Task] = None
        self._previous_handlers: Dict[int, Any] = {}
        self._exit_hook_registered = False
        self._closed = False

    @property
    def config(self) -> ResolvedSetupConfig:
        return self._config

    @property
    def dataverse_url(self) -> str:
        return self._config.dataverse_url

    @property
    def handler(self) -> DataverseRequestHandler:
        return self._handler

    @property
    def token_source(self) -> TokenSource:
        return self._tokens

    @property
    def interceptor(self) -> Optional[GlobalFetchInterceptor]:
        return self._interceptor

    @property
    def refresh_task(self) -> Optional[asyncio.Task]:
        return self._refresh_task

    @property
    def closed(self) -> bool:
        return self._closed

    # Request surfaces

    async def fetch(self, input: Any, **kwargs: Any) -> httpx.Response:
        return await fetch(input, handler=self._handler, **kwargs)

    def fetch_sync(self, input: Any, **kwargs: Any) -> httpx.Response:
        return fetch_sync(input, handler=self._handler, **kwargs)

    def transport(self, inner: Optional[httpx.AsyncBaseTransport] = None) -> DataverseAuthTransport:
        """Opt-in async transport sharing this session's handler."""
        return DataverseAuthTransport(inner or httpx.AsyncHTTPTransport(), handler=self._handler)

    def sync_transport(self, inner: Optional[httpx.BaseTransport] = None) -> SyncDataverseAuthTransport:
        return SyncDataverseAuthTransport(inner or httpx.HTTPTransport(), handler=self._handler)

    def client(self, **kwargs: Any) -> httpx.AsyncClient:
        return create_dataverse_client(session=self, **kwargs)

    def sync_client(self, **kwargs: Any) -> httpx.Client:
        return create_dataverse_sync_client(session=self, **kwargs)

    # Lifecycle

    def _activate(self, register_exit_hooks: bool) -> None:
        if self._interceptor is not None:
            self._interceptor.install()
        if not self._tokens.uses_mock_token:
            self._refresh_task = asyncio.get_running_loop().create_task(self._refresh_loop())
        if register_exit_hooks:
            self._register_exit_hooks()

    async def _refresh_loop(self) -> None:
        interval = self._config.token_refresh_interval_seconds
        while True:
            await asyncio.sleep(interval)
            try:
                token = await self._tokens.refresh()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._reporter.error(f"Token refresh failed: {sanitize(e)}")
                continue
            if token:
                self._reporter.success("Token refreshed")
            else:
                self._reporter.warning("Token refresh failed; keeping the previous token until it expires")

    def close(self) -> None:
        """Stop refreshing, uninstall, wipe the cache, drop hooks. Idempotent."""
        if self._closed:
            return
        self._closed = True

        self._tokens.close()

        task, self._refresh_task = self._refresh_task, None
        if task is not None and not task.done():
            try:
                task.cancel()
            except RuntimeError:
                # Owning event loop already closed; the task can never run again.
                pass

        if self._interceptor is not None:
            self._interceptor.uninstall()

        self._unregister_exit_hooks()
        clear_active_session(self)
        logger.debug("DataverseSession.close: session released")

    async def aclose(self) -> None:
        task = self._refresh_task
        self.close()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    def __enter__(self) -> "DataverseSession":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    async def __aenter__(self) -> "DataverseSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # Process hooks

    def _register_exit_hooks(self) -> None:
        atexit.register(self.close)
        self._exit_hook_registered = True

        if threading.current_thread() is not threading.main_thread():
            logger.debug("DataverseSession: not on main thread, skipping signal hooks")
            return
        for name in HOOKED_SIGNALS:
            signum = getattr(signal, name, None)
            if signum is None:
                continue
            self._previous_handlers[signum] = signal.getsignal(signum)
            signal.signal(signum, self._handle_signal)

    def _unregister_exit_hooks(self) -> None:
        if self._exit_hook_registered:
            atexit.unregister(self.close)
            self._exit_hook_registered = False

        previous_handlers, self._previous_handlers = self._previous_handlers, {}
        if threading.current_thread() is not threading.main_thread():
            return
        for signum, previous in previous_handlers.items():
            if signal.getsignal(signum) == self._handle_signal:
                signal.signal(signum, previous if previous is not None else signal.SIG_DFL)

    def _handle_signal(self, signum: int, frame: Any) -> None:
        previous = self._previous_handlers.get(signum)
        self.close()
        if callable(previous):
            previous(signum, frame)
        elif previous == signal.SIG_DFL:
            signal.raise_signal(signum)


def _options_from(
    options: Union[DataverseSetupOptions, Mapping[str, Any], None],
    overrides: Dict[str, Any],
) -> Union[DataverseSetupOptions, Mapping[str, Any]]:
    if options is None:
        return overrides
    if overrides:
        if isinstance(options, DataverseSetupOptions):
            raise TypeError("Pass either a DataverseSetupOptions or keyword options, not both")
        return {**options, **overrides}
    return options


async def setup_dataverse(
    options: Union[DataverseSetupOptions, Mapping[str, Any], None] = None,
    *,
    resolver: Optional[Any] = None,
    install_global: bool = True,
    register_exit_hooks: bool = True,
    **option_kwargs: Any,
) -> DataverseSession:
    """
    Set up Dataverse authentication for this process.

    Args:
        options: DataverseSetupOptions, or a dict with snake_case or
            camelCase keys (``dataverseUrl``, ``mockToken``, ...)
        resolver: Credential resolver. Default: the Azure Identity chain
        install_global: Patch httpx transports process-wide. Default: True
        register_exit_hooks: Clean up at exit and on SIGINT/SIGTERM. Default: True
        **option_kwargs: Options as keywords, instead of ``options``

    Returns:
        The active DataverseSession. A second call while a session is active
        logs a warning and returns that session.

    Raises:
        SetupError: On production environment, invalid options, or any other
            failure. The message is sanitized; the cause is chained.
    """
    try:
        assert_non_production()
        active = get_active_session()
        if active is not None:
            active._reporter.warning(DUPLICATE_SETUP_WARNING)
            return active

        config = resolve_setup_options(_options_from(options, option_kwargs))
        reporter = ConsoleReporter(logger, enabled=config.enable_console_logging)
        reporter.info("Setting up Dataverse authentication...")

        tokens = TokenSource(
            config.dataverse_url,
            resolver=resolver,
            mock_token=config.mock_token,
            allowed_domains=config.allowed_domains,
        )
        if tokens.uses_mock_token:
            reporter.info("Using mock token for testing")
        else:
            token = await tokens.refresh()
            if token:
                reporter.success("Initial token acquired")
            else:
                reporter.warning(
                    "Failed to get initial token; Dataverse requests return 401 "
                    "until a token is available"
                )

        active = get_active_session()
        if active is not None:
            # Another setup finished while this one waited on credentials.
            tokens.close()
            active._reporter.warning(DUPLICATE_SETUP_WARNING)
            return active

        handler = DataverseRequestHandler(
            config.dataverse_url,
            tokens,
            path_prefix=config.path_prefix,
            reporter=reporter,
        )
        session = DataverseSession(
            config,
            tokens,
            handler,
            reporter,
            interceptor=GlobalFetchInterceptor(handler) if install_global else None,
        )
        try:
            session._activate(register_exit_hooks)
        except Exception:
            session.close()
            raise
    except Exception as e:
        raise SetupError(f"setup_dataverse() failed: {sanitize(e)}") from e

    set_active_session(session)
    reporter.success(f"Dataverse authentication configured for {config.dataverse_url}")
    return session


def reset_dataverse_setup() -> None:
    """Close the active session and wipe the token cache. Idempotent."""
    session = get_active_session()
    if session is not None:
        session.close()
    set_active_session(None)
    token_cache.clear()
