"""
Dataverse authentication for httpx's compose pattern.
"""
from dataverse_auth import (
    DataverseSetupOptions,
    ProductionEnvironmentError,
    SetupError,
    get_azure_token,
    clear_token_cache,
    has_cached_token,
)
from .request_input import RequestInput, normalize_request_input
from .responses import (
    mock_success_response,
    request_failed_response,
    unauthorized_response,
)
from .token_source import TokenSource
from .handler import (
    HANDLED_EXTENSION,
    DataverseRequestHandler,
    build_auth_headers,
    create_request_handler,
)
from .transport import DataverseAuthTransport, SyncDataverseAuthTransport
from .factory import (
    compose_transport,
    compose_sync_transport,
    create_dataverse_transport,
    create_dataverse_sync_transport,
    create_dataverse_client,
    create_dataverse_sync_client,
)
from .fetch import fetch, fetch_sync
from .interceptor import GlobalFetchInterceptor
from .registry import current_dataverse_url, get_active_session
from .session import (
    DUPLICATE_SETUP_WARNING,
    DataverseSession,
    reset_dataverse_setup,
    setup_dataverse,
)


__all__ = [
    # Re-exported from the core package
    "DataverseSetupOptions",
    "ProductionEnvironmentError",
    "SetupError",
    "get_azure_token",
    "clear_token_cache",
    "has_cached_token",
    # Request input
    "RequestInput",
    "normalize_request_input",
    # Synthetic responses
    "mock_success_response",
    "request_failed_response",
    "unauthorized_response",
    # Handler
    "HANDLED_EXTENSION",
    "DataverseRequestHandler",
    "TokenSource",
    "build_auth_headers",
    "create_request_handler",
    # Transport wrappers
    "DataverseAuthTransport",
    "SyncDataverseAuthTransport",
    # Factory functions
    "compose_transport",
    "compose_sync_transport",
    "create_dataverse_transport",
    "create_dataverse_sync_transport",
    "create_dataverse_client",
    "create_dataverse_sync_client",
    # Request function
    "fetch",
    "fetch_sync",
    # Global adapter
    "GlobalFetchInterceptor",
    # Session
    "DUPLICATE_SETUP_WARNING",
    "DataverseSession",
    "current_dataverse_url",
    "get_active_session",
    "reset_dataverse_setup",
    "setup_dataverse",
]

__version__ = "0.1.0"
