"""
Dev-proxy and browser-injection adapter for Dataverse authentication.
"""
from .proxy import (
    DEFAULT_PROXY_PATH,
    HOP_BY_HOP_HEADERS,
    DataverseProxyMiddleware,
    ProxyRule,
    create_advanced_dataverse_proxy,
    create_dataverse_proxy,
    path_prefix_from_proxy_path,
)
from .auth_plugin import DEVELOPMENT_MODE, NO_TOKEN_BODY, DataverseAuthService
from .config import (
    DataverseDevConfig,
    DataverseDevOptions,
    DataverseDevSettings,
    create_dataverse_config,
    create_dataverse_config_with_defaults,
)
from .app import create_dev_app

__all__ = [
    # Proxy
    "DEFAULT_PROXY_PATH",
    "HOP_BY_HOP_HEADERS",
    "DataverseProxyMiddleware",
    "ProxyRule",
    "create_advanced_dataverse_proxy",
    "create_dataverse_proxy",
    "path_prefix_from_proxy_path",
    # Auth service
    "DEVELOPMENT_MODE",
    "NO_TOKEN_BODY",
    "DataverseAuthService",
    # Config
    "DataverseDevConfig",
    "DataverseDevOptions",
    "DataverseDevSettings",
    "create_dataverse_config",
    "create_dataverse_config_with_defaults",
    # App
    "create_dev_app",
]

__version__ = "0.1.0"
