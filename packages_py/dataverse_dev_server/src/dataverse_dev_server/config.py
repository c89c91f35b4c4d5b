"""Dev server configuration using Pydantic Settings."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from pydantic_settings import BaseSettings

from dataverse_auth import (
    DEFAULT_TOKEN_REFRESH_INTERVAL_MS,
    ConfigurationError,
    DataverseSetupOptions,
    resolve_setup_options,
)

from .auth_plugin import DEVELOPMENT_MODE, DataverseAuthService
from .proxy import (
    DEFAULT_PROXY_PATH,
    ProxyRule,
    create_advanced_dataverse_proxy,
    path_prefix_from_proxy_path,
)

logger = logging.getLogger(__name__)


class DataverseDevSettings(BaseSettings):
    """Dev server settings loaded from environment variables."""

    DATAVERSE_URL: Optional[str] = None
    DATAVERSE_TOKEN_REFRESH_INTERVAL_MS: int = DEFAULT_TOKEN_REFRESH_INTERVAL_MS
    DATAVERSE_ENABLE_CONSOLE_LOGGING: bool = True
    DATAVERSE_SERVER_MODE: str = DEVELOPMENT_MODE

    class Config:
        case_sensitive = True
        env_file = None  # Use system env only


@dataclass
class DataverseDevOptions:
    """Options for create_dataverse_config()."""

    dataverse_url: str
    token_refresh_interval_ms: int = DEFAULT_TOKEN_REFRESH_INTERVAL_MS
    enable_console_logging: bool = True
    mock_token: Optional[str] = None
    allowed_domains: Optional[List[str]] = None
    proxy_path: str = DEFAULT_PROXY_PATH
    # Prefix the browser script authenticates. Default: derived from proxy_path
    path_prefix: Optional[str] = None
    custom_proxy_options: Dict[str, Any] = field(default_factory=dict)
    additional_paths: List[str] = field(default_factory=list)
    mode: str = DEVELOPMENT_MODE
    # Proxy only: no token endpoint and no script injection
    skip_authentication: bool = False
    resolver: Optional[Any] = field(default=None, repr=False)


@dataclass
class DataverseDevConfig:
    """Everything create_dev_app() wires together."""

    proxy: Dict[str, ProxyRule]
    auth_service: Optional[DataverseAuthService]
    mode: str = DEVELOPMENT_MODE


def create_dataverse_config(options: DataverseDevOptions) -> DataverseDevConfig:
    """
    Build proxy rules and the auth service from validated options.

    With ``skip_authentication`` only the proxy rules are built and
    ``auth_service`` is None.

    Raises:
        ConfigurationError: On invalid URL, interval, mock token, domains or
            a proxy_path that yields no path prefix
    """
    path_prefix = options.path_prefix
    if path_prefix is None:
        try:
            path_prefix = path_prefix_from_proxy_path(options.proxy_path)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    resolved = resolve_setup_options(
        DataverseSetupOptions(
            dataverse_url=options.dataverse_url,
            token_refresh_interval_ms=options.token_refresh_interval_ms,
            enable_console_logging=options.enable_console_logging,
            mock_token=options.mock_token,
            allowed_domains=options.allowed_domains,
            path_prefix=path_prefix,
        )
    )
    try:
        proxy = create_advanced_dataverse_proxy(
            resolved.dataverse_url,
            proxy_path=options.proxy_path,
            custom_proxy_options=options.custom_proxy_options,
            additional_paths=options.additional_paths,
        )
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    if options.skip_authentication:
        logger.debug(f"create_dataverse_config: {len(proxy)} proxy rules, authentication skipped")
        return DataverseDevConfig(proxy=proxy, auth_service=None, mode=options.mode)

    auth_service = DataverseAuthService(
        resolved.dataverse_url,
        token_refresh_interval_ms=resolved.token_refresh_interval_ms,
        enable_console_logging=resolved.enable_console_logging,
        mock_token=resolved.mock_token,
        allowed_domains=resolved.allowed_domains,
        resolver=options.resolver,
        path_prefix=resolved.path_prefix,
    )
    logger.debug(f"create_dataverse_config: {len(proxy)} proxy rules, mode={options.mode}")
    return DataverseDevConfig(proxy=proxy, auth_service=auth_service, mode=options.mode)


def create_dataverse_config_with_defaults(
    url: Optional[str] = None,
    *,
    fallback_url: Optional[str] = None,
    settings: Optional[DataverseDevSettings] = None,
    **overrides: Any,
) -> DataverseDevConfig:
    """
    create_dataverse_config() with values taken from the environment.

    The URL is the first of: ``url``, ``DATAVERSE_URL``, ``fallback_url``.

    Raises:
        ConfigurationError: If no URL is available from any source
    """
    settings = settings or DataverseDevSettings()
    dataverse_url = url or settings.DATAVERSE_URL or fallback_url
    if not dataverse_url:
        raise ConfigurationError(
            "Dataverse URL is required. Pass url, set DATAVERSE_URL, or provide fallback_url."
        )

    values: Mapping[str, Any] = {
        "dataverse_url": dataverse_url,
        "token_refresh_interval_ms": settings.DATAVERSE_TOKEN_REFRESH_INTERVAL_MS,
        "enable_console_logging": settings.DATAVERSE_ENABLE_CONSOLE_LOGGING,
        "mode": settings.DATAVERSE_SERVER_MODE,
        **overrides,
    }
    return create_dataverse_config(DataverseDevOptions(**values))
