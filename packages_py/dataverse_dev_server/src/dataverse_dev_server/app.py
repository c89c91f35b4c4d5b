"""
FastAPI development server that fronts a Dataverse environment.

    config = create_dataverse_config_with_defaults()
    app = create_dev_app(config, index_html=Path("index.html").read_text())

Routes:
- GET /__dataverse_token__  current token (text/plain) or 401; absent when
                            authentication is skipped
- /api/data/...             proxied to the Dataverse environment
- GET /                     index.html with the auth script injected
"""
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.responses import HTMLResponse

from .config import DataverseDevConfig
from .proxy import DataverseProxyMiddleware


def create_dev_app(
    config: DataverseDevConfig,
    index_html: Optional[str] = None,
    upstream_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Wire the token endpoint, proxy middleware and HTML route into an app.

    Args:
        config: Result of create_dataverse_config()
        index_html: Page to serve at ``/``; the auth script is injected once,
            unless authentication is skipped
        upstream_transport: Transport for proxied requests (tests)
    """
    service = config.auth_service
    if service is None:
        app = FastAPI(title="Dataverse dev server")
    else:
        app = FastAPI(title="Dataverse dev server", lifespan=service.lifespan)
        app.include_router(service.router())
    app.state.dataverse_config = config

    app.add_middleware(
        DataverseProxyMiddleware,
        rules=list(config.proxy.values()),
        transport=upstream_transport,
    )

    if index_html is not None:
        page = index_html
        if service is not None:
            page = service.transform_index_html(index_html, config.mode)

        @app.get("/", response_class=HTMLResponse, include_in_schema=False)
        async def index() -> HTMLResponse:
            return HTMLResponse(page)

    return app
