"""FastAPI application factory.

The app owns every piece of process state: the shared HTTP client, the token
cache and the state-change store all live on ``app.state`` for the lifetime
of the app instance.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from agent_activity_report import __version__
from agent_activity_report.config import Settings, get_settings
from agent_activity_report.exceptions import AgentReportError
from agent_activity_report.portal import (
    AgentEventsClient,
    AgentStatusClient,
    TokenCache,
    TokenService,
    create_http_client,
)
from agent_activity_report.proxy import StateChangeStore
from agent_activity_report.web.api.proxy import router as proxy_router
from agent_activity_report.web.api.reports import router as reports_router

logger = structlog.get_logger()

STATIC_DIR = Path(__file__).resolve().parent / "static"


def create_app(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    store: StateChangeStore | None = None,
) -> FastAPI:
    """Build the web application.

    Args:
        settings: Application settings. If None, uses default settings.
        transport: Optional upstream transport override, used by tests.
        store: State-change store. A fresh one is created when omitted.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        http = create_http_client(settings, transport)
        tokens = TokenService(http, settings, TokenCache())
        app.state.http = http
        app.state.tokens = tokens
        app.state.status_client = AgentStatusClient(http, settings, tokens)
        app.state.events_client = AgentEventsClient(http, settings, tokens)

        public_url = settings.public_url or f"http://localhost:{settings.port}"
        logger.info("web_app_started", public_url=public_url, upstream=settings.base_url)
        try:
            yield
        finally:
            await http.aclose()
            logger.info("web_app_stopped")

    app = FastAPI(title="Agent Activity Report", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store if store is not None else StateChangeStore()

    @app.exception_handler(AgentReportError)
    async def _report_error(request: Request, exc: AgentReportError) -> JSONResponse:
        logger.error("request_failed", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.include_router(reports_router)
    app.include_router(proxy_router)

    # Mounted last so API routes take precedence over static files.
    app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="static")
    return app
