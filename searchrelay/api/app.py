"""FastAPI application factory.

Routers
-------
    /health    — liveness probe
    /mcp       — MCP streamable-HTTP endpoint (POST messages, GET event
                 stream, DELETE to end a session)
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from searchrelay.api.routers import health as health_router
from searchrelay.config import settings
from searchrelay.server import build_server

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    server = build_server()
    # Must be built before ``server.session_manager`` is available.
    mcp_app = server.streamable_http_app()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Serper Search MCP Server running on port %d in HTTP mode", settings.port)
        # Mounted sub-apps don't get their own lifespan run.
        async with server.session_manager.run():
            yield
        logger.info("Shutting down gracefully...")

    app = FastAPI(
        title="SearchRelay",
        description=(
            "Web search relay: queries Serper, follows each result through "
            "protocol and soft redirects, and returns cleaned page text."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(health_router.router, prefix="/health", tags=["health"])
    # Registered last so /health wins; the MCP app serves its own /mcp route.
    app.mount("/", mcp_app)

    return app


# Module-level instance used by uvicorn:
#   uvicorn searchrelay.api.app:app
app = create_app()
