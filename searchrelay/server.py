"""MCP tool server exposing the ``search`` tool.

Built on the ``mcp`` SDK's :class:`FastMCP`.  The same server object runs
over stdio (``build_server().run("stdio")``) or is mounted into the FastAPI
app as a streamable-HTTP endpoint at ``/mcp``.
"""

from __future__ import annotations

import json
import logging
from functools import partial
from typing import Annotated, Optional

import anyio
from mcp.server.fastmcp import FastMCP
from mcp.types import CallToolResult, TextContent
from pydantic import Field

from searchrelay.config import settings
from searchrelay.relay import clamp_limit, search_and_fetch
from searchrelay.search.providers import SearchError

logger = logging.getLogger(__name__)

SERVER_NAME = "serper-search"
SEARCH_TOOL_NAME = "search"
SEARCH_TOOL_DESCRIPTION = (
    "Search the web using Serper API and return each result with the "
    "cleaned text of the page it leads to"
)


def _text_result(text: str, is_error: bool = False) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=text)], isError=is_error)


async def run_search_tool(query: str, limit: Optional[int] = None) -> CallToolResult:
    """Execute the ``search`` tool and wrap its output as tool content.

    Page fetching is blocking, so the relay runs in a worker thread.
    """
    limit = clamp_limit(limit)
    try:
        results = await anyio.to_thread.run_sync(partial(search_and_fetch, query, limit))
    except SearchError as exc:
        logger.error("Search error: %s", exc)
        return _text_result(f"Search error: {exc}", is_error=True)

    payload = [r.to_dict() for r in results]
    return _text_result(json.dumps(payload, indent=2, ensure_ascii=False))


def build_server(
    host: Optional[str] = None,
    port: Optional[int] = None,
) -> FastMCP:
    """Return a :class:`FastMCP` server with the ``search`` tool registered.

    Each call builds a fresh server; a streamable-HTTP session manager can
    only be started once, so every app instance needs its own.
    """
    server = FastMCP(
        SERVER_NAME,
        host=settings.host if host is None else host,
        port=settings.port if port is None else port,
        streamable_http_path="/mcp",
        json_response=True,
    )

    @server.tool(
        name=SEARCH_TOOL_NAME,
        description=SEARCH_TOOL_DESCRIPTION,
        structured_output=False,
    )
    async def search(
        query: Annotated[str, Field(description="Search query")],
        limit: Annotated[
            Optional[int],
            Field(
                ge=1,
                description=(
                    f"Maximum number of results to return "
                    f"(default: {settings.default_results}, at most {settings.max_results})"
                ),
            ),
        ] = None,
    ) -> CallToolResult:
        return await run_search_tool(query, limit)

    return server


def serve_stdio() -> None:
    """Serve the tool over stdin/stdout until the client disconnects."""
    logger.info(
        "Serper Search MCP Server running in stdio mode (max %d results)",
        settings.max_results,
    )
    build_server().run("stdio")
