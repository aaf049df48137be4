"""SearchRelay CLI — entry-point for all operations.

Usage:
    python cli/main.py --help

Commands:
    search    → query Serper and print each result with its page content
    resolve   → follow a single URL through soft redirects
    serve     → run the tool server (HTTP or stdio)
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that
# `from searchrelay.xxx import ...` works when the CLI is invoked as
# `python cli/main.py` from any working directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json
from typing import Optional

import typer

from searchrelay.config import configure_logging, settings

app = typer.Typer(
    name="searchrelay",
    help="SearchRelay CLI.",
    no_args_is_help=True,
)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level (default: $LOG_LEVEL or INFO)."
    ),
) -> None:
    """Web search relay with soft-redirect resolution."""
    configure_logging(log_level)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------
@app.command("search")
def search(
    query: str = typer.Option(..., help="Search query."),
    limit: int = typer.Option(
        settings.default_results, min=1, help="Number of results (capped at MAX_RESULTS)."
    ),
    max_length: Optional[int] = typer.Option(
        None, "--max-length", min=1, help="Per-page content budget in characters."
    ),
) -> None:
    """Search the web and print the results, with page content, as JSON."""
    from searchrelay.relay import search_and_fetch
    from searchrelay.search import SearchError

    try:
        results = search_and_fetch(query, limit, max_content_length=max_length)
    except SearchError as exc:
        typer.echo(f"[search] Search error: {exc}", err=True)
        raise typer.Exit(1)

    typer.echo(json.dumps([r.to_dict() for r in results], indent=2, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Resolve
# ---------------------------------------------------------------------------
@app.command("resolve")
def resolve(
    url: str = typer.Option(..., help="URL to resolve."),
    hops: Optional[int] = typer.Option(
        None, "--hops", min=0, help="Soft-redirect budget (default: MAX_SOFT_REDIRECTS)."
    ),
    max_length: Optional[int] = typer.Option(
        None, "--max-length", min=1, help="Content budget in characters."
    ),
) -> None:
    """Follow a URL through soft redirects and print the extracted text."""
    from searchrelay.scraper import resolve_page

    typer.echo(f"[resolve] Fetching {url!r} …")
    outcome = resolve_page(url, hop_budget=hops, max_length=max_length)

    typer.echo(f"[resolve] Final URL : {outcome.final_url}")
    typer.echo(f"[resolve] Chain     : {' -> '.join(outcome.chain) or '(none)'}")
    typer.echo(f"[resolve] Chars     : {len(outcome.content)}")
    typer.echo("")
    typer.echo(outcome.content)
    if outcome.failed:
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Serve
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    http: Optional[bool] = typer.Option(
        None, "--http/--stdio", help="Transport (default: $MCP_HTTP_MODE, else stdio)."
    ),
    host: str = typer.Option(settings.host, help="Bind address in HTTP mode."),
    port: int = typer.Option(settings.port, help="Port in HTTP mode."),
) -> None:
    """Run the search tool server."""
    use_http = settings.mcp_http_mode if http is None else http

    if use_http:
        import uvicorn

        from searchrelay.api.app import create_app

        settings.port = port
        uvicorn.run(create_app(), host=host, port=port)
        return

    from searchrelay.server import serve_stdio

    try:
        serve_stdio()
    except KeyboardInterrupt:
        typer.echo("Received SIGINT, shutting down gracefully...", err=True)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
