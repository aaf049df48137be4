"""Centralised settings for the SearchRelay server.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

_LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Search provider (Serper)
    # ------------------------------------------------------------------
    serper_api_key: str = field(
        default_factory=lambda: os.environ.get("SERPER_API_KEY", "")
    )
    serper_endpoint: str = field(
        default_factory=lambda: os.environ.get(
            "SERPER_ENDPOINT", "https://google.serper.dev/search"
        )
    )
    search_timeout: float = field(
        default_factory=lambda: float(os.environ.get("SEARCH_TIMEOUT", "10.0"))
    )
    search_rate_limit_ms: int = field(
        default_factory=lambda: int(os.environ.get("SEARCH_RATE_LIMIT_MS", "500"))
    )
    default_results: int = field(
        default_factory=lambda: int(os.environ.get("DEFAULT_RESULTS", "5"))
    )
    max_results: int = field(
        default_factory=lambda: int(os.environ.get("MAX_RESULTS", "10"))
    )

    # ------------------------------------------------------------------
    # Page fetching & redirect resolution
    # ------------------------------------------------------------------
    fetch_timeout: float = field(
        default_factory=lambda: float(os.environ.get("FETCH_TIMEOUT", "5.0"))
    )
    max_body_bytes: int = field(
        default_factory=lambda: int(os.environ.get("MAX_BODY_BYTES", str(1024 * 1024)))
    )
    max_protocol_redirects: int = field(
        default_factory=lambda: int(os.environ.get("MAX_PROTOCOL_REDIRECTS", "10"))
    )
    max_soft_redirects: int = field(
        default_factory=lambda: int(os.environ.get("MAX_SOFT_REDIRECTS", "5"))
    )
    max_concurrent_fetches: int = field(
        default_factory=lambda: int(os.environ.get("MAX_CONCURRENT_FETCHES", "10"))
    )

    # ------------------------------------------------------------------
    # Content extraction
    # ------------------------------------------------------------------
    max_content_length: int = field(
        default_factory=lambda: int(os.environ.get("MAX_CONTENT_LENGTH", "50000"))
    )

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------
    mcp_http_mode: bool = field(default_factory=lambda: _env_flag("MCP_HTTP_MODE"))
    host: str = field(default_factory=lambda: os.environ.get("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.environ.get("PORT", "3000")))
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )

    @property
    def search_rate_limit(self) -> float:
        """Minimum spacing between outbound search queries, in seconds."""
        return max(self.search_rate_limit_ms, 0) / 1000.0


def configure_logging(level: str | None = None) -> None:
    """Route log records to stderr.

    stdout is reserved for protocol frames when the server runs in stdio
    mode, so nothing here may write to it.
    """
    name = (level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.INFO),
        format=_LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
    # httpx logs every request at INFO; keep it quiet unless debugging.
    logging.getLogger("httpx").setLevel(logging.WARNING)


# Module-level singleton — import this everywhere:
#   from searchrelay.config import settings
settings = Settings()
