"""Web search provider abstraction and the Serper implementation.

All providers share a common interface:
``search(query, max_results) -> list[SearchResult]``.  Unlike page fetching,
a failed search is a real error for the caller, so providers raise
:class:`SearchError` instead of returning an empty list.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, Optional

import httpx

from searchrelay.config import settings
from searchrelay.search.rate_limit import RateLimiter

logger = logging.getLogger(__name__)


class SearchError(Exception):
    """Raised when a search query cannot be completed."""


@dataclass
class SearchResult:
    """One organic search hit."""

    title: str
    url: str
    description: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------

class SearchProvider(ABC):
    """Abstract base class for a single search provider."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable provider name."""

    @abstractmethod
    def search(self, query: str, max_results: int = 5) -> list[SearchResult]:
        """Return up to *max_results* hits.  Raises :class:`SearchError` on failure."""


# ---------------------------------------------------------------------------
# Serper (Google results over a REST API)
# ---------------------------------------------------------------------------

# Shared by every provider built without an explicit limiter so the
# configured query rate holds process-wide.
_default_limiter = RateLimiter(settings.search_rate_limit)


class SerperSearchProvider(SearchProvider):
    """Serper.dev search API.  Requires ``SERPER_API_KEY``."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> None:
        self._api_key = settings.serper_api_key if api_key is None else api_key
        self._limiter = rate_limiter or _default_limiter

    @property
    def name(self) -> str:
        return "Serper"

    def search(self, query: str, max_results: int = 5) -> list[SearchResult]:
        if not self._api_key:
            raise SearchError("SERPER_API_KEY environment variable is required")

        logger.info("[%s] Performing search for: %r (limit: %d)", self.name, query, max_results)
        self._limiter.wait()
        try:
            with httpx.Client(timeout=settings.search_timeout) as client:
                resp = client.post(
                    settings.serper_endpoint,
                    json={"q": query, "num": max_results},
                    headers={
                        "X-API-KEY": self._api_key,
                        "Content-Type": "application/json",
                    },
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as exc:
            raise SearchError(
                f"Request failed with status code {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise SearchError(str(exc) or exc.__class__.__name__) from exc
        except ValueError as exc:
            raise SearchError(f"Invalid response from search API: {exc}") from exc
        if not isinstance(data, dict):
            raise SearchError("Invalid response from search API: expected a JSON object")

        results = [
            SearchResult(
                title=item.get("title") or "No title",
                url=item.get("link") or "",
                description=item.get("snippet") or "No description available",
            )
            for item in (data.get("organic") or [])[:max_results]
            if isinstance(item, dict)
        ]
        logger.info("[%s] Found %d results", self.name, len(results))
        return results


def build_default_provider() -> SearchProvider:
    return SerperSearchProvider()
