"""Search, then resolve every result page concurrently.

Each search hit gets its own resolution chain (own visited set, own HTTP
client).  Chains run in a ``ThreadPoolExecutor`` sized to the result set,
capped at ``settings.max_concurrent_fetches``; ``Executor.map`` keeps the
outcomes in search-rank order whatever order they complete in.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from typing import Any, Optional

from searchrelay.config import settings
from searchrelay.scraper.models import FETCH_FAILED, ResolutionOutcome
from searchrelay.scraper.resolver import PageResolver
from searchrelay.search.providers import SearchProvider, SearchResult, build_default_provider

logger = logging.getLogger(__name__)


@dataclass
class RelayResult:
    """A search hit together with the content of the page it leads to."""

    title: str
    url: str
    description: str
    content: str
    final_url: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def clamp_limit(limit: Optional[int]) -> int:
    """Default a missing limit and keep it within ``1..settings.max_results``."""
    if not limit:
        limit = settings.default_results
    return max(1, min(limit, settings.max_results))


def resolve_all(
    urls: list[str],
    resolver: Optional[PageResolver] = None,
    max_length: Optional[int] = None,
    hop_budget: Optional[int] = None,
) -> list[ResolutionOutcome]:
    """Resolve *urls* concurrently; outcomes are returned in input order."""
    if not urls:
        return []
    resolver = resolver or PageResolver()

    def _one(url: str) -> ResolutionOutcome:
        if not url:
            return ResolutionOutcome(content=FETCH_FAILED, final_url=url)
        return resolver.resolve(url, hop_budget=hop_budget, max_length=max_length)

    workers = max(1, min(len(urls), settings.max_concurrent_fetches))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(_one, urls))


def search_and_fetch(
    query: str,
    limit: Optional[int] = None,
    *,
    provider: Optional[SearchProvider] = None,
    resolver: Optional[PageResolver] = None,
    max_content_length: Optional[int] = None,
    hop_budget: Optional[int] = None,
) -> list[RelayResult]:
    """Run *query* and attach the resolved page content to every hit.

    Raises:
        SearchError: If the search provider fails.  Page-level problems
            never raise; they show up as sentinel ``content``.
    """
    limit = clamp_limit(limit)
    provider = provider or build_default_provider()

    hits: list[SearchResult] = provider.search(query, max_results=limit)
    outcomes = resolve_all(
        [hit.url for hit in hits],
        resolver=resolver,
        max_length=max_content_length,
        hop_budget=hop_budget,
    )
    fetched = sum(1 for o in outcomes if not o.failed)
    logger.info("Resolved %d/%d result page(s) for %r", fetched, len(hits), query)

    return [
        RelayResult(
            title=hit.title,
            url=hit.url,
            description=hit.description,
            content=outcome.content,
            final_url=outcome.final_url,
        )
        for hit, outcome in zip(hits, outcomes)
    ]
