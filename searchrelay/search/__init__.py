"""Search package — provider client and query throttling."""

from searchrelay.search.providers import (
    SearchError,
    SearchProvider,
    SearchResult,
    SerperSearchProvider,
    build_default_provider,
)
from searchrelay.search.rate_limit import RateLimiter

__all__ = [
    "SearchError",
    "SearchProvider",
    "SearchResult",
    "SerperSearchProvider",
    "RateLimiter",
    "build_default_provider",
]
