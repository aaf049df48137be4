"""Data models for the page-resolution pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

# Sentinel contents returned instead of page text for terminal failures.
REDIRECT_LIMIT_EXCEEDED = "[Redirection limit exceeded]"
CIRCULAR_REDIRECT = "[Circular redirection detected]"
FETCH_FAILED = "[Content could not be fetched]"

SENTINELS = frozenset({REDIRECT_LIMIT_EXCEEDED, CIRCULAR_REDIRECT, FETCH_FAILED})


class FetchStatus(str, Enum):
    """How a single HTTP exchange ended."""

    OK = "ok"
    HTTP_ERROR = "http_error"
    TIMEOUT = "timeout"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class FetchAttempt:
    """One network retrieval.

    ``final_url`` is where the transport settled after following protocol
    (3xx) redirects; soft redirects are resolved one level up.
    """

    url: str
    status: FetchStatus
    body: str = ""
    final_url: str = ""
    status_code: Optional[int] = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status is FetchStatus.OK


@dataclass
class ResolutionContext:
    """State threaded through one top-level resolution chain.

    ``visited`` is a dict used as an insertion-ordered set.  It only grows,
    and a URL is recorded before it is fetched.
    """

    remaining_hops: int
    visited: Dict[str, None] = field(default_factory=dict)

    def visit(self, url: str) -> None:
        self.visited[url] = None

    def has_visited(self, url: str) -> bool:
        return url in self.visited

    @property
    def chain(self) -> List[str]:
        return list(self.visited)


@dataclass(frozen=True)
class ResolutionOutcome:
    """Terminal result of resolving one URL."""

    content: str
    final_url: str
    chain: Tuple[str, ...] = ()

    @property
    def failed(self) -> bool:
        """``True`` when ``content`` is one of the sentinel strings."""
        return self.content in SENTINELS
