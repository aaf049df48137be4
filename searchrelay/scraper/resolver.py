"""Fetch-and-follow: resolve a search-result URL to the page worth reading.

The resolver fetches a URL, asks :mod:`searchrelay.scraper.redirects`
whether the page is a soft redirect, and if so follows the recovered
destination.  The loop is bounded twice:

* ``remaining_hops`` drops by one on every soft-redirect follow and the
  chain stops at zero;
* every URL is recorded in the chain's visited set *before* it is fetched,
  so a destination seen earlier in the same chain is never fetched again.

Whatever happens, :meth:`PageResolver.resolve` returns a
:class:`ResolutionOutcome`; transport failures, loops and exhausted budgets
are reported through sentinel content rather than exceptions.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import httpx

from searchrelay.config import settings
from searchrelay.scraper.extractor import extract_content
from searchrelay.scraper.fetcher import build_client, fetch_page
from searchrelay.scraper.models import (
    CIRCULAR_REDIRECT,
    FETCH_FAILED,
    REDIRECT_LIMIT_EXCEEDED,
    ResolutionContext,
    ResolutionOutcome,
)
from searchrelay.scraper.redirects import extract_real_url, is_redirect_page

logger = logging.getLogger(__name__)


class PageResolver:
    """Resolves URLs through protocol and soft redirects to clean content.

    Args:
        client_factory: Zero-argument callable returning a fresh
            ``httpx.Client``.  One client is opened per :meth:`resolve`
            call, so concurrent chains never share connection state.
        hop_budget: Default soft-redirect budget per chain.
        max_length: Default content length budget.
    """

    def __init__(
        self,
        client_factory: Callable[[], httpx.Client] = build_client,
        hop_budget: Optional[int] = None,
        max_length: Optional[int] = None,
    ) -> None:
        self._client_factory = client_factory
        self._hop_budget = settings.max_soft_redirects if hop_budget is None else hop_budget
        self._max_length = settings.max_content_length if max_length is None else max_length

    def resolve(
        self,
        url: str,
        hop_budget: Optional[int] = None,
        max_length: Optional[int] = None,
    ) -> ResolutionOutcome:
        """Follow *url* to its final page and return the extracted content."""
        context = ResolutionContext(
            remaining_hops=self._hop_budget if hop_budget is None else hop_budget
        )
        limit = self._max_length if max_length is None else max_length

        with self._client_factory() as client:
            return self._follow(client, url, context, limit)

    def _follow(
        self,
        client: httpx.Client,
        url: str,
        context: ResolutionContext,
        max_length: int,
    ) -> ResolutionOutcome:
        current = url
        while True:
            if context.remaining_hops <= 0:
                logger.warning("Redirect budget exhausted at %s (chain: %s)", current, context.chain)
                return _outcome(REDIRECT_LIMIT_EXCEEDED, current, context)
            if context.has_visited(current):
                logger.warning("Circular redirect at %s", current)
                return _outcome(CIRCULAR_REDIRECT, current, context)
            context.visit(current)

            attempt = fetch_page(client, current)
            if not attempt.ok:
                return _outcome(FETCH_FAILED, current, context)

            landed = attempt.final_url or current
            markup = attempt.body

            if is_redirect_page(markup, landed):
                target = extract_real_url(markup, landed)
                if target is not None and target != landed:
                    if context.has_visited(target):
                        logger.warning("Circular redirect: %s points back to %s", landed, target)
                        return _outcome(CIRCULAR_REDIRECT, landed, context)
                    logger.info("Soft redirect %s -> %s", landed, target)
                    context.remaining_hops -= 1
                    current = target
                    continue
                # Unresolvable or self-pointing redirect page: report it as-is.
                logger.debug("Redirect page %s has no usable target", landed)

            return _outcome(extract_content(markup, max_length), landed, context)


def _outcome(content: str, final_url: str, context: ResolutionContext) -> ResolutionOutcome:
    return ResolutionOutcome(content=content, final_url=final_url, chain=tuple(context.chain))


def resolve_page(
    url: str,
    hop_budget: Optional[int] = None,
    max_length: Optional[int] = None,
) -> ResolutionOutcome:
    """Resolve *url* with a default :class:`PageResolver`."""
    return PageResolver().resolve(url, hop_budget=hop_budget, max_length=max_length)
