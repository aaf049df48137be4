"""Single-page HTTP retrieval with a body cap and protocol redirect following."""

from __future__ import annotations

import logging

import httpx

from searchrelay.config import settings
from searchrelay.scraper.models import FetchAttempt, FetchStatus

logger = logging.getLogger(__name__)

_BROWSER_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0.0.0 Safari/537.36"
)

_DEFAULT_HEADERS = {
    "User-Agent": _BROWSER_UA,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
}


def build_client() -> httpx.Client:
    """Return an ``httpx.Client`` configured for page retrieval.

    The caller owns the client and must close it (use it as a context
    manager).  One client serves one resolution chain.
    """
    return httpx.Client(
        headers=_DEFAULT_HEADERS,
        timeout=settings.fetch_timeout,
        follow_redirects=True,
        max_redirects=settings.max_protocol_redirects,
    )


def _read_capped(response: httpx.Response, limit: int) -> bytes:
    """Read at most *limit* bytes of the (decoded) response body."""
    chunks: list[bytes] = []
    size = 0
    for chunk in response.iter_bytes():
        chunks.append(chunk)
        size += len(chunk)
        if size >= limit:
            break
    return b"".join(chunks)[:limit]


def _decode(raw: bytes, encoding: str | None) -> str:
    try:
        return raw.decode(encoding or "utf-8", errors="replace")
    except LookupError:
        # Server advertised a charset Python does not know.
        return raw.decode("utf-8", errors="replace")


def fetch_page(client: httpx.Client, url: str) -> FetchAttempt:
    """GET *url* and return a :class:`FetchAttempt`.

    Protocol-level redirects are followed by the client itself; any
    terminal status from 200 to 399 counts as success.  Failures are
    reported through :attr:`FetchAttempt.status`, never raised.
    """
    try:
        with client.stream("GET", url) as response:
            final_url = str(response.url)
            if not 200 <= response.status_code < 400:
                logger.info("HTTP %s for %s", response.status_code, url)
                return FetchAttempt(
                    url=url,
                    status=FetchStatus.HTTP_ERROR,
                    final_url=final_url,
                    status_code=response.status_code,
                    error=f"HTTP {response.status_code}",
                )
            raw = _read_capped(response, settings.max_body_bytes)
            body = _decode(raw, response.encoding)
            return FetchAttempt(
                url=url,
                status=FetchStatus.OK,
                body=body,
                final_url=final_url,
                status_code=response.status_code,
            )
    except httpx.TimeoutException as exc:
        logger.info("Timed out fetching %s: %s", url, exc)
        return FetchAttempt(
            url=url, status=FetchStatus.TIMEOUT, final_url=url, error=str(exc)
        )
    except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as exc:
        logger.info("Failed to fetch %s: %r", url, exc)
        return FetchAttempt(
            url=url,
            status=FetchStatus.TRANSPORT_ERROR,
            final_url=url,
            error=str(exc) or exc.__class__.__name__,
        )
