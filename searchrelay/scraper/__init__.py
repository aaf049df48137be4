"""Scraper package — page fetch, soft-redirect resolution & content extraction."""

from searchrelay.scraper.extractor import TRUNCATION_MARKER, extract_content
from searchrelay.scraper.fetcher import build_client, fetch_page
from searchrelay.scraper.models import (
    CIRCULAR_REDIRECT,
    FETCH_FAILED,
    REDIRECT_LIMIT_EXCEEDED,
    FetchAttempt,
    FetchStatus,
    ResolutionContext,
    ResolutionOutcome,
)
from searchrelay.scraper.redirects import extract_real_url, is_redirect_page
from searchrelay.scraper.resolver import PageResolver, resolve_page
from searchrelay.scraper.urls import resolve_url

__all__ = [
    "build_client",
    "fetch_page",
    "extract_content",
    "extract_real_url",
    "is_redirect_page",
    "resolve_url",
    "resolve_page",
    "PageResolver",
    "FetchAttempt",
    "FetchStatus",
    "ResolutionContext",
    "ResolutionOutcome",
    "TRUNCATION_MARKER",
    "REDIRECT_LIMIT_EXCEEDED",
    "CIRCULAR_REDIRECT",
    "FETCH_FAILED",
]
