"""Soft-redirect detection and real-URL extraction.

A *soft redirect* is an HTTP 200 page whose markup sends the browser
elsewhere: a ``<meta http-equiv="refresh">`` tag, a one-line script
navigation, or an interstitial "click here to continue" page.  The plain
HTTP client never sees these, so they are recognised here from the markup.

Every heuristic is a small named function returning a typed optional
result; :func:`is_redirect_page` and :func:`extract_real_url` only encode
the order in which they are tried.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from typing import Callable, Optional
from urllib.parse import parse_qs, unquote, urlsplit

from bs4 import BeautifulSoup

from searchrelay.scraper.urls import has_explicit_scheme, resolve_url

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Pattern tables
# ---------------------------------------------------------------------------

# Pages shorter than this (visible characters) are eligible for the phrase test.
SHORT_PAGE_THRESHOLD = 500

_META_REFRESH_RE = re.compile(
    r"<meta\b[^>]*http-equiv\s*=\s*[\"']?\s*refresh\b", re.IGNORECASE
)

_REFRESH_URL_RE = re.compile(
    r"url\s*=\s*[\"']?\s*([^\"'\s>][^\"'>]*)", re.IGNORECASE
)

# Group 2 is always the quoted literal destination.
SCRIPT_NAVIGATION_PATTERNS = (
    re.compile(
        r"\b(?:window|document|top|self)\.location\s*=\s*([\"'])(.+?)\1",
        re.IGNORECASE,
    ),
    re.compile(r"\blocation\.href\s*=\s*([\"'])(.+?)\1", re.IGNORECASE),
    re.compile(r"\blocation\.replace\(\s*([\"'])(.+?)\1\s*\)", re.IGNORECASE),
)

REDIRECT_PHRASE_PATTERNS = (
    re.compile(r"you are being redirected to", re.IGNORECASE),
    re.compile(r"redirecting you to", re.IGNORECASE),
    re.compile(r"automatic redirect", re.IGNORECASE),
    re.compile(r"if you are not redirected.{0,120}?click", re.IGNORECASE),
    re.compile(
        r"please click here if the page does not redirect automatically",
        re.IGNORECASE,
    ),
)

INTERSTITIAL_LINK_PHRASES = ("click here", "continue", "proceed")

# Search-engine click trackers that carry the destination in ``u``.
CLICK_TRACKER_PATHS = ("/ck/a", "/url", "/l/", "/link")

_STRIP_BLOCKS_RE = re.compile(
    r"<(script|style|noscript)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL
)
_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------

def visible_text(markup: str) -> str:
    """Return *markup* with scripts, styles and tags removed, whitespace collapsed."""
    text = _STRIP_BLOCKS_RE.sub(" ", markup)
    text = _TAG_RE.sub(" ", text)
    return _WS_RE.sub(" ", text).strip()


def has_meta_refresh(markup: str) -> bool:
    return bool(_META_REFRESH_RE.search(markup))


def find_script_navigation(markup: str) -> Optional[str]:
    """Return the literal target of the first script navigation, if any."""
    for pattern in SCRIPT_NAVIGATION_PATTERNS:
        match = pattern.search(markup)
        if match:
            return match.group(2).strip()
    return None


def has_redirect_phrase(text: str) -> bool:
    return any(pattern.search(text) for pattern in REDIRECT_PHRASE_PATTERNS)


def is_redirect_page(markup: str, source_url: str) -> bool:
    """Return ``True`` if *markup* fetched from *source_url* is a soft redirect.

    Meta refresh and script navigation are structural signals and win
    regardless of page length.  Redirect wording only counts on short
    pages: long articles mention redirects all the time.
    """
    if has_meta_refresh(markup):
        logger.debug("Meta refresh found on %s", source_url)
        return True
    if find_script_navigation(markup) is not None:
        logger.debug("Script navigation found on %s", source_url)
        return True

    text = visible_text(markup)
    if len(text) < SHORT_PAGE_THRESHOLD and has_redirect_phrase(text):
        logger.debug("Interstitial wording found on short page %s", source_url)
        return True
    return False


# ---------------------------------------------------------------------------
# Extraction strategies
# ---------------------------------------------------------------------------

def meta_refresh_target(markup: str, source_url: str) -> Optional[str]:
    """Destination of ``<meta http-equiv="refresh" content="N;url=...">``."""
    soup = BeautifulSoup(markup, "html.parser")
    for meta in soup.find_all("meta"):
        if str(meta.get("http-equiv", "")).strip().lower() != "refresh":
            continue
        match = _REFRESH_URL_RE.search(str(meta.get("content", "")))
        if match:
            return resolve_url(match.group(1).strip(), source_url)
    return None


def script_navigation_target(markup: str, source_url: str) -> Optional[str]:
    target = find_script_navigation(markup)
    if target:
        return resolve_url(target, source_url)
    return None


def interstitial_link_target(markup: str, source_url: str) -> Optional[str]:
    """``href`` of the first "click here" / "continue" / "proceed" anchor."""
    soup = BeautifulSoup(markup, "html.parser")
    for anchor in soup.find_all("a", href=True):
        label = anchor.get_text(" ", strip=True).lower()
        if not any(phrase in label for phrase in INTERSTITIAL_LINK_PHRASES):
            continue
        candidate = resolve_url(anchor["href"], source_url)
        if candidate != source_url and has_explicit_scheme(candidate):
            return candidate
    return None


def _decode_base64(value: str) -> Optional[str]:
    # Bing prefixes the encoded destination with "a1".
    if value.startswith("a1"):
        value = value[2:]
    padded = value + "=" * (-len(value) % 4)
    try:
        return base64.urlsafe_b64decode(padded).decode("utf-8")
    except (binascii.Error, ValueError):
        return None


def click_tracker_target(markup: str, source_url: str) -> Optional[str]:
    """Decode the ``u`` parameter of a search-engine click-tracking URL.

    Tries base64 first and falls back to percent-decoding.  Only a decoded
    value with an explicit scheme is accepted, since the provider's choice
    of encoding is not validated otherwise.
    """
    parts = urlsplit(source_url)
    if not any(parts.path.startswith(path) for path in CLICK_TRACKER_PATHS):
        return None
    values = parse_qs(parts.query).get("u")
    if not values:
        return None

    raw = values[0].strip()
    decoded = _decode_base64(raw)
    if decoded and has_explicit_scheme(decoded):
        return decoded
    decoded = unquote(raw)
    if has_explicit_scheme(decoded):
        return decoded
    return None


_STRATEGIES: tuple[Callable[[str, str], Optional[str]], ...] = (
    meta_refresh_target,
    script_navigation_target,
    interstitial_link_target,
    click_tracker_target,
)


def extract_real_url(markup: str, source_url: str) -> Optional[str]:
    """Return the true destination of a soft-redirect page, or ``None``.

    Strategies run in a fixed order and the first absolute result that
    differs from *source_url* wins.  A failing strategy counts as "no
    candidate"; nothing is raised to the caller.
    """
    for strategy in _STRATEGIES:
        try:
            candidate = strategy(markup, source_url)
        except Exception as exc:
            logger.debug("%s failed on %s: %r", strategy.__name__, source_url, exc)
            continue
        if candidate and candidate != source_url:
            logger.debug("%s -> %s", strategy.__name__, candidate)
            return candidate
    return None
