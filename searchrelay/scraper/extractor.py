"""Content extraction: turns page markup into bounded, readable text."""

from __future__ import annotations

import logging
import re
from typing import Optional

from bs4 import BeautifulSoup

from searchrelay.config import settings

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n\n[Content truncated]"

# A boundary-aligned cut must keep at least this share of the budget.
_MIN_CUT_RATIO = 0.8

_NOISE_TAGS = [
    "script", "style", "noscript", "nav", "header", "footer", "aside", "iframe",
]

NOISE_SELECTORS = (
    ".ad",
    ".ads",
    ".advert",
    ".advertisement",
    "[class*='advertisement']",
    "[id^='ad-']",
    ".sidebar",
    "#sidebar",
    "[role='complementary']",
    ".cookie-banner",
    "form[role='search']",
    "form.search-form",
)

# Tried in order; the first selector with at least one match wins.
CONTENT_SELECTORS = (
    "main",
    "[role='main']",
    "article",
    "[role='article']",
    ".post-content",
    ".entry-content",
    ".article-content",
    ".article-body",
    "#main-content",
    "#content",
    ".content",
    ".post",
    ".entry",
)

_BLOCK_TAGS = [
    "p", "div", "section", "li", "tr", "br", "blockquote", "pre",
    "h1", "h2", "h3", "h4", "h5", "h6", "table", "ul", "ol", "dd", "dt",
]

_HSPACE_RE = re.compile(r"[^\S\n]+")
_BLANK_RUN_RE = re.compile(r"\n{3,}")
_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")

# Private-use character marking the end of a block element.
_BLOCK_MARK = "\ue000"
_BREAKS_RE = re.compile(r"\s*\ue000[\s\ue000]*")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _strip_noise(soup: BeautifulSoup) -> None:
    doomed = list(soup(_NOISE_TAGS))
    for selector in NOISE_SELECTORS:
        doomed.extend(soup.select(selector))
    for tag in doomed:
        # Nested matches go away with their ancestor.
        if not tag.decomposed:
            tag.decompose()


def _mark_blocks(soup: BeautifulSoup) -> None:
    """Tag the end of every block element so paragraphs survive get_text()."""
    for tag in soup.find_all(_BLOCK_TAGS):
        tag.append(_BLOCK_MARK)


def _select_region(soup: BeautifulSoup):
    for selector in CONTENT_SELECTORS:
        match = soup.select_one(selector)
        if match is not None:
            logger.debug("Content region selected by %r", selector)
            return match
    return soup.body or soup


def _fallback_text(markup: str) -> str:
    return _TAG_RE.sub(" ", markup)


def _flatten(text: str) -> str:
    """Source whitespace is insignificant; only block ends become line breaks."""
    text = _WS_RE.sub(" ", text)
    return _BREAKS_RE.sub("\n", text)


def normalize_whitespace(text: str) -> str:
    """Collapse horizontal whitespace, trim lines and squeeze blank-line runs."""
    text = _HSPACE_RE.sub(" ", text)
    lines = [line.strip() for line in text.split("\n")]
    text = "\n".join(lines)
    return _BLANK_RUN_RE.sub("\n\n", text).strip()


def truncate_content(text: str, max_length: int) -> str:
    """Cut *text* down to *max_length* characters plus the truncation marker.

    Prefers the last sentence end (``". "``) or line break inside the
    budget, as long as that keeps at least 80% of it; otherwise cuts hard.
    """
    if len(text) <= max_length:
        return text

    sentence_end = text.rfind(". ", 0, max_length + 1)
    cut = sentence_end + 1 if sentence_end != -1 else -1
    cut = max(cut, text.rfind("\n", 0, max_length))

    if cut >= max_length * _MIN_CUT_RATIO:
        head = text[:cut]
    else:
        head = text[:max_length]
    return head.rstrip() + TRUNCATION_MARKER


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_text(markup: str) -> str:
    """Return the normalised text of the most relevant region of *markup*.

    Malformed markup that the parser rejects degrades to a tag-stripped
    copy of the whole input.
    """
    try:
        soup = BeautifulSoup(markup, "html.parser")
        _strip_noise(soup)
        _mark_blocks(soup)
        text = _select_region(soup).get_text()
    except Exception as exc:
        logger.debug("Markup could not be parsed, stripping tags: %r", exc)
        text = _fallback_text(markup)
    return normalize_whitespace(_flatten(text))


def extract_content(markup: str, max_length: Optional[int] = None) -> str:
    """Extract clean, length-bounded text from *markup*."""
    limit = settings.max_content_length if max_length is None else max_length
    return truncate_content(extract_text(markup), limit)
