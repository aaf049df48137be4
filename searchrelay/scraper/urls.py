"""Turn URL fragments found inside a page into absolute URLs."""

from __future__ import annotations

import html
import re
from urllib.parse import urljoin, urlsplit

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


def has_explicit_scheme(url: str) -> bool:
    """Return ``True`` if *url* starts with ``http://`` or ``https://``."""
    return bool(_SCHEME_RE.match(url))


def resolve_url(reference: str, base: str) -> str:
    """Resolve *reference* against *base*.

    * Absolute ``http(s)`` references are returned unchanged.
    * Protocol-relative references (``//host/path``) borrow the scheme of
      *base* (``https`` if *base* has none).
    * Everything else follows RFC 3986 resolution via ``urljoin``.

    Never raises: if either URL cannot be parsed, *reference* is returned
    as-is and the caller uses it literally.
    """
    if has_explicit_scheme(reference):
        return reference

    try:
        # Markup attribute values commonly carry ``&amp;`` and stray quotes.
        cleaned = html.unescape(reference).strip().strip("'\"").strip()
        if has_explicit_scheme(cleaned):
            return cleaned
        if cleaned.startswith("//"):
            scheme = urlsplit(base).scheme or "https"
            return f"{scheme}:{cleaned}"
        return urljoin(base, cleaned)
    except (ValueError, TypeError, AttributeError):
        return reference
