"""Tests for URL resolution, soft-redirect detection and real-URL extraction.

Everything here is pure string processing, so no HTTP mocking is needed.
``BeautifulSoup`` is patched in the containment tests to simulate a parser
crash inside an extraction strategy.
"""

from __future__ import annotations

import base64
from unittest.mock import patch

import pytest

from searchrelay.scraper.redirects import (
    SHORT_PAGE_THRESHOLD,
    click_tracker_target,
    extract_real_url,
    find_script_navigation,
    has_meta_refresh,
    interstitial_link_target,
    is_redirect_page,
    meta_refresh_target,
    script_navigation_target,
    visible_text,
)
from searchrelay.scraper.urls import has_explicit_scheme, resolve_url


_SOURCE = "https://example.com/start"

_LONG_ARTICLE = (
    "<html><body><article>"
    + "<p>Battery chemistry has improved steadily over the last decade.</p>" * 20
    + "</article><footer>This site uses an automatic redirect for old links.</footer>"
    "</body></html>"
)


def _bing_u(target: str) -> str:
    return "a1" + base64.urlsafe_b64encode(target.encode()).decode().rstrip("=")


# ---------------------------------------------------------------------------
# resolve_url
# ---------------------------------------------------------------------------

class TestResolveUrl:
    @pytest.mark.parametrize("base", [_SOURCE, "", "not a url", "http://[broken"])
    def test_absolute_reference_unchanged_for_any_base(self, base: str) -> None:
        ref = "https://other.org/a?b=1#c"
        assert resolve_url(ref, base) == ref

    def test_protocol_relative_takes_base_scheme(self) -> None:
        assert resolve_url("//cdn.example.org/x", "http://example.com/") == "http://cdn.example.org/x"
        assert resolve_url("//cdn.example.org/x", _SOURCE) == "https://cdn.example.org/x"

    def test_root_relative(self) -> None:
        assert resolve_url("/next", _SOURCE) == "https://example.com/next"

    def test_dot_segments(self) -> None:
        base = "https://example.com/a/b/c.html"
        assert resolve_url("../d.html", base) == "https://example.com/a/d.html"
        assert resolve_url("./e.html", base) == "https://example.com/a/b/e.html"

    def test_query_and_fragment_only(self) -> None:
        base = "https://example.com/page?x=1"
        assert resolve_url("?page=2", base) == "https://example.com/page?page=2"
        assert resolve_url("#top", base) == "https://example.com/page?x=1#top"

    def test_html_entities_and_quotes_are_cleaned(self) -> None:
        assert resolve_url("'/go?a=1&amp;b=2'", _SOURCE) == "https://example.com/go?a=1&b=2"

    def test_unparseable_base_returns_reference(self) -> None:
        assert resolve_url("/x", "http://[broken") == "/x"
        assert resolve_url("//host/x", "http://[broken") == "//host/x"

    def test_has_explicit_scheme(self) -> None:
        assert has_explicit_scheme("http://a.com")
        assert has_explicit_scheme("HTTPS://a.com")
        assert not has_explicit_scheme("/relative")
        assert not has_explicit_scheme("javascript:void(0)")


# ---------------------------------------------------------------------------
# Detector
# ---------------------------------------------------------------------------

class TestIsRedirectPage:
    def test_meta_refresh_any_case_and_order(self) -> None:
        html = '<HTML><HEAD><META CONTENT="0; URL=/next" HTTP-EQUIV="Refresh"></HEAD></HTML>'
        assert has_meta_refresh(html)
        assert is_redirect_page(html, _SOURCE) is True

    def test_meta_refresh_wins_on_long_page(self) -> None:
        html = _LONG_ARTICLE.replace(
            "<body>", '<body><meta http-equiv="refresh" content="0;url=/x">'
        )
        assert is_redirect_page(html, _SOURCE) is True

    @pytest.mark.parametrize(
        "script",
        [
            'window.location = "https://a.com/x";',
            "document.location='https://a.com/x'",
            'top.location = "/x"',
            "location.href='https://a.com/x'",
            'window.location.href = "https://a.com/x"',
            'location.replace("https://a.com/x")',
        ],
    )
    def test_script_navigation(self, script: str) -> None:
        html = f"<html><body><script>{script}</script></body></html>"
        assert find_script_navigation(html) is not None
        assert is_redirect_page(html, _SOURCE) is True

    def test_location_comparison_is_not_navigation(self) -> None:
        html = '<script>if (location.href == "https://a.com") { track(); }</script>'
        assert find_script_navigation(html) is None

    def test_short_page_with_phrase(self) -> None:
        html = "<html><body><p>You are being redirected to the new site.</p></body></html>"
        assert is_redirect_page(html, _SOURCE) is True

    def test_not_redirected_click_phrase(self) -> None:
        html = (
            "<p>If you are not redirected within 5 seconds, "
            '<a href="/go">click here</a>.</p>'
        )
        assert is_redirect_page(html, _SOURCE) is True

    def test_long_page_mentioning_redirect_is_content(self) -> None:
        assert len(visible_text(_LONG_ARTICLE)) >= SHORT_PAGE_THRESHOLD
        assert is_redirect_page(_LONG_ARTICLE, _SOURCE) is False

    def test_short_page_without_phrase(self) -> None:
        assert is_redirect_page("<html><body><p>Hello.</p></body></html>", _SOURCE) is False

    def test_phrase_inside_script_is_not_visible(self) -> None:
        html = "<script>var msg = 'automatic redirect';</script><p>Short page.</p>"
        assert is_redirect_page(html, _SOURCE) is False


# ---------------------------------------------------------------------------
# Extraction strategies
# ---------------------------------------------------------------------------

class TestMetaRefreshTarget:
    def test_relative_target_resolved(self) -> None:
        html = '<meta http-equiv="refresh" content="0;url=/next">'
        assert meta_refresh_target(html, _SOURCE) == "https://example.com/next"

    def test_quoted_uppercase_target(self) -> None:
        html = "<meta http-equiv=\"Refresh\" content=\"5; URL='https://other.com/page'\">"
        assert meta_refresh_target(html, _SOURCE) == "https://other.com/page"

    def test_refresh_without_url(self) -> None:
        assert meta_refresh_target('<meta http-equiv="refresh" content="30">', _SOURCE) is None


class TestScriptNavigationTarget:
    def test_literal_resolved(self) -> None:
        html = "<script>location.replace('/landing?id=7')</script>"
        assert script_navigation_target(html, _SOURCE) == "https://example.com/landing?id=7"

    def test_protocol_relative(self) -> None:
        html = '<script>location.href = "//cdn.example.org/x"</script>'
        assert script_navigation_target(html, _SOURCE) == "https://cdn.example.org/x"


class TestInterstitialLinkTarget:
    def test_continue_link(self) -> None:
        html = '<p>Leaving site.</p><a href="https://dest.org/article">Continue to dest.org</a>'
        assert interstitial_link_target(html, _SOURCE) == "https://dest.org/article"

    def test_relative_click_here(self) -> None:
        html = '<a href="/about">About</a><a href="/real">Click <b>HERE</b></a>'
        assert interstitial_link_target(html, _SOURCE) == "https://example.com/real"

    def test_rejects_javascript_href(self) -> None:
        html = '<a href="javascript:void(0)">click here</a>'
        assert interstitial_link_target(html, _SOURCE) is None

    def test_skips_link_back_to_source(self) -> None:
        html = f'<a href="{_SOURCE}">proceed</a><a href="https://dest.org/">proceed anyway</a>'
        assert interstitial_link_target(html, _SOURCE) == "https://dest.org/"


class TestClickTrackerTarget:
    def test_bing_base64(self) -> None:
        src = f"https://www.bing.com/ck/a?!&&p=abc&u={_bing_u('https://example.com/article')}&ntb=1"
        assert click_tracker_target("", src) == "https://example.com/article"

    def test_percent_encoded_fallback(self) -> None:
        src = "https://www.google.com/url?u=https%3A%2F%2Fexample.com%2Fpage%3Fa%3D1"
        assert click_tracker_target("", src) == "https://example.com/page?a=1"

    def test_garbage_is_rejected(self) -> None:
        assert click_tracker_target("", "https://www.bing.com/ck/a?u=zzzz") is None

    def test_untracked_path_ignored(self) -> None:
        src = f"https://example.com/search?u={_bing_u('https://example.com/x')}"
        assert click_tracker_target("", src) is None


class TestExtractRealUrl:
    def test_meta_refresh_before_script(self) -> None:
        html = (
            '<meta http-equiv="refresh" content="0;url=https://a.com/meta">'
            "<script>location.href='https://a.com/script'</script>"
        )
        assert extract_real_url(html, _SOURCE) == "https://a.com/meta"

    def test_candidate_equal_to_source_is_skipped(self) -> None:
        html = (
            f'<meta http-equiv="refresh" content="0;url={_SOURCE}">'
            "<script>location.href='https://a.com/script'</script>"
        )
        assert extract_real_url(html, _SOURCE) == "https://a.com/script"

    def test_click_tracker_used_last(self) -> None:
        src = f"https://www.bing.com/ck/a?u={_bing_u('https://example.com/article')}"
        html = "<p>Redirecting you to the page.</p>"
        assert extract_real_url(html, src) == "https://example.com/article"

    def test_nothing_found(self) -> None:
        assert extract_real_url("<p>You are being redirected to nowhere</p>", _SOURCE) is None

    def test_strategy_failure_is_contained(self) -> None:
        html = (
            '<meta http-equiv="refresh" content="0;url=https://a.com/meta">'
            "<script>location.href='https://a.com/script'</script>"
        )
        with patch(
            "searchrelay.scraper.redirects.BeautifulSoup",
            side_effect=RuntimeError("parser exploded"),
        ):
            assert extract_real_url(html, _SOURCE) == "https://a.com/script"

    def test_all_strategies_failing_returns_none(self) -> None:
        html = '<meta http-equiv="refresh" content="0;url=https://a.com/meta">'
        with patch(
            "searchrelay.scraper.redirects.BeautifulSoup",
            side_effect=RuntimeError("parser exploded"),
        ):
            assert extract_real_url(html, _SOURCE) is None
