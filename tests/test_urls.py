"""
tests/test_urls.py

URL canonicalization and scope rules.
"""

from __future__ import annotations

import pytest

from app.crawling.types import PolicyRule
from app.crawling.urls import (
    admissible,
    allowed_by_policy,
    in_scope,
    normalize_domain,
    normalize_url,
    registrable_domain,
)


class TestNormalizeUrl:
    def test_tracking_params_fragment_and_trailing_slash_collapse(self) -> None:
        assert normalize_url("https://example.com/a?utm_source=x#frag") == "https://example.com/a"
        assert normalize_url("https://example.com/a/") == "https://example.com/a"

    def test_root_path_keeps_its_slash(self) -> None:
        assert normalize_url("https://Example.com") == "https://example.com/"
        assert normalize_url("https://example.com/") == "https://example.com/"

    def test_non_tracking_query_is_kept(self) -> None:
        assert normalize_url("https://example.com/search?q=Shoes&gclid=1") == "https://example.com/search?q=shoes"

    def test_result_is_lower_cased(self) -> None:
        assert normalize_url("HTTPS://EXAMPLE.COM/About-Us") == "https://example.com/about-us"

    def test_default_port_dropped_custom_port_kept(self) -> None:
        assert normalize_url("https://example.com:443/x") == "https://example.com/x"
        assert normalize_url("http://example.com:8080/x") == "http://example.com:8080/x"

    @pytest.mark.parametrize(
        "raw",
        [
            "mailto:team@example.com",
            "javascript:void(0)",
            "ftp://example.com/file",
            "https://example.com/brochure.PDF",
            "https://example.com/img/logo.png",
            "https://example.com/report.pdf/",
            "not a url",
            "",
        ],
    )
    def test_uncrawlable_urls_are_rejected(self, raw: str) -> None:
        assert normalize_url(raw) is None

    @pytest.mark.parametrize(
        "raw",
        [
            "https://Example.com/a/b/?utm_medium=mail&page=2#top",
            "http://example.com:8080//x//",
            "https://example.com/caf%C3%A9 menu",
        ],
    )
    def test_idempotent(self, raw: str) -> None:
        once = normalize_url(raw)
        assert once is not None
        assert normalize_url(once) == once


class TestNormalizeDomain:
    @pytest.mark.parametrize(
        "raw",
        ["example.com", "https://www.Example.com/about", "http://example.com?x=1", " EXAMPLE.COM "],
    )
    def test_reduces_to_https_origin(self, raw: str) -> None:
        assert normalize_domain(raw) == "https://example.com"

    @pytest.mark.parametrize("raw", ["", "localhost", "exa mple.com", "https://"])
    def test_invalid_domain_raises(self, raw: str) -> None:
        with pytest.raises(ValueError):
            normalize_domain(raw)


class TestScope:
    def test_registrable_domain(self) -> None:
        assert registrable_domain("blog.example.com") == "example.com"
        assert registrable_domain("shop.example.co.uk") == "example.co.uk"
        assert registrable_domain("example.com") == "example.com"

    def test_exact_host_ignores_www(self) -> None:
        assert in_scope("www.example.com", "example.com", False)
        assert not in_scope("blog.example.com", "example.com", False)

    def test_subdomains_when_allowed(self) -> None:
        assert in_scope("blog.example.com", "example.com", True)
        assert not in_scope("example.org", "example.com", True)

    def test_empty_host_is_out_of_scope(self) -> None:
        assert not in_scope("", "example.com", True)


class TestPolicy:
    def test_first_matching_rule_wins(self) -> None:
        rules = [
            PolicyRule(path_prefix="/private/open", allow=True),
            PolicyRule(path_prefix="/private", allow=False),
        ]
        assert allowed_by_policy("/private/open/doc", rules)
        assert not allowed_by_policy("/private/page", rules)
        assert allowed_by_policy("/public", rules)

    def test_no_rules_allows_everything(self) -> None:
        assert allowed_by_policy("/anything", [])

    def test_admissible_combines_scope_and_policy(self) -> None:
        rules = [PolicyRule(path_prefix="/private", allow=False)]
        assert admissible("https://example.com/about", "example.com", False, rules)
        assert not admissible("https://example.com/private/page", "example.com", False, rules)
        assert not admissible("https://other.com/about", "example.com", False, rules)
