"""
Crawl-policy (robots.txt) and sitemap loading.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from bs4 import BeautifulSoup

from app.crawling.fetcher import PageFetcher
from app.crawling.logging_utils import log_event
from app.crawling.types import PolicyRule
from app.crawling.urls import in_scope, normalize_url, url_host

logger = logging.getLogger(__name__)

POLICY_PATH = "/robots.txt"
SITEMAP_PATH = "/sitemap.xml"
AI_GUIDANCE_PATH = "/llms.txt"

_MAX_SITEMAP_DEPTH = 3


def agent_applies(agent: str, bot_name: str) -> bool:
    """
    A user-agent group applies to us for `*`, any `*bot*` token, or our own name.
    """

    token = agent.strip().lower()
    if not token:
        return False
    return token == "*" or "bot" in token or (bool(bot_name) and bot_name.lower() in token)


def parse_policy_rules(document: str, *, bot_name: str) -> list[PolicyRule]:
    """
    Collect allow/disallow rules from every applicable user-agent group.

    Rules keep document order so that first-match-wins mirrors the file,
    not rule specificity. Empty `Disallow:` lines (allow everything) are skipped.
    """

    rules: list[PolicyRule] = []
    applies = False
    in_agent_run = False

    for raw_line in document.splitlines():
        line = raw_line.split("#", 1)[0].strip().lower()
        if not line or ":" not in line:
            continue

        directive, value = (part.strip() for part in line.split(":", 1))
        if directive == "user-agent":
            if not in_agent_run:
                applies = False
            applies = applies or agent_applies(value, bot_name)
            in_agent_run = True
            continue

        in_agent_run = False
        if not applies or directive not in {"allow", "disallow"} or not value:
            continue
        rules.append(PolicyRule(path_prefix=value, allow=directive == "allow"))

    return rules


def extract_sitemap_locations(document: str) -> tuple[bool, list[str]]:
    """
    Return `(is_index, locations)` for a sitemap or sitemap-index document.
    """

    soup = BeautifulSoup(document, "html.parser")
    is_index = soup.find("sitemapindex") is not None
    locations: list[str] = []
    for node in soup.find_all("loc"):
        text = node.get_text(strip=True)
        if text:
            locations.append(text)
    return is_index, locations


class PolicyLoader:
    """
    Fetches and interprets a site's crawl policy and sitemaps.

    Missing or unreachable documents degrade to "no rules" / "no URLs".
    """

    def __init__(
        self,
        *,
        fetcher: PageFetcher,
        bot_name: str,
        timeout_seconds: float,
        sitemap_max_urls: int = 200,
        sitemap_max_children: int = 5,
    ) -> None:
        self._fetcher = fetcher
        self._bot_name = bot_name
        self._timeout_seconds = timeout_seconds
        self._sitemap_max_urls = sitemap_max_urls
        self._sitemap_max_children = sitemap_max_children

    def rules_from_document(self, document: str | None, *, origin: str) -> list[PolicyRule]:
        if document is None:
            log_event(logger, logging.INFO, "policy_unavailable", origin=origin)
            return []
        rules = parse_policy_rules(document, bot_name=self._bot_name)
        log_event(logger, logging.INFO, "policy_loaded", origin=origin, rule_count=len(rules))
        return rules

    def load_rules(self, origin: str) -> list[PolicyRule]:
        fetched = self._fetcher.fetch_document(
            f"{origin.rstrip('/')}{POLICY_PATH}",
            timeout=self._timeout_seconds,
        )
        return self.rules_from_document(fetched.text if fetched else None, origin=origin)

    def expand_sitemap(
        self,
        sitemap_url: str,
        *,
        audit_host: str,
        allow_subdomains: bool,
        document: str | None = None,
    ) -> list[str]:
        """
        Collect in-scope page URLs from a sitemap, following at most
        `sitemap_max_children` children of a sitemap index.

        Pass `document` when the body was already fetched.
        """

        urls: list[str] = []
        self._expand(
            sitemap_url,
            document=document,
            audit_host=audit_host,
            allow_subdomains=allow_subdomains,
            urls=urls,
            visited=set(),
            depth=0,
        )
        log_event(
            logger,
            logging.INFO,
            "sitemap_parsed",
            sitemap_url=sitemap_url,
            url_count=len(urls),
        )
        return urls

    def _expand(
        self,
        sitemap_url: str,
        *,
        document: str | None,
        audit_host: str,
        allow_subdomains: bool,
        urls: list[str],
        visited: set[str],
        depth: int,
    ) -> None:
        if depth > _MAX_SITEMAP_DEPTH or sitemap_url in visited:
            return
        visited.add(sitemap_url)

        if document is None:
            fetched = self._fetcher.fetch_document(sitemap_url, timeout=self._timeout_seconds)
            if fetched is None:
                log_event(logger, logging.INFO, "sitemap_fetch_failed", sitemap_url=sitemap_url)
                return
            document = fetched.text

        is_index, locations = extract_sitemap_locations(document)
        if is_index:
            for child_url in locations[: self._sitemap_max_children]:
                if len(urls) >= self._sitemap_max_urls:
                    break
                self._expand(
                    child_url,
                    document=None,
                    audit_host=audit_host,
                    allow_subdomains=allow_subdomains,
                    urls=urls,
                    visited=visited,
                    depth=depth + 1,
                )
            return

        self._collect(locations, audit_host=audit_host, allow_subdomains=allow_subdomains, urls=urls)

    def _collect(
        self,
        locations: Sequence[str],
        *,
        audit_host: str,
        allow_subdomains: bool,
        urls: list[str],
    ) -> None:
        for location in locations:
            if len(urls) >= self._sitemap_max_urls:
                return
            normalized = normalize_url(location)
            if normalized is None:
                continue
            if not in_scope(url_host(normalized), audit_host, allow_subdomains):
                continue
            urls.append(normalized)
