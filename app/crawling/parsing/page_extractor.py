"""
BeautifulSoup-based extraction of audit signals from HTML pages.
"""

from __future__ import annotations

import json
import re
from typing import Any
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from app.crawling.types import HEADING_TAGS, ExtractedPage
from app.crawling.urls import in_scope, normalize_url, url_host

PRIORITY_LINK_SELECTORS = ("nav a", "header a", "footer a", '[role="navigation"] a')
_INVISIBLE_TAGS = ("script", "style", "noscript", "template")
_WHITESPACE = re.compile(r"\s+")


class PageExtractor:
    """
    Deterministic, side-effect-free extraction over one HTML string.

    Malformed markup or structured data degrades to empty fields instead of
    failing the page.
    """

    @classmethod
    def extract(
        cls,
        *,
        html: str,
        url: str,
        status_code: int,
        max_links: int = 100,
        base_url: str | None = None,
    ) -> ExtractedPage:
        """
        Parse one page. Links resolve against `base_url` (the post-redirect
        location) when given, otherwise against `url`.
        """

        soup = BeautifulSoup(html or "", "html.parser")
        has_schema, schema_types = cls.extract_structured_data(soup)
        image_count, images_with_alt = cls.count_images(soup)

        page = ExtractedPage(
            url=url,
            status_code=status_code,
            title=cls._text_of(soup.find("title")),
            h1=cls._text_of(soup.find("h1")),
            meta_description=cls._meta_description(soup),
            canonical=cls._canonical(soup),
            has_schema=has_schema,
            schema_types=schema_types,
            headings=cls.count_headings(soup),
            image_count=image_count,
            images_with_alt=images_with_alt,
            links=cls.extract_links(soup, base_url=base_url or url, max_links=max_links),
        )
        # Mutates the tree, so it runs last.
        page.word_count = cls.count_words(soup)
        return page

    @classmethod
    def extract_structured_data(cls, soup: BeautifulSoup) -> tuple[bool, list[str]]:
        has_schema = False
        schema_types: list[str] = []
        for script in soup.find_all("script"):
            script_type = str(script.get("type") or "").strip().lower()
            if script_type != "application/ld+json":
                continue
            has_schema = True
            try:
                payload = json.loads(script.string or script.get_text() or "{}")
            except (TypeError, ValueError):
                continue
            schema_types.extend(cls._schema_types(payload))
        return has_schema, schema_types

    @classmethod
    def _schema_types(cls, payload: Any) -> list[str]:
        if isinstance(payload, list):
            found: list[str] = []
            for item in payload:
                found.extend(cls._schema_types(item))
            return found
        if not isinstance(payload, dict):
            return []

        found = []
        raw_type = payload.get("@type")
        if isinstance(raw_type, list):
            raw_type = raw_type[0] if raw_type else None
        if isinstance(raw_type, str) and raw_type.strip():
            found.append(raw_type.strip())
        graph = payload.get("@graph")
        if isinstance(graph, list):
            for item in graph:
                found.extend(cls._schema_types(item))
        return found

    @staticmethod
    def count_headings(soup: BeautifulSoup) -> dict[str, int]:
        return {tag: len(soup.find_all(tag)) for tag in HEADING_TAGS}

    @staticmethod
    def count_images(soup: BeautifulSoup) -> tuple[int, int]:
        images = soup.find_all("img")
        with_alt = sum(1 for image in images if str(image.get("alt") or "").strip())
        return len(images), with_alt

    @staticmethod
    def count_words(soup: BeautifulSoup) -> int:
        root = soup.body or soup
        for node in root.find_all(_INVISIBLE_TAGS):
            node.decompose()
        return len(root.get_text(" ").split())

    @classmethod
    def extract_links(
        cls,
        soup: BeautifulSoup,
        *,
        base_url: str,
        max_links: int,
    ) -> list[str]:
        links: list[str] = []
        seen: set[str] = set()
        for anchor in soup.find_all("a", href=True):
            if len(links) >= max_links:
                break
            normalized = cls._resolve(anchor, base_url)
            if normalized is None or normalized in seen:
                continue
            seen.add(normalized)
            links.append(normalized)
        return links

    @classmethod
    def prioritized_links(
        cls,
        *,
        html: str,
        base_url: str,
        audit_host: str,
        allow_subdomains: bool,
        max_links: int = 200,
    ) -> list[str]:
        """
        In-scope links from a homepage: navigation, header and footer anchors
        first, then the remaining body anchors.
        """

        soup = BeautifulSoup(html or "", "html.parser")
        links: list[str] = []
        seen: set[str] = set()

        def _add(anchor: Tag) -> None:
            normalized = cls._resolve(anchor, base_url)
            if normalized is None or normalized in seen:
                return
            if not in_scope(url_host(normalized), audit_host, allow_subdomains):
                return
            seen.add(normalized)
            links.append(normalized)

        for selector in PRIORITY_LINK_SELECTORS:
            for anchor in soup.select(selector):
                if anchor.get("href"):
                    _add(anchor)

        for anchor in soup.find_all("a", href=True):
            if len(links) >= max_links:
                break
            _add(anchor)

        return links[:max_links]

    @staticmethod
    def _resolve(anchor: Tag, base_url: str) -> str | None:
        href = str(anchor.get("href") or "").strip()
        if not href:
            return None
        try:
            absolute = urljoin(base_url, href)
        except ValueError:
            return None
        return normalize_url(absolute)

    @staticmethod
    def _text_of(node: Tag | None) -> str:
        if node is None:
            return ""
        return _WHITESPACE.sub(" ", node.get_text(" ", strip=True)).strip()

    @staticmethod
    def _meta_description(soup: BeautifulSoup) -> str:
        for meta in soup.find_all("meta"):
            if str(meta.get("name") or "").strip().lower() == "description":
                return str(meta.get("content") or "").strip()
        return ""

    @staticmethod
    def _canonical(soup: BeautifulSoup) -> str:
        for link in soup.find_all("link"):
            rel = link.get("rel") or []
            if isinstance(rel, str):
                rel = rel.split()
            if any(value.lower() == "canonical" for value in rel):
                return str(link.get("href") or "").strip()
        return ""
