"""
Crawl initialization: audit record plus the seeded frontier.
"""

from __future__ import annotations

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor

from app.crawling.config.models import CrawlSettings
from app.crawling.fetcher import PageFetcher
from app.crawling.frontier import CrawlFrontierState
from app.crawling.logging_utils import log_event
from app.crawling.parsing import PageExtractor
from app.crawling.policy import AI_GUIDANCE_PATH, POLICY_PATH, SITEMAP_PATH, PolicyLoader
from app.crawling.storage import CrawlStore
from app.crawling.types import FetchedDocument
from app.crawling.urls import normalize_domain, normalize_url, registrable_domain, url_host
from app.domain.audit_crawl import AuditSnapshot, CrawlInitResult
from db.models.audit import AuditStatus

logger = logging.getLogger(__name__)


class CrawlInitializer:
    """
    Creates an audit and its initial frontier from the homepage, its links
    and the sitemap.

    Unreachable homepage, policy or sitemap documents only shrink the seed
    set; the audit is created regardless.
    """

    def __init__(
        self,
        *,
        settings: CrawlSettings,
        store: CrawlStore,
        fetcher: PageFetcher,
    ) -> None:
        self._settings = settings
        self._store = store
        self._fetcher = fetcher
        self._policy_loader = PolicyLoader(
            fetcher=fetcher,
            bot_name=settings.bot_name,
            timeout_seconds=settings.init_timeout_seconds,
            sitemap_max_urls=settings.sitemap_max_urls,
            sitemap_max_children=settings.sitemap_max_children,
        )

    def initialize(
        self,
        *,
        domain: str,
        brand_name: str | None = None,
        business_type: str | None = None,
        page_budget: int | None = None,
        allow_subdomains: bool = False,
        user_id: str | None = None,
    ) -> CrawlInitResult:
        base_url = normalize_domain(domain)
        audit_host = url_host(base_url)
        effective_budget = self._settings.clamp_page_budget(page_budget)
        audit_id = uuid.uuid4()

        homepage, policy_doc, sitemap_doc, guidance_doc = self._fetch_site_documents(base_url)

        rules = self._policy_loader.rules_from_document(
            policy_doc.text if policy_doc else None,
            origin=base_url,
        )

        homepage_links: list[str] = []
        if homepage is not None:
            homepage_links = PageExtractor.prioritized_links(
                html=homepage.text,
                base_url=homepage.final_url,
                audit_host=audit_host,
                allow_subdomains=allow_subdomains,
                max_links=self._settings.homepage_max_links,
            )

        sitemap_urls: list[str] = []
        if sitemap_doc is not None:
            sitemap_urls = self._policy_loader.expand_sitemap(
                f"{base_url}{SITEMAP_PATH}",
                audit_host=audit_host,
                allow_subdomains=allow_subdomains,
                document=sitemap_doc.text,
            )

        candidates: list[str] = []
        normalized_homepage = normalize_url(base_url)
        if normalized_homepage is not None:
            candidates.append(normalized_homepage)
        candidates.extend(homepage_links)
        candidates.extend(sitemap_urls)

        frontier = CrawlFrontierState.seed(
            audit_id=audit_id,
            page_budget=effective_budget,
            allow_subdomains=allow_subdomains,
            policy_rules=rules,
            candidates=candidates,
        )
        audit = AuditSnapshot(
            id=audit_id,
            domain=audit_host,
            registrable_domain=registrable_domain(audit_host),
            page_budget=effective_budget,
            status=AuditStatus.CRAWLING,
            brand_name=brand_name,
            business_type=business_type,
            user_id=user_id,
            llms_txt_present=self._is_guidance_document(guidance_doc),
        )
        self._store.create_crawl(audit=audit, frontier=frontier)

        log_event(
            logger,
            logging.INFO,
            "crawl_initialized",
            audit_id=audit_id,
            domain=audit_host,
            page_budget=effective_budget,
            homepage_reachable=homepage is not None,
            homepage_links=len(homepage_links),
            sitemap_urls=len(sitemap_urls),
            policy_rules=len(rules),
            queue_size=len(frontier.queue),
        )
        return CrawlInitResult(
            audit_id=audit_id,
            queue_size=len(frontier.queue),
            page_budget=effective_budget,
            status=frontier.status,
        )

    def _fetch_site_documents(
        self,
        base_url: str,
    ) -> tuple[
        FetchedDocument | None,
        FetchedDocument | None,
        FetchedDocument | None,
        FetchedDocument | None,
    ]:
        timeout = self._settings.init_timeout_seconds
        with ThreadPoolExecutor(max_workers=4) as executor:
            homepage = executor.submit(self._fetcher.fetch_page, base_url, timeout=timeout)
            policy = executor.submit(
                self._fetcher.fetch_document, f"{base_url}{POLICY_PATH}", timeout=timeout
            )
            sitemap = executor.submit(
                self._fetcher.fetch_document, f"{base_url}{SITEMAP_PATH}", timeout=timeout
            )
            guidance = executor.submit(
                self._fetcher.fetch_document, f"{base_url}{AI_GUIDANCE_PATH}", timeout=timeout
            )
            return homepage.result(), policy.result(), sitemap.result(), guidance.result()

    @staticmethod
    def _is_guidance_document(document: FetchedDocument | None) -> bool:
        # Catch-all routes often answer /llms.txt with the HTML shell.
        return document is not None and not document.is_html and bool(document.text.strip())
