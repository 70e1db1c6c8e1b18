"""
Crawl configuration models.
"""

from __future__ import annotations

from dataclasses import dataclass


class PagePersistencePolicy:
    """What a batch does when its page rows cannot be stored."""

    ADVANCE = "advance"
    FAIL_BATCH = "fail_batch"


@dataclass(frozen=True)
class CrawlSettings:
    """
    Runtime settings for audit crawling.
    """

    user_agent: str = "SiteAuditBot/1.0 (+https://siteaudit.example/bot)"
    bot_name: str = "siteauditbot"
    init_timeout_seconds: float = 10.0
    continue_timeout_seconds: float = 5.0
    batch_size: int = 15
    concurrency: int = 5
    default_page_budget: int = 100
    max_page_budget: int = 500
    sitemap_max_urls: int = 200
    sitemap_max_children: int = 5
    homepage_max_links: int = 200
    page_max_links: int = 100
    max_body_bytes: int = 5 * 1024 * 1024
    page_persistence_policy: str = PagePersistencePolicy.ADVANCE

    def clamp_page_budget(self, requested: int | None) -> int:
        if requested is None:
            requested = self.default_page_budget
        return min(max(1, int(requested)), self.max_page_budget)
