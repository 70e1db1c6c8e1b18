"""
Environment loader for crawl settings.
"""

from __future__ import annotations

from functools import lru_cache

from db.config import get_float_env, get_int_env, get_str_env, load_env_files

from app.crawling.config.models import CrawlSettings, PagePersistencePolicy

_DEFAULTS = CrawlSettings()


def bot_name_from_user_agent(user_agent: str) -> str:
    """
    `SiteAuditBot/1.0 (+https://...)` → `siteauditbot`.
    """

    product = user_agent.strip().split(" ", 1)[0]
    return product.split("/", 1)[0].strip().lower()


def _persistence_policy(raw: str) -> str:
    value = raw.strip().lower()
    if value in {PagePersistencePolicy.ADVANCE, PagePersistencePolicy.FAIL_BATCH}:
        return value
    return PagePersistencePolicy.ADVANCE


@lru_cache(maxsize=1)
def get_crawl_settings() -> CrawlSettings:
    """
    Return cached crawl settings from environment variables.
    """

    load_env_files()
    user_agent = get_str_env("AUDIT_CRAWL_USER_AGENT", _DEFAULTS.user_agent)
    max_page_budget = max(1, get_int_env("AUDIT_CRAWL_MAX_PAGE_BUDGET", _DEFAULTS.max_page_budget))
    return CrawlSettings(
        user_agent=user_agent,
        bot_name=get_str_env("AUDIT_CRAWL_BOT_NAME", bot_name_from_user_agent(user_agent)).lower(),
        init_timeout_seconds=max(
            1.0,
            get_float_env("AUDIT_CRAWL_INIT_TIMEOUT_SECONDS", _DEFAULTS.init_timeout_seconds),
        ),
        continue_timeout_seconds=max(
            1.0,
            get_float_env("AUDIT_CRAWL_CONTINUE_TIMEOUT_SECONDS", _DEFAULTS.continue_timeout_seconds),
        ),
        batch_size=max(1, get_int_env("AUDIT_CRAWL_BATCH_SIZE", _DEFAULTS.batch_size)),
        concurrency=max(1, get_int_env("AUDIT_CRAWL_CONCURRENCY", _DEFAULTS.concurrency)),
        default_page_budget=min(
            max_page_budget,
            max(1, get_int_env("AUDIT_CRAWL_DEFAULT_PAGE_BUDGET", _DEFAULTS.default_page_budget)),
        ),
        max_page_budget=max_page_budget,
        sitemap_max_urls=max(0, get_int_env("AUDIT_CRAWL_SITEMAP_MAX_URLS", _DEFAULTS.sitemap_max_urls)),
        sitemap_max_children=max(
            0,
            get_int_env("AUDIT_CRAWL_SITEMAP_MAX_CHILDREN", _DEFAULTS.sitemap_max_children),
        ),
        homepage_max_links=max(
            0,
            get_int_env("AUDIT_CRAWL_HOMEPAGE_MAX_LINKS", _DEFAULTS.homepage_max_links),
        ),
        page_max_links=max(0, get_int_env("AUDIT_CRAWL_PAGE_MAX_LINKS", _DEFAULTS.page_max_links)),
        max_body_bytes=max(1, get_int_env("AUDIT_CRAWL_MAX_BODY_BYTES", _DEFAULTS.max_body_bytes)),
        page_persistence_policy=_persistence_policy(
            get_str_env("AUDIT_CRAWL_PAGE_PERSISTENCE_POLICY", _DEFAULTS.page_persistence_policy)
        ),
    )
