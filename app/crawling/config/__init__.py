"""
Config helpers for audit crawling.
"""

from app.crawling.config.loader import bot_name_from_user_agent, get_crawl_settings
from app.crawling.config.models import CrawlSettings, PagePersistencePolicy

__all__ = [
    "CrawlSettings",
    "PagePersistencePolicy",
    "bot_name_from_user_agent",
    "get_crawl_settings",
]
