"""
Storage layer exports.
"""

from app.crawling.storage.base import CrawlStore
from app.crawling.storage.sqlalchemy_storage import SQLAlchemyCrawlStore

__all__ = ["CrawlStore", "SQLAlchemyCrawlStore"]
