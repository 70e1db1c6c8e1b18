"""
app/repositories package marker.
"""

from app.repositories.audit_page_repository import AuditPageRepository
from app.repositories.audit_repository import AuditRepository
from app.repositories.crawl_frontier_repository import CrawlFrontierRepository

__all__ = [
    "AuditPageRepository",
    "AuditRepository",
    "CrawlFrontierRepository",
]
