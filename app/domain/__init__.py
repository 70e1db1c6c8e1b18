"""
app/domain package marker.
"""

from app.domain.audit_crawl import AuditSnapshot, CrawlInitResult, CrawlProgress, StoredPage

__all__ = [
    "AuditSnapshot",
    "CrawlInitResult",
    "CrawlProgress",
    "StoredPage",
]
