"""
app/services package marker.
"""

from app.services.audit_crawl_service import AuditCrawlService, get_audit_crawl_service

__all__ = [
    "AuditCrawlService",
    "get_audit_crawl_service",
]
