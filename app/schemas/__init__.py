"""
app/schemas package marker.
"""

from app.schemas.audit_crawl import (
    AuditPageListResponse,
    AuditPageResponse,
    CrawlErrorResponse,
    CrawlInitRequest,
    CrawlInitResponse,
    CrawlProgressResponse,
)

__all__ = [
    "AuditPageListResponse",
    "AuditPageResponse",
    "CrawlErrorResponse",
    "CrawlInitRequest",
    "CrawlInitResponse",
    "CrawlProgressResponse",
]
