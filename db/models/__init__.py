"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.audit import Audit, AuditStatus
from db.models.audit_page import AuditPage
from db.models.crawl_frontier import CrawlFrontier, FrontierStatus

__all__ = [
    "Audit",
    "AuditPage",
    "AuditStatus",
    "CrawlFrontier",
    "FrontierStatus",
]
