"""
app/api/routers package marker.
"""

from app.api.routers.audit_crawl import router as audit_crawl_router

__all__ = ["audit_crawl_router"]
