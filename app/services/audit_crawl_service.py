"""
app/services/audit_crawl_service.py

Service orchestration for audit crawl initialization and continuation.
"""

from __future__ import annotations

import uuid
from functools import lru_cache

import requests
from sqlalchemy.orm import Session

from app.crawling.config import CrawlSettings, get_crawl_settings
from app.crawling.errors import CrawlNotFoundError
from app.crawling.fetcher import PageFetcher
from app.crawling.initializer import CrawlInitializer
from app.crawling.storage import CrawlStore, SQLAlchemyCrawlStore
from app.crawling.worker import CrawlContinuationWorker
from app.domain.audit_crawl import CrawlInitResult, CrawlProgress, StoredPage


class AuditCrawlService:
    """
    Builds the crawl engine for one DB session and runs one operation.
    """

    def __init__(
        self,
        *,
        settings: CrawlSettings | None = None,
        http_session: requests.Session | None = None,
    ) -> None:
        self._settings = settings or get_crawl_settings()
        self._http_session = http_session or requests.Session()
        self._fetcher = PageFetcher(
            session=self._http_session,
            user_agent=self._settings.user_agent,
            max_body_bytes=self._settings.max_body_bytes,
        )

    @property
    def settings(self) -> CrawlSettings:
        return self._settings

    def initialize(
        self,
        *,
        db: Session,
        domain: str,
        brand_name: str | None = None,
        business_type: str | None = None,
        page_budget: int | None = None,
        allow_subdomains: bool = False,
        user_id: str | None = None,
    ) -> CrawlInitResult:
        initializer = CrawlInitializer(
            settings=self._settings,
            store=self._store(db),
            fetcher=self._fetcher,
        )
        return initializer.initialize(
            domain=domain,
            brand_name=brand_name,
            business_type=business_type,
            page_budget=page_budget,
            allow_subdomains=allow_subdomains,
            user_id=user_id,
        )

    def continue_crawl(self, *, db: Session, audit_id: uuid.UUID) -> CrawlProgress:
        return self._worker(db).continue_crawl(audit_id)

    def get_progress(self, *, db: Session, audit_id: uuid.UUID) -> CrawlProgress:
        return self._worker(db).snapshot(audit_id)

    def list_pages(
        self,
        *,
        db: Session,
        audit_id: uuid.UUID,
        limit: int | None = None,
    ) -> list[StoredPage]:
        store = self._store(db)
        if store.load_audit(audit_id) is None:
            raise CrawlNotFoundError(audit_id, missing="audit")
        return store.list_pages(audit_id, limit=limit)

    def _worker(self, db: Session) -> CrawlContinuationWorker:
        return CrawlContinuationWorker(
            settings=self._settings,
            store=self._store(db),
            fetcher=self._fetcher,
        )

    @staticmethod
    def _store(db: Session) -> CrawlStore:
        return SQLAlchemyCrawlStore(session=db)


@lru_cache(maxsize=1)
def get_audit_crawl_service() -> AuditCrawlService:
    """
    Build and cache the audit crawl service.
    """

    return AuditCrawlService()
