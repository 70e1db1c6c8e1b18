"""
SQLAlchemy-backed storage implementation for audit crawls.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.crawling.errors import FrontierConflictError, PagePersistenceError
from app.crawling.frontier import CrawlFrontierState
from app.crawling.logging_utils import log_event
from app.crawling.storage.base import CrawlStore
from app.crawling.types import ExtractedPage, PolicyRule
from app.domain.audit_crawl import AuditSnapshot, StoredPage
from app.repositories import AuditPageRepository, AuditRepository, CrawlFrontierRepository
from db.models.audit import Audit, AuditStatus
from db.models.audit_page import AuditPage
from db.models.crawl_frontier import CrawlFrontier, FrontierStatus

logger = logging.getLogger(__name__)

_AUDIT_STATUS_FOR_FRONTIER = {
    FrontierStatus.DONE: AuditStatus.DONE,
    FrontierStatus.ERROR: AuditStatus.ERROR,
}


class SQLAlchemyCrawlStore(CrawlStore):
    """
    Persist crawl state through the repositories and one DB session.
    """

    def __init__(self, *, session: Session, page_batch_size: int = 500) -> None:
        self._session = session
        self._page_batch_size = max(1, page_batch_size)
        self._audits = AuditRepository(session)
        self._frontiers = CrawlFrontierRepository(session)
        self._pages = AuditPageRepository(session)

    def create_crawl(self, *, audit: AuditSnapshot, frontier: CrawlFrontierState) -> None:
        try:
            self._audits.add(
                Audit(
                    id=audit.id,
                    domain=audit.domain,
                    registrable_domain=audit.registrable_domain,
                    brand_name=audit.brand_name,
                    business_type=audit.business_type,
                    user_id=audit.user_id,
                    page_budget=audit.page_budget,
                    status=audit.status,
                    llms_txt_present=audit.llms_txt_present,
                )
            )
            self._frontiers.add(
                CrawlFrontier(
                    audit_id=frontier.audit_id,
                    queue=list(frontier.queue),
                    seen_urls=sorted(frontier.seen),
                    crawled_count=frontier.crawled_count,
                    page_budget=frontier.page_budget,
                    allow_subdomains=frontier.allow_subdomains,
                    policy_rules=[rule.to_dict() for rule in frontier.policy_rules],
                    status=frontier.status,
                    error_detail=frontier.error_detail,
                    version=frontier.version,
                )
            )
            self._session.commit()
        except SQLAlchemyError:
            self._session.rollback()
            raise

    def load_audit(self, audit_id: uuid.UUID) -> AuditSnapshot | None:
        row = self._audits.get(audit_id)
        if row is None:
            return None
        return AuditSnapshot(
            id=row.id,
            domain=row.domain,
            registrable_domain=row.registrable_domain,
            page_budget=row.page_budget,
            status=row.status,
            brand_name=row.brand_name,
            business_type=row.business_type,
            user_id=row.user_id,
            llms_txt_present=row.llms_txt_present,
            error_message=row.error_message,
            created_at=row.created_at,
        )

    def load_frontier(self, audit_id: uuid.UUID) -> CrawlFrontierState | None:
        row = self._frontiers.get(audit_id)
        if row is None:
            return None
        return CrawlFrontierState(
            audit_id=row.audit_id,
            page_budget=row.page_budget,
            allow_subdomains=row.allow_subdomains,
            queue=list(row.queue or []),
            seen=set(row.seen_urls or []),
            crawled_count=row.crawled_count,
            policy_rules=[PolicyRule.from_dict(raw) for raw in (row.policy_rules or [])],
            status=row.status,
            error_detail=row.error_detail,
            version=row.version,
        )

    def commit_batch(
        self,
        *,
        frontier: CrawlFrontierState,
        pages: Sequence[ExtractedPage],
        expected_version: int,
        fail_on_page_error: bool = False,
    ) -> int:
        inserted = 0
        try:
            if pages:
                inserted = self._insert_pages(frontier.audit_id, pages, fail_on_page_error)

            updated = self._frontiers.compare_and_set(
                frontier.audit_id,
                expected_version=expected_version,
                queue=frontier.queue,
                seen_urls=sorted(frontier.seen),
                crawled_count=frontier.crawled_count,
                status=frontier.status,
                error_detail=frontier.error_detail,
            )
            if not updated:
                self._session.rollback()
                raise FrontierConflictError(frontier.audit_id, expected_version=expected_version)

            audit_status = _AUDIT_STATUS_FOR_FRONTIER.get(frontier.status)
            if audit_status is not None:
                self._audits.set_status(
                    frontier.audit_id,
                    status=audit_status,
                    error_message=frontier.error_detail,
                )
            self._session.commit()
        except SQLAlchemyError:
            self._session.rollback()
            raise

        frontier.version = expected_version + 1
        return inserted

    def _insert_pages(
        self,
        audit_id: uuid.UUID,
        pages: Sequence[ExtractedPage],
        fail_on_page_error: bool,
    ) -> int:
        savepoint = self._session.begin_nested()
        try:
            inserted = self._pages.bulk_insert(audit_id, pages, batch_size=self._page_batch_size)
            savepoint.commit()
            return inserted
        except SQLAlchemyError as exc:
            savepoint.rollback()
            log_event(
                logger,
                logging.ERROR,
                "page_persistence_failed",
                audit_id=audit_id,
                page_count=len(pages),
                fail_batch=fail_on_page_error,
                error=str(exc),
            )
            if fail_on_page_error:
                self._session.rollback()
                raise PagePersistenceError(
                    f"Could not store {len(pages)} page(s) for audit_id={audit_id}."
                ) from exc
            return 0

    def list_pages(self, audit_id: uuid.UUID, *, limit: int | None = None) -> list[StoredPage]:
        return [self._to_stored_page(row) for row in self._pages.list_for_audit(audit_id, limit=limit)]

    @staticmethod
    def _to_stored_page(row: AuditPage) -> StoredPage:
        return StoredPage(
            audit_id=row.audit_id,
            url=row.url,
            status_code=row.status_code,
            title=row.title,
            h1=row.h1,
            meta_description=row.meta_description,
            canonical=row.canonical,
            has_schema=row.has_schema,
            schema_types=list(row.schema_types or []),
            headings=dict(row.headings or {}),
            word_count=row.word_count,
            image_count=row.image_count,
            images_with_alt=row.images_with_alt,
            created_at=row.created_at,
        )
