"""
app/repositories/audit_page_repository.py

Append-only persistence for crawled page records.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from app.crawling.types import ExtractedPage
from db.models.audit_page import AuditPage

_DEFAULT_BATCH_SIZE = 500


class AuditPageRepository:
    """
    Repository for batch inserts and reads of audit page rows.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def bulk_insert(
        self,
        audit_id: uuid.UUID,
        pages: Sequence[ExtractedPage],
        *,
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> int:
        """
        Insert page rows with PostgreSQL bulk INSERT and return the inserted count.
        """

        if not pages:
            return 0

        payloads: list[dict[str, Any]] = [
            {
                "audit_id": audit_id,
                "url": page.url,
                "status_code": page.status_code,
                "title": page.title,
                "h1": page.h1,
                "meta_description": page.meta_description,
                "canonical": page.canonical,
                "has_schema": page.has_schema,
                "schema_types": list(page.schema_types),
                "headings": dict(page.headings),
                "word_count": page.word_count,
                "image_count": page.image_count,
                "images_with_alt": page.images_with_alt,
            }
            for page in pages
        ]

        size = max(1, batch_size)
        inserted = 0
        for start in range(0, len(payloads), size):
            chunk = payloads[start : start + size]
            stmt = insert(AuditPage).values(chunk).returning(AuditPage.id)
            inserted += len(self._session.scalars(stmt).all())
        return inserted

    def list_for_audit(self, audit_id: uuid.UUID, *, limit: int | None = None) -> list[AuditPage]:
        stmt = (
            select(AuditPage)
            .where(AuditPage.audit_id == audit_id)
            .order_by(AuditPage.created_at, AuditPage.url)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self._session.scalars(stmt).all())
