"""
app/repositories/crawl_frontier_repository.py

Persistence layer for crawl frontiers with optimistic version checks.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import update
from sqlalchemy.orm import Session

from db.models.crawl_frontier import CrawlFrontier


class CrawlFrontierRepository:
    """
    Repository for the single frontier row owned by each audit.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, frontier: CrawlFrontier) -> CrawlFrontier:
        self._session.add(frontier)
        self._session.flush()
        return frontier

    def get(self, audit_id: uuid.UUID) -> CrawlFrontier | None:
        # Writes go through bulk UPDATEs, so identity-map copies can be stale.
        return self._session.get(CrawlFrontier, audit_id, populate_existing=True)

    def compare_and_set(
        self,
        audit_id: uuid.UUID,
        *,
        expected_version: int,
        queue: Sequence[str],
        seen_urls: Sequence[str],
        crawled_count: int,
        status: str,
        error_detail: str | None,
    ) -> bool:
        """
        Write progress only if the row still carries `expected_version`.

        Returns False when another writer got there first.
        """

        values: dict[str, Any] = {
            "queue": list(queue),
            "seen_urls": list(seen_urls),
            "crawled_count": crawled_count,
            "status": status,
            "error_detail": error_detail,
            "version": expected_version + 1,
            "updated_at": datetime.now(timezone.utc),
        }
        result = self._session.execute(
            update(CrawlFrontier)
            .where(
                CrawlFrontier.audit_id == audit_id,
                CrawlFrontier.version == expected_version,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
