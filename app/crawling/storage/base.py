"""
Storage layer interfaces for audit crawl state.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from collections.abc import Sequence

from app.crawling.frontier import CrawlFrontierState
from app.crawling.types import ExtractedPage
from app.domain.audit_crawl import AuditSnapshot, StoredPage


class CrawlStore(ABC):
    """
    Durable home of audits, frontiers and page records.

    Each continuation invocation reads one audit + frontier and then writes
    its whole batch through `commit_batch`.
    """

    @abstractmethod
    def create_crawl(self, *, audit: AuditSnapshot, frontier: CrawlFrontierState) -> None:
        """
        Persist a new audit together with its initial frontier.
        """

    @abstractmethod
    def load_audit(self, audit_id: uuid.UUID) -> AuditSnapshot | None:
        """
        Return the audit, or None when it does not exist.
        """

    @abstractmethod
    def load_frontier(self, audit_id: uuid.UUID) -> CrawlFrontierState | None:
        """
        Return the audit's frontier, or None when it does not exist.
        """

    @abstractmethod
    def commit_batch(
        self,
        *,
        frontier: CrawlFrontierState,
        pages: Sequence[ExtractedPage],
        expected_version: int,
        fail_on_page_error: bool = False,
    ) -> int:
        """
        Append `pages` and write `frontier` if its stored version is still
        `expected_version`; return the number of page rows stored.

        Raises FrontierConflictError when the version moved and nothing is
        written. A page-insert failure is logged and tolerated unless
        `fail_on_page_error` is set, in which case PagePersistenceError is
        raised and nothing is written. On success `frontier.version` is bumped
        and a terminal frontier status is mirrored onto the audit.
        """

    @abstractmethod
    def list_pages(self, audit_id: uuid.UUID, *, limit: int | None = None) -> list[StoredPage]:
        """
        Return stored page records for one audit.
        """
