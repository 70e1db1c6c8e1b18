"""
Resumable crawl continuation: one bounded batch per invocation.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from app.crawling.config.models import CrawlSettings, PagePersistencePolicy
from app.crawling.errors import CrawlNotFoundError, FrontierConflictError, FrontierStateError
from app.crawling.fetcher import PageFetcher
from app.crawling.frontier import CrawlFrontierState
from app.crawling.logging_utils import log_event, timed_event
from app.crawling.parsing import PageExtractor
from app.crawling.storage import CrawlStore
from app.crawling.types import BatchOutcome, UrlOutcome
from app.domain.audit_crawl import AuditSnapshot, CrawlProgress
from db.models.crawl_frontier import FrontierStatus

logger = logging.getLogger(__name__)


class CrawlContinuationWorker:
    """
    Step function over a durable frontier: load, process one batch, persist.

    Fetches run concurrently in chunks of `settings.concurrency`; each chunk
    completes before the next starts.
    """

    def __init__(
        self,
        *,
        settings: CrawlSettings,
        store: CrawlStore,
        fetcher: PageFetcher,
    ) -> None:
        self._settings = settings
        self._store = store
        self._fetcher = fetcher

    def snapshot(self, audit_id: uuid.UUID) -> CrawlProgress:
        """
        Current progress without processing anything.
        """

        _, frontier = self._load(audit_id)
        return self._progress(frontier)

    def continue_crawl(self, audit_id: uuid.UUID) -> CrawlProgress:
        audit, frontier = self._load(audit_id)
        if frontier.is_terminal:
            return self._progress(frontier)

        expected_version = frontier.version
        try:
            frontier.validate()
        except FrontierStateError as exc:
            frontier.mark_error(str(exc))
            self._store.commit_batch(frontier=frontier, pages=[], expected_version=expected_version)
            log_event(logger, logging.ERROR, "crawl_error", audit_id=audit_id, error=str(exc))
            return self._progress(frontier)

        if frontier.is_exhausted:
            frontier.mark_done()
            self._store.commit_batch(frontier=frontier, pages=[], expected_version=expected_version)
            log_event(
                logger,
                logging.INFO,
                "crawl_done",
                audit_id=audit_id,
                crawled_count=frontier.crawled_count,
                page_budget=frontier.page_budget,
            )
            return self._progress(frontier)

        batch = frontier.next_batch(self._settings.batch_size)
        with timed_event(logger, "crawl_batch_completed", audit_id=audit_id) as summary:
            outcome = self._process_batch(batch, frontier=frontier, audit_host=audit.domain)
            frontier.advance(
                consumed=outcome.processed,
                new_links=outcome.new_links,
                parsed_pages=len(outcome.pages),
            )
            try:
                stored = self._store.commit_batch(
                    frontier=frontier,
                    pages=outcome.pages,
                    expected_version=expected_version,
                    fail_on_page_error=(
                        self._settings.page_persistence_policy == PagePersistencePolicy.FAIL_BATCH
                    ),
                )
            except FrontierConflictError:
                log_event(
                    logger,
                    logging.WARNING,
                    "frontier_conflict",
                    audit_id=audit_id,
                    expected_version=expected_version,
                )
                raise
            summary.update(
                processed=outcome.processed,
                pages_parsed=len(outcome.pages),
                pages_stored=stored,
                new_links=len(outcome.new_links),
                crawled_count=frontier.crawled_count,
                queue_size=len(frontier.queue),
                status=frontier.status,
            )

        return self._progress(
            frontier,
            pages_this_batch=len(outcome.pages),
            urls_processed=outcome.processed,
        )

    def _load(self, audit_id: uuid.UUID) -> tuple[AuditSnapshot, CrawlFrontierState]:
        audit = self._store.load_audit(audit_id)
        if audit is None:
            raise CrawlNotFoundError(audit_id, missing="audit")
        frontier = self._store.load_frontier(audit_id)
        if frontier is None:
            raise CrawlNotFoundError(audit_id, missing="crawl frontier")
        return audit, frontier

    def _process_batch(
        self,
        batch: Sequence[str],
        *,
        frontier: CrawlFrontierState,
        audit_host: str,
    ) -> BatchOutcome:
        outcome = BatchOutcome()
        chunk_size = max(1, self._settings.concurrency)
        with ThreadPoolExecutor(max_workers=chunk_size) as executor:
            for start in range(0, len(batch), chunk_size):
                chunk = batch[start : start + chunk_size]
                for result in executor.map(self._process_url, chunk):
                    outcome.processed += 1
                    if result.page is None:
                        continue
                    outcome.pages.append(result.page)
                    for link in result.page.links:
                        if frontier.admit(link, audit_host=audit_host):
                            outcome.new_links.append(link)
        return outcome

    def _process_url(self, url: str) -> UrlOutcome:
        fetched = self._fetcher.fetch_page(url, timeout=self._settings.continue_timeout_seconds)
        if fetched is None:
            return UrlOutcome(url=url)
        try:
            page = PageExtractor.extract(
                html=fetched.text,
                url=url,
                status_code=fetched.status_code,
                max_links=self._settings.page_max_links,
                base_url=fetched.final_url,
            )
        except Exception as exc:
            log_event(
                logger,
                logging.WARNING,
                "page_parse_failed",
                url=url,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return UrlOutcome(url=url)
        return UrlOutcome(url=url, page=page)

    @staticmethod
    def _progress(
        frontier: CrawlFrontierState,
        *,
        pages_this_batch: int = 0,
        urls_processed: int = 0,
    ) -> CrawlProgress:
        return CrawlProgress(
            audit_id=frontier.audit_id,
            crawled_count=frontier.crawled_count,
            page_budget=frontier.page_budget,
            queue_size=len(frontier.queue),
            done=frontier.is_terminal,
            status=frontier.status,
            pages_this_batch=pages_this_batch,
            urls_processed=urls_processed,
            error=frontier.error_detail if frontier.status == FrontierStatus.ERROR else None,
        )
