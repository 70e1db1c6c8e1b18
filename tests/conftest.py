"""
tests/conftest.py

Shared fakes for the crawl engine tests.

No network and no database: HTTP goes through FakeHTTPSession, state lives
in InMemoryCrawlStore. Both mirror the contracts of requests.Session and
CrawlStore closely enough that the real fetcher, initializer and worker run
unchanged on top of them.
"""

from __future__ import annotations

import copy
import threading
import uuid
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from app.crawling.config import CrawlSettings
from app.crawling.errors import FrontierConflictError, PagePersistenceError
from app.crawling.fetcher import PageFetcher
from app.crawling.frontier import CrawlFrontierState
from app.crawling.storage import CrawlStore
from app.crawling.types import ExtractedPage
from app.domain.audit_crawl import AuditSnapshot, StoredPage
from db.models.audit import AuditStatus
from db.models.crawl_frontier import FrontierStatus

HTML = "text/html; charset=utf-8"


# ---------------------------------------------------------------------------
# HTTP fakes
# ---------------------------------------------------------------------------


class FakeResponse:
    def __init__(
        self,
        *,
        url: str,
        status_code: int,
        content_type: str,
        body: str,
        encoding: str | None = "utf-8",
    ) -> None:
        self.url = url
        self.status_code = status_code
        self.headers = CaseInsensitiveDict({"Content-Type": content_type})
        self.encoding = encoding
        self.text = body
        self.drained = False

    def iter_content(self, chunk_size: int = 1):
        self.drained = True
        data = self.text.encode("utf-8")
        for start in range(0, len(data), chunk_size):
            yield data[start : start + chunk_size]

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        return None


class FakeHTTPSession:
    """
    Serves canned responses by exact URL; anything unrouted is a 404.

    A route value is `(status, content_type, body, final_url)`, a prepared
    response object, or an exception instance that `get` raises.
    """

    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        self.routes: dict[str, Any] = dict(routes or {})
        self.calls: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def add_html(self, url: str, body: str, *, status: int = 200) -> None:
        self.routes[url] = (status, HTML, body, url)

    def add(self, url: str, body: str, *, content_type: str = "text/plain", status: int = 200) -> None:
        self.routes[url] = (status, content_type, body, url)

    def redirect(self, url: str, final_url: str, body: str) -> None:
        self.routes[url] = (200, HTML, body, final_url)

    def serve(self, url: str, response: Any) -> None:
        self.routes[url] = response

    def fail(self, url: str, exc: Exception) -> None:
        self.routes[url] = exc

    def requested(self, url: str) -> int:
        with self._lock:
            return sum(1 for call in self.calls if call["url"] == url)

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        with self._lock:
            self.calls.append({"url": url, **kwargs})
        route = self.routes.get(url)
        if isinstance(route, Exception):
            raise route
        if route is None:
            return FakeResponse(url=url, status_code=404, content_type=HTML, body="not found")
        if not isinstance(route, tuple):
            return route
        status, content_type, body, final_url = route
        return FakeResponse(url=final_url, status_code=status, content_type=content_type, body=body)


# ---------------------------------------------------------------------------
# Storage fake
# ---------------------------------------------------------------------------


class InMemoryCrawlStore(CrawlStore):
    """
    CrawlStore with the same version and persistence-policy semantics as the
    SQLAlchemy store.

    `fail_page_inserts` simulates a failing page table; `before_commit` runs
    at the start of every commit so tests can race another writer.
    """

    def __init__(self) -> None:
        self.audits: dict[uuid.UUID, AuditSnapshot] = {}
        self.frontiers: dict[uuid.UUID, CrawlFrontierState] = {}
        self.pages: list[StoredPage] = []
        self.commits = 0
        self.fail_page_inserts = False
        self.before_commit: Callable[[uuid.UUID], None] | None = None

    def create_crawl(self, *, audit: AuditSnapshot, frontier: CrawlFrontierState) -> None:
        self.audits[audit.id] = audit
        self.frontiers[frontier.audit_id] = copy.deepcopy(frontier)

    def load_audit(self, audit_id: uuid.UUID) -> AuditSnapshot | None:
        return self.audits.get(audit_id)

    def load_frontier(self, audit_id: uuid.UUID) -> CrawlFrontierState | None:
        stored = self.frontiers.get(audit_id)
        return copy.deepcopy(stored) if stored is not None else None

    def commit_batch(
        self,
        *,
        frontier: CrawlFrontierState,
        pages: Sequence[ExtractedPage],
        expected_version: int,
        fail_on_page_error: bool = False,
    ) -> int:
        if self.before_commit is not None:
            self.before_commit(frontier.audit_id)

        stored = self.frontiers[frontier.audit_id]
        if stored.version != expected_version:
            raise FrontierConflictError(frontier.audit_id, expected_version=expected_version)

        inserted: list[StoredPage] = []
        if pages:
            if self.fail_page_inserts:
                if fail_on_page_error:
                    raise PagePersistenceError("page table unavailable")
            else:
                inserted = [self._to_stored_page(frontier.audit_id, page) for page in pages]

        self.pages.extend(inserted)
        frontier.version = expected_version + 1
        self.frontiers[frontier.audit_id] = copy.deepcopy(frontier)
        self.commits += 1

        if frontier.status in {FrontierStatus.DONE, FrontierStatus.ERROR}:
            audit = self.audits[frontier.audit_id]
            self.audits[frontier.audit_id] = replace(
                audit,
                status=AuditStatus.DONE if frontier.status == FrontierStatus.DONE else AuditStatus.ERROR,
                error_message=frontier.error_detail,
            )
        return len(inserted)

    def list_pages(self, audit_id: uuid.UUID, *, limit: int | None = None) -> list[StoredPage]:
        rows = [page for page in self.pages if page.audit_id == audit_id]
        return rows[:limit] if limit is not None else rows

    @staticmethod
    def _to_stored_page(audit_id: uuid.UUID, page: ExtractedPage) -> StoredPage:
        return StoredPage(
            audit_id=audit_id,
            url=page.url,
            status_code=page.status_code,
            title=page.title,
            h1=page.h1,
            meta_description=page.meta_description,
            canonical=page.canonical,
            has_schema=page.has_schema,
            schema_types=list(page.schema_types),
            headings=dict(page.headings),
            word_count=page.word_count,
            image_count=page.image_count,
            images_with_alt=page.images_with_alt,
            created_at=datetime.now(timezone.utc),
        )


def seed_crawl(
    store: InMemoryCrawlStore,
    *,
    queue: Sequence[str],
    page_budget: int = 100,
    domain: str = "example.com",
    **frontier_fields: Any,
) -> uuid.UUID:
    """Register an audit whose frontier starts with `queue`."""
    audit_id = uuid.uuid4()
    store.create_crawl(
        audit=AuditSnapshot(
            id=audit_id,
            domain=domain,
            registrable_domain=domain,
            page_budget=page_budget,
            status=AuditStatus.CRAWLING,
        ),
        frontier=CrawlFrontierState(
            audit_id=audit_id,
            page_budget=page_budget,
            queue=list(queue),
            seen=set(queue),
            **frontier_fields,
        ),
    )
    return audit_id


def html_page(
    *,
    title: str = "Page",
    links: Sequence[str] = (),
    body: str = "",
    head: str = "",
) -> str:
    anchors = "".join(f'<a href="{href}">link</a>' for href in links)
    return (
        f"<html><head><title>{title}</title>{head}</head>"
        f"<body><h1>{title}</h1>{body}{anchors}</body></html>"
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def settings() -> CrawlSettings:
    return CrawlSettings()


@pytest.fixture()
def http() -> FakeHTTPSession:
    return FakeHTTPSession()


@pytest.fixture()
def fetcher(http: FakeHTTPSession, settings: CrawlSettings) -> PageFetcher:
    return PageFetcher(session=http, user_agent=settings.user_agent)  # type: ignore[arg-type]


@pytest.fixture()
def store() -> InMemoryCrawlStore:
    return InMemoryCrawlStore()


@pytest.fixture()
def timeout_error() -> Exception:
    return requests.Timeout("read timed out")
