"""
tests/test_sqlalchemy_storage.py

Transaction handling of SQLAlchemyCrawlStore.commit_batch.

The session and repositories are replaced with recording stubs, so the
SAVEPOINT, rollback and commit sequence is checked without a database.
"""

from __future__ import annotations

import uuid
from typing import Any

import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from app.crawling.errors import FrontierConflictError, PagePersistenceError
from app.crawling.frontier import CrawlFrontierState
from app.crawling.storage import SQLAlchemyCrawlStore
from app.crawling.types import ExtractedPage
from db.models.audit import AuditStatus
from db.models.crawl_frontier import FrontierStatus

ORIGIN = "https://example.com"


class RecordingSavepoint:
    def __init__(self, session: "RecordingSession") -> None:
        self._session = session

    def commit(self) -> None:
        self._session.events.append("savepoint.commit")

    def rollback(self) -> None:
        self._session.events.append("savepoint.rollback")


class RecordingSession:
    def __init__(self, *, commit_error: SQLAlchemyError | None = None) -> None:
        self.events: list[str] = []
        self._commit_error = commit_error

    def begin_nested(self) -> RecordingSavepoint:
        self.events.append("begin_nested")
        return RecordingSavepoint(self)

    def commit(self) -> None:
        self.events.append("commit")
        if self._commit_error is not None:
            raise self._commit_error

    def rollback(self) -> None:
        self.events.append("rollback")


class StubPages:
    def __init__(self, *, error: SQLAlchemyError | None = None) -> None:
        self.error = error
        self.inserted: list[ExtractedPage] = []

    def bulk_insert(self, audit_id: uuid.UUID, pages, *, batch_size: int) -> int:
        if self.error is not None:
            raise self.error
        self.inserted.extend(pages)
        return len(pages)


class StubFrontiers:
    def __init__(self, *, accept: bool = True) -> None:
        self.accept = accept
        self.calls: list[dict[str, Any]] = []

    def compare_and_set(self, audit_id: uuid.UUID, **fields: Any) -> bool:
        self.calls.append({"audit_id": audit_id, **fields})
        return self.accept


class StubAudits:
    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

    def set_status(self, audit_id: uuid.UUID, *, status: str, error_message: str | None = None) -> None:
        self.calls.append({"audit_id": audit_id, "status": status, "error_message": error_message})


def _insert_error() -> SQLAlchemyError:
    return OperationalError("INSERT INTO audit_pages", {}, Exception("disk full"))


def _store(
    session: RecordingSession,
    *,
    pages: StubPages | None = None,
    frontiers: StubFrontiers | None = None,
) -> tuple[SQLAlchemyCrawlStore, StubPages, StubFrontiers, StubAudits]:
    store = SQLAlchemyCrawlStore(session=session)  # type: ignore[arg-type]
    stub_pages = pages or StubPages()
    stub_frontiers = frontiers or StubFrontiers()
    stub_audits = StubAudits()
    store._pages = stub_pages  # type: ignore[assignment]
    store._frontiers = stub_frontiers  # type: ignore[assignment]
    store._audits = stub_audits  # type: ignore[assignment]
    return store, stub_pages, stub_frontiers, stub_audits


def _frontier(*, version: int = 3, status: str = FrontierStatus.RUNNING) -> CrawlFrontierState:
    return CrawlFrontierState(
        audit_id=uuid.uuid4(),
        page_budget=10,
        queue=[f"{ORIGIN}/next"],
        seen={f"{ORIGIN}/", f"{ORIGIN}/next"},
        crawled_count=1,
        status=status,
        version=version,
    )


PAGES = [ExtractedPage(url=f"{ORIGIN}/", status_code=200, title="Home")]


# ---------------------------------------------------------------------------
# Successful commit
# ---------------------------------------------------------------------------


class TestCommit:
    def test_pages_and_frontier_commit_together(self) -> None:
        session = RecordingSession()
        store, pages, frontiers, audits = _store(session)
        frontier = _frontier()

        inserted = store.commit_batch(frontier=frontier, pages=PAGES, expected_version=3)

        assert inserted == 1
        assert pages.inserted == PAGES
        assert session.events == ["begin_nested", "savepoint.commit", "commit"]
        assert frontiers.calls[0]["expected_version"] == 3
        assert frontiers.calls[0]["seen_urls"] == sorted(frontier.seen)
        assert frontier.version == 4
        assert audits.calls == []

    def test_no_pages_skips_the_savepoint(self) -> None:
        session = RecordingSession()
        store, _, frontiers, _ = _store(session)
        frontier = _frontier()

        assert store.commit_batch(frontier=frontier, pages=[], expected_version=3) == 0
        assert session.events == ["commit"]
        assert len(frontiers.calls) == 1
        assert frontier.version == 4

    def test_done_frontier_is_mirrored_onto_the_audit(self) -> None:
        session = RecordingSession()
        store, _, _, audits = _store(session)
        frontier = _frontier(status=FrontierStatus.DONE)

        store.commit_batch(frontier=frontier, pages=PAGES, expected_version=3)

        assert audits.calls == [
            {"audit_id": frontier.audit_id, "status": AuditStatus.DONE, "error_message": None}
        ]

    def test_error_frontier_carries_its_detail_to_the_audit(self) -> None:
        session = RecordingSession()
        store, _, _, audits = _store(session)
        frontier = _frontier(status=FrontierStatus.ERROR)
        frontier.error_detail = "queue corrupted"

        store.commit_batch(frontier=frontier, pages=[], expected_version=3)

        assert audits.calls[0]["status"] == AuditStatus.ERROR
        assert audits.calls[0]["error_message"] == "queue corrupted"


# ---------------------------------------------------------------------------
# Page insert failures
# ---------------------------------------------------------------------------


class TestPagePersistencePolicies:
    def test_advance_rolls_back_only_the_savepoint(self) -> None:
        session = RecordingSession()
        store, _, frontiers, _ = _store(session, pages=StubPages(error=_insert_error()))
        frontier = _frontier()

        inserted = store.commit_batch(frontier=frontier, pages=PAGES, expected_version=3)

        assert inserted == 0
        assert session.events == ["begin_nested", "savepoint.rollback", "commit"]
        assert len(frontiers.calls) == 1
        assert frontier.version == 4

    def test_fail_batch_rolls_back_everything(self) -> None:
        session = RecordingSession()
        store, _, frontiers, audits = _store(session, pages=StubPages(error=_insert_error()))
        frontier = _frontier(status=FrontierStatus.DONE)

        with pytest.raises(PagePersistenceError) as excinfo:
            store.commit_batch(frontier=frontier, pages=PAGES, expected_version=3, fail_on_page_error=True)

        assert isinstance(excinfo.value.__cause__, SQLAlchemyError)
        assert session.events == ["begin_nested", "savepoint.rollback", "rollback"]
        assert frontiers.calls == []
        assert audits.calls == []
        assert frontier.version == 3


# ---------------------------------------------------------------------------
# Version conflicts and commit failures
# ---------------------------------------------------------------------------


class TestConflicts:
    def test_stale_version_rolls_back_and_raises(self) -> None:
        session = RecordingSession()
        store, _, _, audits = _store(session, frontiers=StubFrontiers(accept=False))
        frontier = _frontier(status=FrontierStatus.DONE)

        with pytest.raises(FrontierConflictError) as excinfo:
            store.commit_batch(frontier=frontier, pages=PAGES, expected_version=3)

        assert excinfo.value.expected_version == 3
        assert session.events == ["begin_nested", "savepoint.commit", "rollback"]
        assert "commit" not in session.events
        assert audits.calls == []
        assert frontier.version == 3

    def test_failed_commit_rolls_back_and_keeps_the_version(self) -> None:
        session = RecordingSession(commit_error=_insert_error())
        store, _, _, _ = _store(session)
        frontier = _frontier()

        with pytest.raises(SQLAlchemyError):
            store.commit_batch(frontier=frontier, pages=[], expected_version=3)

        assert session.events == ["commit", "rollback"]
        assert frontier.version == 3
