"""
tests/test_audit_crawl_api.py

HTTP surface of the audit crawl router.

The router is mounted on a bare FastAPI app with its dependencies
overridden, so no database is needed.
"""

from __future__ import annotations

import uuid

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.routers import audit_crawl_router
from app.crawling.config import CrawlSettings
from app.crawling.storage import CrawlStore
from app.services.audit_crawl_service import AuditCrawlService, get_audit_crawl_service
from db.models.crawl_frontier import FrontierStatus
from db.session import get_db

from conftest import FakeHTTPSession, InMemoryCrawlStore, html_page, seed_crawl

ORIGIN = "https://example.com"


class InMemoryAuditCrawlService(AuditCrawlService):
    def __init__(self, *, store: InMemoryCrawlStore, http_session: FakeHTTPSession) -> None:
        super().__init__(settings=CrawlSettings(), http_session=http_session)  # type: ignore[arg-type]
        self.store = store

    def _store(self, db) -> CrawlStore:  # type: ignore[override]
        return self.store


@pytest.fixture()
def client(http: FakeHTTPSession, store: InMemoryCrawlStore) -> TestClient:
    application = FastAPI()
    application.include_router(audit_crawl_router)
    service = InMemoryAuditCrawlService(store=store, http_session=http)
    application.dependency_overrides[get_db] = lambda: None
    application.dependency_overrides[get_audit_crawl_service] = lambda: service
    return TestClient(application)


def test_initialize_then_continue_to_done(client: TestClient, http: FakeHTTPSession) -> None:
    http.add_html(ORIGIN, html_page(title="Home", links=["/about"]))
    http.add_html(f"{ORIGIN}/", html_page(title="Home", links=["/about"]))
    http.add_html(f"{ORIGIN}/about", html_page(title="About"))

    created = client.post("/audits", json={"domain": "example.com", "page_budget": 5})
    assert created.status_code == 201
    body = created.json()
    assert body["queue_size"] == 2
    assert body["page_budget"] == 5
    assert body["status"] == "running"
    audit_id = body["audit_id"]

    progress = client.post(f"/audits/{audit_id}/continue")
    assert progress.status_code == 200
    assert progress.json()["done"] is True
    assert progress.json()["crawled_count"] == 2

    pages = client.get(f"/audits/{audit_id}/pages")
    assert pages.status_code == 200
    assert sorted(page["title"] for page in pages.json()["pages"]) == ["About", "Home"]

    snapshot = client.get(f"/audits/{audit_id}/crawl")
    assert snapshot.json()["status"] == "done"


def test_invalid_domain_is_rejected(client: TestClient) -> None:
    assert client.post("/audits", json={"domain": "nope"}).status_code == 400
    assert client.post("/audits", json={"domain": "   "}).status_code == 422


def test_unknown_audit_returns_404(client: TestClient) -> None:
    missing = uuid.uuid4()
    assert client.post(f"/audits/{missing}/continue").status_code == 404
    assert client.get(f"/audits/{missing}/crawl").status_code == 404
    assert client.get(f"/audits/{missing}/pages").status_code == 404


def test_conflict_returns_409(client: TestClient, http: FakeHTTPSession, store: InMemoryCrawlStore) -> None:
    http.add_html(f"{ORIGIN}/a", html_page())
    audit_id = seed_crawl(store, queue=[f"{ORIGIN}/a"])

    def other_writer(target: uuid.UUID) -> None:
        store.frontiers[target].version += 1

    store.before_commit = other_writer

    assert client.post(f"/audits/{audit_id}/continue").status_code == 409


def test_error_frontier_reports_error(client: TestClient, store: InMemoryCrawlStore) -> None:
    audit_id = seed_crawl(store, queue=[f"{ORIGIN}/a"])
    store.frontiers[audit_id].seen.clear()

    response = client.post(f"/audits/{audit_id}/continue")

    assert response.status_code == 200
    assert response.json()["done"] is True
    assert "seen-set" in response.json()["error"]


def test_error_status_without_detail_still_reports_error(
    client: TestClient, store: InMemoryCrawlStore
) -> None:
    audit_id = seed_crawl(store, queue=[], status=FrontierStatus.ERROR)

    for response in (client.post(f"/audits/{audit_id}/continue"), client.get(f"/audits/{audit_id}/crawl")):
        assert response.status_code == 200
        assert response.json() == {"audit_id": str(audit_id), "error": "Crawl failed.", "done": True}


def test_known_audit_without_pages_lists_nothing(client: TestClient, store: InMemoryCrawlStore) -> None:
    audit_id = seed_crawl(store, queue=[f"{ORIGIN}/a"])

    response = client.get(f"/audits/{audit_id}/pages")

    assert response.status_code == 200
    assert response.json()["pages"] == []
