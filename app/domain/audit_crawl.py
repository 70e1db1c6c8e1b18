"""
app/domain/audit_crawl.py

Domain models for audit crawl orchestration.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class AuditSnapshot:
    """
    Immutable view of one audit campaign.
    """

    id: uuid.UUID
    domain: str
    registrable_domain: str
    page_budget: int
    status: str
    brand_name: str | None = None
    business_type: str | None = None
    user_id: str | None = None
    llms_txt_present: bool = False
    error_message: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class CrawlInitResult:
    """
    Outcome of initializing one audit crawl.
    """

    audit_id: uuid.UUID
    queue_size: int
    page_budget: int
    status: str


@dataclass(frozen=True)
class CrawlProgress:
    """
    Progress snapshot returned by each continuation call.

    `error` is set only when the frontier is in `error` status.
    """

    audit_id: uuid.UUID
    crawled_count: int
    page_budget: int
    queue_size: int
    done: bool
    status: str
    pages_this_batch: int = 0
    urls_processed: int = 0
    error: str | None = None


@dataclass(frozen=True)
class StoredPage:
    """
    One persisted page record as read back for downstream consumers.
    """

    audit_id: uuid.UUID
    url: str
    status_code: int
    title: str
    h1: str
    meta_description: str
    canonical: str
    has_schema: bool
    schema_types: list[str] = field(default_factory=list)
    headings: dict[str, Any] = field(default_factory=dict)
    word_count: int = 0
    image_count: int = 0
    images_with_alt: int = 0
    created_at: datetime | None = None
