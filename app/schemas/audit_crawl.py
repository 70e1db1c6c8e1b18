"""
app/schemas/audit_crawl.py

Request and response schemas for audit crawl operations.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class CrawlInitRequest(BaseModel):
    """
    Request body to start a new audit crawl. `page_budget` is clamped to [1, 500].
    """

    domain: str = Field(..., min_length=1, max_length=255)
    brand_name: str | None = Field(default=None, max_length=255)
    business_type: str | None = Field(default=None, max_length=100)
    page_budget: int | None = Field(default=None, description="Clamped to the configured range")
    allow_subdomains: bool = False
    user_id: str | None = Field(default=None, max_length=255)

    @field_validator("domain")
    @classmethod
    def _strip_domain(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("domain must not be blank")
        return stripped


class CrawlInitResponse(BaseModel):
    audit_id: UUID
    queue_size: int = Field(..., ge=0)
    page_budget: int = Field(..., ge=1)
    status: str


class CrawlProgressResponse(BaseModel):
    audit_id: UUID
    crawled_count: int = Field(..., ge=0)
    page_budget: int = Field(..., ge=1)
    queue_size: int = Field(..., ge=0)
    pages_this_batch: int = Field(default=0, ge=0)
    urls_processed: int = Field(default=0, ge=0)
    done: bool
    status: str


class CrawlErrorResponse(BaseModel):
    """
    Returned instead of progress when the frontier is in `error` status.
    """

    audit_id: UUID
    error: str
    done: bool = True


class AuditPageResponse(BaseModel):
    url: str
    status_code: int
    title: str
    h1: str
    meta_description: str
    canonical: str
    has_schema: bool
    schema_types: list[str] = Field(default_factory=list)
    headings: dict[str, int] = Field(default_factory=dict)
    word_count: int = Field(..., ge=0)
    image_count: int = Field(..., ge=0)
    images_with_alt: int = Field(..., ge=0)
    created_at: datetime | None = None


class AuditPageListResponse(BaseModel):
    audit_id: UUID
    pages: list[AuditPageResponse] = Field(default_factory=list)
