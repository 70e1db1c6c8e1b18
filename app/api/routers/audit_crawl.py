"""
app/api/routers/audit_crawl.py

Audit crawl endpoints: initialize, continue, inspect.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.crawling.errors import CrawlNotFoundError, FrontierConflictError, PagePersistenceError
from app.domain.audit_crawl import CrawlProgress
from app.schemas.audit_crawl import (
    AuditPageListResponse,
    AuditPageResponse,
    CrawlErrorResponse,
    CrawlInitRequest,
    CrawlInitResponse,
    CrawlProgressResponse,
)
from app.services.audit_crawl_service import AuditCrawlService, get_audit_crawl_service
from db.models.crawl_frontier import FrontierStatus
from db.session import get_db

router = APIRouter(prefix="/audits", tags=["audit-crawl"])


def _progress_response(progress: CrawlProgress) -> CrawlProgressResponse | CrawlErrorResponse:
    if progress.status == FrontierStatus.ERROR:
        return CrawlErrorResponse(
            audit_id=progress.audit_id,
            error=progress.error or "Crawl failed.",
            done=True,
        )
    return CrawlProgressResponse(
        audit_id=progress.audit_id,
        crawled_count=progress.crawled_count,
        page_budget=progress.page_budget,
        queue_size=progress.queue_size,
        pages_this_batch=progress.pages_this_batch,
        urls_processed=progress.urls_processed,
        done=progress.done,
        status=progress.status,
    )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=CrawlInitResponse)
def initialize_crawl(
    payload: CrawlInitRequest,
    db: Session = Depends(get_db),
    crawl_service: AuditCrawlService = Depends(get_audit_crawl_service),
) -> CrawlInitResponse:
    """
    Create an audit and seed its crawl frontier.
    """

    try:
        result = crawl_service.initialize(
            db=db,
            domain=payload.domain,
            brand_name=payload.brand_name,
            business_type=payload.business_type,
            page_budget=payload.page_budget,
            allow_subdomains=payload.allow_subdomains,
            user_id=payload.user_id,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return CrawlInitResponse(
        audit_id=result.audit_id,
        queue_size=result.queue_size,
        page_budget=result.page_budget,
        status=result.status,
    )


@router.post(
    "/{audit_id}/continue",
    response_model=CrawlProgressResponse | CrawlErrorResponse,
)
def continue_crawl(
    audit_id: UUID,
    db: Session = Depends(get_db),
    crawl_service: AuditCrawlService = Depends(get_audit_crawl_service),
) -> CrawlProgressResponse | CrawlErrorResponse:
    """
    Process one batch of the audit's frontier and report progress.
    """

    try:
        progress = crawl_service.continue_crawl(db=db, audit_id=audit_id)
    except CrawlNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except FrontierConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except PagePersistenceError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return _progress_response(progress)


@router.get(
    "/{audit_id}/crawl",
    response_model=CrawlProgressResponse | CrawlErrorResponse,
)
def get_crawl_progress(
    audit_id: UUID,
    db: Session = Depends(get_db),
    crawl_service: AuditCrawlService = Depends(get_audit_crawl_service),
) -> CrawlProgressResponse | CrawlErrorResponse:
    try:
        progress = crawl_service.get_progress(db=db, audit_id=audit_id)
    except CrawlNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return _progress_response(progress)


@router.get("/{audit_id}/pages", response_model=AuditPageListResponse)
def list_audit_pages(
    audit_id: UUID,
    limit: int = Query(default=500, ge=1, le=1000, description="Max pages returned"),
    db: Session = Depends(get_db),
    crawl_service: AuditCrawlService = Depends(get_audit_crawl_service),
) -> AuditPageListResponse:
    try:
        pages = crawl_service.list_pages(db=db, audit_id=audit_id, limit=limit)
    except CrawlNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return AuditPageListResponse(
        audit_id=audit_id,
        pages=[
            AuditPageResponse(
                url=page.url,
                status_code=page.status_code,
                title=page.title,
                h1=page.h1,
                meta_description=page.meta_description,
                canonical=page.canonical,
                has_schema=page.has_schema,
                schema_types=page.schema_types,
                headings=page.headings,
                word_count=page.word_count,
                image_count=page.image_count,
                images_with_alt=page.images_with_alt,
                created_at=page.created_at,
            )
            for page in pages
        ],
    )
