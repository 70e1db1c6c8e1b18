"""
db/models/crawl_frontier.py

Durable resumption state for one audit crawl.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.audit import Audit


class FrontierStatus:
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"


class CrawlFrontier(Base, TimestampMixin):
    """
    One row per audit: FIFO queue, seen-set, counters and policy rules.

    `version` is bumped on every write; writers compare-and-set against the
    version they loaded.
    """

    __tablename__ = "crawl_frontiers"

    audit_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("audits.id", ondelete="CASCADE"),
        primary_key=True,
    )
    queue: Mapped[list[str]] = mapped_column(
        ARRAY(Text),
        nullable=False,
        default=list,
        comment="Normalized URLs not yet fetched, FIFO order",
    )
    seen_urls: Mapped[list[str]] = mapped_column(
        ARRAY(Text),
        nullable=False,
        default=list,
        comment="Every normalized URL ever enqueued",
    )
    crawled_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    page_budget: Mapped[int] = mapped_column(Integer, nullable=False)
    allow_subdomains: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    policy_rules: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        comment="Ordered [{path, allow}] rules, first match wins",
    )
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=FrontierStatus.RUNNING,
        comment="running, done, error",
    )
    error_detail: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    audit: Mapped[Audit] = relationship("Audit", back_populates="frontier")

    __table_args__ = (Index("ix_crawl_frontiers_status", "status"),)
