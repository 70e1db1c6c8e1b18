"""
db/models/audit.py

Audit model: one crawl campaign for a target domain.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.audit_page import AuditPage
    from db.models.crawl_frontier import CrawlFrontier


class AuditStatus:
    """Valid audit states: crawling → done | error."""

    CRAWLING = "crawling"
    DONE = "done"
    ERROR = "error"


class Audit(Base, TimestampMixin):
    """
    Represents one crawl campaign for a domain.

    Only `status`, `error_message` and `completed_at` change after creation;
    progress itself lives on the owned CrawlFrontier row.
    """

    __tablename__ = "audits"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    domain: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Audited host without scheme or leading www.",
    )

    registrable_domain: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Registrable unit used for subdomain-inclusive scope checks",
    )

    brand_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    business_type: Mapped[str | None] = mapped_column(String(100), nullable=True)

    user_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Optional owner identifier supplied by the caller",
    )

    page_budget: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Maximum successfully parsed pages, 1..500",
    )

    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=AuditStatus.CRAWLING,
        comment="crawling → done | error",
    )

    llms_txt_present: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether the site publishes an llms.txt guidance document",
    )

    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    frontier: Mapped["CrawlFrontier"] = relationship(
        "CrawlFrontier",
        back_populates="audit",
        uselist=False,
        cascade="all, delete-orphan",
    )

    pages: Mapped[list["AuditPage"]] = relationship(
        "AuditPage",
        back_populates="audit",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_audits_domain", "domain"),
        Index("ix_audits_status", "status"),
        Index("ix_audits_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Audit id={self.id} domain={self.domain!r} status={self.status!r}>"
