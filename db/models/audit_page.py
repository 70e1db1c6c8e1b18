"""
db/models/audit_page.py

Append-only record of one fetched-and-parsed page.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base

if TYPE_CHECKING:
    from db.models.audit import Audit


class AuditPage(Base):
    __tablename__ = "audit_pages"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    audit_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("audits.id", ondelete="CASCADE"),
        nullable=False,
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    status_code: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    h1: Mapped[str] = mapped_column(Text, nullable=False, default="")
    meta_description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    canonical: Mapped[str] = mapped_column(Text, nullable=False, default="")
    has_schema: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    schema_types: Mapped[list[str]] = mapped_column(
        ARRAY(String(255)),
        nullable=False,
        default=list,
    )
    headings: Mapped[dict[str, int]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        comment="Heading counts keyed h1..h6",
    )
    word_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    image_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    images_with_alt: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    audit: Mapped[Audit] = relationship("Audit", back_populates="pages")

    __table_args__ = (
        Index("ix_audit_pages_audit_id", "audit_id"),
        Index("ix_audit_pages_audit_id_url", "audit_id", "url"),
    )
