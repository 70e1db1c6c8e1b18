"""create audit crawl tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "audits",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("domain", sa.String(length=255), nullable=False),
        sa.Column("registrable_domain", sa.String(length=255), nullable=False),
        sa.Column("brand_name", sa.String(length=255), nullable=True),
        sa.Column("business_type", sa.String(length=100), nullable=True),
        sa.Column("user_id", sa.String(length=255), nullable=True),
        sa.Column("page_budget", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("llms_txt_present", sa.Boolean(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_audits"),
    )
    op.create_index("ix_audits_domain", "audits", ["domain"], unique=False)
    op.create_index("ix_audits_status", "audits", ["status"], unique=False)
    op.create_index("ix_audits_user_id", "audits", ["user_id"], unique=False)

    op.create_table(
        "crawl_frontiers",
        sa.Column("audit_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("queue", postgresql.ARRAY(sa.Text()), nullable=False),
        sa.Column("seen_urls", postgresql.ARRAY(sa.Text()), nullable=False),
        sa.Column("crawled_count", sa.Integer(), nullable=False),
        sa.Column("page_budget", sa.Integer(), nullable=False),
        sa.Column("allow_subdomains", sa.Boolean(), nullable=False),
        sa.Column("policy_rules", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("error_detail", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["audit_id"],
            ["audits.id"],
            name="fk_crawl_frontiers_audit_id_audits",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("audit_id", name="pk_crawl_frontiers"),
    )
    op.create_index("ix_crawl_frontiers_status", "crawl_frontiers", ["status"], unique=False)

    op.create_table(
        "audit_pages",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("audit_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("status_code", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("h1", sa.Text(), nullable=False),
        sa.Column("meta_description", sa.Text(), nullable=False),
        sa.Column("canonical", sa.Text(), nullable=False),
        sa.Column("has_schema", sa.Boolean(), nullable=False),
        sa.Column("schema_types", postgresql.ARRAY(sa.String(length=255)), nullable=False),
        sa.Column("headings", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("word_count", sa.Integer(), nullable=False),
        sa.Column("image_count", sa.Integer(), nullable=False),
        sa.Column("images_with_alt", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["audit_id"],
            ["audits.id"],
            name="fk_audit_pages_audit_id_audits",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_audit_pages"),
    )
    op.create_index("ix_audit_pages_audit_id", "audit_pages", ["audit_id"], unique=False)
    op.create_index("ix_audit_pages_audit_id_url", "audit_pages", ["audit_id", "url"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_audit_pages_audit_id_url", table_name="audit_pages")
    op.drop_index("ix_audit_pages_audit_id", table_name="audit_pages")
    op.drop_table("audit_pages")
    op.drop_index("ix_crawl_frontiers_status", table_name="crawl_frontiers")
    op.drop_table("crawl_frontiers")
    op.drop_index("ix_audits_user_id", table_name="audits")
    op.drop_index("ix_audits_status", table_name="audits")
    op.drop_index("ix_audits_domain", table_name="audits")
    op.drop_table("audits")
