"""
app/repositories/audit_repository.py

Persistence layer for audit campaigns.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.orm import Session

from db.models.audit import Audit, AuditStatus


class AuditRepository:
    """
    Repository for audit rows. Callers own the transaction.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, audit: Audit) -> Audit:
        self._session.add(audit)
        self._session.flush()
        return audit

    def get(self, audit_id: uuid.UUID) -> Audit | None:
        return self._session.get(Audit, audit_id, populate_existing=True)

    def set_status(
        self,
        audit_id: uuid.UUID,
        *,
        status: str,
        error_message: str | None = None,
    ) -> None:
        values: dict[str, object] = {"status": status, "error_message": error_message}
        if status in {AuditStatus.DONE, AuditStatus.ERROR}:
            values["completed_at"] = datetime.now(timezone.utc)
        self._session.execute(update(Audit).where(Audit.id == audit_id).values(**values))
