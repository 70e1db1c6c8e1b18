"""
Crawl engine exceptions.
"""

from __future__ import annotations


class CrawlError(Exception):
    """Base exception for audit crawl failures."""


class CrawlNotFoundError(CrawlError):
    """Raised when the audit or its crawl frontier does not exist."""

    def __init__(self, audit_id: object, *, missing: str = "audit") -> None:
        super().__init__(f"{missing.capitalize()} not found for audit_id={audit_id}")
        self.audit_id = audit_id
        self.missing = missing


class FrontierConflictError(CrawlError):
    """Raised when another invocation advanced the frontier since it was loaded."""

    def __init__(self, audit_id: object, *, expected_version: int) -> None:
        super().__init__(
            f"Crawl frontier for audit_id={audit_id} changed concurrently "
            f"(expected version {expected_version})."
        )
        self.audit_id = audit_id
        self.expected_version = expected_version


class PagePersistenceError(CrawlError):
    """Raised when page rows cannot be stored and the batch must not advance."""


class FrontierStateError(CrawlError):
    """Raised when a loaded frontier violates its invariants."""
