"""
In-memory model of the durable crawl frontier and its state transitions.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from app.crawling.errors import FrontierStateError
from app.crawling.types import PolicyRule
from app.crawling.urls import admissible, allowed_by_policy, url_path
from db.models.crawl_frontier import FrontierStatus

_TERMINAL_STATUSES = {FrontierStatus.DONE, FrontierStatus.ERROR}
_KNOWN_STATUSES = {FrontierStatus.RUNNING, *_TERMINAL_STATUSES}


@dataclass
class CrawlFrontierState:
    """
    Queue, seen-set, counters and policy for one audit.

    Invariants: `crawled_count <= page_budget`, every queued URL is in `seen`,
    and a `done`/`error` frontier is never mutated again.
    """

    audit_id: uuid.UUID
    page_budget: int
    allow_subdomains: bool = False
    queue: list[str] = field(default_factory=list)
    seen: set[str] = field(default_factory=set)
    crawled_count: int = 0
    policy_rules: list[PolicyRule] = field(default_factory=list)
    status: str = FrontierStatus.RUNNING
    error_detail: str | None = None
    version: int = 0

    @classmethod
    def seed(
        cls,
        *,
        audit_id: uuid.UUID,
        page_budget: int,
        allow_subdomains: bool,
        policy_rules: Sequence[PolicyRule],
        candidates: Iterable[str],
    ) -> "CrawlFrontierState":
        """
        Build the initial frontier from already-normalized, in-scope candidates
        in priority order, dropping duplicates and policy-disallowed paths.
        """

        frontier = cls(
            audit_id=audit_id,
            page_budget=page_budget,
            allow_subdomains=allow_subdomains,
            policy_rules=list(policy_rules),
        )
        for url in candidates:
            if url in frontier.seen or not allowed_by_policy(url_path(url), frontier.policy_rules):
                continue
            frontier.seen.add(url)
            frontier.queue.append(url)
        return frontier

    @property
    def is_terminal(self) -> bool:
        return self.status in _TERMINAL_STATUSES

    @property
    def remaining_capacity(self) -> int:
        return self.page_budget - self.crawled_count

    @property
    def is_exhausted(self) -> bool:
        return not self.queue or self.remaining_capacity <= 0

    def validate(self) -> None:
        if self.status not in _KNOWN_STATUSES:
            raise FrontierStateError(f"Unknown frontier status {self.status!r}.")
        if self.page_budget < 1:
            raise FrontierStateError(f"Page budget must be positive, got {self.page_budget}.")
        if self.crawled_count < 0 or self.crawled_count > self.page_budget:
            raise FrontierStateError(
                f"crawled_count={self.crawled_count} outside [0, {self.page_budget}]."
            )
        missing = [url for url in self.queue if url not in self.seen]
        if missing:
            raise FrontierStateError(f"{len(missing)} queued URL(s) absent from the seen-set.")

    def next_batch(self, batch_size: int) -> list[str]:
        """
        URLs at the front of the queue for the next batch; the queue is not changed.
        """

        size = max(0, min(batch_size, self.remaining_capacity))
        return self.queue[:size]

    def admit(self, url: str, *, audit_host: str) -> bool:
        """
        Mark `url` seen if it is new, in scope and allowed by policy.
        """

        if url in self.seen:
            return False
        if not admissible(url, audit_host, self.allow_subdomains, self.policy_rules):
            return False
        self.seen.add(url)
        return True

    def advance(self, *, consumed: int, new_links: Sequence[str], parsed_pages: int) -> None:
        """
        Drop `consumed` URLs from the front, append `new_links` to the back and
        count `parsed_pages`; becomes `done` when exhausted.
        """

        self._ensure_mutable()
        self.queue = self.queue[consumed:] + list(new_links)
        self.crawled_count = min(self.page_budget, self.crawled_count + parsed_pages)
        if self.is_exhausted:
            self.status = FrontierStatus.DONE

    def mark_done(self) -> None:
        self._ensure_mutable()
        self.status = FrontierStatus.DONE

    def mark_error(self, detail: str) -> None:
        self._ensure_mutable()
        self.status = FrontierStatus.ERROR
        self.error_detail = detail

    def _ensure_mutable(self) -> None:
        if self.is_terminal:
            raise FrontierStateError(
                f"Frontier for audit_id={self.audit_id} is {self.status} and cannot change."
            )
