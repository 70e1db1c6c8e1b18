"""
Shared crawl runtime data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")


@dataclass(frozen=True)
class PolicyRule:
    """
    One crawl-policy directive. Rules are evaluated in document order.
    """

    path_prefix: str
    allow: bool

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path_prefix, "allow": self.allow}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "PolicyRule":
        return cls(path_prefix=str(raw.get("path", "")), allow=bool(raw.get("allow", True)))


@dataclass(frozen=True)
class FetchedDocument:
    """
    Body and metadata of one successful (2xx) HTTP GET.
    """

    url: str
    final_url: str
    status_code: int
    content_type: str
    text: str

    @property
    def is_html(self) -> bool:
        return "text/html" in self.content_type.lower()


@dataclass
class ExtractedPage:
    """
    Structural signals extracted from one HTML page.
    """

    url: str
    status_code: int
    title: str = ""
    h1: str = ""
    meta_description: str = ""
    canonical: str = ""
    has_schema: bool = False
    schema_types: list[str] = field(default_factory=list)
    headings: dict[str, int] = field(default_factory=lambda: {tag: 0 for tag in HEADING_TAGS})
    word_count: int = 0
    image_count: int = 0
    images_with_alt: int = 0
    links: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class UrlOutcome:
    """
    Result of processing one queued URL; `page` is None when it was skipped.
    """

    url: str
    page: ExtractedPage | None = None


@dataclass
class BatchOutcome:
    """
    Aggregate of one continuation batch before persistence.
    """

    pages: list[ExtractedPage] = field(default_factory=list)
    new_links: list[str] = field(default_factory=list)
    processed: int = 0
