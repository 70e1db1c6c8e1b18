"""
Bounded-timeout HTTP fetcher for crawl targets.
"""

from __future__ import annotations

import logging
import time

import requests

from app.crawling.logging_utils import log_event
from app.crawling.types import FetchedDocument

logger = logging.getLogger(__name__)

_CHUNK_BYTES = 64 * 1024
DEFAULT_MAX_BODY_BYTES = 5 * 1024 * 1024


class _BodyAbandoned(Exception):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class PageFetcher:
    """
    Issues single GET requests with the crawler's identifying user agent.

    `timeout` bounds the whole fetch, body included, not just each socket
    read. Bodies above `max_body_bytes` are abandoned. Failures (timeouts,
    connection errors, non-2xx statuses) are logged and reported as None;
    they are never retried.
    """

    def __init__(
        self,
        *,
        session: requests.Session,
        user_agent: str,
        max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
    ) -> None:
        self._session = session
        self._max_body_bytes = max(1, max_body_bytes)
        self._headers = {
            "User-Agent": user_agent,
            "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
        }

    def fetch_document(self, url: str, *, timeout: float) -> FetchedDocument | None:
        """
        Fetch any 2xx document (policy files, sitemaps) and return its text.
        """

        return self._fetch(url, timeout=timeout, html_only=False)

    def fetch_page(self, url: str, *, timeout: float) -> FetchedDocument | None:
        """
        Fetch an HTML page. Non-HTML responses are drained and discarded.
        """

        return self._fetch(url, timeout=timeout, html_only=True)

    def _fetch(self, url: str, *, timeout: float, html_only: bool) -> FetchedDocument | None:
        deadline = time.monotonic() + timeout
        try:
            with self._session.get(
                url,
                headers=self._headers,
                timeout=timeout,
                allow_redirects=True,
                stream=True,
            ) as response:
                content_type = response.headers.get("content-type", "") or ""
                if not 200 <= response.status_code < 300:
                    log_event(
                        logger,
                        logging.INFO,
                        "page_fetch_failed",
                        url=url,
                        status_code=response.status_code,
                    )
                    return None

                if html_only and "text/html" not in content_type.lower():
                    try:
                        self._read_body(response, deadline)
                    except _BodyAbandoned:
                        pass
                    log_event(
                        logger,
                        logging.INFO,
                        "page_skipped_non_html",
                        url=url,
                        content_type=content_type,
                    )
                    return None

                body = self._read_body(response, deadline)
                return FetchedDocument(
                    url=url,
                    final_url=response.url or url,
                    status_code=response.status_code,
                    content_type=content_type,
                    text=body.decode(response.encoding or "utf-8", errors="replace"),
                )
        except _BodyAbandoned as exc:
            log_event(
                logger,
                logging.INFO,
                "page_fetch_failed",
                url=url,
                reason=exc.reason,
                timeout_seconds=timeout,
                max_body_bytes=self._max_body_bytes,
            )
            return None
        except (requests.RequestException, LookupError) as exc:
            log_event(
                logger,
                logging.INFO,
                "page_fetch_failed",
                url=url,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return None

    def _read_body(self, response: requests.Response, deadline: float) -> bytes:
        body = bytearray()
        for chunk in response.iter_content(chunk_size=_CHUNK_BYTES):
            if time.monotonic() > deadline:
                raise _BodyAbandoned("deadline")
            body.extend(chunk)
            if len(body) > self._max_body_bytes:
                raise _BodyAbandoned("max_body_bytes")
        if time.monotonic() > deadline:
            raise _BodyAbandoned("deadline")
        return bytes(body)
