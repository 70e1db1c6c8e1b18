"""
Structured logging helpers for crawl workflows.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    if not logger.isEnabledFor(level):
        return
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))


@contextmanager
def timed_event(
    logger: logging.Logger,
    event: str,
    **fields: Any,
) -> Iterator[dict[str, Any]]:
    """
    Log `event` at INFO when the block exits, with its elapsed milliseconds.

    The yielded dict can be filled in by the block to add result fields.
    """

    extra: dict[str, Any] = {}
    started = time.monotonic()
    try:
        yield extra
    finally:
        elapsed_ms = round((time.monotonic() - started) * 1000.0, 1)
        log_event(logger, logging.INFO, event, elapsed_ms=elapsed_ms, **fields, **extra)
