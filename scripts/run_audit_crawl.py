"""
Run one audit crawl end to end from the CLI.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import time

from app.services.audit_crawl_service import AuditCrawlService
from db.session import session_scope


def main() -> int:
    parser = argparse.ArgumentParser(description="Initialize an audit and crawl it until done.")
    parser.add_argument("domain", help="Site to audit, e.g. example.com")
    parser.add_argument("--brand-name", dest="brand_name", default=None)
    parser.add_argument("--business-type", dest="business_type", default=None)
    parser.add_argument(
        "--page-budget",
        dest="page_budget",
        type=int,
        default=None,
        help="Max pages to crawl (clamped to the configured maximum).",
    )
    parser.add_argument(
        "--allow-subdomains",
        dest="allow_subdomains",
        action="store_true",
        help="Treat every host of the registrable domain as in scope.",
    )
    parser.add_argument(
        "--delay",
        dest="delay",
        type=float,
        default=0.0,
        help="Seconds to sleep between continuation batches.",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").strip().upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    service = AuditCrawlService()
    batches = 0
    with session_scope() as db:
        result = service.initialize(
            db=db,
            domain=args.domain,
            brand_name=args.brand_name,
            business_type=args.business_type,
            page_budget=args.page_budget,
            allow_subdomains=args.allow_subdomains,
        )
        progress = service.continue_crawl(db=db, audit_id=result.audit_id)
        batches += 1
        while not progress.done:
            if args.delay > 0:
                time.sleep(args.delay)
            progress = service.continue_crawl(db=db, audit_id=result.audit_id)
            batches += 1

    payload = {
        "audit_id": str(progress.audit_id),
        "status": progress.status,
        "crawled_count": progress.crawled_count,
        "page_budget": progress.page_budget,
        "queue_size": progress.queue_size,
        "batches": batches,
        "error": progress.error,
    }
    print(json.dumps(payload, indent=2))
    return 0 if progress.error is None else 1


if __name__ == "__main__":
    raise SystemExit(main())
