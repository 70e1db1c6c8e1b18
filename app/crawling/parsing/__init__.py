"""
HTML parsing layer exports.
"""

from app.crawling.parsing.page_extractor import PRIORITY_LINK_SELECTORS, PageExtractor

__all__ = ["PRIORITY_LINK_SELECTORS", "PageExtractor"]
