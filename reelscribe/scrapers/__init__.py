"""Platform scrapers and the dispatcher that chooses between them."""

from __future__ import annotations

from .base import Scraper, first_success
from .dispatcher import ScraperDispatcher
from .generic import GenericScraper, parse_html_page
from .instagram import InstagramScraper
from .youtube import YouTubeScraper, select_stream

__all__ = [
    "GenericScraper",
    "InstagramScraper",
    "Scraper",
    "ScraperDispatcher",
    "YouTubeScraper",
    "first_success",
    "parse_html_page",
    "select_stream",
]
