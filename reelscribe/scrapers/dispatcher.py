"""Fixed-priority selection of a scraping strategy for a URL."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from ..config import AppConfig
from ..errors import ContentNotFound, NoScraperFound
from ..models import ScrapedContent
from .base import Scraper
from .generic import GenericScraper
from .instagram import InstagramScraper
from .youtube import YouTubeScraper

logger = logging.getLogger(__name__)


class ScraperDispatcher:
    """Return the first strategy, in priority order, whose predicate accepts a URL."""

    def __init__(self, scrapers: Sequence[Scraper]) -> None:
        if not scrapers:
            raise ValueError("ScraperDispatcher requires at least one scraper")
        self._scrapers: tuple[Scraper, ...] = tuple(scrapers)

    @classmethod
    def default(cls, config: AppConfig, client: httpx.AsyncClient) -> "ScraperDispatcher":
        """Platform-specific strategies first, the catch-all last."""
        return cls(
            (
                InstagramScraper(client, config),
                YouTubeScraper(config),
                GenericScraper(client, config),
            )
        )

    @property
    def scrapers(self) -> tuple[Scraper, ...]:
        return self._scrapers

    def get_scraper(self, url: str) -> Scraper | None:
        return next((scraper for scraper in self._scrapers if scraper.can_handle(url)), None)

    def resolve(self, url: str) -> Scraper:
        scraper = self.get_scraper(url)
        if scraper is None:
            raise NoScraperFound(f"No scraper accepts {url!r}")
        return scraper

    async def dispatch_and_scrape(self, url: str) -> ScrapedContent:
        """Scrape ``url`` with the selected strategy or raise a terminal pipeline error."""
        scraper = self.resolve(url)
        logger.debug("Dispatching %s to %s scraper", url, scraper.name)
        content = await scraper.scrape(url)
        if content is None:
            raise ContentNotFound(f"{scraper.name} scraper returned no content for {url!r}")
        return content
