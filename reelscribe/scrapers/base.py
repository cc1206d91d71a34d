"""Scraper contract and the ordered first-success combinator."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Protocol, Sequence, runtime_checkable

from ..models import ScrapedContent

logger = logging.getLogger(__name__)

FetchMethod = Callable[[str], Awaitable["ScrapedContent | None"]]


@runtime_checkable
class Scraper(Protocol):
    """A content-retrieval strategy tied to one platform or acting as the catch-all."""

    name: str

    def can_handle(self, url: str) -> bool: ...

    async def scrape(self, url: str) -> ScrapedContent | None: ...


async def first_success(
    methods: Sequence[tuple[str, FetchMethod]],
    url: str,
) -> ScrapedContent | None:
    """Try each method in order and return the first non-None result.

    A method that raises counts as that method failing; the chain moves on.
    """
    for name, method in methods:
        try:
            result = await method(url)
        except Exception as exc:
            logger.warning("Scrape method %s failed for %s: %s", name, url, exc)
            continue
        if result is not None:
            logger.debug("Scrape method %s succeeded for %s", name, url)
            return result
        logger.debug("Scrape method %s returned nothing for %s", name, url)
    return None
