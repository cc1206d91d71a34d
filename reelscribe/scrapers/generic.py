"""Catch-all scraper for direct video links and arbitrary HTML pages."""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup
from markdownify import markdownify

from ..config import AppConfig
from ..models import Platform, ScrapedContent
from ..utils.http import BROWSER_ACCEPT

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS: tuple[str, ...] = (".mp4", ".mov", ".webm", ".ogg", ".mkv")
VIDEO_CONTENT_TYPES: tuple[str, ...] = ("video/", "application/octet-stream")
STRIP_SELECTOR = "script, style, nav, footer, header, aside, iframe, noscript, .ad, .ads, .advertisement"
CONTENT_SELECTORS: tuple[str, ...] = ("article", "main", ".post-content", ".entry-content", "#content", ".content")
DIRECT_VIDEO_CONTENT = "Direct video file"


def infer_platform(url: str) -> Platform:
    hostname = (urlparse(url).hostname or "").lower()
    if "tiktok" in hostname:
        return "tiktok"
    if "twitter" in hostname or "x.com" in hostname:
        return "twitter"
    if "linkedin" in hostname:
        return "linkedin"
    return "other"


def _meta_content(soup: BeautifulSoup, *candidates: tuple[str, str]) -> str | None:
    """Return the first non-empty ``content`` among ``<meta attr=value>`` candidates."""
    for attr, value in candidates:
        tag = soup.find("meta", attrs={attr: value})
        if tag and tag.get("content", "").strip():
            return tag["content"].strip()
    return None


def _first_text(soup: BeautifulSoup, selector: str) -> str | None:
    tag = soup.select_one(selector)
    if tag is None:
        return None
    text = tag.get_text(strip=True)
    return text or None


def _first_attr(soup: BeautifulSoup, selector: str, attr: str) -> str | None:
    tag = soup.select_one(selector)
    if tag is None:
        return None
    value = (tag.get(attr) or "").strip()
    return value or None


def _main_content_html(soup: BeautifulSoup) -> str:
    for selector in CONTENT_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        html = element.decode_contents()
        if html.strip():
            return html
    body = soup.body
    return body.decode_contents() if body is not None else str(soup)


def parse_html_page(url: str, html: str) -> ScrapedContent:
    """Extract metadata and the main body (as markdown) from an HTML document."""
    soup = BeautifulSoup(html, "html.parser")
    for element in soup.select(STRIP_SELECTOR):
        element.decompose()

    title = (
        _meta_content(soup, ("property", "og:title"), ("name", "twitter:title"))
        or _first_text(soup, "title")
        or _first_text(soup, "h1")
    )
    description = _meta_content(
        soup,
        ("property", "og:description"),
        ("name", "twitter:description"),
        ("name", "description"),
    )
    image = _meta_content(soup, ("property", "og:image"), ("name", "twitter:image")) or _first_attr(
        soup, 'link[rel="image_src"]', "href"
    )
    video = (
        _meta_content(
            soup,
            ("property", "og:video"),
            ("property", "og:video:url"),
            ("property", "og:video:secure_url"),
            ("name", "twitter:player:stream"),
        )
        or _first_attr(soup, "video source[src]", "src")
        or _first_attr(soup, "video[src]", "src")
    )
    author = _meta_content(soup, ("property", "og:site_name"), ("name", "author")) or urlparse(url).hostname
    keywords = _meta_content(soup, ("name", "keywords"))
    hashtags = tuple(k.strip() for k in keywords.split(",") if k.strip()) if keywords else ()

    markdown = markdownify(_main_content_html(soup), heading_style="ATX").strip()

    return ScrapedContent(
        url=url,
        platform=infer_platform(url),
        title=title,
        caption=description,
        content=markdown or None,
        video_url=urljoin(url, video) if video else None,
        thumbnail_url=urljoin(url, image) if image else None,
        author=author,
        hashtags=hashtags,
    )


class GenericScraper:
    """Accepts any absolute http(s) URL; always tried last."""

    name = "generic"

    def __init__(self, client: httpx.AsyncClient, config: AppConfig) -> None:
        self._client = client
        self._headers = {"User-Agent": config.user_agent, "Accept": BROWSER_ACCEPT}

    def can_handle(self, url: str) -> bool:
        try:
            parsed = httpx.URL(url)
        except (httpx.InvalidURL, TypeError):
            return False
        return parsed.scheme in ("http", "https") and bool(parsed.host)

    async def scrape(self, url: str) -> ScrapedContent | None:
        path = urlparse(url).path.lower()
        if path.endswith(VIDEO_EXTENSIONS):
            logger.info("Detected direct video URL: %s", url)
            return ScrapedContent(
                url=url,
                platform=infer_platform(url),
                title=PurePosixPath(path).name,
                video_url=url,
                content=DIRECT_VIDEO_CONTENT,
            )

        try:
            async with self._client.stream("GET", url, headers=self._headers) as response:
                if response.is_error:
                    logger.info("Page fetch for %s returned HTTP %s", url, response.status_code)
                    return None

                content_type = response.headers.get("content-type", "").lower()
                if content_type.startswith(VIDEO_CONTENT_TYPES):
                    logger.info("Detected video content-type %s for %s", content_type, url)
                    return ScrapedContent(
                        url=url,
                        platform=infer_platform(url),
                        title="Video File",
                        video_url=url,
                        content=DIRECT_VIDEO_CONTENT,
                    )
                await response.aread()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Page fetch failed for %s: %s", url, exc)
            return None

        return parse_html_page(url, response.text)
