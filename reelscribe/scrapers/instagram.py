"""Instagram reel/post scraping with a three-step endpoint fallback."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import httpx

from ..config import AppConfig
from ..models import ScrapedContent
from ..utils.text import clean_caption, extract_hashtags, instagram_shortcode
from .base import first_success

logger = logging.getLogger(__name__)

# Undocumented endpoint parameters; expect to rotate these when Instagram changes them.
GRAPHQL_URL = "https://www.instagram.com/api/graphql"
GRAPHQL_DOC_ID = "10015901848480474"
GRAPHQL_LSD = "AVqbxe3J_YA"
ASBD_ID = "129477"
WEB_INFO_URL = "https://www.instagram.com/p/{shortcode}/"
OEMBED_URL = "https://www.instagram.com/api/v1/oembed/"

INSTAGRAM_URL_RE = re.compile(
    r"^https?://(?:www\.|m\.)?instagram\.com/(?:[A-Za-z0-9_.]+/)?(?:p|reel|reels|tv|stories)/[A-Za-z0-9_-]+",
    re.IGNORECASE,
)


def _as_count(value: Any) -> int | None:
    try:
        number = int(round(float(value)))
    except (TypeError, ValueError):
        return None
    return number if number >= 0 else None


def _build_content(
    url: str,
    *,
    raw_caption: str | None,
    author: str | None,
    video_url: str | None = None,
    duration: Any = None,
    view_count: Any = None,
    like_count: Any = None,
    thumbnail_url: str | None = None,
) -> ScrapedContent:
    caption = clean_caption(raw_caption)
    return ScrapedContent(
        url=url,
        platform="instagram",
        video_url=video_url or None,
        caption=caption or None,
        author=author or None,
        hashtags=tuple(extract_hashtags(raw_caption)),
        duration=_as_count(duration),
        view_count=_as_count(view_count),
        like_count=_as_count(like_count),
        thumbnail_url=thumbnail_url or None,
    )


class InstagramScraper:
    """Anonymous public-content scraper for Instagram posts and reels."""

    name = "instagram"

    def __init__(self, client: httpx.AsyncClient, config: AppConfig) -> None:
        self._client = client
        self._headers = {
            "User-Agent": config.user_agent,
            "X-IG-App-ID": config.instagram_app_id,
            "Sec-Fetch-Site": "same-origin",
        }

    def can_handle(self, url: str) -> bool:
        return bool(INSTAGRAM_URL_RE.match(url))

    async def scrape(self, url: str) -> ScrapedContent | None:
        return await first_success(
            (
                ("graphql", self.fetch_graphql),
                ("web_info", self.fetch_web_info),
                ("oembed", self.fetch_oembed),
            ),
            url,
        )

    async def fetch_graphql(self, url: str) -> ScrapedContent | None:
        """Primary: the internal GraphQL document used by the web client."""
        shortcode = instagram_shortcode(url)
        if not shortcode:
            return None

        params = {
            "variables": json.dumps({"shortcode": shortcode}),
            "doc_id": GRAPHQL_DOC_ID,
            "lsd": GRAPHQL_LSD,
        }
        headers = {
            **self._headers,
            "Content-Type": "application/x-www-form-urlencoded",
            "X-FB-LSD": GRAPHQL_LSD,
            "X-ASBD-ID": ASBD_ID,
        }
        response = await self._client.post(GRAPHQL_URL, params=params, headers=headers)
        response.raise_for_status()

        media = (response.json().get("data") or {}).get("xdt_shortcode_media")
        if not media:
            return None

        edges = (media.get("edge_media_to_caption") or {}).get("edges") or []
        raw_caption = (edges[0].get("node") or {}).get("text", "") if edges else ""
        return _build_content(
            url,
            raw_caption=raw_caption,
            author=(media.get("owner") or {}).get("username"),
            video_url=media.get("video_url"),
            duration=media.get("video_duration"),
            view_count=media.get("video_view_count") or media.get("video_play_count"),
            thumbnail_url=media.get("display_url"),
        )

    async def fetch_web_info(self, url: str) -> ScrapedContent | None:
        """Secondary: the ``__a=1`` JSON view of the post page; adds like counts."""
        shortcode = instagram_shortcode(url)
        if not shortcode:
            return None

        response = await self._client.get(
            WEB_INFO_URL.format(shortcode=shortcode),
            params={"__a": "1", "__d": "dis"},
            headers=self._headers,
        )
        response.raise_for_status()

        items = response.json().get("items") or []
        if not items:
            return None
        item = items[0]

        versions = item.get("video_versions") or []
        candidates = (item.get("image_versions2") or {}).get("candidates") or []
        return _build_content(
            url,
            raw_caption=(item.get("caption") or {}).get("text", ""),
            author=(item.get("user") or {}).get("username"),
            video_url=versions[0].get("url") if versions else None,
            duration=item.get("video_duration"),
            view_count=item.get("view_count") or item.get("play_count"),
            like_count=item.get("like_count"),
            thumbnail_url=candidates[0].get("url") if candidates else None,
        )

    async def fetch_oembed(self, url: str) -> ScrapedContent | None:
        """Last resort: public oEmbed metadata. Caption and author only, never a video URL."""
        response = await self._client.get(OEMBED_URL, params={"url": url})
        response.raise_for_status()

        data = response.json()
        return _build_content(
            url,
            raw_caption=data.get("title", ""),
            author=data.get("author_name"),
            thumbnail_url=data.get("thumbnail_url"),
        )
