"""YouTube metadata and stream resolution through yt-dlp."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Callable, Optional, Sequence

from yt_dlp import YoutubeDL
from yt_dlp.utils import DownloadError, ExtractorError

from ..config import AppConfig
from ..models import ScrapedContent

logger = logging.getLogger(__name__)

YOUTUBE_HOST_RE = re.compile(r"^(?:https?://)?(?:www\.|m\.|music\.)?(?:youtube\.com|youtu\.be)/.+$", re.IGNORECASE)
YID_RE = re.compile(
    r"^(?:https?://)?(?:www\.|m\.|music\.)?"
    r"(?:youtube\.com/(?:watch\?(?:.*&)?v=|shorts/|embed/|live/|v/)|youtu\.be/)"
    r"([A-Za-z0-9_-]{11})(?:[?&#/]|$)",
    re.IGNORECASE,
)

InfoLoader = Callable[[str], dict]


def extract_video_id(url: str) -> str | None:
    m = YID_RE.match(url.strip())
    return m.group(1) if m else None


def _has_video(fmt: dict) -> bool:
    return fmt.get("vcodec") not in (None, "none")


def _has_audio(fmt: dict) -> bool:
    return fmt.get("acodec") not in (None, "none")


def select_stream(formats: Sequence[dict]) -> Optional[dict]:
    """Pick a playable stream: mp4 audio+video, any audio+video, then best audio-only.

    yt-dlp lists formats worst-to-best, so combined streams are scanned from the end.
    """
    playable = [f for f in formats if f.get("url")]
    combined = [f for f in playable if _has_video(f) and _has_audio(f)]
    for fmt in reversed(combined):
        if fmt.get("ext") == "mp4":
            return fmt
    if combined:
        return combined[-1]
    audio_only = [f for f in playable if _has_audio(f) and not _has_video(f)]
    if audio_only:
        return max(audio_only, key=lambda f: float(f.get("abr") or f.get("tbr") or 0))
    return None


def _as_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        number = int(float(value))
    except (TypeError, ValueError):
        return None
    return number if number >= 0 else None


def _best_thumbnail(info: dict) -> str | None:
    thumbnails = [t for t in info.get("thumbnails") or [] if t.get("url")]
    if thumbnails:
        return thumbnails[-1]["url"]
    return info.get("thumbnail")


class YouTubeScraper:
    """Resolve YouTube metadata and a directly playable stream URL via yt-dlp."""

    name = "youtube"

    def __init__(self, config: AppConfig, info_loader: InfoLoader | None = None) -> None:
        self._ydl_opts = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
            "noplaylist": True,
            "http_headers": {"User-Agent": config.user_agent},
        }
        self._info_loader = info_loader or self._extract_info

    def can_handle(self, url: str) -> bool:
        return bool(YOUTUBE_HOST_RE.match(url))

    def _extract_info(self, url: str) -> dict:
        with YoutubeDL(self._ydl_opts) as ydl:
            return ydl.extract_info(url, download=False) or {}

    async def scrape(self, url: str) -> ScrapedContent | None:
        if not extract_video_id(url):
            logger.debug("Not a canonical YouTube video URL: %s", url)
            return None

        try:
            info = await asyncio.to_thread(self._info_loader, url)
        except (DownloadError, ExtractorError) as exc:
            logger.warning("YouTube metadata lookup failed for %s: %s", url, exc)
            return None

        stream = select_stream(info.get("formats") or [])
        if stream is None:
            logger.info("No playable stream resolved for %s", url)
            return None

        return ScrapedContent(
            url=url,
            platform="youtube",
            video_url=stream["url"],
            title=info.get("title"),
            caption=info.get("description") or None,
            author=info.get("uploader") or info.get("channel"),
            duration=_as_int(info.get("duration")),
            view_count=_as_int(info.get("view_count")),
            like_count=_as_int(info.get("like_count")),
            thumbnail_url=_best_thumbnail(info),
            hashtags=tuple(info.get("tags") or ()),
        )
