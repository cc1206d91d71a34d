"""Text helpers shared by the scrapers and the audio download route."""

from __future__ import annotations

import re

HASHTAG_RE = re.compile(r"#(\w+)")
WHITESPACE_RE = re.compile(r"\s+")
INSTAGRAM_SHORTCODE_RE = re.compile(
    r"instagram\.com/(?:[A-Za-z0-9_.]+/)?(?:p|reels|reel|stories|tv)/([A-Za-z0-9_-]+)"
)
_FILENAME_UNSAFE_RE = re.compile(r"[^a-z0-9_-]+", re.IGNORECASE)


def extract_hashtags(text: str | None) -> list[str]:
    """Return ``#word`` tokens without the leading hash, in source order."""
    if not text:
        return []
    return HASHTAG_RE.findall(text)


def clean_caption(caption: str | None) -> str:
    """Collapse whitespace runs to single spaces and trim both ends."""
    if not caption:
        return ""
    return WHITESPACE_RE.sub(" ", caption).strip()


def instagram_shortcode(url: str) -> str | None:
    match = INSTAGRAM_SHORTCODE_RE.search(url)
    return match.group(1) if match else None


def audio_filename(title: str | None) -> str:
    """Build a download-safe ``.mp3`` file name from a content title."""
    base = _FILENAME_UNSAFE_RE.sub("-", title or "audio")
    base = re.sub(r"-+", "-", base).strip("-")
    return f"{base}.mp3" if base else "audio.mp3"
