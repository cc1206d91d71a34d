"""Normalized content, transcription, and response models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

Platform = Literal["instagram", "youtube", "twitter", "tiktok", "linkedin", "other"]

DEFAULT_LANGUAGE = "en"
TRANSCRIPT_UNAVAILABLE = "Audio transcription unavailable"


class ScrapedContent(BaseModel):
    """Best-effort metadata produced by exactly one scraping strategy."""

    model_config = ConfigDict(frozen=True)

    url: str
    platform: Platform
    video_url: Optional[str] = None
    caption: Optional[str] = None
    content: Optional[str] = Field(default=None, description="Main page body as markdown")
    author: Optional[str] = None
    hashtags: Tuple[str, ...] = ()
    duration: Optional[int] = Field(default=None, ge=0, description="Duration in seconds")
    view_count: Optional[int] = Field(default=None, ge=0)
    like_count: Optional[int] = Field(default=None, ge=0)
    thumbnail_url: Optional[str] = None
    title: Optional[str] = None


@dataclass(frozen=True, slots=True)
class TranscriptionResult:
    """Text returned by the speech-to-text service."""

    text: str
    language: str = DEFAULT_LANGUAGE


@dataclass(frozen=True, slots=True)
class AudioDownload:
    """Extracted MP3 audio ready to be served as an attachment."""

    filename: str
    data: bytes
    content: ScrapedContent

    @property
    def media_type(self) -> str:
        return "audio/mpeg"


class PipelineResponse(BaseModel):
    """Scraped metadata joined with the transcript for one request."""

    model_config = ConfigDict(frozen=True)

    source_url: str
    platform: Platform
    caption: Optional[str] = None
    content: Optional[str] = None
    transcript: str = ""
    video_url: Optional[str] = None
    title: Optional[str] = None
    thumbnail_url: Optional[str] = None
    author: Optional[str] = None
    hashtags: Tuple[str, ...] = ()
    duration_seconds: Optional[int] = None
    language: str = DEFAULT_LANGUAGE
    view_count: Optional[int] = None
    like_count: Optional[int] = None

    @property
    def degraded(self) -> bool:
        return self.transcript == TRANSCRIPT_UNAVAILABLE

    @classmethod
    def from_content(
        cls,
        content: ScrapedContent,
        *,
        transcript: str,
        language: str = DEFAULT_LANGUAGE,
    ) -> "PipelineResponse":
        return cls(
            source_url=content.url,
            platform=content.platform,
            caption=content.caption,
            content=content.content,
            transcript=transcript,
            video_url=content.video_url,
            title=content.title,
            thumbnail_url=content.thumbnail_url,
            author=content.author,
            hashtags=content.hashtags,
            duration_seconds=content.duration,
            language=language,
            view_count=content.view_count,
            like_count=content.like_count,
        )

    def to_api_payload(self) -> dict[str, Any]:
        """Render the public JSON body with nested metadata."""
        return {
            "source_url": self.source_url,
            "platform": self.platform,
            "caption": self.caption,
            "content": self.content,
            "transcript": self.transcript,
            "videoUrl": self.video_url,
            "title": self.title,
            "thumbnailUrl": self.thumbnail_url,
            "metadata": {
                "author": self.author,
                "hashtags": list(self.hashtags),
                "duration_seconds": self.duration_seconds,
                "language": self.language,
                "view_count": self.view_count,
                "like_count": self.like_count,
            },
        }
