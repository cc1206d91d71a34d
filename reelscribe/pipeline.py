"""Scrape, extract audio, transcribe, and assemble the unified response."""

from __future__ import annotations

import json
import logging
import time
import uuid
from types import TracebackType
from typing import Any, Optional

import httpx

from .config import AppConfig
from .errors import ExtractionError, NoAudioSource, NoScraperFound, TranscriptionError
from .logging_utils import bind_run_id
from .models import (
    DEFAULT_LANGUAGE,
    TRANSCRIPT_UNAVAILABLE,
    AudioDownload,
    PipelineResponse,
    ScrapedContent,
)
from .scrapers.dispatcher import ScraperDispatcher
from .services.audio import AudioExtractor
from .services.transcription import TranscriptionClient
from .utils.http import build_http_client
from .utils.text import audio_filename

logger = logging.getLogger(__name__)


def _log_event(level: int, event: str, **fields: Any) -> None:
    """Emit structured log events with consistent metadata."""
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, separators=(",", ":")))


def _elapsed_ms(started_ns: int) -> float:
    return round((time.perf_counter_ns() - started_ns) / 1_000_000, 2)


class MediaPipeline:
    """Coordinates dispatch, scraping, audio extraction, and transcription.

    Collaborators are built from ``config`` unless injected. When the pipeline
    creates its own HTTP client it also closes it (use ``async with``).
    Concurrent runs share nothing but the HTTP connection pool.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        dispatcher: Optional[ScraperDispatcher] = None,
        extractor: Optional[AudioExtractor] = None,
        transcriber: Optional[TranscriptionClient] = None,
    ) -> None:
        self.config = config
        self._owns_client = http_client is None
        self._client = http_client or build_http_client(config)
        self.dispatcher = dispatcher or ScraperDispatcher.default(config, self._client)
        self.extractor = extractor or AudioExtractor(config, self._client)
        self.transcriber = transcriber or TranscriptionClient(config)

    async def __aenter__(self) -> "MediaPipeline":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def dispatch_and_scrape(self, url: str, *, run_id: str | None = None) -> ScrapedContent:
        """Return scraped content or raise NoScraperFound / ContentNotFound."""
        run_id = run_id or uuid.uuid4().hex
        url = (url or "").strip()
        if not url:
            raise NoScraperFound("Missing or empty url")

        started = time.perf_counter_ns()
        content = await self.dispatcher.dispatch_and_scrape(url)
        _log_event(
            logging.INFO,
            "pipeline.scraped",
            run_id=run_id,
            url=url,
            platform=content.platform,
            has_video=bool(content.video_url),
            duration_ms=_elapsed_ms(started),
        )
        return content

    def _require_video(self, content: ScrapedContent, run_id: str) -> str:
        if not content.video_url:
            _log_event(logging.INFO, "pipeline.no_audio_source", run_id=run_id, url=content.url)
            raise NoAudioSource(f"No video URL discovered for {content.url!r}")
        return content.video_url

    async def run_full_pipeline(self, url: str) -> PipelineResponse:
        """Scrape ``url`` and attach a transcript.

        Extraction and transcription failures degrade the transcript to
        ``TRANSCRIPT_UNAVAILABLE``; only a missing scraper, missing content, a
        missing video source, or missing credentials fail the request.
        """
        run_id = uuid.uuid4().hex
        with bind_run_id(run_id):
            return await self._run_full(url, run_id)

    async def _run_full(self, url: str, run_id: str) -> PipelineResponse:
        started = time.perf_counter_ns()
        content = await self.dispatch_and_scrape(url, run_id=run_id)
        video_url = self._require_video(content, run_id)
        self.transcriber.ensure_configured()

        transcript = TRANSCRIPT_UNAVAILABLE
        language = DEFAULT_LANGUAGE
        try:
            audio = await self.extractor.extract_audio(video_url)
            result = await self.transcriber.transcribe(audio)
        except (ExtractionError, TranscriptionError) as exc:
            _log_event(
                logging.WARNING,
                "pipeline.degraded",
                run_id=run_id,
                url=content.url,
                error_type=type(exc).__name__,
                cause=type(exc.__cause__).__name__ if exc.__cause__ else None,
                error_message=str(exc),
            )
        else:
            transcript = result.text
            language = result.language

        response = PipelineResponse.from_content(content, transcript=transcript, language=language)
        _log_event(
            logging.INFO,
            "pipeline.completed",
            run_id=run_id,
            url=content.url,
            platform=content.platform,
            degraded=response.degraded,
            transcript_chars=len(response.transcript),
            duration_ms=_elapsed_ms(started),
        )
        return response

    async def extract_audio_for_url(self, url: str) -> AudioDownload:
        """Scrape ``url`` and return its audio track as an MP3 attachment.

        Unlike ``run_full_pipeline`` an extraction failure is terminal here.
        """
        run_id = uuid.uuid4().hex
        with bind_run_id(run_id):
            content = await self.dispatch_and_scrape(url, run_id=run_id)
            video_url = self._require_video(content, run_id)
            audio = await self.extractor.extract_audio(video_url)
        return AudioDownload(filename=audio_filename(content.title), data=audio, content=content)
