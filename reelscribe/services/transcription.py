"""Speech-to-text via the OpenAI transcription endpoint with bounded retries."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

import openai
from openai import AsyncOpenAI
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_incrementing

from ..config import AppConfig
from ..errors import ConfigurationError, TranscriptionError
from ..models import DEFAULT_LANGUAGE, TranscriptionResult

logger = logging.getLogger(__name__)

AUDIO_FILENAME = "audio.mp3"
AUDIO_MIME_TYPE = "audio/mpeg"

Sleeper = Callable[[float], Awaitable[None]]


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.warning(
        "Transcription attempt %d failed (%s); retrying in %.1fs",
        retry_state.attempt_number,
        exc,
        delay,
    )


class TranscriptionClient:
    """Thin wrapper around ``audio.transcriptions.create`` with linear backoff.

    Every API failure is retried the same way, whatever its status code, up to
    ``transcription_max_attempts``. A missing API key fails before any request.
    """

    def __init__(
        self,
        config: AppConfig,
        client: AsyncOpenAI | None = None,
        *,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.config = config
        self._client = client
        self._sleep = sleep

    def ensure_configured(self) -> str:
        """Return the API key or raise ConfigurationError."""
        api_key = self.config.openai_key
        if not api_key and self._client is None:
            raise ConfigurationError("OPENAI_API_KEY not configured")
        return api_key or ""

    def _openai(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.ensure_configured(),
                base_url=self.config.openai_base_url,
                max_retries=0,
                timeout=self.config.transcription_timeout_seconds,
            )
        return self._client

    async def _request(self, client: AsyncOpenAI, audio: bytes) -> Any:
        options: dict[str, Any] = {}
        if self.config.transcription_language:
            options["language"] = self.config.transcription_language
        return await client.audio.transcriptions.create(
            model=self.config.transcription_model,
            file=(AUDIO_FILENAME, audio, AUDIO_MIME_TYPE),
            response_format=self.config.transcription_response_format,
            **options,
        )

    async def transcribe(self, audio: bytes) -> TranscriptionResult:
        """Transcribe an MP3 buffer; raise TranscriptionError once attempts run out."""
        self.ensure_configured()
        client = self._openai()
        attempts = self.config.transcription_max_attempts
        backoff = self.config.transcription_backoff_seconds

        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_incrementing(start=backoff, increment=backoff),
            retry=retry_if_exception_type(openai.APIError),
            before_sleep=_log_retry,
            sleep=self._sleep,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._request(client, audio)
        except openai.APIError as exc:
            logger.error("Transcription failed after %d attempts: %s", attempts, exc)
            raise TranscriptionError(
                f"Failed to transcribe audio after {attempts} attempts: {exc}",
                attempts=attempts,
            ) from exc

        return _parse_response(response)


def _parse_response(response: Any) -> TranscriptionResult:
    if isinstance(response, str):
        return TranscriptionResult(text=response.strip())
    text = getattr(response, "text", None) or ""
    language = getattr(response, "language", None) or DEFAULT_LANGUAGE
    return TranscriptionResult(text=text.strip(), language=language)
