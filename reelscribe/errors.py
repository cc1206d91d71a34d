"""Error taxonomy shared by the scraping, audio, and transcription layers."""

from __future__ import annotations


class ReelScribeError(Exception):
    """Base class for failures surfaced to the request-handling layer."""

    status_code: int = 500
    message: str = "Internal Server Error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.message)
        self.detail = detail or self.message

    def to_payload(self) -> dict[str, object]:
        """Public error body; internal detail is never included."""
        return {"error": self.message, "status": self.status_code}


class NoScraperFound(ReelScribeError):
    status_code = 400
    message = "Unsupported platform or invalid URL"


class ContentNotFound(ReelScribeError):
    status_code = 404
    message = "Content not found or inaccessible"


class NoAudioSource(ReelScribeError):
    status_code = 422
    message = "No audio source found for this URL"


class ConfigurationError(ReelScribeError):
    """Raised when a required setting or credential is missing or invalid."""

    status_code = 500
    message = "Service is not configured"


class ExtractionError(ReelScribeError):
    """Opaque audio extraction failure; the specific fault is chained as ``__cause__``."""

    status_code = 500
    message = "Failed to extract audio"

    @property
    def cause(self) -> BaseException | None:
        return self.__cause__


class TranscriptionError(ReelScribeError):
    """Raised once the transcription retry budget is exhausted."""

    status_code = 502
    message = "Failed to transcribe audio"

    def __init__(self, detail: str | None = None, *, attempts: int = 0) -> None:
        super().__init__(detail)
        self.attempts = attempts


class AudioFault(Exception):
    """Specific audio extraction faults, wrapped in ExtractionError before leaving the extractor."""


class DownloadError(AudioFault):
    """The source video could not be fetched."""


class TranscodeTimeoutError(AudioFault):
    """ffmpeg exceeded its wall-clock budget."""


class TranscodeProcessError(AudioFault):
    """ffmpeg failed to start cleanly, exited non-zero, or produced no audio."""


class SpawnError(AudioFault):
    """The ffmpeg binary could not be located or launched."""


__all__ = [
    "AudioFault",
    "ConfigurationError",
    "ContentNotFound",
    "DownloadError",
    "ExtractionError",
    "NoAudioSource",
    "NoScraperFound",
    "ReelScribeError",
    "SpawnError",
    "TranscodeProcessError",
    "TranscodeTimeoutError",
    "TranscriptionError",
]
